import libcst as cst

from overlay_merge.config import MergeConfig
from overlay_merge.merger.arena import ClassDraft, ModuleDraft
from overlay_merge.merger.base import SymbolKind
from overlay_merge.merger.indexer import dunder_all, index_declarations, index_members, is_exported, is_private

MODULE = '''\
"""Pets."""

from enum import Enum
from typing import Protocol, TypeAlias, overload
from generated.models import Pet as _Pet
import os.path
from . import sibling

DEFAULT_LIMIT = 10
PetId: TypeAlias = int
type Tags = list[str]


class Store(Protocol):
    def save(self) -> None: ...


class Color(Enum):
    RED = 1


class Pet:
    name: str


@overload
def load(value: int) -> int: ...
@overload
def load(value: str) -> str: ...
def load(value):
    return value


if __name__ == "__main__":
    load(1)
'''


def index(code: str = MODULE):
    return index_declarations(ModuleDraft(cst.parse_module(code)), MergeConfig())


class TestIndexDeclarations:
    """Module-level declaration classification"""

    def test_kinds(self):
        declarations = index()
        assert list(declarations.functions) == ["load"]
        assert list(declarations.classes) == ["Color", "Pet"]
        assert list(declarations.interfaces) == ["Store"]
        assert list(declarations.type_aliases) == ["PetId", "Tags"]
        assert list(declarations.variables) == ["DEFAULT_LIMIT"]

    def test_enum_is_indexed_with_classes(self):
        declarations = index()
        assert declarations.classes["Color"].kind is SymbolKind.ENUM
        assert declarations.classes["Pet"].kind is SymbolKind.CLASS

    def test_overload_group(self):
        load = index().functions["load"]
        assert len(load.nodes) == 3
        assert len(load.overloads) == 2
        assert load.implementation is load.nodes[-1]

    def test_imports(self):
        imports = index().imports
        assert imports["_Pet"].imported_name == "Pet"
        assert imports["_Pet"].module == "generated.models"
        assert imports["os"].imported_name == "os.path"
        assert imports["sibling"].module == "."
        assert imports["Protocol"].module == "typing"

    def test_rebinding_keeps_every_statement(self):
        declarations = index("LIMIT = 1\nLIMIT = 2\n")
        limit = declarations.variables["LIMIT"]
        assert len(limit.nodes) == 2
        assert "2" in cst.Module(body=[]).code_for_node(limit.nodes[-1])

    def test_class_rebinding_keeps_last_statement(self):
        declarations = index("class Pet:\n    a: int\n\n\nclass Pet:\n    b: int\n")
        assert len(declarations.classes["Pet"].nodes) == 1
        assert "b: int" in cst.Module(body=[]).code_for_node(declarations.classes["Pet"].first)

    def test_custom_interface_bases(self):
        config = MergeConfig(interface_bases=["BaseModel"])
        declarations = index_declarations(ModuleDraft(cst.parse_module("class Pet(BaseModel):\n    name: str\n")), config)
        assert list(declarations.interfaces) == ["Pet"]


class TestIndexMembers:
    """Class body classification"""

    CLASS = '''\
class Pet:
    """A pet."""

    name: str
    kind = "dog"

    def __init__(self, name):
        self.name = name

    def __init__(self, name, kind):
        self.name = name

    @property
    def label(self):
        return self.name

    @label.setter
    def label(self, value):
        self.name = value
'''

    def members(self):
        return index_members(ClassDraft(cst.parse_statement(self.CLASS)))

    def test_docstring(self):
        assert self.members().docstring is not None

    def test_properties(self):
        assert list(self.members().properties) == ["name", "kind"]

    def test_constructors_form_one_group(self):
        constructor = self.members().constructor
        assert len(constructor.nodes) == 2
        assert len(constructor.implementations) == 2

    def test_constructor_overloads_join_the_group(self):
        code = """\
class Client:
    @overload
    def __init__(self, a: int) -> None: ...
    @overload
    def __init__(self, a: str) -> None: ...
    def __init__(self, a):
        self.a = a
"""
        constructor = index_members(ClassDraft(cst.parse_statement(code))).constructor
        assert len(constructor.overloads) == 2
        assert len(constructor.implementations) == 1

    def test_accessors_form_one_group(self):
        methods = self.members().methods
        assert list(methods) == ["label"]
        assert len(methods["label"].nodes) == 2


class TestExports:
    """Visibility and export flags"""

    def test_is_private(self):
        assert is_private("_helper")
        assert not is_private("helper")
        assert not is_private("__init__")

    def test_dunder_all(self):
        draft = ModuleDraft(cst.parse_module('__all__ = ["a", "b"]\n'))
        assert dunder_all(draft.arena) == {"a", "b"}

    def test_no_dunder_all(self):
        assert dunder_all(ModuleDraft(cst.parse_module("a = 1\n")).arena) is None

    def test_is_exported(self):
        assert is_exported("fetch", None)
        assert not is_exported("_fetch", None)
        assert not is_exported("fetch", {"other"})
        assert is_exported("__all__", {"other"})
