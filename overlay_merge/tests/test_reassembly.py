import ast
import logging
from pathlib import PurePosixPath
from textwrap import dedent

from overlay_merge.config import MergeConfig
from overlay_merge.merger import PythonOverlayMerger, SymbolIndex
from overlay_merge.merger.imports import relative_module


def merge(custom: str, generated: str, **kwargs):
    return PythonOverlayMerger(MergeConfig(reorder=kwargs.pop("reorder", True))).merge(dedent(custom), dedent(generated), **kwargs)


def top_level_names(code: str) -> list[str]:
    names = []
    for node in ast.parse(code).body:
        if isinstance(node, ast.FunctionDef | ast.ClassDef):
            names.append(node.name)
        elif isinstance(node, ast.Assign):
            names.append(node.targets[0].id)
        elif isinstance(node, ast.AnnAssign):
            names.append(node.target.id)
        elif isinstance(node, ast.TypeAlias):
            names.append(node.name.id)
    return names


MIXED = """\
\"\"\"Mixed declarations.\"\"\"

from enum import Enum
from typing import Protocol, TypeAlias


def _normalize(value: str) -> str:
    return value.strip()


class Color(Enum):
    RED = 1


def load(value: str) -> str:
    return _normalize(value)


class Pet:
    name: str


PetId: TypeAlias = int


class Store(Protocol):
    def save(self) -> None: ...


DEFAULT_COLOR = "red"


if __name__ == "__main__":
    load("x")
"""


class TestCategoryOrder:
    """Canonical order of top-level declarations"""

    def test_categories(self):
        result = merge("", MIXED)
        assert top_level_names(result.code) == ["DEFAULT_COLOR", "Store", "PetId", "Pet", "load", "_normalize", "Color"]

    def test_head_and_tail_statements_keep_their_place(self):
        code = merge("", MIXED).code
        assert code.startswith('"""Mixed declarations."""\n\nfrom enum import Enum\n')
        assert code.rstrip().endswith('if __name__ == "__main__":\n    load("x")')

    def test_dunder_all_defines_exports(self):
        generated = """\
        __all__ = ["b"]


        def a():
            pass


        def b():
            pass
        """
        assert top_level_names(merge("", generated).code) == ["__all__", "b", "a"]

    def test_reorder_disabled(self):
        result = merge("", MIXED, reorder=False)
        assert top_level_names(result.code) == ["_normalize", "Color", "load", "Pet", "PetId", "Store", "DEFAULT_COLOR"]

    def test_top_level_spacing(self):
        code = merge("", MIXED).code
        assert "\n\n\n\n" not in code
        assert '\n\n\nclass Pet:\n    name: str\n\n\ndef load' in code


class TestClassMemberOrder:
    """Canonical order of class members"""

    def test_members(self):
        generated = '''\
        class Pet:
            """A pet."""

            def _validate(self) -> None:
                pass

            def describe(self) -> str:
                return self.name

            def __init__(self, name: str):
                self.name = name

            name: str
            _cache: dict = {}
            age: int = 0
        '''
        code = merge("", generated).code
        class_def = next(n for n in ast.parse(code).body if isinstance(n, ast.ClassDef))
        names = []
        for member in class_def.body:
            if isinstance(member, ast.FunctionDef):
                names.append(member.name)
            elif isinstance(member, ast.AnnAssign):
                names.append(member.target.id)
        assert names == ["name", "age", "_cache", "__init__", "describe", "_validate"]
        assert '"""A pet."""\n\n    name: str\n    age: int = 0\n    _cache: dict = {}\n\n    def __init__' in code


class TestImportRepair:
    """Imports inserted for names left dangling by the merge"""

    def test_overlay_import_carried(self):
        result = merge(
            """\
            from pathlib import Path


            def read(name: str) -> str:
                return Path(name).read_text()
            """,
            "import os\n",
        )
        assert result.added_imports == ["from pathlib import Path"]
        assert result.code.startswith("import os\nfrom pathlib import Path\n\n\ndef read(")

    def test_existing_import_is_extended(self):
        result = merge(
            """\
            from typing import Optional


            def find(name: str) -> Optional[str]:
                return None
            """,
            "from typing import Any\n\n\ndef get() -> Any:\n    return 1\n",
        )
        assert "from typing import Any, Optional\n" in result.code

    def test_aliased_plain_import(self):
        result = merge(
            """\
            import numpy as np


            def zeros(n: int):
                return np.zeros(n)
            """,
            "",
        )
        assert result.code.startswith("import numpy as np\n")

    def test_import_after_module_docstring(self):
        result = merge(
            """\
            from pathlib import Path


            def read(name: str) -> str:
                return Path(name).read_text()
            """,
            '"""Docs."""\n\n\ndef f():\n    return 1\n',
        )
        assert result.code.startswith('"""Docs."""\n\nfrom pathlib import Path\n\n\ndef f():')

    def test_sibling_module_preferred(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("api/models.py"), "class Pet:\n    name: str\n")
        result = merge(
            """\
            from generated.api.models import Pet


            def adopt(name: str) -> Pet:
                return Pet()
            """,
            "",
            module_path=PurePosixPath("api/operations.py"),
            symbol_index=index,
        )
        assert result.added_imports == ["from .models import Pet"]

    def test_overlay_import_beats_sibling_definition(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("api/aaa.py"), "class Session:\n    pass\n")
        result = merge(
            """\
            from requests import Session


            def open_session() -> Session:
                return Session()
            """,
            "",
            module_path=PurePosixPath("api/operations.py"),
            symbol_index=index,
        )
        assert result.added_imports == ["from requests import Session"]
        assert ".aaa" not in result.code

    def test_sibling_used_when_overlay_never_imported(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("api/models.py"), "class Pet:\n    name: str\n")
        result = merge(
            "def adopt() -> Pet:\n    return Pet()\n",
            "",
            module_path=PurePosixPath("api/operations.py"),
            symbol_index=index,
        )
        assert result.added_imports == ["from .models import Pet"]

    def test_unresolved_reference_is_reported(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = merge("def f():\n    return mystery()\n", "")
        assert "mystery" in caplog.text
        assert result.added_imports == []

    def test_import_repair_disabled(self):
        config = MergeConfig(fix_imports=False)
        code = "from pathlib import Path\n\n\ndef read(name):\n    return Path(name)\n"
        result = PythonOverlayMerger(config).merge(code, "")
        assert "import" not in result.code

    def test_future_import_carried(self):
        result = merge(
            """\
            from __future__ import annotations


            def f() -> int:
                return 1
            """,
            '"""Docs."""\nimport os\n',
        )
        assert result.code.startswith('"""Docs."""\n\nfrom __future__ import annotations\n\nimport os\n')


class TestSymbolIndex:
    """Sibling module lookup"""

    def test_locate_excludes_current_module(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("api/models.py"), "class Pet: ...\n")
        index.add_source(PurePosixPath("api/operations.py"), "class Pet: ...\n")
        assert index.locate("Pet", exclude=PurePosixPath("api/models.py")) == PurePosixPath("api/operations.py")
        assert index.locate("Owner") is None

    def test_stub_of_current_module_is_excluded(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("api/models.pyi"), "class Pet: ...\n")
        assert index.locate("Pet", exclude=PurePosixPath("api/models.py")) is None

    def test_locate_in_follows_import_path(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("api/aaa.py"), "class Pet: ...\n")
        index.add_source(PurePosixPath("api/models.py"), "class Pet: ...\n")
        assert index.locate_in("generated.api.models", "Pet") == PurePosixPath("api/models.py")
        assert index.locate_in("api.models", "Pet") == PurePosixPath("api/models.py")
        assert index.locate_in("requests", "Pet") is None
        assert index.locate_in(".models", "Pet") is None

    def test_invalid_source_is_skipped(self):
        index = SymbolIndex()
        index.add_source(PurePosixPath("broken.py"), "def (:\n")
        assert index.modules == {}

    def test_from_directories(self, tmp_path):
        (tmp_path / "api").mkdir()
        (tmp_path / "api" / "models.py").write_text("PetId = int\n\n\ndef adopt():\n    pass\n")
        (tmp_path / "README.md").write_text("# docs\n")
        index = SymbolIndex.from_directories([tmp_path], [".py"])
        assert index.modules == {PurePosixPath("api/models.py"): {"PetId", "adopt"}}

    def test_relative_module(self):
        assert relative_module(PurePosixPath("api/operations.py"), PurePosixPath("api/models.py")) == ".models"
        assert relative_module(PurePosixPath("api/operations.py"), PurePosixPath("models.py")) == "..models"
        assert relative_module(PurePosixPath("operations.py"), PurePosixPath("api/models.py")) == ".api.models"
        assert relative_module(PurePosixPath("api/operations.py"), PurePosixPath("api/__init__.py")) == "."
