"""
Declaration indexing.

Builds name-keyed maps of the declarations found in a module or class body.
Every statement is classified exactly once here; resolvers and reassembly
consume the resulting records instead of re-inspecting nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import libcst as cst
from libcst.helpers import get_full_name_for_node

from ..config import MergeConfig
from .arena import ClassDraft, ModuleDraft, StatementArena
from .base import SymbolKind

CONSTRUCTOR_NAME = "__init__"
OVERLOAD_DECORATORS = {"overload", "typing.overload", "typing_extensions.overload"}
TYPE_ALIAS_ANNOTATIONS = {"TypeAlias", "typing.TypeAlias", "typing_extensions.TypeAlias"}


@dataclass
class Declaration:
    """A named declaration and all the statements that make it up.

    Functions and methods keep their whole overload group (and property
    accessors) in ``handles``/``nodes`` so they are always moved together.
    """

    kind: SymbolKind
    name: str
    handles: list[int] = field(default_factory=list)
    nodes: list[cst.BaseStatement] = field(default_factory=list)

    def add(self, handle: int, node: cst.BaseStatement) -> None:
        self.handles.append(handle)
        self.nodes.append(node)

    @property
    def first(self) -> cst.BaseStatement:
        return self.nodes[0]

    @property
    def overloads(self) -> list[cst.FunctionDef]:
        return [n for n in self.nodes if isinstance(n, cst.FunctionDef) and is_overload(n)]

    @property
    def implementations(self) -> list[cst.FunctionDef]:
        return [n for n in self.nodes if isinstance(n, cst.FunctionDef) and not is_overload(n)]

    @property
    def implementation(self) -> cst.BaseStatement:
        """The statement carrying the body (the last non-overload definition)."""
        implementations = self.implementations
        if implementations:
            return implementations[-1]
        return self.nodes[-1]


@dataclass
class ImportedName:
    """A name bound by an import statement."""

    local_name: str
    imported_name: str
    module: str  # dotted module, with leading dots for relative imports
    import_node: cst.Import | cst.ImportFrom
    alias: cst.ImportAlias


@dataclass
class DeclarationIndex:
    """Per-kind declaration maps of a module."""

    functions: dict[str, Declaration] = field(default_factory=dict)
    classes: dict[str, Declaration] = field(default_factory=dict)
    interfaces: dict[str, Declaration] = field(default_factory=dict)
    type_aliases: dict[str, Declaration] = field(default_factory=dict)
    variables: dict[str, Declaration] = field(default_factory=dict)
    imports: dict[str, ImportedName] = field(default_factory=dict)

    def by_kind(self, kind: SymbolKind) -> dict[str, Declaration]:
        if kind in (SymbolKind.CLASS, SymbolKind.ENUM):
            return self.classes
        return {
            SymbolKind.FUNCTION: self.functions,
            SymbolKind.INTERFACE: self.interfaces,
            SymbolKind.TYPE_ALIAS: self.type_aliases,
            SymbolKind.VARIABLE: self.variables,
        }[kind]

    def declarations(self) -> list[Declaration]:
        return [*self.variables.values(), *self.interfaces.values(), *self.type_aliases.values(), *self.classes.values(), *self.functions.values()]


@dataclass
class MemberIndex:
    """Members of a class body."""

    properties: dict[str, Declaration] = field(default_factory=dict)
    constructor: Declaration | None = None
    methods: dict[str, Declaration] = field(default_factory=dict)
    docstring: int | None = None


def dotted_name(node: cst.CSTNode | None) -> str:
    if node is None:
        return ""
    return get_full_name_for_node(node) or ""


def _terminal_name(expression: cst.BaseExpression) -> str:
    if isinstance(expression, cst.Subscript):
        expression = expression.value
    if isinstance(expression, cst.Call):
        expression = expression.func
    return dotted_name(expression).rpartition(".")[2]


def is_overload(node: cst.FunctionDef) -> bool:
    for decorator in node.decorators:
        if dotted_name(decorator.decorator) in OVERLOAD_DECORATORS:
            return True
    return False


def is_docstring(node: cst.BaseStatement) -> bool:
    if not isinstance(node, cst.SimpleStatementLine) or len(node.body) != 1:
        return False
    small = node.body[0]
    return isinstance(small, cst.Expr) and isinstance(small.value, (cst.SimpleString, cst.ConcatenatedString))


def is_import(node: cst.BaseStatement) -> bool:
    if not isinstance(node, cst.SimpleStatementLine):
        return False
    return all(isinstance(small, (cst.Import, cst.ImportFrom)) for small in node.body)


def is_private(name: str) -> bool:
    """Underscore-prefixed names are private; dunders are public."""
    if name.startswith("__") and name.endswith("__"):
        return False
    return name.startswith("_")


def _assignment_name(node: cst.BaseStatement) -> str | None:
    if not isinstance(node, cst.SimpleStatementLine) or len(node.body) != 1:
        return None
    small = node.body[0]
    if isinstance(small, cst.AnnAssign) and isinstance(small.target, cst.Name):
        return small.target.value
    if isinstance(small, cst.Assign) and isinstance(small.targets[0].target, cst.Name):
        return small.targets[0].target.value
    if isinstance(small, cst.TypeAlias):
        return small.name.value
    return None


def _is_type_alias(node: cst.SimpleStatementLine) -> bool:
    small = node.body[0]
    if isinstance(small, cst.TypeAlias):
        return True
    return isinstance(small, cst.AnnAssign) and dotted_name(small.annotation.annotation) in TYPE_ALIAS_ANNOTATIONS


def declared_name(node: cst.BaseStatement) -> str | None:
    """Name declared by a top-level statement or class member, if any."""
    if isinstance(node, (cst.FunctionDef, cst.ClassDef)):
        return node.name.value
    return _assignment_name(node)


def classify_class(node: cst.ClassDef, config: MergeConfig) -> SymbolKind:
    base_names = {_terminal_name(arg.value) for arg in node.bases}
    if base_names & set(config.interface_bases):
        return SymbolKind.INTERFACE
    if base_names & set(config.enum_bases):
        return SymbolKind.ENUM
    return SymbolKind.CLASS


def classify_statement(node: cst.BaseStatement, config: MergeConfig) -> SymbolKind | None:
    """Classify a module-level statement, None for non-declarations."""
    if isinstance(node, cst.FunctionDef):
        return SymbolKind.FUNCTION
    if isinstance(node, cst.ClassDef):
        return classify_class(node, config)
    if _assignment_name(node) is None:
        return None
    if _is_type_alias(node):
        return SymbolKind.TYPE_ALIAS
    return SymbolKind.VARIABLE


def classify_member(node: cst.BaseStatement) -> SymbolKind | None:
    """Classify a class-body statement, None for docstrings and other statements."""
    if isinstance(node, cst.FunctionDef):
        if node.name.value == CONSTRUCTOR_NAME:
            return SymbolKind.CONSTRUCTOR
        return SymbolKind.METHOD
    if _assignment_name(node) is not None:
        return SymbolKind.PROPERTY
    return None


def property_annotation(node: cst.BaseStatement) -> cst.BaseExpression | None:
    if isinstance(node, cst.SimpleStatementLine) and isinstance(node.body[0], cst.AnnAssign):
        return node.body[0].annotation.annotation
    return None


def _index_imports(statement: cst.SimpleStatementLine, imports: dict[str, ImportedName]) -> None:
    for small in statement.body:
        if isinstance(small, cst.ImportFrom) and not isinstance(small.names, cst.ImportStar):
            module = "." * len(small.relative) + dotted_name(small.module)
            for alias in small.names:
                imported = dotted_name(alias.name)
                local = dotted_name(alias.asname.name) if alias.asname else imported
                imports[local] = ImportedName(local, imported, module, small, alias)
        elif isinstance(small, cst.Import):
            for alias in small.names:
                imported = dotted_name(alias.name)
                local = dotted_name(alias.asname.name) if alias.asname else imported.partition(".")[0]
                imports[local] = ImportedName(local, imported, imported, small, alias)


def index_arena(arena: StatementArena, config: MergeConfig) -> DeclarationIndex:
    index = DeclarationIndex()
    for handle, node in arena:
        if is_import(node):
            _index_imports(node, index.imports)
            continue
        kind = classify_statement(node, config)
        name = declared_name(node)
        if kind is None or not name:
            continue
        declarations = index.by_kind(kind)
        declaration = declarations.get(name)
        if declaration is None:
            declaration = declarations[name] = Declaration(kind, name)
        elif kind in (SymbolKind.CLASS, SymbolKind.ENUM, SymbolKind.INTERFACE):
            # Later rebinding wins, matching runtime semantics
            declaration = declarations[name] = Declaration(kind, name)
        declaration.add(handle, node)
    return index


def index_declarations(draft: ModuleDraft, config: MergeConfig) -> DeclarationIndex:
    """Build the per-kind declaration maps of a module draft."""
    return index_arena(draft.arena, config)


def index_members(draft: ClassDraft) -> MemberIndex:
    """Build the member maps of a class draft."""
    members = MemberIndex()
    for position, (handle, node) in enumerate(draft.arena):
        if position == 0 and is_docstring(node):
            members.docstring = handle
            continue
        kind = classify_member(node)
        if kind is SymbolKind.CONSTRUCTOR:
            if members.constructor is None:
                members.constructor = Declaration(kind, CONSTRUCTOR_NAME)
            members.constructor.add(handle, node)
        elif kind is SymbolKind.METHOD:
            name = node.name.value
            members.methods.setdefault(name, Declaration(kind, name)).add(handle, node)
        elif kind is SymbolKind.PROPERTY:
            name = _assignment_name(node)
            members.properties[name] = Declaration(kind, name, [handle], [node])
    return members


def dunder_all(arena: StatementArena) -> set[str] | None:
    """Names listed in a literal ``__all__``, or None when the module has none."""
    names = None
    for _, node in arena:
        if _assignment_name(node) != "__all__":
            continue
        value = node.body[0].value
        if isinstance(value, (cst.List, cst.Tuple)):
            names = {e.value.evaluated_value for e in value.elements if isinstance(e.value, cst.SimpleString)}
    return names


def is_exported(name: str | None, exported: set[str] | None) -> bool:
    if not name:
        return False
    if exported is not None and not (name.startswith("__") and name.endswith("__")):
        return name in exported
    return not is_private(name)
