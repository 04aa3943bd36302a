"""
Import repair for merged modules.

Overlay code copied into a baseline module may reference names the
baseline never imported. Those dangling references are resolved against
the overlay's own imports first (rewritten as relative imports when they
point into the merged tree), then against the sibling modules of the output
tree, and the missing import is inserted.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import libcst as cst
from libcst.metadata import MetadataWrapper, ScopeProvider

from .arena import ModuleDraft
from .indexer import ImportedName, dotted_name, is_docstring, is_import
from .trivia import with_blank_lines

logger = logging.getLogger(__name__)


@dataclass
class SymbolIndex:
    """Top-level names defined by each module of a source tree.

    Keys are module paths relative to the tree root, e.g. ``api/models.py``.
    """

    modules: dict[PurePosixPath, set[str]] = field(default_factory=dict)

    def add_source(self, relative_path: PurePosixPath, code: str) -> None:
        try:
            tree = ast.parse(code)
        except SyntaxError as e:
            logger.warning("Skipping %s in symbol index: %s", relative_path, e)
            return
        names = self.modules.setdefault(relative_path, set())
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                names.add(node.name)
            elif isinstance(node, ast.Assign):
                names.update(t.id for t in node.targets if isinstance(t, ast.Name))
            elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
                names.add(node.target.id)
            elif isinstance(node, ast.TypeAlias):
                names.add(node.name.id)

    @classmethod
    def from_directories(cls, roots: Iterable[Path], extensions: Iterable[str]) -> SymbolIndex:
        index = cls()
        suffixes = set(extensions)
        for root in roots:
            for path in sorted(root.rglob("*")):
                if not path.is_file() or path.suffix not in suffixes or "__pycache__" in path.parts:
                    continue
                index.add_source(PurePosixPath(path.relative_to(root).as_posix()), path.read_text(encoding="utf-8"))
        return index

    def locate(self, name: str, exclude: PurePosixPath | None = None) -> PurePosixPath | None:
        """First module (in path order) defining ``name``, other than ``exclude``."""
        for path in sorted(self.modules):
            if path == exclude or path.with_suffix("") == (exclude.with_suffix("") if exclude else None):
                continue
            if name in self.modules[path]:
                return path
        return None

    def locate_in(self, module: str, name: str, exclude: PurePosixPath | None = None) -> PurePosixPath | None:
        """Module of the tree that the absolute import path ``module`` refers to.

        ``generated.api.models`` matches ``api/models.py`` when that module
        defines ``name``; the package prefix of the import is ignored.
        """
        if module.startswith("."):
            return None
        for path in sorted(self.modules):
            if path == exclude or path.with_suffix("") == (exclude.with_suffix("") if exclude else None):
                continue
            dotted = _dotted_module(path)
            if dotted and (module == dotted or module.endswith("." + dotted)) and name in self.modules[path]:
                return path
        return None


def _dotted_module(path: PurePosixPath) -> str:
    parts = list(path.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def relative_module(current: PurePosixPath, target: PurePosixPath) -> str:
    """Relative import path of ``target`` as seen from the module ``current``.

    >>> relative_module(PurePosixPath("api/operations.py"), PurePosixPath("api/models.py"))
    '.models'
    """
    package = list(current.parent.parts)
    target_parts = list(target.with_suffix("").parts)
    if target_parts and target_parts[-1] == "__init__":
        target_parts.pop()
    common = 0
    while common < min(len(package), len(target_parts)) and package[common] == target_parts[common]:
        common += 1
    return "." * (len(package) - common + 1) + ".".join(target_parts[common:])


def unresolved_names(module: cst.Module) -> set[str]:
    """Names read somewhere in ``module`` that no scope (nor builtins) defines."""
    scopes = MetadataWrapper(module).resolve(ScopeProvider)
    names = set()
    for scope in set(scopes.values()):
        if scope is None:
            continue
        for access in scope.accesses:
            if not access.referents and isinstance(access.node, cst.Name):
                names.add(access.node.value)
    return {n for n in names if not (n.startswith("__") and n.endswith("__"))}


def _import_from(module: str, alias: cst.ImportAlias) -> cst.ImportFrom:
    stripped = module.lstrip(".")
    dots = len(module) - len(stripped)
    return cst.ImportFrom(
        module=cst.parse_expression(stripped) if stripped else None,
        names=[alias.with_changes(comma=cst.MaybeSentinel.DEFAULT)],
        relative=[cst.Dot()] * dots,
    )


def _module_key(node: cst.ImportFrom) -> str:
    return "." * len(node.relative) + dotted_name(node.module)


def _add_to_existing(draft: ModuleDraft, new: cst.ImportFrom) -> bool:
    """Extend an existing ``from <module> import ...`` with the new alias."""
    key = _module_key(new)
    for handle, node in draft.arena:
        if not is_import(node) or len(node.body) != 1:
            continue
        small = node.body[0]
        if not isinstance(small, cst.ImportFrom) or isinstance(small.names, cst.ImportStar) or _module_key(small) != key:
            continue
        names = list(small.names)
        if names:
            last = names[-1]
            if last.comma is cst.MaybeSentinel.DEFAULT:
                names[-1] = last.with_changes(comma=cst.Comma(whitespace_after=cst.SimpleWhitespace(" ")))
        names.append(new.names[0].with_changes(comma=cst.MaybeSentinel.DEFAULT))
        draft.arena.replace(handle, node.with_changes(body=[small.with_changes(names=names)]))
        return True
    return False


def _insert_statement(draft: ModuleDraft, small: cst.BaseSmallStatement) -> None:
    statement = cst.SimpleStatementLine(body=[small])
    handles = draft.arena.handles()
    imports = [h for h in handles if is_import(draft.arena.get(h))]
    if imports:
        draft.arena.insert_after(imports[-1], statement)
        return
    position = 1 if handles and is_docstring(draft.arena.get(handles[0])) else 0
    _respace(draft, position)
    if position == 1:
        statement = with_blank_lines(statement, 1)
    draft.arena.insert_at(position, statement)


def _respace(draft: ModuleDraft, position: int) -> None:
    """Separate the statement at ``position`` from an import about to be inserted before it."""
    handles = draft.arena.handles()
    if position >= len(handles):
        return
    following = draft.arena.get(handles[position])
    blank = 2 if isinstance(following, cst.BaseCompoundStatement) else 1
    draft.arena.replace(handles[position], with_blank_lines(following, blank))


def repair_imports(
    draft: ModuleDraft,
    overlay_imports: Mapping[str, ImportedName],
    symbol_index: SymbolIndex | None = None,
    module_path: PurePosixPath | None = None,
) -> list[str]:
    """Insert imports for names the merged module reads but never binds.

    Returns:
        Source of every import added (or extended)
    """
    added = []
    for name in sorted(unresolved_names(draft.to_module())):
        small: cst.BaseSmallStatement | None = None
        indexed = symbol_index is not None and module_path is not None
        imported = overlay_imports.get(name)
        if imported is not None:
            target = None
            if indexed and isinstance(imported.import_node, cst.ImportFrom):
                target = symbol_index.locate_in(imported.module, imported.imported_name, exclude=module_path)
            if target is not None:
                small = _import_from(relative_module(module_path, target), imported.alias)
            elif isinstance(imported.import_node, cst.ImportFrom):
                small = _import_from(imported.module, imported.alias)
            else:
                small = cst.Import(names=[imported.alias.with_changes(comma=cst.MaybeSentinel.DEFAULT)])
        elif indexed:
            target = symbol_index.locate(name, exclude=module_path)
            if target is not None:
                small = _import_from(relative_module(module_path, target), cst.ImportAlias(name=cst.Name(name)))

        if small is None:
            logger.warning("Unresolved reference %r left in merged module %s", name, module_path or "<memory>")
            continue
        if not (isinstance(small, cst.ImportFrom) and _add_to_existing(draft, small)):
            _insert_statement(draft, small)
        code = cst.Module(body=[]).code_for_node(small)
        logger.debug("Added import: %s", code)
        added.append(code)
    return added


def _future_features(node: cst.BaseStatement) -> set[str]:
    if not is_import(node):
        return set()
    features = set()
    for small in node.body:
        if isinstance(small, cst.ImportFrom) and dotted_name(small.module) == "__future__" and not isinstance(small.names, cst.ImportStar):
            features.update(dotted_name(alias.name) for alias in small.names)
    return features


def carry_future_imports(draft: ModuleDraft, overlay_module: cst.Module) -> list[str]:
    """Copy overlay ``from __future__`` imports the merged module lacks.

    Returns:
        Source of every import statement added
    """
    present = set()
    for _, node in draft.arena:
        present |= _future_features(node)

    added = []
    for node in overlay_module.body:
        missing = sorted(_future_features(node) - present)
        if not missing:
            continue
        statement = cst.parse_statement(f"from __future__ import {', '.join(missing)}\n")
        handles = draft.arena.handles()
        position = 1 if handles and is_docstring(draft.arena.get(handles[0])) else 0
        if position < len(handles) and not _future_features(draft.arena.get(handles[position])):
            _respace(draft, position)
        if position == 1:
            statement = with_blank_lines(statement, 1)
        draft.arena.insert_at(position, statement)
        present.update(missing)
        added.append(draft.code_for(statement.body[0]))
    return added
