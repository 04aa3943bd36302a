"""
Python overlay merger.

Uses libcst to parse overlay and baseline modules so that comments and
formatting of untouched code survive the merge. Declarations are merged
kind by kind, then the module is reassembled and its imports repaired.
"""

from __future__ import annotations

import ast
import logging
from pathlib import PurePosixPath

import libcst as cst

from ..config import MergeConfig
from .aliases import TypeAliasMergeResolver, VariableMergeResolver, update_dunder_all
from .arena import ModuleDraft, StatementArena
from .base import CodeMergeError, MergeLog, MergeOutcome, MergeResult, OverlayMerger
from .classes import ClassMergeResolver
from .functions import FunctionMergeResolver
from .imports import SymbolIndex, carry_future_imports, repair_imports
from .indexer import DeclarationIndex, index_arena, index_declarations
from .interfaces import InterfaceMergeResolver
from .reassembly import reassemble

logger = logging.getLogger(__name__)


class PythonOverlayMerger(OverlayMerger):
    """Merger for Python source files using libcst."""

    def __init__(self, config: MergeConfig | None = None):
        self.config = config or MergeConfig()

    def parse(self, code: str) -> cst.Module:
        """Parse Python source code into a concrete syntax tree.

        Args:
            code: Python source code string

        Returns:
            cst.Module representing the parsed code

        Raises:
            CodeMergeError: If the code cannot be parsed
        """
        try:
            return cst.parse_module(code)
        except cst.ParserSyntaxError as e:
            raise CodeMergeError(f"Failed to parse Python code: {e}") from e

    def validate(self, code: str) -> None:
        try:
            ast.parse(code)
        except SyntaxError as e:
            raise CodeMergeError(f"Merged Python code is not valid: {e}") from e

    def merge(
        self,
        overlay_code: str,
        baseline_code: str,
        module_path: PurePosixPath | None = None,
        symbol_index: SymbolIndex | None = None,
    ) -> MergeResult:
        """Merge an overlay module into its baseline counterpart.

        Args:
            overlay_code: Hand-written overlay source
            baseline_code: Generated baseline source, empty when the overlay has no counterpart
            module_path: Path of the module relative to the tree root, used to compute
                relative imports
            symbol_index: Top-level names of the sibling modules, used by import repair

        Returns:
            Merged code and the merge decisions

        Raises:
            CodeMergeError: If either input cannot be parsed or the result is invalid
        """
        overlay_module = self.parse(overlay_code)
        draft = ModuleDraft(self.parse(baseline_code))
        baseline = index_declarations(draft, self.config)
        overlay = index_arena(StatementArena(overlay_module.body), self.config)
        log = MergeLog()

        FunctionMergeResolver(draft.arena, overlay_module, self.config, log).merge_all(overlay.functions, baseline.functions)
        ClassMergeResolver(draft, overlay_module, overlay.imports, self.config, log).merge_all(overlay.classes, baseline.classes)
        InterfaceMergeResolver(draft, overlay_module, self.config, log).merge_all(overlay.interfaces, baseline.interfaces)
        TypeAliasMergeResolver(draft, log).merge_all(overlay.type_aliases, baseline.type_aliases)
        VariableMergeResolver(draft, log).merge_all(overlay.variables, baseline.variables)
        self._record_kept(baseline, overlay, log)

        exported = update_dunder_all(draft, log.names_with(MergeOutcome.ADD))
        if exported:
            logger.debug("Appended to __all__: %s", ", ".join(exported))

        added_imports = carry_future_imports(draft, overlay_module)
        reassemble(draft, self.config)
        if self.config.fix_imports:
            added_imports += repair_imports(draft, overlay.imports, symbol_index, module_path)

        code = draft.to_module().code
        self.validate(code)
        return MergeResult(code=code, records=log.records, added_imports=added_imports)

    def _record_kept(self, baseline: DeclarationIndex, overlay: DeclarationIndex, log: MergeLog) -> None:
        for declaration in baseline.declarations():
            if declaration.name not in overlay.by_kind(declaration.kind):
                log.record(declaration.kind, declaration.name, MergeOutcome.KEEP)


def merge_module_declarations(overlay_code: str, baseline_code: str, config: MergeConfig | None = None) -> str:
    """Merge an overlay module into a baseline module and return the merged source.

    Args:
        overlay_code: Hand-written overlay source
        baseline_code: Generated baseline source
        config: Merge configuration, defaults when None

    Returns:
        Merged source

    Raises:
        CodeMergeError: If either input cannot be parsed
    """
    return PythonOverlayMerger(config).merge(overlay_code, baseline_code).code
