"""
Function and method merging.

A function group (overload signatures, property accessors and the
implementation sharing one name) is always added, replaced or hidden as a
whole.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import libcst as cst

from ..config import MergeConfig
from .arena import StatementArena
from .base import MergeLog, MergeOutcome, SymbolKind
from .detector import Intent, classify_function, rewrite_call_through
from .indexer import Declaration, is_overload
from .trivia import fallback_comments, fallback_docstring

logger = logging.getLogger(__name__)

ACCESSOR_ATTRIBUTES = {"setter", "getter", "deleter"}


class FunctionMergeResolver:
    """Merges overlay function groups into a module or class body.

    Args:
        arena: Statements of the baseline container, edited in place
        overlay_module: Module the overlay nodes come from
        config: Merge configuration
        log: Receives one record per decision
        container: Enclosing class name when merging methods
    """

    def __init__(
        self,
        arena: StatementArena,
        overlay_module: cst.Module,
        config: MergeConfig,
        log: MergeLog,
        container: str | None = None,
    ):
        self.arena = arena
        self.overlay_module = overlay_module
        self.config = config
        self.log = log
        self.container = container
        self.kind = SymbolKind.METHOD if container else SymbolKind.FUNCTION

    def merge_all(
        self,
        overlay_functions: Mapping[str, Declaration],
        baseline_functions: Mapping[str, Declaration],
        intent: Intent | None = None,
    ) -> None:
        for name, overlay in overlay_functions.items():
            self.merge_function(baseline_functions.get(name), overlay, intent)

    def merge_function(
        self,
        baseline: Declaration | None,
        overlay: Declaration,
        intent: Intent | None = None,
    ) -> MergeOutcome:
        """Merge one overlay group against its optional baseline counterpart.

        Args:
            baseline: Baseline group of the same name, if any
            overlay: Overlay group
            intent: Forced intent (class-level augmentation); detected from the
                overlay body when None

        Returns:
            The outcome recorded for the symbol
        """
        if baseline is None:
            for node in overlay.nodes:
                self.arena.append(node)
            outcome = MergeOutcome.ADD
        else:
            if intent is None:
                intent = classify_function(overlay, self.overlay_module, self.config.hidden_prefix)
            nodes = self._with_fallbacks(overlay, baseline)
            if intent is Intent.AUGMENT:
                self._augment(baseline, overlay, nodes)
                outcome = MergeOutcome.AUGMENT
            else:
                self._replace(baseline, nodes)
                outcome = MergeOutcome.REPLACE

        logger.debug("%s %s: %s", self.kind.value, self._qualified(overlay.name), outcome.value)
        self.log.record(self.kind, overlay.name, outcome, self.container)
        return outcome

    def _qualified(self, name: str) -> str:
        return f"{self.container}.{name}" if self.container else name

    def _with_fallbacks(self, overlay: Declaration, baseline: Declaration) -> list[cst.BaseStatement]:
        nodes = list(overlay.nodes)
        nodes[0] = fallback_comments(nodes[0], baseline.first)
        implementation = overlay.implementation
        for position, node in enumerate(overlay.nodes):
            if node is implementation:
                nodes[position] = fallback_docstring(nodes[position], baseline.implementation)
        return nodes

    def _replace(self, baseline: Declaration, nodes: list[cst.BaseStatement]) -> None:
        anchor = baseline.handles[0]
        for node in nodes:
            self.arena.insert_before(anchor, node)
        for handle in baseline.handles:
            self.arena.remove(handle)

    def _augment(self, baseline: Declaration, overlay: Declaration, nodes: list[cst.BaseStatement]) -> None:
        hidden = self.config.hidden_prefix + baseline.name
        for handle, node in zip(baseline.handles, baseline.nodes):
            self.arena.replace(handle, self._hide(node, baseline.name, hidden))

        for node in nodes:
            if self.container and isinstance(node, cst.FunctionDef) and not is_overload(node):
                node = self._rewrite_call_through(node, overlay.name)
            self.arena.append(node)

    def _hide(self, node: cst.BaseStatement, name: str, hidden: str) -> cst.BaseStatement:
        """Rename a group member to the hidden name, including accessor decorators."""
        if not isinstance(node, cst.FunctionDef):
            return node
        decorators = []
        for decorator in node.decorators:
            expression = decorator.decorator
            if (
                isinstance(expression, cst.Attribute)
                and isinstance(expression.value, cst.Name)
                and expression.value.value == name
                and expression.attr.value in ACCESSOR_ATTRIBUTES
            ):
                decorator = decorator.with_changes(decorator=expression.with_changes(value=cst.Name(hidden)))
            decorators.append(decorator)
        return node.with_changes(name=cst.Name(hidden), decorators=decorators)

    def _rewrite_call_through(self, node: cst.FunctionDef, name: str) -> cst.FunctionDef:
        body_code = self.overlay_module.code_for_node(node.body)
        rewritten = rewrite_call_through(body_code, name, self.config.augment_marker, self.config.hidden_prefix)
        if rewritten == body_code:
            return node
        parsed = cst.parse_statement(f"def _():{rewritten}", config=self.overlay_module.config_for_parsing)
        return node.with_changes(body=parsed.body)
