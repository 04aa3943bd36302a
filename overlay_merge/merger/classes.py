"""
Class merging.

Composes property, constructor and method merging. A class whose overlay
declares the augmentation marker (a private field typed as the generated
class) wraps the generated methods instead of replacing them:

    class Pet:
        __generated: _Pet

        def describe(self) -> str:
            return self.__generated.describe().upper()

The marker never reaches the output.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import libcst as cst

from ..config import MergeConfig
from .arena import ClassDraft, ModuleDraft
from .base import MergeLog, MergeOutcome, SymbolKind
from .detector import Intent, is_augmented_class
from .functions import FunctionMergeResolver
from .indexer import Declaration, ImportedName, MemberIndex, index_members, is_overload
from .properties import PropertyMerger
from .trivia import apply_comment_fallback, docstring_statement, fallback_comments, leading_comments, with_leading_comments

logger = logging.getLogger(__name__)


class ClassMergeResolver:
    """Merges overlay classes into a module draft."""

    def __init__(
        self,
        draft: ModuleDraft,
        overlay_module: cst.Module,
        overlay_imports: Mapping[str, ImportedName],
        config: MergeConfig,
        log: MergeLog,
    ):
        self.draft = draft
        self.overlay_module = overlay_module
        self.overlay_imports = overlay_imports
        self.config = config
        self.log = log

    def merge_all(self, overlay_classes: Mapping[str, Declaration], baseline_classes: Mapping[str, Declaration]) -> None:
        for name, overlay in overlay_classes.items():
            self.merge_class(baseline_classes.get(name), overlay)

    def merge_class(self, baseline: Declaration | None, overlay: Declaration) -> MergeOutcome | None:
        """Merge one overlay class.

        Returns:
            ADD when the class is new, otherwise None (member outcomes are recorded individually)
        """
        overlay_node = overlay.first
        if baseline is None:
            self.draft.arena.append(self.strip_marker(overlay_node))
            logger.debug("%s %s: add", overlay.kind.value, overlay.name)
            self.log.record(overlay.kind, overlay.name, MergeOutcome.ADD)
            return MergeOutcome.ADD

        class_draft = ClassDraft(baseline.first)
        overlay_draft = ClassDraft(overlay_node)
        baseline_members = index_members(class_draft)
        overlay_members = index_members(overlay_draft)
        augmented = is_augmented_class(overlay_node, overlay_members.properties, self.overlay_imports, self.config.augment_marker)
        if augmented:
            logger.debug("class %s augments its generated counterpart", overlay.name)

        PropertyMerger(class_draft, self.config, self.log).merge(baseline_members, overlay_members.properties, skip=frozenset({self.config.augment_marker}))
        self._merge_constructors(class_draft, baseline_members, overlay_members)
        methods = FunctionMergeResolver(class_draft.arena, self.overlay_module, self.config, self.log, container=overlay.name)
        methods.merge_all(overlay_members.methods, baseline_members.methods, Intent.AUGMENT if augmented else Intent.REPLACE)
        self._merge_nested_classes(class_draft, overlay_draft)
        self._merge_docstring(class_draft, baseline_members, overlay_node)

        merged = self.strip_marker(class_draft.to_node())
        if leading_comments(overlay_node):
            merged = with_leading_comments(merged, leading_comments(overlay_node))
        self.draft.arena.replace(baseline.handles[0], merged)
        return None

    def strip_marker(self, node: cst.ClassDef) -> cst.ClassDef:
        draft = ClassDraft(node)
        marker = index_members(draft).properties.get(self.config.augment_marker)
        if marker is None:
            return node
        draft.arena.remove(marker.handles[0])
        return draft.to_node()

    def _merge_constructors(self, draft: ClassDraft, baseline: MemberIndex, overlay: MemberIndex) -> None:
        """Positional merge: overlay implementation k replaces baseline implementation k.

        The ``__init__`` group moves as a whole. Once the overlay declares a
        constructor, every baseline ``__init__`` (overload signatures and
        implementations without a positional counterpart included) is
        superseded, so the overlay constructor is the one bound at runtime.
        """
        group = overlay.constructor
        if group is None:
            return
        existing = baseline.constructor
        targets = existing.implementations if existing is not None else []

        nodes = []
        position = 0
        for node in group.nodes:
            if isinstance(node, cst.FunctionDef) and not is_overload(node):
                target = targets[position] if position < len(targets) else None
                node = apply_comment_fallback(node, target)
                self.log.record(SymbolKind.CONSTRUCTOR, group.name, MergeOutcome.REPLACE if target is not None else MergeOutcome.ADD, draft.name)
                position += 1
            nodes.append(node)
        if position == 0:
            # Overload signatures only
            self.log.record(SymbolKind.CONSTRUCTOR, group.name, MergeOutcome.REPLACE if existing is not None else MergeOutcome.ADD, draft.name)

        if existing is None:
            anchor = self._insert_before_methods(draft, baseline, nodes[0])
            for node in nodes[1:]:
                anchor = draft.arena.insert_after(anchor, node)
            return
        nodes[0] = fallback_comments(nodes[0], existing.first)
        for node in nodes:
            draft.arena.insert_before(existing.handles[0], node)
        for handle in existing.handles:
            draft.arena.remove(handle)
        logger.debug("%s.__init__: %d baseline definition(s) superseded", draft.name, len(existing.handles))

    def _insert_before_methods(self, draft: ClassDraft, baseline: MemberIndex, node: cst.BaseStatement) -> int:
        method_handles = [m.handles[0] for m in baseline.methods.values() if m.handles[0] in draft.arena]
        if method_handles:
            first = min(method_handles, key=draft.arena.index_of)
            return draft.arena.insert_before(first, node)
        return draft.arena.append(node)

    def _merge_nested_classes(self, draft: ClassDraft, overlay_draft: ClassDraft) -> None:
        nested = {node.name.value: handle for handle, node in draft.arena if isinstance(node, cst.ClassDef)}
        for _, node in overlay_draft.arena:
            if not isinstance(node, cst.ClassDef):
                continue
            name = node.name.value
            if name in nested:
                draft.arena.replace(nested[name], apply_comment_fallback(node, draft.arena.get(nested[name])))
                outcome = MergeOutcome.REPLACE
            else:
                draft.arena.append(node)
                outcome = MergeOutcome.ADD
            self.log.record(SymbolKind.CLASS, name, outcome, draft.name)

    def _merge_docstring(self, draft: ClassDraft, baseline: MemberIndex, overlay_node: cst.ClassDef) -> None:
        docstring = docstring_statement(overlay_node)
        if docstring is None:
            return
        if baseline.docstring is not None:
            draft.arena.replace(baseline.docstring, docstring)
        else:
            draft.arena.insert_at(0, docstring.with_changes(leading_lines=[]))
