"""
Interface merging (``Protocol`` and ``TypedDict`` classes).

Interfaces are merged at property granularity. An overlay property whose
first leading comment is ``# @overlay-remove`` deletes the baseline property
of the same name and is never copied itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import libcst as cst

from ..config import MergeConfig
from .arena import ClassDraft, ModuleDraft
from .base import MergeLog, MergeOutcome
from .detector import Intent
from .functions import FunctionMergeResolver
from .indexer import Declaration, index_members
from .properties import PropertyMerger
from .trivia import docstring_statement, leading_comments, with_docstring, with_leading_comments

logger = logging.getLogger(__name__)


class InterfaceMergeResolver:
    """Merges overlay interfaces into a module draft."""

    def __init__(self, draft: ModuleDraft, overlay_module: cst.Module, config: MergeConfig, log: MergeLog):
        self.draft = draft
        self.overlay_module = overlay_module
        self.config = config
        self.log = log

    def merge_all(self, overlay_interfaces: Mapping[str, Declaration], baseline_interfaces: Mapping[str, Declaration]) -> None:
        for name, overlay in overlay_interfaces.items():
            self.merge_interface(baseline_interfaces.get(name), overlay)

    def merge_interface(self, baseline: Declaration | None, overlay: Declaration) -> MergeOutcome | None:
        if baseline is None:
            self.draft.arena.append(overlay.first)
            logger.debug("interface %s: add", overlay.name)
            self.log.record(overlay.kind, overlay.name, MergeOutcome.ADD)
            return MergeOutcome.ADD

        class_draft = ClassDraft(baseline.first)
        baseline_members = index_members(class_draft)
        overlay_members = index_members(ClassDraft(overlay.first))

        PropertyMerger(class_draft, self.config, self.log).merge(baseline_members, overlay_members.properties)
        # Interface methods are replaced, never augmented
        methods = FunctionMergeResolver(class_draft.arena, self.overlay_module, self.config, self.log, container=overlay.name)
        methods.merge_all(overlay_members.methods, baseline_members.methods, Intent.REPLACE)

        merged = class_draft.to_node()
        docstring = docstring_statement(overlay.first)
        if docstring is not None:
            merged = with_docstring(merged, docstring)
        if leading_comments(overlay.first):
            merged = with_leading_comments(merged, leading_comments(overlay.first))
        self.draft.arena.replace(baseline.handles[0], merged)
        return None
