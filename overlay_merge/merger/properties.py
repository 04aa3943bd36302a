"""
Property merging for class and interface bodies.

Runs two passes: annotation-driven deletions first, then the generic merge
in which the overlay wins on name collisions. Deleted names are excluded
from the generic pass so they can never be re-added.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..config import MergeConfig
from .arena import ClassDraft
from .base import MergeLog, MergeOutcome, SymbolKind
from .detector import Annotation, parse_annotation
from .indexer import Declaration, MemberIndex
from .trivia import comment_texts, fallback_comments

logger = logging.getLogger(__name__)


class PropertyMerger:
    """Merges overlay properties into a class draft."""

    def __init__(self, draft: ClassDraft, config: MergeConfig, log: MergeLog):
        self.draft = draft
        self.config = config
        self.log = log

    def merge(self, baseline: MemberIndex, overlay: Mapping[str, Declaration], skip: frozenset[str] = frozenset()) -> None:
        removed = self.delete_annotated(baseline.properties, overlay)
        last_property = next(reversed([p.handles[0] for p in baseline.properties.values() if p.name not in removed]), None)

        for name, declaration in overlay.items():
            if name in skip or name in removed:
                continue
            node = declaration.first
            existing = baseline.properties.get(name)
            if existing is not None:
                self.draft.arena.replace(existing.handles[0], fallback_comments(node, existing.first))
                outcome = MergeOutcome.REPLACE
            else:
                if last_property is not None:
                    last_property = self.draft.arena.insert_after(last_property, node)
                elif baseline.docstring is not None:
                    last_property = self.draft.arena.insert_after(baseline.docstring, node)
                else:
                    last_property = self.draft.arena.insert_at(0, node)
                outcome = MergeOutcome.ADD
            logger.debug("property %s.%s: %s", self.draft.name, name, outcome.value)
            self.log.record(SymbolKind.PROPERTY, name, outcome, self.draft.name)

    def delete_annotated(self, baseline: Mapping[str, Declaration], overlay: Mapping[str, Declaration]) -> set[str]:
        """Delete baseline properties the overlay marks for removal.

        Returns:
            Names carrying a removal annotation, whether or not the baseline had them
        """
        removed = set()
        for name, declaration in overlay.items():
            annotation = parse_annotation(comment_texts(declaration.first), self.config.annotation_prefix)
            if annotation is not Annotation.REMOVE:
                continue
            removed.add(name)
            existing = baseline.get(name)
            if existing is None:
                logger.debug("property %s.%s marked for removal but absent from baseline", self.draft.name, name)
                continue
            self.draft.arena.remove(existing.handles[0])
            self.log.record(SymbolKind.PROPERTY, name, MergeOutcome.DELETE, self.draft.name)
        return removed
