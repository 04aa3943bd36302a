"""
Whole-statement merging of type aliases and module variables, plus
``__all__`` maintenance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import libcst as cst

from .arena import ModuleDraft
from .base import MergeLog, MergeOutcome
from .indexer import Declaration, declared_name, is_private
from .trivia import fallback_comments

logger = logging.getLogger(__name__)

DUNDER_ALL = "__all__"


class StatementMergeResolver:
    """Replace-or-Add merging of single-statement declarations.

    A same-named baseline statement is replaced in place; otherwise the
    overlay statement is appended.
    """

    def __init__(self, draft: ModuleDraft, log: MergeLog, skip: Iterable[str] = ()):
        self.draft = draft
        self.log = log
        self.skip = set(skip)

    def merge_all(self, overlay: Mapping[str, Declaration], baseline: Mapping[str, Declaration]) -> None:
        for name, declaration in overlay.items():
            if name in self.skip:
                continue
            self.merge_statement(baseline.get(name), declaration)

    def merge_statement(self, baseline: Declaration | None, overlay: Declaration) -> MergeOutcome:
        node = overlay.nodes[-1]
        if baseline is None:
            self.draft.arena.append(node)
            outcome = MergeOutcome.ADD
        else:
            self.draft.arena.replace(baseline.handles[-1], fallback_comments(node, baseline.nodes[-1]))
            for handle in baseline.handles[:-1]:
                self.draft.arena.remove(handle)
            outcome = MergeOutcome.REPLACE
        logger.debug("%s %s: %s", overlay.kind.value, overlay.name, outcome.value)
        self.log.record(overlay.kind, overlay.name, outcome)
        return outcome


class TypeAliasMergeResolver(StatementMergeResolver):
    """Type aliases are replaced or added as whole symbols."""


class VariableMergeResolver(StatementMergeResolver):
    """Module variables are replaced or added by target name; ``__all__`` is maintained separately."""

    def __init__(self, draft: ModuleDraft, log: MergeLog):
        super().__init__(draft, log, skip=[DUNDER_ALL])


def update_dunder_all(draft: ModuleDraft, names: Iterable[str]) -> list[str]:
    """Append public names to a literal baseline ``__all__``.

    Returns:
        The names actually appended
    """
    for handle, node in draft.arena:
        if declared_name(node) != DUNDER_ALL:
            continue
        small = node.body[0]
        if not isinstance(small.value, (cst.List, cst.Tuple)):
            return []
        elements = list(small.value.elements)
        listed = {e.value.evaluated_value for e in elements if isinstance(e.value, cst.SimpleString)}
        appended = []
        for name in names:
            if name in listed or is_private(name):
                continue
            elements.append(_element_after(small.value, elements, name))
            listed.add(name)
            appended.append(name)
        if appended:
            value = small.value.with_changes(elements=elements)
            draft.arena.replace(handle, node.with_changes(body=[small.with_changes(value=value)]))
        return appended
    return []


def _element_after(sequence: cst.List | cst.Tuple, elements: list[cst.BaseElement], name: str) -> cst.Element:
    """New ``__all__`` element following the layout of the existing ones.

    A trailing comma (and the line break it carries) moves to the new last element.
    """
    value = cst.SimpleString(f'"{name}"')
    if not elements or not isinstance(elements[-1].comma, cst.Comma):
        return cst.Element(value=value)
    last = elements[-1]
    if len(elements) > 1 and isinstance(elements[-2].comma, cst.Comma):
        separator = elements[-2].comma
    else:
        separator = cst.Comma(whitespace_after=_opening_whitespace(sequence))
    elements[-1] = last.with_changes(comma=separator)
    return cst.Element(value=value, comma=last.comma)


def _opening_whitespace(sequence: cst.List | cst.Tuple) -> cst.BaseParenthesizableWhitespace:
    """Whitespace after the opening bracket when it breaks the line, otherwise a space."""
    if isinstance(sequence, cst.List):
        whitespace = sequence.lbracket.whitespace_after
    elif sequence.lpar:
        whitespace = sequence.lpar[0].whitespace_after
    else:
        whitespace = cst.SimpleWhitespace(" ")
    if isinstance(whitespace, cst.ParenthesizedWhitespace):
        return whitespace
    return cst.SimpleWhitespace(" ")
