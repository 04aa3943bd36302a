"""
Canonical reordering of a merged module.

Declarations are regrouped by category (variables, interfaces, type
aliases, classes, functions, enums), exported before non-exported within a
category. Class bodies are regrouped as docstring, other statements,
properties, constructors and methods, public before non-public. Imports and
statements preceding the first declaration stay on top; other statements
keep their relative order after the declarations.
"""

from __future__ import annotations

import libcst as cst

from ..config import MergeConfig
from .arena import ClassDraft, ModuleDraft
from .base import SymbolKind
from .indexer import classify_member, classify_statement, declared_name, dunder_all, is_docstring, is_exported, is_import, is_private
from .trivia import with_blank_lines

CATEGORY_ORDER = (
    SymbolKind.VARIABLE,
    SymbolKind.INTERFACE,
    SymbolKind.TYPE_ALIAS,
    SymbolKind.CLASS,
    SymbolKind.FUNCTION,
    SymbolKind.ENUM,
)

TOP_LEVEL_BLANK_LINES = 2


def _is_compound(node: cst.BaseStatement) -> bool:
    return isinstance(node, cst.BaseCompoundStatement)


def reassemble(draft: ModuleDraft, config: MergeConfig) -> None:
    """Reorder (when enabled) and respace the declarations of a module draft."""
    head: list[cst.BaseStatement] = []
    tail: list[cst.BaseStatement] = []
    declarations: list[tuple[SymbolKind, cst.BaseStatement]] = []

    for _, node in draft.arena:
        kind = classify_statement(node, config)
        if kind is None:
            if not declarations or is_import(node):
                head.append(node)
            else:
                tail.append(node)
            continue
        declarations.append((kind, node))

    if config.reorder:
        exported = dunder_all(draft.arena)
        buckets: dict[SymbolKind, list[cst.BaseStatement]] = {kind: [] for kind in CATEGORY_ORDER}
        for kind, node in declarations:
            if isinstance(node, cst.ClassDef):
                node = sort_class_members(node)
            buckets[kind].append(node)
        declarations = []
        for kind in CATEGORY_ORDER:
            ordered = sorted(buckets[kind], key=lambda n: not is_exported(declared_name(n), exported))
            declarations.extend((kind, node) for node in ordered)

    spaced = _space_declarations(declarations, has_head=bool(head))
    if tail:
        tail[0] = with_blank_lines(tail[0], TOP_LEVEL_BLANK_LINES)
    draft.arena.reset([*head, *spaced, *tail])


def _space_declarations(declarations: list[tuple[SymbolKind, cst.BaseStatement]], has_head: bool) -> list[cst.BaseStatement]:
    spaced = []
    previous_kind = None
    previous_compound = has_head
    for position, (kind, node) in enumerate(declarations):
        compound = _is_compound(node)
        if position == 0 and not has_head:
            blank = 0
        elif compound or previous_compound:
            blank = TOP_LEVEL_BLANK_LINES
        elif kind is not previous_kind:
            blank = 1
        else:
            blank = 0
        spaced.append(with_blank_lines(node, blank))
        previous_kind = kind
        previous_compound = compound
    return spaced


def sort_class_members(node: cst.ClassDef) -> cst.ClassDef:
    """Regroup a class body; overload groups and accessors stay together."""
    draft = ClassDraft(node)
    docstring: list[cst.BaseStatement] = []
    others: list[cst.BaseStatement] = []
    properties: list[cst.BaseStatement] = []
    constructors: list[cst.BaseStatement] = []
    methods: dict[str, list[cst.BaseStatement]] = {}

    for position, (_, member) in enumerate(draft.arena):
        if position == 0 and is_docstring(member):
            docstring.append(member)
            continue
        kind = classify_member(member)
        if kind is SymbolKind.PROPERTY:
            properties.append(member)
        elif kind is SymbolKind.CONSTRUCTOR:
            constructors.append(member)
        elif kind is SymbolKind.METHOD:
            methods.setdefault(member.name.value, []).append(member)
        else:
            others.append(member)

    properties.sort(key=lambda p: is_private(declared_name(p)))
    groups = sorted(methods.items(), key=lambda item: is_private(item[0]))
    ordered = [*docstring, *others, *properties, *constructors]
    for _, group in groups:
        ordered.extend(group)

    draft.arena.reset(_space_members(ordered))
    return draft.to_node()


def _space_members(members: list[cst.BaseStatement]) -> list[cst.BaseStatement]:
    spaced = []
    previous = None
    for member in members:
        if previous is None:
            blank = 0
        elif _is_compound(member) or _is_compound(previous):
            blank = 1
        elif classify_member(member) is SymbolKind.PROPERTY and classify_member(previous) is SymbolKind.PROPERTY:
            blank = 0
        else:
            blank = 1
        spaced.append(with_blank_lines(member, blank))
        previous = member
    return spaced
