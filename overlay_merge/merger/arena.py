"""
Editable drafts of libcst trees.

libcst nodes are immutable, so resolvers work on drafts: an ordered arena of
statements addressed by stable integer handles. Removing, inserting or
replacing a statement never invalidates the handles of other statements.
The draft is turned back into a libcst node once merging is finished.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import libcst as cst


class StatementArena:
    """Ordered statements addressed by stable handles."""

    def __init__(self, statements: Iterable[cst.BaseStatement] = ()):
        self._nodes: dict[int, cst.BaseStatement] = {}
        self._order: list[int] = []
        self._next_handle = 0
        for statement in statements:
            self.append(statement)

    def _new_handle(self, node: cst.BaseStatement) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._nodes[handle] = node
        return handle

    def append(self, node: cst.BaseStatement) -> int:
        handle = self._new_handle(node)
        self._order.append(handle)
        return handle

    def insert_at(self, index: int, node: cst.BaseStatement) -> int:
        handle = self._new_handle(node)
        self._order.insert(index, handle)
        return handle

    def insert_after(self, anchor: int, node: cst.BaseStatement) -> int:
        return self.insert_at(self._order.index(anchor) + 1, node)

    def insert_before(self, anchor: int, node: cst.BaseStatement) -> int:
        return self.insert_at(self._order.index(anchor), node)

    def remove(self, handle: int) -> cst.BaseStatement:
        self._order.remove(handle)
        return self._nodes.pop(handle)

    def replace(self, handle: int, node: cst.BaseStatement) -> None:
        if handle not in self._nodes:
            raise KeyError(handle)
        self._nodes[handle] = node

    def get(self, handle: int) -> cst.BaseStatement:
        return self._nodes[handle]

    def index_of(self, handle: int) -> int:
        return self._order.index(handle)

    def handles(self) -> list[int]:
        return list(self._order)

    def nodes(self) -> list[cst.BaseStatement]:
        return [self._nodes[h] for h in self._order]

    def reset(self, statements: Iterable[cst.BaseStatement]) -> None:
        """Drop every statement and refill the arena. Old handles become invalid."""
        self._nodes.clear()
        self._order.clear()
        for statement in statements:
            self.append(statement)

    def __iter__(self) -> Iterator[tuple[int, cst.BaseStatement]]:
        for handle in list(self._order):
            yield handle, self._nodes[handle]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, handle: object) -> bool:
        return handle in self._nodes


class ModuleDraft:
    """Editable view of a module body."""

    def __init__(self, module: cst.Module):
        self.module = module
        self.arena = StatementArena(module.body)

    def to_module(self) -> cst.Module:
        return self.module.with_changes(body=self.arena.nodes())

    def code_for(self, node: cst.CSTNode) -> str:
        return self.module.code_for_node(node)


def _is_placeholder(node: cst.BaseStatement) -> bool:
    """A lone ``pass`` or ``...`` keeping an otherwise empty class body valid."""
    if not isinstance(node, cst.SimpleStatementLine) or len(node.body) != 1:
        return False
    small = node.body[0]
    if isinstance(small, cst.Pass):
        return True
    return isinstance(small, cst.Expr) and isinstance(small.value, cst.Ellipsis)


class ClassDraft:
    """Editable view of a class body."""

    def __init__(self, node: cst.ClassDef):
        self.node = node
        body = node.body
        if isinstance(body, cst.SimpleStatementSuite):
            statements = [cst.SimpleStatementLine(body=body.body)]
        else:
            statements = list(body.body)
        self.arena = StatementArena(statements)

    @property
    def name(self) -> str:
        return self.node.name.value

    def to_node(self) -> cst.ClassDef:
        nodes = self.arena.nodes()
        if any(not _is_placeholder(n) for n in nodes):
            nodes = [n for n in nodes if not _is_placeholder(n)]
        if not nodes:
            nodes = [cst.SimpleStatementLine(body=[cst.Pass()])]
        body = self.node.body
        if isinstance(body, cst.IndentedBlock):
            return self.node.with_changes(body=body.with_changes(body=nodes))
        return self.node.with_changes(body=cst.IndentedBlock(body=nodes))
