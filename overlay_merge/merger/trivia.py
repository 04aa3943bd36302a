"""
Leading comments, docstrings and blank-line spacing of statements.
"""

from __future__ import annotations

import libcst as cst

from .indexer import is_docstring


def leading_comments(node: cst.CSTNode) -> list[cst.EmptyLine]:
    return [line for line in getattr(node, "leading_lines", ()) if line.comment is not None]


def comment_texts(node: cst.CSTNode) -> list[str]:
    return [line.comment.value for line in leading_comments(node)]


def with_leading_comments(node: cst.BaseStatement, comments: list[cst.EmptyLine]) -> cst.BaseStatement:
    blank = [line for line in node.leading_lines if line.comment is None]
    return node.with_changes(leading_lines=[*blank, *comments])


def with_blank_lines(node: cst.BaseStatement, count: int) -> cst.BaseStatement:
    """Replace the blank lines before a statement, keeping its comments."""
    blank = [cst.EmptyLine(indent=False)] * count
    return node.with_changes(leading_lines=[*blank, *leading_comments(node)])


def docstring_statement(node: cst.CSTNode) -> cst.SimpleStatementLine | None:
    body = getattr(node, "body", None)
    if not isinstance(body, cst.IndentedBlock) or not body.body:
        return None
    first = body.body[0]
    return first if is_docstring(first) else None


def with_docstring(node: cst.FunctionDef | cst.ClassDef, docstring: cst.SimpleStatementLine) -> cst.BaseStatement:
    """Put ``docstring`` first in the body, replacing any existing one."""
    body = node.body
    if not isinstance(body, cst.IndentedBlock):
        return node
    statements = list(body.body)
    if statements and is_docstring(statements[0]):
        statements[0] = docstring
    else:
        statements.insert(0, docstring.with_changes(leading_lines=[]))
    return node.with_changes(body=body.with_changes(body=statements))


def fallback_comments(overlay: cst.BaseStatement, baseline: cst.BaseStatement) -> cst.BaseStatement:
    if leading_comments(overlay):
        return overlay
    return with_leading_comments(overlay, leading_comments(baseline))


def fallback_docstring(overlay: cst.BaseStatement, baseline: cst.BaseStatement) -> cst.BaseStatement:
    if not isinstance(overlay, (cst.FunctionDef, cst.ClassDef)) or docstring_statement(overlay) is not None:
        return overlay
    docstring = docstring_statement(baseline)
    if docstring is None:
        return overlay
    return with_docstring(overlay, docstring)


def apply_comment_fallback(overlay: cst.BaseStatement, baseline: cst.BaseStatement | None) -> cst.BaseStatement:
    """Non-empty overlay comments win; otherwise the baseline's are kept.

    The same rule applies to docstrings of functions and classes.
    """
    if baseline is None:
        return overlay
    return fallback_docstring(fallback_comments(overlay, baseline), baseline)
