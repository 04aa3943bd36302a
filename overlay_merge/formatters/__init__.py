"""
Post-processing formatters for merged code.
"""

from __future__ import annotations

from .base import Formatter
from .black_formatter import BlackFormatter
from .ruff_formatter import RuffFormatter

FORMATTERS: dict[str, type[Formatter]] = {
    "black": BlackFormatter,
    "ruff": RuffFormatter,
}


def get_formatter(tool: str) -> Formatter:
    """Return a formatter instance for the given tool name.

    Raises:
        ValueError: If the tool is unknown
    """
    try:
        return FORMATTERS[tool]()
    except KeyError:
        raise ValueError(f"Unknown formatter {tool!r}, expected one of: {', '.join(sorted(FORMATTERS))}") from None


__all__ = [
    "BlackFormatter",
    "Formatter",
    "RuffFormatter",
    "get_formatter",
]
