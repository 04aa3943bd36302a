"""
Black formatter for merged Python code.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from ..config import FormatterConfig
from .base import Formatter


class BlackFormatter(Formatter):
    """Formatter using black for Python code."""

    name = "black"

    def __init__(self):
        self._black = None
        self._available = None

    def is_available(self) -> bool:
        """Check if black is installed."""
        if self._available is None:
            try:
                import black

                self._black = black
                self._available = True
            except ImportError:
                self._available = False
        return self._available

    def _format(self, code: str, config: FormatterConfig, path: PurePosixPath | None) -> tuple[str | None, str]:
        black = self._black
        target_versions = set()
        version = getattr(black.TargetVersion, config.target_version.upper(), None) if config.target_version else None
        if version is not None:
            target_versions.add(version)

        mode = black.Mode(
            target_versions=target_versions,
            line_length=config.line_length,
            string_normalization=config.string_normalization,
            magic_trailing_comma=config.magic_trailing_comma,
            is_pyi=path is not None and path.suffix == ".pyi",
        )

        try:
            return black.format_str(code, mode=mode), ""
        except black.InvalidInput as e:
            return None, str(e)
