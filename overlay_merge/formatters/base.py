"""
Post-processing of merged modules by an external formatter.

Formatting is best effort: merged code that the tool cannot handle (tool
missing, tool rejecting the input) is written unformatted, with a warning.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from ..config import FormatterConfig

logger = logging.getLogger(__name__)


class Formatter(ABC):
    """A formatting tool applied to merged modules before they are written."""

    #: Tool name used in configuration and log messages
    name: str = ""

    def format(self, code: str, config: FormatterConfig, path: PurePosixPath | None = None) -> str:
        """
        Format one merged module, falling back to the input on failure.

        Args:
            code: Merged module source
            config: Formatter configuration
            path: Module path relative to the output tree, for messages and tool configuration lookup

        Returns:
            Formatted source, or ``code`` unchanged when the tool is unavailable or fails
        """
        where = path or "<memory>"
        if not self.is_available():
            logger.warning("%s is not installed, leaving %s unformatted", self.name, where)
            return code
        formatted, error = self._format(code, config, path)
        if formatted is None:
            logger.warning("%s could not format %s: %s", self.name, where, error)
            return code
        return formatted

    @abstractmethod
    def _format(self, code: str, config: FormatterConfig, path: PurePosixPath | None) -> tuple[str | None, str]:
        """Run the tool; returns the formatted source (None on failure) and an error message."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when the tool can be run."""
