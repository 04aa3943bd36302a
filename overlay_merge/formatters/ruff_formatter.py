"""
Ruff formatter for merged Python code.
"""

from __future__ import annotations

import subprocess
from pathlib import PurePosixPath

from ..config import FormatterConfig
from .base import Formatter


class RuffFormatter(Formatter):
    """Formatter using the ruff executable for Python code."""

    name = "ruff"

    def __init__(self):
        self._available = None

    def is_available(self) -> bool:
        """Check if ruff is installed."""
        if self._available is None:
            try:
                result = subprocess.run(
                    ["ruff", "--version"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                self._available = result.returncode == 0
            except (subprocess.SubprocessError, FileNotFoundError):
                self._available = False
        return self._available

    def _format(self, code: str, config: FormatterConfig, path: PurePosixPath | None) -> tuple[str | None, str]:
        # ruff format reads stdin and writes stdout; the file name selects .pyi handling
        cmd = ["ruff", "format", "--stdin-filename", str(path or "code.py")]
        if config.line_length:
            cmd.extend(["--line-length", str(config.line_length)])
        if config.target_version:
            cmd.extend(["--target-version", config.target_version])

        try:
            result = subprocess.run(
                cmd,
                input=code,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except subprocess.SubprocessError as e:
            return None, str(e)

        if result.returncode != 0:
            return None, result.stderr.strip()
        return result.stdout, ""
