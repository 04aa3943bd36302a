"""
Atomic file writer for merged modules.

Ensures that an interrupted run never leaves a half-written file in the
output tree.
"""

from __future__ import annotations

import ast
import tempfile
from collections.abc import Callable
from pathlib import Path

from .base import CodeMergeError


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(self, validate: Callable[[str], None] | None = None, atomic: bool = True):
        """Initialize the atomic writer.

        Args:
            validate: Optional validation function for merged code
            atomic: When False, write the target file directly
        """
        self._validate = validate or self._default_validate
        self._atomic = atomic

    def write(self, path: Path, content: str, validate: bool = True) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            validate: Whether to validate before finalizing

        Raises:
            CodeMergeError: If validation fails
            OSError: If file operations fail
        """
        if validate:
            self._validate(content)

        path.parent.mkdir(parents=True, exist_ok=True)
        if not self._atomic:
            path.write_text(content, encoding="utf-8")
            return

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(path)
        except Exception:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass  # Best effort cleanup
            raise

    def _default_validate(self, content: str) -> None:
        """Check that merged code is valid Python.

        Raises:
            CodeMergeError: If the code does not parse
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise CodeMergeError(f"Merged Python code is not valid: {e}") from e
