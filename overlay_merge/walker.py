"""
Directory walking.

Copies the generated tree into the output tree, then merges every overlay
file into its mirrored output path.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .config import MergeConfig
from .formatters import Formatter, get_formatter
from .merger import AtomicWriter, MergeRecord, PythonOverlayMerger, SymbolIndex

logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES = {"__pycache__"}


@dataclass
class FileReport:
    """Merge outcome of one overlay file.

    Attributes:
        path: Path relative to the tree roots
        created: True when the baseline had no counterpart file
        records: Decisions taken for the file's symbols
        added_imports: Imports inserted by import repair
    """

    path: PurePosixPath
    created: bool = False
    records: list[MergeRecord] = field(default_factory=list)
    added_imports: list[str] = field(default_factory=list)


def strip_suppression_markers(code: str, patterns: list[str]) -> str:
    """Remove editor-only suppression comments, e.g. trailing ``# type: ignore``."""
    for pattern in patterns:
        code = re.sub(pattern, "", code, flags=re.MULTILINE)
    return code


class OverlayWalker:
    """Merges an overlay directory tree over a generated tree.

    Args:
        config: Merge configuration
        merger: Merger used per file pair
        writer: Writer for merged files
        formatter: Optional post-processing formatter
    """

    def __init__(
        self,
        config: MergeConfig | None = None,
        merger: PythonOverlayMerger | None = None,
        writer: AtomicWriter | None = None,
        formatter: Formatter | None = None,
    ):
        self.config = config or MergeConfig()
        self.merger = merger or PythonOverlayMerger(self.config)
        self.writer = writer or AtomicWriter(atomic=self.config.output.atomic_write)
        if formatter is None and self.config.formatter.enabled:
            formatter = get_formatter(self.config.formatter.tool)
        self.formatter = formatter
        self.symbol_index = SymbolIndex()

    def run(self, generated: Path, custom: Path, output: Path) -> list[FileReport]:
        """Produce the output tree.

        Args:
            generated: Root of the generated (baseline) tree
            custom: Root of the overlay tree
            output: Root of the output tree, created if missing

        Returns:
            One report per merged overlay file

        Raises:
            CodeMergeError: If a file pair cannot be merged
            OSError: If the trees cannot be read or written
        """
        logger.info("Copying %s to %s", generated, output)
        shutil.copytree(generated, output, dirs_exist_ok=True)
        self.symbol_index = SymbolIndex.from_directories([output, custom], self.config.extensions)
        reports: list[FileReport] = []
        self.process_directory(custom, output, PurePosixPath(), reports)
        return reports

    def process_directory(self, custom_dir: Path, output_dir: Path, relative: PurePosixPath, reports: list[FileReport]) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)
        for entry in sorted(custom_dir.iterdir()):
            if entry.is_dir():
                if entry.name in SKIPPED_DIRECTORIES or entry.name.startswith("."):
                    continue
                self.process_directory(entry, output_dir / entry.name, relative / entry.name, reports)
            elif entry.suffix in self.config.extensions:
                reports.append(self.process_file(entry, output_dir / entry.name, relative / entry.name))

    def process_file(self, custom_file: Path, output_file: Path, relative: PurePosixPath) -> FileReport:
        """Merge one overlay file into the output file at the mirrored path."""
        created = not output_file.exists()
        baseline = "" if created else output_file.read_text(encoding="utf-8")
        overlay = custom_file.read_text(encoding="utf-8")
        logger.info("Merging %s%s", relative, " (new file)" if created else "")

        result = self.merger.merge(overlay, baseline, module_path=relative, symbol_index=self.symbol_index)
        code = result.code
        if self.config.output.strip_suppressions:
            code = strip_suppression_markers(code, self.config.output.suppression_patterns)
        if self.formatter is not None:
            code = self.formatter.format(code, self.config.formatter, relative)

        self.writer.write(output_file, code, validate=self.config.output.validate_before_write)
        return FileReport(relative, created, result.records, result.added_imports)
