"""
Base types for declaration merging.

Provides the error raised on malformed input and the records describing
every merge decision taken for a file pair.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CodeMergeError(Exception):
    """Raised when code merging fails.

    This can happen when:
    - The overlay or baseline file cannot be parsed
    - The merged result is not valid Python
    """

    pass


class SymbolKind(str, Enum):
    """Kind of a declaration or class member."""

    FUNCTION = "function"
    CLASS = "class"
    ENUM = "enum"
    INTERFACE = "interface"
    TYPE_ALIAS = "type_alias"
    VARIABLE = "variable"
    PROPERTY = "property"
    CONSTRUCTOR = "constructor"
    METHOD = "method"


class MergeOutcome(str, Enum):
    """Decision taken for one symbol."""

    ADD = "add"  # Overlay-only symbol copied to output
    REPLACE = "replace"  # Overlay fully supersedes baseline
    AUGMENT = "augment"  # Baseline hidden, overlay calls through to it
    DELETE = "delete"  # Annotation-driven removal
    KEEP = "keep"  # Baseline unchanged


@dataclass(frozen=True)
class MergeRecord:
    """One merge decision.

    Attributes:
        kind: Kind of the merged symbol
        name: Symbol name
        outcome: Decision taken
        container: Enclosing class name for members, None for top-level symbols
    """

    kind: SymbolKind
    name: str
    outcome: MergeOutcome
    container: str | None = None

    @property
    def qualified_name(self) -> str:
        if self.container:
            return f"{self.container}.{self.name}"
        return self.name


@dataclass
class MergeResult:
    """Merged source plus the decisions that produced it."""

    code: str
    records: list[MergeRecord] = field(default_factory=list)
    added_imports: list[str] = field(default_factory=list)

    def outcome_of(self, name: str, container: str | None = None) -> MergeOutcome | None:
        """Return the last outcome recorded for a symbol, if any."""
        found = None
        for record in self.records:
            if record.name == name and record.container == container:
                found = record.outcome
        return found

    def count(self, outcome: MergeOutcome) -> int:
        return sum(1 for record in self.records if record.outcome == outcome)


class MergeLog:
    """Collects merge records while resolvers run."""

    def __init__(self):
        self.records: list[MergeRecord] = []

    def record(
        self,
        kind: SymbolKind,
        name: str,
        outcome: MergeOutcome,
        container: str | None = None,
    ) -> None:
        self.records.append(MergeRecord(kind, name, outcome, container))

    def names_with(self, outcome: MergeOutcome, top_level_only: bool = True) -> list[str]:
        return [r.name for r in self.records if r.outcome == outcome and (r.container is None or not top_level_only)]


class OverlayMerger(ABC):
    """Abstract base class for language-specific overlay mergers.

    Subclasses implement the language-specific logic for:
    1. Parsing overlay and baseline sources
    2. Merging overlay declarations into the baseline
    3. Validating the merged result
    """

    @abstractmethod
    def parse(self, code: str) -> Any:
        """Parse source code into a syntax tree.

        Raises:
            CodeMergeError: If the code cannot be parsed
        """

    @abstractmethod
    def merge(self, overlay_code: str, baseline_code: str, **kwargs: Any) -> MergeResult:
        """Merge an overlay source into its baseline counterpart.

        Args:
            overlay_code: Hand-written overlay source
            baseline_code: Generated baseline source (may be empty)

        Returns:
            Merged code and the merge decisions

        Raises:
            CodeMergeError: If either input cannot be parsed
        """

    @abstractmethod
    def validate(self, code: str) -> None:
        """Validate that merged code is syntactically correct.

        Raises:
            CodeMergeError: If validation fails
        """
