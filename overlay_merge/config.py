"""
Configuration for overlay merging.

Holds the engine options (marker names, prefixes, recognised base classes),
post-processing formatter options and output handling options.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SUPPRESSION_PATTERNS = [
    r"[ \t]*#[ \t]*(?:type|pyright):[ \t]*ignore(?:\[[^\]\n]*\])?[ \t]*$",
]


@dataclass
class FormatterConfig:
    """Configuration for post-processing formatters."""

    # Whether formatting is enabled
    enabled: bool = False

    # Formatter to use ("black" or "ruff")
    tool: str = "black"

    # Line length for the formatter
    line_length: int = 100

    # Python version target (e.g., "py312", "py313")
    target_version: str = "py312"

    # Whether to use string normalization (convert single quotes to double)
    string_normalization: bool = True

    # Whether to respect magic trailing commas
    magic_trailing_comma: bool = True


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        validate_before_write: Whether to check merged code parses before writing
        atomic_write: Whether to use atomic file writes
        strip_suppressions: Whether to drop editor-only suppression comments
        suppression_patterns: Regular expressions (multiline) matching suppression comments
    """

    validate_before_write: bool = True
    atomic_write: bool = True
    strip_suppressions: bool = True
    suppression_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_SUPPRESSION_PATTERNS))


@dataclass
class MergeConfig:
    """Configuration options for declaration merging."""

    # Private class field whose presence marks a wrapping (augmenting) overlay class
    augment_marker: str = "__generated"

    # Prefix given to a hidden baseline symbol when the overlay augments it
    hidden_prefix: str = "_"

    # Tag of overlay annotations, e.g. "# @overlay-remove"
    annotation_prefix: str = "@overlay"

    # File extensions processed by the directory walker
    extensions: list[str] = field(default_factory=lambda: [".py", ".pyi"])

    # Base classes that turn a class into an interface
    interface_bases: list[str] = field(default_factory=lambda: ["Protocol", "TypedDict"])

    # Base classes that turn a class into an enum
    enum_bases: list[str] = field(default_factory=lambda: ["Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"])

    # Reorder declarations canonically after merging
    reorder: bool = True

    # Insert imports for names left dangling by the merge
    fix_imports: bool = True

    # Formatter configuration
    formatter: FormatterConfig = field(default_factory=FormatterConfig)

    # Output configuration
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def from_dict(d: dict) -> MergeConfig:
        """Create a config from a dictionary."""
        config = MergeConfig()
        for k, v in d.items():
            if k == "formatter" and isinstance(v, dict):
                config.formatter = FormatterConfig(**v)
            elif k == "output" and isinstance(v, dict):
                config.output = OutputConfig(**v)
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "augment_marker": self.augment_marker,
            "hidden_prefix": self.hidden_prefix,
            "annotation_prefix": self.annotation_prefix,
            "extensions": self.extensions,
            "interface_bases": self.interface_bases,
            "enum_bases": self.enum_bases,
            "reorder": self.reorder,
            "fix_imports": self.fix_imports,
            "formatter": {
                "enabled": self.formatter.enabled,
                "tool": self.formatter.tool,
                "line_length": self.formatter.line_length,
                "target_version": self.formatter.target_version,
                "string_normalization": self.formatter.string_normalization,
                "magic_trailing_comma": self.formatter.magic_trailing_comma,
            },
            "output": {
                "validate_before_write": self.output.validate_before_write,
                "atomic_write": self.output.atomic_write,
                "strip_suppressions": self.output.strip_suppressions,
                "suppression_patterns": self.output.suppression_patterns,
            },
        }
