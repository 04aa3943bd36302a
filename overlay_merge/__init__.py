"""Overlay Merge

Merges hand-written Python overlay modules into generated baseline modules
at declaration granularity, so customizations survive regeneration.
"""

__version__ = "0.1.0"

from .config import FormatterConfig, MergeConfig, OutputConfig
from .merger import CodeMergeError, MergeOutcome, MergeResult, PythonOverlayMerger, merge_module_declarations
from .walker import FileReport, OverlayWalker

__all__ = [
    "MergeConfig",
    "FormatterConfig",
    "OutputConfig",
    "CodeMergeError",
    "MergeOutcome",
    "MergeResult",
    "PythonOverlayMerger",
    "merge_module_declarations",
    "OverlayWalker",
    "FileReport",
]
