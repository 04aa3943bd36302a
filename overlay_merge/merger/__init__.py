"""
Merger package.

Merges hand-written overlay modules into generated baseline modules at
declaration granularity, preserving customizations across regenerations.
"""

from __future__ import annotations

from .atomic_writer import AtomicWriter
from .base import CodeMergeError, MergeOutcome, MergeRecord, MergeResult, OverlayMerger, SymbolKind
from .imports import SymbolIndex
from .python_merger import PythonOverlayMerger, merge_module_declarations

__all__ = [
    "AtomicWriter",
    "CodeMergeError",
    "MergeOutcome",
    "MergeRecord",
    "MergeResult",
    "OverlayMerger",
    "PythonOverlayMerger",
    "SymbolIndex",
    "SymbolKind",
    "merge_module_declarations",
]
