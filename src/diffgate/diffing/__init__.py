"""Diff generation and partial hunk application."""

from .generator import (
    NEW_FILE_HUNK_ID,
    DiffGenerator,
    compute_hunks,
    format_hunk,
    join_lines,
    language_for,
    split_lines,
)
from .preview import apply_hunks, resolve_content

__all__ = [
    "NEW_FILE_HUNK_ID",
    "DiffGenerator",
    "compute_hunks",
    "format_hunk",
    "join_lines",
    "language_for",
    "split_lines",
    "apply_hunks",
    "resolve_content",
]
