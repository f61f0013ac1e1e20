"""Partial application of diff hunks."""

from __future__ import annotations

from typing import Collection, Sequence

from ..errors import HunkApplicationError
from ..types import ApprovalResponse, DiffHunk, FileDiff
from .generator import join_lines, split_lines


def apply_hunks(
    old_content: str,
    hunks: Sequence[DiffHunk],
    approved_hunks: Collection[str],
) -> str:
    """Return ``old_content`` with only the approved hunks applied.

    Hunks are placed by their line offsets, never by matching their text, so
    repeated blocks in the file cannot be patched at the wrong spot. Unknown ids
    in ``approved_hunks`` are ignored.
    """
    old_lines = split_lines(old_content)
    approved = set(approved_hunks)
    result: list[str] = []
    cursor = 0
    for hunk in sorted(hunks, key=lambda h: (h.old_offset, h.old_lines)):
        start = hunk.old_offset
        end = start + hunk.old_lines
        if start < cursor:
            raise HunkApplicationError(f"hunk {hunk.id} overlaps a previous hunk")
        if end > len(old_lines):
            raise HunkApplicationError(f"hunk {hunk.id} extends past end of file")
        result.extend(old_lines[cursor:start])
        if hunk.id in approved:
            result.extend(hunk.new_content)
        else:
            result.extend(old_lines[start:end])
        cursor = end
    result.extend(old_lines[cursor:])
    return join_lines(result)


def resolve_content(diff: FileDiff, response: ApprovalResponse) -> str | None:
    """Content the host should write for ``response``, or None if rejected."""
    if not response.approved:
        return None
    if response.approved_hunks is None:
        return diff.new_content
    if response.approved_hunks >= diff.hunk_ids:
        return diff.new_content
    return apply_hunks(diff.old_content, diff.hunks, response.approved_hunks)
