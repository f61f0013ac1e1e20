from __future__ import annotations

import pytest

from diffgate.diffing.generator import compute_hunks, split_lines
from diffgate.diffing.preview import apply_hunks, resolve_content
from diffgate.errors import HunkApplicationError
from diffgate.types import ApprovalResponse, DiffHunk, FileDiff


def _diff(old: str, new: str) -> FileDiff:
    return FileDiff(
        file_path="notes.txt",
        old_content=old,
        new_content=new,
        hunks=compute_hunks(split_lines(old), split_lines(new)),
    )


def test_apply_single_modification() -> None:
    diff = _diff("A\nB\nC", "A\nX\nC")
    assert apply_hunks(diff.old_content, diff.hunks, ["hunk-0"]) == "A\nX\nC"


def test_apply_no_hunks_returns_original() -> None:
    diff = _diff("A\nB\nC", "A\nX\nC")
    assert apply_hunks(diff.old_content, diff.hunks, []) == "A\nB\nC"


def test_apply_ignores_unknown_hunk_ids() -> None:
    diff = _diff("A\nB\nC", "A\nX\nC")
    assert apply_hunks(diff.old_content, diff.hunks, ["hunk-42"]) == "A\nB\nC"


def test_apply_subset_of_hunks() -> None:
    diff = _diff("a\nb\nc\nd\ne", "a\nB\nc\nd\nE")
    assert diff.hunk_ids == frozenset({"hunk-0", "hunk-1"})
    assert apply_hunks(diff.old_content, diff.hunks, ["hunk-1"]) == "a\nb\nc\nd\nE"
    assert apply_hunks(diff.old_content, diff.hunks, ["hunk-0"]) == "a\nB\nc\nd\ne"


def test_apply_patches_by_position_not_by_text() -> None:
    diff = _diff("x\ny\nx\ny", "x\ny\nx\nz")
    (hunk,) = diff.hunks
    assert hunk.old_start == 4
    assert apply_hunks(diff.old_content, diff.hunks, [hunk.id]) == "x\ny\nx\nz"


def test_apply_insertion_at_top_and_deletion() -> None:
    diff = _diff("b\nc\nd", "a\nb\nd")
    kinds = {hunk.id: hunk.kind for hunk in diff.hunks}
    assert kinds == {"hunk-0": "addition", "hunk-1": "deletion"}
    assert apply_hunks(diff.old_content, diff.hunks, ["hunk-0"]) == "a\nb\nc\nd"
    assert apply_hunks(diff.old_content, diff.hunks, ["hunk-1"]) == "b\nd"


@pytest.mark.parametrize(
    ("old", "new"),
    [
        ("", "fresh\nfile\n"),
        ("a\nb\n", "a\nc\n"),
        ("one\ntwo\nthree", "zero\none\nthree\nfour"),
        ("keep\n", ""),
    ],
)
def test_apply_all_hunks_reproduces_new_content(old: str, new: str) -> None:
    diff = _diff(old, new)
    assert apply_hunks(old, diff.hunks, diff.hunk_ids) == new


def test_apply_overlapping_hunks_raises() -> None:
    hunks = [
        DiffHunk(id="h1", kind="modification", old_start=1, old_lines=2, new_start=1, new_lines=1,
                 old_content=("a", "b"), new_content=("x",)),
        DiffHunk(id="h2", kind="modification", old_start=2, old_lines=1, new_start=2, new_lines=1,
                 old_content=("b",), new_content=("y",)),
    ]
    with pytest.raises(HunkApplicationError, match="overlaps"):
        apply_hunks("a\nb\nc", hunks, ["h1"])


def test_apply_hunk_past_end_of_file_raises() -> None:
    hunk = DiffHunk(id="h1", kind="deletion", old_start=3, old_lines=2, new_start=2, new_lines=0,
                    old_content=("c", "d"))
    with pytest.raises(HunkApplicationError, match="past end of file"):
        apply_hunks("a\nb\nc", [hunk], ["h1"])


def test_resolve_content_rejected_is_none() -> None:
    diff = _diff("A", "B")
    response = ApprovalResponse(request_id="r", approved=False, reject_reason="no")
    assert resolve_content(diff, response) is None


def test_resolve_content_full_approval() -> None:
    diff = _diff("a\nb\nc\nd\ne", "a\nB\nc\nd\nE")
    assert resolve_content(diff, ApprovalResponse(request_id="r", approved=True)) == diff.new_content
    everything = ApprovalResponse(request_id="r", approved=True, approved_hunks=diff.hunk_ids)
    assert resolve_content(diff, everything) == diff.new_content


def test_resolve_content_partial_approval() -> None:
    diff = _diff("a\nb\nc\nd\ne", "a\nB\nc\nd\nE")
    response = ApprovalResponse(request_id="r", approved=True, approved_hunks=frozenset({"hunk-0"}))
    assert resolve_content(diff, response) == "a\nB\nc\nd\ne"
