from __future__ import annotations

from pathlib import Path

import pytest

from diffgate.diffing.generator import (
    NEW_FILE_HUNK_ID,
    DiffGenerator,
    compute_hunks,
    format_hunk,
    language_for,
    split_lines,
)
from diffgate.errors import DiffGenerationError
from diffgate.types import EditOperation


def test_split_lines_empty_string_has_no_lines() -> None:
    assert split_lines("") == []
    assert split_lines("a") == ["a"]
    assert split_lines("a\n") == ["a", ""]


@pytest.mark.parametrize(
    ("file_path", "language"),
    [
        ("src/foo.ts", "typescript"),
        ("app.PY", "python"),
        ("config.yml", "yaml"),
        ("Makefile", "text"),
        ("notes.unknown", "text"),
    ],
)
def test_language_for(file_path: str, language: str) -> None:
    assert language_for(file_path) == language


def test_compute_hunks_identical_content_has_no_hunks() -> None:
    assert compute_hunks(["a", "b"], ["a", "b"]) == ()


def test_compute_hunks_classifies_changes_in_file_order() -> None:
    hunks = compute_hunks(["A", "B", "C"], ["A", "X", "C", "D"])

    assert [hunk.id for hunk in hunks] == ["hunk-0", "hunk-1"]
    modified, added = hunks
    assert modified.kind == "modification"
    assert (modified.old_start, modified.old_lines, modified.new_start, modified.new_lines) == (2, 1, 2, 1)
    assert modified.old_content == ("B",)
    assert modified.new_content == ("X",)
    assert added.kind == "addition"
    assert (added.old_start, added.old_lines, added.new_start, added.new_lines) == (3, 0, 4, 1)
    assert added.new_content == ("D",)


def test_compute_hunks_deletion() -> None:
    (hunk,) = compute_hunks(["A", "B", "C"], ["A", "C"])
    assert hunk.kind == "deletion"
    assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (2, 1, 1, 0)
    assert hunk.deletions == 1
    assert hunk.additions == 0


def test_format_hunk() -> None:
    (hunk,) = compute_hunks(["A", "B"], ["A", "C"])
    assert format_hunk(hunk) == "@@ -2,1 +2,1 @@\n-B\n+C"


def test_write_diff_for_new_file(workspace: Path) -> None:
    diff = DiffGenerator(workspace).generate_write_diff("src/foo.ts", "console.log(1)\nconsole.log(2)")

    assert diff.is_new_file
    assert not diff.is_deleted_file
    assert diff.old_content == ""
    assert diff.language == "typescript"
    (hunk,) = diff.hunks
    assert hunk.id == NEW_FILE_HUNK_ID
    assert hunk.kind == "addition"
    assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (0, 0, 1, 2)
    assert diff.additions == 2
    assert diff.deletions == 0


def test_write_diff_for_empty_new_file(workspace: Path) -> None:
    diff = DiffGenerator(workspace).generate_write_diff("empty.txt", "")
    (hunk,) = diff.hunks
    assert hunk.new_start == 0
    assert hunk.new_lines == 0


def test_write_diff_overwrites_existing_file(workspace: Path) -> None:
    (workspace / "notes.txt").write_text("A\nB\nC", encoding="utf-8")

    diff = DiffGenerator(workspace).generate_write_diff("notes.txt", "A\nX\nC")

    assert not diff.is_new_file
    assert diff.old_content == "A\nB\nC"
    assert diff.new_content == "A\nX\nC"
    assert diff.hunk_ids == frozenset({"hunk-0"})
    assert diff.get_hunk("hunk-0") is not None
    assert diff.get_hunk("hunk-7") is None


def test_write_diff_blank_content_marks_deleted_file(workspace: Path) -> None:
    (workspace / "notes.txt").write_text("A\nB", encoding="utf-8")
    diff = DiffGenerator(workspace).generate_write_diff("notes.txt", "")
    assert diff.is_deleted_file
    assert diff.deletions == 2


def test_write_diff_accepts_absolute_path(workspace: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside.txt"
    outside.write_text("old", encoding="utf-8")
    diff = DiffGenerator(workspace).generate_write_diff(str(outside), "new")
    assert diff.old_content == "old"
    assert not diff.is_new_file


def test_write_diff_unreadable_file_raises(workspace: Path) -> None:
    (workspace / "blob.bin").write_bytes(b"\xff\xfe\x00\x81")
    with pytest.raises(DiffGenerationError, match="Cannot read blob.bin"):
        DiffGenerator(workspace).generate_write_diff("blob.bin", "text")


def test_edit_diff_applies_edits_in_order_first_match_only(workspace: Path) -> None:
    (workspace / "app.py").write_text("x = 1\nx = 1\n", encoding="utf-8")

    diff = DiffGenerator(workspace).generate_edit_diff(
        "app.py",
        [
            EditOperation(old_string="x = 1", new_string="x = 2"),
            {"old_string": "x = 2", "new_string": "y = 2"},
        ],
    )

    assert diff.new_content == "y = 2\nx = 1\n"
    assert diff.old_content == "x = 1\nx = 1\n"
    assert diff.language == "python"
    (hunk,) = diff.hunks
    assert hunk.old_start == 1
    assert hunk.new_content == ("y = 2",)


def test_edit_diff_missing_file_raises(workspace: Path) -> None:
    with pytest.raises(DiffGenerationError, match="File does not exist: nope.py"):
        DiffGenerator(workspace).generate_edit_diff("nope.py", [EditOperation(old_string="a", new_string="b")])


def test_edit_diff_old_string_not_found_raises(workspace: Path) -> None:
    (workspace / "app.py").write_text("x = 1\n", encoding="utf-8")
    with pytest.raises(DiffGenerationError, match="Old string not found in file"):
        DiffGenerator(workspace).generate_edit_diff("app.py", [EditOperation(old_string="z = 9", new_string="")])


def test_edit_diff_later_edit_sees_earlier_result(workspace: Path) -> None:
    (workspace / "app.py").write_text("a\n", encoding="utf-8")
    with pytest.raises(DiffGenerationError, match="Old string not found"):
        DiffGenerator(workspace).generate_edit_diff(
            "app.py",
            [
                EditOperation(old_string="a", new_string="b"),
                EditOperation(old_string="a", new_string="c"),
            ],
        )


def test_edit_diff_rejects_empty_old_string(workspace: Path) -> None:
    (workspace / "app.py").write_text("x\n", encoding="utf-8")
    with pytest.raises(DiffGenerationError, match="must not be empty"):
        DiffGenerator(workspace).generate_edit_diff("app.py", [EditOperation(old_string="", new_string="y")])


def test_edit_diff_rejects_malformed_edit(workspace: Path) -> None:
    (workspace / "app.py").write_text("x\n", encoding="utf-8")
    with pytest.raises(DiffGenerationError, match="Invalid edit operation"):
        DiffGenerator(workspace).generate_edit_diff("app.py", [{"old_string": "x"}])
