"""Default diff generator: proposed writes and edits to structured line diffs."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from ..errors import DiffGenerationError
from ..types import DiffHunk, EditOperation, FileDiff

NEW_FILE_HUNK_ID = "new-file"

_logger = logging.getLogger(__name__)

_LANGUAGES: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".kt": "kotlin",
    ".swift": "swift",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".json": "json",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".sql": "sql",
    ".sh": "bash",
    ".bat": "batch",
    ".ps1": "powershell",
}


def split_lines(text: str) -> list[str]:
    """Split on newlines; the empty string has no lines."""
    if text == "":
        return []
    return text.split("\n")


def join_lines(lines: Sequence[str]) -> str:
    return "\n".join(lines)


def language_for(file_path: str) -> str:
    return _LANGUAGES.get(Path(file_path).suffix.lower(), "text")


def compute_hunks(old_lines: Sequence[str], new_lines: Sequence[str]) -> tuple[DiffHunk, ...]:
    """One hunk per non-equal opcode, numbered in file order."""
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    hunks: list[DiffHunk] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag == "insert":
            kind = "addition"
        elif tag == "delete":
            kind = "deletion"
        else:
            kind = "modification"
        hunks.append(
            DiffHunk(
                id=f"hunk-{len(hunks)}",
                kind=kind,
                old_start=i1 if i1 == i2 else i1 + 1,
                old_lines=i2 - i1,
                new_start=j1 if j1 == j2 else j1 + 1,
                new_lines=j2 - j1,
                old_content=tuple(old_lines[i1:i2]),
                new_content=tuple(new_lines[j1:j2]),
            )
        )
    return tuple(hunks)


def format_hunk(hunk: DiffHunk) -> str:
    """Render a hunk as a unified-diff block for display."""
    lines = [f"@@ -{hunk.old_start},{hunk.old_lines} +{hunk.new_start},{hunk.new_lines} @@"]
    lines.extend(f"-{line}" for line in hunk.old_content)
    lines.extend(f"+{line}" for line in hunk.new_content)
    return "\n".join(lines)


class DiffGenerator:
    """Turns proposed file mutations into ``FileDiff`` objects.

    Relative paths resolve against ``workspace_root``. Every failure (missing
    file, unreadable file, edit that does not match) raises
    ``DiffGenerationError``.
    """

    def __init__(self, workspace_root: str | Path) -> None:
        self.workspace_root = Path(workspace_root)

    def resolve_path(self, file_path: str) -> Path:
        path = Path(file_path)
        if path.is_absolute():
            return path
        return self.workspace_root / path

    def generate_write_diff(self, file_path: str, content: str) -> FileDiff:
        """Diff for writing ``content`` to ``file_path`` (new file or overwrite)."""
        path = self.resolve_path(file_path)
        language = language_for(file_path)
        if not path.exists():
            new_lines = split_lines(content)
            hunk = DiffHunk(
                id=NEW_FILE_HUNK_ID,
                kind="addition",
                old_start=0,
                old_lines=0,
                new_start=1 if new_lines else 0,
                new_lines=len(new_lines),
                new_content=tuple(new_lines),
            )
            return FileDiff(
                file_path=file_path,
                old_content="",
                new_content=content,
                hunks=(hunk,),
                is_new_file=True,
                language=language,
            )
        old_content = self._read(path, file_path)
        return self._build(file_path, old_content, content)

    def generate_edit_diff(
        self,
        file_path: str,
        edits: Sequence[EditOperation | Mapping[str, Any]],
    ) -> FileDiff:
        """Diff for applying ``edits`` in order, each to the first match."""
        path = self.resolve_path(file_path)
        if not path.exists():
            raise DiffGenerationError(f"File does not exist: {file_path}")
        operations = self._coerce_edits(edits)
        original = self._read(path, file_path)
        modified = original
        for edit in operations:
            if not edit.old_string:
                raise DiffGenerationError("Edit old_string must not be empty")
            if edit.old_string not in modified:
                raise DiffGenerationError(
                    f'Old string not found in file: "{edit.old_string[:50]}..."'
                )
            modified = modified.replace(edit.old_string, edit.new_string, 1)
        return self._build(file_path, original, modified)

    def _build(self, file_path: str, old_content: str, new_content: str) -> FileDiff:
        hunks = compute_hunks(split_lines(old_content), split_lines(new_content))
        _logger.debug("Computed %d hunk(s) for %s", len(hunks), file_path)
        return FileDiff(
            file_path=file_path,
            old_content=old_content,
            new_content=new_content,
            hunks=hunks,
            is_deleted_file=new_content.strip() == "",
            language=language_for(file_path),
        )

    @staticmethod
    def _read(path: Path, file_path: str) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DiffGenerationError(f"Cannot read {file_path}: {exc}") from exc

    @staticmethod
    def _coerce_edits(
        edits: Sequence[EditOperation | Mapping[str, Any]],
    ) -> list[EditOperation]:
        operations: list[EditOperation] = []
        for edit in edits:
            if isinstance(edit, EditOperation):
                operations.append(edit)
                continue
            try:
                operations.append(EditOperation.model_validate(edit))
            except ValidationError as exc:
                raise DiffGenerationError(f"Invalid edit operation: {exc}") from exc
        return operations
