"""JSONL audit trail of approval decisions.

Each line is one ``AuditEntry``: the request id, file path, outcome
(approved, partially approved, rejected or cancelled), approved hunk ids and,
for fallback confirmations, the diff error that caused them.
"""

from __future__ import annotations

from pathlib import Path

from ..errors import AuditLogError
from ..types import AuditEntry


class JsonlAuditLogger:
    """Appends one JSON line per terminal approval decision.

    The parent directory is created on first write. Any I/O failure is raised
    as ``AuditLogError``; the gateway counts it and carries on.
    """

    def __init__(self, path: str | Path = "diffgate_audit.jsonl") -> None:
        self.path = Path(path)

    def log(self, entry: AuditEntry) -> None:
        line = entry.to_json_line()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as exc:
            raise AuditLogError(f"Failed to write audit log {self.path}: {exc}") from exc
