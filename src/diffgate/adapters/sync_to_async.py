"""Sync-to-async adapters for diffgate protocols.

These adapters wrap synchronous implementations to conform to async protocols.
Use asyncio.to_thread() for blocking I/O operations.

Design notes:
- Adapters are explicit: users construct them, not the gateway
- Each adapter wraps exactly one sync implementation
- to_thread() is used for file reads and terminal prompts
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from ..protocols import ConfirmChoice
    from ..types import AuditEntry, EditOperation, FileDiff


@dataclass(frozen=True, slots=True)
class SyncDiffGeneratorAdapter:
    """Wraps a sync DiffGenerator to provide AsyncDiffGenerator interface.

    Usage:
        generator = SyncDiffGeneratorAdapter(DiffGenerator(workspace_root))
        gateway = ApprovalGateway(diff_generator=generator, ...)
    """

    _generator: Any  # DiffGenerator

    async def generate_write_diff(self, file_path: str, content: str) -> FileDiff:
        """Generate in thread pool (reads the current file)."""
        return await asyncio.to_thread(self._generator.generate_write_diff, file_path, content)

    async def generate_edit_diff(
        self, file_path: str, edits: Sequence[EditOperation]
    ) -> FileDiff:
        """Generate in thread pool (reads the current file)."""
        return await asyncio.to_thread(self._generator.generate_edit_diff, file_path, edits)


@dataclass(frozen=True, slots=True)
class SyncConfirmerAdapter:
    """Wraps a sync confirmer to provide AsyncConfirmer interface.

    WARNING: This holds a thread while the reviewer answers.

    Usage:
        confirmer = SyncConfirmerAdapter(InteractiveConfirmer())
    """

    _confirmer: Any  # InteractiveConfirmer

    async def confirm(self, message: str) -> ConfirmChoice | None:
        """Prompt in thread pool. WARNING: Holds thread during wait."""
        return await asyncio.to_thread(self._confirmer.confirm, message)


@dataclass(frozen=True, slots=True)
class SyncAuditLoggerAdapter:
    """Wraps a sync audit logger to provide AsyncAuditLogger interface.

    Usage:
        audit_logger = SyncAuditLoggerAdapter(JsonlAuditLogger("diffgate_audit.jsonl"))
    """

    _logger: Any  # JsonlAuditLogger

    async def log(self, entry: AuditEntry) -> None:
        """Log entry in thread pool (file I/O is blocking)."""
        await asyncio.to_thread(self._logger.log, entry)
