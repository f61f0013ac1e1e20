"""Approval gateway: exactly-once human decisions for proposed file mutations.

The gateway sits between a host agent and a review surface. Every call to
``request_write_approval``/``request_edit_approval`` ends in exactly one
``ApprovalResponse``, whether the reviewer answers, the request is cancelled, the
gateway is disposed, or the diff cannot be computed (fallback confirmation).

Design notes:
- One pending map: request_id -> PendingApproval(request, future)
- An entry leaves the map at the moment its future is resolved, and only then
- Unknown or repeated responses/cancellations are logged no-ops
- No timeout: callers race the returned coroutine against their own timer;
  caller abandonment does not cancel the pending entry
- Resolutions are audited from the resolution path, so a request whose caller
  gave up is still recorded
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Collection, Mapping, Sequence
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from .adapters.sync_to_async import SyncAuditLoggerAdapter, SyncDiffGeneratorAdapter
from .config import GatewaySettings
from .diffing.generator import DiffGenerator
from .diffing.preview import apply_hunks
from .errors import HunkApplicationError
from .loggers.jsonl import JsonlAuditLogger
from .protocols import AsyncAuditLogger, AsyncConfirmer, AsyncDiffGenerator, ReviewSurface
from .types import (
    CANCELLED_REASON,
    DISPOSED_REASON,
    FALLBACK_FAILED_REASON,
    FALLBACK_REJECTED_REASON,
    FALLBACK_REQUEST_ID,
    ApprovalRequest,
    ApprovalResponse,
    ApprovalResponseMessage,
    AuditEntry,
    CancelRequestMessage,
    EditOperation,
    PreviewResultMessage,
    RequestKind,
    RequestPreviewMessage,
    ShowDiffMessage,
    parse_inbound_message,
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PendingApproval:
    """A registered request together with the future its caller awaits."""

    request: ApprovalRequest
    future: asyncio.Future[ApprovalResponse] = field(repr=False)


class ApprovalGateway:
    """Brokers one correlated human decision per proposed file mutation.

    Example:
        surface = QueueReviewSurface()
        gateway = ApprovalGateway(
            surface=surface,
            diff_generator=SyncDiffGeneratorAdapter(DiffGenerator(workspace_root)),
            confirmer=SyncConfirmerAdapter(InteractiveConfirmer()),
        )

        response = await gateway.request_write_approval("src/app.py", new_source)
        if response.approved:
            ...
    """

    __slots__ = (
        "_surface",
        "_diff_generator",
        "_confirmer",
        "_audit_logger",
        "_on_error",
        "_pending",
        "_disposed",
        "_audit_error_count",
        "_audit_tasks",
    )

    def __init__(
        self,
        *,
        surface: ReviewSurface,
        diff_generator: AsyncDiffGenerator,
        confirmer: AsyncConfirmer,
        audit_logger: AsyncAuditLogger | None = None,
        on_error: Callable[[str, Exception], None] | None = None,
    ) -> None:
        """Initialize the gateway and bind it to its review surface.

        Args:
            surface: Review surface that renders diffs and reports decisions
            diff_generator: Async diff generator (wrap sync ones with an adapter)
            confirmer: Binary confirmation used when no diff can be produced
            audit_logger: Optional recorder of terminal decisions (best-effort)
            on_error: Optional callback(event_type, exception) for metrics
        """
        if surface is None:
            raise ValueError("surface is required")
        if diff_generator is None:
            raise ValueError("diff_generator is required")
        if confirmer is None:
            raise ValueError("confirmer is required")

        self._surface = surface
        self._diff_generator = diff_generator
        self._confirmer = confirmer
        self._audit_logger = audit_logger
        self._on_error = on_error
        self._pending: dict[str, PendingApproval] = {}
        self._disposed = False
        self._audit_error_count: int = 0
        self._audit_tasks: dict[str, asyncio.Task[None]] = {}
        surface.bind(self.handle_message)

    @classmethod
    def from_settings(
        cls,
        settings: GatewaySettings,
        *,
        surface: ReviewSurface,
        confirmer: AsyncConfirmer,
        on_error: Callable[[str, Exception], None] | None = None,
    ) -> "ApprovalGateway":
        """Build a gateway with the default diff generator and JSONL audit log."""
        audit_logger = None
        if settings.audit_log_path is not None:
            audit_logger = SyncAuditLoggerAdapter(JsonlAuditLogger(settings.audit_log_path))
        return cls(
            surface=surface,
            diff_generator=SyncDiffGeneratorAdapter(DiffGenerator(settings.workspace_root)),
            confirmer=confirmer,
            audit_logger=audit_logger,
            on_error=on_error,
        )

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def audit_error_count(self) -> int:
        """Number of audit logging failures since gateway creation."""
        return self._audit_error_count

    @property
    def disposed(self) -> bool:
        return self._disposed

    def pending_request_ids(self) -> list[str]:
        return list(self._pending)

    # ------------------------------------------------------------------ #
    # Host agent API
    # ------------------------------------------------------------------ #

    async def request_write_approval(self, file_path: str, content: str) -> ApprovalResponse:
        """Ask the reviewer to approve writing ``content`` to ``file_path``.

        Suspends until the request is resolved, cancelled, or the gateway is
        disposed. Never raises for diff or surface failures.
        """
        request_id = self._new_request_id()
        if self._disposed:
            return await self._disposed_response(RequestKind.WRITE, request_id, file_path)
        try:
            diff = await self._diff_generator.generate_write_diff(file_path, content)
        except Exception as exc:
            if self._disposed:
                return await self._disposed_response(RequestKind.WRITE, request_id, file_path)
            return await self._fallback(
                RequestKind.WRITE, file_path, f"write file '{file_path}'", exc
            )
        request = ApprovalRequest(
            id=request_id,
            kind=RequestKind.WRITE,
            file_path=file_path,
            diff=diff,
            original_input={"file_path": file_path, "content": content},
        )
        return await self._submit(request)

    async def request_edit_approval(
        self,
        file_path: str,
        edits: Sequence[EditOperation | Mapping[str, Any]],
    ) -> ApprovalResponse:
        """Ask the reviewer to approve applying ``edits`` to ``file_path``."""
        request_id = self._new_request_id()
        if self._disposed:
            return await self._disposed_response(RequestKind.EDIT, request_id, file_path)
        try:
            operations = [
                edit if isinstance(edit, EditOperation) else EditOperation.model_validate(edit)
                for edit in edits
            ]
            diff = await self._diff_generator.generate_edit_diff(file_path, operations)
        except Exception as exc:
            if self._disposed:
                return await self._disposed_response(RequestKind.EDIT, request_id, file_path)
            return await self._fallback(
                RequestKind.EDIT,
                file_path,
                f"apply {len(edits)} edit(s) to '{file_path}'",
                exc,
            )
        request = ApprovalRequest(
            id=request_id,
            kind=RequestKind.EDIT,
            file_path=file_path,
            diff=diff,
            original_input={
                "file_path": file_path,
                "edits": [edit.model_dump() for edit in operations],
            },
        )
        return await self._submit(request)

    def dispose(self) -> None:
        """Cancel every pending request, then release the review surface."""
        if self._disposed:
            return
        self._disposed = True
        for request_id in list(self._pending):
            self.cancel_request(request_id)
        self._surface.dispose()

    # ------------------------------------------------------------------ #
    # Review surface API
    # ------------------------------------------------------------------ #

    def handle_approval_response(self, response: ApprovalResponse) -> bool:
        """Resolve the matching pending request. Returns False if there was none."""
        entry = self._pending.pop(response.request_id, None)
        if entry is None:
            _logger.warning(
                "Ignoring approval response for unknown or resolved request %s",
                response.request_id,
            )
            return False
        response = self._restrict_hunks(entry.request, response)
        self._resolve(entry, response)
        _logger.info(
            "Request %s resolved (approved=%s)", response.request_id, response.approved
        )
        return True

    def get_pending_request(self, request_id: str) -> ApprovalRequest | None:
        entry = self._pending.get(request_id)
        if entry is None:
            return None
        return entry.request

    def cancel_request(self, request_id: str) -> bool:
        """Resolve a pending request as cancelled. Returns False if there was none."""
        entry = self._pending.pop(request_id, None)
        if entry is None:
            _logger.debug("Ignoring cancellation of unknown or resolved request %s", request_id)
            return False
        self._resolve(
            entry,
            ApprovalResponse(request_id=request_id, approved=False, reject_reason=CANCELLED_REASON),
        )
        _logger.info("Request %s cancelled", request_id)
        return True

    def compute_preview(self, request_id: str, approved_hunks: Collection[str]) -> str | None:
        """Content that would result from applying only ``approved_hunks``.

        Returns None if the request is not pending. Never mutates the request.
        """
        request = self.get_pending_request(request_id)
        if request is None:
            return None
        return apply_hunks(request.diff.old_content, request.diff.hunks, approved_hunks)

    async def handle_message(self, raw: BaseModel | Mapping[str, Any]) -> None:
        """Route one inbound review surface message."""
        if self._disposed:
            _logger.debug("Ignoring review surface message after dispose")
            return
        try:
            message = parse_inbound_message(raw)
        except ValidationError as exc:
            _logger.warning("Ignoring malformed review surface message: %s", exc)
            return

        if isinstance(message, ApprovalResponseMessage):
            self.handle_approval_response(message.response)
        elif isinstance(message, RequestPreviewMessage):
            await self._send_preview(message.request_id, message.approved_hunks)
        elif isinstance(message, CancelRequestMessage):
            self.cancel_request(message.request_id)
        else:
            _logger.debug("Review surface ready")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _submit(self, request: ApprovalRequest) -> ApprovalResponse:
        # dispose() may have run while the diff was being generated
        if self._disposed:
            return await self._disposed_response(request.kind, request.id, request.file_path)
        loop = asyncio.get_running_loop()
        entry = PendingApproval(request=request, future=loop.create_future())
        self._pending[request.id] = entry
        _logger.debug("Registered %s request %s for %s", request.kind.value, request.id, request.file_path)

        try:
            await self._surface.post_message(ShowDiffMessage(request=request))
        except Exception as exc:
            if self._pending.get(request.id) is entry:
                del self._pending[request.id]
                _logger.warning("Review surface failed to show request %s: %s", request.id, exc)
                self._report_error("surface", exc)
                if self._disposed:
                    return await self._disposed_response(request.kind, request.id, request.file_path)
                fallback = await self._fallback(
                    request.kind,
                    request.file_path,
                    _describe(request),
                    exc,
                )
                self._settle(entry, fallback)
                return fallback

        # Shielded so that a caller timing out does not cancel the pending entry.
        response = await asyncio.shield(entry.future)
        audit = self._audit_tasks.get(request.id)
        if audit is not None:
            await asyncio.shield(audit)
        return response

    async def _fallback(
        self,
        kind: RequestKind,
        file_path: str,
        operation: str,
        error: BaseException,
    ) -> ApprovalResponse:
        _logger.warning("Diff preview failed for %s, falling back to confirmation: %s", file_path, error)
        message = f"Do you want to {operation}?\n\nNote: Diff preview failed - {error}"
        try:
            choice = await self._confirmer.confirm(message)
        except Exception as exc:
            _logger.warning("Fallback confirmation failed for %s: %s", file_path, exc)
            self._report_error("confirmation", exc)
            response = ApprovalResponse(
                request_id=FALLBACK_REQUEST_ID,
                approved=False,
                reject_reason=FALLBACK_FAILED_REASON,
            )
        else:
            response = ApprovalResponse(
                request_id=FALLBACK_REQUEST_ID,
                approved=choice == "approve",
                reject_reason=FALLBACK_REJECTED_REASON if choice == "reject" else None,
            )
        await self._record(kind, file_path, response, fallback=True, error=str(error))
        return response

    async def _send_preview(self, request_id: str, approved_hunks: Collection[str]) -> None:
        try:
            content = self.compute_preview(request_id, approved_hunks)
        except HunkApplicationError as exc:
            _logger.warning("Cannot build preview for request %s: %s", request_id, exc)
            return
        if content is None:
            _logger.warning("Ignoring preview request for unknown request %s", request_id)
            return
        try:
            await self._surface.post_message(
                PreviewResultMessage(request_id=request_id, preview_content=content)
            )
        except Exception as exc:
            _logger.warning("Review surface failed to receive preview for %s: %s", request_id, exc)
            self._report_error("surface", exc)

    def _restrict_hunks(
        self, request: ApprovalRequest, response: ApprovalResponse
    ) -> ApprovalResponse:
        if response.approved_hunks is None:
            return response
        known = request.diff.hunk_ids
        unknown = response.approved_hunks - known
        if not unknown:
            return response
        _logger.warning(
            "Dropping unknown hunk ids %s from response to request %s",
            sorted(unknown),
            request.id,
        )
        return response.model_copy(update={"approved_hunks": response.approved_hunks & known})

    @staticmethod
    def _settle(entry: PendingApproval, response: ApprovalResponse) -> None:
        if not entry.future.done():
            entry.future.set_result(response)

    def _resolve(self, entry: PendingApproval, response: ApprovalResponse) -> None:
        """Settle a registered request and audit it, whether or not its caller still waits."""
        if entry.future.done():
            return
        entry.future.set_result(response)
        if self._audit_logger is None:
            return
        request = entry.request
        task = entry.future.get_loop().create_task(
            self._record(request.kind, request.file_path, response, hunk_count=len(request.diff.hunks))
        )
        self._audit_tasks[request.id] = task
        task.add_done_callback(lambda _task: self._audit_tasks.pop(request.id, None))

    def _new_request_id(self) -> str:
        while True:
            request_id = f"diff-{time.time_ns() // 1_000_000}-{uuid4().hex[:9]}"
            if request_id not in self._pending:
                return request_id

    async def _disposed_response(
        self, kind: RequestKind, request_id: str, file_path: str
    ) -> ApprovalResponse:
        _logger.warning("Approval requested for %s after gateway was disposed", file_path)
        response = ApprovalResponse(request_id=request_id, approved=False, reject_reason=DISPOSED_REASON)
        await self._record(kind, file_path, response)
        return response

    async def _record(
        self,
        kind: RequestKind,
        file_path: str,
        response: ApprovalResponse,
        *,
        hunk_count: int = 0,
        fallback: bool = False,
        error: str | None = None,
    ) -> None:
        """Write an audit entry. Best-effort: failures are counted, never raised."""
        if self._audit_logger is None:
            return
        entry = AuditEntry(
            timestamp=datetime.now(timezone.utc),
            request_id=response.request_id,
            kind=kind,
            file_path=file_path,
            outcome=_outcome(response, hunk_count),
            approved_hunks=sorted(response.approved_hunks) if response.approved_hunks is not None else None,
            hunk_count=hunk_count,
            reject_reason=response.reject_reason,
            fallback=fallback,
            error=error,
        )
        try:
            await self._audit_logger.log(entry)
        except Exception as exc:
            self._audit_error_count += 1
            _logger.warning("Audit logging failed for request %s: %s", response.request_id, exc)
            self._report_error("audit", exc)

    def _report_error(self, event: str, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(event, exc)
        except Exception as callback_exc:
            _logger.debug("on_error callback failed: %s", callback_exc)


def _describe(request: ApprovalRequest) -> str:
    if request.kind is RequestKind.EDIT:
        count = len(request.original_input.get("edits", ()))
        return f"apply {count} edit(s) to '{request.file_path}'"
    return f"write file '{request.file_path}'"


def _outcome(response: ApprovalResponse, hunk_count: int) -> str:
    if response.approved:
        if response.approved_hunks is not None and len(response.approved_hunks) < hunk_count:
            return "partially_approved"
        return "approved"
    if response.reject_reason == CANCELLED_REASON:
        return "cancelled"
    return "rejected"
