"""In-memory duplex review surface."""

from __future__ import annotations

import asyncio
from typing import Any, Collection, Mapping

from pydantic import BaseModel

from ..errors import ReviewSurfaceError
from ..protocols import MessageHandler
from ..types import (
    ApprovalResponse,
    ApprovalResponseMessage,
    CancelRequestMessage,
    OutboundMessage,
    ReadyMessage,
    RequestPreviewMessage,
    ShowDiffMessage,
)


class QueueReviewSurface:
    """Review surface backed by an asyncio queue.

    Outbound gateway messages are queued on ``outbox``; ``send`` delivers an
    inbound message (a model or its raw camelCase mapping) to the gateway. Use
    it to bridge the gateway to any transport, or to drive it from tests.
    """

    def __init__(self) -> None:
        self.outbox: asyncio.Queue[OutboundMessage] = asyncio.Queue()
        self._handler: MessageHandler | None = None
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def bind(self, handler: MessageHandler) -> None:
        self._handler = handler

    async def post_message(self, message: OutboundMessage) -> None:
        if self._disposed:
            raise ReviewSurfaceError("review surface disposed")
        self.outbox.put_nowait(message)

    async def next_message(self, timeout: float | None = None) -> OutboundMessage:
        """Wait for the next message the gateway sent."""
        if timeout is None:
            return await self.outbox.get()
        return await asyncio.wait_for(self.outbox.get(), timeout)

    async def next_request(self, timeout: float | None = None) -> ShowDiffMessage:
        """Wait for the next ``showDiff``, skipping any other messages."""
        while True:
            message = await self.next_message(timeout)
            if isinstance(message, ShowDiffMessage):
                return message

    async def send(self, message: BaseModel | Mapping[str, Any]) -> None:
        """Deliver an inbound message to the bound gateway."""
        if self._handler is None:
            raise ReviewSurfaceError("no gateway bound to this review surface")
        await self._handler(message)

    async def ready(self) -> None:
        await self.send(ReadyMessage())

    async def approve(
        self, request_id: str, approved_hunks: Collection[str] | None = None
    ) -> None:
        hunks = frozenset(approved_hunks) if approved_hunks is not None else None
        await self.send(
            ApprovalResponseMessage(
                response=ApprovalResponse(request_id=request_id, approved=True, approved_hunks=hunks)
            )
        )

    async def reject(self, request_id: str, reason: str | None = None) -> None:
        await self.send(
            ApprovalResponseMessage(
                response=ApprovalResponse(request_id=request_id, approved=False, reject_reason=reason)
            )
        )

    async def cancel(self, request_id: str) -> None:
        await self.send(CancelRequestMessage(request_id=request_id))

    async def request_preview(self, request_id: str, approved_hunks: Collection[str]) -> None:
        await self.send(
            RequestPreviewMessage(request_id=request_id, approved_hunks=frozenset(approved_hunks))
        )

    def dispose(self) -> None:
        self._disposed = True
