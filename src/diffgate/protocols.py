"""Protocol definitions for diffgate's collaborators.

The gateway talks to every collaborator through these async protocols. Use the
adapters in ``diffgate.adapters.sync_to_async`` to wrap sync implementations.

Design notes:
- All waits are event-loop-native; the gateway never blocks the loop
- @runtime_checkable is for debugging/logging convenience only, not dispatch
- The review surface is a duplex message channel, not a set of direct calls
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Literal, Mapping, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel

from .types import AuditEntry, EditOperation, FileDiff, OutboundMessage

ConfirmChoice = Literal["approve", "reject"]

# Inbound handler installed by the gateway on its surface.
MessageHandler = Callable[[BaseModel | Mapping[str, Any]], Awaitable[None]]


@runtime_checkable
class AsyncDiffGenerator(Protocol):
    """Produces structured diffs for proposed mutations.

    Implementations must raise a catchable exception (preferably
    ``DiffGenerationError``) on failure, never crash the host.
    """

    async def generate_write_diff(self, file_path: str, content: str) -> FileDiff:
        ...

    async def generate_edit_diff(
        self, file_path: str, edits: Sequence[EditOperation]
    ) -> FileDiff:
        ...


@runtime_checkable
class ReviewSurface(Protocol):
    """UI boundary that renders diffs and reports the reviewer's decision.

    The gateway installs its inbound handler with ``bind`` and pushes
    ``showDiff``/``previewResult`` messages with ``post_message``.
    """

    def bind(self, handler: MessageHandler) -> None:
        ...

    async def post_message(self, message: OutboundMessage) -> None:
        ...

    def dispose(self) -> None:
        ...


@runtime_checkable
class AsyncConfirmer(Protocol):
    """Binary confirmation used when a diff cannot be shown.

    Returns ``"approve"``, ``"reject"``, or None when the prompt was dismissed.
    """

    async def confirm(self, message: str) -> ConfirmChoice | None:
        ...


@runtime_checkable
class AsyncAuditLogger(Protocol):
    """Records terminal approval decisions. Best-effort from the gateway's view."""

    async def log(self, entry: AuditEntry) -> None:
        ...
