"""Terminal review surface rendered with rich."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from pydantic import BaseModel

from ..errors import ReviewSurfaceError
from ..protocols import MessageHandler
from ..types import (
    ApprovalRequest,
    ApprovalResponse,
    ApprovalResponseMessage,
    CancelRequestMessage,
    DiffHunk,
    FileDiff,
    OutboundMessage,
    PreviewResultMessage,
    RequestPreviewMessage,
    ShowDiffMessage,
)

PREVIEW_TIMEOUT_SECONDS: float = 5.0
NO_HUNKS_SELECTED_REASON = "No hunks selected"

_logger = logging.getLogger(__name__)

# ask(prompt, choices, default) -> answer; runs in a worker thread
Ask = Callable[[str, list[str] | None, str], str]


def _rich_ask(prompt: str, choices: list[str] | None, default: str) -> str:
    return Prompt.ask(prompt, choices=choices, default=default)


def diff_title(diff: FileDiff) -> str:
    path = escape(diff.file_path)
    if diff.is_new_file:
        title = f"[green]NEW FILE: {path}[/green]"
    elif diff.is_deleted_file:
        title = f"[red]DELETE FILE: {path}[/red]"
    else:
        title = f"[yellow]MODIFY: {path}[/yellow]"
    return f"{title} [green]+{diff.additions}[/green] [red]-{diff.deletions}[/red]"


def hunk_markup(hunk: DiffHunk) -> str:
    lines = [
        f"[bold]{escape(hunk.id)}[/bold] "
        f"[cyan]@@ -{hunk.old_start},{hunk.old_lines} +{hunk.new_start},{hunk.new_lines} @@[/cyan]"
    ]
    lines.extend(f"[red]-{escape(line)}[/red]" for line in hunk.old_content)
    lines.extend(f"[green]+{escape(line)}[/green]" for line in hunk.new_content)
    return "\n".join(lines)


class ConsoleReviewSurface:
    """Review surface that asks the reviewer in the terminal.

    Each ``showDiff`` starts a review task. Reviews run one at a time; the
    reviewer can approve all, reject, pick hunks, preview a pick, or cancel.
    End-of-input or Ctrl-C at a prompt cancels the request.
    """

    def __init__(self, console: Console | None = None, ask: Ask | None = None) -> None:
        self.console = console or Console()
        self._ask = ask or _rich_ask
        self._handler: MessageHandler | None = None
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()
        self._previews: dict[str, asyncio.Future[str]] = {}
        self._disposed = False

    def bind(self, handler: MessageHandler) -> None:
        self._handler = handler

    async def post_message(self, message: OutboundMessage) -> None:
        if self._disposed:
            raise ReviewSurfaceError("review surface disposed")
        if isinstance(message, ShowDiffMessage):
            task = asyncio.get_running_loop().create_task(self._review(message.request))
            self._tasks.add(task)
            task.add_done_callback(self._review_done)
        elif isinstance(message, PreviewResultMessage):
            waiter = self._previews.pop(message.request_id, None)
            if waiter is not None and not waiter.done():
                waiter.set_result(message.preview_content)
            else:
                self.render_preview(message.request_id, message.preview_content)

    async def wait_idle(self) -> None:
        """Wait until every started review has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def dispose(self) -> None:
        self._disposed = True
        for task in list(self._tasks):
            task.cancel()
        for waiter in self._previews.values():
            waiter.cancel()
        self._previews.clear()

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def render_request(self, request: ApprovalRequest) -> None:
        diff = request.diff
        if diff.hunks:
            content = "\n\n".join(hunk_markup(hunk) for hunk in diff.hunks)
        else:
            content = "[dim](no changes)[/dim]"
        self.console.print(
            Panel(
                content,
                title=diff_title(diff),
                subtitle=escape(f"{request.kind.value} {request.id}"),
                border_style="blue",
            )
        )

    def render_preview(self, label: str, content: str, language: str = "text") -> None:
        self.console.print(
            Panel(
                Syntax(content, language, line_numbers=True),
                title=f"Preview Result: {escape(label)}",
                border_style="cyan",
            )
        )

    # ------------------------------------------------------------------ #
    # Review flow
    # ------------------------------------------------------------------ #

    async def _review(self, request: ApprovalRequest) -> None:
        async with self._lock:
            self.render_request(request)
            try:
                message = await self._decide(request)
            except (EOFError, KeyboardInterrupt):
                message = CancelRequestMessage(request_id=request.id)
            await self._emit(message)

    async def _decide(self, request: ApprovalRequest) -> BaseModel:
        while True:
            choice = await self._prompt(
                escape("[a]pprove all, [r]eject, [s]elect hunks, [p]review selection, [c]ancel"),
                ["a", "r", "s", "p", "c"],
                "a",
            )
            if choice == "a":
                return _response(request.id, approved=True)
            if choice == "r":
                reason = await self._prompt("Reason (optional)", None, "")
                return _response(request.id, approved=False, reject_reason=reason.strip() or None)
            if choice == "c":
                return CancelRequestMessage(request_id=request.id)

            selected = await self._select_hunks(request)
            if choice == "s":
                if not selected:
                    return _response(
                        request.id, approved=False, reject_reason=NO_HUNKS_SELECTED_REASON
                    )
                return _response(request.id, approved=True, approved_hunks=frozenset(selected))

            content = await self._request_preview(request.id, selected)
            if content is None:
                self.console.print("[yellow]Preview unavailable[/yellow]")
            else:
                self.render_preview(request.file_path, content, request.diff.language)

    async def _select_hunks(self, request: ApprovalRequest) -> list[str]:
        selected: list[str] = []
        for hunk in request.diff.hunks:
            answer = await self._prompt(f"Approve {hunk.id}?", ["y", "n"], "y")
            if answer == "y":
                selected.append(hunk.id)
        return selected

    async def _request_preview(self, request_id: str, hunk_ids: list[str]) -> str | None:
        waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._previews[request_id] = waiter
        await self._emit(
            RequestPreviewMessage(request_id=request_id, approved_hunks=frozenset(hunk_ids))
        )
        try:
            return await asyncio.wait_for(waiter, PREVIEW_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            return None
        finally:
            self._previews.pop(request_id, None)

    async def _prompt(self, prompt: str, choices: list[str] | None, default: str) -> str:
        return await asyncio.to_thread(self._ask, prompt, choices, default)

    async def _emit(self, message: BaseModel) -> None:
        if self._handler is None:
            raise ReviewSurfaceError("no gateway bound to this review surface")
        await self._handler(message)

    def _review_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Console review failed: %s", exc, exc_info=exc)


def _response(
    request_id: str,
    *,
    approved: bool,
    approved_hunks: frozenset[str] | None = None,
    reject_reason: str | None = None,
) -> ApprovalResponseMessage:
    return ApprovalResponseMessage(
        response=ApprovalResponse(
            request_id=request_id,
            approved=approved,
            approved_hunks=approved_hunks,
            reject_reason=reject_reason,
        )
    )
