"""QueueReviewSurface demo.

This example shows the gateway driven over its message channel:
- The agent proposes a write and awaits the decision
- A simulated reviewer reads the showDiff, previews one hunk, then approves it
- The agent writes only the approved hunks
"""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from diffgate import (
    ApprovalGateway,
    DiffGenerator,
    ImmediateAsyncConfirmer,
    JsonlAuditLogger,
    QueueReviewSurface,
    SyncAuditLoggerAdapter,
    SyncDiffGeneratorAdapter,
    resolve_content,
)
from diffgate.types import PreviewResultMessage


async def simulate_reviewer(surface: QueueReviewSurface, *, delay_s: float) -> None:
    shown = await surface.next_request()
    request = shown.request
    print(f"[reviewer] {request.kind.value} {request.file_path}: {len(request.diff.hunks)} hunk(s)")

    first = request.diff.hunks[0].id
    await surface.request_preview(request.id, [first])
    preview = await surface.next_message()
    if isinstance(preview, PreviewResultMessage):
        print(f"[reviewer] preview with {first} only:\n{preview.preview_content}")

    await asyncio.sleep(delay_s)
    await surface.approve(request.id, [first])
    print(f"[reviewer] approved {first} of request {request.id}")


async def main() -> None:
    workspace = Path(tempfile.mkdtemp(prefix="diffgate_demo_"))
    target = workspace / "settings.py"
    target.write_text("DEBUG = False\nWORKERS = 4\nTIMEOUT = 30\n", encoding="utf-8")
    audit_path = workspace / "audit.jsonl"

    surface = QueueReviewSurface()
    gateway = ApprovalGateway(
        surface=surface,
        diff_generator=SyncDiffGeneratorAdapter(DiffGenerator(workspace)),
        confirmer=ImmediateAsyncConfirmer(choice="reject"),
        audit_logger=SyncAuditLoggerAdapter(JsonlAuditLogger(audit_path)),
    )

    proposed = "DEBUG = True\nWORKERS = 4\nTIMEOUT = 120\n"
    reviewer = asyncio.create_task(simulate_reviewer(surface, delay_s=0.5))
    try:
        response = await gateway.request_write_approval("settings.py", proposed)
    finally:
        await reviewer
        gateway.dispose()

    diff = DiffGenerator(workspace).generate_write_diff("settings.py", proposed)
    content = resolve_content(diff, response)
    if content is None:
        print(f"Rejected: {response.reject_reason}")
        return
    target.write_text(content, encoding="utf-8")
    print(f"Written:\n{content}")
    print(f"Audit: {audit_path}")


if __name__ == "__main__":
    asyncio.run(main())
