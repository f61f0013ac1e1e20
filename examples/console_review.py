"""Interactive review in the terminal.

Proposes an edit to a scratch file and asks you to approve all, reject, pick
hunks or preview a pick. Falls back to a plain approve/reject prompt when the
edit cannot be diffed (set DEMO_BROKEN_EDIT=1 to see it).
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from diffgate import (
    ApprovalGateway,
    ConsoleReviewSurface,
    GatewaySettings,
    InteractiveConfirmer,
    SyncConfirmerAdapter,
)


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    workspace = Path(tempfile.mkdtemp(prefix="diffgate_console_"))
    (workspace / "greet.py").write_text(
        'def greet(name):\n    print("hello " + name)\n\n\ngreet("world")\n',
        encoding="utf-8",
    )

    surface = ConsoleReviewSurface()
    gateway = ApprovalGateway.from_settings(
        GatewaySettings(workspace_root=workspace),
        surface=surface,
        confirmer=SyncConfirmerAdapter(InteractiveConfirmer(surface.console)),
    )

    old = "does not exist" if os.getenv("DEMO_BROKEN_EDIT") == "1" else 'print("hello " + name)'
    edits = [
        {"old_string": old, "new_string": 'print(f"hello {name}")'},
        {"old_string": 'greet("world")', "new_string": 'greet("diffgate")'},
    ]
    try:
        response = await gateway.request_edit_approval("greet.py", edits)
    finally:
        gateway.dispose()

    print(f"approved={response.approved} hunks={response.approved_hunks} reason={response.reject_reason}")


if __name__ == "__main__":
    asyncio.run(main())
