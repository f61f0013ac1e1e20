"""Interactive fallback confirmation for diffgate."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from ..errors import ConfirmationError
from ..protocols import ConfirmChoice


class InteractiveConfirmer:
    """Terminal approve/reject prompt using rich.

    Used when no diff could be produced. Wrap with ``SyncConfirmerAdapter``
    to use it from the gateway.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def confirm(self, message: str) -> ConfirmChoice | None:
        """Ask the reviewer to approve or reject. Empty answer means dismissed."""
        try:
            self.console.print(
                Panel(
                    escape(message),
                    title="[yellow]Approval Required[/yellow]",
                    border_style="yellow",
                )
            )
            answer = Prompt.ask(
                "Approve or reject? (approve/reject, Enter to dismiss)",
                choices=["approve", "reject", ""],
                default="",
                show_choices=False,
                show_default=False,
                console=self.console,
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise ConfirmationError("Confirmation prompt interrupted") from e
        except Exception as e:
            raise ConfirmationError(f"Confirmation prompt failed: {e}") from e
        if answer == "approve":
            return "approve"
        if answer == "reject":
            return "reject"
        return None
