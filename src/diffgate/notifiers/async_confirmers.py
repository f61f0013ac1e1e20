"""Native async confirmers for diffgate."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..protocols import ConfirmChoice


@dataclass
class ImmediateAsyncConfirmer:
    """Async confirmer that answers immediately. For tests and non-interactive runs.

    Usage:
        confirmer = ImmediateAsyncConfirmer(choice="reject")
        gateway = ApprovalGateway(confirmer=confirmer, ...)
    """

    choice: ConfirmChoice | None = "reject"
    prompts: list[str] = field(default_factory=list)

    async def confirm(self, message: str) -> ConfirmChoice | None:
        """Record the prompt and return the configured choice."""
        self.prompts.append(message)
        return self.choice
