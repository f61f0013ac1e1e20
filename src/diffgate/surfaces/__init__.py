"""Review surfaces: where diffs are shown and decisions are made."""

from .console import ConsoleReviewSurface
from .queue import QueueReviewSurface

__all__ = ["ConsoleReviewSurface", "QueueReviewSurface"]
