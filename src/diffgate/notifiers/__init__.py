"""Notifiers package - fallback confirmation mechanisms."""

from .async_confirmers import ImmediateAsyncConfirmer
from .interactive import InteractiveConfirmer

__all__ = [
    "ImmediateAsyncConfirmer",
    "InteractiveConfirmer",
]
