"""Adapters that expose sync implementations through diffgate's async protocols."""

from .sync_to_async import (
    SyncAuditLoggerAdapter,
    SyncConfirmerAdapter,
    SyncDiffGeneratorAdapter,
)

__all__ = (
    "SyncAuditLoggerAdapter",
    "SyncConfirmerAdapter",
    "SyncDiffGeneratorAdapter",
)
