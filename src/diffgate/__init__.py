"""diffgate public API."""

from .adapters import SyncAuditLoggerAdapter, SyncConfirmerAdapter, SyncDiffGeneratorAdapter
from .config import GatewaySettings
from .diffing import DiffGenerator, apply_hunks, resolve_content
from .errors import (
    AuditLogError,
    ConfirmationError,
    DiffGateError,
    DiffGenerationError,
    HunkApplicationError,
    ReviewSurfaceError,
)
from .gateway import ApprovalGateway, PendingApproval
from .loggers import JsonlAuditLogger
from .notifiers import ImmediateAsyncConfirmer, InteractiveConfirmer
from .protocols import AsyncAuditLogger, AsyncConfirmer, AsyncDiffGenerator, ReviewSurface
from .surfaces import ConsoleReviewSurface, QueueReviewSurface
from .types import (
    CANCELLED_REASON,
    FALLBACK_REQUEST_ID,
    ApprovalRequest,
    ApprovalResponse,
    AuditEntry,
    DiffHunk,
    EditOperation,
    FileDiff,
    RequestKind,
)

__all__ = (
    # Gateway
    "ApprovalGateway",
    "PendingApproval",
    "GatewaySettings",
    # Types
    "ApprovalRequest",
    "ApprovalResponse",
    "AuditEntry",
    "DiffHunk",
    "EditOperation",
    "FileDiff",
    "RequestKind",
    "CANCELLED_REASON",
    "FALLBACK_REQUEST_ID",
    # Diffing
    "DiffGenerator",
    "apply_hunks",
    "resolve_content",
    # Surfaces
    "ConsoleReviewSurface",
    "QueueReviewSurface",
    # Confirmers and audit
    "ImmediateAsyncConfirmer",
    "InteractiveConfirmer",
    "JsonlAuditLogger",
    # Protocols and adapters
    "AsyncAuditLogger",
    "AsyncConfirmer",
    "AsyncDiffGenerator",
    "ReviewSurface",
    "SyncAuditLoggerAdapter",
    "SyncConfirmerAdapter",
    "SyncDiffGeneratorAdapter",
    # Errors
    "DiffGateError",
    "DiffGenerationError",
    "HunkApplicationError",
    "ConfirmationError",
    "AuditLogError",
    "ReviewSurfaceError",
)
