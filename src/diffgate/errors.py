"""Exception types for diffgate."""


class DiffGateError(Exception):
    """Base exception for all diffgate errors."""


class DiffGenerationError(DiffGateError):
    """Raised when a proposed write or edit cannot be turned into a diff."""


class HunkApplicationError(DiffGateError):
    """Raised when hunks cannot be applied to the original content."""


class ConfirmationError(DiffGateError):
    """Raised when the fallback confirmation prompt fails."""


class AuditLogError(DiffGateError):
    """Raised when audit logging fails."""


class ReviewSurfaceError(DiffGateError):
    """Raised when the review surface cannot deliver a message."""
