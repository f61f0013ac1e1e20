"""Typed models for diffgate.

Wire-facing models serialize with camelCase keys (``requestId``, ``approvedHunks``)
so they can be handed to a review surface as-is; Python code uses snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import json
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import (
    BaseModel,
    Field,
    TypeAdapter,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

FALLBACK_REQUEST_ID = "fallback"
CANCELLED_REASON = "Cancelled by user"
FALLBACK_REJECTED_REASON = "Rejected via fallback dialog"
FALLBACK_FAILED_REASON = "Fallback confirmation failed"
DISPOSED_REASON = "Approval gateway disposed"

_WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError("timestamp must be timezone-aware")
    return value


class RequestKind(str, Enum):
    """Kind of file mutation awaiting approval."""

    WRITE = "write"
    EDIT = "edit"


class EditOperation(BaseModel):
    """Replace the first occurrence of ``old_string`` with ``new_string``."""

    model_config = {"frozen": True}

    old_string: str
    new_string: str


class DiffHunk(BaseModel):
    """A contiguous block of changed lines.

    Line numbers follow unified-diff convention: 1-based, and for an empty range
    the start is the line after which the change sits (0 means top of file).
    """

    model_config = _WIRE_CONFIG

    id: str
    kind: Literal["addition", "deletion", "modification"] = Field(alias="type")
    old_start: int = Field(ge=0)
    old_lines: int = Field(ge=0)
    new_start: int = Field(ge=0)
    new_lines: int = Field(ge=0)
    old_content: tuple[str, ...] = ()
    new_content: tuple[str, ...] = ()

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("hunk id must be a non-empty string")
        return value

    @model_validator(mode="after")
    def _line_counts_match(self) -> "DiffHunk":
        if self.old_lines != len(self.old_content):
            raise ValueError("old_lines must equal len(old_content)")
        if self.new_lines != len(self.new_content):
            raise ValueError("new_lines must equal len(new_content)")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def additions(self) -> int:
        return self.new_lines

    @computed_field  # type: ignore[prop-decorator]
    @property
    def deletions(self) -> int:
        return self.old_lines

    @property
    def old_offset(self) -> int:
        """0-based index of the first old line this hunk replaces."""
        if self.old_lines == 0:
            return self.old_start
        return self.old_start - 1


class FileDiff(BaseModel):
    """Structured diff of one file. Immutable once produced."""

    model_config = _WIRE_CONFIG

    file_path: str
    old_content: str
    new_content: str
    hunks: tuple[DiffHunk, ...] = ()
    is_new_file: bool = False
    is_deleted_file: bool = False
    language: str = "text"

    @model_validator(mode="after")
    def _hunk_ids_unique(self) -> "FileDiff":
        ids = [hunk.id for hunk in self.hunks]
        if len(ids) != len(set(ids)):
            raise ValueError("hunk ids must be unique within a diff")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def additions(self) -> int:
        return sum(hunk.additions for hunk in self.hunks)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def deletions(self) -> int:
        return sum(hunk.deletions for hunk in self.hunks)

    @property
    def hunk_ids(self) -> frozenset[str]:
        return frozenset(hunk.id for hunk in self.hunks)

    def get_hunk(self, hunk_id: str) -> DiffHunk | None:
        for hunk in self.hunks:
            if hunk.id == hunk_id:
                return hunk
        return None


class ApprovalRequest(BaseModel):
    """A proposed file mutation awaiting a single human decision."""

    model_config = _WIRE_CONFIG

    id: str
    kind: RequestKind = Field(alias="type")
    file_path: str
    diff: FileDiff
    original_input: dict[str, Any] = Field(default_factory=dict, exclude=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="timestamp"
    )

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("request id must be a non-empty string")
        return value

    @field_validator("created_at")
    @classmethod
    def _created_at_aware(cls, value: datetime) -> datetime:
        return _require_aware(value)


class ApprovalResponse(BaseModel):
    """The single terminal decision delivered to the caller."""

    model_config = _WIRE_CONFIG

    request_id: str
    approved: bool
    approved_hunks: frozenset[str] | None = None
    reject_reason: str | None = None

    @field_serializer("approved_hunks")
    def _serialize_hunks(self, value: frozenset[str] | None) -> list[str] | None:
        if value is None:
            return None
        return sorted(value)

    @property
    def is_fallback(self) -> bool:
        return self.request_id == FALLBACK_REQUEST_ID

    @property
    def is_partial(self) -> bool:
        return self.approved and self.approved_hunks is not None


# -------- Review surface messages --------


class ShowDiffMessage(BaseModel):
    model_config = _WIRE_CONFIG

    type: Literal["showDiff"] = "showDiff"
    request: ApprovalRequest


class PreviewResultMessage(BaseModel):
    model_config = _WIRE_CONFIG

    type: Literal["previewResult"] = "previewResult"
    request_id: str
    preview_content: str


class ApprovalResponseMessage(BaseModel):
    model_config = _WIRE_CONFIG

    type: Literal["approvalResponse"] = "approvalResponse"
    response: ApprovalResponse


class RequestPreviewMessage(BaseModel):
    model_config = _WIRE_CONFIG

    type: Literal["requestPreview"] = "requestPreview"
    request_id: str
    approved_hunks: frozenset[str] = frozenset()


class CancelRequestMessage(BaseModel):
    model_config = _WIRE_CONFIG

    type: Literal["cancelRequest"] = "cancelRequest"
    request_id: str


class ReadyMessage(BaseModel):
    model_config = _WIRE_CONFIG

    type: Literal["ready"] = "ready"


OutboundMessage = Union[ShowDiffMessage, PreviewResultMessage]

InboundMessage = Annotated[
    Union[
        ApprovalResponseMessage,
        RequestPreviewMessage,
        CancelRequestMessage,
        ReadyMessage,
    ],
    Field(discriminator="type"),
]

_INBOUND_ADAPTER: TypeAdapter[Any] = TypeAdapter(InboundMessage)


def parse_inbound_message(raw: BaseModel | Mapping[str, Any]) -> InboundMessage:
    """Validate a surface -> gateway message. Raises pydantic.ValidationError."""
    if isinstance(
        raw,
        (ApprovalResponseMessage, RequestPreviewMessage, CancelRequestMessage, ReadyMessage),
    ):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)
    return _INBOUND_ADAPTER.validate_python(raw)


def to_wire(message: BaseModel) -> dict[str, Any]:
    """Render a message as a JSON-compatible dict with camelCase keys."""
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


# -------- Audit --------


class AuditEntry(BaseModel):
    """Audit record of one terminal approval decision."""

    timestamp: datetime
    request_id: str
    kind: RequestKind
    file_path: str
    outcome: Literal["approved", "partially_approved", "rejected", "cancelled"]
    approved_hunks: list[str] | None = None
    hunk_count: int = 0
    reject_reason: str | None = None
    fallback: bool = False
    error: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_timezone_aware(cls, value: datetime) -> datetime:
        return _require_aware(value)

    @field_validator("error", mode="before")
    @classmethod
    def _truncate_error(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if len(value) > 200:
            return value[:197] + "..."
        return value

    def to_json_line(self) -> str:
        """Render the entry as a single JSON line."""
        return json.dumps(self.model_dump(mode="json", exclude_none=True))
