"""Configuration for diffgate."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

ENV_WORKSPACE_ROOT = "DIFFGATE_WORKSPACE_ROOT"
ENV_AUDIT_LOG = "DIFFGATE_AUDIT_LOG"
ENV_LOG_LEVEL = "DIFFGATE_LOG_LEVEL"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class GatewaySettings(BaseModel):
    """Settings used to wire an ApprovalGateway with its default collaborators."""

    model_config = {"frozen": True}

    workspace_root: Path = Field(default_factory=Path.cwd)
    audit_log_path: Path | None = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """Load settings from DIFFGATE_* environment variables."""
        workspace_root = os.getenv(ENV_WORKSPACE_ROOT)
        audit_log = os.getenv(ENV_AUDIT_LOG)
        return cls(
            workspace_root=Path(workspace_root) if workspace_root else Path.cwd(),
            audit_log_path=Path(audit_log) if audit_log else None,
            log_level=os.getenv(ENV_LOG_LEVEL, "INFO"),
        )
