"""Shared Pydantic data models for the operator relay."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# --- Enums ---


class AuditEventType(str, Enum):
    UPDATE_FORWARDED = "update_forwarded"
    REPLY_ROUTED = "reply_routed"
    CONTACT_SHARED = "contact_shared"
    CORRELATION_FAILURE = "correlation_failure"
    TRANSPORT_FAILURE = "transport_failure"
    DUPLICATE_UPDATE = "duplicate_update"
    PROCESSING_ERROR = "processing_error"


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    user_id: str | None = None
    update_id: int | None = None
    action: str
    result: str  # "success" | "failure" | "skipped"
    details: dict[str, object] | None = None
