"""Schemas for the append-only audit and access logs."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditLogEntry(BaseModel):
    """Who did what to whom. action is an uppercase verb-noun tag such as USER_CREATED."""

    model_config = {"extra": "allow"}

    action: str
    performed_by: str | None = None
    performed_by_name: str | None = None
    target_user_id: str | None = None
    target_user_name: str | None = None
    details: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=utc_now_iso)


class AccessLogEntry(BaseModel):
    """One authorized API call that passed the guard."""

    user_id: str
    user_name: str
    role: str
    method: str
    path: str
    timestamp: str = Field(default_factory=utc_now_iso)
    ip: str | None = None
    user_agent: str | None = None


class AuditTrailResponse(BaseModel):
    """Response for GET /devsecops/audit-trail (newest first)."""

    logs: list[dict[str, Any]]
    total: int
    page: int
    total_pages: int
    available_actions: list[str]
