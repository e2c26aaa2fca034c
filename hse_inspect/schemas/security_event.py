"""Schemas for security events and the DevSecOps dashboard."""

from typing import Any, Literal

from pydantic import BaseModel, Field

SecurityEventType = Literal["error", "data_breach", "update", "access_violation", "suspicious_activity"]
SecuritySeverity = Literal["low", "medium", "high", "critical"]

SECURITY_EVENT_TYPES: tuple[str, ...] = (
    "error",
    "data_breach",
    "update",
    "access_violation",
    "suspicious_activity",
)
SECURITY_SEVERITIES: tuple[str, ...] = ("low", "medium", "high", "critical")


class SecurityEvent(BaseModel):
    id: str
    type: SecurityEventType
    severity: SecuritySeverity
    title: str
    description: str
    timestamp: str
    affected_user: str | None = None
    affected_resource: str | None = None
    ip_address: str | None = None
    resolved: bool = False
    resolved_at: str | None = None
    resolved_by: str | None = None


class SecurityEventCreateRequest(BaseModel):
    """Body for POST /devsecops/security-logs. type and severity are checked by the service."""

    type: str = Field(..., min_length=1)
    severity: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    affected_user: str | None = None
    affected_resource: str | None = None
    ip_address: str | None = None


class SecurityEventResponse(BaseModel):
    event: SecurityEvent
    message: str = "Security event created successfully"


class SecurityEventsListResponse(BaseModel):
    events: list[SecurityEvent]
    total: int
    page: int
    total_pages: int


class DashboardSummary(BaseModel):
    security_score: float
    active_users: int
    system_errors: int
    unresolved_events: int
    critical_events: int
    data_breaches: int
    failed_logins: int


class DashboardResponse(BaseModel):
    """Response for GET /devsecops/dashboard."""

    summary: DashboardSummary
    recent_security_events: list[SecurityEvent]
    critical_events: list[SecurityEvent]
    recent_updates: list[dict[str, Any]]
    total_users: int
    access_logs_last_24h: int
    audit_logs_last_7d: int
