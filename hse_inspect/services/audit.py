"""Audit and access log sink: append with bounded retention, and the audit-trail query."""

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fastapi import Request

from hse_inspect.schemas.audit import AccessLogEntry, AuditLogEntry, AuditTrailResponse
from hse_inspect.schemas.user import User
from hse_inspect.store.base import KeyValueStore
from hse_inspect.store.repositories import AccessLogRepository, AuditLogRepository

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings

logger = logging.getLogger(__name__)

_EPOCH_MIN = datetime.min.replace(tzinfo=UTC)

# Audit action tags.
LOGIN_SUCCESS = "LOGIN_SUCCESS"
LOGIN_FAILED = "LOGIN_FAILED"
LOGOUT = "LOGOUT"
USER_CREATED = "USER_CREATED"
USER_UPDATED = "USER_UPDATED"
USER_DEACTIVATED = "USER_DEACTIVATED"
PIN_RESET = "PIN_RESET"
SECURITY_EVENT_CREATED = "SECURITY_EVENT_CREATED"
NOTIFICATION_SCHEDULED = "NOTIFICATION_SCHEDULED"
NOTIFICATION_UPDATED = "NOTIFICATION_UPDATED"
NOTIFICATION_DELETED = "NOTIFICATION_DELETED"
FORM_CREATED = "FORM_CREATED"
FORM_UPDATED = "FORM_UPDATED"
FORM_DELETED = "FORM_DELETED"
INSPECTION_CREATED = "INSPECTION_CREATED"
INSPECTION_UPDATED = "INSPECTION_UPDATED"
INSPECTION_DELETED = "INSPECTION_DELETED"


class AuditService:
    """Write side of the audit and access logs. Both writes complete before the response is sent."""

    def __init__(self, store: KeyValueStore, settings: "Settings") -> None:
        self.audit_logs = AuditLogRepository(store, settings.AUDIT_LOG_MAX_ENTRIES)
        self.access_logs = AccessLogRepository(store, settings.ACCESS_LOG_MAX_ENTRIES)

    def log_event(self, entry: AuditLogEntry | Mapping[str, Any]) -> None:
        """Append an audit entry as given; the caller is responsible for its completeness."""
        trimmed = self.audit_logs.append(entry)
        if trimmed:
            logger.debug("Audit log trimmed by %s entries", trimmed)

    def record(
        self,
        action: str,
        actor: User | None = None,
        target: User | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Build and append an entry from the acting and target users."""
        self.log_event(
            AuditLogEntry(
                action=action,
                performed_by=actor.id if actor else None,
                performed_by_name=actor.name if actor else None,
                target_user_id=target.id if target else None,
                target_user_name=target.name if target else None,
                details=details,
            )
        )

    def record_access(self, user: User, request: Request) -> None:
        """Append one access-log entry for a call that passed the guard."""
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        self.access_logs.append(
            AccessLogEntry(
                user_id=user.id,
                user_name=user.name,
                role=user.role.value,
                method=request.method,
                path=path,
                ip=client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )
        )


def client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO timestamp from a stored entry; None when absent or malformed."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return as_utc(parsed)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def newest_first(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort by timestamp descending; entries without a parseable timestamp go last."""
    return sorted(
        entries,
        key=lambda e: parse_timestamp(e.get("timestamp")) or _EPOCH_MIN,
        reverse=True,
    )


def paginate(items: list, page: int, limit: int) -> tuple[list, int]:
    """Return the page slice and total page count (1-based pages)."""
    start = (page - 1) * limit
    return items[start : start + limit], math.ceil(len(items) / limit) if items else 0


def query_audit_trail(
    audit_logs: AuditLogRepository,
    *,
    action: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int = 100,
) -> AuditTrailResponse:
    """Filter the audit log and return one page, newest first."""
    entries = audit_logs.list_all()
    filtered = [e for e in entries if isinstance(e, dict)]
    if action:
        filtered = [e for e in filtered if e.get("action") == action]
    if user_id:
        filtered = [e for e in filtered if e.get("performed_by") == user_id]
    start = as_utc(start) if start is not None else None
    end = as_utc(end) if end is not None else None
    if start is not None or end is not None:
        windowed = []
        for e in filtered:
            ts = parse_timestamp(e.get("timestamp"))
            if ts is None:
                continue
            if start is not None and ts < start:
                continue
            if end is not None and ts > end:
                continue
            windowed.append(e)
        filtered = windowed

    ordered = newest_first(filtered)
    logs, total_pages = paginate(ordered, page, limit)
    available_actions = sorted(
        {e["action"] for e in entries if isinstance(e, dict) and isinstance(e.get("action"), str)}
    )
    return AuditTrailResponse(
        logs=logs,
        total=len(ordered),
        page=page,
        total_pages=total_pages,
        available_actions=available_actions,
    )
