"""Security events for the DevSecOps role: recording, listing and the dashboard summary."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from hse_inspect.core.errors import ValidationFailedError
from hse_inspect.schemas.security_event import (
    SECURITY_EVENT_TYPES,
    SECURITY_SEVERITIES,
    DashboardResponse,
    DashboardSummary,
    SecurityEvent,
    SecurityEventCreateRequest,
    SecurityEventsListResponse,
)
from hse_inspect.schemas.user import User
from hse_inspect.services import audit as audit_actions
from hse_inspect.services.audit import (
    AuditService,
    as_utc,
    newest_first,
    paginate,
    parse_timestamp,
)
from hse_inspect.store.base import KeyValueStore
from hse_inspect.store.repositories import SecurityEventRepository, UserRepository

# Score deductions per open issue; the score is clamped to 0..100.
SCORE_PER_CRITICAL_EVENT = 10
SCORE_PER_UNRESOLVED_EVENT = 2
SCORE_PER_FAILED_LOGIN = 0.5
SCORE_PER_SYSTEM_ERROR = 1
SCORE_PER_DATA_BREACH = 20

RECENT_EVENTS_LIMIT = 20
CRITICAL_EVENTS_LIMIT = 10
RECENT_UPDATES_LIMIT = 10

_NEVER = datetime.min.replace(tzinfo=UTC)


def calculate_security_score(
    *,
    critical_events: int,
    unresolved_events: int,
    failed_logins: int,
    system_errors: int,
    data_breaches: int,
) -> float:
    score = (
        100
        - critical_events * SCORE_PER_CRITICAL_EVENT
        - unresolved_events * SCORE_PER_UNRESOLVED_EVENT
        - failed_logins * SCORE_PER_FAILED_LOGIN
        - system_errors * SCORE_PER_SYSTEM_ERROR
        - data_breaches * SCORE_PER_DATA_BREACH
    )
    return max(0.0, min(100.0, float(score)))


class SecurityEventService:
    def __init__(self, store: KeyValueStore, audit: AuditService) -> None:
        self.events = SecurityEventRepository(store)
        self.users = UserRepository(store)
        self.audit = audit

    def create_event(self, actor: User, body: SecurityEventCreateRequest) -> SecurityEvent:
        if body.type not in SECURITY_EVENT_TYPES:
            raise ValidationFailedError("Invalid type", valid_types=list(SECURITY_EVENT_TYPES))
        if body.severity not in SECURITY_SEVERITIES:
            raise ValidationFailedError(
                "Invalid severity", valid_types=list(SECURITY_SEVERITIES)
            )
        event = SecurityEvent(
            id=str(uuid4()),
            type=body.type,
            severity=body.severity,
            title=body.title,
            description=body.description,
            timestamp=datetime.now(UTC).isoformat(),
            affected_user=body.affected_user,
            affected_resource=body.affected_resource,
            ip_address=body.ip_address,
            resolved=False,
        )
        self.events.add(event)
        self.audit.record(
            audit_actions.SECURITY_EVENT_CREATED,
            actor=actor,
            details={
                "event_id": event.id,
                "type": event.type,
                "severity": event.severity,
                "title": event.title,
            },
        )
        return event

    def list_events(
        self,
        *,
        type: str | None = None,
        severity: str | None = None,
        resolved: bool | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> SecurityEventsListResponse:
        events = self.events.list_all()
        if type:
            events = [e for e in events if e.type == type]
        if severity:
            events = [e for e in events if e.severity == severity]
        if resolved is not None:
            events = [e for e in events if e.resolved == resolved]
        if start is not None or end is not None:
            start = as_utc(start) if start is not None else None
            end = as_utc(end) if end is not None else None
            windowed = []
            for e in events:
                ts = parse_timestamp(e.timestamp)
                if ts is None:
                    continue
                if (start is None or ts >= start) and (end is None or ts <= end):
                    windowed.append(e)
            events = windowed
        events.sort(key=lambda e: e.timestamp, reverse=True)
        page_events, total_pages = paginate(events, page, limit)
        return SecurityEventsListResponse(
            events=page_events,
            total=len(events),
            page=page,
            total_pages=total_pages,
        )

    def dashboard(self, now: datetime | None = None) -> DashboardResponse:
        """Counts over the last 24 hours (events, access, failed logins) and 7 days (audit activity)."""
        now = now or datetime.now(UTC)
        last_24h = now - timedelta(hours=24)
        last_7d = now - timedelta(days=7)

        def since(entries: list[dict[str, Any]], cutoff: datetime) -> list[dict[str, Any]]:
            out = []
            for entry in entries:
                ts = parse_timestamp(entry.get("timestamp")) if isinstance(entry, dict) else None
                if ts is not None and ts >= cutoff:
                    out.append(entry)
            return out

        events = self.events.list_all()
        recent_events = [
            e for e in events if (parse_timestamp(e.timestamp) or _NEVER) >= last_24h
        ]
        unresolved = [e for e in events if not e.resolved]
        critical = [e for e in unresolved if e.severity == "critical"]

        recent_access = since(self.audit.access_logs.list_all(), last_24h)
        audit_entries = self.audit.audit_logs.list_all()
        recent_audit = since(audit_entries, last_7d)
        failed_logins = sum(
            1 for e in since(audit_entries, last_24h) if e.get("action") == audit_actions.LOGIN_FAILED
        )

        active_users = len({e.get("user_id") for e in recent_access})
        system_errors = sum(1 for e in recent_events if e.type == "error")
        data_breaches = sum(1 for e in events if e.type == "data_breach")

        return DashboardResponse(
            summary=DashboardSummary(
                security_score=calculate_security_score(
                    critical_events=len(critical),
                    unresolved_events=len(unresolved),
                    failed_logins=failed_logins,
                    system_errors=system_errors,
                    data_breaches=data_breaches,
                ),
                active_users=active_users,
                system_errors=system_errors,
                unresolved_events=len(unresolved),
                critical_events=len(critical),
                data_breaches=data_breaches,
                failed_logins=failed_logins,
            ),
            recent_security_events=recent_events[:RECENT_EVENTS_LIMIT],
            critical_events=critical[:CRITICAL_EVENTS_LIMIT],
            recent_updates=newest_first(recent_audit)[:RECENT_UPDATES_LIMIT],
            total_users=len(self.users.list_all()),
            access_logs_last_24h=len(recent_access),
            audit_logs_last_7d=len(recent_audit),
        )
