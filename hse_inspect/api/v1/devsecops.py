"""DevSecOps monitoring: audit trail, security events and the dashboard."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from hse_inspect.api.deps import AuditDep, SecurityEventServiceDep
from hse_inspect.api.v1.guard import guard
from hse_inspect.schemas.audit import AuditTrailResponse
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.security_event import (
    DashboardResponse,
    SecurityEventCreateRequest,
    SecurityEventResponse,
    SecurityEventsListResponse,
)
from hse_inspect.schemas.user import User
from hse_inspect.services.audit import query_audit_trail

router = APIRouter(responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}})


@router.get("/audit-trail", response_model=AuditTrailResponse)
def audit_trail(
    _user: Annotated[User, Depends(guard(Role.DEVSECOPS, Permission.VIEW_AUDIT_TRAIL))],
    audit: AuditDep,
    action: str | None = None,
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> AuditTrailResponse:
    """Audit log entries, newest first, filtered by action, actor and time window."""
    return query_audit_trail(
        audit.audit_logs,
        action=action,
        user_id=user_id,
        start=start_date,
        end=end_date,
        page=page,
        limit=limit,
    )


SecurityLogViewer = Annotated[User, Depends(guard(Role.DEVSECOPS, Permission.VIEW_SECURITY_LOGS))]


@router.get("/security-logs", response_model=SecurityEventsListResponse)
def list_security_events(
    _user: SecurityLogViewer,
    events: SecurityEventServiceDep,
    type: str | None = None,
    severity: str | None = None,
    resolved: bool | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> SecurityEventsListResponse:
    return events.list_events(
        type=type,
        severity=severity,
        resolved=resolved,
        start=start_date,
        end=end_date,
        page=page,
        limit=limit,
    )


@router.post(
    "/security-logs",
    response_model=SecurityEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_security_event(
    body: SecurityEventCreateRequest,
    user: SecurityLogViewer,
    events: SecurityEventServiceDep,
) -> SecurityEventResponse:
    return SecurityEventResponse(event=events.create_event(user, body))


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    _user: Annotated[User, Depends(guard(Role.DEVSECOPS, Permission.VIEW_DEVSECOPS_DASHBOARD))],
    events: SecurityEventServiceDep,
) -> DashboardResponse:
    return events.dashboard()
