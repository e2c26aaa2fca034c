"""Pydantic request/response schemas."""

from hse_inspect.schemas.audit import AccessLogEntry, AuditLogEntry, AuditTrailResponse
from hse_inspect.schemas.auth import CurrentUserResponse, LoginRequest, LoginResponse, LogoutResponse
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.form import FormCreateRequest, FormTemplate, FormUpdateRequest
from hse_inspect.schemas.health import HealthResponse
from hse_inspect.schemas.inspection import (
    Inspection,
    InspectionCreateRequest,
    InspectionUpdateRequest,
)
from hse_inspect.schemas.notification import (
    NotificationCreateRequest,
    NotificationSchedule,
    NotificationUpdateRequest,
)
from hse_inspect.schemas.permissions import PERMISSIONS_VERSION, Permission, Role
from hse_inspect.schemas.security_event import (
    DashboardResponse,
    SecurityEvent,
    SecurityEventCreateRequest,
)
from hse_inspect.schemas.user import (
    PinResetRecord,
    PublicUser,
    User,
    UserCreateRequest,
    UserUpdateRequest,
)

__all__ = [
    "AccessLogEntry",
    "AuditLogEntry",
    "AuditTrailResponse",
    "CurrentUserResponse",
    "DashboardResponse",
    "ErrorResponse",
    "FormCreateRequest",
    "FormTemplate",
    "FormUpdateRequest",
    "HealthResponse",
    "Inspection",
    "InspectionCreateRequest",
    "InspectionUpdateRequest",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "NotificationCreateRequest",
    "NotificationSchedule",
    "NotificationUpdateRequest",
    "PERMISSIONS_VERSION",
    "Permission",
    "PinResetRecord",
    "PublicUser",
    "Role",
    "SecurityEvent",
    "SecurityEventCreateRequest",
    "User",
    "UserCreateRequest",
    "UserUpdateRequest",
]
