"""Request-scoped dependencies: the store, settings and services, read from app.state."""

from typing import Annotated

from fastapi import Depends, Request

from hse_inspect.core.config import Settings
from hse_inspect.services.audit import AuditService
from hse_inspect.services.auth import AuthService
from hse_inspect.services.forms import FormService
from hse_inspect.services.inspections import InspectionService
from hse_inspect.services.notifications import NotificationService
from hse_inspect.services.security_events import SecurityEventService
from hse_inspect.services.users import UserService
from hse_inspect.store.base import KeyValueStore


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


StoreDep = Annotated[KeyValueStore, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_audit_service(store: StoreDep, settings: SettingsDep) -> AuditService:
    return AuditService(store, settings)


AuditDep = Annotated[AuditService, Depends(get_audit_service)]


def get_auth_service(store: StoreDep, settings: SettingsDep, audit: AuditDep) -> AuthService:
    return AuthService(store, settings, audit)


def get_user_service(store: StoreDep, settings: SettingsDep, audit: AuditDep) -> UserService:
    return UserService(store, settings, audit)


def get_notification_service(store: StoreDep, audit: AuditDep) -> NotificationService:
    return NotificationService(store, audit)


def get_security_event_service(store: StoreDep, audit: AuditDep) -> SecurityEventService:
    return SecurityEventService(store, audit)


def get_form_service(store: StoreDep, audit: AuditDep) -> FormService:
    return FormService(store, audit)


def get_inspection_service(store: StoreDep, audit: AuditDep) -> InspectionService:
    return InspectionService(store, audit)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
SecurityEventServiceDep = Annotated[SecurityEventService, Depends(get_security_event_service)]
FormServiceDep = Annotated[FormService, Depends(get_form_service)]
InspectionServiceDep = Annotated[InspectionService, Depends(get_inspection_service)]
