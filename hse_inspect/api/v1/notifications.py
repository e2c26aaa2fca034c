"""Admin notification schedules (admin role with canSetNotifications)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from hse_inspect.api.deps import NotificationServiceDep
from hse_inspect.api.v1.guard import guard
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.notification import (
    NotificationCreateRequest,
    NotificationResponse,
    NotificationsListResponse,
    NotificationUpdateRequest,
)
from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.user import User

router = APIRouter(responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}})

NotificationAdmin = Annotated[User, Depends(guard(Role.ADMIN, Permission.SET_NOTIFICATIONS))]


@router.get("", response_model=NotificationsListResponse)
def list_notifications(
    _admin: NotificationAdmin, notifications: NotificationServiceDep
) -> NotificationsListResponse:
    return notifications.list_notifications()


@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_notification(
    body: NotificationCreateRequest,
    admin: NotificationAdmin,
    notifications: NotificationServiceDep,
) -> NotificationResponse:
    schedule = notifications.create_notification(admin, body)
    return NotificationResponse(notification=schedule, message="Notification scheduled successfully")


@router.put(
    "/{notification_id}",
    response_model=NotificationResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_notification(
    notification_id: str,
    body: NotificationUpdateRequest,
    admin: NotificationAdmin,
    notifications: NotificationServiceDep,
) -> NotificationResponse:
    schedule = notifications.update_notification(admin, notification_id, body)
    return NotificationResponse(notification=schedule, message="Notification updated successfully")


@router.delete(
    "/{notification_id}",
    response_model=NotificationResponse,
    responses={404: {"model": ErrorResponse}},
)
def delete_notification(
    notification_id: str,
    admin: NotificationAdmin,
    notifications: NotificationServiceDep,
) -> NotificationResponse:
    schedule = notifications.delete_notification(admin, notification_id)
    return NotificationResponse(notification=schedule, message="Notification deleted successfully")
