"""Schemas for admin-managed notification schedules."""

from typing import Literal

from pydantic import BaseModel, Field

NOTIFICATION_TYPES: tuple[str, ...] = ("email", "push", "both")
NOTIFICATION_RECIPIENTS: tuple[str, ...] = ("all", "inspectors", "specific")
NOTIFICATION_FREQUENCIES: tuple[str, ...] = ("once", "daily", "weekly", "monthly")


class NotificationSchedule(BaseModel):
    id: str
    title: str
    message: str
    type: Literal["email", "push", "both"]
    recipients: Literal["all", "inspectors", "specific"]
    specific_recipients: list[str] | None = None
    frequency: Literal["once", "daily", "weekly", "monthly"]
    schedule_date: str | None = None
    scheduled_day: int | None = None
    is_active: bool = True
    created_by: str
    created_at: str
    last_sent: str | None = None
    next_scheduled: str | None = None


class NotificationCreateRequest(BaseModel):
    """Enumerated fields are plain strings here so the service can answer with the valid choices."""

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: str
    recipients: str
    specific_recipients: list[str] | None = None
    frequency: str
    schedule_date: str | None = None
    scheduled_day: int | None = Field(default=None, ge=0, le=31)


class NotificationUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    message: str | None = Field(default=None, min_length=1)
    type: str | None = None
    recipients: str | None = None
    specific_recipients: list[str] | None = None
    is_active: bool | None = None


class NotificationResponse(BaseModel):
    notification: NotificationSchedule
    message: str


class NotificationsListResponse(BaseModel):
    notifications: list[NotificationSchedule]
    total: int
