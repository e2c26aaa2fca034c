"""Admin-managed notification schedules."""

import calendar
import logging
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from hse_inspect.core.errors import NotFoundError, ValidationFailedError
from hse_inspect.schemas.notification import (
    NOTIFICATION_FREQUENCIES,
    NOTIFICATION_RECIPIENTS,
    NOTIFICATION_TYPES,
    NotificationCreateRequest,
    NotificationSchedule,
    NotificationsListResponse,
    NotificationUpdateRequest,
)
from hse_inspect.schemas.user import User
from hse_inspect.services import audit as audit_actions
from hse_inspect.services.audit import AuditService
from hse_inspect.store.base import KeyValueStore
from hse_inspect.store.repositories import NotificationScheduleRepository

logger = logging.getLogger(__name__)

SEND_HOUR_UTC = 9


def _at_send_hour(day: datetime) -> datetime:
    return day.replace(hour=SEND_HOUR_UTC, minute=0, second=0, microsecond=0)


def calculate_next_schedule(
    frequency: str,
    schedule_date: str | None = None,
    scheduled_day: int | None = None,
    now: datetime | None = None,
) -> str:
    """
    Next run as an ISO timestamp.

    once: schedule_date, or now when absent.
    daily: tomorrow at 09:00 UTC.
    weekly: the next scheduled_day (0 = Sunday, default Monday) strictly after today, 09:00 UTC.
    monthly: scheduled_day (default 1) of next month, clamped to the month's length, 09:00 UTC.
    """
    now = now or datetime.now(UTC)
    if frequency == "once":
        return schedule_date or now.isoformat()
    if frequency == "daily":
        return _at_send_hour(now + timedelta(days=1)).isoformat()
    if frequency == "weekly":
        target = 1 if scheduled_day is None else scheduled_day % 7
        today = (now.weekday() + 1) % 7
        days_ahead = (target - today) % 7 or 7
        return _at_send_hour(now + timedelta(days=days_ahead)).isoformat()
    if frequency == "monthly":
        year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
        day = min(scheduled_day or 1, calendar.monthrange(year, month)[1])
        return _at_send_hour(now.replace(year=year, month=month, day=day)).isoformat()
    return now.isoformat()


def _check_choice(value: str | None, choices: tuple[str, ...], label: str) -> None:
    if value is not None and value not in choices:
        raise ValidationFailedError(f"Invalid {label}", valid_types=list(choices))


class NotificationService:
    def __init__(self, store: KeyValueStore, audit: AuditService) -> None:
        self.schedules = NotificationScheduleRepository(store)
        self.audit = audit

    def list_notifications(self) -> NotificationsListResponse:
        notifications = self.schedules.list_all()
        return NotificationsListResponse(notifications=notifications, total=len(notifications))

    def create_notification(
        self, actor: User, body: NotificationCreateRequest
    ) -> NotificationSchedule:
        _check_choice(body.type, NOTIFICATION_TYPES, "type")
        _check_choice(body.frequency, NOTIFICATION_FREQUENCIES, "frequency")
        _check_choice(body.recipients, NOTIFICATION_RECIPIENTS, "recipients")
        if body.recipients == "specific" and not body.specific_recipients:
            raise ValidationFailedError(
                'specific_recipients required when recipients is "specific"',
                required=["specific_recipients"],
            )

        schedule = NotificationSchedule(
            id=str(uuid4()),
            title=body.title,
            message=body.message,
            type=body.type,
            recipients=body.recipients,
            specific_recipients=body.specific_recipients if body.recipients == "specific" else None,
            frequency=body.frequency,
            schedule_date=body.schedule_date if body.frequency == "once" else None,
            scheduled_day=body.scheduled_day,
            is_active=True,
            created_by=actor.id,
            created_at=datetime.now(UTC).isoformat(),
            next_scheduled=calculate_next_schedule(
                body.frequency, body.schedule_date, body.scheduled_day
            ),
        )
        self.schedules.add(schedule)
        self.audit.record(
            audit_actions.NOTIFICATION_SCHEDULED,
            actor=actor,
            details={
                "notification_id": schedule.id,
                "title": schedule.title,
                "frequency": schedule.frequency,
            },
        )
        logger.info("Notification scheduled: id=%s by=%s", schedule.id, actor.id)
        return schedule

    def update_notification(
        self, actor: User, notification_id: str, body: NotificationUpdateRequest
    ) -> NotificationSchedule:
        _check_choice(body.type, NOTIFICATION_TYPES, "type")
        _check_choice(body.recipients, NOTIFICATION_RECIPIENTS, "recipients")

        def apply(schedule: NotificationSchedule) -> NotificationSchedule:
            updates = body.model_dump(exclude_none=True)
            merged = schedule.model_copy(update=updates)
            if merged.recipients == "specific" and not merged.specific_recipients:
                raise ValidationFailedError(
                    'specific_recipients required when recipients is "specific"',
                    required=["specific_recipients"],
                )
            return NotificationSchedule.model_validate(merged.model_dump())

        updated = self.schedules.mutate(notification_id, apply)
        if updated is None:
            raise NotFoundError("Notification not found")
        self.audit.record(
            audit_actions.NOTIFICATION_UPDATED,
            actor=actor,
            details={"notification_id": notification_id, "title": updated.title},
        )
        return updated

    def delete_notification(self, actor: User, notification_id: str) -> NotificationSchedule:
        removed = self.schedules.delete(notification_id)
        if removed is None:
            raise NotFoundError("Notification not found")
        self.audit.record(
            audit_actions.NOTIFICATION_DELETED,
            actor=actor,
            details={"notification_id": notification_id, "title": removed.title},
        )
        return removed
