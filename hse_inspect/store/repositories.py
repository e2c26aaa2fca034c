"""Per-collection repositories. Services depend on these, never on raw collection names."""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from hse_inspect.schemas.form import FormTemplate
from hse_inspect.schemas.inspection import Inspection
from hse_inspect.schemas.notification import NotificationSchedule
from hse_inspect.schemas.security_event import SecurityEvent
from hse_inspect.schemas.user import User
from hse_inspect.store.base import (
    ACCESS_LOGS,
    AUDIT_LOGS,
    FORM_TEMPLATES,
    INSPECTIONS,
    NOTIFICATION_SCHEDULES,
    SECURITY_EVENTS,
    USERS,
    KeyValueStore,
)

logger = logging.getLogger(__name__)


def _to_record(item: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    return dict(item)


class UserRepository:
    """Users are only ever added or replaced; deactivation is a field update, never a removal."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _load_records(self) -> list[dict[str, Any]]:
        return self.store.load(USERS, [])

    def list_all(self) -> list[User]:
        users: list[User] = []
        for record in self._load_records():
            try:
                users.append(User.model_validate(record))
            except ValidationError:
                logger.warning("Skipping malformed user record id=%s", record.get("id"))
        return users

    def get(self, user_id: str) -> User | None:
        for record in self._load_records():
            if record.get("id") == user_id:
                try:
                    return User.model_validate(record)
                except ValidationError:
                    logger.warning("Malformed user record id=%s", user_id)
                    return None
        return None

    def add(self, user: User) -> User:
        with self.store.lock(USERS):
            records = self._load_records()
            if any(r.get("id") == user.id for r in records):
                raise ValueError(f"User with id {user.id!r} already exists")
            records.append(_to_record(user))
            self.store.save(USERS, records)
        return user

    def save_user(self, user: User) -> User:
        """Replace the record with the same id. Raises LookupError when absent."""
        with self.store.lock(USERS):
            records = self._load_records()
            for index, record in enumerate(records):
                if record.get("id") == user.id:
                    records[index] = _to_record(user)
                    self.store.save(USERS, records)
                    return user
        raise LookupError(user.id)

    def mutate(self, user_id: str, fn: Callable[[User], User]) -> User | None:
        """Apply fn to the current record under the collection lock; None when the user is absent."""
        with self.store.lock(USERS):
            user = self.get(user_id)
            if user is None:
                return None
            return self.save_user(fn(user))

    def replace_all(self, users: list[User]) -> None:
        with self.store.lock(USERS):
            self.store.save(USERS, [_to_record(u) for u in users])

    def raw_records(self) -> list[dict[str, Any]]:
        """Unvalidated records, for migrations of legacy data."""
        return self._load_records()


class BoundedLogRepository:
    """
    Append-only log with a retention cap.

    Entries are stored exactly as given (no validation, no dedup). When the cap is
    exceeded the oldest surplus entries are dropped in one batch before saving.
    """

    collection: str = ""

    def __init__(self, store: KeyValueStore, max_entries: int) -> None:
        self.store = store
        self.max_entries = max_entries

    def append(self, entry: BaseModel | Mapping[str, Any]) -> int:
        """Append one entry; returns how many old entries were trimmed."""
        with self.store.lock(self.collection):
            entries = self.store.load(self.collection, [])
            entries.append(_to_record(entry))
            trimmed = self._trim(entries)
            self.store.save(self.collection, entries)
        return trimmed

    def _trim(self, entries: list[Any]) -> int:
        surplus = len(entries) - self.max_entries
        if surplus <= 0:
            return 0
        del entries[:surplus]
        return surplus

    def enforce_cap(self) -> int:
        """Trim an existing collection down to the cap (e.g. after the cap was lowered)."""
        with self.store.lock(self.collection):
            entries = self.store.load(self.collection, [])
            trimmed = self._trim(entries)
            if trimmed:
                self.store.save(self.collection, entries)
        return trimmed

    def list_all(self) -> list[dict[str, Any]]:
        """Entries in insertion order (oldest first)."""
        return self.store.load(self.collection, [])


class AuditLogRepository(BoundedLogRepository):
    collection = AUDIT_LOGS


class AccessLogRepository(BoundedLogRepository):
    collection = ACCESS_LOGS


class SecurityEventRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def add(self, event: SecurityEvent) -> SecurityEvent:
        with self.store.lock(SECURITY_EVENTS):
            events = self.store.load(SECURITY_EVENTS, [])
            events.append(_to_record(event))
            self.store.save(SECURITY_EVENTS, events)
        return event

    def list_all(self) -> list[SecurityEvent]:
        events: list[SecurityEvent] = []
        for record in self.store.load(SECURITY_EVENTS, []):
            try:
                events.append(SecurityEvent.model_validate(record))
            except ValidationError:
                logger.warning("Skipping malformed security event id=%s", record.get("id"))
        return events


class DocumentRepository:
    """
    A collection of documents keyed by id.

    Malformed records are logged and treated as absent instead of failing the whole read.
    """

    collection: str = ""
    model: type[BaseModel] = BaseModel

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _parse(self, record: Any) -> Any:
        try:
            return self.model.model_validate(record)
        except ValidationError:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning("Skipping malformed %s record id=%s", self.collection, record_id)
            return None

    def list_all(self) -> list[Any]:
        documents = []
        for record in self.store.load(self.collection, []):
            document = self._parse(record)
            if document is not None:
                documents.append(document)
        return documents

    def get(self, document_id: str) -> Any:
        for document in self.list_all():
            if document.id == document_id:
                return document
        return None

    def add(self, document: BaseModel) -> Any:
        with self.store.lock(self.collection):
            records = self.store.load(self.collection, [])
            records.append(_to_record(document))
            self.store.save(self.collection, records)
        return document

    def mutate(self, document_id: str, fn: Callable[[Any], Any]) -> Any:
        """Apply fn to the current document under the collection lock; None when absent."""
        with self.store.lock(self.collection):
            records = self.store.load(self.collection, [])
            for index, record in enumerate(records):
                if not isinstance(record, dict) or record.get("id") != document_id:
                    continue
                current = self._parse(record)
                if current is None:
                    return None
                updated = fn(current)
                records[index] = _to_record(updated)
                self.store.save(self.collection, records)
                return updated
        return None

    def delete(self, document_id: str) -> Any:
        with self.store.lock(self.collection):
            records = self.store.load(self.collection, [])
            for index, record in enumerate(records):
                if not isinstance(record, dict) or record.get("id") != document_id:
                    continue
                removed = self._parse(record)
                if removed is None:
                    return None
                del records[index]
                self.store.save(self.collection, records)
                return removed
        return None


class NotificationScheduleRepository(DocumentRepository):
    collection = NOTIFICATION_SCHEDULES
    model = NotificationSchedule


class FormTemplateRepository(DocumentRepository):
    """Form templates are deactivated, never deleted."""

    collection = FORM_TEMPLATES
    model = FormTemplate


class InspectionRepository(DocumentRepository):
    collection = INSPECTIONS
    model = Inspection
