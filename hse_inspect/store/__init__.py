"""Key-value persistence: store backends and per-collection repositories."""

from typing import TYPE_CHECKING

from hse_inspect.core.database import make_session_factory
from hse_inspect.store.base import COLLECTIONS, KeyValueStore
from hse_inspect.store.memory import InMemoryStore
from hse_inspect.store.repositories import (
    AccessLogRepository,
    AuditLogRepository,
    FormTemplateRepository,
    InspectionRepository,
    NotificationScheduleRepository,
    SecurityEventRepository,
    UserRepository,
)
from hse_inspect.store.sql import SqlStore

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings


def build_store(settings: "Settings") -> KeyValueStore:
    """Store for the configured backend. The SQL engine does not connect until first use."""
    if settings.STORE_BACKEND == "memory":
        return InMemoryStore()
    return SqlStore(make_session_factory(settings.DATABASE_URL, echo=settings.DEBUG))


__all__ = [
    "COLLECTIONS",
    "AccessLogRepository",
    "AuditLogRepository",
    "FormTemplateRepository",
    "InspectionRepository",
    "InMemoryStore",
    "KeyValueStore",
    "NotificationScheduleRepository",
    "SecurityEventRepository",
    "SqlStore",
    "UserRepository",
    "build_store",
]
