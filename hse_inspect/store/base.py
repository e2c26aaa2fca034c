"""Key-value store interface over named collections."""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

# Collection names are part of the storage contract.
USERS = "users"
CURRENT_USER = "currentUser"
AUDIT_LOGS = "auditLogs"
ACCESS_LOGS = "accessLogs"
SECURITY_EVENTS = "securityEvents"
NOTIFICATION_SCHEDULES = "notificationSchedules"
FORM_TEMPLATES = "formTemplates"
INSPECTIONS = "inspections"

COLLECTIONS: tuple[str, ...] = (
    USERS,
    CURRENT_USER,
    AUDIT_LOGS,
    ACCESS_LOGS,
    SECURITY_EVENTS,
    NOTIFICATION_SCHEDULES,
    FORM_TEMPLATES,
    INSPECTIONS,
)


class KeyValueStore(ABC):
    """
    Whole-collection load/save/remove. A miss returns the caller's default (treat it as empty).

    The store performs no authorization; the API guard is the only access-control point.
    Read-modify-write sequences must run inside lock(name) to avoid lost updates.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def load(self, name: str, default: Any = None) -> Any:
        """Return a copy of the collection value, or default when absent."""

    @abstractmethod
    def save(self, name: str, value: Any) -> None:
        """Replace the collection value. value must be JSON-serializable."""

    @abstractmethod
    def remove(self, name: str) -> None:
        """Delete the collection; a missing collection is not an error."""

    def ping(self) -> bool:
        """True when the backing storage is reachable."""
        return True

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        """Serialize read-modify-write on one collection (re-entrant within a thread)."""
        with self._locks_guard:
            lock = self._locks.setdefault(name, threading.RLock())
        with lock:
            yield
