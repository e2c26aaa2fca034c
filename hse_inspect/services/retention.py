"""Log retention: trim the audit and access logs to their configured caps."""

import logging
from typing import TYPE_CHECKING

from hse_inspect.store.base import KeyValueStore
from hse_inspect.store.repositories import AccessLogRepository, AuditLogRepository

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(store: KeyValueStore, settings: "Settings") -> tuple[int, int]:
    """
    Drop the oldest entries beyond AUDIT_LOG_MAX_ENTRIES and ACCESS_LOG_MAX_ENTRIES.

    Appends already enforce the caps; this catches up after a cap is lowered.
    Returns (audit_trimmed, access_trimmed). Idempotent: safe to run repeatedly.
    """
    audit_trimmed = AuditLogRepository(store, settings.AUDIT_LOG_MAX_ENTRIES).enforce_cap()
    access_trimmed = AccessLogRepository(store, settings.ACCESS_LOG_MAX_ENTRIES).enforce_cap()
    if audit_trimmed or access_trimmed:
        logger.info(
            "Retention run: audit_trimmed=%s, access_trimmed=%s",
            audit_trimmed,
            access_trimmed,
        )
    return (audit_trimmed, access_trimmed)
