"""
CLI entrypoint for the log retention job. Run from cron, e.g.:

  python -m hse_inspect.retention

Trims auditLogs and accessLogs to AUDIT_LOG_MAX_ENTRIES / ACCESS_LOG_MAX_ENTRIES.
"""

import logging
import sys

from hse_inspect.core.config import get_settings
from hse_inspect.services.retention import run_retention
from hse_inspect.store import build_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    store = build_store(settings)
    try:
        audit_trimmed, access_trimmed = run_retention(store, settings)
        logger.info(
            "Retention completed: audit_trimmed=%s access_trimmed=%s",
            audit_trimmed,
            access_trimmed,
        )
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
