"""Tests for the log retention job."""

import unittest

from hse_inspect.core.config import Settings
from hse_inspect.services.retention import run_retention
from hse_inspect.store import InMemoryStore
from hse_inspect.store.base import ACCESS_LOGS, AUDIT_LOGS


def _entries(count: int) -> list[dict]:
    return [{"action": f"ACTION_{i}", "timestamp": f"2026-10-{i % 28 + 1:02d}T00:00:00+00:00"} for i in range(count)]


class TestRunRetention(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(
            _env_file=None,
            STORE_BACKEND="memory",
            AUDIT_LOG_MAX_ENTRIES=10,
            ACCESS_LOG_MAX_ENTRIES=10,
        )

    def test_trims_oldest_entries(self) -> None:
        store = InMemoryStore({AUDIT_LOGS: _entries(12), ACCESS_LOGS: _entries(5)})
        self.assertEqual(run_retention(store, self.settings), (2, 0))
        audit = store.load(AUDIT_LOGS)
        self.assertEqual(len(audit), 10)
        self.assertEqual(audit[0]["action"], "ACTION_2")
        self.assertEqual(audit[-1]["action"], "ACTION_11")
        self.assertEqual(len(store.load(ACCESS_LOGS)), 5)

    def test_idempotent(self) -> None:
        store = InMemoryStore({AUDIT_LOGS: _entries(12), ACCESS_LOGS: _entries(15)})
        self.assertEqual(run_retention(store, self.settings), (2, 5))
        self.assertEqual(run_retention(store, self.settings), (0, 0))

    def test_empty_store(self) -> None:
        self.assertEqual(run_retention(InMemoryStore(), self.settings), (0, 0))


if __name__ == "__main__":
    unittest.main()
