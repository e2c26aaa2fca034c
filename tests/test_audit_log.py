"""Tests for the audit/access log sink: bounded retention, access entries and the audit-trail query."""

import unittest
from datetime import UTC, datetime, timedelta

from starlette.requests import Request

from hse_inspect.core.config import Settings
from hse_inspect.schemas.audit import AuditLogEntry
from hse_inspect.schemas.permissions import Role
from hse_inspect.schemas.user import User
from hse_inspect.services.audit import AuditService, client_ip, query_audit_trail
from hse_inspect.services.permissions import get_role_permissions
from hse_inspect.store import InMemoryStore
from hse_inspect.store.base import ACCESS_LOGS, AUDIT_LOGS


def _settings(**overrides: object) -> Settings:
    values = {"STORE_BACKEND": "memory", "PIN_BCRYPT_ROUNDS": 4}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _user(user_id: str = "adm", role: Role = Role.ADMIN) -> User:
    return User(
        id=user_id,
        name=f"User {user_id}",
        role=role,
        pin_hash="$2b$04$placeholder",
        permissions=get_role_permissions(role),
        created_at=datetime.now(UTC),
    )


def _request(headers: dict[str, str] | None = None, query: bytes = b"") -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "POST",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": "/api/v1/admin/users",
            "root_path": "",
            "query_string": query,
            "headers": raw,
            "client": ("192.0.2.10", 5123),
        }
    )


class TestAuditRetention(unittest.TestCase):
    """Appends beyond the cap drop the oldest entries, keeping the newest."""

    def test_small_cap(self) -> None:
        store = InMemoryStore()
        audit = AuditService(store, _settings(AUDIT_LOG_MAX_ENTRIES=3))
        for n in range(5):
            audit.log_event({"action": f"A{n}", "timestamp": f"2026-01-0{n + 1}T00:00:00+00:00"})
        entries = store.load(AUDIT_LOGS)
        self.assertEqual([e["action"] for e in entries], ["A2", "A3", "A4"])

    def test_default_cap_of_fifty_thousand(self) -> None:
        store = InMemoryStore(
            {AUDIT_LOGS: [{"action": "OLD", "n": n} for n in range(50_000)]}
        )
        audit = AuditService(store, _settings())
        audit.log_event(AuditLogEntry(action="NEWEST"))
        entries = store.load(AUDIT_LOGS)
        self.assertEqual(len(entries), 50_000)
        self.assertEqual(entries[0]["n"], 1)
        self.assertEqual(entries[-1]["action"], "NEWEST")

    def test_entries_stored_as_given(self) -> None:
        store = InMemoryStore()
        audit = AuditService(store, _settings())
        audit.log_event({"action": "CUSTOM", "extra": [1, 2]})
        audit.log_event({"action": "CUSTOM", "extra": [1, 2]})
        self.assertEqual(store.load(AUDIT_LOGS), [{"action": "CUSTOM", "extra": [1, 2]}] * 2)

    def test_record_builds_entry(self) -> None:
        store = InMemoryStore()
        audit = AuditService(store, _settings())
        audit.record("USER_CREATED", actor=_user("adm"), target=_user("new", Role.INSPECTOR), details={"role": "inspector"})
        entry = store.load(AUDIT_LOGS)[0]
        self.assertEqual(entry["action"], "USER_CREATED")
        self.assertEqual(entry["performed_by"], "adm")
        self.assertEqual(entry["performed_by_name"], "User adm")
        self.assertEqual(entry["target_user_id"], "new")
        self.assertEqual(entry["details"], {"role": "inspector"})
        self.assertIsNotNone(datetime.fromisoformat(entry["timestamp"]).tzinfo)


class TestAccessLog(unittest.TestCase):
    """Access entries identify caller, request and client; the cap is separate from the audit cap."""

    def test_access_entry(self) -> None:
        store = InMemoryStore()
        audit = AuditService(store, _settings())
        audit.record_access(_user(), _request({"User-Agent": "curl/8"}, b"limit=5"))
        entry = store.load(ACCESS_LOGS)[0]
        self.assertEqual(entry["method"], "POST")
        self.assertEqual(entry["path"], "/api/v1/admin/users?limit=5")
        self.assertEqual(entry["ip"], "192.0.2.10")
        self.assertEqual(entry["user_agent"], "curl/8")
        self.assertEqual(entry["role"], "admin")

    def test_access_cap(self) -> None:
        store = InMemoryStore()
        audit = AuditService(store, _settings(ACCESS_LOG_MAX_ENTRIES=2))
        for _ in range(4):
            audit.record_access(_user(), _request())
        self.assertEqual(len(store.load(ACCESS_LOGS)), 2)
        self.assertEqual(store.load(AUDIT_LOGS, []), [])

    def test_client_ip_prefers_first_forwarded_hop(self) -> None:
        self.assertEqual(client_ip(_request({"X-Forwarded-For": " 198.51.100.1 , 10.0.0.1"})), "198.51.100.1")
        self.assertEqual(client_ip(_request()), "192.0.2.10")


class TestAuditTrailQuery(unittest.TestCase):
    """Filtering, newest-first ordering, pagination and the list of actions."""

    def setUp(self) -> None:
        base = datetime(2026, 10, 1, tzinfo=UTC)
        entries = [
            {"action": "LOGIN_SUCCESS", "performed_by": "a", "timestamp": (base + timedelta(days=1)).isoformat()},
            {"action": "USER_CREATED", "performed_by": "a", "timestamp": (base + timedelta(days=3)).isoformat()},
            {"action": "LOGIN_SUCCESS", "performed_by": "b", "timestamp": (base + timedelta(days=2)).isoformat()},
            {"action": "PIN_RESET", "performed_by": "a", "timestamp": (base + timedelta(days=5)).isoformat()},
        ]
        self.store = InMemoryStore({AUDIT_LOGS: entries})
        self.audit = AuditService(self.store, _settings())
        self.base = base

    def test_newest_first(self) -> None:
        result = query_audit_trail(self.audit.audit_logs)
        self.assertEqual(
            [e["action"] for e in result.logs],
            ["PIN_RESET", "USER_CREATED", "LOGIN_SUCCESS", "LOGIN_SUCCESS"],
        )
        self.assertEqual(result.total, 4)
        self.assertEqual(result.available_actions, ["LOGIN_SUCCESS", "PIN_RESET", "USER_CREATED"])

    def test_filters(self) -> None:
        by_action = query_audit_trail(self.audit.audit_logs, action="LOGIN_SUCCESS")
        self.assertEqual(by_action.total, 2)
        by_user = query_audit_trail(self.audit.audit_logs, user_id="b")
        self.assertEqual([e["performed_by"] for e in by_user.logs], ["b"])
        window = query_audit_trail(
            self.audit.audit_logs,
            start=(self.base + timedelta(days=2)).replace(tzinfo=None),
            end=self.base + timedelta(days=3),
        )
        self.assertEqual([e["action"] for e in window.logs], ["USER_CREATED", "LOGIN_SUCCESS"])
        # Filters never shrink the list of available actions.
        self.assertEqual(len(window.available_actions), 3)

    def test_pagination(self) -> None:
        page_two = query_audit_trail(self.audit.audit_logs, page=2, limit=3)
        self.assertEqual(page_two.total_pages, 2)
        self.assertEqual(len(page_two.logs), 1)
        self.assertEqual(page_two.logs[0]["action"], "LOGIN_SUCCESS")


if __name__ == "__main__":
    unittest.main()
