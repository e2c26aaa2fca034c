"""Tests for the DevSecOps API and the security score."""

import unittest
from datetime import UTC, datetime, timedelta

from fastapi.testclient import TestClient

from hse_inspect.core.config import Settings
from hse_inspect.core.security import create_session_token
from hse_inspect.main import create_app
from hse_inspect.services.audit import LOGIN_FAILED, AuditService
from hse_inspect.services.security_events import calculate_security_score
from hse_inspect.services.seed import seed_demo_users
from hse_inspect.store import InMemoryStore, UserRepository
from hse_inspect.store.base import AUDIT_LOGS, SECURITY_EVENTS


class TestSecurityScore(unittest.TestCase):
    def test_no_issues(self) -> None:
        score = calculate_security_score(
            critical_events=0, unresolved_events=0, failed_logins=0, system_errors=0, data_breaches=0
        )
        self.assertEqual(score, 100.0)

    def test_deductions(self) -> None:
        score = calculate_security_score(
            critical_events=1, unresolved_events=2, failed_logins=3, system_errors=1, data_breaches=1
        )
        self.assertEqual(score, 100 - 10 - 4 - 1.5 - 1 - 20)

    def test_clamped_at_zero(self) -> None:
        score = calculate_security_score(
            critical_events=5, unresolved_events=10, failed_logins=0, system_errors=0, data_breaches=3
        )
        self.assertEqual(score, 0.0)


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        STORE_BACKEND="memory",
        JWT_SECRET="devsecops-test-secret-at-least-32-bytes",
        PIN_BCRYPT_ROUNDS=4,
        SEED_DEMO_USERS=False,
    )


class DevSecOpsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = _settings()
        self.store = InMemoryStore()
        seed_demo_users(self.store, self.settings)
        self.client = TestClient(create_app(store=self.store, settings=self.settings))
        self.act_as("devsecops")

    def act_as(self, user_id: str) -> None:
        user = UserRepository(self.store).get(user_id)
        self.client.cookies.set(
            "auth-token", create_session_token(user.id, user.role.value, self.settings)
        )

    def create_event(self, **overrides: str) -> dict:
        payload = {
            "type": "access_violation",
            "severity": "high",
            "title": "Repeated access to admin pages",
            "description": "Inspector account tried /admin",
        }
        payload.update(overrides)
        return self.client.post("/api/v1/devsecops/security-logs", json=payload)


class TestSecurityLogs(DevSecOpsTestCase):
    def test_create_event(self) -> None:
        response = self.create_event()
        self.assertEqual(response.status_code, 201, response.text)
        event = response.json()["event"]
        self.assertFalse(event["resolved"])
        self.assertEqual(event["severity"], "high")
        self.assertEqual(len(self.store.load(SECURITY_EVENTS)), 1)

        audit = self.store.load(AUDIT_LOGS)[-1]
        self.assertEqual(audit["action"], "SECURITY_EVENT_CREATED")
        self.assertEqual(audit["performed_by"], "devsecops")
        self.assertEqual(audit["details"]["event_id"], event["id"])

    def test_invalid_type(self) -> None:
        response = self.create_event(type="virus")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid type")
        self.assertIn("data_breach", response.json()["validTypes"])

    def test_invalid_severity(self) -> None:
        response = self.create_event(severity="extreme")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["validTypes"], ["low", "medium", "high", "critical"])

    def test_list_filters_and_pages(self) -> None:
        self.create_event(severity="low")
        self.create_event(severity="critical")
        self.create_event(type="error", severity="critical")

        response = self.client.get(
            "/api/v1/devsecops/security-logs", params={"severity": "critical"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total"], 2)
        self.assertTrue(all(e["severity"] == "critical" for e in body["events"]))

        paged = self.client.get(
            "/api/v1/devsecops/security-logs", params={"limit": 2, "page": 2}
        ).json()
        self.assertEqual(paged["total"], 3)
        self.assertEqual(paged["total_pages"], 2)
        self.assertEqual(len(paged["events"]), 1)

        errors = self.client.get(
            "/api/v1/devsecops/security-logs", params={"type": "error", "resolved": "false"}
        ).json()
        self.assertEqual(errors["total"], 1)

    def test_admin_forbidden(self) -> None:
        self.act_as("admin")
        response = self.client.get("/api/v1/devsecops/security-logs")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["current"], "admin")
        self.assertEqual(response.json()["required"], ["devsecops"])


class TestAuditTrail(DevSecOpsTestCase):
    def test_filter_by_action_and_user(self) -> None:
        audit = AuditService(self.store, self.settings)
        audit.log_event({"action": "USER_CREATED", "performed_by": "admin", "timestamp": "2026-10-01T10:00:00+00:00"})
        audit.log_event({"action": "PIN_RESET", "performed_by": "admin", "timestamp": "2026-10-02T10:00:00+00:00"})
        audit.log_event({"action": "USER_CREATED", "performed_by": "other", "timestamp": "2026-10-03T10:00:00+00:00"})

        response = self.client.get(
            "/api/v1/devsecops/audit-trail",
            params={"action": "USER_CREATED", "user_id": "admin"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["logs"][0]["timestamp"], "2026-10-01T10:00:00+00:00")
        self.assertIn("PIN_RESET", body["available_actions"])

    def test_time_window(self) -> None:
        audit = AuditService(self.store, self.settings)
        audit.log_event({"action": "A", "timestamp": "2026-10-01T10:00:00+00:00"})
        audit.log_event({"action": "B", "timestamp": "2026-10-05T10:00:00+00:00"})
        response = self.client.get(
            "/api/v1/devsecops/audit-trail",
            params={"start_date": "2026-10-04T00:00:00Z", "end_date": "2026-10-06T00:00:00Z"},
        )
        self.assertEqual([e["action"] for e in response.json()["logs"]], ["B"])


class TestDashboard(DevSecOpsTestCase):
    def test_summary(self) -> None:
        self.create_event(severity="critical")
        self.create_event(type="data_breach", severity="medium")
        AuditService(self.store, self.settings).record(LOGIN_FAILED, details={"reason": "Invalid PIN"})

        response = self.client.get("/api/v1/devsecops/dashboard")
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        summary = body["summary"]
        self.assertEqual(summary["critical_events"], 1)
        self.assertEqual(summary["unresolved_events"], 2)
        self.assertEqual(summary["data_breaches"], 1)
        self.assertEqual(summary["failed_logins"], 1)
        self.assertEqual(summary["system_errors"], 0)
        self.assertEqual(summary["security_score"], 65.5)
        self.assertGreaterEqual(summary["active_users"], 1)
        self.assertEqual(body["total_users"], 3)
        self.assertEqual(len(body["critical_events"]), 1)
        self.assertEqual(len(body["recent_security_events"]), 2)

    def test_old_failed_logins_not_counted(self) -> None:
        old = (datetime.now(UTC) - timedelta(days=2)).isoformat()
        AuditService(self.store, self.settings).log_event(
            {"action": LOGIN_FAILED, "timestamp": old}
        )
        summary = self.client.get("/api/v1/devsecops/dashboard").json()["summary"]
        self.assertEqual(summary["failed_logins"], 0)
        self.assertEqual(summary["security_score"], 100.0)

    def test_inspector_forbidden(self) -> None:
        self.act_as("inspector")
        self.assertEqual(self.client.get("/api/v1/devsecops/dashboard").status_code, 403)


if __name__ == "__main__":
    unittest.main()
