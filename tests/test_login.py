"""End-to-end tests for PIN login, the session cookie, /auth/me and logout."""

import unittest
from datetime import UTC, datetime

import jwt
from fastapi.testclient import TestClient

from hse_inspect.core.config import Settings
from hse_inspect.core.security import hash_pin
from hse_inspect.main import create_app
from hse_inspect.schemas.permissions import Role
from hse_inspect.schemas.user import User
from hse_inspect.services.permissions import get_role_permissions
from hse_inspect.services.seed import seed_demo_users
from hse_inspect.store import InMemoryStore, UserRepository
from hse_inspect.store.base import AUDIT_LOGS

JWT_SECRET = "login-test-secret-with-at-least-32-bytes"


def _settings(**overrides: object) -> Settings:
    values = {
        "STORE_BACKEND": "memory",
        "JWT_SECRET": JWT_SECRET,
        "PIN_BCRYPT_ROUNDS": 4,
        "SEED_DEMO_USERS": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class LoginTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = _settings()
        self.store = InMemoryStore()
        seed_demo_users(self.store, self.settings)
        self.client = TestClient(create_app(store=self.store, settings=self.settings))

    def audit_actions(self) -> list[str]:
        return [e["action"] for e in self.store.load(AUDIT_LOGS, [])]


class TestLoginSuccess(LoginTestCase):
    """A correct PIN returns the sanitized user and sets the session cookie."""

    def test_admin_login(self) -> None:
        response = self.client.post("/api/v1/auth/login", json={"pin": "1234"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["user"]["id"], "admin")
        self.assertEqual(body["user"]["role"], "admin")
        self.assertNotIn("pin_hash", body["user"])
        self.assertNotIn("pin_lookup", body["user"])
        self.assertTrue(body["user"]["permissions"]["canManageUsers"])

        token = response.cookies.get("auth-token")
        self.assertIsNotNone(token)
        payload = jwt.decode(token, JWT_SECRET, algorithms=["HS256"])
        self.assertEqual(payload["sub"], "admin")

        header = response.headers["set-cookie"].lower()
        self.assertIn("httponly", header)
        self.assertIn("samesite=strict", header)
        self.assertIn("max-age=604800", header)
        self.assertIn("path=/", header)
        self.assertNotIn("secure", header)

        self.assertEqual(self.audit_actions(), ["LOGIN_SUCCESS"])
        admin = UserRepository(self.store).get("admin")
        self.assertIsNotNone(admin.last_login)

    def test_secure_cookie_in_prod(self) -> None:
        settings = _settings(APP_ENV="prod")
        client = TestClient(create_app(store=self.store, settings=settings))
        response = client.post("/api/v1/auth/login", json={"pin": "9999"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("secure", response.headers["set-cookie"].lower())

    def test_me_and_logout(self) -> None:
        self.client.post("/api/v1/auth/login", json={"pin": "7777"})
        me = self.client.get("/api/v1/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["role"], "devsecops")

        logout = self.client.post("/api/v1/auth/logout")
        self.assertEqual(logout.status_code, 200)
        self.assertEqual(logout.json(), {"success": True})
        self.assertIn("LOGOUT", self.audit_actions())

        after = self.client.get("/api/v1/auth/me")
        self.assertEqual(after.status_code, 401)
        self.assertEqual(after.json()["error"], "Unauthorized - No auth token provided")

    def test_relogin_replaces_cookie(self) -> None:
        self.client.post("/api/v1/auth/login", json={"pin": "1234"})
        self.client.post("/api/v1/auth/login", json={"pin": "9999"})
        self.assertEqual(len([c for c in self.client.cookies.jar if c.name == "auth-token"]), 1)
        self.assertEqual(self.client.get("/api/v1/auth/me").json()["user"]["id"], "inspector")

    def test_logout_without_session(self) -> None:
        response = self.client.post("/api/v1/auth/logout")
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("LOGOUT", self.audit_actions())


class TestLoginFailure(LoginTestCase):
    """Bad input is 400; a wrong PIN or inactive account is 401 and audited."""

    def test_empty_pin(self) -> None:
        for body in ({}, {"pin": ""}):
            response = self.client.post("/api/v1/auth/login", json=body)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json()["error"], "PIN is required")
        self.assertEqual(self.audit_actions(), [])

    def test_malformed_pin(self) -> None:
        response = self.client.post("/api/v1/auth/login", json={"pin": "12a4"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "PIN must contain only numbers")

    def test_wrong_pin(self) -> None:
        response = self.client.post("/api/v1/auth/login", json={"pin": "4826"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid PIN"})
        self.assertNotIn("auth-token", response.cookies)
        entry = self.store.load(AUDIT_LOGS)[-1]
        self.assertEqual(entry["action"], "LOGIN_FAILED")
        self.assertEqual(entry["details"], {"reason": "invalid_pin"})

    def test_inactive_account(self) -> None:
        UserRepository(self.store).mutate(
            "inspector", lambda u: u.model_copy(update={"is_active": False})
        )
        response = self.client.post("/api/v1/auth/login", json={"pin": "9999"})
        self.assertEqual(response.status_code, 401)
        entry = self.store.load(AUDIT_LOGS)[-1]
        self.assertEqual(entry["action"], "LOGIN_FAILED")
        self.assertEqual(entry["details"], {"reason": "account_inactive"})
        self.assertEqual(entry["target_user_id"], "inspector")

    def test_legacy_digest_account(self) -> None:
        UserRepository(self.store).add(
            User(
                id="legacy",
                name="Legacy Inspector",
                role=Role.INSPECTOR,
                pin_hash=hash_pin("4826"),
                permissions=get_role_permissions(Role.INSPECTOR),
                created_at=datetime.now(UTC),
            )
        )
        response = self.client.post("/api/v1/auth/login", json={"pin": "4826"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["id"], "legacy")


if __name__ == "__main__":
    unittest.main()
