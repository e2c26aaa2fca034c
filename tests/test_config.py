"""Unit tests for hse_inspect.core.config.Settings validation."""

import unittest

from pydantic import ValidationError

from hse_inspect.core.config import Settings


def _settings(**values: object) -> Settings:
    return Settings(_env_file=None, **values)


class TestSettingsDefaults(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = _settings()
        self.assertEqual(settings.SESSION_COOKIE_NAME, "auth-token")
        self.assertEqual(settings.SESSION_MAX_AGE_SEC, 604800)
        self.assertEqual(settings.AUDIT_LOG_MAX_ENTRIES, 50_000)
        self.assertEqual(settings.ACCESS_LOG_MAX_ENTRIES, 10_000)
        self.assertEqual(settings.API_V1_PREFIX, "/api/v1")

    def test_cookie_secure_only_in_prod(self) -> None:
        self.assertFalse(_settings(APP_ENV="dev").cookie_secure)
        self.assertTrue(_settings(APP_ENV="prod").cookie_secure)

    def test_log_level_normalized(self) -> None:
        self.assertEqual(_settings(LOG_LEVEL=" warning ").LOG_LEVEL, "WARNING")

    def test_sqlite_url_accepted(self) -> None:
        self.assertEqual(_settings(DATABASE_URL="sqlite:///hse.db").DATABASE_URL, "sqlite:///hse.db")


class TestSettingsRejections(unittest.TestCase):
    """Out-of-range or malformed values fail at startup."""

    def assertRejected(self, **values: object) -> None:
        with self.assertRaises(ValidationError):
            _settings(**values)

    def test_database_url(self) -> None:
        self.assertRejected(DATABASE_URL="mysql://localhost/hse")
        self.assertRejected(DATABASE_URL="   ")

    def test_app_env(self) -> None:
        self.assertRejected(APP_ENV="staging")

    def test_store_backend(self) -> None:
        self.assertRejected(STORE_BACKEND="redis")

    def test_log_level(self) -> None:
        self.assertRejected(LOG_LEVEL="VERBOSE")

    def test_session_max_age(self) -> None:
        self.assertRejected(SESSION_MAX_AGE_SEC=59)
        self.assertRejected(SESSION_MAX_AGE_SEC=604801)

    def test_bcrypt_rounds(self) -> None:
        self.assertRejected(PIN_BCRYPT_ROUNDS=3)
        self.assertRejected(PIN_BCRYPT_ROUNDS=16)

    def test_log_caps(self) -> None:
        self.assertRejected(AUDIT_LOG_MAX_ENTRIES=0)
        self.assertRejected(ACCESS_LOG_MAX_ENTRIES=1_000_001)

    def test_secrets(self) -> None:
        self.assertRejected(JWT_SECRET="")
        self.assertRejected(PIN_LOOKUP_SECRET="  ")

    def test_page_paths(self) -> None:
        self.assertRejected(LOGIN_PATH="login")
        self.assertRejected(UNAUTHORIZED_PATH="")


if __name__ == "__main__":
    unittest.main()
