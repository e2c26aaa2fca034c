"""Unit tests for hse_inspect.core.security: PIN policy, hashing, verification and session tokens."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from hse_inspect.core.config import Settings
from hse_inspect.core.security import (
    COMMON_PINS,
    create_session_token,
    decode_session_token,
    generate_secure_pin,
    hash_pin,
    hash_pin_secure,
    is_policy_compliant,
    is_sequential,
    pin_lookup_key,
    validate_pin,
    verify_pin,
)

TEST_SECRET = "unit-test-secret-with-at-least-32-bytes"


def _settings(**overrides: object) -> Settings:
    values = {
        "STORE_BACKEND": "memory",
        "JWT_SECRET": TEST_SECRET,
        "PIN_BCRYPT_ROUNDS": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestValidatePin(unittest.TestCase):
    """validate_pin returns a specific reason for each rejected input."""

    def test_missing(self) -> None:
        for value in (None, ""):
            result = validate_pin(value)
            self.assertFalse(result.is_valid)
            self.assertEqual(result.message, "PIN is required")

    def test_wrong_length(self) -> None:
        for value in ("123", "12345"):
            self.assertEqual(validate_pin(value).message, "PIN must be exactly 4 digits")

    def test_non_digits(self) -> None:
        self.assertEqual(validate_pin("12a4").message, "PIN must contain only numbers")
        self.assertEqual(validate_pin("١٢٣٤").message, "PIN must contain only numbers")

    def test_common(self) -> None:
        self.assertEqual(
            validate_pin("1234").message,
            "PIN is too common, please choose a different one",
        )

    def test_valid(self) -> None:
        result = validate_pin("4826")
        self.assertTrue(result.is_valid)
        self.assertIsNone(result.message)


class TestGenerateSecurePin(unittest.TestCase):
    """Generated PINs always satisfy the policy."""

    def test_generated_pins_are_compliant(self) -> None:
        for _ in range(10_000):
            pin = generate_secure_pin()
            self.assertEqual(len(pin), 4)
            self.assertTrue(pin.isdigit())
            self.assertGreaterEqual(len(set(pin)), 3)
            self.assertFalse(is_sequential(pin))
            self.assertNotIn(pin, COMMON_PINS)
            self.assertTrue(validate_pin(pin).is_valid)

    def test_policy_helpers(self) -> None:
        self.assertTrue(is_sequential("1234"))
        self.assertTrue(is_sequential("9876"))
        self.assertFalse(is_sequential("1357"))
        self.assertFalse(is_policy_compliant("1122"))
        self.assertTrue(is_policy_compliant("4826"))


class TestLegacyHashPin(unittest.TestCase):
    """hash_pin is deterministic and distinct for every 4-digit PIN."""

    def test_deterministic(self) -> None:
        self.assertEqual(hash_pin("4826"), hash_pin("4826"))

    def test_known_value(self) -> None:
        # ((('1'*31 + '2')*31 + '3')*31 + '4') with ord() values
        self.assertEqual(hash_pin("1234"), str(((49 * 31 + 50) * 31 + 51) * 31 + 52))

    def test_no_collisions_over_all_pins(self) -> None:
        digests = {hash_pin(f"{n:04d}") for n in range(10_000)}
        self.assertEqual(len(digests), 10_000)


class TestVerifyPin(unittest.TestCase):
    """verify_pin accepts bcrypt hashes and legacy digests, never plaintext."""

    def test_bcrypt_round_trip(self) -> None:
        stored = hash_pin_secure("4826", rounds=4)
        self.assertTrue(stored.startswith("$2"))
        self.assertTrue(verify_pin("4826", stored))
        self.assertFalse(verify_pin("4827", stored))

    def test_bcrypt_hashes_are_salted(self) -> None:
        self.assertNotEqual(hash_pin_secure("4826", 4), hash_pin_secure("4826", 4))

    def test_legacy_digest(self) -> None:
        self.assertTrue(verify_pin("4826", hash_pin("4826")))
        self.assertFalse(verify_pin("4827", hash_pin("4826")))

    def test_plaintext_never_matches(self) -> None:
        self.assertFalse(verify_pin("4826", "4826"))

    def test_empty_inputs(self) -> None:
        self.assertFalse(verify_pin("", hash_pin("4826")))
        self.assertFalse(verify_pin("4826", ""))

    def test_lookup_key_depends_on_secret(self) -> None:
        self.assertEqual(pin_lookup_key("4826", "a"), pin_lookup_key("4826", "a"))
        self.assertNotEqual(pin_lookup_key("4826", "a"), pin_lookup_key("4826", "b"))
        self.assertNotEqual(pin_lookup_key("4826", "a"), pin_lookup_key("4827", "a"))


class TestSessionToken(unittest.TestCase):
    """Session tokens carry the user id as sub and are rejected when tampered or expired."""

    def setUp(self) -> None:
        self.settings = _settings()

    def test_round_trip(self) -> None:
        token = create_session_token("user-1", "admin", self.settings)
        self.assertEqual(decode_session_token(token, self.settings), "user-1")
        payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
        self.assertEqual(payload["role"], "admin")
        self.assertEqual(payload["exp"] - payload["iat"], 604800)

    def test_wrong_secret(self) -> None:
        token = create_session_token("user-1", "admin", self.settings)
        other = _settings(JWT_SECRET="another-secret-with-at-least-32-bytes!")
        with self.assertRaises(jwt.PyJWTError):
            decode_session_token(token, other)

    def test_expired(self) -> None:
        past = datetime.now(UTC) - timedelta(days=8)
        token = jwt.encode(
            {"sub": "user-1", "iat": past, "exp": past + timedelta(days=7)},
            TEST_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_session_token(token, self.settings)

    def test_missing_subject(self) -> None:
        token = jwt.encode(
            {"exp": datetime.now(UTC) + timedelta(hours=1)}, TEST_SECRET, algorithm="HS256"
        )
        with self.assertRaises(jwt.PyJWTError):
            decode_session_token(token, self.settings)

    def test_garbage(self) -> None:
        with self.assertRaises(jwt.PyJWTError):
            decode_session_token("not-a-token", self.settings)


if __name__ == "__main__":
    unittest.main()
