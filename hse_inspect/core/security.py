"""PIN credential policy and hashing, and session token creation/verification."""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings

PIN_LENGTH = 4
PIN_MIN_DISTINCT_DIGITS = 3

COMMON_PINS: frozenset[str] = frozenset(
    {
        "0000",
        "1111",
        "2222",
        "3333",
        "4444",
        "5555",
        "6666",
        "7777",
        "8888",
        "9999",
        "1234",
        "4321",
        "0123",
    }
)

# Keeps the generator from spinning forever if the policy is ever tightened into an empty set.
MAX_PIN_ATTEMPTS = 10_000


@dataclass(frozen=True)
class PinValidation:
    is_valid: bool
    message: str | None = None


def is_sequential(pin: str) -> bool:
    """True when every digit is one more or one less than the digit before it."""
    digits = [int(c) for c in pin]
    return all(abs(b - a) == 1 for a, b in zip(digits, digits[1:]))


def has_repeated_digits(pin: str) -> bool:
    """True when the PIN has fewer than PIN_MIN_DISTINCT_DIGITS distinct digits."""
    return len(set(pin)) < PIN_MIN_DISTINCT_DIGITS


def is_common_pin(pin: str) -> bool:
    return pin in COMMON_PINS


def is_policy_compliant(pin: str) -> bool:
    return not (is_sequential(pin) or has_repeated_digits(pin) or is_common_pin(pin))


def generate_secure_pin() -> str:
    """
    Return a random 4-digit PIN that satisfies the PIN policy.

    Each digit is drawn uniformly; candidates that are sequential, have fewer than
    three distinct digits, or are on the common list are rejected and redrawn.
    """
    for _ in range(MAX_PIN_ATTEMPTS):
        pin = "".join(secrets.choice("0123456789") for _ in range(PIN_LENGTH))
        if is_policy_compliant(pin):
            return pin
    raise RuntimeError("Could not generate a PIN satisfying the PIN policy")


def validate_pin(pin: str | None) -> PinValidation:
    """Check a user-supplied PIN and return a human-readable reason when it is rejected."""
    if not pin:
        return PinValidation(False, "PIN is required")
    if len(pin) != PIN_LENGTH:
        return PinValidation(False, "PIN must be exactly 4 digits")
    if not (pin.isascii() and pin.isdigit()):
        return PinValidation(False, "PIN must contain only numbers")
    if is_common_pin(pin):
        return PinValidation(False, "PIN is too common, please choose a different one")
    return PinValidation(True)


def hash_pin(pin: str) -> str:
    """
    Legacy deterministic PIN digest (31-multiplier rolling hash over signed 32-bit ints).

    Not a security measure. Kept so records written by the old digest scheme can still
    be verified; new credentials are always written with hash_pin_secure.
    """
    h = 0
    for ch in pin:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(abs(h))


def hash_pin_secure(pin: str, rounds: int) -> str:
    """Hash a PIN for storage with a per-credential salt. Do not store plain PINs."""
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def is_bcrypt_hash(stored: str) -> bool:
    return stored.startswith(("$2a$", "$2b$", "$2y$"))


def verify_pin(pin: str, stored: str) -> bool:
    """Verify a PIN against a stored bcrypt hash or legacy digest. Plain-text storage never matches."""
    if not pin or not stored:
        return False
    if is_bcrypt_hash(stored):
        try:
            return bcrypt.checkpw(pin.encode("utf-8"), stored.encode("utf-8"))
        except (ValueError, TypeError):
            return False
    # A plain 4-digit value is a pre-hashing record, not a digest; refuse it.
    if len(stored) == PIN_LENGTH and stored.isdigit():
        return False
    return hmac.compare_digest(hash_pin(pin), stored)


def pin_lookup_key(pin: str, secret: str) -> str:
    """Keyed digest used to find the account a PIN belongs to without scanning bcrypt hashes."""
    return hmac.new(secret.encode("utf-8"), pin.encode("utf-8"), hashlib.sha256).hexdigest()


def create_session_token(user_id: str, role: str, settings: "Settings") -> str:
    """Create a signed session token with sub (user id), role, iat and exp."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=settings.SESSION_MAX_AGE_SEC),
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_session_token(token: str, settings: "Settings") -> str:
    """
    Validate a session token and return its user id.
    Raises jwt.PyJWTError on a bad signature, expiry, or missing subject.
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise jwt.InvalidTokenError("Token subject is missing")
    return sub
