"""PIN login and session-token resolution."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import jwt

from hse_inspect.core.errors import AuthenticationInvalidError, ValidationFailedError
from hse_inspect.core.security import (
    create_session_token,
    decode_session_token,
    is_common_pin,
    pin_lookup_key,
    validate_pin,
    verify_pin,
)
from hse_inspect.schemas.audit import AuditLogEntry
from hse_inspect.schemas.user import User
from hse_inspect.services import audit as audit_actions
from hse_inspect.services.audit import AuditService
from hse_inspect.store.base import KeyValueStore
from hse_inspect.store.repositories import UserRepository

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings

logger = logging.getLogger(__name__)

INVALID_PIN_MESSAGE = "Invalid PIN"


class AuthService:
    def __init__(self, store: KeyValueStore, settings: "Settings", audit: AuditService) -> None:
        self.users = UserRepository(store)
        self.settings = settings
        self.audit = audit

    def _find_by_pin(self, pin: str) -> User | None:
        """
        Find the account a PIN belongs to.

        Accounts with a lookup digest are matched on it and then verified against the bcrypt
        hash; accounts without one (legacy records) are verified one by one.
        """
        lookup = pin_lookup_key(pin, self.settings.PIN_LOOKUP_SECRET.get_secret_value())
        users = self.users.list_all()
        candidates = [u for u in users if u.pin_lookup == lookup]
        candidates += [u for u in users if u.pin_lookup is None]
        inactive_match: User | None = None
        for user in candidates:
            if not verify_pin(pin, user.pin_hash):
                continue
            if user.is_active:
                return user
            inactive_match = inactive_match or user
        return inactive_match

    def authenticate_pin(self, pin: str | None) -> User:
        """
        Resolve a PIN to an active user and stamp last_login.

        Raises ValidationFailedError for a missing or malformed PIN and
        AuthenticationInvalidError when no active account matches. Both outcomes
        of a well-formed attempt are written to the audit log.
        """
        check = validate_pin(pin)
        if not check.is_valid and not (pin and is_common_pin(pin)):
            # Common PINs are still accepted here; seeded demo accounts use them.
            raise ValidationFailedError(check.message or "PIN is required")

        user = self._find_by_pin(pin)
        if user is None or not user.is_active:
            reason = "invalid_pin" if user is None else "account_inactive"
            self.audit.log_event(
                AuditLogEntry(
                    action=audit_actions.LOGIN_FAILED,
                    target_user_id=user.id if user else None,
                    target_user_name=user.name if user else None,
                    details={"reason": reason},
                )
            )
            logger.warning("Login failed: reason=%s", reason)
            raise AuthenticationInvalidError(INVALID_PIN_MESSAGE)

        now = datetime.now(UTC)
        stamped = self.users.mutate(user.id, lambda u: u.model_copy(update={"last_login": now}))
        user = stamped or user
        self.audit.record(audit_actions.LOGIN_SUCCESS, actor=user)
        logger.info("Login succeeded: user_id=%s role=%s", user.id, user.role.value)
        return user

    def issue_token(self, user: User) -> str:
        return create_session_token(user.id, user.role.value, self.settings)

    def resolve_token(self, token: str) -> User | None:
        """Return the user a session token refers to, or None when the token or user is invalid."""
        try:
            user_id = decode_session_token(token, self.settings)
        except jwt.PyJWTError:
            return None
        return self.users.get(user_id)

    def logout(self, user: User | None) -> None:
        if user is not None:
            self.audit.record(audit_actions.LOGOUT, actor=user)
