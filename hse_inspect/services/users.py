"""User administration: create, update, soft-delete and PIN reset, each recorded in the audit log."""

import logging
import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from hse_inspect.core.errors import NotFoundError, ValidationFailedError
from hse_inspect.core.security import (
    MAX_PIN_ATTEMPTS,
    generate_secure_pin,
    hash_pin_secure,
    pin_lookup_key,
    verify_pin,
)
from hse_inspect.schemas.permissions import PERMISSIONS_VERSION
from hse_inspect.schemas.user import (
    PinResetRecord,
    PublicUser,
    User,
    UserCreateRequest,
    UsersListResponse,
    UserUpdateRequest,
)
from hse_inspect.services import audit as audit_actions
from hse_inspect.services.audit import AuditService
from hse_inspect.services.permissions import apply_overrides, get_role_permissions
from hse_inspect.store.base import USERS, KeyValueStore
from hse_inspect.store.repositories import UserRepository

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_RESET_REASON = "No reason provided"


def _reject_blank(**values: str | None) -> None:
    """Text fields that are empty once stripped are rejected like missing ones."""
    blank = [field for field, value in values.items() if value is not None and not value]
    if blank:
        raise ValidationFailedError("Missing or invalid fields", required=blank)


class UserService:
    def __init__(self, store: KeyValueStore, settings: "Settings", audit: AuditService) -> None:
        self.users = UserRepository(store)
        self.settings = settings
        self.audit = audit

    def pin_credentials(self, pin: str) -> tuple[str, str]:
        """Return (bcrypt hash, lookup digest) for a new PIN."""
        return (
            hash_pin_secure(pin, self.settings.PIN_BCRYPT_ROUNDS),
            pin_lookup_key(pin, self.settings.PIN_LOOKUP_SECRET.get_secret_value()),
        )

    def generate_unique_pin(self, exclude_user_id: str | None = None) -> str:
        """
        A policy-compliant PIN that no other account currently uses (PIN alone identifies a user).

        Accounts without a lookup digest are checked against their stored credential.
        Call with the users lock held until the new credential is written.
        """
        secret = self.settings.PIN_LOOKUP_SECRET.get_secret_value()
        others = [u for u in self.users.list_all() if u.id != exclude_user_id]
        taken = {u.pin_lookup for u in others if u.pin_lookup}
        unindexed = [u.pin_hash for u in others if not u.pin_lookup]
        for _ in range(MAX_PIN_ATTEMPTS):
            pin = generate_secure_pin()
            if pin_lookup_key(pin, secret) in taken:
                continue
            if any(verify_pin(pin, stored) for stored in unindexed):
                continue
            return pin
        raise RuntimeError("No unused PIN available")

    def get_user(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        *,
        role: str | None = None,
        status: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> UsersListResponse:
        """Filter by role, active status and name/department substring; one page of sanitized users."""
        filtered = self.users.list_all()
        if role:
            filtered = [u for u in filtered if u.role.value == role]
        if status:
            want_active = status == "active"
            filtered = [u for u in filtered if u.is_active == want_active]
        if search:
            needle = search.lower()
            filtered = [
                u
                for u in filtered
                if needle in u.name.lower() or needle in (u.department or "").lower()
            ]
        start = (page - 1) * limit
        return UsersListResponse(
            users=[PublicUser.from_user(u) for u in filtered[start : start + limit]],
            total=len(filtered),
            page=page,
            total_pages=math.ceil(len(filtered) / limit) if filtered else 0,
        )

    def create_user(self, actor: User, body: UserCreateRequest) -> tuple[User, str]:
        """Create an active user with the role's template permissions. Returns the user and the one-time PIN."""
        name = body.name.strip()
        department = body.department.strip()
        _reject_blank(name=name, department=department)
        with self.users.store.lock(USERS):
            pin = self.generate_unique_pin()
            pin_hash, lookup = self.pin_credentials(pin)
            user = User(
                id=str(uuid4()),
                name=name,
                role=body.role,
                department=department,
                is_active=True,
                pin_hash=pin_hash,
                pin_lookup=lookup,
                permissions=get_role_permissions(body.role),
                permissions_version=PERMISSIONS_VERSION,
                created_at=datetime.now(UTC),
            )
            self.users.add(user)
        self.audit.record(
            audit_actions.USER_CREATED,
            actor=actor,
            target=user,
            details={"role": user.role.value, "department": user.department},
        )
        logger.info("User created: id=%s role=%s by=%s", user.id, user.role.value, actor.id)
        return user, pin

    def update_user(self, actor: User, user_id: str, body: UserUpdateRequest) -> User:
        """
        Apply the provided fields. A role change resets permissions to the new role's template
        and any permission overrides in the same request are ignored.
        """
        if body.is_active is False and user_id == actor.id:
            raise ValidationFailedError("Cannot deactivate your own account")

        name = body.name.strip() if body.name is not None else None
        department = body.department.strip() if body.department is not None else None
        _reject_blank(name=name, department=department)

        changes: dict[str, Any] = {}

        def apply(user: User) -> User:
            updates: dict[str, Any] = {}
            if name and name != user.name:
                updates["name"] = name
                changes["name"] = name
            if body.role is not None and body.role != user.role:
                updates["role"] = body.role
                updates["permissions"] = get_role_permissions(body.role)
                updates["permissions_version"] = PERMISSIONS_VERSION
                changes["role"] = body.role.value
            if department and department != user.department:
                updates["department"] = department
                changes["department"] = department
            if body.is_active is not None and body.is_active != user.is_active:
                updates["is_active"] = body.is_active
                changes["is_active"] = body.is_active
            if body.permissions and "role" not in updates:
                updates["permissions"] = apply_overrides(user.permissions, body.permissions)
                changes["permissions"] = {p.value: v for p, v in body.permissions.items()}
            return user.model_copy(update=updates)

        updated = self.users.mutate(user_id, apply)
        if updated is None:
            raise NotFoundError("User not found")
        self.audit.record(audit_actions.USER_UPDATED, actor=actor, target=updated, details=changes)
        return updated

    def deactivate_user(self, actor: User, user_id: str) -> User:
        """Soft delete: the record stays in the users collection with is_active False."""
        if user_id == actor.id:
            raise ValidationFailedError("Cannot deactivate your own account")
        updated = self.users.mutate(user_id, lambda u: u.model_copy(update={"is_active": False}))
        if updated is None:
            raise NotFoundError("User not found")
        self.audit.record(audit_actions.USER_DEACTIVATED, actor=actor, target=updated)
        logger.info("User deactivated: id=%s by=%s", user_id, actor.id)
        return updated

    def reset_pin(self, actor: User, user_id: str, reason: str | None) -> tuple[User, str]:
        """Issue a new PIN; the previous one stops working immediately."""
        reason = (reason or "").strip() or DEFAULT_RESET_REASON
        if self.users.get(user_id) is None:
            raise NotFoundError("User not found")

        def apply(user: User) -> User:
            history = [
                *user.pin_reset_history,
                PinResetRecord(
                    reset_by=actor.id,
                    reset_by_name=actor.name,
                    reset_at=datetime.now(UTC),
                    reason=reason,
                ),
            ]
            return user.model_copy(
                update={"pin_hash": pin_hash, "pin_lookup": lookup, "pin_reset_history": history}
            )

        with self.users.store.lock(USERS):
            pin = self.generate_unique_pin(exclude_user_id=user_id)
            pin_hash, lookup = self.pin_credentials(pin)
            updated = self.users.mutate(user_id, apply)
        if updated is None:
            raise NotFoundError("User not found")
        self.audit.record(
            audit_actions.PIN_RESET,
            actor=actor,
            target=updated,
            details={"reason": reason},
        )
        return updated, pin
