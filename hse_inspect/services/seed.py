"""Demo accounts and upgrade of user records written by earlier versions."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from hse_inspect.core.security import PIN_LENGTH, hash_pin_secure, pin_lookup_key
from hse_inspect.schemas.permissions import (
    LEGACY_SUPERVISOR_ROLE,
    PERMISSIONS_VERSION,
    Role,
    empty_permissions,
)
from hse_inspect.schemas.user import User
from hse_inspect.services.permissions import get_role_permissions, migrate_legacy_permissions
from hse_inspect.store.base import USERS, KeyValueStore
from hse_inspect.store.repositories import UserRepository

if TYPE_CHECKING:
    from hse_inspect.core.config import Settings

logger = logging.getLogger(__name__)

# (id, name, role, department, pin)
DEMO_USERS: tuple[tuple[str, str, Role, str, str], ...] = (
    ("admin", "Admin User", Role.ADMIN, "Administration", "1234"),
    ("inspector", "Inspector Demo", Role.INSPECTOR, "Safety", "9999"),
    ("devsecops", "DevSecOps User", Role.DEVSECOPS, "Security", "7777"),
)

# Field names used by records from the browser-storage era.
_LEGACY_FIELD_NAMES = {
    "isActive": "is_active",
    "createdAt": "created_at",
    "lastLogin": "last_login",
    "pinHash": "pin_hash",
    "pinResetHistory": "pin_reset_history",
}


def seed_demo_users(store: KeyValueStore, settings: "Settings") -> list[User]:
    """Create the demo accounts when the users collection is empty. Returns what was created."""
    users = UserRepository(store)
    with store.lock(USERS):
        if users.raw_records():
            return []
        secret = settings.PIN_LOOKUP_SECRET.get_secret_value()
        created = [
            User(
                id=user_id,
                name=name,
                role=role,
                department=department,
                is_active=True,
                pin_hash=hash_pin_secure(pin, settings.PIN_BCRYPT_ROUNDS),
                pin_lookup=pin_lookup_key(pin, secret),
                permissions=get_role_permissions(role),
                permissions_version=PERMISSIONS_VERSION,
                created_at=datetime.now(UTC),
            )
            for user_id, name, role, department, pin in DEMO_USERS
        ]
        users.replace_all(created)
    logger.info("Seeded %s demo users", len(created))
    return created


def upgrade_user_record(record: dict[str, Any], settings: "Settings") -> dict[str, Any]:
    """
    Bring one stored user record to the current shape.

    Plaintext PINs are re-hashed with bcrypt; legacy digests are kept and verified as-is.
    Six-flag permission sets are expanded. Supervisor accounts become deactivated
    inspectors without any permission.
    """
    upgraded = {_LEGACY_FIELD_NAMES.get(k, k): v for k, v in record.items()}

    pin = upgraded.pop("pin", None)
    if not upgraded.get("pin_hash") and isinstance(pin, str) and pin:
        upgraded["pin_hash"] = pin
    stored = upgraded.get("pin_hash")
    if isinstance(stored, str) and len(stored) == PIN_LENGTH and stored.isdigit():
        upgraded["pin_hash"] = hash_pin_secure(stored, settings.PIN_BCRYPT_ROUNDS)
        upgraded["pin_lookup"] = pin_lookup_key(stored, settings.PIN_LOOKUP_SECRET.get_secret_value())

    if upgraded.get("role") == LEGACY_SUPERVISOR_ROLE:
        upgraded["role"] = Role.INSPECTOR.value
        upgraded["is_active"] = False
        upgraded["permissions"] = {p.value: False for p in empty_permissions()}
        upgraded["permissions_version"] = PERMISSIONS_VERSION
    elif upgraded.get("permissions_version") != PERMISSIONS_VERSION:
        flags = upgraded.get("permissions") or {}
        upgraded["permissions"] = {
            p.value: v
            for p, v in migrate_legacy_permissions(flags, upgraded.get("role")).items()
        }
        upgraded["permissions_version"] = PERMISSIONS_VERSION

    upgraded.setdefault("created_at", datetime.now(UTC).isoformat())
    upgraded.setdefault("department", "")
    return upgraded


def migrate_legacy_users(store: KeyValueStore, settings: "Settings") -> int:
    """Upgrade every stored user record that is not in the current shape. Returns the count changed."""
    users = UserRepository(store)
    changed = 0
    with store.lock(USERS):
        records = users.raw_records()
        upgraded_records = []
        for record in records:
            upgraded = upgrade_user_record(record, settings)
            try:
                User.model_validate(upgraded)
            except ValidationError:
                logger.warning("User record id=%s could not be upgraded", record.get("id"))
                upgraded_records.append(record)
                continue
            if upgraded != record:
                changed += 1
            upgraded_records.append(upgraded)
        if changed:
            store.save(USERS, upgraded_records)
            logger.info("Upgraded %s legacy user records", changed)
    return changed
