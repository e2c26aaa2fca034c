"""
Create a user (e.g. the first admin). Run from project root:
  python -m hse_inspect.scripts.create_user NAME ROLE DEPARTMENT [--pin 4826]
Example:
  python -m hse_inspect.scripts.create_user "Jane Doe" admin Administration

The PIN is printed once; only its hash is stored.
"""
import argparse
import sys
from datetime import UTC, datetime
from uuid import uuid4

from hse_inspect.core.config import get_settings
from hse_inspect.core.security import validate_pin
from hse_inspect.schemas.permissions import PERMISSIONS_VERSION, Role
from hse_inspect.schemas.user import User
from hse_inspect.services.audit import USER_CREATED, AuditService
from hse_inspect.services.permissions import get_role_permissions
from hse_inspect.services.users import UserService
from hse_inspect.store import SqlStore, build_store


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an HSE inspection user.")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("role", choices=[r.value for r in Role])
    parser.add_argument("department", help="Department (1-255 chars)")
    parser.add_argument("--pin", help="Use this PIN instead of a generated one")
    args = parser.parse_args(argv)

    name = args.name.strip()
    department = args.department.strip()
    if not name or len(name) > 255 or not department or len(department) > 255:
        print("Name and department must be 1-255 characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    store = build_store(settings)
    if isinstance(store, SqlStore):
        store.create_tables()
    audit = AuditService(store, settings)
    users = UserService(store, settings, audit)

    if args.pin is not None:
        check = validate_pin(args.pin)
        if not check.is_valid:
            print(check.message, file=sys.stderr)
            return 1
        pin = args.pin
        pin_hash, lookup = users.pin_credentials(pin)
        if any(u.pin_lookup == lookup for u in users.users.list_all()):
            print("PIN is already in use.", file=sys.stderr)
            return 1
    else:
        pin = users.generate_unique_pin()
        pin_hash, lookup = users.pin_credentials(pin)

    role = Role(args.role)
    user = User(
        id=str(uuid4()),
        name=name,
        role=role,
        department=department,
        is_active=True,
        pin_hash=pin_hash,
        pin_lookup=lookup,
        permissions=get_role_permissions(role),
        permissions_version=PERMISSIONS_VERSION,
        created_at=datetime.now(UTC),
    )
    users.users.add(user)
    audit.record(USER_CREATED, target=user, details={"role": role.value, "source": "cli"})
    print(f"Created user '{name}' ({role.value}) id={user.id} PIN={pin}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
