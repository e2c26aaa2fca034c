"""Permission templates per role and the checks the guard and route guard share.

get_role_permissions is the single source of default permissions. A role change always
re-derives from it, discarding any per-user overrides made under the previous role.
"""

import logging
from collections.abc import Iterable, Mapping

from hse_inspect.schemas.permissions import (
    Permission,
    Role,
    empty_permissions,
)
from hse_inspect.schemas.user import User

logger = logging.getLogger(__name__)

_ADMIN_GRANTS: frozenset[Permission] = frozenset(
    {
        Permission.MANAGE_USERS,
        Permission.MANAGE_ROLES,
        Permission.MANAGE_FORMS,
        Permission.SET_NOTIFICATIONS,
        Permission.MANAGE_SYSTEM,
        Permission.BACKUP_RESTORE,
        # Operational views, no authoring
        Permission.VIEW_INSPECTIONS,
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_GOOGLE_DRIVE_STATUS,
        Permission.EXPORT_REPORTS,
        # Security views, not the DevSecOps dashboard itself
        Permission.VIEW_SECURITY_LOGS,
        Permission.VIEW_SYSTEM_ERRORS,
        Permission.TRACK_DATA_BREACHES,
        Permission.MONITOR_UPDATES,
        Permission.VIEW_AUDIT_TRAIL,
    }
)

_INSPECTOR_GRANTS: frozenset[Permission] = frozenset(
    {
        Permission.CREATE_INSPECTIONS,
        Permission.EDIT_INSPECTIONS,
        Permission.VIEW_INSPECTIONS,
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_GOOGLE_DRIVE_STATUS,
        Permission.ADD_DIGITAL_SIGNATURE,
        Permission.EXPORT_REPORTS,
    }
)

_DEVSECOPS_GRANTS: frozenset[Permission] = frozenset(
    {
        Permission.VIEW_INSPECTIONS,
        Permission.VIEW_DEVSECOPS_DASHBOARD,
        Permission.VIEW_SECURITY_LOGS,
        Permission.VIEW_SYSTEM_ERRORS,
        Permission.TRACK_DATA_BREACHES,
        Permission.MONITOR_UPDATES,
        Permission.VIEW_AUDIT_TRAIL,
    }
)

ROLE_GRANTS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: _ADMIN_GRANTS,
    Role.INSPECTOR: _INSPECTOR_GRANTS,
    Role.DEVSECOPS: _DEVSECOPS_GRANTS,
}

# Six-flag UI shape (version 1) -> full shape (version 2). None = no counterpart, dropped.
LEGACY_PERMISSION_MAP: dict[str, Permission | None] = {
    "canCreateInspections": Permission.CREATE_INSPECTIONS,
    "canApproveInspections": None,
    "canViewAnalytics": Permission.VIEW_ANALYTICS,
    "canManageUsers": Permission.MANAGE_USERS,
    "canExportReports": Permission.EXPORT_REPORTS,
    "canViewAuditTrail": Permission.VIEW_AUDIT_TRAIL,
}


def _as_role(role: Role | str | None) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def get_role_permissions(role: Role | str | None) -> dict[Permission, bool]:
    """Return a fresh, complete permission set for role. Unknown roles get every flag False."""
    permissions = empty_permissions()
    resolved = _as_role(role)
    if resolved is None:
        return permissions
    for permission in ROLE_GRANTS[resolved]:
        permissions[permission] = True
    return permissions


def apply_overrides(
    current: Mapping[Permission, bool],
    overrides: Mapping[Permission, bool],
) -> dict[Permission, bool]:
    """Merge per-user overrides on top of the current set."""
    merged = dict(current)
    merged.update(overrides)
    return merged


def has_permission(user: User, permission: Permission) -> bool:
    return user.permissions.get(permission, False)


def has_role(user: User, roles: Role | Iterable[Role]) -> bool:
    allowed = {roles} if isinstance(roles, Role) else set(roles)
    return user.role in allowed


def check_permissions(
    user: User,
    permissions: Iterable[Permission],
    require_all: bool = False,
) -> bool:
    """ALL listed flags when require_all, otherwise ANY one of them."""
    flags = [has_permission(user, p) for p in permissions]
    return all(flags) if require_all else any(flags)


def migrate_legacy_permissions(
    flags: Mapping[str, object],
    role: Role | str | None,
) -> dict[Permission, bool]:
    """
    Upgrade a version-1 (six-flag) permission mapping to the full set.

    Starts from the role template, then applies each legacy flag that has a counterpart.
    Flags that are already full-shape names pass through unchanged.
    """
    permissions = get_role_permissions(role)
    for key, value in flags.items():
        if not isinstance(value, bool):
            continue
        if key in LEGACY_PERMISSION_MAP:
            target = LEGACY_PERMISSION_MAP[key]
            if target is None:
                logger.info("Dropping legacy permission %s (no counterpart)", key)
                continue
            permissions[target] = value
            continue
        try:
            permissions[Permission(key)] = value
        except ValueError:
            logger.warning("Dropping unknown permission %s during migration", key)
    return permissions
