"""Closed vocabularies for roles and permission flags, and the canonical permission-set shape."""

from enum import Enum
from typing import Annotated

from pydantic import BeforeValidator

# Version of the permission-set shape persisted on user records.
# 1 = six-flag UI shape, 2 = full nineteen-flag shape.
PERMISSIONS_VERSION = 2


class Role(str, Enum):
    ADMIN = "admin"
    INSPECTOR = "inspector"
    DEVSECOPS = "devsecops"


# Appears in old seed data only; no template, no route accepts it.
LEGACY_SUPERVISOR_ROLE = "supervisor"


class Permission(str, Enum):
    """Every permission flag a user record can carry. Values are the wire names."""

    # Administration
    MANAGE_USERS = "canManageUsers"
    MANAGE_ROLES = "canManageRoles"
    MANAGE_FORMS = "canManageForms"
    SET_NOTIFICATIONS = "canSetNotifications"
    MANAGE_SYSTEM = "canManageSystem"
    BACKUP_RESTORE = "canBackupRestore"

    # Inspection work
    CREATE_INSPECTIONS = "canCreateInspections"
    EDIT_INSPECTIONS = "canEditInspections"
    VIEW_INSPECTIONS = "canViewInspections"
    VIEW_ANALYTICS = "canViewAnalytics"
    VIEW_GOOGLE_DRIVE_STATUS = "canViewGoogleDriveStatus"
    ADD_DIGITAL_SIGNATURE = "canAddDigitalSignature"
    EXPORT_REPORTS = "canExportReports"

    # Security and audit
    VIEW_DEVSECOPS_DASHBOARD = "canViewDevSecOpsDashboard"
    VIEW_SECURITY_LOGS = "canViewSecurityLogs"
    VIEW_SYSTEM_ERRORS = "canViewSystemErrors"
    TRACK_DATA_BREACHES = "canTrackDataBreaches"
    MONITOR_UPDATES = "canMonitorUpdates"
    VIEW_AUDIT_TRAIL = "canViewAuditTrail"


def empty_permissions() -> dict[Permission, bool]:
    """A complete permission set with every flag off."""
    return {p: False for p in Permission}


def _coerce_flags(value: object) -> dict[Permission, bool]:
    if not isinstance(value, dict):
        raise ValueError("permissions must be an object of flag name to boolean")
    result: dict[Permission, bool] = {}
    for key, flag in value.items():
        try:
            perm = Permission(key)
        except ValueError:
            raise ValueError(f"unknown permission {key!r}") from None
        if not isinstance(flag, bool):
            raise ValueError(f"permission {perm.value} must be a boolean")
        result[perm] = flag
    return result


def _complete_permission_set(value: object) -> dict[Permission, bool]:
    """Coerce a mapping of flag names to a complete set; unknown names are rejected."""
    return {**empty_permissions(), **_coerce_flags(value)}


# Always holds all nineteen flags after validation.
PermissionSet = Annotated[dict[Permission, bool], BeforeValidator(_complete_permission_set)]

# Only the flags the caller listed; used for per-user overrides.
PermissionOverrides = Annotated[dict[Permission, bool], BeforeValidator(_coerce_flags)]
