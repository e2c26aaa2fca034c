"""Pydantic schemas for user records and the admin user-management endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from hse_inspect.schemas.permissions import (
    PERMISSIONS_VERSION,
    PermissionOverrides,
    PermissionSet,
    Role,
)


class PinResetRecord(BaseModel):
    """One entry in a user's PIN reset history."""

    reset_by: str = Field(..., description="Id of the admin who reset the PIN.")
    reset_by_name: str = Field(..., description="Name of the admin who reset the PIN.")
    reset_at: datetime
    reason: str


class User(BaseModel):
    """User record as persisted in the users collection. pin_hash never leaves the service layer."""

    model_config = {"extra": "ignore"}

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    role: Role
    department: str = Field(default="", max_length=255)
    is_active: bool = True
    pin_hash: str = Field(..., min_length=1, description="bcrypt hash (or legacy digest) of the PIN.")
    pin_lookup: str | None = Field(default=None, description="Keyed digest of the PIN for login lookup.")
    permissions: PermissionSet
    permissions_version: int = PERMISSIONS_VERSION
    created_at: datetime
    last_login: datetime | None = None
    pin_reset_history: list[PinResetRecord] = Field(default_factory=list)


class PublicUser(BaseModel):
    """Sanitized user for API responses (no credential)."""

    id: str
    name: str
    role: Role
    department: str
    is_active: bool
    permissions: PermissionSet
    created_at: datetime
    last_login: datetime | None = None
    pin_reset_history: list[PinResetRecord] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls.model_validate(user.model_dump(exclude={"pin_hash", "pin_lookup", "permissions_version"}))


class UserCreateRequest(BaseModel):
    """Body for POST /admin/users."""

    name: str = Field(..., min_length=1, max_length=255)
    role: Role
    department: str = Field(..., min_length=1, max_length=255)


class UserUpdateRequest(BaseModel):
    """Body for PUT /admin/users/{id}. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Role | None = None
    department: str | None = Field(default=None, min_length=1, max_length=255)
    is_active: bool | None = None
    permissions: PermissionOverrides | None = Field(
        default=None,
        description="Per-user permission overrides; ignored when the role changes in the same request.",
    )


class PinResetRequest(BaseModel):
    """Body for POST /admin/users/{id}/reset-pin."""

    reason: str | None = Field(default=None, max_length=1000)


class UserResponse(BaseModel):
    user: PublicUser
    message: str | None = None


class UserCreatedResponse(BaseModel):
    """The generated PIN is returned exactly once, here."""

    user: PublicUser
    temp_pin: str
    message: str = "User created successfully"


class PinResetResponse(BaseModel):
    user: PublicUser
    temp_pin: str
    message: str = "PIN reset successfully"


class UsersListResponse(BaseModel):
    """Response for GET /admin/users."""

    users: list[PublicUser]
    total: int
    page: int
    total_pages: int


UserStatusFilter = Literal["active", "inactive"]
