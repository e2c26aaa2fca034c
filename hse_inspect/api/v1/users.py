"""Admin user management. Every route requires the admin role and canManageUsers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from hse_inspect.api.deps import UserServiceDep
from hse_inspect.api.v1.guard import guard
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.user import (
    PinResetRequest,
    PinResetResponse,
    PublicUser,
    User,
    UserCreatedResponse,
    UserCreateRequest,
    UserResponse,
    UsersListResponse,
    UserStatusFilter,
    UserUpdateRequest,
)

router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)

UserAdmin = Annotated[User, Depends(guard(Role.ADMIN, Permission.MANAGE_USERS))]


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: UserAdmin,
    users: UserServiceDep,
    role: Role | None = None,
    status_filter: Annotated[UserStatusFilter | None, Query(alias="status")] = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> UsersListResponse:
    return users.list_users(
        role=role.value if role else None,
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
    )


@router.post(
    "",
    response_model=UserCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_user(
    body: UserCreateRequest,
    admin: UserAdmin,
    users: UserServiceDep,
) -> UserCreatedResponse:
    """Create a user. The generated PIN is returned once and cannot be retrieved later."""
    user, pin = users.create_user(admin, body)
    return UserCreatedResponse(user=PublicUser.from_user(user), temp_pin=pin)


@router.get("/{user_id}", response_model=UserResponse, responses={404: {"model": ErrorResponse}})
def get_user(user_id: str, _admin: UserAdmin, users: UserServiceDep) -> UserResponse:
    return UserResponse(user=PublicUser.from_user(users.get_user(user_id)))


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_user(
    user_id: str,
    body: UserUpdateRequest,
    admin: UserAdmin,
    users: UserServiceDep,
) -> UserResponse:
    updated = users.update_user(admin, user_id, body)
    return UserResponse(user=PublicUser.from_user(updated), message="User updated successfully")


@router.delete(
    "/{user_id}",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def deactivate_user(user_id: str, admin: UserAdmin, users: UserServiceDep) -> UserResponse:
    """Soft delete: the account is deactivated, never removed."""
    updated = users.deactivate_user(admin, user_id)
    return UserResponse(
        user=PublicUser.from_user(updated), message="User deactivated successfully"
    )


@router.post(
    "/{user_id}/reset-pin",
    response_model=PinResetResponse,
    responses={404: {"model": ErrorResponse}},
)
def reset_pin(
    user_id: str,
    admin: UserAdmin,
    users: UserServiceDep,
    body: PinResetRequest | None = None,
) -> PinResetResponse:
    updated, pin = users.reset_pin(admin, user_id, body.reason if body else None)
    return PinResetResponse(user=PublicUser.from_user(updated), temp_pin=pin)
