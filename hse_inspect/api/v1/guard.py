"""
Authorization guard for API routes.

guard(...) builds a dependency that authenticates the session token, enforces the
route's role and permission requirements, records the access, and yields the user.
Checks run in a fixed order and stop at the first failure; the route handler only
runs when every check passes.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hse_inspect.api.deps import AuditDep, AuthServiceDep, SettingsDep
from hse_inspect.core.errors import (
    AccountInactiveError,
    AuthenticationInvalidError,
    AuthenticationMissingError,
    HSEError,
    InternalError,
    PermissionDeniedError,
    RoleMismatchError,
)
from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.user import User
from hse_inspect.services.permissions import check_permissions, has_role

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

MISSING_TOKEN_MESSAGE = "Unauthorized - No auth token provided"
INVALID_TOKEN_MESSAGE = "Unauthorized - Invalid or expired token"
INACTIVE_MESSAGE = "Forbidden - User account is deactivated"
ROLE_MESSAGE = "Forbidden - Insufficient role permissions"
PERMISSION_MESSAGE = "Forbidden - Insufficient permissions"


def _as_list(value, kind):
    if value is None:
        return []
    if isinstance(value, kind):
        return [value]
    return list(value)


def session_token(
    request: Request,
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> str | None:
    """Session cookie first, then an Authorization: Bearer header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


def guard(
    required_role: Role | Iterable[Role] | None = None,
    required_permission: Permission | Iterable[Permission] | None = None,
    require_all: bool = False,
) -> Callable[..., User]:
    """
    Return a dependency enforcing the given requirements.

    required_role: the user's role must be one of these.
    required_permission: any one of these (or all, when require_all) must be granted.
    """
    roles = _as_list(required_role, Role)
    permissions = _as_list(required_permission, Permission)

    def dependency(
        request: Request,
        token: Annotated[str | None, Depends(session_token)],
        auth: AuthServiceDep,
        audit: AuditDep,
    ) -> User:
        path = request.url.path
        if not token:
            logger.warning("Auth rejected: no token path=%s", path)
            raise AuthenticationMissingError(MISSING_TOKEN_MESSAGE)

        try:
            user = auth.resolve_token(token)
            if user is None:
                logger.warning("Auth rejected: invalid token path=%s", path)
                raise AuthenticationInvalidError(INVALID_TOKEN_MESSAGE)

            if not user.is_active:
                logger.warning("Auth rejected: inactive user_id=%s path=%s", user.id, path)
                raise AccountInactiveError(INACTIVE_MESSAGE)

            if roles and not has_role(user, roles):
                logger.warning(
                    "Auth rejected: role=%s required=%s path=%s",
                    user.role.value,
                    [r.value for r in roles],
                    path,
                )
                raise RoleMismatchError(
                    ROLE_MESSAGE,
                    required=[r.value for r in roles],
                    current=user.role.value,
                )

            if permissions and not check_permissions(user, permissions, require_all):
                logger.warning(
                    "Auth rejected: user_id=%s missing permissions=%s path=%s",
                    user.id,
                    [p.value for p in permissions],
                    path,
                )
                raise PermissionDeniedError(
                    PERMISSION_MESSAGE, required=[p.value for p in permissions]
                )

            audit.record_access(user, request)
        except HSEError:
            raise
        except Exception:
            logger.exception("Authorization check failed path=%s", path)
            raise InternalError()
        return user

    return dependency


CurrentUser = Annotated[User, Depends(guard())]
