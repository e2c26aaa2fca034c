"""PIN login, logout and the current-session endpoint."""

import logging

from fastapi import APIRouter, Request, Response

from hse_inspect.api.deps import AuthServiceDep, SettingsDep
from hse_inspect.api.v1.guard import CurrentUser
from hse_inspect.schemas.auth import CurrentUserResponse, LoginRequest, LoginResponse, LogoutResponse
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.user import PublicUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def login(
    body: LoginRequest,
    response: Response,
    auth: AuthServiceDep,
    settings: SettingsDep,
) -> LoginResponse:
    """
    Authenticate with a PIN. On success the session token is set as an HttpOnly
    cookie; logging in again replaces it.
    """
    user = auth.authenticate_pin(body.pin)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=auth.issue_token(user),
        max_age=settings.SESSION_MAX_AGE_SEC,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return LoginResponse(user=PublicUser.from_user(user))


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    response: Response,
    auth: AuthServiceDep,
    settings: SettingsDep,
) -> LogoutResponse:
    """Clear the session cookie. Always succeeds, with or without a valid session."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    auth.logout(auth.resolve_token(token) if token else None)
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return LogoutResponse()


@router.get("/me", response_model=CurrentUserResponse)
def me(user: CurrentUser) -> CurrentUserResponse:
    return CurrentUserResponse(user=PublicUser.from_user(user))
