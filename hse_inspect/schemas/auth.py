"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field

from hse_inspect.schemas.user import PublicUser


class LoginRequest(BaseModel):
    """PIN login. Format is checked by validate_pin so the caller gets a specific reason."""

    pin: str = Field(default="", max_length=64, description="Four-digit PIN")


class LoginResponse(BaseModel):
    """Successful login; the session token is only ever sent as an HttpOnly cookie."""

    success: bool = True
    user: PublicUser


class LogoutResponse(BaseModel):
    success: bool = True


class CurrentUserResponse(BaseModel):
    user: PublicUser
