"""Error taxonomy for the API. Each error maps to one HTTP status and the JSON error envelope."""

from typing import Any

from fastapi import status


class HSEError(Exception):
    """Base for errors that terminate a request with a structured envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        required: Any = None,
        current: Any = None,
        valid_types: list[str] | None = None,
    ) -> None:
        self.message = message
        self.required = required
        self.current = current
        self.valid_types = valid_types
        super().__init__(message)

    def to_envelope(self) -> dict[str, Any]:
        """Return the response body; optional keys are omitted when unset."""
        body: dict[str, Any] = {"error": self.message}
        if self.required is not None:
            body["required"] = self.required
        if self.current is not None:
            body["current"] = self.current
        if self.valid_types is not None:
            body["validTypes"] = self.valid_types
        return body


class AuthenticationMissingError(HSEError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthenticationInvalidError(HSEError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AccountInactiveError(HSEError):
    status_code = status.HTTP_403_FORBIDDEN


class RoleMismatchError(HSEError):
    status_code = status.HTTP_403_FORBIDDEN


class PermissionDeniedError(HSEError):
    status_code = status.HTTP_403_FORBIDDEN


class ValidationFailedError(HSEError):
    """Caller-fixable input problem; echoes the missing or invalid fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(HSEError):
    status_code = status.HTTP_404_NOT_FOUND


class MethodNotAllowedError(HSEError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class InternalError(HSEError):
    """Never carries internal detail to the client."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
