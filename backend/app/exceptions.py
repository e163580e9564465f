"""Domain errors raised by the services and rendered by the app-level handler.

Each error is an ``HTTPException`` carrying a machine-readable ``error_code``
and optional ``data`` so routers never need to translate them.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Base error: status code + error code + message + optional payload."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "API_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        data: Any = None,
        status_code: Optional[int] = None,
    ):
        if error_code is not None:
            self.error_code = error_code
        self.data = data
        super().__init__(status_code=status_code or type(self).status_code, detail=message)

    @property
    def message(self) -> str:
        return self.detail


class ValidationFailed(ApiError):
    """Client-correctable rule violation, with a field -> messages map."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message, data={"errors": errors})


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class AuthError(ApiError):
    """Authentication failure (bad credentials or unusable token)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTH_ERROR"

    def __init__(self, message: str = "Authentication failed", error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code)
        self.headers = {"WWW-Authenticate": "Bearer"}

    @classmethod
    def invalid_credentials(cls) -> "AuthError":
        return cls("Invalid credentials", "INVALID_CREDENTIALS")

    @classmethod
    def token_expired(cls) -> "AuthError":
        return cls("Token has expired", "TOKEN_EXPIRED")

    @classmethod
    def token_not_provided(cls) -> "AuthError":
        return cls("Token not provided", "TOKEN_NOT_PROVIDED")

    @classmethod
    def invalid_token(cls) -> "AuthError":
        return cls("Invalid token", "INVALID_TOKEN")

    @classmethod
    def user_not_found(cls) -> "AuthError":
        return cls("User not found", "USER_NOT_FOUND")
