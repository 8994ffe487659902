"""Failure taxonomy shared by the gate, the services and the translator."""
from __future__ import annotations


class APIError(Exception):
    """Base class for failures that carry an HTTP status code."""

    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(APIError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredential(APIError):
    status_code = 401
    default_message = "Invalid or expired token"


class BadRequest(APIError):
    status_code = 400
    default_message = "Bad request"


class ValidationError(APIError):
    status_code = 400
    default_message = "Validation failed"


class Conflict(ValidationError):
    """Uniqueness violation reported by the store."""

    status_code = 409
    default_message = "Record already exists"


class NotFound(APIError):
    status_code = 404
    default_message = "Not found"


class ServerError(APIError):
    status_code = 500
    default_message = "Server Error"


__all__ = [
    "APIError",
    "AuthenticationRequired",
    "BadRequest",
    "Conflict",
    "InvalidCredential",
    "NotFound",
    "ServerError",
    "ValidationError",
]
