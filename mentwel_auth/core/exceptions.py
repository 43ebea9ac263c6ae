"""
Typed errors raised by the authentication core.
The HTTP layer maps each type to a status code and a response body.
"""
from typing import Any, Optional
from fastapi import status


class AuthServiceError(Exception):
    """Base class for errors raised by the authentication core."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal Server Error"
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, detail: Optional[str] = None, details: Optional[Any] = None):
        self.detail = detail or self.default_detail
        self.details = details
        super().__init__(self.detail)


class ValidationError(AuthServiceError):
    """Malformed or missing input (identity, age, terms, password policy, tokens)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"
    error_code = "VALIDATION_ERROR"


class UnauthorizedError(AuthServiceError):
    """Bad credentials or an invalid, expired or revoked token."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
    error_code = "UNAUTHORIZED"


class TokenExpiredError(UnauthorizedError):
    default_detail = "Token expired"
    error_code = "TOKEN_EXPIRED"


class InvalidSignatureError(UnauthorizedError):
    default_detail = "Invalid token"
    error_code = "INVALID_TOKEN"


class ForbiddenError(AuthServiceError):
    """Credentials are valid but the account may not proceed."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"
    error_code = "FORBIDDEN"


class NotFoundError(AuthServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not Found"
    error_code = "NOT_FOUND"


class ConflictError(AuthServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"
    error_code = "CONFLICT"


class TooManyRequestsError(AuthServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests, please try again later"
    error_code = "RATE_LIMITED"


class MessageDispatchError(AuthServiceError):
    """A message that had to be delivered synchronously could not be sent."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Failed to send message"
    error_code = "MESSAGE_DISPATCH_FAILED"
