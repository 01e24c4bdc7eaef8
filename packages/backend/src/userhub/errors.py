"""Typed errors raised by the auth gates and account operations.

Learn: Services never build HTTP responses. They raise a UserHubError
subclass carrying a stable code, a category, and the status code the
boundary should use. main.py registers one handler that turns any of
these into the JSON error envelope:

    {"success": false, "message": "...", "error": "<code>", "category": "..."}
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class UserHubError(Exception):
    """Base class for every error with a defined transport mapping."""

    code = "error"
    category = ErrorCategory.INTERNAL
    status_code = 500
    default_message = "Internal server error"
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "error": self.code,
            "category": self.category.value,
        }


# ─── Validation ─────────────────────────────────────────


class ValidationFailed(UserHubError):
    """Malformed input. Carries every violation, not just the first."""

    code = "validation_failed"
    category = ErrorCategory.VALIDATION
    status_code = 400

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors) or "Validation failed")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


# ─── Unauthenticated ────────────────────────────────────


class Unauthenticated(UserHubError):
    code = "unauthenticated"
    category = ErrorCategory.UNAUTHENTICATED
    status_code = 401
    default_message = "Authentication required"


class NoTokenError(Unauthenticated):
    code = "no_token"
    default_message = "Access denied. No token provided"


class InvalidTokenError(Unauthenticated):
    code = "invalid_token"
    default_message = "Invalid token"


class TokenExpiredError(Unauthenticated):
    code = "token_expired"
    default_message = "Token has expired"


class UserNotFoundError(Unauthenticated):
    """The token's subject no longer exists in the store."""

    code = "user_not_found"
    default_message = "User not found"


class InvalidCredentialsError(Unauthenticated):
    # Same message for unknown email and wrong password.
    code = "invalid_credentials"
    default_message = "Invalid email or password"


# ─── Forbidden ──────────────────────────────────────────


class Forbidden(UserHubError):
    code = "forbidden"
    category = ErrorCategory.FORBIDDEN
    status_code = 403
    default_message = "Access denied"


class AccountDeactivatedError(Forbidden):
    code = "account_deactivated"
    default_message = "Account is deactivated. Contact administrator"


class RoleNotPermittedError(Forbidden):
    code = "role_not_permitted"
    default_message = "Access denied. Insufficient permissions"


# ─── Bad request ────────────────────────────────────────


class BadRequest(UserHubError):
    code = "bad_request"
    category = ErrorCategory.BAD_REQUEST
    status_code = 400
    default_message = "Bad request"


class SelfModificationError(BadRequest):
    code = "self_modification_forbidden"
    default_message = "Cannot modify your own status"


class CurrentPasswordIncorrectError(BadRequest):
    code = "current_password_incorrect"
    default_message = "Current password is incorrect"


# ─── Conflict / not found ───────────────────────────────


class EmailInUseError(UserHubError):
    code = "email_in_use"
    category = ErrorCategory.CONFLICT
    status_code = 409
    default_message = "Email already in use"


class NotFoundError(UserHubError):
    code = "not_found"
    category = ErrorCategory.NOT_FOUND
    status_code = 404
    default_message = "User not found"


# ─── Internal ───────────────────────────────────────────


class InternalError(UserHubError):
    """Store, hashing or signing fault. Callers only see the generic message."""

    code = "internal_error"


class ServiceTimeoutError(InternalError):
    code = "service_timeout"
    status_code = 503
    default_message = "Service temporarily unavailable, please retry"
    retryable = True
