"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The access token carries only the user id ("sub") and an expiry.
Role and status are NOT in the token — the auth gate re-reads them
from the store on every request.

Verification failures keep their reason (malformed, bad signature,
expired) because clients show "invalid token" and "token has expired"
differently.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt

from userhub.config import settings


class TokenFailure(str, Enum):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


class TokenError(Exception):
    """Raised when token verification fails."""

    def __init__(self, reason: TokenFailure, message: str):
        self.reason = reason
        super().__init__(message)


def create_access_token(
    user_id: uuid.UUID | str,
    expires_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed JWT access token for a user.

    A zero or negative expires_minutes produces a token that is already
    expired, which is handy in tests.
    """
    issued_at = now or datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": issued_at + timedelta(minutes=expires_minutes),
        "iat": issued_at,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> uuid.UUID:
    """Verify a JWT access token and return the subject's user id.

    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError(TokenFailure.EXPIRED, "Token has expired")
    except jwt.InvalidSignatureError:
        raise TokenError(TokenFailure.INVALID_SIGNATURE, "Invalid token signature")
    except jwt.InvalidTokenError as e:
        raise TokenError(TokenFailure.MALFORMED, f"Invalid token: {e}")

    if payload.get("type") != "access":
        raise TokenError(TokenFailure.MALFORMED, "Invalid token: not an access token")
    try:
        return uuid.UUID(payload["sub"])
    except (ValueError, TypeError, AttributeError):
        raise TokenError(TokenFailure.MALFORMED, "Invalid token: bad subject")
