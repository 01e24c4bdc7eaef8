"""Pydantic schemas for accounts, auth, and admin listings.

Learn: Pydantic v2 models validate request/response data. Input schemas
normalize (trim, lowercase email) and validate; UserRead is the only
outward shape of a user and has no password field at all.

JSON keys are camelCase on the wire (fullName, lastLogin, hasMore);
snake_case input keys are accepted too.
"""

import math
import re
import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    WrapValidator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from userhub.auth.password import MAX_PASSWORD_BYTES
from userhub.db.models import Role, UserStatus

SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'
FULL_NAME_MIN = 2
FULL_NAME_MAX = 50


def normalize_email(value: str) -> str:
    return value.strip().lower()


INVALID_EMAIL = "Please provide a valid email address"


def _email(value, handler) -> str:
    """Trim, run pydantic's EmailStr check, then lowercase the whole address."""
    if isinstance(value, str):
        value = value.strip()
    try:
        return normalize_email(handler(value))
    except ValidationError:
        raise ValueError(INVALID_EMAIL)


def validate_full_name(value: str) -> str:
    value = value.strip()
    if not FULL_NAME_MIN <= len(value) <= FULL_NAME_MAX:
        raise ValueError(
            f"Full name must be between {FULL_NAME_MIN} and {FULL_NAME_MAX} characters"
        )
    return value


def password_policy_violations(password: str) -> list[str]:
    """Every password rule the value breaks, in a stable order."""
    problems = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        problems.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if not re.search(r"[a-z]", password):
        problems.append("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", password):
        problems.append("Password must contain at least one number")
    if not any(ch in SPECIAL_CHARS for ch in password):
        problems.append("Password must contain at least one special character")
    return problems


def check_password_policy(value: str) -> str:
    """Raise one error listing every broken rule (see the validation handler)."""
    problems = password_policy_violations(value)
    if problems:
        raise PydanticCustomError(
            "password_policy",
            "{summary}",
            {"violations": problems, "summary": ", ".join(problems)},
        )
    return value


Email = Annotated[EmailStr, WrapValidator(_email)]
FullName = Annotated[str, AfterValidator(validate_full_name)]
NewPassword = Annotated[str, AfterValidator(check_password_policy)]

_email_adapter = TypeAdapter(Email)


def validate_email(value: str) -> str:
    """Same check as request bodies, for callers outside pydantic models (CLI)."""
    try:
        return _email_adapter.validate_python(value)
    except ValidationError:
        raise ValueError(INVALID_EMAIL)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Requests ───────────────────────────────────────────


class SignupRequest(CamelModel):
    email: Email
    password: NewPassword
    full_name: FullName


class LoginRequest(CamelModel):
    email: Email
    password: str = Field(min_length=1)


class UpdateProfileRequest(CamelModel):
    email: Optional[Email] = None
    full_name: Optional[FullName] = None


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: NewPassword


# ─── Responses ──────────────────────────────────────────


class UserRead(CamelModel):
    """Public view of a user record."""

    id: uuid.UUID
    email: str
    full_name: str
    role: Role
    status: UserStatus
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


def build_pagination(total: int, page: int, limit: int) -> Pagination:
    return Pagination(
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if limit else 0,
        has_more=page * limit < total,
    )


class UserPage(CamelModel):
    users: list[UserRead]
    pagination: Pagination


class UserData(CamelModel):
    user: UserRead


class LoginData(CamelModel):
    token: str
    user: UserRead


# Response envelopes: {"success": true, "message": ..., "data": ...}


class Ack(CamelModel):
    success: bool = True
    message: Optional[str] = None


class UserEnvelope(Ack):
    data: UserData


class LoginEnvelope(Ack):
    data: LoginData


class UserPageEnvelope(Ack):
    data: UserPage
