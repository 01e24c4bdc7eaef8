"""Authentication and authorization gates, exercised without HTTP."""

import asyncio
import uuid

import pytest

from userhub.auth.dependencies import authenticate, authorize, require_roles
from userhub.auth.jwt import create_access_token
from userhub.db.models import Role, UserStatus
from userhub.errors import (
    AccountDeactivatedError,
    InternalError,
    InvalidTokenError,
    NoTokenError,
    RoleNotPermittedError,
    ServiceTimeoutError,
    TokenExpiredError,
    UserNotFoundError,
)
from userhub.repositories.in_memory import InMemoryUserRepository


# ─── authenticate ───────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Basic abc", "token"])
async def test_missing_or_non_bearer_header(repo, header):
    with pytest.raises(NoTokenError):
        await authenticate(header, repo)


@pytest.mark.asyncio
async def test_garbage_token(repo):
    with pytest.raises(InvalidTokenError):
        await authenticate("Bearer not.a.jwt", repo)


@pytest.mark.asyncio
async def test_expired_token(repo, make_user):
    user = await make_user()
    token = create_access_token(user.id, expires_minutes=-1)
    with pytest.raises(TokenExpiredError) as exc_info:
        await authenticate(f"Bearer {token}", repo)
    assert exc_info.value.message == "Token has expired"


@pytest.mark.asyncio
async def test_subject_no_longer_exists(repo):
    token = create_access_token(uuid.uuid4())
    with pytest.raises(UserNotFoundError):
        await authenticate(f"Bearer {token}", repo)


@pytest.mark.asyncio
async def test_inactive_subject_is_forbidden(repo, make_user):
    user = await make_user(status=UserStatus.INACTIVE)
    token = create_access_token(user.id)
    with pytest.raises(AccountDeactivatedError):
        await authenticate(f"Bearer {token}", repo)


@pytest.mark.asyncio
async def test_valid_token_resolves_current_record(repo, make_user):
    user = await make_user(role=Role.ADMIN)
    token = create_access_token(user.id)

    identity = await authenticate(f"Bearer {token}", repo)
    assert identity.id == user.id
    assert identity.role == Role.ADMIN
    assert identity.status == UserStatus.ACTIVE


@pytest.mark.asyncio
async def test_status_is_read_on_every_call(repo, make_user):
    """A token keeps working only as long as the account stays active."""
    user = await make_user()
    header = f"Bearer {create_access_token(user.id)}"
    await authenticate(header, repo)

    user.status = UserStatus.INACTIVE
    await repo.save(user)
    with pytest.raises(AccountDeactivatedError):
        await authenticate(header, repo)

    user.status = UserStatus.ACTIVE
    await repo.save(user)
    assert (await authenticate(header, repo)).id == user.id


class _SlowRepo(InMemoryUserRepository):
    async def get_by_id(self, user_id):
        await asyncio.sleep(1)
        return await super().get_by_id(user_id)


@pytest.mark.asyncio
async def test_store_lookup_past_deadline_is_timeout_not_rejection():
    token = create_access_token(uuid.uuid4())
    with pytest.raises(ServiceTimeoutError):
        await authenticate(f"Bearer {token}", _SlowRepo(), timeout=0.05)


# ─── authorize ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_authorize_admits_allowed_role(make_user):
    admin = await make_user(role=Role.ADMIN)
    assert authorize(admin, [Role.ADMIN]) is admin


@pytest.mark.asyncio
async def test_authorize_rejects_other_roles(make_user):
    user = await make_user()
    with pytest.raises(RoleNotPermittedError):
        authorize(user, [Role.ADMIN])


@pytest.mark.asyncio
async def test_authorize_accepts_any_of_several_roles(make_user):
    user = await make_user()
    assert authorize(user, [Role.ADMIN, Role.USER]) is user


def test_authorize_without_identity_is_internal_error():
    with pytest.raises(InternalError):
        authorize(None, [Role.ADMIN])


@pytest.mark.asyncio
async def test_require_roles_builds_a_gate(make_user):
    gate = require_roles(Role.ADMIN)
    admin = await make_user(email="a@example.com", role=Role.ADMIN)
    user = await make_user(email="u@example.com")

    assert await gate(user=admin) is admin
    with pytest.raises(RoleNotPermittedError):
        await gate(user=user)
