"""Test fixtures — in-memory user store, in-memory cache, HTTP client.

Learn: The app reaches the store only through the get_user_repo
dependency and the cache only through get_cache. Overriding those two
gives every test a fresh, isolated store without Postgres or Redis,
while the real auth gates, services, and error handlers all run.

Env vars are set before anything from userhub is imported, because
settings are read once at import time.
"""

import os

os.environ.setdefault(
    "USERHUB_JWT_SECRET", "test-jwt-secret-key-0123456789-abcdefghijklmnop"
)
os.environ.setdefault("USERHUB_BCRYPT_ROUNDS", "10")
os.environ["USERHUB_REDIS_URL"] = ""

import fnmatch
from functools import lru_cache
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from userhub.auth.dependencies import get_cache, get_user_repo
from userhub.auth.jwt import create_access_token
from userhub.auth.password import hash_password
from userhub.db.models import Role, User, UserStatus
from userhub.main import app
from userhub.repositories.in_memory import InMemoryUserRepository

DEFAULT_PASSWORD = "Abcdef1!"


class MemoryCache:
    """Dict-backed cache that records what the services did with it."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.hits = 0
        self.invalidations: list[str] = []

    async def connect(self) -> None:
        return None

    def is_available(self) -> bool:
        return True

    async def close(self) -> None:
        self.data.clear()

    async def get(self, key: str) -> Optional[Any]:
        if key in self.data:
            self.hits += 1
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self.data[key] = value

    async def invalidate(self, key_or_pattern: str) -> None:
        self.invalidations.append(key_or_pattern)
        for key in list(self.data):
            if fnmatch.fnmatch(key, key_or_pattern):
                del self.data[key]


@lru_cache(maxsize=None)
def hashed(password: str) -> str:
    """bcrypt is slow on purpose; hash each test password once."""
    return hash_password(password)


@pytest.fixture()
def repo():
    return InMemoryUserRepository()


@pytest.fixture()
def cache():
    return MemoryCache()


@pytest.fixture()
def make_user(repo):
    """Insert a user straight into the store (skips signup hashing cost)."""

    async def _make(
        email: str = "user@example.com",
        full_name: str = "Test User",
        password: str = DEFAULT_PASSWORD,
        role: Role = Role.USER,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        return await repo.create(
            User(
                email=email,
                full_name=full_name,
                password_hash=hashed(password),
                role=role,
                status=status,
            )
        )

    return _make


@pytest_asyncio.fixture()
async def admin(make_user):
    """A provisioned admin and a valid token for it."""
    user = await make_user(
        email="admin@userhub.com", full_name="System Administrator", role=Role.ADMIN
    )
    return user, create_access_token(user.id)


@pytest_asyncio.fixture()
async def client(repo, cache):
    """HTTP client wired to the in-memory store and cache.

    Learn: No auth override here — every request goes through the real
    bearer-token gate, so tests log in or mint tokens explicitly.
    """
    app.dependency_overrides[get_user_repo] = lambda: repo
    app.dependency_overrides[get_cache] = lambda: cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
