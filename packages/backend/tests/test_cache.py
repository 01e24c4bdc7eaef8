"""Cache tests: read-through on admin reads, invalidation, degradation.

Learn: The cache is an optimisation only. These tests pin down the three
properties that make it safe: writes invalidate every cached user view,
a broken Redis behaves like an empty one, and account status for the
auth gate is never taken from the cache.
"""

import json
from unittest.mock import AsyncMock

import pytest

from userhub.auth.jwt import create_access_token
from userhub.cache import (
    KEY_PREFIX,
    USERS_PATTERN,
    NullCache,
    RedisCache,
    build_cache,
    user_key,
    user_list_key,
)
from userhub.db.models import UserStatus
from userhub.services.user_service import UserService

USERS = "/api/v1/users"


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ═══════════════════════════════════════════════════════════
# Read-through + invalidation through the API
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_is_cached_per_page_and_limit(client, admin, cache):
    _, token = admin

    await client.get(USERS, params={"page": 1, "limit": 10}, headers=auth(token))
    assert user_list_key(1, 10) in cache.data
    assert cache.hits == 0

    r = await client.get(USERS, params={"page": 1, "limit": 10}, headers=auth(token))
    assert r.status_code == 200
    assert cache.hits == 1
    assert r.json()["data"]["pagination"]["total"] == 1

    await client.get(USERS, params={"page": 1, "limit": 5}, headers=auth(token))
    assert user_list_key(1, 5) in cache.data


@pytest.mark.asyncio
async def test_signup_invalidates_cached_lists(client, admin, cache):
    _, token = admin
    await client.get(USERS, headers=auth(token))
    assert cache.data

    r = await client.post(
        "/api/v1/auth/signup",
        json={"email": "new@example.com", "password": "Abcdef1!", "fullName": "New One"},
    )
    assert r.status_code == 201
    assert cache.data == {}
    assert USERS_PATTERN in cache.invalidations

    r = await client.get(USERS, headers=auth(token))
    assert r.json()["data"]["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_status_change_invalidates_cached_user(client, admin, make_user, cache):
    _, token = admin
    member = await make_user()

    r = await client.get(f"{USERS}/{member.id}", headers=auth(token))
    assert r.json()["data"]["user"]["status"] == "active"
    assert user_key(member.id) in cache.data

    await client.patch(f"{USERS}/{member.id}/deactivate", headers=auth(token))
    assert user_key(member.id) not in cache.data

    r = await client.get(f"{USERS}/{member.id}", headers=auth(token))
    assert r.json()["data"]["user"]["status"] == "inactive"


@pytest.mark.asyncio
async def test_profile_update_invalidates(client, make_user, cache):
    member = await make_user()
    cache.data[user_key(member.id)] = {"stale": True}

    r = await client.put(
        f"{USERS}/profile",
        json={"fullName": "Fresh Name"},
        headers=auth(create_access_token(member.id)),
    )
    assert r.status_code == 200
    assert user_key(member.id) not in cache.data


@pytest.mark.asyncio
async def test_auth_gate_ignores_cached_status(client, make_user, repo, cache):
    """A cached 'active' view must not let a deactivated user through."""
    member = await make_user()
    token = create_access_token(member.id)
    cache.data[user_key(member.id)] = {"status": "active"}

    member.status = UserStatus.INACTIVE
    await repo.save(member)

    r = await client.get("/api/v1/auth/me", headers=auth(token))
    assert r.status_code == 403


# ═══════════════════════════════════════════════════════════
# NullCache / RedisCache
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_null_cache_is_always_a_miss():
    cache = NullCache()
    await cache.set("k", {"a": 1}, 60)
    assert await cache.get("k") is None
    await cache.invalidate(USERS_PATTERN)
    assert cache.is_available() is False


@pytest.mark.asyncio
async def test_build_cache_without_url_is_null():
    assert isinstance(await build_cache(""), NullCache)


@pytest.mark.asyncio
async def test_build_cache_unreachable_redis_is_null():
    assert isinstance(await build_cache("redis://127.0.0.1:1/0"), NullCache)


@pytest.mark.asyncio
async def test_redis_cache_round_trips_json_under_prefix():
    client = AsyncMock()
    client.get.return_value = json.dumps({"total": 3})
    cache = RedisCache(client=client)

    await cache.set("users:list:1:10", {"total": 3}, 300)
    client.set.assert_awaited_once_with(
        KEY_PREFIX + "users:list:1:10", json.dumps({"total": 3}), ex=300
    )

    assert await cache.get("users:list:1:10") == {"total": 3}
    client.get.assert_awaited_once_with(KEY_PREFIX + "users:list:1:10")


@pytest.mark.asyncio
async def test_redis_cache_deletes_single_key():
    client = AsyncMock()
    cache = RedisCache(client=client)
    await cache.invalidate("users:id:abc")
    client.delete.assert_awaited_once_with(KEY_PREFIX + "users:id:abc")


class _ScanClient:
    """Just enough of redis.asyncio.Redis for pattern invalidation."""

    def __init__(self, keys):
        self.keys = set(keys)
        self.patterns = []

    async def scan_iter(self, match):
        self.patterns.append(match)
        for key in sorted(self.keys):
            if key.startswith(match.rstrip("*")):
                yield key

    async def delete(self, *keys):
        self.keys.difference_update(keys)


@pytest.mark.asyncio
async def test_redis_cache_invalidates_by_pattern():
    client = _ScanClient([
        KEY_PREFIX + "users:list:1:10",
        KEY_PREFIX + "users:id:abc",
        KEY_PREFIX + "other:key",
    ])
    cache = RedisCache(client=client)

    await cache.invalidate(USERS_PATTERN)
    assert client.patterns == [KEY_PREFIX + USERS_PATTERN]
    assert client.keys == {KEY_PREFIX + "other:key"}


@pytest.mark.asyncio
async def test_broken_redis_degrades_to_misses():
    client = AsyncMock()
    client.get.side_effect = ConnectionError("redis down")
    client.set.side_effect = ConnectionError("redis down")
    client.delete.side_effect = ConnectionError("redis down")
    cache = RedisCache(client=client)

    assert await cache.get("users:id:1") is None
    await cache.set("users:id:1", {"a": 1}, 60)
    await cache.invalidate("users:id:1")


@pytest.mark.asyncio
async def test_service_still_answers_when_redis_is_down(repo, make_user):
    await make_user()
    client = AsyncMock()
    client.get.side_effect = ConnectionError("redis down")
    client.set.side_effect = ConnectionError("redis down")

    page = await UserService(repo, RedisCache(client=client)).list_users(page=1, limit=10)
    assert page.pagination.total == 1
    assert page.users[0].email == "user@example.com"
