"""Shared plumbing for the account services."""

from typing import Awaitable, Optional, TypeVar

import structlog

from userhub.auth.password import hash_password, verify_password
from userhub.cache import USERS_PATTERN, Cache, NullCache
from userhub.config import settings
from userhub.errors import InternalError, UserHubError
from userhub.repositories.base import UserRepository
from userhub.services.deadline import run_blocking, with_deadline

logger = structlog.get_logger()

T = TypeVar("T")

_DEFAULT = object()


class AccountServiceBase:
    """Holds the store, the cache, and the per-operation deadline.

    timeout defaults to settings.operation_timeout_seconds; pass None
    for no deadline at all.
    """

    def __init__(
        self,
        repo: UserRepository,
        cache: Optional[Cache] = None,
        timeout=_DEFAULT,
    ):
        self.repo = repo
        self.cache = cache or NullCache()
        self.timeout = (
            settings.operation_timeout_seconds if timeout is _DEFAULT else timeout
        )

    async def _store(self, awaitable: Awaitable[T]) -> T:
        return await with_deadline(awaitable, self.timeout)

    async def _hash(self, password: str) -> str:
        try:
            return await run_blocking(hash_password, password, timeout=self.timeout)
        except UserHubError:
            raise
        except Exception as e:
            logger.error("password.hash_failed", error=str(e))
            raise InternalError() from e

    async def _verify(self, password: str, password_hash: str) -> bool:
        return await run_blocking(
            verify_password, password, password_hash, timeout=self.timeout
        )

    async def _invalidate_users(self) -> None:
        await self.cache.invalidate(USERS_PATTERN)
