"""User service — admin account management and profile self-service.

Learn: Admin reads (list, get by id) go through the optional cache;
every write invalidates all cached user views. Nothing here decides
whether a request is authenticated — that already happened in the
auth gate, which hands us the acting user explicitly.
"""

import uuid
from typing import Optional

import structlog

from userhub.cache import user_key, user_list_key
from userhub.config import settings
from userhub.db.models import User, UserStatus
from userhub.errors import (
    CurrentPasswordIncorrectError,
    EmailInUseError,
    NotFoundError,
    SelfModificationError,
    UserNotFoundError,
    ValidationFailed,
)
from userhub.schemas.user import (
    UserPage,
    UserRead,
    build_pagination,
    normalize_email,
    validate_full_name,
)
from userhub.services.base import AccountServiceBase

logger = structlog.get_logger()


class UserService(AccountServiceBase):
    """Business logic for user administration and profiles."""

    # ─── Admin reads ────────────────────────────────────

    async def list_users(self, page: int = 1, limit: int = 10) -> UserPage:
        """One page of users, newest first, with pagination metadata."""
        key = user_list_key(page, limit)
        cached = await self.cache.get(key)
        if cached is not None:
            return UserPage.model_validate(cached)

        total = await self._store(self.repo.count())
        users = await self._store(
            self.repo.list_page(skip=(page - 1) * limit, limit=limit)
        )
        result = UserPage(
            users=[UserRead.model_validate(u) for u in users],
            pagination=build_pagination(total, page, limit),
        )
        await self.cache.set(
            key, result.model_dump(mode="json", by_alias=True), settings.cache_ttl_seconds
        )
        return result

    async def get_user(self, user_id: uuid.UUID) -> UserRead:
        key = user_key(user_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return UserRead.model_validate(cached)

        user = await self._store(self.repo.get_by_id(user_id))
        if user is None:
            raise NotFoundError()
        result = UserRead.model_validate(user)
        await self.cache.set(
            key, result.model_dump(mode="json", by_alias=True), settings.cache_ttl_seconds
        )
        return result

    # ─── Admin writes ───────────────────────────────────

    async def activate(self, target_id: uuid.UUID, acting: User) -> User:
        return await self.set_status(target_id, acting, UserStatus.ACTIVE)

    async def deactivate(self, target_id: uuid.UUID, acting: User) -> User:
        return await self.set_status(target_id, acting, UserStatus.INACTIVE)

    async def set_status(
        self, target_id: uuid.UUID, acting: User, status: UserStatus
    ) -> User:
        """Set another user's status. Admins cannot change their own."""
        if target_id == acting.id:
            raise SelfModificationError()

        user = await self._store(self.repo.get_by_id(target_id))
        if user is None:
            raise NotFoundError()

        user.status = status
        user = await self._store(self.repo.save(user))
        await self._invalidate_users()
        logger.info(
            "users.activated" if status == UserStatus.ACTIVE else "users.deactivated",
            user_id=str(target_id),
            by=str(acting.id),
        )
        return user

    # ─── Self-service ───────────────────────────────────

    async def update_profile(
        self,
        acting: User,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> User:
        """Partial update of the caller's own email and/or full name."""
        user = await self._reload(acting)

        if full_name is not None:
            try:
                full_name = validate_full_name(full_name)
            except ValueError as e:
                raise ValidationFailed([str(e)])

        if email is not None:
            email = normalize_email(email)
            if email != user.email:
                owner = await self._store(self.repo.get_by_email(email))
                if owner is not None and owner.id != user.id:
                    raise EmailInUseError()
                user.email = email

        if full_name is not None:
            user.full_name = full_name

        user = await self._store(self.repo.save(user))
        await self._invalidate_users()
        logger.info("users.profile_updated", user_id=str(user.id))
        return user

    async def change_password(
        self, acting: User, current_password: str, new_password: str
    ) -> None:
        """Re-verify the current password, then store a hash of the new one."""
        user = await self._reload(acting)

        if not await self._verify(current_password, user.password_hash):
            logger.info("users.password_change_rejected", user_id=str(user.id))
            raise CurrentPasswordIncorrectError()

        user.password_hash = await self._hash(new_password)
        await self._store(self.repo.save(user))
        logger.info("users.password_changed", user_id=str(user.id))

    async def _reload(self, acting: User) -> User:
        # The record can vanish between the auth gate and this call.
        user = await self._store(self.repo.get_by_id(acting.id))
        if user is None:
            raise UserNotFoundError()
        return user
