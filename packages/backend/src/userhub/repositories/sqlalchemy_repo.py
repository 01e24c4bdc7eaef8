"""SQLAlchemy-backed user store."""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.db.models import User
from userhub.errors import EmailInUseError


class SqlAlchemyUserRepository:
    """User store over a request-scoped AsyncSession.

    Learn: create() and save() commit immediately — every account
    operation is a single-record transaction. The unique index on
    users.email turns a lost check-then-write race into an
    IntegrityError, which we report as EmailInUseError.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id, populate_existing=True)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def save(self, user: User) -> User:
        self.db.add(user)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def list_page(self, skip: int, limit: int) -> list[User]:
        result = await self.db.execute(
            select(User)
            .order_by(User.created_at.desc(), User.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise EmailInUseError()
