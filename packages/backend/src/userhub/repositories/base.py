"""Credential store contract.

Learn: typing.Protocol gives structural typing — any class with these
async methods is a valid store, no inheritance required. Lookups by
email expect the caller to have lowercased it already.
"""

import uuid
from typing import Optional, Protocol

from userhub.db.models import User


class UserRepository(Protocol):
    """Persistence operations the auth gates and account services need."""

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        ...

    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    async def create(self, user: User) -> User:
        """Insert a new record. Raises EmailInUseError on a duplicate email."""
        ...

    async def save(self, user: User) -> User:
        """Persist changes to an existing record. Raises EmailInUseError on a duplicate email."""
        ...

    async def count(self) -> int:
        ...

    async def list_page(self, skip: int, limit: int) -> list[User]:
        """Return one page of users, newest first."""
        ...
