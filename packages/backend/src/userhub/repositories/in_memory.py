"""In-memory user store for tests and local experiments.

Learn: Records are stored as plain column snapshots and every read
returns a fresh User instance. That mirrors a real database: mutating
a returned object changes nothing until save() succeeds, and a save()
rejected for a duplicate email leaves the stored record untouched.
"""

import uuid
from itertools import count as _counter
from typing import Optional

from userhub.db.models import Role, User, UserStatus, utcnow
from userhub.errors import EmailInUseError

_COLUMNS = (
    "id",
    "email",
    "password_hash",
    "full_name",
    "role",
    "status",
    "last_login",
    "created_at",
    "updated_at",
)


class InMemoryUserRepository:
    """Dict-backed UserRepository with the same uniqueness rules as the DB."""

    def __init__(self) -> None:
        self._rows: dict[uuid.UUID, dict] = {}
        self._seq: dict[uuid.UUID, int] = {}
        self._next_seq = _counter()

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        row = self._rows.get(user_id)
        return self._to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        for row in self._rows.values():
            if row["email"] == email:
                return self._to_user(row)
        return None

    async def create(self, user: User) -> User:
        now = utcnow()
        if user.id is None:
            user.id = uuid.uuid4()
        if user.role is None:
            user.role = Role.USER
        if user.status is None:
            user.status = UserStatus.ACTIVE
        if user.created_at is None:
            user.created_at = now
        user.updated_at = now
        self._check_email(user)
        self._rows[user.id] = self._snapshot(user)
        self._seq[user.id] = next(self._next_seq)
        return self._to_user(self._rows[user.id])

    async def save(self, user: User) -> User:
        if user.id not in self._rows:
            raise KeyError(f"User {user.id} does not exist")
        self._check_email(user)
        user.updated_at = utcnow()
        self._rows[user.id] = self._snapshot(user)
        return self._to_user(self._rows[user.id])

    async def count(self) -> int:
        return len(self._rows)

    async def list_page(self, skip: int, limit: int) -> list[User]:
        ordered = sorted(
            self._rows.values(),
            key=lambda row: (row["created_at"], self._seq[row["id"]]),
            reverse=True,
        )
        return [self._to_user(row) for row in ordered[skip:skip + limit]]

    def _check_email(self, user: User) -> None:
        for row in self._rows.values():
            if row["email"] == user.email and row["id"] != user.id:
                raise EmailInUseError()

    @staticmethod
    def _snapshot(user: User) -> dict:
        return {name: getattr(user, name) for name in _COLUMNS}

    @staticmethod
    def _to_user(row: dict) -> User:
        return User(**row)
