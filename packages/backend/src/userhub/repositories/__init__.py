"""User record store.

Learn: Services depend on the UserRepository protocol, not on SQLAlchemy.
Two implementations ship:
- SqlAlchemyUserRepository — the real store (Postgres via asyncpg)
- InMemoryUserRepository — tests and local experiments
"""

from userhub.repositories.base import UserRepository
from userhub.repositories.in_memory import InMemoryUserRepository
from userhub.repositories.sqlalchemy_repo import SqlAlchemyUserRepository

__all__ = [
    "InMemoryUserRepository",
    "SqlAlchemyUserRepository",
    "UserRepository",
]
