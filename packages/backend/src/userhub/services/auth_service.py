"""Auth service — signup, login, and admin provisioning.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the user store. The CLI's
create-admin command reuses provision_admin() with a DB-backed store.
"""

from dataclasses import dataclass
from functools import lru_cache

import structlog

from userhub.auth.jwt import create_access_token
from userhub.auth.password import hash_password, needs_rehash, verify_password
from userhub.db.models import Role, User, UserStatus, utcnow
from userhub.errors import (
    AccountDeactivatedError,
    EmailInUseError,
    InvalidCredentialsError,
)
from userhub.schemas.user import normalize_email
from userhub.services.base import AccountServiceBase
from userhub.services.deadline import run_blocking

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when the email is unknown, so both login
    # failure paths cost one bcrypt check.
    return hash_password("userhub-timing-equalizer")


def _verify_against_dummy(password: str) -> bool:
    return verify_password(password, _dummy_hash())


@dataclass
class LoginResult:
    token: str
    user: User


class AuthService(AccountServiceBase):
    """Business logic for creating accounts and exchanging credentials for tokens."""

    # ─── Signup ─────────────────────────────────────────

    async def signup(self, email: str, password: str, full_name: str) -> User:
        """Create a regular (role=user) account. Does not log the user in."""
        return await self._create_account(email, password, full_name, Role.USER)

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: str, password: str) -> LoginResult:
        """Verify credentials and issue an access token.

        Unknown email and wrong password are indistinguishable to the
        caller: same error, same message, comparable timing.
        """
        email = normalize_email(email)
        user = await self._store(self.repo.get_by_email(email))

        if user is None:
            await run_blocking(_verify_against_dummy, password, timeout=self.timeout)
            logger.info("auth.login_failed", reason="unknown_email")
            raise InvalidCredentialsError()

        if not await self._verify(password, user.password_hash):
            logger.info("auth.login_failed", reason="bad_password", user_id=str(user.id))
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.info("auth.login_refused", reason="deactivated", user_id=str(user.id))
            raise AccountDeactivatedError()

        # Upgrade hashes made under an older (cheaper) work factor
        if needs_rehash(user.password_hash):
            user.password_hash = await self._hash(password)

        user.last_login = utcnow()
        user = await self._store(self.repo.save(user))
        await self._invalidate_users()

        token = create_access_token(user.id)
        logger.info("auth.login_succeeded", user_id=str(user.id))
        return LoginResult(token=token, user=user)

    # ─── Provisioning ───────────────────────────────────

    async def provision_admin(
        self, email: str, password: str, full_name: str
    ) -> tuple[User, bool]:
        """Create an admin account out of band (CLI only).

        Returns (user, created). An existing account with that email is
        returned untouched with created=False.
        """
        existing = await self._store(
            self.repo.get_by_email(normalize_email(email))
        )
        if existing is not None:
            return existing, False
        user = await self._create_account(email, password, full_name, Role.ADMIN)
        return user, True

    # ─── Internal ───────────────────────────────────────

    async def _create_account(
        self, email: str, password: str, full_name: str, role: Role
    ) -> User:
        email = normalize_email(email)
        if await self._store(self.repo.get_by_email(email)) is not None:
            raise EmailInUseError()

        user = User(
            email=email,
            full_name=full_name.strip(),
            password_hash=await self._hash(password),
            role=role,
            status=UserStatus.ACTIVE,
        )
        user = await self._store(self.repo.create(user))
        await self._invalidate_users()
        logger.info("users.created", user_id=str(user.id), role=role.value)
        return user
