"""FastAPI auth dependencies — the authentication and authorization gates.

Learn: These are used as Depends() in route handlers. The resolved user
is the dependency's return value and is passed explicitly to whatever
needs it; nothing is stashed on the request.

Authentication gate, in order:
1. No "Bearer <token>" header          → 401 no_token
2. Token fails verification            → 401 invalid_token / token_expired
3. Token subject no longer exists      → 401 user_not_found
4. Subject is deactivated              → 403 account_deactivated

Step 4 reads the store on every request. A token minted while the
account was active stops working the moment an admin deactivates it,
and starts working again on reactivation.
"""

from typing import Iterable, Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.auth.jwt import TokenError, TokenFailure, verify_token
from userhub.cache import Cache, NullCache
from userhub.config import settings
from userhub.db.engine import get_db
from userhub.db.models import Role, User
from userhub.errors import (
    AccountDeactivatedError,
    InternalError,
    InvalidTokenError,
    NoTokenError,
    RoleNotPermittedError,
    TokenExpiredError,
    UserNotFoundError,
)
from userhub.repositories.base import UserRepository
from userhub.repositories.sqlalchemy_repo import SqlAlchemyUserRepository
from userhub.services.deadline import with_deadline

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


# ─── Wiring ─────────────────────────────────────────────


def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    """Request-scoped user store. Tests override this with the in-memory one."""
    return SqlAlchemyUserRepository(db)


def get_cache(request: Request) -> Cache:
    """The app-wide cache set up in the lifespan, or a no-op one."""
    return getattr(request.app.state, "cache", None) or NullCache()


# ─── Authentication gate ────────────────────────────────


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise NoTokenError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise NoTokenError()
    return token


async def authenticate(
    authorization: Optional[str],
    repo: UserRepository,
    timeout: Optional[float] = None,
) -> User:
    """Resolve an Authorization header to a live, active user."""
    token = extract_bearer_token(authorization)

    try:
        user_id = verify_token(token)
    except TokenError as e:
        if e.reason is TokenFailure.EXPIRED:
            raise TokenExpiredError()
        logger.info("auth.token_rejected", reason=e.reason.value)
        raise InvalidTokenError()

    user = await with_deadline(repo.get_by_id(user_id), timeout)
    if user is None:
        raise UserNotFoundError()
    if not user.is_active:
        raise AccountDeactivatedError()
    return user


async def get_current_user(
    authorization: Optional[str] = Header(None),
    repo: UserRepository = Depends(get_user_repo),
) -> User:
    """Hard auth dependency — every protected route uses this."""
    return await authenticate(
        authorization, repo, timeout=settings.operation_timeout_seconds
    )


# ─── Authorization gate ─────────────────────────────────


def authorize(identity: Optional[User], allowed_roles: Iterable[Role]) -> User:
    """Pure role check. Must only ever see an already-authenticated user."""
    if identity is None:
        # Wiring bug (gate composed without authentication), not a client error.
        logger.error("auth.authorize_without_identity")
        raise InternalError()
    if Role(identity.role) not in frozenset(allowed_roles):
        raise RoleNotPermittedError()
    return identity


def require_roles(*roles: Role):
    """Build a dependency that admits only users holding one of `roles`."""
    allowed = frozenset(roles)

    async def dependency(user: User = Depends(get_current_user)) -> User:
        return authorize(user, allowed)

    return dependency


require_admin = require_roles(Role.ADMIN)
