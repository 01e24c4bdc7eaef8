"""Auth API — signup, login, logout, current identity.

Learn: Routes for the account credential lifecycle:
- POST /auth/signup → create a new user account (no token returned)
- POST /auth/login → email/password → JWT access token + user
- POST /auth/logout → acknowledge; the client discards its token
- GET /auth/me → current user info

Tokens are stateless, so logout has no server-side effect. It still
requires a valid token so clients get a consistent 401 when theirs
has already expired.
"""

from fastapi import APIRouter, Depends

from userhub.auth.dependencies import get_cache, get_current_user, get_user_repo
from userhub.cache import Cache
from userhub.db.models import User
from userhub.repositories.base import UserRepository
from userhub.schemas.user import (
    Ack,
    LoginData,
    LoginEnvelope,
    LoginRequest,
    SignupRequest,
    UserData,
    UserEnvelope,
    UserRead,
)
from userhub.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(
    repo: UserRepository = Depends(get_user_repo),
    cache: Cache = Depends(get_cache),
) -> AuthService:
    return AuthService(repo, cache)


def _user_envelope(user: User, message: str | None = None) -> UserEnvelope:
    return UserEnvelope(
        message=message,
        data=UserData(user=UserRead.model_validate(user)),
    )


@router.post("/signup", response_model=UserEnvelope, status_code=201)
async def signup(body: SignupRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account."""
    user = await svc.signup(
        email=body.email, password=body.password, full_name=body.full_name
    )
    return _user_envelope(user, "User registered successfully")


@router.post("/login", response_model=LoginEnvelope)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → JWT token."""
    result = await svc.login(email=body.email, password=body.password)
    return LoginEnvelope(
        message="Login successful",
        data=LoginData(token=result.token, user=UserRead.model_validate(result.user)),
    )


@router.post("/logout", response_model=Ack)
async def logout(user: User = Depends(get_current_user)):
    return Ack(message="Logged out successfully")


@router.get("/me", response_model=UserEnvelope)
async def get_me(user: User = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return _user_envelope(user)
