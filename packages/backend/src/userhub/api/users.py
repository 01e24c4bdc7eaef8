"""Users API — profile self-service and admin account management.

Learn: Profile routes are registered before /users/{user_id} so that
"profile" and "password" are never parsed as a user id.

- GET  /users/profile             → own profile           (any user)
- PUT  /users/profile             → update own profile    (any user)
- PUT  /users/password            → change own password   (any user)
- GET  /users                     → paginated list        (admin)
- GET  /users/{id}                → one user              (admin)
- PATCH /users/{id}/activate      → activate account      (admin)
- PATCH /users/{id}/deactivate    → deactivate account    (admin)
"""

import uuid

from fastapi import APIRouter, Depends, Query

from userhub.auth.dependencies import (
    get_cache,
    get_current_user,
    get_user_repo,
    require_admin,
)
from userhub.cache import Cache
from userhub.config import settings
from userhub.db.models import User
from userhub.repositories.base import UserRepository
from userhub.schemas.user import (
    Ack,
    ChangePasswordRequest,
    UpdateProfileRequest,
    UserData,
    UserEnvelope,
    UserPageEnvelope,
    UserRead,
)
from userhub.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(
    repo: UserRepository = Depends(get_user_repo),
    cache: Cache = Depends(get_cache),
) -> UserService:
    return UserService(repo, cache)


def _envelope(user: User | UserRead, message: str | None = None) -> UserEnvelope:
    return UserEnvelope(
        message=message,
        data=UserData(user=UserRead.model_validate(user)),
    )


# ─── Profile (self-service) ─────────────────────────────


@router.get("/profile", response_model=UserEnvelope)
async def get_profile(user: User = Depends(get_current_user)):
    return _envelope(user)


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Update own email and/or full name (only supplied fields change)."""
    updated = await svc.update_profile(
        user, email=body.email, full_name=body.full_name
    )
    return _envelope(updated, "Profile updated successfully")


@router.put("/password", response_model=Ack)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    await svc.change_password(user, body.current_password, body.new_password)
    return Ack(message="Password changed successfully")


# ─── Admin ──────────────────────────────────────────────


@router.get("", response_model=UserPageEnvelope)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    admin: User = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    """All users, newest first, with pagination metadata."""
    return UserPageEnvelope(data=await svc.list_users(page=page, limit=limit))


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    return _envelope(await svc.get_user(user_id))


@router.patch("/{user_id}/activate", response_model=UserEnvelope)
async def activate_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    user = await svc.activate(user_id, acting=admin)
    return _envelope(user, "User activated successfully")


@router.patch("/{user_id}/deactivate", response_model=UserEnvelope)
async def deactivate_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    user = await svc.deactivate(user_id, acting=admin)
    return _envelope(user, "User deactivated successfully")
