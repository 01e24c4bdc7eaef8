"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a blanket router-level auth dependency, each route here
declares its own gate (get_current_user or require_admin), because
the auth router mixes open routes (signup, login) with protected ones
(logout, me).
"""

from fastapi import APIRouter

from userhub.api.auth import router as auth_router
from userhub.api.health import router as health_router
from userhub.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
