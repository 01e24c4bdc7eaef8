"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
whether its dependencies are reachable. The cache is optional, so a
missing cache reports "disabled" and does not degrade the status.
"""

from fastapi import APIRouter, Depends

from userhub import __version__
from userhub.auth.dependencies import get_cache
from userhub.cache import Cache
from userhub.db.engine import ping_database

router = APIRouter()


@router.get("/health")
async def health_check(cache: Cache = Depends(get_cache)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await ping_database()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    checks["cache"] = "ok" if cache.is_available() else "disabled"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
