"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database engine, optional
Redis cache). Middleware, CORS, error handlers and routers are all
registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from userhub import __version__
from userhub.api import api_router
from userhub.api.error_handlers import register_error_handlers
from userhub.cache import NullCache, build_cache
from userhub.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. The cache is an injected capability on app.state; when Redis
    is not configured or not reachable it is a NullCache and the app keeps
    working, just without caching.
    """
    logger.info(
        "userhub.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    app.state.cache = await build_cache(settings.redis_url)

    yield

    logger.info("userhub.shutdown")

    await app.state.cache.close()
    app.state.cache = NullCache()

    from userhub.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="UserHub",
        description="User management — accounts, JWT auth, roles, admin controls",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.cache = NullCache()

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from userhub.middleware.request_id import RequestIdMiddleware
    from userhub.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: userhub.main:app)
app = create_app()
