"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Lifespan manages
startup/shutdown (Redis pool, database engine). Middleware, CORS, routers
and the auth error handler are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from caoguia import __version__
from caoguia.api import api_router
from caoguia.auth.errors import AuthError
from caoguia.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "caoguia.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from caoguia.redis_pool import close_redis, init_redis
    try:
        await init_redis()
        logger.info("caoguia.redis_connected", url=settings.redis_url)
    except (RedisError, OSError) as e:
        # Redis only backs rate limiting; the API works without it
        logger.warning("caoguia.redis_unavailable", error=str(e))

    yield

    logger.info("caoguia.shutdown")
    await close_redis()

    from caoguia.db.engine import engine
    await engine.dispose()


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render any auth failure as {"detail", "code"} with its status class."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=exc.headers,
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Cão-Guia",
        description="Digital identity cards for guide dogs: users, institutions, approvals",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from caoguia.middleware.rate_limit import RateLimitMiddleware
    from caoguia.middleware.request_id import RequestIdMiddleware
    from caoguia.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthError, auth_error_handler)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: caoguia.main:app)
app = create_app()
