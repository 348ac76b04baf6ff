"""FastAPI application entrypoint for the WavePlan API.

Mounts the schools, lessons and bookings routers in one process and owns the
storage client lifecycle.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from libs.common.responses import fail, ok
from libs.db.config import Database, create_database
from libs.db.session import get_database
from services.bookings_service.routers import bookings_router
from services.lessons_service.routers import lessons_router, public_router
from services.schools_service.routers import coaches_router, schools_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db = create_database()
    logger.info("WavePlan API starting (%s)", get_settings().ENVIRONMENT)
    try:
        yield
    finally:
        await app.state.db.dispose()


def _env_flags() -> dict:
    settings = get_settings()
    return {
        "environment": settings.ENVIRONMENT,
        "has_database_url": bool(
            os.environ.get("DATABASE_URL") or os.environ.get("POSTGRES_URL")
        ),
        "overlap_policy": settings.LESSON_OVERLAP_POLICY,
        "enforce_capacity": settings.ENFORCE_LESSON_CAPACITY,
    }


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    app = FastAPI(
        title="WavePlan API",
        version="0.1.0",
        description="Lesson scheduling and booking for surf schools.",
        lifespan=lifespan,
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check(db: Database = Depends(get_database)):
        """Readiness endpoint: pings the database and reports env flags."""
        try:
            db_ok = await db.ping()
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Health check database ping failed", exc_info=exc)
            return JSONResponse(
                status_code=503,
                content=fail("Database unavailable", "DB_UNAVAILABLE", {"env": _env_flags()}),
            )
        return ok({"db": db_ok, "env": _env_flags()})

    app.include_router(schools_router)
    app.include_router(coaches_router)
    app.include_router(lessons_router)
    app.include_router(bookings_router)
    app.include_router(public_router)

    return app


app = create_app()
