import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

from app.config import Settings, get_settings
from app.database import build_engine, build_sessionmaker, get_db
from app.dependencies import limiter
from app.exceptions import AppError
from app.models.base import Base
from app.rate_limit import RateLimiter
from app.routers import auth, billing, favorites, feed, follows, gamification, notifications, stories
from app.services.public_feed import seed_theme_unlocks

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = build_engine(settings.database_url)
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)

    if settings.auto_create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    try:
        async with app.state.sessionmaker() as session:
            added = await seed_theme_unlocks(session)
            if added:
                logger.info("Seeded %d theme unlocks", added)
    except Exception as e:
        logger.warning("Theme seeding skipped (run: alembic upgrade head): %s", e)

    yield

    await engine.dispose()


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message, "error": exc.kind.value, **exc.extra},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Return validation errors with a user-friendly message for the first error."""
        errors = exc.errors()
        message = "Validation failed"
        if errors:
            first = errors[0]
            msg = first.get("msg", "Invalid input")
            loc = first.get("loc", ())
            if len(loc) >= 2:
                message = f"{loc[-1]}: {msg}"
            else:
                message = msg
        logger.warning("Request validation error: path=%s errors=%s", request.url.path, errors)
        return JSONResponse(
            status_code=422,
            content={"detail": jsonable_encoder(errors), "message": message},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s (path=%s)", exc, request.url.path)
        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={"message": str(exc), "traceback": traceback.format_exc()},
            )
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    # Starlette runs the last-added middleware first.
    @app.middleware("http")
    async def enforce_rate_limit(request: Request, call_next):
        client = request.client.host if request.client else "unknown"
        decision = request.app.state.rate_limiter.hit(client)
        if not decision.allowed:
            return JSONResponse(
                status_code=429,
                content={"message": "Too many requests, please slow down"},
                headers={"Retry-After": decision.retry_after_header},
            )
        return await call_next(request)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        logger.info("[%s] %s %s", request_id, request.method, request.url.path)

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info("[%s] %d (%.2fs)", request_id, response.status_code, duration)

        response.headers["X-Request-ID"] = request_id
        return response

    cors_origins = list(dict.fromkeys(o for o in [settings.frontend_url, settings.app_url] if o))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=0.1,
            environment=settings.environment or "production",
        )

    app = FastAPI(
        title="StoryNest API",
        description="""
## StoryNest API Overview

StoryNest turns short prompts into AI-written stories. This API provides:

- **Authentication**: registration, login with daily streak bonus, bearer tokens
- **Stories**: generation and continuation, library, titles, share links, favorites
- **Social**: following other writers and in-app notifications
- **Gamification**: XP, story streaks, achievements and login streaks
- **Public feed**: premium sharing, likes, comments and XP-gated themes
- **Billing**: premium checkout

Endpoints require a Bearer token unless noted otherwise.
""",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_ms=settings.rate_limit_window_ms,
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    _register_middleware(app, settings)
    _register_exception_handlers(app, settings)

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(favorites.router, prefix="/stories", tags=["Favorites"])
    app.include_router(follows.router, prefix="/stories", tags=["Follows"])
    app.include_router(stories.router, prefix="/stories", tags=["Stories"])
    app.include_router(gamification.router, prefix="/gamification", tags=["Gamification"])
    app.include_router(feed.router, prefix="/feed", tags=["Public Feed"])
    app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
    app.include_router(billing.router, prefix="/billing", tags=["Billing"])

    @app.get("/")
    async def root():
        return {"status": "ok", "message": "StoryNest API"}

    @app.get("/health", status_code=200)
    async def health_check(db=Depends(get_db)):
        """
        Deep health check with database connectivity.

        **Response:** {status: "ok"|"degraded", checks: {database: "ok"|"error: ..."}}
        """
        health: dict = {"status": "ok", "checks": {}}
        try:
            await db.execute(text("SELECT 1"))
            health["checks"]["database"] = "ok"
        except Exception as e:
            health["checks"]["database"] = f"error: {e}"
            health["status"] = "degraded"
        return health

    return app


app = create_app()
