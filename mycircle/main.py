"""FastAPI application factory with middleware, routers, and lifespan."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .api import api_router
from .config import settings, setup_logging
from .database import get_db
from .errors import MyCircleError
from .integrations.cache import create_cache_service
from .moderation.service import create_moderator
from .rate_limit import limiter
from .realtime.manager import ConnectionManager
from .realtime.routes import router as realtime_router

logger = logging.getLogger(__name__)

VERSION = "2.0.0"

_startup_time: float = 0.0


def _run_migrations() -> None:
    """Run Alembic migrations (upgrade head) on startup."""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(Path(__file__).parent.parent / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.effective_database_url)
    command.upgrade(alembic_cfg, "head")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    global _startup_time
    _startup_time = time.time()

    setup_logging()
    _run_migrations()

    app.state.cache = create_cache_service()
    app.state.moderator = create_moderator(app.state.cache)
    app.state.connections = ConnectionManager()

    yield

    await app.state.connections.close_all()


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    logger.info("Rate limit hit on %s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        {"msg": "Too many requests, please try again later"},
        status_code=429,
        headers={"Retry-After": "60"},
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="MyCircle API",
        version=VERSION,
        lifespan=lifespan,
    )

    # --- Exception handlers ---
    @app.exception_handler(MyCircleError)
    async def domain_error_handler(request: Request, exc: MyCircleError):
        return JSONResponse({"msg": exc.msg}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"msg": _first_validation_message(exc)}, status_code=400)

    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"msg": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse({"msg": "Server Error"}, status_code=500)

    # --- Middleware stack (LIFO: last added = outermost) ---

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    if settings.trusted_hosts_list != ["*"]:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.trusted_hosts_list,
        )

    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response

    # --- Routers ---
    app.include_router(api_router)
    app.include_router(realtime_router)

    # --- Health check ---
    @app.get("/health")
    def health(db: Session = Depends(get_db)):
        db_status = "ok"
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Health check: database unreachable")
            db_status = "unreachable"

        status = "ok" if db_status == "ok" else "degraded"
        uptime = round(time.time() - _startup_time, 1) if _startup_time else 0.0
        return {
            "status": status,
            "db": db_status,
            "version": VERSION,
            "uptime_seconds": uptime,
        }

    return app


app = create_app()
