"""FastAPI application for the Legal Calendar content backend."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from legal_calendar import __version__
from legal_calendar.core.config import Settings, get_settings
from legal_calendar.core.logging import setup_logging
from legal_calendar.db import Base
from legal_calendar.repositories import build_store
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.routers import admin as admin_router
from legal_calendar.routers import auth as auth_router
from legal_calendar.routers import health as health_router
from legal_calendar.routers import public as public_router
from legal_calendar.services.auth_service import AuthService
from legal_calendar.services.boot_service import BootSequencer
from legal_calendar.services.content_service import GENERIC_ERROR, ContentService
from legal_calendar.services.session_service import SessionStore

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers for a JSON API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    store = build_store(settings)
    repository = ContentRepository(store, Base.metadata)
    boot = BootSequencer.from_settings(settings, store, repository)
    sessions = SessionStore(settings.admin_session_ttl_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Boot finishes before the first request is served; it never raises.
        await run_in_threadpool(boot.run)
        yield
        store.close()

    app = FastAPI(title="Legal Calendar API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.boot = boot
    app.state.repository = repository
    app.state.sessions = sessions
    app.state.content_service = ContentService(repository, boot)
    app.state.auth_service = AuthService(repository, sessions)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    elif not settings.is_prod:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.is_prod)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": GENERIC_ERROR, "error_kind": "internal"}, status_code=500)

    app.include_router(health_router.router)
    app.include_router(public_router.router)
    app.include_router(auth_router.router)
    app.include_router(admin_router.router)
    return app


app = create_app()
