"""
FastAPI application factory.

``create_app()`` wires CORS, error handlers, routers and lifespan
events into a single ``FastAPI`` instance.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from gbfs_validator._version import __version__
from gbfs_validator.api.deps import get_transport
from gbfs_validator.api.errors import request_validation_handler, unhandled_exception_handler
from gbfs_validator.core.settings import ValidatorSettings, get_settings
from gbfs_validator.framework.logging import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown hooks."""
    log = get_logger("gbfs_validator.api")
    log.info("gbfs-validator API starting", version=app.version)
    yield
    log.info("gbfs-validator API shutting down")


def create_app(
    *,
    settings: ValidatorSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : ValidatorSettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    transport : httpx.AsyncBaseTransport | None
        Transport for outbound feed requests (tests pass a MockTransport).
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, format=settings.log_format)

    app = FastAPI(title=settings.api_title, version=__version__, lifespan=lifespan)
    app.state.settings = settings

    # Override DI so endpoints use the provided settings and transport
    app.dependency_overrides[get_settings] = lambda: settings
    if transport is not None:
        app.dependency_overrides[get_transport] = lambda: transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from gbfs_validator.api.routers import validator

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "healthy"}

    app.include_router(validator.router, prefix="/api", tags=["validator"])

    return app
