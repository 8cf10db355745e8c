# src/lorecraft_auth/main.py
"""Main entry point for the Lorecraft authentication service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lorecraft_auth.api.gate import AuthGateMiddleware
from lorecraft_auth.api.v1 import auth_router
from lorecraft_auth.core.errors import AuthError, error_envelope
from lorecraft_auth.core.settings import Settings, get_settings
from lorecraft_auth.core.time import Clock, utcnow
from lorecraft_auth.services.registry import AuthServices, build_auth_services

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    services: AuthServices = app.state.auth
    await services.sweeper.start()
    try:
        yield
    finally:
        await services.sweeper.stop()


def create_app(settings: Settings | None = None, *, clock: Clock = utcnow) -> FastAPI:
    """Build an application with its own stores and service graph."""
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Wallet challenge-response authentication and session service",
        version=settings.app_version,
        lifespan=_lifespan,
    )
    app.state.auth = build_auth_services(settings, clock=clock)

    app.add_middleware(AuthGateMiddleware)
    # Outermost; wraps the auth gate
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.exception_handler(AuthError)
    async def _auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        if exc.reason:
            logger.info("%s %s -> %s (%s)", request.method, request.url.path, exc.code, exc.reason)
        return JSONResponse(
            error_envelope(exc, settings.challenge_endpoint),
            status_code=exc.status_code,
        )

    app.include_router(auth_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "challenge": settings.challenge_endpoint,
            "docs": "/docs",
        }

    if settings.dev_mode_active:
        logger.warning("Running with development shortcuts enabled; never deploy this configuration")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lorecraft_auth.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug,
    )
