"""Main FastAPI application.

Run with ``uvicorn vidshield.api.main:create_app --factory``.
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vidshield.api.exceptions import setup_exception_handlers
from vidshield.api.lifespan import build_lifespan
from vidshield.api.middleware.logging import LoggingMiddleware
from vidshield.api.routes import assets, events, health
from vidshield.infrastructure.config import Settings, get_settings
from vidshield.infrastructure.observability import configure_logfire, configure_logging

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, **overrides: Any) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings
        **overrides: Collaborators passed to the service container
            (broadcaster, duration_provider, classifier)
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app.name,
        description="Multi-tenant video upload and processing API",
        version=settings.app.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=build_lifespan(settings, **overrides),
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=settings.api.cors_allow_methods,
        allow_headers=settings.api.cors_allow_headers,
    )
    app.add_middleware(LoggingMiddleware)

    setup_exception_handlers(app)

    # Routes
    app.include_router(health.router)
    app.include_router(assets.router, prefix=settings.api.prefix)
    app.include_router(events.router, prefix=settings.api.prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": settings.app.name,
            "version": settings.app.version,
            "docs": "/docs" if not settings.is_production else None,
        }

    configure_logfire(settings, app_instance=app)
    return app
