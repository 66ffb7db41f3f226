"""Logging and Logfire configuration for the VidShield API.

This module configures structlog for application logging and Pydantic
Logfire for tracing, with instrumentation of the libraries the service
talks through.
"""

import logging
import sys
from typing import Any, Optional

import logfire
import structlog

from vidshield.infrastructure.config import Settings

logger = structlog.get_logger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure structlog on top of the standard library logging module.

    Args:
        settings: Application settings
    """
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    json_output = settings.logging.json_output
    if json_output is None:
        json_output = not settings.is_development

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logfire(
    settings: Settings,
    app_instance: Optional[Any] = None,
) -> bool:
    """Configure and initialize Logfire with application settings.

    Args:
        settings: Application settings
        app_instance: Optional FastAPI app instance for auto-instrumentation

    Returns:
        True when Logfire was configured
    """
    if not settings.logfire.enabled:
        logger.info("logfire_disabled")
        return False

    config: dict[str, Any] = {
        "service_name": settings.logfire.service_name,
        "service_version": settings.app.version,
        "environment": settings.app.environment,
        "send_to_logfire": "if-token-present",
    }
    if not settings.logfire.console_enabled:
        config["console"] = False
    if settings.logfire.token:
        config["token"] = settings.logfire.token.get_secret_value()

    try:
        logfire.configure(**config)
        logger.info("logfire_configured", service=settings.logfire.service_name)
        _setup_integrations(settings, app_instance)
    except Exception as e:
        logger.error("logfire_configuration_failed", error=str(e))
        # Don't fail the application if Logfire setup fails
        if settings.is_production:
            raise
        logger.warning("continuing_without_logfire")
        return False
    return True


def _setup_integrations(settings: Settings, app_instance: Optional[Any]) -> None:
    if app_instance is not None and settings.logfire.fastapi_enabled:
        try:
            logfire.instrument_fastapi(app_instance)
            logger.info("fastapi_instrumentation_enabled")
        except Exception as e:
            logger.warning("fastapi_instrumentation_failed", error=str(e))

    if settings.logfire.sql_enabled:
        try:
            logfire.instrument_sqlalchemy()
            logger.info("sqlalchemy_instrumentation_enabled")
        except Exception as e:
            logger.warning("sqlalchemy_instrumentation_failed", error=str(e))

    if settings.logfire.redis_enabled:
        try:
            logfire.instrument_redis()
            logger.info("redis_instrumentation_enabled")
        except Exception as e:
            logger.warning("redis_instrumentation_failed", error=str(e))
