"""Application resources and their startup/shutdown lifecycle."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import structlog
from fastapi import FastAPI

from vidshield.application.processing.supervisor import PipelineSupervisor
from vidshield.application.services.asset_service import AssetService
from vidshield.domain.protocols import Classifier, DurationProvider, EventBroadcaster
from vidshield.infrastructure.broadcasting import create_broadcaster
from vidshield.infrastructure.config import Settings
from vidshield.infrastructure.database.connection import Database
from vidshield.infrastructure.persistence.repositories.asset_repository import (
    SqlAlchemyAssetStore,
)
from vidshield.infrastructure.security.jwt_service import JWTService
from vidshield.infrastructure.storage.local_storage import LocalFileStorage

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything the request handlers need, built once per application."""

    settings: Settings
    database: Database
    store: SqlAlchemyAssetStore
    broadcaster: EventBroadcaster
    supervisor: PipelineSupervisor
    storage: LocalFileStorage
    jwt_service: JWTService
    asset_service: AssetService

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        broadcaster: Optional[EventBroadcaster] = None,
        duration_provider: Optional[DurationProvider] = None,
        classifier: Optional[Classifier] = None,
    ) -> "ServiceContainer":
        database = Database(settings.database)
        store = SqlAlchemyAssetStore(database.session_factory)
        broadcaster = broadcaster or create_broadcaster(settings)
        supervisor = PipelineSupervisor.from_settings(
            store,
            broadcaster,
            settings.processing,
            duration_provider=duration_provider,
            classifier=classifier,
        )
        storage = LocalFileStorage(
            settings.storage.upload_dir,
            max_bytes=settings.storage.max_upload_bytes,
            allowed_content_prefix=settings.storage.allowed_content_prefix,
        )
        return cls(
            settings=settings,
            database=database,
            store=store,
            broadcaster=broadcaster,
            supervisor=supervisor,
            storage=storage,
            jwt_service=JWTService(settings.security),
            asset_service=AssetService(store=store, storage=storage, supervisor=supervisor),
        )

    async def startup(self) -> None:
        await self.database.create_tables()
        self.storage.ensure_root()
        await self.broadcaster.start()

    async def shutdown(self) -> None:
        await self.supervisor.shutdown(
            timeout=self.settings.processing.shutdown_timeout_seconds
        )
        await self.broadcaster.close()
        await self.database.close()


def build_lifespan(settings: Settings, **overrides: Any):
    """Create the lifespan handler for an application using ``settings``.

    Keyword overrides (broadcaster, duration_provider, classifier) are
    passed to ServiceContainer.build.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        container = ServiceContainer.build(settings, **overrides)

        await container.startup()
        app.state.container = container
        logger.info(
            "application_started",
            environment=settings.app.environment,
            broadcast_backend=str(settings.broadcast.backend),
        )
        try:
            yield
        finally:
            logger.info("application_stopping", in_flight=container.supervisor.active_count)
            await container.shutdown()
            logger.info("application_stopped")

    return lifespan
