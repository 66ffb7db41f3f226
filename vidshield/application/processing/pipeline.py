"""Processing pipeline for a single uploaded asset.

Drives an asset from uploaded to a terminal state. Every transition is
persisted first and broadcast second, so an observer that receives an
event can always read the same values back from the store.
"""

import asyncio
import inspect
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

import logfire
import structlog

from vidshield.domain.enums import AssetStatus, Classification
from vidshield.domain.events import (
    AssetFailedEvent,
    ProcessedEvent,
    ProcessingEvent,
    ProcessingStartedEvent,
    ProgressEvent,
)
from vidshield.domain.exceptions import (
    AssetNotFoundError,
    ClassificationError,
    ConcurrentUpdateError,
    ErrorContext,
    InvalidValueError,
    StorePersistError,
)
from vidshield.domain.models.asset import Asset
from vidshield.domain.protocols import (
    AssetStore,
    Classifier,
    DurationProvider,
    EventBroadcaster,
)

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ProcessingPipeline:
    """Runs the processing state machine for one asset.

    A pipeline instance is single-use: ``run`` is awaited once, normally
    inside a task owned by the PipelineSupervisor.
    """

    def __init__(
        self,
        asset_id: UUID,
        store: AssetStore,
        broadcaster: EventBroadcaster,
        duration_provider: DurationProvider,
        classifier: Classifier,
        *,
        steps: int = 10,
        broadcast_failures: bool = False,
        sleep: Sleep = asyncio.sleep,
    ):
        if steps < 1:
            raise InvalidValueError(
                "A pipeline needs at least one step",
                context=ErrorContext(field_name="steps", invalid_value=steps),
            )
        self.asset_id = asset_id
        self.store = store
        self.broadcaster = broadcaster
        self.duration_provider = duration_provider
        self.classifier = classifier
        self.steps = steps
        self.broadcast_failures = broadcast_failures
        self._sleep = sleep
        self._log = logger.bind(asset_id=str(asset_id))

    async def run(self) -> Optional[AssetStatus]:
        """Process the asset.

        Returns:
            The terminal status this run persisted, or None when the run
            did not take ownership of the asset or lost it mid-way
        """
        try:
            asset = await self.store.get(self.asset_id)
        except StorePersistError as e:
            self._log.error("pipeline_asset_read_failed", error=str(e))
            return None

        if asset is None:
            self._log.warning("pipeline_asset_not_found")
            return None
        if asset.status != AssetStatus.UPLOADED:
            self._log.info("pipeline_asset_not_pending", status=str(asset.status))
            return None

        self._log = self._log.bind(tenant_id=asset.tenant_id)
        with logfire.span(
            "process asset {asset_id}",
            asset_id=str(asset.id),
            tenant_id=asset.tenant_id,
        ):
            return await self._drive(asset)

    async def _drive(self, asset: Asset) -> Optional[AssetStatus]:
        started = replace(asset)
        changes = started.begin_processing()
        try:
            asset = await self._persist(changes, expected_status=AssetStatus.UPLOADED)
        except ConcurrentUpdateError as e:
            self._log.info("pipeline_lost_ownership", actual_status=e.actual)
            return None
        except AssetNotFoundError:
            self._log.warning("pipeline_asset_vanished", stage="start")
            return None
        except StorePersistError as e:
            return await self._fail(started, e)

        self._log.info("pipeline_started")
        await self._emit(asset, ProcessingStartedEvent(asset.id))

        try:
            for step, delay in enumerate(self._step_delays(), start=1):
                await self._sleep(delay)
                progress = round(step * 100 / self.steps)
                asset = await self._persist(replace(asset).advance_progress(progress))
                self._log.debug("pipeline_progress", step=step, progress=asset.progress)
                await self._emit(asset, ProgressEvent(asset.id, progress=asset.progress))

            classification = await self._classify(asset)
            asset = await self._persist(replace(asset).complete(classification))
        except AssetNotFoundError:
            self._log.warning("pipeline_asset_vanished", stage="processing")
            return None
        except (StorePersistError, ClassificationError, InvalidValueError) as e:
            return await self._fail(asset, e)

        self._log.info(
            "pipeline_completed", classification=str(asset.classification)
        )
        await self._emit(
            asset,
            ProcessedEvent(
                asset.id, status=asset.status, classification=asset.classification
            ),
        )
        return asset.status

    def _step_delays(self) -> List[float]:
        total_ms = self.duration_provider()
        if not isinstance(total_ms, (int, float)) or total_ms < 0:
            raise InvalidValueError(
                "Processing duration must be a non-negative number of milliseconds",
                context=ErrorContext(
                    entity_type="Asset",
                    entity_id=self.asset_id,
                    field_name="duration_ms",
                    invalid_value=total_ms,
                ),
            )
        delay = total_ms / self.steps / 1000
        return [delay] * self.steps

    async def _classify(self, asset: Asset) -> Classification:
        try:
            outcome = self.classifier(asset)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except ClassificationError:
            raise
        except Exception as e:
            raise ClassificationError(asset.id, repr(e)) from e

        try:
            classification = Classification(outcome)
        except ValueError:
            raise ClassificationError(asset.id, outcome) from None
        if classification == Classification.UNKNOWN:
            raise ClassificationError(asset.id, outcome)
        return classification

    async def _update(
        self, changes: dict, *, expected_status: Optional[AssetStatus] = None
    ) -> Optional[Asset]:
        try:
            return await self.store.update(
                self.asset_id, changes, expected_status=expected_status
            )
        except (StorePersistError, ConcurrentUpdateError):
            raise
        except Exception as e:
            raise StorePersistError("update", self.asset_id, repr(e)) from e

    async def _persist(
        self, changes: dict, *, expected_status: Optional[AssetStatus] = None
    ) -> Asset:
        persisted = await self._update(changes, expected_status=expected_status)
        if persisted is None:
            raise AssetNotFoundError(self.asset_id)
        return persisted

    async def _emit(self, asset: Asset, event: ProcessingEvent) -> None:
        try:
            await self.broadcaster.publish(asset.tenant_id, event.name, event.payload())
        except Exception as e:
            self._log.warning("pipeline_broadcast_failed", event=event.name, error=str(e))

    async def _fail(self, asset: Asset, error: Exception) -> Optional[AssetStatus]:
        """Force the asset into failed; returns None if even that cannot be stored."""
        self._log.error(
            "pipeline_failed", error=str(error), error_type=type(error).__name__
        )
        try:
            failed = await self._update(replace(asset).fail())
        except StorePersistError as e:
            self._log.error("pipeline_failure_not_persisted", error=str(e))
            return None

        if failed is None:
            self._log.warning("pipeline_asset_vanished", stage="failure")
            return None

        if self.broadcast_failures:
            await self._emit(failed, AssetFailedEvent(failed.id, status=failed.status))
        return failed.status
