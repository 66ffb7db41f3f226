"""Supervisor owning one processing task per asset."""

import asyncio
from functools import partial
from typing import Callable, Dict, Optional
from uuid import UUID

import logfire
import structlog

from vidshield.application.processing.pipeline import ProcessingPipeline, Sleep
from vidshield.application.processing.strategies import (
    RandomClassifier,
    RandomDurationProvider,
)
from vidshield.domain.enums import AssetStatus
from vidshield.domain.protocols import (
    AssetStore,
    Classifier,
    DurationProvider,
    EventBroadcaster,
)
from vidshield.infrastructure.config import ProcessingConfig

logger = structlog.get_logger(__name__)

PipelineFactory = Callable[[UUID], ProcessingPipeline]


class PipelineSupervisor:
    """Registry of running pipelines keyed by asset id.

    ``start`` is fire-and-forget: the caller gets control back at once
    and the pipeline runs in its own task. Errors stay inside that task
    and are logged here.
    """

    def __init__(self, pipeline_factory: PipelineFactory):
        self._pipeline_factory = pipeline_factory
        self._tasks: Dict[UUID, asyncio.Task] = {}
        self._outcomes: Dict[UUID, Optional[AssetStatus]] = {}
        self._accepting = True

    @classmethod
    def from_settings(
        cls,
        store: AssetStore,
        broadcaster: EventBroadcaster,
        config: ProcessingConfig,
        *,
        duration_provider: Optional[DurationProvider] = None,
        classifier: Optional[Classifier] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> "PipelineSupervisor":
        """Build a supervisor wired with the configured strategies."""
        duration_provider = duration_provider or RandomDurationProvider(
            config.min_duration_ms, config.max_duration_ms
        )
        classifier = classifier or RandomClassifier(config.safe_probability)

        def factory(asset_id: UUID) -> ProcessingPipeline:
            return ProcessingPipeline(
                asset_id,
                store,
                broadcaster,
                duration_provider,
                classifier,
                steps=config.steps,
                broadcast_failures=config.broadcast_failures,
                sleep=sleep,
            )

        return cls(factory)

    @property
    def accepting(self) -> bool:
        return self._accepting

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def is_running(self, asset_id: UUID) -> bool:
        task = self._tasks.get(asset_id)
        return task is not None and not task.done()

    def start(self, asset_id: UUID) -> None:
        """Launch the pipeline for ``asset_id`` unless one is already running."""
        if not self._accepting:
            logger.warning("pipeline_start_refused", asset_id=str(asset_id))
            return
        if self.is_running(asset_id):
            logger.info("pipeline_already_running", asset_id=str(asset_id))
            return

        self._outcomes.pop(asset_id, None)
        task = asyncio.get_running_loop().create_task(
            self._run(asset_id), name=f"asset-pipeline-{asset_id}"
        )
        self._tasks[asset_id] = task
        task.add_done_callback(partial(self._forget, asset_id))
        logger.debug("pipeline_scheduled", asset_id=str(asset_id))

    async def cancel(self, asset_id: UUID) -> bool:
        """Cancel the running pipeline, wait for it to stop and drop its outcome.

        Returns:
            False when nothing was running for the asset
        """
        task = self._tasks.get(asset_id)
        if task is None or task.done():
            self._outcomes.pop(asset_id, None)
            return False
        task.cancel()
        await asyncio.wait({task})
        self._outcomes.pop(asset_id, None)
        logger.info("pipeline_cancelled", asset_id=str(asset_id))
        return True

    async def join(self, asset_id: UUID) -> Optional[AssetStatus]:
        """Wait for the asset's pipeline and return its outcome.

        A run that already finished reports its recorded outcome; None when
        the asset never ran here, was cancelled or did not take ownership.
        """
        task = self._tasks.get(asset_id)
        if task is None:
            return self._outcomes.get(asset_id)
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop accepting work, drain in-flight pipelines, cancel stragglers."""
        self._accepting = False
        pending = {task for task in self._tasks.values() if not task.done()}
        if not pending:
            logger.info("supervisor_stopped", drained=0, cancelled=0)
            return

        with logfire.span("supervisor shutdown", in_flight=len(pending)):
            done, pending = await asyncio.wait(pending, timeout=timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)
        logger.info("supervisor_stopped", drained=len(done), cancelled=len(pending))

    async def _run(self, asset_id: UUID) -> Optional[AssetStatus]:
        try:
            pipeline = self._pipeline_factory(asset_id)
            return await pipeline.run()
        except asyncio.CancelledError:
            logger.info("pipeline_interrupted", asset_id=str(asset_id))
            raise
        except Exception:
            logger.exception("pipeline_crashed", asset_id=str(asset_id))
            return None

    def _forget(self, asset_id: UUID, task: asyncio.Task) -> None:
        if self._tasks.get(asset_id) is not task:
            return
        del self._tasks[asset_id]
        self._outcomes[asset_id] = None if task.cancelled() else task.result()
