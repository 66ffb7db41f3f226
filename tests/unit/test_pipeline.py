"""Unit tests for the processing pipeline."""

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from tests.factories import AssetFactory, FlakyStore, RecordingBroadcaster, no_sleep
from vidshield.application.processing.pipeline import ProcessingPipeline
from vidshield.application.processing.strategies import (
    FixedDurationProvider,
    StaticClassifier,
)
from vidshield.domain.enums import AssetStatus, Classification
from vidshield.domain.exceptions import InvalidValueError


def make_pipeline(asset_id, store, broadcaster, **kwargs) -> ProcessingPipeline:
    kwargs.setdefault("duration_provider", FixedDurationProvider(0))
    kwargs.setdefault("classifier", StaticClassifier(Classification.SAFE))
    kwargs.setdefault("sleep", no_sleep)
    duration_provider = kwargs.pop("duration_provider")
    classifier = kwargs.pop("classifier")
    return ProcessingPipeline(
        asset_id, store, broadcaster, duration_provider, classifier, **kwargs
    )


class TestHappyPath:
    """Test a complete run."""

    async def test_event_sequence(self, store):
        asset = await store.add(AssetFactory(tenant_id="t1"))
        broadcaster = RecordingBroadcaster()

        result = await make_pipeline(asset.id, store, broadcaster).run()

        assert result == AssetStatus.COMPLETED
        events = broadcaster.events()
        assert events == ["processing_start"] + ["progress"] * 10 + ["processed"]
        progress = [p["progress"] for _, e, p in broadcaster.published if e == "progress"]
        assert progress == [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
        assert all(tenant == "t1" for tenant, _, _ in broadcaster.published)

        final = await store.get(asset.id)
        assert final.status == AssetStatus.COMPLETED
        assert final.progress == 100
        assert final.classification == Classification.SAFE
        assert broadcaster.published[-1][2] == {
            "assetId": str(asset.id),
            "status": "completed",
            "classification": "safe",
        }

    async def test_events_follow_persisted_state(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster(store=store)

        await make_pipeline(asset.id, store, broadcaster).run()

        for (_, event, payload), snapshot in zip(broadcaster.published, broadcaster.snapshots):
            if event == "processing_start":
                assert snapshot.status == AssetStatus.PROCESSING
            elif event == "progress":
                assert snapshot.progress == payload["progress"]
            elif event == "processed":
                assert snapshot.status == AssetStatus.COMPLETED
                assert str(snapshot.classification) == payload["classification"]

    async def test_rounding_with_uneven_steps(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()

        await make_pipeline(asset.id, store, broadcaster, steps=3).run()

        progress = [p["progress"] for _, e, p in broadcaster.published if e == "progress"]
        assert progress == [33, 67, 100]

    async def test_delays_split_total_duration(self, store):
        asset = await store.add(AssetFactory())
        sleep = AsyncMock()

        await make_pipeline(
            asset.id,
            store,
            RecordingBroadcaster(),
            duration_provider=FixedDurationProvider(6000),
            sleep=sleep,
        ).run()

        assert sleep.await_count == 10
        assert all(call.args[0] == pytest.approx(0.6) for call in sleep.await_args_list)

    async def test_async_classifier(self, store):
        asset = await store.add(AssetFactory())

        async def classifier(a):
            return Classification.FLAGGED

        await make_pipeline(asset.id, store, RecordingBroadcaster(), classifier=classifier).run()

        assert (await store.get(asset.id)).classification == Classification.FLAGGED


class TestOwnership:
    """Test runs that must not take over an asset."""

    async def test_missing_asset(self, store):
        broadcaster = RecordingBroadcaster()

        assert await make_pipeline(uuid4(), store, broadcaster).run() is None
        assert broadcaster.published == []

    @pytest.mark.parametrize(
        "status", [AssetStatus.PROCESSING, AssetStatus.COMPLETED, AssetStatus.FAILED]
    )
    async def test_not_uploaded(self, store, status):
        asset = await store.add(AssetFactory(status=status, progress=50))
        broadcaster = RecordingBroadcaster()

        assert await make_pipeline(asset.id, store, broadcaster).run() is None
        assert broadcaster.published == []
        assert (await store.get(asset.id)).progress == 50

    async def test_asset_deleted_mid_run(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()

        async def sleep(delay):
            await store.delete(asset.id)

        assert await make_pipeline(asset.id, store, broadcaster, sleep=sleep).run() is None
        assert broadcaster.events() == ["processing_start"]

    async def test_concurrent_runs_process_once(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()

        results = await asyncio.gather(
            make_pipeline(asset.id, store, broadcaster).run(),
            make_pipeline(asset.id, store, broadcaster).run(),
        )

        assert results.count(AssetStatus.COMPLETED) == 1
        assert results.count(None) == 1
        assert broadcaster.events().count("processing_start") == 1
        assert broadcaster.events().count("processed") == 1
        assert len(broadcaster.events()) == 12


class TestFailures:
    """Test store, classifier and broadcaster failures."""

    async def test_store_failure_on_first_progress(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()
        flaky = FlakyStore(store, fail_on_update=2)

        result = await make_pipeline(asset.id, flaky, broadcaster).run()

        assert result == AssetStatus.FAILED
        final = await store.get(asset.id)
        assert final.status == AssetStatus.FAILED
        assert final.progress == 0
        assert "processed" not in broadcaster.events()
        assert "failed" not in broadcaster.events()

    async def test_store_failure_on_start(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()
        flaky = FlakyStore(store, fail_on_update=1)

        result = await make_pipeline(asset.id, flaky, broadcaster).run()

        assert result == AssetStatus.FAILED
        assert (await store.get(asset.id)).status == AssetStatus.FAILED
        assert broadcaster.published == []

    async def test_unexpected_store_error_fails_asset(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()
        flaky = FlakyStore(
            store, fail_on_update=3, error=ConnectionResetError("db connection lost")
        )

        result = await make_pipeline(asset.id, flaky, broadcaster).run()

        assert result == AssetStatus.FAILED
        final = await store.get(asset.id)
        assert final.status == AssetStatus.FAILED
        assert final.progress == 0
        assert "processed" not in broadcaster.events()

    async def test_unexpected_error_while_failing(self, store):
        asset = await store.add(AssetFactory())
        flaky = FlakyStore(store, fail_always=True, error=RuntimeError("pool closed"))

        assert await make_pipeline(asset.id, flaky, RecordingBroadcaster()).run() is None
        assert (await store.get(asset.id)).status == AssetStatus.UPLOADED

    async def test_failure_not_persisted_either(self, store):
        asset = await store.add(AssetFactory())
        flaky = FlakyStore(store, fail_always=True)

        assert await make_pipeline(asset.id, flaky, RecordingBroadcaster()).run() is None
        assert (await store.get(asset.id)).status == AssetStatus.UPLOADED

    async def test_failure_broadcast_when_enabled(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()
        flaky = FlakyStore(store, fail_on_update=4)

        await make_pipeline(asset.id, flaky, broadcaster, broadcast_failures=True).run()

        assert broadcaster.events() == ["processing_start", "progress", "progress", "failed"]
        assert broadcaster.published[-1][2] == {"assetId": str(asset.id), "status": "failed"}

    async def test_unrecognised_classification_fails_asset(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()

        result = await make_pipeline(
            asset.id, store, broadcaster, classifier=lambda a: "maybe"
        ).run()

        assert result == AssetStatus.FAILED
        final = await store.get(asset.id)
        assert final.progress == 0
        assert final.classification == Classification.UNKNOWN
        assert "processed" not in broadcaster.events()

    async def test_classifier_exception_fails_asset(self, store):
        asset = await store.add(AssetFactory())

        def classifier(a):
            raise RuntimeError("model offline")

        result = await make_pipeline(
            asset.id, store, RecordingBroadcaster(), classifier=classifier
        ).run()

        assert result == AssetStatus.FAILED

    async def test_broadcast_errors_do_not_abort(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster(fail_events=("progress",))

        result = await make_pipeline(asset.id, store, broadcaster).run()

        assert result == AssetStatus.COMPLETED
        assert broadcaster.events() == ["processing_start", "processed"]

    async def test_negative_duration_fails_asset(self, store):
        asset = await store.add(AssetFactory())

        result = await make_pipeline(
            asset.id, store, RecordingBroadcaster(), duration_provider=lambda: -5
        ).run()

        assert result == AssetStatus.FAILED

    def test_requires_a_step(self):
        with pytest.raises(InvalidValueError):
            make_pipeline(AssetFactory().id, None, RecordingBroadcaster(), steps=0)


class TestCancellation:
    async def test_cancel_leaves_last_committed_state(self, store):
        asset = await store.add(AssetFactory())
        broadcaster = RecordingBroadcaster()
        reached = asyncio.Event()
        calls = 0

        async def sleep(delay):
            nonlocal calls
            calls += 1
            if calls == 3:
                reached.set()
                await asyncio.Event().wait()

        task = asyncio.create_task(make_pipeline(asset.id, store, broadcaster, sleep=sleep).run())
        await reached.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        final = await store.get(asset.id)
        assert final.status == AssetStatus.PROCESSING
        assert final.progress == 20
        assert broadcaster.events() == ["processing_start", "progress", "progress"]
