"""Unit tests for the asset application service."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from tests.factories import ActorFactory, AssetFactory
from vidshield.application.services.asset_service import AssetService
from vidshield.domain.enums import AssetStatus, UserRole
from vidshield.domain.exceptions import (
    AssetNotFoundError,
    StorePersistError,
    UnauthorizedOperation,
)
from vidshield.infrastructure.storage.local_storage import LocalFileStorage


async def chunks_of(*parts: bytes):
    for part in parts:
        yield part


@pytest.fixture
def supervisor():
    supervisor = MagicMock()
    supervisor.cancel = AsyncMock(return_value=False)
    return supervisor


@pytest.fixture
def service(store, tmp_path: Path, supervisor) -> AssetService:
    storage = LocalFileStorage(tmp_path / "uploads", max_bytes=1024)
    return AssetService(store=store, storage=storage, supervisor=supervisor)


class TestUpload:
    async def test_upload_persists_and_starts_pipeline(self, service, supervisor):
        actor = ActorFactory(tenant_id="t1", role=UserRole.EDITOR)

        asset = await service.upload(
            actor, filename="intro.mp4", content_type="video/mp4", chunks=chunks_of(b"data")
        )

        assert asset.status == AssetStatus.UPLOADED
        assert asset.tenant_id == "t1"
        assert asset.title == "intro.mp4"
        assert asset.size_bytes == 4
        assert Path(asset.storage_path).exists()
        assert (await service.store.get(asset.id)) is not None
        supervisor.start.assert_called_once_with(asset.id)

    async def test_viewer_cannot_upload(self, service, supervisor):
        actor = ActorFactory(role=UserRole.VIEWER)

        with pytest.raises(UnauthorizedOperation):
            await service.upload(
                actor, filename="a.mp4", content_type="video/mp4", chunks=chunks_of(b"x")
            )

        supervisor.start.assert_not_called()

    async def test_store_failure_removes_file(self, service, supervisor):
        service.store = MagicMock()
        service.store.add = AsyncMock(side_effect=StorePersistError("add", None, "down"))

        with pytest.raises(StorePersistError):
            await service.upload(
                ActorFactory(),
                filename="a.mp4",
                content_type="video/mp4",
                chunks=chunks_of(b"x"),
            )

        assert list(service.storage.root.iterdir()) == []
        supervisor.start.assert_not_called()


class TestAccess:
    async def test_other_tenant_asset_is_not_found(self, service, store):
        asset = await store.add(AssetFactory(tenant_id="t2"))

        with pytest.raises(AssetNotFoundError):
            await service.get_asset(ActorFactory(tenant_id="t1"), asset.id)

    async def test_list_returns_page_and_total(self, service, store):
        for _ in range(3):
            await store.add(AssetFactory(tenant_id="t1"))

        items, total = await service.list_assets(ActorFactory(tenant_id="t1"), limit=2)

        assert len(items) == 2
        assert total == 3

    async def test_delete_requires_admin(self, service, store):
        asset = await store.add(AssetFactory(tenant_id="t1"))

        with pytest.raises(UnauthorizedOperation):
            await service.delete_asset(
                ActorFactory(tenant_id="t1", role=UserRole.EDITOR), asset.id
            )

    async def test_delete_cancels_pipeline_and_removes_record(self, service, store, supervisor):
        asset = await store.add(AssetFactory(tenant_id="t1"))

        await service.delete_asset(ActorFactory(tenant_id="t1", role=UserRole.ADMIN), asset.id)

        supervisor.cancel.assert_awaited_once_with(asset.id)
        assert await store.get(asset.id) is None

    async def test_delete_missing(self, service):
        with pytest.raises(AssetNotFoundError):
            await service.delete_asset(ActorFactory(role=UserRole.ADMIN), uuid4())
