"""Tests for the asset API routes."""

from uuid import UUID, uuid4

from httpx import AsyncClient

from tests.factories import AssetFactory
from vidshield.domain.enums import AssetStatus, UserRole

VIDEO = ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")


async def upload(client: AsyncClient, headers, file=VIDEO, **data):
    return await client.post(
        "/api/v1/assets", files={"file": file}, data=data, headers=headers
    )


class TestUpload:
    """Test POST /api/v1/assets."""

    async def test_editor_upload_starts_processing(self, client, auth_headers, container):
        response = await upload(client, auth_headers(UserRole.EDITOR, "t1"), title="Intro")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "uploaded"
        assert data["progress"] == 0
        assert data["classification"] == "unknown"
        assert data["tenant_id"] == "t1"
        assert data["title"] == "Intro"
        assert data["size_bytes"] == len(VIDEO[1])
        assert "storage_path" not in data

        asset_id = UUID(data["id"])
        assert await container.supervisor.join(asset_id) == AssetStatus.COMPLETED
        stored = await container.store.get(asset_id)
        assert stored.status == AssetStatus.COMPLETED
        assert stored.progress == 100

    async def test_viewer_cannot_upload(self, client, auth_headers):
        response = await upload(client, auth_headers(UserRole.VIEWER))

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "AUTHORIZATION_FAILED"
        assert error["details"]["role"] == "viewer"

    async def test_missing_token(self, client):
        response = await upload(client, {})

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"

    async def test_invalid_token(self, client):
        response = await upload(client, {"Authorization": "Bearer nope"})

        assert response.status_code == 401

    async def test_rejects_non_video(self, client, auth_headers, container):
        response = await upload(
            client, auth_headers(), file=("notes.txt", b"hello", "text/plain")
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert await container.store.count_by_tenant("t1") == 0

    async def test_rejects_oversized_file(self, client, auth_headers, container):
        too_big = b"0" * (1024 * 1024 + 1)

        response = await upload(
            client, auth_headers(), file=("big.mp4", too_big, "video/mp4")
        )

        assert response.status_code == 422
        assert await container.store.count_by_tenant("t1") == 0
        assert list(container.storage.root.iterdir()) == []

    async def test_missing_file_field(self, client, auth_headers):
        response = await client.post(
            "/api/v1/assets", data={"title": "x"}, headers=auth_headers()
        )

        assert response.status_code == 422
        assert "field_errors" in response.json()["error"]["details"]


class TestRead:
    """Test GET /api/v1/assets and GET /api/v1/assets/{id}."""

    async def test_list_is_tenant_scoped(self, client, auth_headers, container):
        mine = await container.store.add(AssetFactory(tenant_id="t1"))
        await container.store.add(AssetFactory(tenant_id="t2"))

        response = await client.get("/api/v1/assets", headers=auth_headers(UserRole.VIEWER, "t1"))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert [item["id"] for item in data["items"]] == [str(mine.id)]

    async def test_list_filters_by_status(self, client, auth_headers, container):
        await container.store.add(AssetFactory(tenant_id="t1"))
        done = await container.store.add(
            AssetFactory(tenant_id="t1", status=AssetStatus.COMPLETED, progress=100)
        )

        response = await client.get(
            "/api/v1/assets", params={"status": "completed"}, headers=auth_headers()
        )

        assert [item["id"] for item in response.json()["items"]] == [str(done.id)]

    async def test_list_rejects_bad_limit(self, client, auth_headers):
        response = await client.get(
            "/api/v1/assets", params={"limit": 0}, headers=auth_headers()
        )

        assert response.status_code == 422

    async def test_get_asset(self, client, auth_headers, container):
        asset = await container.store.add(AssetFactory(tenant_id="t1"))

        response = await client.get(f"/api/v1/assets/{asset.id}", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["id"] == str(asset.id)

    async def test_other_tenant_asset_is_not_found(self, client, auth_headers, container):
        asset = await container.store.add(AssetFactory(tenant_id="t2"))

        response = await client.get(f"/api/v1/assets/{asset.id}", headers=auth_headers())

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_error_envelope_carries_request_id(self, client, auth_headers):
        response = await client.get(
            f"/api/v1/assets/{uuid4()}",
            headers={**auth_headers(), "X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["request_id"] == "req-123"


class TestDelete:
    """Test DELETE /api/v1/assets/{id}."""

    async def test_admin_deletes_asset(self, client, auth_headers, container):
        asset = await container.store.add(AssetFactory(tenant_id="t1"))

        response = await client.delete(
            f"/api/v1/assets/{asset.id}", headers=auth_headers(UserRole.ADMIN)
        )

        assert response.status_code == 204
        assert await container.store.get(asset.id) is None

    async def test_editor_cannot_delete(self, client, auth_headers, container):
        asset = await container.store.add(AssetFactory(tenant_id="t1"))

        response = await client.delete(
            f"/api/v1/assets/{asset.id}", headers=auth_headers(UserRole.EDITOR)
        )

        assert response.status_code == 403
        assert await container.store.get(asset.id) is not None

    async def test_admin_cannot_delete_other_tenant(self, client, auth_headers, container):
        asset = await container.store.add(AssetFactory(tenant_id="t2"))

        response = await client.delete(
            f"/api/v1/assets/{asset.id}", headers=auth_headers(UserRole.ADMIN, "t1")
        )

        assert response.status_code == 404
        assert await container.store.get(asset.id) is not None
