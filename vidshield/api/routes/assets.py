"""Asset API routes.

Upload videos, list and inspect a tenant's assets and delete them.
"""

from typing import AsyncIterator, Optional
from uuid import UUID

from fastapi import APIRouter, File, Form, Query, Response, UploadFile, status

from vidshield.api.dependencies import Admin, AssetServiceDep, CurrentActor, Uploader
from vidshield.api.schemas.assets import AssetListResponse, AssetResponse
from vidshield.domain.enums import AssetStatus

router = APIRouter(prefix="/assets", tags=["assets"])

UPLOAD_CHUNK_SIZE = 1024 * 1024


async def _read_chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
        yield chunk


@router.post("", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
async def upload_asset(
    actor: Uploader,
    service: AssetServiceDep,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
) -> AssetResponse:
    """Upload a video and start processing it."""
    try:
        asset = await service.upload(
            actor,
            filename=file.filename or "upload",
            content_type=file.content_type,
            chunks=_read_chunks(file),
            title=title,
        )
    finally:
        await file.close()
    return AssetResponse.from_entity(asset)


@router.get("", response_model=AssetListResponse)
async def list_assets(
    actor: CurrentActor,
    service: AssetServiceDep,
    status_filter: Optional[AssetStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> AssetListResponse:
    """List the caller's tenant assets, newest first."""
    items, total = await service.list_assets(
        actor, status=status_filter, limit=limit, offset=offset
    )
    return AssetListResponse(
        items=[AssetResponse.from_entity(a) for a in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset(
    asset_id: UUID, actor: CurrentActor, service: AssetServiceDep
) -> AssetResponse:
    """Get one asset of the caller's tenant."""
    asset = await service.get_asset(actor, asset_id)
    return AssetResponse.from_entity(asset)


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(asset_id: UUID, actor: Admin, service: AssetServiceDep) -> Response:
    """Delete an asset, cancelling its processing."""
    await service.delete_asset(actor, asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
