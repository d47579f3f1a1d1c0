from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from mediakit.api import deps
from mediakit.core.config import Settings

from . import schemas


router = APIRouter(prefix="/media", tags=["media"])

ASSET_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"


async def _read_body(request: Request, limit: int) -> bytes:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="upload_too_large")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="upload_too_large")
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty_body")
    return bytes(body)


@router.post("", response_model=schemas.MediaAssetResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    request: Request,
    service: deps.IngestDependency,
    _: deps.AuthDependency,
    variant: schemas.DerivedVariant = Query(default=schemas.DerivedVariant.thumbnail),
    settings: Settings = Depends(deps.get_app_settings),
) -> schemas.MediaAssetResponse:
    data = await _read_body(request, settings.max_upload_size_bytes)
    asset = await service.upload(data, variant.to_variant())
    return schemas.MediaAssetResponse.from_entity(asset)


@router.get("/{asset_id}", response_model=schemas.MediaAssetResponse)
async def get_media(
    service: deps.LookupDependency,
    _: deps.AuthDependency,
    asset_id: str = Path(..., pattern=ASSET_ID_PATTERN),
    variant: schemas.DerivedVariant = Query(default=schemas.DerivedVariant.thumbnail),
) -> schemas.MediaAssetResponse:
    asset = await service.execute(asset_id, variant.to_variant())
    if asset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="asset_not_found")
    return schemas.MediaAssetResponse.from_entity(asset)


@router.get("/{asset_id}/exists", response_model=schemas.ExistsResponse)
async def media_exists(
    service: deps.LookupDependency,
    _: deps.AuthDependency,
    asset_id: str = Path(..., pattern=ASSET_ID_PATTERN),
) -> schemas.ExistsResponse:
    return schemas.ExistsResponse(id=asset_id, exists=await service.exists(asset_id))


__all__ = ["router"]
