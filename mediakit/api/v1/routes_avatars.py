from __future__ import annotations

from fastapi import APIRouter, status

from mediakit.api import deps

from . import schemas


router = APIRouter(prefix="/avatars", tags=["avatars"])


@router.post("", response_model=schemas.AvatarResponse, status_code=status.HTTP_200_OK)
async def resolve_avatar(
    payload: schemas.AvatarRequest,
    service: deps.AvatarDependency,
    _: deps.AuthDependency,
) -> schemas.AvatarResponse:
    asset = await service.execute(payload.url, payload.is_nft)
    return schemas.AvatarResponse.from_record(asset.as_avatar())


__all__ = ["router"]
