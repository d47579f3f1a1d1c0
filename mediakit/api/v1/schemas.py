from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from mediakit.domain import AvatarRecord, MediaAsset
from mediakit.media.formats import Variant


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    version: Optional[str] = Field(default=None, description="Deployed API version.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnvCheckResponse(BaseModel):
    ffmpeg: bool


class DerivedVariant(str, enum.Enum):
    thumbnail = "thumbnail"
    avatar = "avatar"

    def to_variant(self) -> Variant:
        return Variant(self.value)


class AssetLocatorModel(BaseModel):
    url: str = Field(..., json_schema_extra={"example": "https://cdn.example.com/images/thumbnails/5f1c"})
    content_type: str = Field(..., json_schema_extra={"example": "image/webp"})


class MediaAssetResponse(BaseModel):
    id: str
    original: AssetLocatorModel
    derived: AssetLocatorModel

    @classmethod
    def from_entity(cls, asset: MediaAsset) -> "MediaAssetResponse":
        return cls(**asset.to_dict())


class ExistsResponse(BaseModel):
    id: str
    exists: bool


class AvatarRequest(BaseModel):
    url: str = Field(..., min_length=1, json_schema_extra={"example": "ipfs://bafy.../1.json"})
    is_nft: bool = Field(default=False, description="Treat the URL as NFT metadata rather than an image.")


class AvatarResponse(BaseModel):
    id: str
    url: str

    @classmethod
    def from_record(cls, record: AvatarRecord) -> "AvatarResponse":
        return cls(id=record.id, url=record.url)


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None


__all__ = [
    "HealthResponse",
    "EnvCheckResponse",
    "DerivedVariant",
    "AssetLocatorModel",
    "MediaAssetResponse",
    "ExistsResponse",
    "AvatarRequest",
    "AvatarResponse",
    "ErrorResponse",
]
