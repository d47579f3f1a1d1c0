"""Domain entities and identity helpers reused by the services and API."""

from mediakit.domain.asset_id import compute_sha256, derive_avatar_id, new_asset_id
from mediakit.domain.entities import AssetLocator, AvatarRecord, MediaAsset

__all__ = [
    "AssetLocator",
    "AvatarRecord",
    "MediaAsset",
    "compute_sha256",
    "derive_avatar_id",
    "new_asset_id",
]
