from __future__ import annotations

from hashlib import sha256
from uuid import uuid4

__all__ = ["compute_sha256", "derive_avatar_id", "new_asset_id"]


def compute_sha256(payload: str) -> str:
    """Return the hexadecimal SHA256 digest of ``payload`` encoded as UTF-8."""
    return sha256(payload.encode("utf-8")).hexdigest()


def derive_avatar_id(source_url: str) -> str:
    """Return the dedup key for an avatar source.

    The URL text is hashed as given, so the same URL always resolves to the same
    stored asset.

    Args:
        source_url: The avatar or NFT metadata URL supplied by the caller.

    Returns:
        The hex-encoded SHA256 digest used as the asset id.
    """
    return compute_sha256(source_url)


def new_asset_id() -> str:
    """Return a fresh identifier for a directly uploaded asset."""
    return uuid4().hex
