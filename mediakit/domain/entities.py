from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class AssetLocator:
    url: str
    content_type: str


@dataclass(slots=True, frozen=True)
class MediaAsset:
    """A stored original together with its derived variant.

    Only built once both objects are known to exist.
    """

    id: str
    original: AssetLocator
    derived: AssetLocator

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def as_avatar(self) -> "AvatarRecord":
        return AvatarRecord(id=self.id, url=self.derived.url)


@dataclass(slots=True, frozen=True)
class AvatarRecord:
    id: str
    url: str


__all__ = ["AssetLocator", "MediaAsset", "AvatarRecord"]
