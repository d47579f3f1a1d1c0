from __future__ import annotations

from mediakit.core.logging import get_logger
from mediakit.core.web import WebGateway
from mediakit.domain import MediaAsset, derive_avatar_id
from mediakit.media.formats import Variant

from .ingest_service import IngestService, MediaLookupService


class AvatarService:
    """Resolve an avatar URL to a stored asset, hydrating it on first sight.

    The asset id is the SHA256 of the URL, so a second request for the same URL
    finds the stored objects and never touches the network. Concurrent first-time
    requests are not serialised and may both hydrate.
    """

    def __init__(self, web: WebGateway, ingest: IngestService, lookup: MediaLookupService):
        self.web = web
        self.ingest = ingest
        self.lookup = lookup
        self.logger = get_logger(component="avatar_service")

    async def execute(self, url: str, is_nft: bool) -> MediaAsset:
        asset_id = derive_avatar_id(url)
        log = self.logger.bind(asset_id=asset_id, is_nft=is_nft)

        existing = await self.lookup.execute(asset_id, Variant.avatar)
        if existing is not None:
            log.info("avatar_already_exists")
            return existing
        log.info("avatar_hydrating")

        image_url = await self.web.get_nft_image_url(url) if is_nft else url
        data = await self.web.get_image_data(image_url)
        return await self.ingest.execute(asset_id, data, Variant.avatar)


__all__ = ["AvatarService"]
