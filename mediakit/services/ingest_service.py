from __future__ import annotations

import asyncio
from typing import Optional

from mediakit.core.errors import FormatIndeterminate, FormatUnsupported
from mediakit.core.logging import get_logger
from mediakit.core.storage import Storage, StoredObject
from mediakit.domain import AssetLocator, MediaAsset, new_asset_id
from mediakit.media.formats import Variant, infer_format
from mediakit.media.generator import VariantGenerator


class IngestService:
    """Detect, derive and store an original plus one derived variant."""

    def __init__(self, storage: Storage, generator: VariantGenerator):
        self.storage = storage
        self.generator = generator
        self.logger = get_logger(component="ingest_service")

    async def upload(self, data: bytes, variant: Variant) -> MediaAsset:
        return await self.execute(new_asset_id(), data, variant)

    async def execute(self, asset_id: str, data: bytes, variant: Variant) -> MediaAsset:
        try:
            input_format = infer_format(data)
        except FormatIndeterminate as exc:
            raise FormatUnsupported(f"unsupported content: {exc}") from exc
        derived, output_format = await self.generator.generate(data, variant, input_format)
        self.logger.info(
            "variant_generated",
            asset_id=asset_id,
            variant=variant.value,
            input_format=input_format.value,
            output_format=output_format.value,
            input_bytes=len(data),
            output_bytes=len(derived),
        )

        # Both uploads always run to completion; a failure on one side does not cancel the other.
        original_result, derived_result = await asyncio.gather(
            self.storage.upload(asset_id, Variant.original, input_format.content_type, data),
            self.storage.upload(asset_id, variant, output_format.content_type, derived),
            return_exceptions=True,
        )

        original_failed = isinstance(original_result, BaseException)
        derived_failed = isinstance(derived_result, BaseException)

        if original_failed or derived_failed:
            if original_failed != derived_failed:
                self.logger.error(
                    "partial_upload",
                    asset_id=asset_id,
                    variant=variant.value,
                    stored="derived" if original_failed else "original",
                    error=str(original_result if original_failed else derived_result),
                )
            if original_failed:
                raise original_result  # type: ignore[misc]
            raise derived_result  # type: ignore[misc]

        return MediaAsset(
            id=asset_id,
            original=AssetLocator(url=str(original_result), content_type=input_format.content_type),
            derived=AssetLocator(url=str(derived_result), content_type=output_format.content_type),
        )


class MediaLookupService:
    """Read path that only reports an asset when both of its objects exist."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.logger = get_logger(component="media_lookup")

    async def execute(self, asset_id: str, variant: Variant) -> Optional[MediaAsset]:
        original, derived = await asyncio.gather(
            self.storage.get(Variant.original, asset_id),
            self.storage.get(variant, asset_id),
            return_exceptions=True,
        )
        if isinstance(original, BaseException):
            raise original
        if isinstance(derived, BaseException):
            raise derived

        if original is not None and derived is not None:
            return _assemble(asset_id, original, derived)
        if original is not None:
            self.logger.warning("partial_asset", asset_id=asset_id, variant=variant.value, missing="derived")
            return None
        if derived is not None:
            self.logger.warning("partial_asset", asset_id=asset_id, variant=variant.value, missing="original")
            return None
        self.logger.info("asset_absent", asset_id=asset_id, variant=variant.value)
        return None

    async def exists(self, asset_id: str) -> bool:
        return await self.storage.get(Variant.original, asset_id) is not None


def _assemble(asset_id: str, original: StoredObject, derived: StoredObject) -> MediaAsset:
    return MediaAsset(
        id=asset_id,
        original=AssetLocator(url=original.url, content_type=original.content_type),
        derived=AssetLocator(url=derived.url, content_type=derived.content_type),
    )


__all__ = ["IngestService", "MediaLookupService"]
