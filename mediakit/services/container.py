"""Service composition helpers."""

from __future__ import annotations

from dataclasses import dataclass

from mediakit.core.config import Settings
from mediakit.core.storage import Storage, get_storage
from mediakit.core.web import WebGateway
from mediakit.media.generator import DispatchingGenerator
from mediakit.media.images import ImageBackend
from mediakit.media.video import VideoBackend
from mediakit.workers.sweeper import RetentionSweeper

from .avatar_service import AvatarService
from .ingest_service import IngestService, MediaLookupService


@dataclass(frozen=True)
class ServiceContainer:
    """Gateways and services built once at start-up and shared by every request."""

    settings: Settings
    storage: Storage
    web: WebGateway
    video: VideoBackend
    ingest: IngestService
    lookup: MediaLookupService
    avatars: AvatarService
    sweeper: RetentionSweeper


def build_container(
    settings: Settings,
    *,
    storage: Storage | None = None,
    web: WebGateway | None = None,
    video: VideoBackend | None = None,
) -> ServiceContainer:
    storage = storage or get_storage(settings)
    web = web or WebGateway(
        ipfs_gateway_url=settings.ipfs_gateway_url,
        max_body_bytes=settings.fetch_max_body_bytes,
        timeout_seconds=settings.fetch_timeout_seconds,
    )
    video = video or VideoBackend(settings.scratch_dir)
    generator = DispatchingGenerator(ImageBackend(), video)

    ingest = IngestService(storage, generator)
    lookup = MediaLookupService(storage)
    avatars = AvatarService(web, ingest, lookup)
    sweeper = RetentionSweeper(video, stale_seconds=settings.sweep_stale_seconds)

    return ServiceContainer(
        settings=settings,
        storage=storage,
        web=web,
        video=video,
        ingest=ingest,
        lookup=lookup,
        avatars=avatars,
        sweeper=sweeper,
    )


__all__ = ["ServiceContainer", "build_container"]
