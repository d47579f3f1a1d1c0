from __future__ import annotations

from typing import Literal, Protocol, Tuple

from .formats import Format, Variant
from .images import IMAGE_FORMATS, ImageBackend
from .video import VIDEO_FORMATS, VideoBackend

BackendKind = Literal["image", "video"]


class VariantGenerator(Protocol):
    async def generate(self, data: bytes, variant: Variant, input_format: Format) -> Tuple[bytes, Format]: ...


def backend_for(fmt: Format) -> BackendKind:
    """Map every :class:`Format` to the backend that handles it."""
    if fmt in IMAGE_FORMATS:
        return "image"
    if fmt in VIDEO_FORMATS:
        return "video"
    raise ValueError(f"no backend registered for {fmt!r}")


class DispatchingGenerator:
    """Route generation to the image or video backend according to the input format."""

    def __init__(self, images: VariantGenerator, video: VariantGenerator) -> None:
        self._backends: dict[BackendKind, VariantGenerator] = {"image": images, "video": video}

    async def generate(self, data: bytes, variant: Variant, input_format: Format) -> Tuple[bytes, Format]:
        backend = self._backends[backend_for(input_format)]
        return await backend.generate(data, variant, input_format)


def default_generator(video: VideoBackend | None = None) -> DispatchingGenerator:
    return DispatchingGenerator(ImageBackend(), video or VideoBackend())


__all__ = ["BackendKind", "VariantGenerator", "DispatchingGenerator", "backend_for", "default_generator"]
