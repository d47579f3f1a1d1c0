from __future__ import annotations

import asyncio
from typing import Tuple

import cv2  # type: ignore
import numpy as np

from mediakit.core.errors import DecodeFailed, EncodeFailed

from .formats import Format, Variant

WEBP_QUALITY = 90

IMAGE_FORMATS = frozenset({Format.jpeg, Format.png, Format.webp})


class ImageBackend:
    """Decode, shrink to the variant box and re-encode as WEBP in memory."""

    async def generate(self, data: bytes, variant: Variant, input_format: Format) -> Tuple[bytes, Format]:
        return await asyncio.to_thread(render_variant, data, variant, input_format)


def render_variant(data: bytes, variant: Variant, input_format: Format) -> Tuple[bytes, Format]:
    if input_format not in IMAGE_FORMATS:
        raise DecodeFailed(f"image backend cannot decode {input_format.value}")

    image = _decode(data)
    height, width = image.shape[:2]
    target_width, target_height = fit_within(width, height, variant.bounding_box)
    if (target_width, target_height) != (width, height):
        image = cv2.resize(image, (target_width, target_height), interpolation=cv2.INTER_AREA)

    return _encode_webp(image), Format.webp


def fit_within(width: int, height: int, box: Tuple[int, int]) -> Tuple[int, int]:
    """Scale ``(width, height)`` to fit ``box`` keeping aspect ratio, never enlarging."""
    if width <= 0 or height <= 0:
        raise DecodeFailed(f"invalid image dimensions {width}x{height}")
    box_width, box_height = box
    scale = min(box_width / width, box_height / height, 1.0)
    if scale >= 1.0:
        return width, height
    new_width = min(box_width, max(1, round(width * scale)))
    new_height = min(box_height, max(1, round(height * scale)))
    return new_width, new_height


def _decode(data: bytes) -> np.ndarray:
    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error as exc:
        raise DecodeFailed(f"could not load image: {exc}") from exc
    if image is None or image.size == 0:
        raise DecodeFailed("could not load image")
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    return image


def _encode_webp(image: np.ndarray) -> bytes:
    try:
        ok, encoded = cv2.imencode(".webp", image, [cv2.IMWRITE_WEBP_QUALITY, WEBP_QUALITY])
    except cv2.error as exc:
        raise EncodeFailed(f"could not write image: {exc}") from exc
    if not ok:
        raise EncodeFailed("could not write image")
    return encoded.tobytes()


__all__ = ["ImageBackend", "IMAGE_FORMATS", "fit_within", "render_variant"]
