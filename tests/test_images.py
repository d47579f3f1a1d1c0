from __future__ import annotations

import asyncio
import random

import pytest

from mediakit.core.errors import DecodeFailed
from mediakit.media.formats import Format, Variant, infer_format
from mediakit.media.images import ImageBackend, fit_within, render_variant
from tests.conftest import decode_size, encode_image


@pytest.mark.parametrize(
    "size, box, expected",
    [
        ((1000, 500), (300, 300), (300, 150)),
        ((500, 1000), (300, 300), (150, 300)),
        ((100, 50), (300, 300), (100, 50)),
        ((300, 300), (300, 300), (300, 300)),
        ((1600, 1200), (800, 800), (800, 600)),
        ((2000, 10), (300, 300), (300, 2)),
        ((250, 125), (125, 125), (125, 62)),
    ],
)
def test_fit_within(size, box, expected):
    assert fit_within(*size, box) == expected


def test_fit_within_never_exceeds_box_or_source():
    rng = random.Random(7)
    for _ in range(500):
        width, height = rng.randint(1, 4000), rng.randint(1, 4000)
        for variant in Variant:
            box_width, box_height = variant.bounding_box
            new_width, new_height = fit_within(width, height, variant.bounding_box)
            assert 1 <= new_width <= min(width, box_width)
            assert 1 <= new_height <= min(height, box_height)
            if new_width > 1 and new_height > 1:
                assert abs(new_width / new_height - width / height) <= (width / height) * (2 / min(new_width, new_height))


def test_render_jpeg_thumbnail_outputs_webp():
    payload = encode_image(1000, 500, ".jpg")

    derived, output_format = render_variant(payload, Variant.thumbnail, Format.jpeg)

    assert output_format is Format.webp
    assert infer_format(derived) is Format.webp
    assert decode_size(derived) == (300, 150)


def test_render_small_png_is_not_upscaled():
    payload = encode_image(40, 20, ".png")

    derived, output_format = render_variant(payload, Variant.original, Format.png)

    assert output_format is Format.webp
    assert decode_size(derived) == (40, 20)


def test_render_png_with_alpha_channel():
    payload = encode_image(400, 200, ".png", channels=4)

    derived, _ = render_variant(payload, Variant.avatar, Format.png)

    assert decode_size(derived) == (125, 62)


def test_render_webp_input():
    payload = encode_image(900, 900, ".webp")

    derived, output_format = render_variant(payload, Variant.original, Format.webp)

    assert output_format is Format.webp
    assert decode_size(derived) == (800, 800)


def test_render_corrupt_image_raises_decode_failed():
    payload = b"\xff\xd8\xff\xe0" + b"not really a jpeg" * 4
    with pytest.raises(DecodeFailed):
        render_variant(payload, Variant.thumbnail, Format.jpeg)


def test_render_rejects_video_formats():
    with pytest.raises(DecodeFailed):
        render_variant(b"GIF89a", Variant.thumbnail, Format.gif)


def test_image_backend_generate_runs_off_loop():
    backend = ImageBackend()
    payload = encode_image(640, 480, ".jpg")

    derived, output_format = asyncio.run(backend.generate(payload, Variant.thumbnail, Format.jpeg))

    assert output_format is Format.webp
    assert decode_size(derived) == (300, 225)
