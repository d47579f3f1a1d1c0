from __future__ import annotations

import asyncio

import pytest

from mediakit.media.formats import Format, Variant
from mediakit.media.generator import DispatchingGenerator, backend_for


class RecordingBackend:
    def __init__(self, name: str, output: Format):
        self.name = name
        self.output = output
        self.calls: list[tuple[bytes, Variant, Format]] = []

    async def generate(self, data: bytes, variant: Variant, input_format: Format):
        self.calls.append((data, variant, input_format))
        return self.name.encode(), self.output


@pytest.mark.parametrize(
    "fmt, expected",
    [
        (Format.jpeg, "image"),
        (Format.png, "image"),
        (Format.webp, "image"),
        (Format.gif, "video"),
        (Format.mp4, "video"),
    ],
)
def test_backend_for_is_total(fmt, expected):
    assert backend_for(fmt) == expected


def test_every_format_has_a_backend():
    assert {backend_for(fmt) for fmt in Format} == {"image", "video"}


@pytest.mark.parametrize("fmt", list(Format))
def test_dispatching_generator_routes_by_format(fmt):
    images = RecordingBackend("image", Format.webp)
    video = RecordingBackend("video", Format.mp4)
    generator = DispatchingGenerator(images, video)

    payload, output = asyncio.run(generator.generate(b"data", Variant.thumbnail, fmt))

    expected = backend_for(fmt)
    assert payload == expected.encode()
    assert output is (Format.webp if expected == "image" else Format.mp4)
    assert len(images.calls) == (1 if expected == "image" else 0)
    assert len(video.calls) == (1 if expected == "video" else 0)
