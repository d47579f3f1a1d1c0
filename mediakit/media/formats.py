"""Content sniffing for the closed set of media formats we ingest."""

from __future__ import annotations

import enum

from mediakit.core.errors import FormatIndeterminate, FormatUnsupported


class Format(str, enum.Enum):
    jpeg = "jpeg"
    png = "png"
    webp = "webp"
    gif = "gif"
    mp4 = "mp4"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


class Variant(str, enum.Enum):
    original = "original"
    thumbnail = "thumbnail"
    avatar = "avatar"

    @property
    def bounding_box(self) -> tuple[int, int]:
        return _BOUNDING_BOXES[self]


_CONTENT_TYPES: dict[Format, str] = {
    Format.jpeg: "image/jpeg",
    Format.png: "image/png",
    Format.webp: "image/webp",
    Format.gif: "image/gif",
    Format.mp4: "video/mp4",
}

_EXTENSIONS: dict[Format, str] = {
    Format.jpeg: "jpg",
    Format.png: "png",
    Format.webp: "webp",
    Format.gif: "gif",
    Format.mp4: "mp4",
}

_BOUNDING_BOXES: dict[Variant, tuple[int, int]] = {
    Variant.original: (800, 800),
    Variant.thumbnail: (300, 300),
    Variant.avatar: (125, 125),
}

# ISO base media brands that decode as plain MP4.
_MP4_BRANDS = frozenset(
    {
        b"avc1",
        b"dash",
        b"iso2",
        b"iso3",
        b"iso4",
        b"iso5",
        b"iso6",
        b"isom",
        b"mmp4",
        b"mp41",
        b"mp42",
        b"mp4v",
        b"mp71",
        b"MSNV",
        b"NDAS",
        b"NDSC",
        b"NDSH",
        b"NDSM",
        b"NDSP",
        b"NDSS",
        b"NDXC",
        b"NDXH",
        b"NDXM",
        b"NDXP",
        b"NDXS",
        b"F4V ",
        b"F4P ",
    }
)

# Recognised media we deliberately reject.
_FOREIGN_SIGNATURES: tuple[tuple[int, bytes], ...] = (
    (0, b"BM"),
    (0, b"II*\x00"),
    (0, b"MM\x00*"),
    (0, b"\x00\x00\x01\x00"),
    (0, b"%PDF"),
    (0, b"\x1aE\xdf\xa3"),
    (0, b"OggS"),
    (0, b"fLaC"),
    (0, b"ID3"),
    (0, b"PK\x03\x04"),
    (0, b"\x00\x00\x00\x0cjP  "),
)


def infer_format(data: bytes) -> Format:
    """Return the :class:`Format` of ``data`` judged from its leading bytes only.

    Raises:
        FormatUnsupported: the bytes are a media kind outside the supported set.
        FormatIndeterminate: no known signature matches.
    """
    head = bytes(data[:32])

    if head.startswith(b"\xff\xd8\xff"):
        return Format.jpeg
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return Format.png
    if head.startswith((b"GIF87a", b"GIF89a")):
        return Format.gif
    if head[:4] == b"RIFF" and len(head) >= 12:
        if head[8:12] == b"WEBP":
            return Format.webp
        raise FormatUnsupported(f"unsupported RIFF payload: {head[8:12]!r}")
    if len(head) >= 12 and head[4:8] == b"ftyp":
        brand = head[8:12]
        if brand in _MP4_BRANDS:
            return Format.mp4
        raise FormatUnsupported(f"unsupported ISO media brand: {brand!r}")

    for offset, signature in _FOREIGN_SIGNATURES:
        if head[offset:].startswith(signature):
            raise FormatUnsupported(f"unsupported content signature: {signature!r}")

    raise FormatIndeterminate("could not determine format from content")


__all__ = ["Format", "Variant", "infer_format"]
