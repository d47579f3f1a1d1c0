"""Format detection and variant generation backends."""

from mediakit.media.formats import Format, Variant, infer_format
from mediakit.media.generator import DispatchingGenerator, VariantGenerator, backend_for, default_generator
from mediakit.media.images import ImageBackend
from mediakit.media.video import VideoBackend, build_transcode_command

__all__ = [
    "Format",
    "Variant",
    "infer_format",
    "DispatchingGenerator",
    "VariantGenerator",
    "backend_for",
    "default_generator",
    "ImageBackend",
    "VideoBackend",
    "build_transcode_command",
]
