"""Error taxonomy shared by the gateways and services."""

from __future__ import annotations


class MediaError(Exception):
    """Base class for media pipeline failures."""


class FormatUnsupported(MediaError):
    """Raised when the content is a recognised media kind we do not handle."""


class FormatIndeterminate(MediaError):
    """Raised when no known signature matches the content."""


class DecodeFailed(MediaError):
    """Raised when the image codec cannot decode the input."""


class EncodeFailed(MediaError):
    """Raised when the image codec cannot encode the derived variant."""


class TranscodeSpawnFailed(MediaError):
    """Raised when the transcoder process cannot be launched."""


class TranscodeProcessFailed(MediaError):
    """Raised when the transcoder exits with a non-zero status."""

    def __init__(self, status: int, stderr: str | None = None) -> None:
        self.status = status
        self.stderr = stderr
        detail = f"transcoder exited with status {status}"
        if stderr:
            detail = f"{detail}: {stderr.strip()}"
        super().__init__(detail)


class StorageUnavailable(MediaError):
    """Raised for any object-store failure other than a missing object."""


class MetadataParseFailed(MediaError):
    """Raised when NFT metadata is not a JSON object."""


class MetadataImageMissing(MediaError):
    """Raised when NFT metadata carries none of the image fields."""


class BodyTooLarge(MediaError):
    """Raised as soon as a streamed response body exceeds the cap."""

    def __init__(self, limit: int, received: int) -> None:
        self.limit = limit
        self.received = received
        super().__init__(f"response body too large: {received} > {limit} bytes")


class FetchFailed(MediaError):
    """Raised when an outbound fetch fails or returns a non-success status."""


class SweepIOFailed(MediaError):
    """Raised when the scratch directory cannot be swept."""


__all__ = [
    "MediaError",
    "FormatUnsupported",
    "FormatIndeterminate",
    "DecodeFailed",
    "EncodeFailed",
    "TranscodeSpawnFailed",
    "TranscodeProcessFailed",
    "StorageUnavailable",
    "MetadataParseFailed",
    "MetadataImageMissing",
    "BodyTooLarge",
    "FetchFailed",
    "SweepIOFailed",
]
