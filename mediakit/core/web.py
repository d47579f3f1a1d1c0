from __future__ import annotations

import json
from typing import Any

import httpx

from .errors import BodyTooLarge, FetchFailed, MetadataImageMissing, MetadataParseFailed
from .logging import get_logger

MAX_BODY_SIZE = 3 * 1024 * 1024
MAX_REQUEST_DURATION_SECONDS = 30.0

NFT_IMAGE_FIELDS = ("image", "image_url", "image_data")

_GATEWAY_SCHEMES = ("ipfs", "ipns")


def rewrite_gateway_url(url: str, gateway_url: str) -> str:
    """Point ``ipfs://`` and ``ipns://`` references at an HTTP gateway."""
    for scheme in _GATEWAY_SCHEMES:
        prefix = f"{scheme}://"
        if url.startswith(prefix):
            path = url[len(prefix) :].lstrip("/")
            return f"{gateway_url.rstrip('/')}/{scheme}/{path}"
    return url


def select_nft_image(metadata: Any) -> str:
    """Pick the image reference from NFT metadata: ``image``, then ``image_url``, then ``image_data``."""
    if not isinstance(metadata, dict):
        raise MetadataParseFailed("nft metadata is not a JSON object")
    for field in NFT_IMAGE_FIELDS:
        value = metadata.get(field)
        if value is not None:
            if not isinstance(value, str):
                raise MetadataParseFailed(f"nft metadata field {field!r} is not a string")
            return value
    raise MetadataImageMissing("could not get nft image uri")


class WebGateway:
    """Outbound HTTP for avatar sources.

    Redirects are never followed, every request has a fixed timeout and bodies are
    streamed against a hard size cap.
    """

    def __init__(
        self,
        *,
        ipfs_gateway_url: str,
        max_body_bytes: int = MAX_BODY_SIZE,
        timeout_seconds: float = MAX_REQUEST_DURATION_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.ipfs_gateway_url = ipfs_gateway_url
        self.max_body_bytes = max_body_bytes
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            follow_redirects=False,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.logger = get_logger(component="web_gateway")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch(self, url: str) -> bytes:
        target = rewrite_gateway_url(url, self.ipfs_gateway_url)
        self.logger.info("fetch_started", url=target)
        try:
            async with self.client.stream("GET", target) as response:
                if not response.is_success:
                    raise FetchFailed(f"invalid status for get {target}: {response.status_code}")
                return await self._read_limited(response)
        except httpx.HTTPError as exc:
            raise FetchFailed(f"could not get {target}: {exc}") from exc

    async def get_nft_image_url(self, url: str) -> str:
        self.logger.info("nft_metadata_requested", url=url)
        body = await self.fetch(url)
        try:
            metadata = json.loads(body)
        except ValueError as exc:
            raise MetadataParseFailed(f"could not parse nft metadata as json: {exc}") from exc
        return select_nft_image(metadata)

    async def get_image_data(self, url: str) -> bytes:
        self.logger.info("image_requested", url=url)
        return await self.fetch(url)

    async def _read_limited(self, response: httpx.Response) -> bytes:
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            if len(buffer) + len(chunk) > self.max_body_bytes:
                raise BodyTooLarge(self.max_body_bytes, len(buffer) + len(chunk))
            buffer.extend(chunk)
        return bytes(buffer)


__all__ = [
    "MAX_BODY_SIZE",
    "MAX_REQUEST_DURATION_SECONDS",
    "NFT_IMAGE_FIELDS",
    "WebGateway",
    "rewrite_gateway_url",
    "select_nft_image",
]
