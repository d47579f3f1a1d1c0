from __future__ import annotations

import asyncio
import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from mediakit.media.formats import Variant

from .config import Settings
from .errors import StorageUnavailable

CACHE_CONTROL = "max-age=31536000"  # 1yr

_PARTITIONS: dict[Variant, str] = {
    Variant.original: "images/originals",
    Variant.thumbnail: "images/thumbnails",
    Variant.avatar: "images/avatars",
}

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


@dataclass(slots=True, frozen=True)
class StoredObject:
    url: str
    content_type: str


def object_key(variant: Variant, asset_id: str) -> str:
    if not asset_id or "/" in asset_id or asset_id in {".", ".."}:
        raise ValueError(f"invalid asset id: {asset_id!r}")
    return f"{_PARTITIONS[variant]}/{asset_id}"


class Storage(ABC):
    @abstractmethod
    async def upload(self, asset_id: str, variant: Variant, content_type: str, payload: bytes) -> str: ...

    @abstractmethod
    async def get(self, variant: Variant, asset_id: str) -> Optional[StoredObject]: ...


class LocalStorage(Storage):
    """Filesystem-backed storage abstraction suitable for development.

    Each object is written next to a ``.meta.json`` file holding the headers an
    object store would keep (content type, cache directive).
    """

    def __init__(self, base_path: Path, external_url: str | None = None):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.external_url = external_url.rstrip("/") if external_url else None

    def _resolve(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if self.base_path not in path.parents:
            raise ValueError(f"key escapes storage root: {key}")
        return path

    @staticmethod
    def _meta_path(path: Path) -> Path:
        return path.with_name(f"{path.name}.meta.json")

    def _url_for(self, key: str, path: Path) -> str:
        if self.external_url:
            return f"{self.external_url}/{key}"
        return path.as_uri()

    async def upload(self, asset_id: str, variant: Variant, content_type: str, payload: bytes) -> str:
        key = object_key(variant, asset_id)
        try:
            return await asyncio.to_thread(self._write, key, content_type, payload)
        except OSError as exc:
            raise StorageUnavailable(f"could not upload {key}: {exc}") from exc

    async def get(self, variant: Variant, asset_id: str) -> Optional[StoredObject]:
        key = object_key(variant, asset_id)
        try:
            return await asyncio.to_thread(self._head, key)
        except OSError as exc:
            raise StorageUnavailable(f"could not check if {key} exists: {exc}") from exc

    def _write(self, key: str, content_type: str, payload: bytes) -> str:
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Sidecar first, object last: `_head` keys presence off the object file.
        meta = {"content_type": content_type, "cache_control": CACHE_CONTROL}
        self._replace(self._meta_path(path), json.dumps(meta).encode("utf-8"))
        self._replace(path, payload)
        return self._url_for(key, path)

    @staticmethod
    def _replace(target: Path, payload: bytes) -> None:
        staging = target.with_name(f".{target.name}.{uuid4().hex}.tmp")
        try:
            staging.write_bytes(payload)
            os.replace(staging, target)
        finally:
            staging.unlink(missing_ok=True)

    def _head(self, key: str) -> Optional[StoredObject]:
        path = self._resolve(key)
        if not path.is_file():
            return None
        try:
            meta = json.loads(self._meta_path(path).read_text(encoding="utf-8"))
            content_type = meta["content_type"]
        except (FileNotFoundError, ValueError, KeyError, TypeError) as exc:
            raise StorageUnavailable(f"malformed metadata for {key}: {exc}") from exc
        return StoredObject(url=self._url_for(key, path), content_type=str(content_type))


class S3Storage(Storage):
    """S3-compatible object storage through boto3; blocking calls run in the worker pool."""

    def __init__(
        self,
        bucket: str,
        *,
        external_url: str | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.client = client or boto3.session.Session(region_name=region).client(
            "s3",
            endpoint_url=endpoint_url,
            config=Config(signature_version="s3v4"),
        )
        base = external_url or endpoint_url or f"https://{bucket}.s3.amazonaws.com"
        self.external_url = base.rstrip("/")

    def _url_for(self, key: str) -> str:
        return f"{self.external_url}/{key}"

    async def upload(self, asset_id: str, variant: Variant, content_type: str, payload: bytes) -> str:
        key = object_key(variant, asset_id)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailable(f"could not upload {key}: {exc}") from exc
        return self._url_for(key)

    async def get(self, variant: Variant, asset_id: str) -> Optional[StoredObject]:
        key = object_key(variant, asset_id)
        try:
            head = await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return None
            raise StorageUnavailable(f"could not check if {key} exists: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailable(f"could not check if {key} exists: {exc}") from exc

        content_type = head.get("ContentType")
        if not content_type:
            raise StorageUnavailable(f"object {key} has no content type")
        return StoredObject(url=self._url_for(key), content_type=content_type)


def get_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "local":
        return LocalStorage(base_path=settings.local_storage_base_path, external_url=settings.storage_external_url)
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("MEDIAKIT_S3_BUCKET is required for the s3 storage backend")
        return S3Storage(
            settings.s3_bucket,
            external_url=settings.storage_external_url,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
        )
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "CACHE_CONTROL",
    "Storage",
    "StoredObject",
    "LocalStorage",
    "S3Storage",
    "object_key",
    "get_storage",
]
