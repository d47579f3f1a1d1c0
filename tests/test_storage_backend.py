from __future__ import annotations

import asyncio

import pytest
from botocore.stub import Stubber

from mediakit.core.config import get_settings
from mediakit.core.errors import StorageUnavailable
from mediakit.core.storage import CACHE_CONTROL, LocalStorage, S3Storage, StoredObject, get_storage, object_key
from mediakit.media.formats import Variant


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")


def test_default_backend_is_local():
    storage = get_storage(get_settings())
    assert isinstance(storage, LocalStorage)


def test_selecting_s3_requires_bucket(monkeypatch):
    monkeypatch.setenv("MEDIAKIT_STORAGE_BACKEND", "s3")
    get_settings.cache_clear()
    with pytest.raises(ValueError):
        get_storage(get_settings())


def test_selecting_s3_returns_s3_storage(monkeypatch):
    monkeypatch.setenv("MEDIAKIT_STORAGE_BACKEND", "s3")
    monkeypatch.delenv("MEDIAKIT_S3_BUCKET", raising=False)
    monkeypatch.setenv("MEDIAKIT_BUCKET", "media-bucket")
    get_settings.cache_clear()
    storage = get_storage(get_settings())
    assert isinstance(storage, S3Storage)
    assert storage.bucket == "media-bucket"
    assert storage.external_url == "https://cdn.test"


@pytest.mark.parametrize(
    "variant, expected",
    [
        (Variant.original, "images/originals/abc"),
        (Variant.thumbnail, "images/thumbnails/abc"),
        (Variant.avatar, "images/avatars/abc"),
    ],
)
def test_object_key_partitions_by_variant(variant, expected):
    assert object_key(variant, "abc") == expected


@pytest.mark.parametrize("asset_id", ["", "..", "a/b", "."])
def test_object_key_rejects_path_like_ids(asset_id):
    with pytest.raises(ValueError):
        object_key(Variant.original, asset_id)


def test_local_upload_then_get(storage):
    url = asyncio.run(storage.upload("abc", Variant.thumbnail, "image/webp", b"payload"))

    assert url == "https://cdn.test/images/thumbnails/abc"
    found = asyncio.run(storage.get(Variant.thumbnail, "abc"))
    assert found == StoredObject(url=url, content_type="image/webp")


def test_local_get_never_uploaded_is_absent(storage):
    assert asyncio.run(storage.get(Variant.original, "missing")) is None


def test_local_upload_overwrites_same_key(storage):
    asyncio.run(storage.upload("abc", Variant.original, "image/png", b"first"))
    asyncio.run(storage.upload("abc", Variant.original, "image/jpeg", b"second"))

    found = asyncio.run(storage.get(Variant.original, "abc"))
    assert found is not None
    assert found.content_type == "image/jpeg"
    assert (storage.base_path / "images/originals/abc").read_bytes() == b"second"


def test_local_variants_do_not_collide(storage):
    asyncio.run(storage.upload("abc", Variant.original, "image/png", b"original"))
    assert asyncio.run(storage.get(Variant.avatar, "abc")) is None


def test_local_malformed_metadata_is_an_error(storage):
    asyncio.run(storage.upload("abc", Variant.original, "image/png", b"payload"))
    (storage.base_path / "images/originals/abc.meta.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageUnavailable):
        asyncio.run(storage.get(Variant.original, "abc"))


def test_local_interrupted_upload_reads_as_absent(storage, monkeypatch):
    real_replace = LocalStorage._replace

    def _replace(target, payload):
        if not target.name.endswith(".meta.json"):
            raise OSError("disk full")
        real_replace(target, payload)

    monkeypatch.setattr(LocalStorage, "_replace", staticmethod(_replace))
    with pytest.raises(StorageUnavailable):
        asyncio.run(storage.upload("abc", Variant.avatar, "image/webp", b"payload"))
    monkeypatch.setattr(LocalStorage, "_replace", staticmethod(real_replace))

    assert (storage.base_path / "images/avatars/abc.meta.json").exists()
    assert asyncio.run(storage.get(Variant.avatar, "abc")) is None

    asyncio.run(storage.upload("abc", Variant.avatar, "image/webp", b"payload"))
    found = asyncio.run(storage.get(Variant.avatar, "abc"))
    assert found is not None and found.content_type == "image/webp"


def test_local_upload_leaves_no_staging_files(storage):
    asyncio.run(storage.upload("abc", Variant.thumbnail, "image/webp", b"payload"))

    names = sorted(entry.name for entry in (storage.base_path / "images/thumbnails").iterdir())
    assert names == ["abc", "abc.meta.json"]


def test_local_without_external_url_returns_file_uri(tmp_path):
    local = LocalStorage(tmp_path / "plain")
    url = asyncio.run(local.upload("abc", Variant.avatar, "image/webp", b"x"))
    assert url.startswith("file://")
    assert url.endswith("/images/avatars/abc")


def _stubbed_s3() -> tuple[S3Storage, Stubber]:
    storage = S3Storage("media-bucket", external_url="https://cdn.test/", region="us-east-1")
    return storage, Stubber(storage.client)


def test_s3_upload_sets_cache_directive():
    storage, stubber = _stubbed_s3()
    stubber.add_response(
        "put_object",
        {"ETag": '"etag"'},
        {
            "Bucket": "media-bucket",
            "Key": "images/originals/abc",
            "Body": b"payload",
            "ContentType": "image/jpeg",
            "CacheControl": CACHE_CONTROL,
        },
    )
    with stubber:
        url = asyncio.run(storage.upload("abc", Variant.original, "image/jpeg", b"payload"))
    assert url == "https://cdn.test/images/originals/abc"
    stubber.assert_no_pending_responses()


def test_s3_upload_failure_is_wrapped():
    storage, stubber = _stubbed_s3()
    stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
    with stubber, pytest.raises(StorageUnavailable):
        asyncio.run(storage.upload("abc", Variant.original, "image/jpeg", b"payload"))


def test_s3_get_present():
    storage, stubber = _stubbed_s3()
    stubber.add_response(
        "head_object",
        {"ContentType": "image/webp", "ContentLength": 7},
        {"Bucket": "media-bucket", "Key": "images/avatars/abc"},
    )
    with stubber:
        found = asyncio.run(storage.get(Variant.avatar, "abc"))
    assert found == StoredObject(url="https://cdn.test/images/avatars/abc", content_type="image/webp")


def test_s3_get_not_found_is_absent():
    storage, stubber = _stubbed_s3()
    stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
    with stubber:
        assert asyncio.run(storage.get(Variant.avatar, "abc")) is None


def test_s3_get_other_errors_are_reported():
    storage, stubber = _stubbed_s3()
    stubber.add_client_error("head_object", service_error_code="403", http_status_code=403)
    with stubber, pytest.raises(StorageUnavailable):
        asyncio.run(storage.get(Variant.avatar, "abc"))


def test_s3_get_without_content_type_is_malformed():
    storage, stubber = _stubbed_s3()
    stubber.add_response("head_object", {"ContentLength": 7})
    with stubber, pytest.raises(StorageUnavailable):
        asyncio.run(storage.get(Variant.avatar, "abc"))
