"""Tests for media use cases: storing, listing, deleting and serving uploads."""

import asyncio
import re
from io import BytesIO
from unittest.mock import Mock

import pytest
from PIL import Image

from app.adapters.storage.in_memory import InMemoryStorageAdapter
from app.adapters.uploads.base import UploadVisibility
from app.adapters.uploads.in_memory import InMemoryUploadRepository
from app.core.errors import (
    ForbiddenAppError,
    NotFoundAppError,
    StorageAppError,
    StorageNotFoundError,
    ValidationAppError,
)
from app.services.media_service import MediaService, build_storage_key, clamp_take
from app.utils.image_processor import ImageProcessorOptions

UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


@pytest.fixture
def storage() -> InMemoryStorageAdapter:
    return InMemoryStorageAdapter()


@pytest.fixture
def service(storage) -> MediaService:
    return MediaService(storage=storage, uploads=InMemoryUploadRepository())


@pytest.mark.parametrize(
    ("filename", "mime_type", "ext"),
    [
        ("Photo.JPG", None, ".jpg"),
        ("archive.tar.gz", None, ".gz"),
        ("README", None, ".bin"),
        (None, None, ".bin"),
        ("weird.averyveryverylongext", None, ".bin"),
        ("photo.png", "image/webp", ".webp"),
    ],
)
def test_build_storage_key(filename, mime_type, ext):
    key = build_storage_key(filename, mime_type=mime_type)

    assert re.fullmatch(rf"uploads/{UUID_RE}{re.escape(ext)}", key)


def test_storage_keys_do_not_collide():
    assert build_storage_key("a.jpg") != build_storage_key("a.jpg")


@pytest.mark.parametrize(("take", "expected"), [(None, 100), (0, 1), (-5, 1), (50, 50), (1000, 200)])
def test_clamp_take(take, expected):
    assert clamp_take(take) == expected


def test_store_upload_writes_object_and_record(service, storage):
    record = asyncio.run(
        service.store_upload(filename="notes.txt", content_type="text/plain", data=b"hello")
    )

    assert record.original_name == "notes.txt"
    assert record.mime_type == "text/plain"
    assert record.size == 5
    assert record.visibility is UploadVisibility.PUBLIC
    assert record.storage_key.endswith(".txt")
    assert storage.get_bytes(record.storage_key) == b"hello"


def test_store_upload_compresses_images_when_enabled(storage):
    service = MediaService(
        storage=storage,
        uploads=InMemoryUploadRepository(),
        image_options=ImageProcessorOptions(enabled=True, max_width=64),
    )
    buf = BytesIO()
    Image.new("RGB", (256, 128), color=(0, 128, 255)).save(buf, format="PNG")

    record = asyncio.run(
        service.store_upload(filename="banner.png", content_type="image/png", data=buf.getvalue())
    )

    assert record.mime_type == "image/webp"
    assert record.storage_key.endswith(".webp")
    assert record.original_name == "banner.png"
    with Image.open(BytesIO(storage.get_bytes(record.storage_key))) as img:
        assert img.format == "WEBP"
        assert img.width == 64


def test_store_upload_rejects_empty_files(service, storage):
    with pytest.raises(ValidationAppError) as exc_info:
        asyncio.run(service.store_upload(filename="a.txt", content_type="text/plain", data=b""))

    assert exc_info.value.code == "empty_file"
    assert storage.size == 0


def test_storage_failure_leaves_no_record():
    storage = Mock()
    storage.provider = "s3"
    storage.put_object.side_effect = StorageAppError(
        code="storage_write_error", message="put failed", retryable=True
    )
    uploads = InMemoryUploadRepository()
    service = MediaService(storage=storage, uploads=uploads)

    with pytest.raises(StorageAppError):
        asyncio.run(service.store_upload(filename="a.jpg", content_type="image/jpeg", data=b"x"))

    assert uploads.list() == []


def test_soft_delete_keeps_object(service, storage):
    record = asyncio.run(service.store_upload(filename="a.txt", content_type="text/plain", data=b"x"))

    service.soft_delete_upload(record.id)

    assert service.list_uploads() == []
    assert storage.has(record.storage_key)
    with pytest.raises(NotFoundAppError):
        service.soft_delete_upload(record.id)


def test_open_public_file_streams_content(service):
    record = asyncio.run(service.store_upload(filename="a.txt", content_type="text/plain", data=b"body"))

    stored = asyncio.run(service.open_public_file(record.id))

    assert stored.content_type == "text/plain"
    assert stored.content.stream.read() == b"body"


def test_open_private_file_is_forbidden(storage):
    uploads = InMemoryUploadRepository()
    service = MediaService(storage=storage, uploads=uploads)
    record = uploads.create(
        original_name="draft.jpg",
        storage_key="uploads/draft.jpg",
        mime_type="image/jpeg",
        size=1,
        visibility=UploadVisibility.PRIVATE,
    )

    with pytest.raises(ForbiddenAppError):
        asyncio.run(service.open_public_file(record.id))


def test_open_unknown_or_deleted_file_is_not_found(service):
    with pytest.raises(NotFoundAppError):
        asyncio.run(service.open_public_file("missing"))


def test_record_without_object_is_storage_not_found(service, storage):
    record = asyncio.run(service.store_upload(filename="a.txt", content_type="text/plain", data=b"x"))
    storage.delete_object(record.storage_key)

    with pytest.raises(StorageNotFoundError):
        asyncio.run(service.open_public_file(record.id))
