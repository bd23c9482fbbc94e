"""Media service: stores uploads in object storage and tracks their records.

This is the only place that combines the storage adapter with the upload
repository. It handles:
- Storage key generation (``uploads/<uuid><ext>``)
- Optional image compression before storing
- Listing, lookup and soft deletion of upload records
- Opening stored files for public delivery
"""

from __future__ import annotations

import asyncio
import functools
import logging
import posixpath
import uuid
from dataclasses import dataclass

from app.adapters.storage.base import ObjectStorageAdapter, ObjectStream
from app.adapters.uploads.base import AbstractUploadRepository, UploadRecord, UploadVisibility
from app.core.errors import ForbiddenAppError, NotFoundAppError, ValidationAppError
from app.utils.image_processor import ImageProcessorOptions, process_image

logger = logging.getLogger(__name__)

DEFAULT_LIST_TAKE = 100
MAX_LIST_TAKE = 200
MAX_EXTENSION_LENGTH = 10
DEFAULT_CONTENT_TYPE = "application/octet-stream"
UPLOAD_KEY_PREFIX = "uploads"


def build_storage_key(filename: str | None, *, mime_type: str | None = None) -> str:
    """Build a collision-free storage key for an uploaded file.

    The extension of the original name is kept (lower-cased) when it is at most
    ten characters long; otherwise ``.bin`` is used. WebP output always gets
    ``.webp``.

    Examples:
        >>> build_storage_key("Photo.JPG").endswith(".jpg")
        True
        >>> build_storage_key("README").endswith(".bin")
        True
    """
    if mime_type == "image/webp":
        ext = ".webp"
    else:
        ext = posixpath.splitext(filename or "")[1].lower() or ".bin"
        if len(ext) > MAX_EXTENSION_LENGTH:
            ext = ".bin"
    return f"{UPLOAD_KEY_PREFIX}/{uuid.uuid4()}{ext}"


def clamp_take(take: int | None) -> int:
    if take is None:
        return DEFAULT_LIST_TAKE
    return max(1, min(take, MAX_LIST_TAKE))


@dataclass(frozen=True)
class StoredFile:
    """A public upload opened for reading."""

    record: UploadRecord
    content: ObjectStream

    @property
    def content_type(self) -> str:
        return self.content.content_type or self.record.mime_type or DEFAULT_CONTENT_TYPE


class MediaService:
    """Use cases for uploaded media."""

    def __init__(
        self,
        *,
        storage: ObjectStorageAdapter,
        uploads: AbstractUploadRepository,
        image_options: ImageProcessorOptions | None = None,
    ) -> None:
        self.storage = storage
        self.uploads = uploads
        self.image_options = image_options or ImageProcessorOptions(enabled=False)

    async def _run_blocking(self, func, /, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    def list_uploads(
        self,
        *,
        search: str | None = None,
        type: str | None = None,
        take: int | None = None,
    ) -> list[UploadRecord]:
        return self.uploads.list(search=search or None, type=type or None, take=clamp_take(take))

    def get_live_upload(self, upload_id: str) -> UploadRecord:
        """Return a record that exists and is not soft-deleted.

        Raises:
            NotFoundAppError: If the record is missing or deleted.
        """
        record = self.uploads.get_by_id(upload_id)
        if record is None or record.is_deleted:
            raise NotFoundAppError(
                code="upload_not_found",
                message="Upload not found",
                details={"context": {"upload_id": upload_id}},
            )
        return record

    async def store_upload(
        self,
        *,
        filename: str | None,
        content_type: str | None,
        data: bytes,
        visibility: UploadVisibility = UploadVisibility.PUBLIC,
    ) -> UploadRecord:
        """Write an uploaded file to storage and record it.

        Args:
            filename: Original client filename.
            content_type: Client-declared MIME type.
            data: File bytes (already size-limited by the caller).
            visibility: Who may fetch the file later.

        Returns:
            The created UploadRecord.

        Raises:
            ValidationAppError: If the file is empty.
            StorageAppError: If the provider write fails.
        """
        if not data:
            raise ValidationAppError(code="empty_file", message="Uploaded file is empty")

        mime_type = content_type or DEFAULT_CONTENT_TYPE
        processed = await self._run_blocking(process_image, data, mime_type, self.image_options)
        storage_key = build_storage_key(filename, mime_type=processed.mime_type)

        result = await self._run_blocking(
            self.storage.put_object,
            storage_key,
            processed.mime_type,
            processed.data,
        )

        record = self.uploads.create(
            original_name=filename or posixpath.basename(storage_key),
            storage_key=storage_key,
            mime_type=processed.mime_type,
            size=result.size,
            visibility=visibility,
        )
        logger.info(
            "media.upload_stored",
            extra={
                "upload_id": record.id,
                "provider": self.storage.provider,
                "mime_type": record.mime_type,
                "size": record.size,
                "compressed": processed.mime_type != mime_type,
            },
        )
        return record

    def soft_delete_upload(self, upload_id: str) -> UploadRecord:
        """Soft-delete a record; the stored object is kept.

        Raises:
            NotFoundAppError: If the record is missing or already deleted.
        """
        self.get_live_upload(upload_id)
        record = self.uploads.soft_delete(upload_id)
        logger.info("media.upload_deleted", extra={"upload_id": upload_id})
        return record

    async def open_public_file(self, upload_id: str) -> StoredFile:
        """Open the stored bytes of a public upload.

        Raises:
            NotFoundAppError: Record missing or deleted.
            ForbiddenAppError: Upload is not public.
            StorageNotFoundError: Record exists but the object is gone.
            StorageAppError: Provider read failure.
        """
        record = self.get_live_upload(upload_id)
        if record.visibility is not UploadVisibility.PUBLIC:
            raise ForbiddenAppError(
                code="upload_not_public",
                message="Access to this file is forbidden",
            )
        content = await self._run_blocking(self.storage.get_object_stream, record.storage_key)
        return StoredFile(record=record, content=content)
