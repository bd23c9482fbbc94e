"""Object storage adapter interface.

Routes and services depend on this abstraction only, so the backing provider
(local disk, memory, S3/R2, GCS) can be chosen by configuration at startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterator

ObjectBody = bytes | BinaryIO


@dataclass(frozen=True)
class PutObjectResult:
    """Result of a put operation.

    Attributes:
        size: Number of bytes written.
    """

    size: int


@dataclass(frozen=True)
class ObjectStream:
    """Readable object returned by ``get_object_stream``.

    Attributes:
        stream: Binary file-like object positioned at the start of the body.
            The caller owns it and must close it.
        content_type: MIME type when the provider records one.
        content_length: Body size in bytes when the provider reports one.
    """

    stream: BinaryIO
    content_type: str | None = None
    content_length: int | None = None


class ObjectStorageAdapter(ABC):
    """Interface for object storage providers.

    All operations validate the key before touching the filesystem or network.
    Writes are last-writer-wins; there is no versioning and no locking.
    """

    provider: str

    @abstractmethod
    def put_object(self, key: str, content_type: str, body: ObjectBody) -> PutObjectResult:
        """Store ``body`` under ``key``, overwriting any existing object.

        Args:
            key: Object key (e.g. ``uploads/<uuid>.jpg``).
            content_type: MIME type recorded with the object.
            body: Raw bytes or a readable binary stream.

        Returns:
            PutObjectResult with the stored size.

        Raises:
            ValidationAppError: If the key is invalid.
            StorageAppError: ``storage_write_error`` on provider failure.
        """
        raise NotImplementedError

    @abstractmethod
    def get_object_stream(self, key: str) -> ObjectStream:
        """Open the object stored under ``key`` for reading.

        Raises:
            ValidationAppError: If the key is invalid.
            StorageNotFoundError: If no object exists under ``key``.
            StorageAppError: ``storage_read_error`` on other failures.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_object(self, key: str) -> None:
        """Delete the object under ``key``. Missing keys are not an error.

        Raises:
            ValidationAppError: If the key is invalid.
            StorageAppError: ``storage_delete_error`` on provider failure.
        """
        raise NotImplementedError


def read_body(body: ObjectBody) -> bytes:
    """Materialize a put body into bytes."""
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    data = body.read()
    return data if isinstance(data, bytes) else bytes(data)


def iter_stream(stream: BinaryIO, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yield ``stream`` in chunks and close it once exhausted (or abandoned)."""
    try:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        stream.close()
