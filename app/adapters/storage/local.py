"""Local filesystem storage provider."""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path

from app.adapters.storage.base import (
    ObjectBody,
    ObjectStorageAdapter,
    ObjectStream,
    PutObjectResult,
)
from app.adapters.storage.keys import validate_key
from app.core.errors import StorageAppError, StorageNotFoundError, ValidationAppError

logger = logging.getLogger(__name__)

# OS errors worth retrying: resource exhaustion and interrupted/busy I/O.
_TRANSIENT_ERRNOS = {
    errno.EAGAIN,
    errno.EBUSY,
    errno.EINTR,
    errno.EIO,
    errno.EMFILE,
    errno.ENFILE,
    errno.ETIMEDOUT,
}


def _is_transient(exc: OSError) -> bool:
    return exc.errno in _TRANSIENT_ERRNOS


class LocalStorageAdapter(ObjectStorageAdapter):
    """Store objects as files under a root directory.

    The root defaults to ``<cwd>/storage`` and is created lazily on first
    write. Content types are not persisted; readers fall back to the type
    recorded with the upload.
    """

    provider = "local"

    def __init__(self, root_dir: str | os.PathLike[str] | None = None) -> None:
        self.root_dir = Path(root_dir) if root_dir else Path.cwd() / "storage"
        self._root = self.root_dir.resolve()

    def resolve_path(self, key: str) -> Path:
        """Map a key to its file path, refusing anything outside the root.

        Raises:
            ValidationAppError: If the key is invalid or does not resolve below
                the root.
        """
        validate_key(key)
        path = (self._root / key).resolve()
        if self._root not in path.parents:
            raise ValidationAppError(
                code="invalid_storage_key",
                message="Invalid storage key (must resolve below storage root)",
                details={"key": key, "provider": self.provider},
            )
        return path

    def put_object(self, key: str, content_type: str, body: ObjectBody) -> PutObjectResult:
        path = self.resolve_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(body, (bytes, bytearray, memoryview)):
                path.write_bytes(body)
            else:
                with open(path, "wb") as out_f:
                    shutil.copyfileobj(body, out_f)
            size = path.stat().st_size
        except OSError as exc:
            logger.error(
                "storage.put_object_failed",
                extra={"provider": self.provider, "errno": exc.errno, "error_type": type(exc).__name__},
            )
            raise StorageAppError(
                code="storage_write_error",
                message=f"Failed to write object: {key}",
                details={"key": key, "provider": self.provider, "operation": "put_object"},
                retryable=_is_transient(exc),
            ) from exc

        logger.debug("storage.put_object", extra={"provider": self.provider, "size": size})
        return PutObjectResult(size=size)

    def get_object_stream(self, key: str) -> ObjectStream:
        path = self.resolve_path(key)
        try:
            stream = open(path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise StorageNotFoundError(
                code="not_found",
                message=f"Object not found: {key}",
                details={"key": key, "provider": self.provider},
            ) from exc
        except OSError as exc:
            raise StorageAppError(
                code="storage_read_error",
                message=f"Failed to read object: {key}",
                details={"key": key, "provider": self.provider, "operation": "get_object_stream"},
                retryable=_is_transient(exc),
            ) from exc

        size = os.fstat(stream.fileno()).st_size
        return ObjectStream(stream=stream, content_type=None, content_length=size)

    def delete_object(self, key: str) -> None:
        path = self.resolve_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageAppError(
                code="storage_delete_error",
                message=f"Failed to delete object: {key}",
                details={"key": key, "provider": self.provider, "operation": "delete_object"},
                retryable=_is_transient(exc),
            ) from exc
