"""In-memory storage provider.

Notes:
- Per-process only: objects vanish when the process exits.
- Intended for tests and local experiments (``STORAGE_PROVIDER=memory``).
"""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass

from app.adapters.storage.base import (
    ObjectBody,
    ObjectStorageAdapter,
    ObjectStream,
    PutObjectResult,
    read_body,
)
from app.adapters.storage.keys import validate_key
from app.core.errors import StorageNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _StoredObject:
    data: bytes
    content_type: str


class InMemoryStorageAdapter(ObjectStorageAdapter):
    """Storage adapter keeping objects in a dict."""

    provider = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._objects: dict[str, _StoredObject] = {}

    def put_object(self, key: str, content_type: str, body: ObjectBody) -> PutObjectResult:
        validate_key(key)
        data = read_body(body)
        with self._lock:
            self._objects[key] = _StoredObject(data=data, content_type=content_type)
        logger.debug("storage.put_object", extra={"provider": self.provider, "size": len(data)})
        return PutObjectResult(size=len(data))

    def get_object_stream(self, key: str) -> ObjectStream:
        validate_key(key)
        with self._lock:
            obj = self._objects.get(key)
        if obj is None:
            raise StorageNotFoundError(
                code="not_found",
                message=f"Object not found: {key}",
                details={"key": key, "provider": self.provider},
            )
        return ObjectStream(
            stream=io.BytesIO(obj.data),
            content_type=obj.content_type,
            content_length=len(obj.data),
        )

    def delete_object(self, key: str) -> None:
        validate_key(key)
        with self._lock:
            self._objects.pop(key, None)

    # Test helpers

    def clear(self) -> None:
        """Remove all stored objects."""
        with self._lock:
            self._objects.clear()

    def get_bytes(self, key: str) -> bytes | None:
        """Return the raw bytes stored under ``key`` (None if absent)."""
        obj = self._objects.get(key)
        return obj.data if obj else None

    @property
    def size(self) -> int:
        """Number of stored objects."""
        return len(self._objects)

    def has(self, key: str) -> bool:
        return key in self._objects
