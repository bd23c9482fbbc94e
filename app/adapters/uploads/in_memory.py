"""In-memory upload record repository.

Notes:
- Per-process only: records are lost on restart while the objects they point
  to survive in the storage provider.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable

from app.adapters.uploads.base import AbstractUploadRepository, UploadRecord, UploadVisibility


class InMemoryUploadRepository(AbstractUploadRepository):
    """Upload repository backed by a dict keyed by upload id."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()
        self._records: dict[str, UploadRecord] = {}

    def list(self, *, search: str | None = None, type: str | None = None, take: int = 100) -> list[UploadRecord]:
        needle = (search or "").lower()
        with self._lock:
            records = [
                r
                for r in self._records.values()
                if not r.is_deleted
                and (not needle or needle in r.original_name.lower())
                and (not type or r.mime_type.startswith(type))
            ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:take]

    def get_by_id(self, upload_id: str) -> UploadRecord | None:
        with self._lock:
            return self._records.get(upload_id)

    def create(
        self,
        *,
        original_name: str,
        storage_key: str,
        mime_type: str,
        size: int,
        visibility: UploadVisibility,
    ) -> UploadRecord:
        record = UploadRecord(
            id=uuid.uuid4().hex,
            original_name=original_name,
            storage_key=storage_key,
            mime_type=mime_type,
            size=size,
            visibility=visibility,
            created_at=self._clock(),
        )
        with self._lock:
            self._records[record.id] = record
        return record

    def soft_delete(self, upload_id: str) -> UploadRecord:
        with self._lock:
            record = self._records[upload_id]
            record.deleted_at = self._clock()
            return record
