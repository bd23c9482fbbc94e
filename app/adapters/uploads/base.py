"""Upload record repository interface.

Upload records map a public upload id to the storage key that holds its bytes.
The service talks to this abstraction so the in-memory store can later be
replaced by a database-backed one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UploadVisibility(str, Enum):
    """Who may fetch an upload through ``/api/files/{id}``."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


@dataclass
class UploadRecord:
    """Metadata for one uploaded media file."""

    id: str
    original_name: str
    storage_key: str
    mime_type: str
    size: int
    visibility: UploadVisibility
    created_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class AbstractUploadRepository(ABC):
    """Interface for upload record persistence."""

    @abstractmethod
    def list(self, *, search: str | None = None, type: str | None = None, take: int = 100) -> list[UploadRecord]:
        """List live (not soft-deleted) records, newest first.

        Args:
            search: Case-insensitive substring of the original filename.
            type: MIME type prefix (e.g. ``image/``).
            take: Maximum number of records to return.
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, upload_id: str) -> UploadRecord | None:
        """Return the record (including soft-deleted ones) or None."""
        raise NotImplementedError

    @abstractmethod
    def create(
        self,
        *,
        original_name: str,
        storage_key: str,
        mime_type: str,
        size: int,
        visibility: UploadVisibility,
    ) -> UploadRecord:
        """Persist a new record and return it."""
        raise NotImplementedError

    @abstractmethod
    def soft_delete(self, upload_id: str) -> UploadRecord:
        """Mark the record deleted and return it."""
        raise NotImplementedError
