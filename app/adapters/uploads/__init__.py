"""Upload record repositories."""

from app.adapters.uploads.base import AbstractUploadRepository, UploadRecord, UploadVisibility
from app.adapters.uploads.in_memory import InMemoryUploadRepository

__all__ = [
    "AbstractUploadRepository",
    "InMemoryUploadRepository",
    "UploadRecord",
    "UploadVisibility",
]
