"""Pydantic schemas for media upload responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.adapters.uploads.base import UploadRecord

FILES_ROUTE_PREFIX = "/api/files"


def file_src(upload_id: str) -> str:
    """Public URL path serving the bytes of an upload."""
    return f"{FILES_ROUTE_PREFIX}/{upload_id}"


class UploadListItem(BaseModel):
    """One entry of the media library listing."""

    id: str = Field(..., description="Upload identifier.")
    original_name: str = Field(..., description="Filename as sent by the client.")
    mime_type: str = Field(
        ..., description="Stored MIME type (image/webp when the image was compressed)."
    )
    size: int = Field(..., ge=0, description="Stored size in bytes.")
    created_at: datetime
    src: str = Field(..., description="Path serving the file, e.g. /api/files/<id>.")

    @classmethod
    def from_record(cls, record: UploadRecord) -> "UploadListItem":
        return cls(
            id=record.id,
            original_name=record.original_name,
            mime_type=record.mime_type,
            size=record.size,
            created_at=record.created_at,
            src=file_src(record.id),
        )


class UploadCreatedResponse(BaseModel):
    """Response for a successful upload."""

    id: str
    src: str


class UploadDeletedResponse(BaseModel):
    """Response for a soft delete."""

    id: str
    deleted: bool = True
