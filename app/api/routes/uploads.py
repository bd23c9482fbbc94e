from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile

from app.core.context import get_media_service
from app.core.errors import ValidationAppError
from app.core.file_validation import read_upload_file_limited
from app.schemas.uploads import (
    UploadCreatedResponse,
    UploadDeletedResponse,
    UploadListItem,
    file_src,
)
from app.services.media_service import DEFAULT_LIST_TAKE, MediaService

router = APIRouter(tags=["Media"])


@router.get("/uploads", response_model=list[UploadListItem])
def list_uploads(
    search: str | None = Query(default=None, description="Case-insensitive filename filter."),
    type: str | None = Query(default=None, description="MIME type prefix, e.g. 'image/'."),
    take: int = Query(default=DEFAULT_LIST_TAKE, description="Max items (clamped to 1..200)."),
    media: MediaService = Depends(get_media_service),
) -> list[UploadListItem]:
    """List live uploads, newest first."""
    records = media.list_uploads(search=search, type=type, take=take)
    return [UploadListItem.from_record(record) for record in records]


@router.post("/uploads", response_model=UploadCreatedResponse)
async def create_upload(
    file: UploadFile | None = File(default=None, description="File to upload."),
    media: MediaService = Depends(get_media_service),
) -> UploadCreatedResponse:
    """Upload a media file.

    Images are compressed to WebP when compression is enabled.

    Raises:
        ValidationAppError: 400 when no file is sent or it is empty.
        HTTPException: 413 when the file exceeds the size limit.
        StorageAppError: 503 (retryable) or 500 on provider failure.
    """
    if file is None:
        raise ValidationAppError(code="missing_file", message="No file provided")

    data = await read_upload_file_limited(file)
    record = await media.store_upload(
        filename=file.filename,
        content_type=file.content_type,
        data=data,
    )
    return UploadCreatedResponse(id=record.id, src=file_src(record.id))


@router.delete("/uploads/{upload_id}", response_model=UploadDeletedResponse)
def delete_upload(
    upload_id: str,
    media: MediaService = Depends(get_media_service),
) -> UploadDeletedResponse:
    """Soft-delete an upload. The stored object is left in place."""
    media.soft_delete_upload(upload_id)
    return UploadDeletedResponse(id=upload_id)
