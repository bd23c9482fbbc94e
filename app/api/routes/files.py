from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.adapters.storage.base import iter_stream
from app.core.context import get_media_service
from app.services.media_service import MediaService

router = APIRouter(tags=["Media"])

CACHE_CONTROL_IMMUTABLE = "public, max-age=31536000, immutable"


@router.get("/files/{upload_id}", response_class=StreamingResponse)
async def get_file(
    upload_id: str,
    media: MediaService = Depends(get_media_service),
) -> StreamingResponse:
    """Stream the bytes of a public upload.

    Storage keys are random per upload, so responses are cacheable forever.
    The object stream is closed after the response even when the client goes
    away before the first chunk.

    Raises:
        NotFoundAppError: 404 when the record is missing or soft-deleted.
        ForbiddenAppError: 403 when the upload is private.
        StorageNotFoundError: 404 when the stored object is gone.
    """
    stored = await media.open_public_file(upload_id)
    stream = stored.content.stream

    try:
        headers = {
            "Cache-Control": CACHE_CONTROL_IMMUTABLE,
            "X-Content-Type-Options": "nosniff",
        }
        if stored.content.content_length is not None:
            headers["Content-Length"] = str(stored.content.content_length)

        return StreamingResponse(
            iter_stream(stream),
            media_type=stored.content_type,
            headers=headers,
            background=BackgroundTask(stream.close),
        )
    except Exception:
        stream.close()
        raise
