"""Explicit application context shared by request handlers.

The storage adapter, rate limiter and upload repository are the only state
that outlives a request. They are built once in ``create_app()`` and stored on
``app.state.context``; route dependencies fetch them from the request instead
of reaching for module globals, so tests can hand the app a fresh context.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.storage.base import ObjectStorageAdapter
from app.adapters.storage.factory import get_storage_adapter
from app.adapters.uploads.base import AbstractUploadRepository
from app.adapters.uploads.in_memory import InMemoryUploadRepository
from app.core.config import Settings, settings
from app.services.media_service import MediaService
from app.utils.image_processor import ImageProcessorOptions


@dataclass
class AppContext:
    """Process-wide collaborators handed to request handlers."""

    storage: ObjectStorageAdapter
    rate_limiter: AbstractRateLimiter
    uploads: AbstractUploadRepository = field(default_factory=InMemoryUploadRepository)
    image_options: ImageProcessorOptions = field(default_factory=ImageProcessorOptions)

    @property
    def media(self) -> MediaService:
        return MediaService(
            storage=self.storage,
            uploads=self.uploads,
            image_options=self.image_options,
        )


def build_rate_limiter(cfg: Settings = settings) -> AbstractRateLimiter:
    return InMemorySlidingWindowRateLimiter(
        limit=cfg.app.rate_limit_requests,
        window_seconds=cfg.app.rate_limit_window_seconds,
        sweep_interval_seconds=cfg.app.rate_limit_sweep_interval_seconds,
    )


def build_app_context(cfg: Settings = settings) -> AppContext:
    """Build the default context from settings and the storage singleton."""
    return AppContext(
        storage=get_storage_adapter(),
        rate_limiter=build_rate_limiter(cfg),
        uploads=InMemoryUploadRepository(),
        image_options=ImageProcessorOptions(
            enabled=cfg.upload.image_compression,
            max_width=cfg.upload.image_max_width,
            quality=cfg.upload.image_quality,
        ),
    )


def get_app_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context attached to the app."""
    return request.app.state.context


def get_media_service(request: Request) -> MediaService:
    """FastAPI dependency returning a MediaService bound to the app context."""
    return get_app_context(request).media
