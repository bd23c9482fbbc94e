"""Image compression for uploaded media.

Downscales wide images and re-encodes them as WebP to cut storage and
bandwidth. Anything that can't be processed is stored as uploaded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/avif",
    }
)


@dataclass(frozen=True)
class ImageProcessorOptions:
    """Compression settings.

    Attributes:
        enabled: Whether compression runs at all.
        max_width: Wider images are downscaled to this width (never upscaled).
        quality: WebP quality, 1-100.
    """

    enabled: bool = True
    max_width: int = 1920
    quality: int = 85


@dataclass(frozen=True)
class ProcessedImage:
    data: bytes
    mime_type: str


def is_supported_image_type(mime_type: str) -> bool:
    return mime_type.lower() in SUPPORTED_IMAGE_TYPES


def process_image(data: bytes, mime_type: str, options: ImageProcessorOptions) -> ProcessedImage:
    """Compress an image to WebP, downscaling it if wider than ``max_width``.

    Args:
        data: Original file bytes.
        mime_type: MIME type declared by the client.
        options: Compression settings.

    Returns:
        ProcessedImage with WebP bytes, or the original bytes and type when
        compression is disabled, the type is unsupported or decoding fails.
    """
    if not options.enabled or not is_supported_image_type(mime_type):
        return ProcessedImage(data=data, mime_type=mime_type)

    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            if image.width > options.max_width:
                height = max(1, round(image.height * options.max_width / image.width))
                image = image.resize((options.max_width, height), Image.Resampling.LANCZOS)
            if image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

            out = BytesIO()
            image.save(out, format="WEBP", quality=options.quality)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning(
            "image_processor.failed",
            extra={"mime_type": mime_type, "error_type": type(exc).__name__},
        )
        return ProcessedImage(data=data, mime_type=mime_type)

    processed = out.getvalue()
    logger.debug(
        "image_processor.compressed",
        extra={"original_size": len(data), "processed_size": len(processed)},
    )
    return ProcessedImage(data=processed, mime_type="image/webp")
