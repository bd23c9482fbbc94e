"""Object key validation shared by all storage providers."""

from __future__ import annotations

import logging

from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def _segments(key: str) -> list[str]:
    return key.replace("\\", "/").split("/")


def _has_drive_letter(key: str) -> bool:
    # C:, C:/x or C:\x; x:notes.txt is a plain name
    return (
        len(key) >= 2
        and key[0].isalpha()
        and key[1] == ":"
        and (len(key) == 2 or key[2] in "/\\")
    )


def validate_key(key: str) -> str:
    """Validate an object key before any provider I/O happens.

    Keys are relative, slash-separated paths such as ``uploads/<uuid>.jpg``.
    Anything that could address a location outside the provider's root is
    rejected: absolute paths, drive letters, ``.`` and ``..`` segments (with
    either separator) and NUL bytes. A colon elsewhere is an ordinary
    character, so ``x:notes.txt`` is a valid key.

    Args:
        key: Object key supplied by the caller.

    Returns:
        The key, unchanged.

    Raises:
        ValidationAppError: If the key is empty or unsafe.
    """
    reason: str | None = None
    if not key or not key.strip():
        reason = "empty"
    elif "\x00" in key:
        reason = "nul_byte"
    elif key.startswith(("/", "\\")) or _has_drive_letter(key):
        reason = "absolute_path"
    elif ".." in _segments(key):
        reason = "path_traversal"
    elif "." in _segments(key):
        reason = "dot_segment"

    if reason is None:
        return key

    logger.warning(
        "storage.key_rejected",
        extra={"reason": reason, "key_length": len(key) if key else 0},
    )
    raise ValidationAppError(
        code="invalid_storage_key",
        message=f"Invalid storage key ({reason.replace('_', ' ')})",
        details={"key": key, "hint": "Use a relative path without '.' or '..' segments"},
    )
