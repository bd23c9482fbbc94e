"""OpenAPI metadata customization.

Adds tag descriptions and documents the rate limit response on the rate
limited ``/api`` operations. Kept out of the app factory so documentation
concerns stay in one place.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.rate_limit import is_rate_limited_path

_TOO_MANY_REQUESTS = {
    "description": "Too many requests from this client for this path.",
    "headers": {
        "Retry-After": {
            "description": "Seconds until the oldest request leaves the window.",
            "schema": {"type": "integer"},
        },
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and 429 responses.

    - Adds tags metadata if not present
    - Adds a ``429`` response to every operation under ``/api/``
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Media",
                "description": "Upload, list, delete and serve media files.",
            },
            {
                "name": "Health",
                "description": "Liveness check and active storage provider.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not is_rate_limited_path(path):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("responses", {}).setdefault("429", _TOO_MANY_REQUESTS)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
