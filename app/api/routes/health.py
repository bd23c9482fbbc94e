from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.context import AppContext, get_app_context

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(context: AppContext = Depends(get_app_context)) -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring. Not rate limited.

    Returns:
        dict: ``status`` ("ok") and the active ``storage_provider``.
    """

    return {"status": "ok", "storage_provider": context.storage.provider}
