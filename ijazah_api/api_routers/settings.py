"""Public settings and narration type endpoints.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi_cache.decorator import cache

from .. import settings_service
from ..api_utils import get_store
from ..config import config
from ..store import JsonStore

router = APIRouter(tags=["Settings"])


@router.get("/settings", operation_id="get_settings")
@cache(expire=config.CACHE_EXPIRE_SECONDS, namespace="settings")
async def get_settings(request: Request, store: JsonStore = Depends(get_store)):
    """Certificate and platform settings (signatures, header text, issue place)."""
    return settings_service.get_settings(store)


@router.get("/narrations", operation_id="list_narrations")
@cache(expire=config.CACHE_EXPIRE_SECONDS, namespace="narrations")
async def list_narrations(
    request: Request,
    grouped: bool = Query(False, description="Group narrators under their reading"),
    store: JsonStore = Depends(get_store),
):
    """Active narration types ordered by display order."""
    narrations = settings_service.list_narration_types(store)
    if grouped:
        return {"readings": settings_service.group_by_reading(narrations)}
    return {"narrations": narrations, "total": len(narrations)}
