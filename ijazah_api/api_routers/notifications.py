"""Notification inbox and delivery preference endpoints.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from .. import notification_service
from ..api_utils import get_current_user, get_store
from ..models import NotificationListResponse, NotificationPreferencesUpdate
from ..store import JsonStore

router = APIRouter(tags=["Notifications"], prefix="/notifications")


@router.get("", response_model=NotificationListResponse, operation_id="list_notifications")
async def list_notifications(
    limit: int = Query(notification_service.DEFAULT_LIST_LIMIT, ge=1, le=100),
    unread_only: bool = Query(False),
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return notification_service.list_notifications(store, user["user_id"], limit, unread_only)


@router.get("/preferences", operation_id="get_notification_preferences")
async def get_preferences(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return notification_service.get_preferences(store, user["user_id"])


@router.put("/preferences", operation_id="update_notification_preferences")
async def update_preferences(
    payload: NotificationPreferencesUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Upsert preferences; omitted keys keep their current value."""
    return notification_service.update_preferences(
        store, user["user_id"], payload.model_dump(exclude_none=True)
    )


@router.post("/read-all", operation_id="mark_all_notifications_read")
async def mark_all_read(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return {"updated": notification_service.mark_all_read(store, user["user_id"])}


@router.post("/{notification_id}/read", operation_id="mark_notification_read")
async def mark_read(
    notification_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return notification_service.mark_read(store, user["user_id"], notification_id)
