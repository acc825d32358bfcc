"""Profile and dashboard endpoints for the signed-in user.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from .. import profile_service, stats_service
from ..api_utils import get_current_user, get_store
from ..models import ProfileUpdateRequest
from ..store import JsonStore

router = APIRouter(tags=["Profile"])


@router.get("/profile", operation_id="get_profile")
async def get_profile(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return profile_service.get_profile(store, user["user_id"])


@router.patch("/profile", operation_id="update_profile")
async def update_profile(
    payload: ProfileUpdateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Update the caller's own profile; only fields present in the body change."""
    return profile_service.update_profile(store, user["user_id"], payload.model_dump(exclude_unset=True))


@router.get("/dashboard", operation_id="dashboard")
async def dashboard(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Role-aware summary: own applications and certificates, plus review queues for scholars and admins."""
    return stats_service.dashboard(store, user)
