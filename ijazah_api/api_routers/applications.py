"""Student ijazah application endpoints.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from .. import application_service
from ..api_utils import get_current_user, get_store
from ..models import (
    ApplicationCreatedResponse,
    ApplicationCreateRequest,
    ApplicationUpdateRequest,
    TransitionRequest,
)
from ..store import JsonStore

router = APIRouter(tags=["Applications"], prefix="/applications")
logger = logging.getLogger(__name__)


@router.post("", status_code=201, response_model=ApplicationCreatedResponse, operation_id="create_application")
async def create_application(
    payload: ApplicationCreateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Create an ijazah application.

    The application is submitted immediately unless ``submit`` is false,
    in which case it is saved as a draft.
    """
    data = payload.model_dump(exclude={"submit"})
    application = application_service.create_application(store, user, data, submit=payload.submit)
    return ApplicationCreatedResponse(
        application_id=application["id"],
        application_number=application["application_number"],
        status=application["status"],
    )


@router.get("/me", operation_id="list_my_applications")
async def list_my_applications(
    status: Optional[str] = Query(None, description="Filter by status"),
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    applications = application_service.list_my_applications(store, user, status)
    return {"applications": applications, "total": len(applications)}


@router.get("/{application_id}", operation_id="get_application")
async def get_application(
    application_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return application_service.get_application(store, user, application_id)


@router.patch("/{application_id}", operation_id="update_draft_application")
async def update_application(
    application_id: str,
    payload: ApplicationUpdateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Edit a draft application."""
    changes = payload.model_dump(exclude_unset=True, exclude={"expected_version"})
    return application_service.update_draft(
        store, user, application_id, changes, expected_version=payload.expected_version
    )


@router.post("/{application_id}/submit", operation_id="submit_application")
async def submit_application(
    application_id: str,
    payload: Optional[TransitionRequest] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    payload = payload or TransitionRequest()
    return application_service.submit_application(
        store, user, application_id, expected_version=payload.expected_version
    )


@router.post("/{application_id}/withdraw", operation_id="withdraw_application")
async def withdraw_application(
    application_id: str,
    payload: Optional[TransitionRequest] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    payload = payload or TransitionRequest()
    return application_service.withdraw_application(
        store, user, application_id, notes=payload.notes, expected_version=payload.expected_version
    )
