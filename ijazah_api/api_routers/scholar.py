"""Scholar endpoints: review queue, biography, students, onboarding and directory.

Paths under ``/scholar`` require the scholar role (admins qualify).
``/scholars`` (the public directory) and ``/scholar-applications``
(become a scholar) are open to everyone and to any signed-in user
respectively.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi_cache.decorator import cache

from .. import application_service, scholar_service
from ..api_utils import get_current_user, get_store, require_scholar
from ..config import config
from ..models import (
    BiographyUpdateRequest,
    InterviewRequest,
    ScholarApplicationRequest,
    TransitionRequest,
)
from ..store import JsonStore

router = APIRouter(tags=["Scholars"])
logger = logging.getLogger(__name__)


# Review queue

@router.get("/scholar/applications", operation_id="scholar_list_applications")
async def list_review_queue(
    status: Optional[str] = Query(None, description="Filter by status"),
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    """Applications assigned to the scholar plus unassigned submissions."""
    applications = application_service.list_for_scholar(store, user, status)
    return {"applications": applications, "total": len(applications)}


@router.get("/scholar/applications/{application_id}", operation_id="scholar_get_application")
async def get_review_application(
    application_id: str,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    return application_service.get_application(store, user, application_id)


@router.post("/scholar/applications/{application_id}/start-review", operation_id="start_review")
async def start_review(
    application_id: str,
    payload: Optional[TransitionRequest] = None,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    """Move a submitted application to ``under_review``; unassigned applications are claimed."""
    payload = payload or TransitionRequest()
    return application_service.start_review(
        store, user, application_id, expected_version=payload.expected_version
    )


@router.post("/scholar/applications/{application_id}/schedule-interview", operation_id="schedule_interview")
async def schedule_interview(
    application_id: str,
    payload: InterviewRequest,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    return application_service.schedule_interview(
        store, user, application_id,
        interview_at=payload.interview_at,
        notes=payload.notes,
        expected_version=payload.expected_version,
    )


@router.post("/scholar/applications/{application_id}/approve", operation_id="approve_application")
async def approve_application(
    application_id: str,
    payload: Optional[TransitionRequest] = None,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    payload = payload or TransitionRequest()
    return application_service.approve_application(
        store, user, application_id, notes=payload.notes, expected_version=payload.expected_version
    )


@router.post("/scholar/applications/{application_id}/reject", operation_id="reject_application")
async def reject_application(
    application_id: str,
    payload: TransitionRequest,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    """Reject an application; ``notes`` (the reason) is required."""
    return application_service.reject_application(
        store, user, application_id, notes=payload.notes, expected_version=payload.expected_version
    )


# Scholar self-service

@router.get("/scholar/biography", operation_id="get_biography")
async def get_biography(
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    return scholar_service.get_biography(store, user)


@router.put("/scholar/biography", operation_id="update_biography")
async def update_biography(
    payload: BiographyUpdateRequest,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    return scholar_service.update_biography(store, user, payload.model_dump(exclude_unset=True))


@router.get("/scholar/students", operation_id="scholar_students")
async def list_students(
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    students = scholar_service.list_students(store, user)
    return {"students": students, "total": len(students)}


@router.get("/scholar/certificates", operation_id="scholar_certificates")
async def list_certificates(
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    certificates = scholar_service.list_scholar_certificates(store, user)
    return {"certificates": certificates, "total": len(certificates)}


@router.get("/scholar/dashboard", operation_id="scholar_dashboard")
async def dashboard(
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    return scholar_service.scholar_dashboard(store, user)


# Becoming a scholar

@router.post("/scholar-applications", status_code=201, operation_id="apply_for_scholar")
async def apply_for_scholar(
    payload: ScholarApplicationRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Apply to join the platform as a scholar."""
    return scholar_service.apply_for_scholar(store, user, payload.model_dump())


@router.get("/scholar-applications/me", operation_id="my_scholar_applications")
async def my_scholar_applications(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    applications = scholar_service.my_scholar_applications(store, user)
    return {"applications": applications, "total": len(applications)}


# Public directory

@router.get("/scholars", operation_id="list_scholars")
@cache(expire=config.CACHE_EXPIRE_SECONDS, namespace="scholars")
async def list_scholars(
    request: Request,
    search: Optional[str] = Query(None, description="Match name or specialization"),
    specialization: Optional[str] = Query(None, description="Filter by specialization"),
    store: JsonStore = Depends(get_store),
):
    """Public directory of active scholars, most certificates issued first."""
    scholars = scholar_service.public_directory(store, search, specialization)
    return {"scholars": scholars, "total": len(scholars)}
