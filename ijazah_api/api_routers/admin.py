"""Administration endpoints.

Every path requires the admin role. Changes to settings, narration types
and scholars clear the matching cached public responses.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile

from .. import (
    application_service,
    certificate_service,
    media_service,
    profile_service,
    scholar_service,
    settings_service,
    stats_service,
)
from ..api_utils import get_platform_config, get_store, invalidate_cache, require_admin
from ..models import (
    AssignScholarRequest,
    CertificateIssuedResponse,
    ManualCertificateRequest,
    NarrationTypeCreate,
    NarrationTypeUpdate,
    RevokeRequest,
    RolesUpdateRequest,
    ScholarCreateRequest,
    ScholarDecisionRequest,
    SystemNotificationRequest,
    TransitionRequest,
)
from ..store import JsonStore

router = APIRouter(tags=["Admin"], prefix="/admin")
logger = logging.getLogger(__name__)


# Applications

@router.get("/applications", operation_id="admin_list_applications")
async def list_applications(
    status: Optional[str] = Query(None),
    ijazah_type: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    applications = application_service.list_all(store, status, ijazah_type)
    return {"applications": applications, "total": len(applications)}


@router.post("/applications/expire-stale", operation_id="admin_expire_stale_applications")
async def expire_stale_applications(
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    """Expire approved applications that never received a certificate."""
    expired = application_service.expire_stale_applications(store)
    return {"expired": expired, "total": len(expired)}


@router.post("/applications/{application_id}/assign", operation_id="admin_assign_scholar")
async def assign_scholar(
    application_id: str,
    payload: AssignScholarRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    return application_service.assign_scholar(store, user, application_id, payload.scholar_id)


@router.post("/applications/{application_id}/expire", operation_id="admin_expire_application")
async def expire_application(
    application_id: str,
    payload: Optional[TransitionRequest] = None,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    payload = payload or TransitionRequest()
    return application_service.expire_application(
        store, user, application_id, notes=payload.notes, expected_version=payload.expected_version
    )


# Scholar applications and scholars

@router.get("/scholar-applications", operation_id="admin_list_scholar_applications")
async def list_scholar_applications(
    status: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    applications = scholar_service.list_scholar_applications(store, status)
    return {"applications": applications, "total": len(applications)}


@router.post("/scholar-applications/{application_id}/approve", operation_id="admin_approve_scholar_application")
async def approve_scholar_application(
    application_id: str,
    payload: Optional[ScholarDecisionRequest] = None,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    payload = payload or ScholarDecisionRequest()
    application = scholar_service.approve_scholar_application(store, user, application_id, payload.notes)
    await invalidate_cache("scholars")
    return application


@router.post("/scholar-applications/{application_id}/reject", operation_id="admin_reject_scholar_application")
async def reject_scholar_application(
    application_id: str,
    payload: ScholarDecisionRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    return scholar_service.reject_scholar_application(store, user, application_id, payload.notes)


@router.get("/scholars", operation_id="admin_list_scholars")
async def list_scholars(
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    """All scholar records, including inactive and private ones."""
    scholars = store.list("scholars")
    for scholar in scholars:
        profile = store.get("profiles", scholar["id"]) or {}
        scholar["email"] = profile.get("email")
        scholar["full_name"] = profile.get("full_name")
    return {"scholars": scholars, "total": len(scholars)}


@router.post("/scholars", status_code=201, operation_id="admin_create_scholar")
async def create_scholar(
    payload: ScholarCreateRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    scholar = scholar_service.create_scholar(store, user, payload.model_dump())
    await invalidate_cache("scholars")
    return scholar


@router.post("/scholars/{scholar_id}/deactivate", operation_id="admin_deactivate_scholar")
async def deactivate_scholar(
    scholar_id: str,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    scholar = scholar_service.deactivate_scholar(store, user, scholar_id)
    await invalidate_cache("scholars")
    return scholar


# Certificates

@router.get("/certificates", operation_id="admin_list_certificates")
async def list_certificates(
    status: Optional[str] = Query(None),
    ijazah_type: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    certificates = certificate_service.list_all_certificates(store, status, ijazah_type)
    return {"certificates": certificates, "total": len(certificates)}


@router.post("/certificates", status_code=201, response_model=CertificateIssuedResponse,
             operation_id="admin_create_certificate")
async def create_certificate(
    payload: ManualCertificateRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    """Issue a certificate from the manual form."""
    certificate = certificate_service.create_manual_certificate(store, user, payload.model_dump())
    await invalidate_cache("scholars")
    return certificate_service.issued_response(certificate, created=True)


@router.post("/certificates/{certificate_id}/revoke", operation_id="admin_revoke_certificate")
async def revoke_certificate(
    certificate_id: str,
    payload: RevokeRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    return certificate_service.revoke_certificate(store, user, certificate_id, payload.reason)


# Users

@router.get("/users", operation_id="admin_list_users")
async def list_users(
    role: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    users = profile_service.list_users(store, role)
    return {"users": users, "total": len(users)}


@router.put("/users/{user_id}/roles", operation_id="admin_set_roles")
async def set_roles(
    user_id: str,
    payload: RolesUpdateRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    profile = profile_service.set_roles(store, user, user_id, list(payload.roles))
    await invalidate_cache("scholars")
    return profile


@router.post("/users/{user_id}/disable", operation_id="admin_disable_user")
async def disable_user(
    user_id: str,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    return profile_service.disable_user(store, user, user_id)


@router.get("/stats", operation_id="admin_stats")
async def stats(
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    return stats_service.admin_stats(store)


@router.post("/notifications", operation_id="admin_broadcast_notification")
async def broadcast_notification(
    payload: SystemNotificationRequest,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    delivered = profile_service.broadcast_system_notification(
        store, user, payload.title, payload.message, payload.priority, payload.role
    )
    return {"delivered": delivered}


# Settings and narration types

@router.put("/settings", operation_id="admin_update_settings")
async def update_settings(
    changes: Dict[str, Any] = Body(..., description="Settings keys to overwrite"),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    settings = settings_service.update_settings(store, changes, user["user_id"])
    await invalidate_cache("settings")
    return settings


@router.post("/settings/assets/{setting_key}", operation_id="admin_upload_settings_asset")
async def upload_settings_asset(
    setting_key: str,
    file: UploadFile = File(..., description="Signature or background image, or a font file"),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    """Upload a certificate asset and store its URL under ``setting_key``.

    Accepted keys: signature_image_url, second_signature_image_url,
    background_image_url and custom_font_file_url.
    """
    content = await file.read()
    result = media_service.upload_settings_asset(
        store, setting_key, file.filename, content, file.content_type, user["user_id"]
    )
    await invalidate_cache("settings")
    return result


@router.get("/narrations", operation_id="admin_list_narrations")
async def list_narrations(
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    """Every narration type, inactive ones included."""
    narrations = settings_service.list_narration_types(store, include_inactive=True)
    return {"narrations": narrations, "total": len(narrations)}


@router.post("/narrations", status_code=201, operation_id="admin_add_narration")
async def add_narration(
    payload: NarrationTypeCreate,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    narration = settings_service.add_narration_type(
        store, payload.name, payload.parent_reading, payload.description
    )
    await invalidate_cache("narrations")
    return narration


@router.post("/narrations/reset", operation_id="admin_reset_narrations")
async def reset_narrations(
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
    platform: Dict[str, Any] = Depends(get_platform_config),
):
    """Replace every narration type with the configured canonical hierarchy."""
    narrations = settings_service.reset_narration_types(store, platform.get("narrations", []))
    await invalidate_cache("narrations")
    return {"narrations": narrations, "total": len(narrations)}


@router.patch("/narrations/{narration_id}", operation_id="admin_update_narration")
async def update_narration(
    narration_id: str,
    payload: NarrationTypeUpdate,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    narration = settings_service.update_narration_type(
        store, narration_id, payload.model_dump(exclude_unset=True)
    )
    await invalidate_cache("narrations")
    return narration


@router.post("/narrations/{narration_id}/toggle", operation_id="admin_toggle_narration")
async def toggle_narration(
    narration_id: str,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    narration = settings_service.toggle_narration_type(store, narration_id)
    await invalidate_cache("narrations")
    return narration


@router.delete("/narrations/{narration_id}", status_code=204, operation_id="admin_delete_narration")
async def delete_narration(
    narration_id: str,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    settings_service.delete_narration_type(store, narration_id)
    await invalidate_cache("narrations")


# Media library

@router.get("/media", operation_id="admin_list_media")
async def list_media(
    folder: Optional[str] = Query(None, description="library or settings"),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    files = media_service.list_media(store, folder)
    return {"files": files, "total": len(files)}


@router.post("/media", status_code=201, operation_id="admin_upload_media")
async def upload_media(
    file: UploadFile = File(..., description="Image, font or PDF to add to the library"),
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    content = await file.read()
    return media_service.upload_library_file(
        store, file.filename, content, file.content_type, user["user_id"]
    )


@router.delete("/media/{media_id}", status_code=204, operation_id="admin_delete_media")
async def delete_media(
    media_id: str,
    user: Dict[str, Any] = Depends(require_admin),
    store: JsonStore = Depends(get_store),
):
    deleted = media_service.delete_media(store, media_id, user["user_id"])
    if deleted.get("setting_key"):
        await invalidate_cache("settings")
