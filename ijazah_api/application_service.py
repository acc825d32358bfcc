"""Ijazah application service.

Creates applications, exposes the workflow transitions as operations
with their authorization rules, and fans out the resulting notifications.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
import random
import string
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from . import notification_service, scholar_service, workflow
from .config import config
from .email_templates import status_label
from .exceptions import ConflictError, IjazahError, PermissionDeniedError, ValidationFailedError
from .policy import ROLE_ADMIN, ROLE_SCHOLAR, AccessPolicy
from .store import JsonStore, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

IJAZAH_TYPES = ("hifz", "qirat", "tajweed", "sanad")
EDITABLE_FIELDS = (
    "ijazah_type",
    "personal_info",
    "academic_background",
    "quran_experience",
    "documents",
    "scholar_id",
)

_BASE36 = string.digits + string.ascii_uppercase


def generate_application_number(now_ms: Optional[int] = None) -> str:
    """Return ``IJZ-<epoch ms>-<6 uppercase base36 chars>``."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"IJZ-{now_ms}-{suffix}"


def application_url(application: Dict[str, Any]) -> str:
    return f"{config.PUBLIC_BASE_URL}/applications/{application['id']}"


def review_url(application: Dict[str, Any]) -> str:
    return f"{config.PUBLIC_BASE_URL}/scholar/applications/{application['id']}"


def _student_name(application: Dict[str, Any]) -> str:
    return (application.get("personal_info") or {}).get("full_name") or ""


def _require_active_scholar(store: JsonStore, scholar_id: str) -> Dict[str, Any]:
    scholar = store.get("scholars", scholar_id)
    if not scholar or not scholar.get("is_active"):
        raise ValidationFailedError(f"Scholar '{scholar_id}' is not an active scholar")
    return scholar


def _check_preferred_scholar(store: JsonStore, user: Dict[str, Any], scholar_id: str) -> None:
    _require_active_scholar(store, scholar_id)
    if scholar_id == user["user_id"]:
        raise ValidationFailedError("You cannot choose yourself as the reviewing scholar")


def _admin_ids(store: JsonStore) -> List[str]:
    return [
        p["id"]
        for p in store.list("profiles", lambda p: ROLE_ADMIN in (p.get("roles") or []))
        if p.get("enabled", True)
    ]


# Notifications

def _notify_submitted(store: JsonStore, application: Dict[str, Any]) -> None:
    submitted_date = (application.get("submitted_at") or "")[:10]
    notification_service.notify(
        store,
        application["user_id"],
        "application_status",
        "تم استلام طلب الإجازة",
        f"تم استلام طلبك رقم {application['application_number']} وسيتم مراجعته قريباً",
        action_url=application_url(application),
        action_label="متابعة الطلب",
        related_application_id=application["id"],
        email=("application_submitted", {
            "application_number": application["application_number"],
            "ijazah_type": application["ijazah_type"],
            "submitted_date": submitted_date,
            "application_url": application_url(application),
        }),
    )

    reviewers = [application["scholar_id"]] if application.get("scholar_id") else _admin_ids(store)
    notification_service.notify_many(
        store,
        reviewers,
        "review_request",
        "طلب مراجعة جديد",
        f"طلب إجازة جديد ({application['application_number']}) من {_student_name(application)}",
        action_url=review_url(application),
        action_label="مراجعة الطلب",
        related_application_id=application["id"],
        email=("review_request", {
            "application_number": application["application_number"],
            "ijazah_type": application["ijazah_type"],
            "student_name": _student_name(application),
            "submitted_date": submitted_date,
            "review_url": review_url(application),
        }),
    )


def _notify_status(store: JsonStore, application: Dict[str, Any], notes: Optional[str] = None) -> None:
    status = application["status"]
    message = f"تم تحديث حالة طلبك رقم {application['application_number']} إلى: {status_label(status)}"
    if notes:
        message = f"{message}\n{notes}"
    notification_service.notify(
        store,
        application["user_id"],
        "application_status",
        "تحديث حالة طلب الإجازة",
        message,
        priority="high" if status in (workflow.APPROVED, workflow.REJECTED) else "normal",
        action_url=application_url(application),
        action_label="عرض الطلب",
        related_application_id=application["id"],
        email=("application_status_changed", {
            "application_number": application["application_number"],
            "status": status,
            "notes": notes,
            "application_url": application_url(application),
        }),
    )


# Creation and drafts

def create_application(
    store: JsonStore,
    user: Dict[str, Any],
    payload: Dict[str, Any],
    submit: bool = True,
) -> Dict[str, Any]:
    """Create an application for the current user.

    Args:
        store: Record store
        user: Token context of the applicant
        payload: Validated application sections (see ApplicationCreateRequest)
        submit: Submit right away; otherwise the application stays a draft

    Returns:
        The stored application
    """
    if payload.get("ijazah_type") not in IJAZAH_TYPES:
        raise ValidationFailedError(f"Unknown ijazah type: {payload.get('ijazah_type')!r}")
    scholar_id = payload.get("scholar_id")
    if scholar_id:
        _check_preferred_scholar(store, user, scholar_id)

    application = store.insert("ijazah_applications", {
        "user_id": user["user_id"],
        "application_number": generate_application_number(),
        "ijazah_type": payload["ijazah_type"],
        "status": workflow.DRAFT,
        "personal_info": payload.get("personal_info"),
        "academic_background": payload.get("academic_background"),
        "quran_experience": payload.get("quran_experience"),
        "documents": payload.get("documents") or [],
        "scholar_id": scholar_id,
        "reviewer_notes": None,
        "interview_notes": None,
        "history": [],
    })
    logger.info(
        f"Created application {application['application_number']}",
        extra={"user_id": user["user_id"], "ijazah_type": application["ijazah_type"]}
    )

    if submit:
        application = workflow.transition_application(
            store, application["id"], workflow.SUBMITTED, user["user_id"]
        )
        _notify_submitted(store, application)
    return application


def update_draft(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    changes: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    """Edit a draft application (owner only)."""
    application = store.require("ijazah_applications", application_id, "Application")
    policy = AccessPolicy(user)
    policy.require(policy.can_modify_application(application), "edit this application", application_id)
    if application["status"] != workflow.DRAFT:
        raise ConflictError(
            f"Only draft applications can be edited (status is '{application['status']}')"
        )

    update = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    if "ijazah_type" in update and update["ijazah_type"] not in IJAZAH_TYPES:
        raise ValidationFailedError(f"Unknown ijazah type: {update['ijazah_type']!r}")
    if update.get("scholar_id"):
        _check_preferred_scholar(store, user, update["scholar_id"])
    if not update:
        return application
    return store.update("ijazah_applications", application_id, update, expected_version=expected_version)


# Queries

def get_application(store: JsonStore, user: Dict[str, Any], application_id: str) -> Dict[str, Any]:
    application = store.require("ijazah_applications", application_id, "Application")
    policy = AccessPolicy(user)
    policy.require(policy.can_view_application(application), "view this application", application_id)
    return application


def list_my_applications(store: JsonStore, user: Dict[str, Any], status: Optional[str] = None) -> List[Dict[str, Any]]:
    filters = {"user_id": user["user_id"]}
    if status:
        filters["status"] = status
    return store.list("ijazah_applications", **filters)


def list_for_scholar(store: JsonStore, user: Dict[str, Any], status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Applications assigned to the scholar plus unassigned submissions.

    Admins see every non-draft application.
    """
    policy = AccessPolicy(user)

    def visible(application: Dict[str, Any]) -> bool:
        if application.get("status") == workflow.DRAFT or policy.is_owner(application):
            return False
        if policy.is_admin:
            return True
        scholar_id = application.get("scholar_id")
        if scholar_id == policy.user_id:
            return True
        return scholar_id is None and application.get("status") == workflow.SUBMITTED

    filters = {"status": status} if status else {}
    return store.list("ijazah_applications", visible, **filters)


def list_all(
    store: JsonStore,
    status: Optional[str] = None,
    ijazah_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    filters = {}
    if status:
        filters["status"] = status
    if ijazah_type:
        filters["ijazah_type"] = ijazah_type
    return store.list("ijazah_applications", **filters)


# Transitions

def submit_application(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    application = store.require("ijazah_applications", application_id, "Application")
    policy = AccessPolicy(user)
    policy.require(policy.can_modify_application(application), "submit this application", application_id)
    updated = workflow.transition_application(
        store, application_id, workflow.SUBMITTED, user["user_id"], expected_version=expected_version
    )
    _notify_submitted(store, updated)
    return updated


def withdraw_application(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    application = store.require("ijazah_applications", application_id, "Application")
    policy = AccessPolicy(user)
    policy.require(policy.can_withdraw_application(application), "withdraw this application", application_id)
    updated = workflow.transition_application(
        store, application_id, workflow.WITHDRAWN, user["user_id"],
        notes=notes, expected_version=expected_version,
    )
    if not policy.is_owner(application):
        _notify_status(store, updated, notes)
    return updated


def _require_reviewer(store: JsonStore, user: Dict[str, Any], application_id: str, action: str) -> Dict[str, Any]:
    application = store.require("ijazah_applications", application_id, "Application")
    policy = AccessPolicy(user, store.get("scholars", user["user_id"]))
    policy.require(policy.can_review_application(application), action, application_id)
    return application


def start_review(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    """Begin reviewing; a scholar picking up an unassigned application claims it."""
    application = _require_reviewer(store, user, application_id, "review this application")
    changes = {}
    if application.get("scholar_id") is None and ROLE_SCHOLAR in (user.get("roles") or []):
        changes["scholar_id"] = user["user_id"]
    updated = workflow.transition_application(
        store, application_id, workflow.UNDER_REVIEW, user["user_id"],
        expected_version=expected_version, changes=changes,
    )
    _notify_status(store, updated)
    return updated


def schedule_interview(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    interview_at: datetime,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    _require_reviewer(store, user, application_id, "schedule an interview")
    updated = workflow.transition_application(
        store, application_id, workflow.INTERVIEW_SCHEDULED, user["user_id"],
        notes=notes,
        expected_version=expected_version,
        interview_at=interview_at.isoformat() if interview_at else None,
    )
    _notify_status(store, updated, notes)
    return updated


def approve_application(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    _require_reviewer(store, user, application_id, "approve this application")
    updated = workflow.transition_application(
        store, application_id, workflow.APPROVED, user["user_id"],
        notes=notes, expected_version=expected_version,
    )
    if updated.get("scholar_id"):
        scholar_service.recompute_acceptance_rate(store, updated["scholar_id"])
    _notify_status(store, updated, notes)
    return updated


def reject_application(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    _require_reviewer(store, user, application_id, "reject this application")
    updated = workflow.transition_application(
        store, application_id, workflow.REJECTED, user["user_id"],
        notes=notes, expected_version=expected_version,
    )
    if updated.get("scholar_id"):
        scholar_service.recompute_acceptance_rate(store, updated["scholar_id"])
    _notify_status(store, updated, notes)
    return updated


def expire_application(
    store: JsonStore,
    user: Optional[Dict[str, Any]],
    application_id: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Dict[str, Any]:
    """Expire an approved application (admin, or the system when ``user`` is None)."""
    if user is not None:
        policy = AccessPolicy(user)
        policy.require(policy.is_admin, "expire applications", application_id)
    updated = workflow.transition_application(
        store, application_id, workflow.EXPIRED, user["user_id"] if user else None,
        notes=notes, expected_version=expected_version,
    )
    _notify_status(store, updated, notes)
    return updated


def assign_scholar(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    scholar_id: str,
) -> Dict[str, Any]:
    """Assign (or reassign) the reviewing scholar of an open application."""
    policy = AccessPolicy(user)
    policy.require(policy.is_admin, "assign scholars", application_id)
    application = store.require("ijazah_applications", application_id, "Application")
    if application["status"] not in workflow.OPEN_REVIEW_STATUSES:
        raise ValidationFailedError(
            f"Scholars can only be assigned to open applications (status is '{application['status']}')"
        )
    _require_active_scholar(store, scholar_id)
    if scholar_id == application["user_id"]:
        raise PermissionDeniedError("A scholar cannot review their own application")

    updated = store.update("ijazah_applications", application_id, {"scholar_id": scholar_id})
    notification_service.notify(
        store,
        scholar_id,
        "review_request",
        "طلب مراجعة جديد",
        f"تم تعيين الطلب {application['application_number']} لمراجعتكم",
        action_url=review_url(updated),
        action_label="مراجعة الطلب",
        related_application_id=application_id,
        email=("review_request", {
            "application_number": updated["application_number"],
            "ijazah_type": updated["ijazah_type"],
            "student_name": _student_name(updated),
            "submitted_date": (updated.get("submitted_at") or "")[:10],
            "review_url": review_url(updated),
        }),
    )
    logger.info(f"Application {application['application_number']} assigned to scholar {scholar_id}")
    return updated


def expire_stale_applications(store: JsonStore, now: Optional[datetime] = None) -> List[str]:
    """Expire approved applications left without a certificate for too long.

    Returns:
        Ids of the applications that were expired
    """
    now = now or utc_now()
    cutoff = now - timedelta(days=config.APPLICATION_EXPIRY_DAYS)

    def stale(application: Dict[str, Any]) -> bool:
        decided_at = parse_timestamp(application.get("decided_at"))
        return decided_at is not None and decided_at < cutoff

    expired = []
    for application in store.list("ijazah_applications", stale, status=workflow.APPROVED):
        try:
            expire_application(store, None, application["id"], notes="Expired without a certificate")
        except IjazahError as e:
            logger.error(f"Could not expire application {application['id']}: {e.detail}")
            continue
        expired.append(application["id"])

    if expired:
        logger.info(f"Expired {len(expired)} stale approved applications")
    return expired
