"""Scholar onboarding, self-service views and the public directory.

Scholar records share their id with the scholar's profile.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import json
import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from . import notification_service
from .auth import find_profile_by_email, refresh_token_roles
from .exceptions import ConflictError, NotFoundError, ValidationFailedError
from .policy import ROLE_SCHOLAR, AccessPolicy, normalize_roles
from .store import JsonStore, utc_now
from .workflow import SCHOLAR_APPLICATION_TRANSITIONS, check_transition

logger = logging.getLogger(__name__)

SCHOLAR_COUNTERS = ("total_ijazat_issued", "acceptance_rate", "students_count")
VISIBILITY = ("public", "private")


def parse_json_field(text: Optional[str], fallback_key: str) -> Any:
    """Parse free text as JSON, wrapping non-JSON text as ``{fallback_key: text}``."""
    if text is None or not str(text).strip():
        return {}
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return {fallback_key: text}


# Scholar applications

def apply_for_scholar(store: JsonStore, user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Submit a "become a scholar" application.

    Raises:
        ConflictError: If the user is already a scholar or has a pending application
    """
    user_id = user["user_id"]
    profile = store.require("profiles", user_id, "Profile")
    if ROLE_SCHOLAR in (profile.get("roles") or []):
        raise ConflictError("You are already a scholar")
    if store.find_one("scholar_applications", user_id=user_id, status="pending"):
        raise ConflictError("You already have a pending scholar application")

    application = store.insert("scholar_applications", {
        "user_id": user_id,
        "specialization": payload["specialization"].strip(),
        "bio": payload["bio"].strip(),
        "credentials": parse_json_field(payload.get("credentials"), "text"),
        "sanad_chain": parse_json_field(payload.get("sanad_chain"), "chain"),
        "documents": payload.get("documents") or [],
        "status": "pending",
        "reviewer_id": None,
        "reviewer_notes": None,
        "reviewed_at": None,
    })
    logger.info(f"Scholar application submitted by {user.get('email')}", extra={"user_id": user_id})
    return application


def list_scholar_applications(store: JsonStore, status: Optional[str] = None) -> List[Dict[str, Any]]:
    applications = store.list("scholar_applications", **({"status": status} if status else {}))
    for application in applications:
        profile = store.get("profiles", application["user_id"]) or {}
        application["applicant"] = {
            "email": profile.get("email"),
            "full_name": profile.get("full_name"),
            "full_name_arabic": profile.get("full_name_arabic"),
        }
    return applications


def my_scholar_applications(store: JsonStore, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return store.list("scholar_applications", user_id=user["user_id"])


def _decide(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    target: str,
    notes: Optional[str],
) -> Dict[str, Any]:
    policy = AccessPolicy(user)
    policy.require(policy.can_decide_scholar_applications, "decide scholar applications", application_id)
    application = store.require("scholar_applications", application_id, "Scholar application")
    check_transition(application["status"], target, SCHOLAR_APPLICATION_TRANSITIONS, "scholar application")
    return store.update(
        "scholar_applications",
        application_id,
        {
            "status": target,
            "reviewer_id": user["user_id"],
            "reviewer_notes": notes,
            "reviewed_at": utc_now().isoformat(),
        },
        expected_version=application["version"],
    )


def approve_scholar_application(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """Approve a pending application and turn the applicant into a scholar."""
    application = _decide(store, user, application_id, "approved", notes)
    make_scholar(
        store,
        application["user_id"],
        specialization=application["specialization"],
        bio_detailed=application.get("bio"),
        credentials=application.get("credentials") or {},
        sanad_chain=application.get("sanad_chain") or {},
    )
    notification_service.notify(
        store,
        application["user_id"],
        "system",
        "تمت الموافقة على طلب الانضمام كشيخ",
        "مبارك! تمت الموافقة على طلبك ويمكنك الآن مراجعة طلبات الإجازة",
        priority="high",
        action_url="/scholar",
        action_label="لوحة الشيخ",
    )
    logger.info(f"Scholar application {application_id} approved by {user['user_id']}")
    return application


def reject_scholar_application(
    store: JsonStore,
    user: Dict[str, Any],
    application_id: str,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    if not (notes or "").strip():
        raise ValidationFailedError("A reason is required when rejecting a scholar application")
    application = _decide(store, user, application_id, "rejected", notes)
    notification_service.notify(
        store,
        application["user_id"],
        "system",
        "نتيجة طلب الانضمام كشيخ",
        f"نعتذر، لم تتم الموافقة على طلبك.\n{notes}",
    )
    logger.info(f"Scholar application {application_id} rejected by {user['user_id']}")
    return application


# Scholar records

def make_scholar(
    store: JsonStore,
    user_id: str,
    specialization: str,
    bio_detailed: Optional[str] = None,
    credentials: Any = None,
    sanad_chain: Any = None,
) -> Dict[str, Any]:
    """Grant the scholar role and create or refresh the scholar record.

    Counters of an existing record are preserved.
    """
    profile = store.require("profiles", user_id, "Profile")
    roles = normalize_roles(list(profile.get("roles") or []) + [ROLE_SCHOLAR])
    store.update("profiles", user_id, {"roles": roles})
    refresh_token_roles(user_id, roles)

    existing = store.get("scholars", user_id) or {}
    record = {
        "id": user_id,
        "specialization": specialization,
        "bio_detailed": bio_detailed,
        "credentials": credentials if credentials is not None else {},
        "sanad_chain": sanad_chain if sanad_chain is not None else {},
        "is_active": True,
        "profile_visibility": existing.get("profile_visibility", "public"),
    }
    for counter in SCHOLAR_COUNTERS:
        record[counter] = existing.get(counter, 0)
    scholar = store.upsert("scholars", record)
    logger.info(f"User {user_id} is now a scholar", extra={"roles": roles})
    return scholar


def create_scholar(store: JsonStore, user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Admin: turn an existing registered account into a scholar."""
    policy = AccessPolicy(user)
    policy.require(policy.can_manage_users, "create scholars")
    profile = find_profile_by_email(store, payload["email"])
    if not profile:
        raise NotFoundError(
            f"No account registered with {payload['email']}; the scholar must register first"
        )

    profile_changes = {
        k: payload[k]
        for k in ("full_name", "full_name_arabic", "phone_number")
        if payload.get(k)
    }
    if profile_changes:
        store.update("profiles", profile["id"], profile_changes)

    return make_scholar(
        store,
        profile["id"],
        specialization=payload["specialization"],
        bio_detailed=payload.get("bio_detailed"),
        credentials=parse_json_field(payload.get("credentials"), "text"),
        sanad_chain=parse_json_field(payload.get("sanad_chain"), "chain"),
    )


def deactivate_scholar(store: JsonStore, user: Dict[str, Any], scholar_id: str) -> Dict[str, Any]:
    policy = AccessPolicy(user)
    policy.require(policy.can_manage_users, "deactivate scholars", scholar_id)
    store.require("scholars", scholar_id, "Scholar")
    return store.update("scholars", scholar_id, {"is_active": False})


def get_biography(store: JsonStore, user: Dict[str, Any]) -> Dict[str, Any]:
    return store.require("scholars", user["user_id"], "Scholar")


def update_biography(store: JsonStore, user: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    store.require("scholars", user["user_id"], "Scholar")
    allowed = {
        k: v
        for k, v in changes.items()
        if k in ("specialization", "bio_detailed", "profile_visibility", "sanad_chain")
    }
    if "profile_visibility" in allowed and allowed["profile_visibility"] not in VISIBILITY:
        raise ValidationFailedError("profile_visibility must be 'public' or 'private'")
    if isinstance(allowed.get("sanad_chain"), str):
        allowed["sanad_chain"] = parse_json_field(allowed["sanad_chain"], "chain")
    return store.update("scholars", user["user_id"], allowed)


def recompute_acceptance_rate(store: JsonStore, scholar_id: str) -> Optional[float]:
    """Recompute approved / (approved + rejected) x 100 for a scholar."""
    if store.get("scholars", scholar_id) is None:
        return None
    statuses = Counter(a.get("status") for a in store.list("ijazah_applications", scholar_id=scholar_id))
    # Completed applications were approved before their certificate was issued
    approved = statuses["approved"] + statuses["completed"] + statuses["expired"]
    decided = approved + statuses["rejected"]
    rate = round(approved / decided * 100, 1) if decided else 0.0
    students = len({a["user_id"] for a in store.list("ijazah_applications", scholar_id=scholar_id)})
    store.update("scholars", scholar_id, {"acceptance_rate": rate, "students_count": students})
    return rate


def increment_ijazat_issued(store: JsonStore, scholar_id: Optional[str]) -> None:
    if not scholar_id:
        return
    scholar = store.get("scholars", scholar_id)
    if scholar is None:
        return
    store.update("scholars", scholar_id, {"total_ijazat_issued": scholar.get("total_ijazat_issued", 0) + 1})


# Scholar views

def list_students(store: JsonStore, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Distinct students of the scholar's applications with per-student counts."""
    students: Dict[str, Dict[str, Any]] = {}
    for application in store.list("ijazah_applications", scholar_id=user["user_id"]):
        entry = students.get(application["user_id"])
        if entry is None:
            profile = store.get("profiles", application["user_id"]) or {}
            entry = students[application["user_id"]] = {
                "user_id": application["user_id"],
                "full_name": profile.get("full_name") or (application.get("personal_info") or {}).get("full_name"),
                "full_name_arabic": profile.get("full_name_arabic"),
                "email": profile.get("email"),
                "applications_count": 0,
                "certificates_count": 0,
                "latest_status": application["status"],
                "latest_application_at": application["created_at"],
            }
        entry["applications_count"] += 1

    for certificate in store.list("ijazah_certificates", scholar_id=user["user_id"]):
        if certificate.get("user_id") in students:
            students[certificate["user_id"]]["certificates_count"] += 1

    return sorted(students.values(), key=lambda s: s["latest_application_at"], reverse=True)


def list_scholar_certificates(store: JsonStore, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return store.list("ijazah_certificates", scholar_id=user["user_id"])


def scholar_dashboard(store: JsonStore, user: Dict[str, Any]) -> Dict[str, Any]:
    applications = store.list("ijazah_applications", scholar_id=user["user_id"])
    by_status = Counter(a["status"] for a in applications)
    unassigned = store.count("ijazah_applications", status="submitted", scholar_id=None)
    scholar = store.get("scholars", user["user_id"]) or {}
    return {
        "applications_by_status": dict(by_status),
        "assigned_total": len(applications),
        "pending_review": by_status["submitted"] + by_status["under_review"] + by_status["interview_scheduled"],
        "unassigned_submitted": unassigned,
        "certificates_issued": store.count("ijazah_certificates", scholar_id=user["user_id"]),
        "acceptance_rate": scholar.get("acceptance_rate", 0.0),
        "students_count": len({a["user_id"] for a in applications}),
    }


def public_directory(
    store: JsonStore,
    search: Optional[str] = None,
    specialization: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Active, publicly visible scholars ordered by certificates issued."""
    directory = []
    for scholar in store.list("scholars", is_active=True):
        if scholar.get("profile_visibility", "public") != "public":
            continue
        profile = store.get("profiles", scholar["id"]) or {}
        entry = {
            "id": scholar["id"],
            "full_name": profile.get("full_name"),
            "full_name_arabic": profile.get("full_name_arabic"),
            "avatar_url": profile.get("avatar_url"),
            "specialization": scholar.get("specialization"),
            "bio_detailed": scholar.get("bio_detailed"),
            "acceptance_rate": scholar.get("acceptance_rate", 0.0),
            "total_ijazat_issued": scholar.get("total_ijazat_issued", 0),
        }
        if search:
            needle = search.lower()
            haystack = " ".join(
                str(entry.get(k) or "") for k in ("full_name", "full_name_arabic", "specialization")
            ).lower()
            if needle not in haystack:
                continue
        if specialization and specialization.lower() not in (entry["specialization"] or "").lower():
            continue
        directory.append(entry)

    directory.sort(key=lambda s: s["total_ijazat_issued"], reverse=True)
    return directory
