"""Aggregate statistics for the admin overview and user dashboards.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from collections import Counter
from typing import Any, Dict

from . import notification_service, scholar_service
from .policy import VALID_ROLES, AccessPolicy, normalize_roles
from .store import JsonStore
from .workflow import OPEN_REVIEW_STATUSES


def admin_stats(store: JsonStore) -> Dict[str, Any]:
    """Platform-wide counters shown on the admin overview."""
    applications = store.list("ijazah_applications")
    certificates = store.list("ijazah_certificates")
    profiles = store.list("profiles")
    scholar_applications = store.list("scholar_applications")

    users_by_role = {role: 0 for role in VALID_ROLES}
    for profile in profiles:
        for role in normalize_roles(profile.get("roles")):
            if role in users_by_role:
                users_by_role[role] += 1

    certificates_by_status = Counter(c.get("status") for c in certificates)
    return {
        "applications": {
            "total": len(applications),
            "by_status": dict(Counter(a.get("status") for a in applications)),
            "by_type": dict(Counter(a.get("ijazah_type") for a in applications)),
            "awaiting_review": sum(1 for a in applications if a.get("status") in OPEN_REVIEW_STATUSES),
        },
        "certificates": {
            "total": len(certificates),
            "active": certificates_by_status.get("active", 0),
            "revoked": certificates_by_status.get("revoked", 0),
            "by_type": dict(Counter(c.get("ijazah_type") for c in certificates)),
        },
        "users": {
            "total": len(profiles),
            "by_role": users_by_role,
        },
        "scholar_applications": dict(Counter(s.get("status") for s in scholar_applications)),
        "verifications": {
            "total": sum(c.get("verification_count", 0) for c in certificates),
            "failed": store.count("verification_logs", success=False),
        },
    }


def dashboard(store: JsonStore, user: Dict[str, Any]) -> Dict[str, Any]:
    """Role-aware summary for the signed-in user."""
    policy = AccessPolicy(user)
    applications = store.list("ijazah_applications", user_id=user["user_id"])
    summary: Dict[str, Any] = {
        "roles": policy.roles,
        "applications": {
            "total": len(applications),
            "by_status": dict(Counter(a.get("status") for a in applications)),
        },
        "certificates": store.count("ijazah_certificates", user_id=user["user_id"]),
        "unread_notifications": notification_service.list_notifications(
            store, user["user_id"], limit=0
        )["unread_count"],
        "recent_applications": applications[:5],
    }

    if policy.is_scholar and store.get("scholars", user["user_id"]):
        summary["scholar"] = scholar_service.scholar_dashboard(store, user)
    if policy.is_admin:
        review_queue = store.list(
            "ijazah_applications", lambda a: a.get("status") in OPEN_REVIEW_STATUSES
        )
        summary["admin"] = {
            "review_queue": len(review_queue),
            "unassigned": sum(1 for a in review_queue if not a.get("scholar_id")),
            "pending_scholar_applications": store.count("scholar_applications", status="pending"),
        }
    return summary
