"""Profiles and user administration.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, List, Optional

from . import notification_service
from .auth import public_profile, refresh_token_roles, revoke_user_tokens
from .exceptions import ValidationFailedError
from .policy import ROLE_ADMIN, ROLE_SCHOLAR, VALID_ROLES, AccessPolicy, normalize_roles
from .store import JsonStore, utc_now

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "full_name",
    "full_name_arabic",
    "phone_number",
    "date_of_birth",
    "gender",
    "country",
    "city",
    "avatar_url",
    "bio",
)


def get_profile(store: JsonStore, user_id: str) -> Dict[str, Any]:
    return public_profile(store.require("profiles", user_id, "Profile"))


def update_profile(store: JsonStore, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Update the editable fields of the user's own profile."""
    store.require("profiles", user_id, "Profile")
    update = {}
    for key, value in changes.items():
        if key not in PROFILE_FIELDS:
            continue
        update[key] = value.isoformat() if hasattr(value, "isoformat") else value
    if not update:
        raise ValidationFailedError("No profile fields to update")
    return public_profile(store.update("profiles", user_id, update))


def list_users(store: JsonStore, role: Optional[str] = None) -> List[Dict[str, Any]]:
    if role and role not in VALID_ROLES:
        raise ValidationFailedError(f"Unknown role: {role}")
    profiles = store.list(
        "profiles",
        (lambda p: role in normalize_roles(p.get("roles"))) if role else None,
    )
    return [public_profile(p) for p in profiles]


def set_roles(store: JsonStore, actor: Dict[str, Any], user_id: str, roles: List[str]) -> Dict[str, Any]:
    """Replace a user's role list.

    Admins cannot remove their own admin role. Live tokens of the user pick
    up the new roles immediately.
    """
    policy = AccessPolicy(actor)
    policy.require(policy.can_manage_users, "change user roles", user_id)

    unknown = [r for r in roles if r not in VALID_ROLES]
    if unknown:
        raise ValidationFailedError(f"Unknown roles: {', '.join(unknown)}")
    roles = normalize_roles(roles)
    if user_id == actor["user_id"] and ROLE_ADMIN not in roles:
        raise ValidationFailedError("You cannot remove your own admin role")

    store.require("profiles", user_id, "Profile")
    updated = store.update("profiles", user_id, {"roles": roles})
    refresh_token_roles(user_id, roles)
    _sync_scholar_record(store, user_id, roles)
    logger.info(f"Roles of {user_id} set to {roles} by {actor['user_id']}")
    return public_profile(updated)


def _sync_scholar_record(store: JsonStore, user_id: str, roles: List[str]) -> None:
    scholar = store.get("scholars", user_id)
    if scholar is None:
        return
    is_active = ROLE_SCHOLAR in roles
    if scholar.get("is_active") != is_active:
        store.update("scholars", user_id, {"is_active": is_active})


def grant_role(store: JsonStore, user_id: str, role: str) -> Dict[str, Any]:
    """Add a role without an acting admin (CLI tooling)."""
    if role not in VALID_ROLES:
        raise ValidationFailedError(f"Unknown role: {role}")
    profile = store.require("profiles", user_id, "Profile")
    roles = normalize_roles(list(profile.get("roles") or []) + [role])
    updated = store.update("profiles", user_id, {"roles": roles})
    refresh_token_roles(user_id, roles)
    _sync_scholar_record(store, user_id, roles)
    return public_profile(updated)


def revoke_role(store: JsonStore, user_id: str, role: str) -> Dict[str, Any]:
    """Remove a role without an acting admin (CLI tooling)."""
    profile = store.require("profiles", user_id, "Profile")
    roles = normalize_roles([r for r in profile.get("roles") or [] if r != role])
    updated = store.update("profiles", user_id, {"roles": roles})
    refresh_token_roles(user_id, roles)
    _sync_scholar_record(store, user_id, roles)
    return public_profile(updated)


def disable_user(store: JsonStore, actor: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """Disable an account and revoke its live tokens."""
    policy = AccessPolicy(actor)
    policy.require(policy.can_manage_users, "disable users", user_id)
    if user_id == actor["user_id"]:
        raise ValidationFailedError("You cannot disable your own account")

    store.require("profiles", user_id, "Profile")
    updated = store.update("profiles", user_id, {"enabled": False, "disabled_at": utc_now().isoformat()})
    revoked = revoke_user_tokens(user_id)
    logger.warning(f"User {user_id} disabled by {actor['user_id']} ({revoked} tokens revoked)")
    return public_profile(updated)


def broadcast_system_notification(
    store: JsonStore,
    actor: Dict[str, Any],
    title: str,
    message: str,
    priority: str = "normal",
    role: Optional[str] = None,
) -> int:
    """Send a system notification to every enabled user (optionally one role)."""
    policy = AccessPolicy(actor)
    policy.require(policy.is_admin, "send system notifications")
    recipients = [
        p["id"]
        for p in store.list("profiles", enabled=True)
        if role is None or role in normalize_roles(p.get("roles"))
    ]
    delivered = notification_service.notify_many(
        store, recipients, "system", title, message, priority=priority
    )
    logger.info(f"System notification sent to {delivered} users", extra={"role": role})
    return delivered
