"""In-app notifications, email fan-out and per-user delivery preferences.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from . import email_service
from .exceptions import NotFoundError, ValidationFailedError
from .models import NotificationPreferencesModel
from .store import JsonStore, utc_now

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("application_status", "certificate_issued", "review_request", "system")
PRIORITIES = ("low", "normal", "high", "urgent")

# Notification type -> preference suffix (email_<suffix>, inapp_<suffix>)
_PREFERENCE_KEYS = {
    "application_status": "application_status",
    "certificate_issued": "certificate_issued",
    "review_request": "review_request",
    "system": "system_updates",
}

DEFAULT_LIST_LIMIT = 20


def default_preferences() -> Dict[str, Any]:
    return NotificationPreferencesModel().model_dump()


def get_preferences(store: JsonStore, user_id: str) -> Dict[str, Any]:
    """Return a user's preferences merged over the defaults."""
    prefs = default_preferences()
    stored = store.find_one("notification_preferences", user_id=user_id)
    if stored:
        prefs.update({k: v for k, v in stored.items() if k in prefs})
    prefs["user_id"] = user_id
    return prefs


def update_preferences(store: JsonStore, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Upsert preferences; only the given keys change."""
    known = default_preferences()
    unknown = sorted(set(changes) - set(known))
    if unknown:
        raise ValidationFailedError(f"Unknown preference keys: {', '.join(unknown)}")

    stored = store.find_one("notification_preferences", user_id=user_id)
    if stored:
        store.update("notification_preferences", stored["id"], changes)
    else:
        record = dict(known)
        record.update(changes)
        record["user_id"] = user_id
        store.insert("notification_preferences", record)

    logger.info(f"Updated notification preferences for {user_id}", extra={"keys": sorted(changes)})
    return get_preferences(store, user_id)


def notify(
    store: JsonStore,
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    priority: str = "normal",
    action_url: Optional[str] = None,
    action_label: Optional[str] = None,
    related_application_id: Optional[str] = None,
    related_certificate_id: Optional[str] = None,
    email: Optional[Tuple[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Deliver a notification according to the recipient's preferences.

    Args:
        store: Record store
        user_id: Recipient
        notification_type: One of NOTIFICATION_TYPES
        title: Short title
        message: Body text
        priority: One of PRIORITIES
        action_url: Optional link shown with the notification
        action_label: Optional label for the link
        related_application_id: Optional application reference
        related_certificate_id: Optional certificate reference
        email: Optional ``(template, data)`` pair sent when email is enabled

    Returns:
        ``{"in_app": <notification or None>, "email": <send result or None>}``
    """
    if notification_type not in NOTIFICATION_TYPES:
        raise ValidationFailedError(f"Unknown notification type: {notification_type}")
    if priority not in PRIORITIES:
        raise ValidationFailedError(f"Unknown priority: {priority}")

    prefs = get_preferences(store, user_id)
    key = _PREFERENCE_KEYS[notification_type]
    delivered: Dict[str, Any] = {"in_app": None, "email": None}

    if prefs.get(f"inapp_{key}", True):
        delivered["in_app"] = store.insert("notifications", {
            "user_id": user_id,
            "type": notification_type,
            "title": title,
            "message": message,
            "is_read": False,
            "read_at": None,
            "priority": priority,
            "action_url": action_url,
            "action_label": action_label,
            "related_application_id": related_application_id,
            "related_certificate_id": related_certificate_id,
        })

    if email and prefs.get(f"email_{key}", True) and prefs.get("digest_frequency") == "instant":
        profile = store.get("profiles", user_id)
        if profile and profile.get("email"):
            template, data = email
            data = dict(data)
            data.setdefault("recipient_name", profile.get("full_name") or profile["email"])
            delivered["email"] = email_service.send_email(profile["email"], template, data)

    logger.debug(
        "Notification %s for %s (in_app=%s, email=%s)",
        notification_type,
        user_id,
        delivered["in_app"] is not None,
        delivered["email"] is not None,
    )
    return delivered


def notify_many(store: JsonStore, user_ids: List[str], *args: Any, **kwargs: Any) -> int:
    """Send the same notification to several users; returns in-app deliveries."""
    count = 0
    for user_id in dict.fromkeys(user_ids):
        if notify(store, user_id, *args, **kwargs)["in_app"] is not None:
            count += 1
    return count


def list_notifications(
    store: JsonStore,
    user_id: str,
    limit: int = DEFAULT_LIST_LIMIT,
    unread_only: bool = False,
) -> Dict[str, Any]:
    """List a user's notifications, newest first, with the unread count."""
    all_items = store.list("notifications", user_id=user_id)
    unread_count = sum(1 for n in all_items if not n.get("is_read"))
    items = [n for n in all_items if not n.get("is_read")] if unread_only else all_items
    return {
        "notifications": items[:max(limit, 0)],
        "unread_count": unread_count,
        "total": len(all_items),
    }


def mark_read(store: JsonStore, user_id: str, notification_id: str) -> Dict[str, Any]:
    """Mark one of the user's notifications as read."""
    notification = store.get("notifications", notification_id)
    if not notification or notification.get("user_id") != user_id:
        raise NotFoundError(f"Notification '{notification_id}' not found")
    if notification.get("is_read"):
        return notification
    return store.update(
        "notifications",
        notification_id,
        {"is_read": True, "read_at": utc_now().isoformat()},
    )


def mark_all_read(store: JsonStore, user_id: str) -> int:
    """Mark every unread notification of the user as read; returns the count."""
    unread = store.list("notifications", user_id=user_id, is_read=False)
    for notification in unread:
        store.update("notifications", notification["id"], {"is_read": True, "read_at": utc_now().isoformat()})
    logger.info(f"Marked {len(unread)} notifications read for {user_id}")
    return len(unread)
