"""Status workflows for ijazah applications and certificates.

Application statuses move through an explicit transition table::

    draft -> submitted -> under_review -> interview_scheduled -> approved | rejected
    approved -> completed (certificate issued) | expired
    any open status -> withdrawn

Every transition is validated against the table and its guards, stamps
the matching timestamp fields, appends an entry to the record's
``history`` and is written with an optimistic version check.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, Optional

from .exceptions import ConcurrencyError, InvalidTransitionError, ValidationFailedError
from .store import JsonStore, utc_now

logger = logging.getLogger(__name__)

DRAFT = "draft"
SUBMITTED = "submitted"
UNDER_REVIEW = "under_review"
INTERVIEW_SCHEDULED = "interview_scheduled"
APPROVED = "approved"
REJECTED = "rejected"
EXPIRED = "expired"
WITHDRAWN = "withdrawn"
COMPLETED = "completed"

APPLICATION_STATUSES = (
    DRAFT,
    SUBMITTED,
    UNDER_REVIEW,
    INTERVIEW_SCHEDULED,
    APPROVED,
    REJECTED,
    EXPIRED,
    WITHDRAWN,
    COMPLETED,
)

APPLICATION_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    DRAFT: frozenset({SUBMITTED, WITHDRAWN}),
    SUBMITTED: frozenset({UNDER_REVIEW, WITHDRAWN}),
    UNDER_REVIEW: frozenset({INTERVIEW_SCHEDULED, APPROVED, REJECTED, WITHDRAWN}),
    INTERVIEW_SCHEDULED: frozenset({UNDER_REVIEW, APPROVED, REJECTED, WITHDRAWN}),
    APPROVED: frozenset({COMPLETED, EXPIRED}),
    REJECTED: frozenset(),
    EXPIRED: frozenset(),
    WITHDRAWN: frozenset(),
    COMPLETED: frozenset(),
}

# Statuses a reviewer still has to act on
OPEN_REVIEW_STATUSES = frozenset({SUBMITTED, UNDER_REVIEW, INTERVIEW_SCHEDULED})

CERTIFICATE_ACTIVE = "active"
CERTIFICATE_REVOKED = "revoked"
CERTIFICATE_EXPIRED = "expired"

CERTIFICATE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    CERTIFICATE_ACTIVE: frozenset({CERTIFICATE_REVOKED, CERTIFICATE_EXPIRED}),
    CERTIFICATE_REVOKED: frozenset(),
    CERTIFICATE_EXPIRED: frozenset(),
}

SCHOLAR_APPLICATION_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"approved", "rejected"}),
    "approved": frozenset(),
    "rejected": frozenset(),
}

# Field stamped with the transition time when entering a status
_ENTRY_TIMESTAMPS = {
    SUBMITTED: "submitted_at",
    APPROVED: "decided_at",
    REJECTED: "decided_at",
    WITHDRAWN: "withdrawn_at",
    EXPIRED: "expired_at",
    COMPLETED: "completed_at",
}


def is_terminal(status: str, table: Dict[str, FrozenSet[str]] = APPLICATION_TRANSITIONS) -> bool:
    return not table.get(status)


def check_transition(
    current: str,
    target: str,
    table: Dict[str, FrozenSet[str]] = APPLICATION_TRANSITIONS,
    entity: str = "application",
) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is in the table."""
    if current not in table:
        raise InvalidTransitionError(entity, current, target)
    allowed = table[current]
    if target not in allowed:
        raise InvalidTransitionError(entity, current, target, allowed)


# Guards

def _require_notes(application: Dict[str, Any], context: Dict[str, Any]) -> None:
    if not (context.get("notes") or "").strip():
        raise ValidationFailedError("A reason is required when rejecting an application")


def _require_interview_time(application: Dict[str, Any], context: Dict[str, Any]) -> None:
    if not context.get("interview_at"):
        raise ValidationFailedError("interview_at is required to schedule an interview")


def _require_complete_sections(application: Dict[str, Any], context: Dict[str, Any]) -> None:
    missing = [
        section
        for section in ("personal_info", "academic_background", "quran_experience")
        if not application.get(section)
    ]
    if missing:
        raise ValidationFailedError(
            f"Application cannot be submitted; missing sections: {', '.join(missing)}"
        )


GUARDS: Dict[str, Callable[[Dict[str, Any], Dict[str, Any]], None]] = {
    SUBMITTED: _require_complete_sections,
    REJECTED: _require_notes,
    INTERVIEW_SCHEDULED: _require_interview_time,
}


def transition_application(
    store: JsonStore,
    application_id: str,
    target: str,
    actor_id: Optional[str],
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
    interview_at: Optional[str] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Move an application to ``target`` status.

    Args:
        store: Record store
        application_id: Application identifier
        target: Desired status
        actor_id: User performing the transition (None for system sweeps)
        notes: Reviewer or interview notes; required for rejection
        expected_version: Version the caller last saw; stale versions fail
        interview_at: ISO datetime, required when scheduling an interview
        changes: Extra fields written in the same update (e.g. scholar claim)

    Returns:
        The updated application

    Raises:
        NotFoundError: If the application does not exist
        ConcurrencyError: If ``expected_version`` is stale
        InvalidTransitionError: If the transition is not allowed
        ValidationFailedError: If a guard rejects the transition
    """
    application = store.require("ijazah_applications", application_id, "Application")
    current = application.get("status", DRAFT)

    if expected_version is not None and expected_version != application.get("version"):
        raise ConcurrencyError(
            f"Application '{application_id}' is at version {application.get('version')}, "
            f"expected {expected_version}"
        )

    check_transition(current, target)
    guard = GUARDS.get(target)
    if guard:
        guard(application, {"notes": notes, "interview_at": interview_at})

    now = utc_now().isoformat()
    update: Dict[str, Any] = dict(changes or {})
    update["status"] = target

    stamp_field = _ENTRY_TIMESTAMPS.get(target)
    if stamp_field:
        update[stamp_field] = now

    if target == UNDER_REVIEW and not application.get("reviewed_at"):
        update["reviewed_at"] = now
    if target == INTERVIEW_SCHEDULED:
        update["interview_scheduled_at"] = interview_at
        if notes:
            update["interview_notes"] = notes
    if current == INTERVIEW_SCHEDULED and target in (APPROVED, REJECTED):
        update["interview_completed_at"] = now
    if target in (APPROVED, REJECTED) and notes is not None:
        update["reviewer_notes"] = notes

    history = list(application.get("history") or [])
    history.append({
        "from_status": current,
        "to_status": target,
        "actor_id": actor_id,
        "at": now,
        "notes": notes,
    })
    update["history"] = history

    updated = store.update(
        "ijazah_applications",
        application_id,
        update,
        expected_version=application.get("version"),
    )
    logger.info(
        "Application %s moved %s -> %s by %s",
        application.get("application_number", application_id),
        current,
        target,
        actor_id or "system",
    )
    return updated
