"""Role-based access policy for the ijazah platform.

This module is the single place where user roles are interpreted. Routers
and services ask an ``AccessPolicy`` whether the current user may perform
an action instead of inspecting role lists themselves.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .exceptions import PermissionDeniedError
from .logging_config import setup_logging

# Configure logging
logger = setup_logging('policy')

ROLE_STUDENT = "student"
ROLE_SCHOLAR = "scholar"
ROLE_ADMIN = "admin"
VALID_ROLES = (ROLE_STUDENT, ROLE_SCHOLAR, ROLE_ADMIN)

# Path prefix -> role required to access it
ROUTE_REQUIREMENTS = (
    ("/admin", ROLE_ADMIN),
    ("/scholar", ROLE_SCHOLAR),
)


def normalize_roles(roles: Optional[List[str]]) -> List[str]:
    """Return a de-duplicated role list; no roles means student."""
    cleaned = [r for r in dict.fromkeys(roles or []) if r]
    return cleaned or [ROLE_STUDENT]


def route_requirement(path: str) -> Optional[str]:
    """Return the role required for a request path, if any.

    Args:
        path: Request path (e.g. ``/admin/users``)

    Returns:
        Required role name, or None for paths open to any authenticated user
    """
    for prefix, role in ROUTE_REQUIREMENTS:
        if path == prefix or path.startswith(prefix + "/"):
            return role
    return None


class AccessPolicy:
    """Authorization decisions for one authenticated user."""

    def __init__(self, user_context: Dict[str, Any], scholar_record: Optional[Dict[str, Any]] = None):
        """Initialize the policy with the user's token context.

        Args:
            user_context: Dictionary containing user_id, email and roles
            scholar_record: The user's scholar record, when review rights matter
        """
        self.user_id = user_context.get("user_id")
        self.email = user_context.get("email")
        self.roles = normalize_roles(user_context.get("roles"))
        self.scholar_record = scholar_record

    # Roles

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)

    @property
    def is_scholar(self) -> bool:
        """Scholar capabilities; admins have them too."""
        return self.has_role(ROLE_SCHOLAR) or self.is_admin

    @property
    def is_active_scholar(self) -> bool:
        """Scholar role backed by an active scholar record."""
        return (
            self.has_role(ROLE_SCHOLAR)
            and self.scholar_record is not None
            and bool(self.scholar_record.get("is_active"))
        )

    def satisfies(self, required_role: Optional[str]) -> bool:
        """Check whether the user meets a route's role requirement."""
        if required_role is None:
            return True
        if required_role == ROLE_SCHOLAR:
            return self.is_scholar
        return self.has_role(required_role)

    # Applications

    def is_owner(self, record: Dict[str, Any]) -> bool:
        return bool(self.user_id) and record.get("user_id") == self.user_id

    def can_view_application(self, application: Dict[str, Any]) -> bool:
        """Owner, assigned scholar, admin, or any scholar for unassigned non-drafts."""
        if self.is_admin or self.is_owner(application):
            return True
        if not self.is_scholar:
            return False
        scholar_id = application.get("scholar_id")
        if scholar_id == self.user_id:
            return True
        return scholar_id is None and application.get("status") != "draft"

    def can_review_application(self, application: Dict[str, Any]) -> bool:
        """Admin, or a scholar assigned to (or free to claim) the application.

        Scholars never review their own applications, and deactivated
        scholars review nothing.
        """
        if self.is_admin:
            return True
        if not self.is_active_scholar or self.is_owner(application):
            return False
        return application.get("scholar_id") in (None, self.user_id)

    def can_issue_certificate(self, application: Dict[str, Any]) -> bool:
        return self.can_review_application(application)

    def can_modify_application(self, application: Dict[str, Any]) -> bool:
        """Only the applicant edits or submits their own application."""
        return self.is_owner(application)

    def can_withdraw_application(self, application: Dict[str, Any]) -> bool:
        return self.is_owner(application) or self.is_admin

    # Certificates

    def can_view_certificate(self, certificate: Dict[str, Any]) -> bool:
        if self.is_admin or self.is_owner(certificate):
            return True
        return self.is_scholar and certificate.get("scholar_id") == self.user_id

    # Administration

    @property
    def can_manage_users(self) -> bool:
        return self.is_admin

    @property
    def can_manage_settings(self) -> bool:
        return self.is_admin

    @property
    def can_decide_scholar_applications(self) -> bool:
        return self.is_admin

    def require(self, allowed: bool, action: str, resource: Optional[str] = None) -> None:
        """Raise PermissionDeniedError unless ``allowed``; audit either way.

        Args:
            allowed: Result of a policy check
            action: Action being attempted (for the audit log and message)
            resource: Optional identifier of the resource involved

        Raises:
            PermissionDeniedError: If the action is not allowed
        """
        log_access_attempt(self.user_id, action, allowed, resource)
        if not allowed:
            raise PermissionDeniedError(
                f"User '{self.email or self.user_id}' is not allowed to {action}"
            )


def log_access_attempt(
    user_id: Optional[str],
    action: str,
    allowed: bool,
    resource: Optional[str] = None
):
    """Log access attempts for audit trail.

    Args:
        user_id: User attempting access
        action: Action being performed
        allowed: Whether access was granted
        resource: Optional specific resource being accessed
    """
    log_data = {
        "user_id": user_id,
        "action": action,
        "allowed": allowed,
        "resource": resource,
        "timestamp": datetime.now().isoformat()
    }

    if allowed:
        logger.debug("Access granted", extra=log_data)
    else:
        logger.warning("Access denied", extra=log_data)
