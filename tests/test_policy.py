"""Tests for role normalization, route requirements and the access policy.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import pytest

from ijazah_api.exceptions import PermissionDeniedError
from ijazah_api.policy import AccessPolicy, normalize_roles, route_requirement


def policy_for(user_id, *roles, scholar_active=True):
    scholar_record = {"id": user_id, "is_active": scholar_active} if "scholar" in roles else None
    user = {"user_id": user_id, "email": f"{user_id}@example.com", "roles": list(roles)}
    return AccessPolicy(user, scholar_record)


class TestRoles:
    """Test role helpers."""

    def test_normalize_roles(self):
        assert normalize_roles(None) == ["student"]
        assert normalize_roles([]) == ["student"]
        assert normalize_roles(["student", "admin", "student", ""]) == ["student", "admin"]

    @pytest.mark.parametrize("path,required", [
        ("/admin", "admin"),
        ("/admin/users", "admin"),
        ("/scholar/applications", "scholar"),
        ("/scholar", "scholar"),
        ("/scholars", None),
        ("/scholar-applications/me", None),
        ("/administrator", None),
        ("/applications", None),
    ])
    def test_route_requirement(self, path, required):
        assert route_requirement(path) == required

    def test_admin_satisfies_scholar_routes(self):
        assert policy_for("a", "admin").satisfies("scholar")
        assert not policy_for("s", "scholar").satisfies("admin")
        assert policy_for("u").satisfies(None)


class TestApplicationPolicy:
    """Test who may view and review applications."""

    def test_owner_views_own_draft(self):
        application = {"user_id": "student-1", "status": "draft", "scholar_id": None}

        assert policy_for("student-1", "student").can_view_application(application)
        assert not policy_for("scholar-1", "scholar").can_view_application(application)

    def test_scholar_views_unassigned_submission(self):
        application = {"user_id": "student-1", "status": "submitted", "scholar_id": None}

        assert policy_for("scholar-1", "scholar").can_view_application(application)
        assert not policy_for("student-2", "student").can_view_application(application)

    def test_assigned_scholar_only(self):
        application = {"user_id": "student-1", "status": "under_review", "scholar_id": "scholar-1"}

        assert policy_for("scholar-1", "scholar").can_review_application(application)
        assert not policy_for("scholar-2", "scholar").can_review_application(application)
        assert not policy_for("scholar-2", "scholar").can_view_application(application)
        assert policy_for("admin-1", "admin").can_review_application(application)

    def test_scholar_cannot_review_own_application(self):
        application = {"user_id": "scholar-1", "status": "submitted", "scholar_id": None}

        assert not policy_for("scholar-1", "student", "scholar").can_review_application(application)

    def test_deactivated_scholar_cannot_review(self):
        application = {"user_id": "student-1", "status": "under_review", "scholar_id": "scholar-1"}

        assert not policy_for("scholar-1", "scholar", scholar_active=False).can_review_application(application)
        assert not policy_for("scholar-1", "scholar", scholar_active=False).can_issue_certificate(application)

    def test_scholar_role_without_record_cannot_review(self):
        application = {"user_id": "student-1", "status": "submitted", "scholar_id": None}
        policy = AccessPolicy({"user_id": "scholar-1", "roles": ["scholar"]})

        assert not policy.can_review_application(application)
        assert policy.can_view_application(application)

    def test_only_owner_modifies(self):
        application = {"user_id": "student-1", "status": "draft"}

        assert policy_for("student-1").can_modify_application(application)
        assert not policy_for("admin-1", "admin").can_modify_application(application)
        assert policy_for("admin-1", "admin").can_withdraw_application(application)


class TestCertificatePolicy:
    """Test certificate visibility."""

    def test_view_certificate(self):
        certificate = {"user_id": "student-1", "scholar_id": "scholar-1"}

        assert policy_for("student-1").can_view_certificate(certificate)
        assert policy_for("scholar-1", "scholar").can_view_certificate(certificate)
        assert policy_for("admin-1", "admin").can_view_certificate(certificate)
        assert not policy_for("scholar-2", "scholar").can_view_certificate(certificate)


class TestRequire:
    """Test policy enforcement."""

    def test_require_raises(self):
        policy = policy_for("student-1")

        with pytest.raises(PermissionDeniedError) as exc_info:
            policy.require(policy.can_manage_users, "change user roles")
        assert "student-1@example.com" in exc_info.value.detail
        assert exc_info.value.status_code == 403

    def test_require_allows(self):
        policy = policy_for("admin-1", "admin")

        policy.require(policy.can_manage_settings, "update settings")
