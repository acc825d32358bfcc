"""Tests for the application status workflow.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import pytest

from ijazah_api import workflow
from ijazah_api.exceptions import ConcurrencyError, InvalidTransitionError, ValidationFailedError
from ijazah_api.store import JsonStore


@pytest.fixture
def json_store(tmp_path):
    return JsonStore(tmp_path / "records")


@pytest.fixture
def draft(json_store):
    return json_store.insert("ijazah_applications", {
        "user_id": "student-1",
        "application_number": "IJZ-1-AAAAAA",
        "ijazah_type": "hifz",
        "status": workflow.DRAFT,
        "personal_info": {"full_name": "Student"},
        "academic_background": {"education_level": "secondary"},
        "quran_experience": {"memorization_level": "partial"},
        "history": [],
    })


def advance(json_store, application_id, *statuses, **kwargs):
    application = None
    for status in statuses:
        application = workflow.transition_application(json_store, application_id, status, "actor-1", **kwargs)
    return application


class TestTransitionTable:
    """Test the static transition table."""

    @pytest.mark.parametrize("current,target", [
        ("draft", "submitted"),
        ("submitted", "under_review"),
        ("under_review", "interview_scheduled"),
        ("interview_scheduled", "under_review"),
        ("interview_scheduled", "approved"),
        ("under_review", "rejected"),
        ("approved", "completed"),
        ("approved", "expired"),
        ("submitted", "withdrawn"),
    ])
    def test_allowed(self, current, target):
        workflow.check_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("draft", "approved"),
        ("submitted", "approved"),
        ("approved", "withdrawn"),
        ("rejected", "under_review"),
        ("completed", "expired"),
    ])
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionError) as exc_info:
            workflow.check_transition(current, target)

        assert exc_info.value.current == current
        assert exc_info.value.target == target
        assert exc_info.value.status_code == 409

    def test_unknown_status(self):
        with pytest.raises(InvalidTransitionError):
            workflow.check_transition("archived", "submitted")

    def test_terminal_statuses(self):
        terminal = {s for s in workflow.APPLICATION_STATUSES if workflow.is_terminal(s)}

        assert terminal == {"rejected", "expired", "withdrawn", "completed"}

    def test_certificate_table(self):
        workflow.check_transition("active", "revoked", workflow.CERTIFICATE_TRANSITIONS, "certificate")

        with pytest.raises(InvalidTransitionError) as exc_info:
            workflow.check_transition("revoked", "active", workflow.CERTIFICATE_TRANSITIONS, "certificate")
        assert "certificate" in exc_info.value.detail


class TestTransitionApplication:
    """Test applying transitions to stored applications."""

    def test_submit_stamps_and_records_history(self, json_store, draft):
        updated = advance(json_store, draft["id"], workflow.SUBMITTED)

        assert updated["status"] == "submitted"
        assert updated["submitted_at"]
        assert updated["version"] == 2
        assert updated["history"] == [{
            "from_status": "draft",
            "to_status": "submitted",
            "actor_id": "actor-1",
            "at": updated["submitted_at"],
            "notes": None,
        }]

    def test_submit_requires_sections(self, json_store, draft):
        json_store.update("ijazah_applications", draft["id"], {"quran_experience": None})

        with pytest.raises(ValidationFailedError) as exc_info:
            advance(json_store, draft["id"], workflow.SUBMITTED)
        assert "quran_experience" in exc_info.value.detail

    def test_reject_requires_notes(self, json_store, draft):
        advance(json_store, draft["id"], workflow.SUBMITTED, workflow.UNDER_REVIEW)

        with pytest.raises(ValidationFailedError):
            advance(json_store, draft["id"], workflow.REJECTED, notes="   ")

    def test_interview_requires_time(self, json_store, draft):
        advance(json_store, draft["id"], workflow.SUBMITTED, workflow.UNDER_REVIEW)

        with pytest.raises(ValidationFailedError):
            advance(json_store, draft["id"], workflow.INTERVIEW_SCHEDULED)

    def test_review_timestamp_set_once(self, json_store, draft):
        first = advance(json_store, draft["id"], workflow.SUBMITTED, workflow.UNDER_REVIEW)
        workflow.transition_application(
            json_store, draft["id"], workflow.INTERVIEW_SCHEDULED, "actor-1", interview_at="2026-11-01T10:00:00+00:00"
        )

        again = advance(json_store, draft["id"], workflow.UNDER_REVIEW)

        assert again["reviewed_at"] == first["reviewed_at"]

    def test_approve_after_interview(self, json_store, draft):
        advance(json_store, draft["id"], workflow.SUBMITTED, workflow.UNDER_REVIEW)
        workflow.transition_application(
            json_store, draft["id"], workflow.INTERVIEW_SCHEDULED, "actor-1",
            interview_at="2026-11-01T10:00:00+00:00", notes="Surah al-Baqarah",
        )

        approved = workflow.transition_application(
            json_store, draft["id"], workflow.APPROVED, "actor-1", notes="Masha'Allah"
        )

        assert approved["interview_notes"] == "Surah al-Baqarah"
        assert approved["interview_completed_at"]
        assert approved["decided_at"]
        assert approved["reviewer_notes"] == "Masha'Allah"
        assert len(approved["history"]) == 4

    def test_changes_written_with_transition(self, json_store, draft):
        advance(json_store, draft["id"], workflow.SUBMITTED)

        updated = workflow.transition_application(
            json_store, draft["id"], workflow.UNDER_REVIEW, "scholar-1", changes={"scholar_id": "scholar-1"}
        )

        assert updated["scholar_id"] == "scholar-1"

    def test_stale_expected_version(self, json_store, draft):
        with pytest.raises(ConcurrencyError):
            workflow.transition_application(
                json_store, draft["id"], workflow.SUBMITTED, "actor-1", expected_version=5
            )

    def test_system_actor(self, json_store, draft):
        advance(json_store, draft["id"], workflow.SUBMITTED, workflow.UNDER_REVIEW, workflow.APPROVED)

        expired = workflow.transition_application(json_store, draft["id"], workflow.EXPIRED, None)

        assert expired["expired_at"]
        assert expired["history"][-1]["actor_id"] is None
