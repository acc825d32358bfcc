"""Tests for scholar onboarding, self-service and the public directory.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import pytest


@pytest.fixture
def scholar_application_payload():
    return {
        "specialization": "Qira'at al-Ashr",
        "bio": "I have taught Quran recitation for fifteen years in Madinah and hold ijazat in several narrations. " * 2,
        "credentials": "Ijazah in Hafs from Sheikh Ibrahim",
        "sanad_chain": '{"chain": ["Sheikh Ibrahim", "Sheikh Ahmad"]}',
    }


@pytest.fixture
def pending_application(test_client, student, scholar_application_payload):
    response = test_client.post("/scholar-applications", json=scholar_application_payload, headers=student["headers"])
    assert response.status_code == 201, response.text
    return response.json()


class TestScholarApplications:
    """Test the become-a-scholar flow."""

    def test_apply(self, pending_application):
        assert pending_application["status"] == "pending"
        assert pending_application["specialization"] == "Qira'at al-Ashr"
        assert pending_application["credentials"] == {"text": "Ijazah in Hafs from Sheikh Ibrahim"}
        assert pending_application["sanad_chain"] == {"chain": ["Sheikh Ibrahim", "Sheikh Ahmad"]}

    def test_apply_with_short_bio(self, test_client, student, scholar_application_payload):
        scholar_application_payload["bio"] = "Too short"

        response = test_client.post("/scholar-applications", json=scholar_application_payload, headers=student["headers"])

        assert response.status_code == 422

    def test_second_pending_application_refused(self, test_client, student, scholar_application_payload, pending_application):
        response = test_client.post("/scholar-applications", json=scholar_application_payload, headers=student["headers"])

        assert response.status_code == 409

    def test_existing_scholar_cannot_apply(self, test_client, scholar, scholar_application_payload):
        response = test_client.post("/scholar-applications", json=scholar_application_payload, headers=scholar["headers"])

        assert response.status_code == 409

    def test_list_my_scholar_applications(self, test_client, student, pending_application):
        response = test_client.get("/scholar-applications/me", headers=student["headers"])

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_admin_lists_pending_with_applicant(self, test_client, admin, pending_application):
        response = test_client.get("/admin/scholar-applications?status=pending", headers=admin["headers"])

        assert response.status_code == 200
        applications = response.json()["applications"]
        assert len(applications) == 1
        assert applications[0]["applicant"]["email"] == "student@example.com"

    def test_approve_grants_scholar_role(self, test_client, store, admin, student, pending_application):
        response = test_client.post(
            f"/admin/scholar-applications/{pending_application['id']}/approve",
            json={"notes": "Welcome"},
            headers=admin["headers"],
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["reviewer_id"] == admin["user_id"]

        profile = store.get("profiles", student["user_id"])
        assert profile["roles"] == ["student", "scholar"]
        scholar = store.get("scholars", student["user_id"])
        assert scholar["is_active"] is True
        assert scholar["total_ijazat_issued"] == 0
        assert scholar["bio_detailed"].startswith("I have taught")

        # Existing tokens pick up the new role
        assert test_client.get("/scholar/biography", headers=student["headers"]).status_code == 200

        inbox = test_client.get("/notifications", headers=student["headers"]).json()
        assert inbox["notifications"][0]["type"] == "system"

    def test_reject_requires_notes(self, test_client, admin, pending_application):
        response = test_client.post(
            f"/admin/scholar-applications/{pending_application['id']}/reject",
            json={},
            headers=admin["headers"],
        )

        assert response.status_code == 422

    def test_cannot_decide_twice(self, test_client, admin, pending_application):
        url = f"/admin/scholar-applications/{pending_application['id']}"
        test_client.post(f"{url}/reject", json={"notes": "Insufficient sanad"}, headers=admin["headers"])

        response = test_client.post(f"{url}/approve", headers=admin["headers"])

        assert response.status_code == 409

    def test_student_cannot_decide(self, test_client, student, pending_application):
        response = test_client.post(
            f"/admin/scholar-applications/{pending_application['id']}/approve", headers=student["headers"]
        )

        assert response.status_code == 403


class TestScholarSelfService:
    """Test biography, students, certificates and dashboard."""

    def test_get_biography(self, test_client, scholar):
        response = test_client.get("/scholar/biography", headers=scholar["headers"])

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == scholar["user_id"]
        assert data["specialization"] == "Qira'at and tajweed"

    def test_update_biography(self, test_client, scholar):
        response = test_client.put("/scholar/biography", json={
            "bio_detailed": "Updated biography",
            "sanad_chain": "Sheikh A from Sheikh B",
        }, headers=scholar["headers"])

        assert response.status_code == 200
        data = response.json()
        assert data["bio_detailed"] == "Updated biography"
        assert data["sanad_chain"] == {"chain": "Sheikh A from Sheikh B"}

    def test_invalid_visibility(self, test_client, scholar):
        response = test_client.put("/scholar/biography", json={"profile_visibility": "hidden"}, headers=scholar["headers"])

        assert response.status_code == 422

    def test_admin_without_scholar_record(self, test_client, admin):
        response = test_client.get("/scholar/biography", headers=admin["headers"])

        assert response.status_code == 404

    def test_students_and_dashboard(self, test_client, scholar, approved_application):
        students = test_client.get("/scholar/students", headers=scholar["headers"]).json()
        dashboard = test_client.get("/scholar/dashboard", headers=scholar["headers"]).json()

        assert students["total"] == 1
        assert students["students"][0]["email"] == "student@example.com"
        assert students["students"][0]["applications_count"] == 1
        assert dashboard["applications_by_status"] == {"approved": 1}
        assert dashboard["assigned_total"] == 1
        assert dashboard["acceptance_rate"] == 100.0

    def test_scholar_certificates_empty(self, test_client, scholar):
        response = test_client.get("/scholar/certificates", headers=scholar["headers"])

        assert response.status_code == 200
        assert response.json() == {"certificates": [], "total": 0}


class TestDirectory:
    """Test the public scholar directory."""

    def test_directory_lists_public_scholars(self, test_client, scholar, second_scholar):
        response = test_client.get("/scholars")

        assert response.status_code == 200
        names = {s["full_name"] for s in response.json()["scholars"]}
        assert names == {"Sheikh Yusuf", "Sheikh Bilal"}

    def test_directory_search(self, test_client, scholar, second_scholar):
        by_name = test_client.get("/scholars?search=yusuf").json()
        by_specialization = test_client.get("/scholars?specialization=hifz").json()

        assert [s["id"] for s in by_name["scholars"]] == [scholar["user_id"]]
        assert [s["id"] for s in by_specialization["scholars"]] == [second_scholar["user_id"]]

    def test_private_and_inactive_scholars_hidden(self, test_client, admin, scholar, second_scholar):
        test_client.put("/scholar/biography", json={"profile_visibility": "private"}, headers=scholar["headers"])
        test_client.post(f"/admin/scholars/{second_scholar['user_id']}/deactivate", headers=admin["headers"])

        response = test_client.get("/scholars")

        assert response.json()["total"] == 0

    def test_admin_creates_scholar_from_account(self, test_client, store, admin, student):
        response = test_client.post("/admin/scholars", json={
            "email": "student@example.com",
            "specialization": "Tajweed",
            "credentials": '{"ijazat": 3}',
            "sanad_chain": "Hafs via Sheikh Ayman",
        }, headers=admin["headers"])

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == student["user_id"]
        assert data["credentials"] == {"ijazat": 3}
        assert data["sanad_chain"] == {"chain": "Hafs via Sheikh Ayman"}
        assert "scholar" in store.get("profiles", student["user_id"])["roles"]

        listing = test_client.get("/admin/scholars", headers=admin["headers"]).json()
        assert listing["scholars"][0]["email"] == "student@example.com"

    def test_admin_create_scholar_unknown_email(self, test_client, admin):
        response = test_client.post("/admin/scholars", json={
            "email": "ghost@example.com",
            "specialization": "Tajweed",
        }, headers=admin["headers"])

        assert response.status_code == 404
