"""Tests for certificate issuance, retrieval and public verification.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import pytest


@pytest.fixture
def issued_certificate(test_client, scholar, approved_application):
    response = test_client.post(
        "/certificates/generate",
        json={"application_id": approved_application["id"]},
        headers=scholar["headers"],
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestGenerateCertificate:
    """Test certificate generation from approved applications."""

    def test_generate(self, test_client, store, scholar, approved_application, issued_certificate):
        assert issued_certificate["created"] is True
        assert issued_certificate["certificate_number"] == "GH-00000001"
        assert issued_certificate["verification_url"] == "https://ijazah.app/verify/GH-00000001"
        assert issued_certificate["qr_code_url"].startswith("data:image/png;base64,")

        application = store.get("ijazah_applications", approved_application["id"])
        assert application["status"] == "completed"
        assert application["completed_at"]
        assert store.get("scholars", scholar["user_id"])["total_ijazat_issued"] == 1

        certificate = store.get("ijazah_certificates", issued_certificate["certificate_id"])
        assert certificate["status"] == "active"
        assert certificate["recitation"] == "حفص"
        assert certificate["memorization_level"] == "complete"
        assert certificate["sanad_chain"] == {"chain": ["Sheikh A", "Sheikh B"]}
        assert certificate["metadata"]["student_name"] == "Ahmad Student"
        assert certificate["metadata"]["scholar_name"] == "Sheikh Yusuf"
        assert certificate["metadata"]["certificate_title"] == "إجازة قرآنية"
        assert len(certificate["verification_hash"]) == 64

    def test_generate_is_idempotent(self, test_client, scholar, approved_application, issued_certificate):
        response = test_client.post(
            "/certificates/generate",
            json={"application_id": approved_application["id"]},
            headers=scholar["headers"],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["created"] is False
        assert data["certificate_id"] == issued_certificate["certificate_id"]

    def test_sequence_increments(self, test_client, make_user, scholar, issued_certificate):
        from conftest import build_application_payload

        other = make_user("second.student@example.com", full_name="Second Student")
        created = test_client.post("/applications", json=build_application_payload(), headers=other["headers"]).json()
        base = f"/scholar/applications/{created['application_id']}"
        test_client.post(f"{base}/start-review", headers=scholar["headers"])
        test_client.post(f"{base}/approve", headers=scholar["headers"])

        response = test_client.post(
            "/certificates/generate",
            json={"application_id": created["application_id"]},
            headers=scholar["headers"],
        )

        assert response.json()["certificate_number"] == "GH-00000002"

    def test_generate_requires_approval(self, test_client, scholar, submitted_application):
        response = test_client.post(
            "/certificates/generate",
            json={"application_id": submitted_application["application_id"]},
            headers=scholar["headers"],
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Application not found or not approved"

    def test_student_cannot_generate(self, test_client, student, approved_application):
        response = test_client.post(
            "/certificates/generate",
            json={"application_id": approved_application["id"]},
            headers=student["headers"],
        )

        assert response.status_code == 403

    def test_other_scholar_cannot_generate(self, test_client, second_scholar, approved_application):
        response = test_client.post(
            "/certificates/generate",
            json={"application_id": approved_application["id"]},
            headers=second_scholar["headers"],
        )

        assert response.status_code == 403

    def test_deactivated_scholar_cannot_generate(self, test_client, admin, scholar, approved_application):
        test_client.post(f"/admin/scholars/{scholar['user_id']}/deactivate", headers=admin["headers"])

        response = test_client.post(
            "/certificates/generate",
            json={"application_id": approved_application["id"]},
            headers=scholar["headers"],
        )

        assert response.status_code == 403

    def test_student_notified(self, test_client, student, issued_certificate):
        inbox = test_client.get("/notifications", headers=student["headers"]).json()

        latest = inbox["notifications"][0]
        assert latest["type"] == "certificate_issued"
        assert latest["priority"] == "high"
        assert latest["related_certificate_id"] == issued_certificate["certificate_id"]


class TestCertificateAccess:
    """Test certificate listings and the QR image."""

    def test_my_certificates(self, test_client, student, issued_certificate):
        response = test_client.get("/certificates/me", headers=student["headers"])

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_get_certificate(self, test_client, student, scholar, make_user, issued_certificate):
        url = f"/certificates/{issued_certificate['certificate_id']}"
        stranger = make_user("stranger@example.com")

        assert test_client.get(url, headers=student["headers"]).status_code == 200
        assert test_client.get(url, headers=scholar["headers"]).status_code == 200
        assert test_client.get(url, headers=stranger["headers"]).status_code == 403

    def test_qr_png(self, test_client, student, issued_certificate):
        response = test_client.get(
            f"/certificates/{issued_certificate['certificate_id']}/qr.png", headers=student["headers"]
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")

    def test_scholar_certificates(self, test_client, scholar, issued_certificate):
        response = test_client.get("/scholar/certificates", headers=scholar["headers"])

        assert response.json()["total"] == 1


class TestVerification:
    """Test public verification."""

    def test_verify_by_path(self, test_client, store, issued_certificate):
        response = test_client.get("/verify/GH-00000001")

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is True
        assert data["fingerprint_valid"] is True
        assert data["student_name"] == "Ahmad Student"
        assert data["scholar_name"] == "Sheikh Yusuf"
        assert data["scholar_specialization"] == "Qira'at and tajweed"
        assert data["verification_count"] == 1
        assert data["last_verified_at"]

        logs = store.list("verification_logs")
        assert len(logs) == 1
        assert logs[0]["success"] is True
        assert logs[0]["verification_method"] == "qr_code"

    def test_verify_by_query_normalizes_number(self, test_client, store, issued_certificate):
        response = test_client.get("/verify?certificate=  gh-00000001 ")

        assert response.status_code == 200
        assert response.json()["certificate_number"] == "GH-00000001"
        assert store.list("verification_logs")[0]["verification_method"] == "certificate_number"

    def test_verify_unknown_number(self, test_client, store):
        response = test_client.get("/verify/GH-99999999")

        assert response.status_code == 404
        logs = store.list("verification_logs")
        assert logs[0]["success"] is False
        assert logs[0]["failure_reason"] == "Certificate not found"

    def test_verify_without_number(self, test_client):
        response = test_client.get("/verify")

        assert response.status_code == 422

    def test_tampered_certificate_fails_fingerprint(self, test_client, store, issued_certificate):
        certificate = store.get("ijazah_certificates", issued_certificate["certificate_id"])
        metadata = dict(certificate["metadata"], student_name="Someone Else")
        store.update("ijazah_certificates", certificate["id"], {"metadata": metadata})

        response = test_client.get("/verify/GH-00000001")

        assert response.json()["fingerprint_valid"] is False

    def test_verification_disabled(self, test_client, admin, issued_certificate):
        test_client.put("/admin/settings", json={"allow_public_verification": False}, headers=admin["headers"])

        response = test_client.get("/verify/GH-00000001")

        assert response.status_code == 403


class TestRevocation:
    """Test certificate revocation."""

    def test_revoke(self, test_client, admin, student, issued_certificate):
        response = test_client.post(
            f"/admin/certificates/{issued_certificate['certificate_id']}/revoke",
            json={"reason": "Issued in error"},
            headers=admin["headers"],
        )

        assert response.status_code == 200
        assert response.json()["status"] == "revoked"
        assert response.json()["revocation_reason"] == "Issued in error"

        verified = test_client.get("/verify/GH-00000001").json()
        assert verified["status"] == "revoked"
        assert verified["is_valid"] is False

        inbox = test_client.get("/notifications", headers=student["headers"]).json()
        assert inbox["notifications"][0]["priority"] == "urgent"

    def test_revoke_twice(self, test_client, admin, issued_certificate):
        url = f"/admin/certificates/{issued_certificate['certificate_id']}/revoke"
        test_client.post(url, json={"reason": "Issued in error"}, headers=admin["headers"])

        response = test_client.post(url, json={"reason": "Again"}, headers=admin["headers"])

        assert response.status_code == 409


class TestManualCertificates:
    """Test admin-issued certificates."""

    def test_create_manual_certificate(self, test_client, store, admin, student):
        response = test_client.post("/admin/certificates", json={
            "student_name": "  Fatimah Ali ",
            "student_email": "student@example.com",
            "ijazah_type": "tajweed",
            "narration_details": "رواية حفص عن عاصم",
            "issue_date": "2026-10-01",
        }, headers=admin["headers"])

        assert response.status_code == 201
        data = response.json()
        assert data["created"] is True
        assert data["certificate_number"] == "GH-00000001"

        certificate = store.get("ijazah_certificates", data["certificate_id"])
        assert certificate["user_id"] == student["user_id"]
        assert certificate["issue_date"] == "2026-10-01"
        assert certificate["metadata"]["student_name"] == "Fatimah Ali"
        assert certificate["metadata"]["certificate_title"] == "إجازة سورة الفاتحة"
        assert certificate["metadata"]["scholar_name"] == "الشيخ المُجيز"
        assert certificate["metadata"]["issue_place"] == "المدينة المنورة"
        assert certificate["metadata"]["serial_code"].startswith("20261001-")

        verified = test_client.get(f"/verify/{data['certificate_number']}").json()
        assert verified["fingerprint_valid"] is True

    def test_explicit_number_must_be_unique(self, test_client, admin):
        body = {"student_name": "Fatimah Ali", "certificate_number": "gh-00000042"}
        first = test_client.post("/admin/certificates", json=body, headers=admin["headers"])
        second = test_client.post("/admin/certificates", json=body, headers=admin["headers"])

        assert first.status_code == 201
        assert first.json()["certificate_number"] == "GH-00000042"
        assert second.status_code == 409

    def test_blank_student_name(self, test_client, admin):
        response = test_client.post("/admin/certificates", json={"student_name": "   "}, headers=admin["headers"])

        assert response.status_code == 422

    def test_linked_application_must_be_approved(self, test_client, admin, submitted_application):
        response = test_client.post("/admin/certificates", json={
            "student_name": "Ahmad Student",
            "application_id": submitted_application["application_id"],
        }, headers=admin["headers"])

        assert response.status_code == 409

    def test_linked_application_is_completed(self, test_client, store, admin, scholar, approved_application):
        response = test_client.post("/admin/certificates", json={
            "student_name": "Ahmad Student",
            "application_id": approved_application["id"],
        }, headers=admin["headers"])

        assert response.status_code == 201
        assert store.get("ijazah_applications", approved_application["id"])["status"] == "completed"
        assert store.get("scholars", scholar["user_id"])["total_ijazat_issued"] == 1

    def test_admin_lists_certificates(self, test_client, admin, issued_certificate):
        response = test_client.get("/admin/certificates?status=active", headers=admin["headers"])

        assert response.status_code == 200
        assert response.json()["total"] == 1
