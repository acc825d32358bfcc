"""Certificate issuance, QR codes and public verification.

Certificate numbers follow ``<PREFIX>-<8 digit sequence>``. Each
certificate carries a SHA-256 fingerprint over its printed fields so a
verifier can detect records edited after issuance.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import base64
import hashlib
import logging
import re
from datetime import date
from io import BytesIO
from typing import Any, Dict, List, Optional

import qrcode

from . import notification_service, scholar_service, settings_service, workflow
from .auth import find_profile_by_email
from .config import config
from .exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from .policy import AccessPolicy
from .store import JsonStore, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_STUDENT = "طالب غير معروف"
DEFAULT_SCHOLAR_NAME = "الشيخ المُجيز"
TAJWEED_TITLE = "إجازة سورة الفاتحة"
DEFAULT_TITLE = "إجازة قرآنية"


# Numbering, fingerprint and QR

def next_certificate_number(store: JsonStore, prefix: Optional[str] = None) -> str:
    """Return the next ``<PREFIX>-<8 digits>`` number (1 + highest existing)."""
    prefix = prefix or config.CERTIFICATE_PREFIX
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d{{8}})$")
    highest = 0
    for certificate in store.list("ijazah_certificates"):
        match = pattern.match(certificate.get("certificate_number") or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{highest + 1:08d}"


def normalize_certificate_number(number: Optional[str]) -> str:
    return (number or "").strip().upper()


def compute_fingerprint(
    certificate_number: str,
    student_name: str,
    issue_date: str,
    narration_details: Optional[str],
    issue_place: Optional[str],
) -> str:
    """SHA-256 hex digest of the printed certificate fields and the secret key."""
    payload = "|".join([
        certificate_number,
        student_name or "",
        issue_date,
        narration_details or "",
        issue_place or "",
        config.CERTIFICATE_SECRET_KEY,
    ])
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def serial_code(issue_date: str, fingerprint: str) -> str:
    """``YYYYMMDD-XXXX`` where XXXX are the first fingerprint characters."""
    return f"{issue_date.replace('-', '')[:8]}-{fingerprint[:4].upper()}"


def verification_url(certificate_number: str) -> str:
    return f"{config.PUBLIC_BASE_URL}/verify/{certificate_number}"


def _make_qr_image(data: str):
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr.make_image(fill_color=config.QR_DARK_COLOR, back_color=config.QR_LIGHT_COLOR)


def qr_png_bytes(data: str) -> bytes:
    """Render ``data`` as a QR code PNG."""
    buffered = BytesIO()
    _make_qr_image(data).save(buffered, format="PNG")
    return buffered.getvalue()


def qr_data_url(data: str) -> str:
    """Render ``data`` as a ``data:image/png;base64,...`` URL."""
    return "data:image/png;base64," + base64.b64encode(qr_png_bytes(data)).decode("ascii")


def fingerprint_matches(certificate: Dict[str, Any]) -> bool:
    metadata = certificate.get("metadata") or {}
    expected = compute_fingerprint(
        certificate["certificate_number"],
        metadata.get("student_name") or "",
        certificate.get("issue_date") or "",
        metadata.get("narration_details"),
        metadata.get("issue_place"),
    )
    return expected == certificate.get("verification_hash")


# Issuance

def _insert_certificate(
    store: JsonStore,
    certificate_number: str,
    issue_date: str,
    base: Dict[str, Any],
    metadata: Dict[str, Any],
) -> Dict[str, Any]:
    if store.find_one("ijazah_certificates", certificate_number=certificate_number):
        raise ConflictError(f"Certificate number {certificate_number} is already in use")

    fingerprint = compute_fingerprint(
        certificate_number,
        metadata.get("student_name") or "",
        issue_date,
        metadata.get("narration_details"),
        metadata.get("issue_place"),
    )
    url = verification_url(certificate_number)
    qr_url = qr_data_url(url)

    record = dict(base)
    record.update({
        "certificate_number": certificate_number,
        "status": workflow.CERTIFICATE_ACTIVE,
        "issue_date": issue_date,
        "qr_code_data": qr_url,
        "qr_code_url": qr_url,
        "verification_url": url,
        "verification_hash": fingerprint,
        "verification_count": 0,
        "last_verified_at": None,
        "is_verified": True,
        "metadata": dict(metadata, serial_code=serial_code(issue_date, fingerprint), digital_fingerprint=fingerprint),
    })
    return store.insert("ijazah_certificates", record)


def issued_response(certificate: Dict[str, Any], created: bool) -> Dict[str, Any]:
    return {
        "success": True,
        "created": created,
        "message": "Certificate generated successfully" if created else "Certificate already exists",
        "certificate_id": certificate["id"],
        "certificate_number": certificate["certificate_number"],
        "qr_code_url": certificate.get("qr_code_url"),
        "verification_url": certificate.get("verification_url") or verification_url(certificate["certificate_number"]),
    }


def _notify_issued(store: JsonStore, certificate: Dict[str, Any], scholar_name: str) -> None:
    if not certificate.get("user_id"):
        return
    certificate_url = f"{config.PUBLIC_BASE_URL}/certificates/{certificate['id']}"
    notification_service.notify(
        store,
        certificate["user_id"],
        "certificate_issued",
        "تهانينا! تم إصدار شهادة الإجازة",
        f"تم إصدار شهادتك رقم {certificate['certificate_number']}",
        priority="high",
        action_url=certificate_url,
        action_label="عرض الشهادة",
        related_application_id=certificate.get("application_id"),
        related_certificate_id=certificate["id"],
        email=("certificate_issued", {
            "certificate_number": certificate["certificate_number"],
            "ijazah_type": certificate["ijazah_type"],
            "scholar_name": scholar_name,
            "certificate_url": certificate_url,
            "verification_url": certificate["verification_url"],
        }),
    )


def _scholar_name(store: JsonStore, scholar_id: Optional[str]) -> Optional[str]:
    if not scholar_id:
        return None
    profile = store.get("profiles", scholar_id) or {}
    return profile.get("full_name_arabic") or profile.get("full_name")


def generate_certificate(store: JsonStore, user: Dict[str, Any], application_id: str) -> Dict[str, Any]:
    """Issue the certificate of an approved application.

    Calling it again for the same application returns the existing
    certificate with ``created = False``.
    """
    application = store.get("ijazah_applications", application_id)
    if application is None:
        raise NotFoundError("Application not found or not approved")
    policy = AccessPolicy(user, store.get("scholars", user["user_id"]))
    policy.require(policy.can_issue_certificate(application), "issue certificates", application_id)

    existing = store.find_one("ijazah_certificates", application_id=application_id)
    if existing:
        return issued_response(existing, created=False)
    if application["status"] != workflow.APPROVED:
        raise NotFoundError("Application not found or not approved")

    scholar_id = application.get("scholar_id")
    scholar = store.get("scholars", scholar_id) if scholar_id else None
    student = store.get("profiles", application["user_id"]) or {}
    quran_experience = application.get("quran_experience") or {}
    personal_info = application.get("personal_info") or {}
    student_name = personal_info.get("full_name") or student.get("full_name") or UNKNOWN_STUDENT
    scholar_name = _scholar_name(store, scholar_id) or settings_service.get_setting(
        store, "first_signature_name", DEFAULT_SCHOLAR_NAME
    )
    issue_date = utc_now().date().isoformat()
    ijazah_type = application["ijazah_type"]

    certificate = _insert_certificate(
        store,
        next_certificate_number(store),
        issue_date,
        base={
            "application_id": application_id,
            "user_id": application["user_id"],
            "scholar_id": scholar_id,
            "ijazah_type": ijazah_type,
            "recitation": quran_experience.get("recitation"),
            "memorization_level": quran_experience.get("memorization_level"),
            "sanad_chain": (scholar or {}).get("sanad_chain") or {},
        },
        metadata={
            "student_name": student_name,
            "student_email": personal_info.get("email") or student.get("email"),
            "scholar_name": scholar_name,
            "scholar_specialization": (scholar or {}).get("specialization"),
            "certificate_title": _default_title(store, ijazah_type),
            "narration_details": quran_experience.get("recitation"),
            "issue_place": settings_service.get_setting(store, "issue_place"),
            "issued_by": user["user_id"],
            "issued_at": utc_now().isoformat(),
            "is_public": True,
            "show_in_student_portal": True,
        },
    )

    workflow.transition_application(store, application_id, workflow.COMPLETED, user["user_id"])
    scholar_service.increment_ijazat_issued(store, scholar_id)
    _notify_issued(store, certificate, scholar_name)
    logger.info(
        f"Issued certificate {certificate['certificate_number']}",
        extra={"application_id": application_id, "issued_by": user["user_id"]}
    )
    return issued_response(certificate, created=True)


def _default_title(store: JsonStore, ijazah_type: str) -> str:
    if ijazah_type == "tajweed":
        return TAJWEED_TITLE
    return settings_service.get_setting(store, "header_text", DEFAULT_TITLE)


def create_manual_certificate(store: JsonStore, user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Admin-issued certificate with free-form student details.

    A linked application must be approved and is completed by the issuance.
    """
    policy = AccessPolicy(user)
    policy.require(policy.is_admin, "create certificates manually")

    student_name = (payload.get("student_name") or "").strip()
    if not student_name:
        raise ValidationFailedError("student_name is required")

    application = None
    application_id = payload.get("application_id")
    if application_id:
        application = store.require("ijazah_applications", application_id, "Application")
        if application["status"] != workflow.APPROVED:
            raise ConflictError(
                f"Only approved applications can receive a certificate (status is '{application['status']}')"
            )

    user_id = application["user_id"] if application else None
    if user_id is None and payload.get("student_email"):
        student = find_profile_by_email(store, payload["student_email"])
        user_id = student["id"] if student else None

    number = normalize_certificate_number(payload.get("certificate_number")) or next_certificate_number(store)
    issue_date = payload.get("issue_date") or date.today()
    issue_date = issue_date.isoformat() if isinstance(issue_date, date) else str(issue_date)
    ijazah_type = payload.get("ijazah_type") or "qirat"
    scholar_id = application.get("scholar_id") if application else None
    scholar_name = _scholar_name(store, scholar_id) or settings_service.get_setting(
        store, "first_signature_name", DEFAULT_SCHOLAR_NAME
    )

    certificate = _insert_certificate(
        store,
        number,
        issue_date,
        base={
            "application_id": application_id,
            "user_id": user_id,
            "scholar_id": scholar_id,
            "ijazah_type": ijazah_type,
            "recitation": payload.get("narration_type"),
            "memorization_level": None,
            "sanad_chain": {},
        },
        metadata={
            "student_name": student_name,
            "student_email": payload.get("student_email"),
            "student_information": payload.get("student_information"),
            "scholar_name": scholar_name,
            "certificate_title": payload.get("certificate_title") or _default_title(store, ijazah_type),
            "introduction": payload.get("introduction") or settings_service.get_setting(store, "default_introduction"),
            "narration_details": payload.get("narration_details"),
            "ijazah_text": payload.get("ijazah_text"),
            "hijri_date": payload.get("hijri_date"),
            "issue_place": payload.get("issue_place") or settings_service.get_setting(store, "issue_place"),
            "is_public": payload.get("is_public", True),
            "show_in_student_portal": payload.get("show_in_student_portal", True),
            "issued_by": user["user_id"],
            "issued_at": utc_now().isoformat(),
        },
    )

    if application:
        workflow.transition_application(store, application_id, workflow.COMPLETED, user["user_id"])
        scholar_service.increment_ijazat_issued(store, scholar_id)
    _notify_issued(store, certificate, scholar_name)
    logger.info(f"Manually issued certificate {number} for {student_name}")
    return certificate


# Verification

def _log_verification(
    store: JsonStore,
    certificate_id: Optional[str],
    success: bool,
    method: str,
    ip: Optional[str],
    user_agent: Optional[str],
    failure_reason: Optional[str] = None,
    certificate_number: Optional[str] = None,
) -> None:
    store.insert("verification_logs", {
        "certificate_id": certificate_id,
        "certificate_number": certificate_number,
        "verifier_ip": ip or "unknown",
        "verifier_user_agent": user_agent,
        "verification_method": method,
        "success": success,
        "failure_reason": failure_reason,
    })


def verify_certificate(
    store: JsonStore,
    certificate_number: Optional[str],
    method: str = "certificate_number",
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Dict[str, Any]:
    """Look up a certificate for public verification and record the attempt.

    Raises:
        ValidationFailedError: If no number is given
        NotFoundError: If no certificate has this number
    """
    number = normalize_certificate_number(certificate_number)
    if not number:
        raise ValidationFailedError("Certificate number is required")
    if settings_service.get_setting(store, "allow_public_verification", True) is False:
        raise PermissionDeniedError("Public certificate verification is disabled")

    certificate = store.find_one("ijazah_certificates", certificate_number=number)
    if certificate is None:
        _log_verification(
            store, None, False, method, ip, user_agent,
            failure_reason="Certificate not found", certificate_number=number,
        )
        logger.info(f"Verification failed for unknown certificate {number}")
        raise NotFoundError(f"Certificate {number} not found")

    _log_verification(store, certificate["id"], True, method, ip, user_agent, certificate_number=number)
    now = utc_now().isoformat()
    certificate = store.update(
        "ijazah_certificates",
        certificate["id"],
        {"verification_count": certificate.get("verification_count", 0) + 1, "last_verified_at": now},
    )

    metadata = certificate.get("metadata") or {}
    scholar_name = (
        _scholar_name(store, certificate.get("scholar_id"))
        or metadata.get("scholar_name")
        or settings_service.get_setting(store, "first_signature_name")
        or DEFAULT_SCHOLAR_NAME
    )
    scholar = store.get("scholars", certificate["scholar_id"]) if certificate.get("scholar_id") else None
    return {
        "certificate_number": certificate["certificate_number"],
        "ijazah_type": certificate["ijazah_type"],
        "status": certificate["status"],
        "is_valid": certificate["status"] == workflow.CERTIFICATE_ACTIVE,
        "fingerprint_valid": fingerprint_matches(certificate),
        "issue_date": certificate.get("issue_date"),
        "recitation": certificate.get("recitation"),
        "memorization_level": certificate.get("memorization_level"),
        "student_name": metadata.get("student_name") or UNKNOWN_STUDENT,
        "scholar_name": scholar_name,
        "scholar_specialization": (scholar or {}).get("specialization") or metadata.get("scholar_specialization"),
        "verification_count": certificate["verification_count"],
        "last_verified_at": certificate["last_verified_at"],
        "certificate_title": metadata.get("certificate_title"),
    }


# Lifecycle and listings

def revoke_certificate(store: JsonStore, user: Dict[str, Any], certificate_id: str, reason: str) -> Dict[str, Any]:
    policy = AccessPolicy(user)
    policy.require(policy.is_admin, "revoke certificates", certificate_id)
    if not (reason or "").strip():
        raise ValidationFailedError("A reason is required to revoke a certificate")

    certificate = store.require("ijazah_certificates", certificate_id, "Certificate")
    workflow.check_transition(
        certificate["status"], workflow.CERTIFICATE_REVOKED, workflow.CERTIFICATE_TRANSITIONS, "certificate"
    )
    updated = store.update(
        "ijazah_certificates",
        certificate_id,
        {
            "status": workflow.CERTIFICATE_REVOKED,
            "revoked_at": utc_now().isoformat(),
            "revoked_by": user["user_id"],
            "revocation_reason": reason.strip(),
        },
        expected_version=certificate["version"],
    )
    if updated.get("user_id"):
        notification_service.notify(
            store,
            updated["user_id"],
            "certificate_issued",
            "تم إلغاء الشهادة",
            f"تم إلغاء الشهادة رقم {updated['certificate_number']}: {reason.strip()}",
            priority="urgent",
            related_certificate_id=certificate_id,
        )
    logger.warning(f"Certificate {updated['certificate_number']} revoked by {user['user_id']}: {reason}")
    return updated


def get_certificate(store: JsonStore, user: Dict[str, Any], certificate_id: str) -> Dict[str, Any]:
    certificate = store.require("ijazah_certificates", certificate_id, "Certificate")
    policy = AccessPolicy(user)
    policy.require(policy.can_view_certificate(certificate), "view this certificate", certificate_id)
    return certificate


def list_my_certificates(store: JsonStore, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return store.list(
        "ijazah_certificates",
        lambda c: (c.get("metadata") or {}).get("show_in_student_portal", True),
        user_id=user["user_id"],
    )


def list_all_certificates(
    store: JsonStore,
    status: Optional[str] = None,
    ijazah_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    filters = {}
    if status:
        filters["status"] = status
    if ijazah_type:
        filters["ijazah_type"] = ijazah_type
    return store.list("ijazah_certificates", **filters)
