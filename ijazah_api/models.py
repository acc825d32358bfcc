"""Pydantic models for API requests and responses.

This module defines the data models used for API request/response validation.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

IjazahType = Literal["hifz", "qirat", "tajweed", "sanad"]
RoleName = Literal["student", "scholar", "admin"]
DigestFrequency = Literal["instant", "daily", "weekly", "never"]

EMAIL_REGEX = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PHONE_REGEX = r"^[+]?[0-9\s\-]{8,20}$"


# Authentication

class RegisterRequest(BaseModel):
    """Account registration request."""
    email: str = Field(..., pattern=EMAIL_REGEX, description="Login email")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    full_name: str = Field(..., min_length=2, description="Full name")
    full_name_arabic: Optional[str] = Field(None, description="Full name in Arabic")
    phone_number: Optional[str] = Field(None, pattern=PHONE_REGEX, description="Phone number")


class LoginRequest(BaseModel):
    """Login request model for authentication endpoints."""
    email: str
    password: str


class LoginResponse(BaseModel):
    """Login response model returned after successful authentication.

    Attributes:
        token: The generated authentication token (URL-safe, 32 bytes)
        user_id: The authenticated user's id
        email: The authenticated email
        roles: Roles granted to the user (student, scholar, admin)
    """
    token: str
    user_id: str
    email: str
    full_name: Optional[str] = None
    roles: List[str] = Field(default_factory=list)


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own profile."""
    full_name: Optional[str] = Field(None, min_length=2)
    full_name_arabic: Optional[str] = None
    phone_number: Optional[str] = Field(None, pattern=PHONE_REGEX)
    date_of_birth: Optional[date] = None
    gender: Optional[Literal["male", "female"]] = None
    country: Optional[str] = None
    city: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=2000)


class RolesUpdateRequest(BaseModel):
    roles: List[RoleName] = Field(..., min_length=1, description="Complete new role list")


# Ijazah applications

class PersonalInfo(BaseModel):
    full_name: str = Field(..., min_length=2, description="Applicant full name")
    email: str = Field(..., pattern=EMAIL_REGEX, description="Contact email")
    phone: str = Field(..., pattern=PHONE_REGEX, description="Contact phone number")
    date_of_birth: str = Field(..., min_length=1, description="Date of birth")
    country: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    profession: Optional[str] = None


class AcademicBackground(BaseModel):
    education_level: str = Field(..., min_length=1)
    quran_institution: Optional[str] = None
    years_of_study: int = Field(..., ge=0, le=50, description="Years of Quran study")
    previous_sheikhs: Optional[str] = None
    experience: Optional[str] = None


class QuranExperience(BaseModel):
    memorization_level: str = Field(..., min_length=1)
    recitation_proficiency: str = Field(..., min_length=1)
    tajweed_knowledge: str = Field(..., min_length=1)
    previous_ijazat: Optional[str] = None
    recitation: Optional[str] = Field(None, description="Narration the student recites (e.g. Hafs)")
    selected_narrations: List[str] = Field(default_factory=list)


class DocumentRef(BaseModel):
    """Reference to an uploaded supporting document."""
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    content_type: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)


class ApplicationCreateRequest(BaseModel):
    ijazah_type: IjazahType = Field(..., description="Type of ijazah requested")
    personal_info: PersonalInfo
    academic_background: AcademicBackground
    quran_experience: QuranExperience
    documents: List[DocumentRef] = Field(default_factory=list)
    scholar_id: Optional[str] = Field(None, description="Preferred scholar (optional)")
    submit: bool = Field(True, description="Submit immediately; false keeps a draft")


class ApplicationUpdateRequest(BaseModel):
    """Partial update of a draft application."""
    ijazah_type: Optional[IjazahType] = None
    personal_info: Optional[PersonalInfo] = None
    academic_background: Optional[AcademicBackground] = None
    quran_experience: Optional[QuranExperience] = None
    documents: Optional[List[DocumentRef]] = None
    scholar_id: Optional[str] = None
    expected_version: Optional[int] = None


class ApplicationCreatedResponse(BaseModel):
    success: bool = True
    application_id: str
    application_number: str
    status: str


class TransitionRequest(BaseModel):
    """Body for status transitions (notes plus optimistic version)."""
    notes: Optional[str] = Field(None, max_length=5000)
    expected_version: Optional[int] = Field(None, ge=1)


class InterviewRequest(TransitionRequest):
    interview_at: datetime = Field(..., description="Interview date and time")


class AssignScholarRequest(BaseModel):
    scholar_id: str


# Scholars

class ScholarApplicationRequest(BaseModel):
    specialization: str = Field(..., min_length=10)
    bio: str = Field(..., min_length=100)
    credentials: str = Field(..., min_length=20, description="Free text or JSON")
    sanad_chain: str = Field(..., min_length=20, description="Free text or JSON")
    documents: List[DocumentRef] = Field(default_factory=list)


class ScholarDecisionRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class ScholarCreateRequest(BaseModel):
    """Admin shortcut turning an existing account into a scholar."""
    email: str = Field(..., pattern=EMAIL_REGEX, description="Email of a registered account")
    full_name: Optional[str] = Field(None, min_length=2)
    full_name_arabic: Optional[str] = None
    phone_number: Optional[str] = Field(None, pattern=PHONE_REGEX)
    specialization: str = Field(..., min_length=3)
    bio_detailed: Optional[str] = None
    credentials: str = Field("", description="Free text or JSON")
    sanad_chain: str = Field("", description="Free text or JSON")


class BiographyUpdateRequest(BaseModel):
    specialization: Optional[str] = Field(None, min_length=10)
    bio_detailed: Optional[str] = None
    profile_visibility: Optional[Literal["public", "private"]] = None
    sanad_chain: Optional[Any] = None


# Certificates

class CertificateGenerateRequest(BaseModel):
    application_id: str = Field(..., min_length=1)


class ManualCertificateRequest(BaseModel):
    """Admin-issued certificate (the "create ijazah" form)."""
    student_name: str = Field(..., description="Student name as printed on the certificate")
    student_email: Optional[str] = Field(None, pattern=EMAIL_REGEX)
    student_information: Optional[str] = None
    ijazah_type: IjazahType = "qirat"
    narration_type: Optional[str] = Field(None, description="Recitation/narration (e.g. Hafs)")
    narration_details: Optional[str] = None
    certificate_title: Optional[str] = None
    introduction: Optional[str] = None
    ijazah_text: Optional[str] = None
    issue_date: date = Field(default_factory=date.today)
    hijri_date: Optional[str] = None
    issue_place: Optional[str] = None
    certificate_number: Optional[str] = Field(None, description="Explicit number; generated when omitted")
    application_id: Optional[str] = None
    is_public: bool = True
    show_in_student_portal: bool = True

    @field_validator("student_name")
    @classmethod
    def _student_name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("student_name is required")
        return value.strip()


class RevokeRequest(BaseModel):
    reason: str = Field(..., min_length=3)


class CertificateIssuedResponse(BaseModel):
    success: bool = True
    created: bool = Field(..., description="False when the certificate already existed")
    message: str
    certificate_id: str
    certificate_number: str
    qr_code_url: Optional[str] = None
    verification_url: str


class VerificationResponse(BaseModel):
    """Public view of a verified certificate."""
    certificate_number: str
    ijazah_type: str
    status: str
    is_valid: bool
    fingerprint_valid: bool
    issue_date: Optional[str] = None
    recitation: Optional[str] = None
    memorization_level: Optional[str] = None
    student_name: str
    scholar_name: str
    scholar_specialization: Optional[str] = None
    verification_count: int
    last_verified_at: Optional[str] = None
    certificate_title: Optional[str] = None


# Notifications

class NotificationPreferencesModel(BaseModel):
    email_application_status: bool = True
    email_certificate_issued: bool = True
    email_review_request: bool = True
    email_system_updates: bool = True
    inapp_application_status: bool = True
    inapp_certificate_issued: bool = True
    inapp_review_request: bool = True
    inapp_system_updates: bool = True
    sms_enabled: bool = False
    sms_application_status: bool = False
    sms_certificate_issued: bool = True
    digest_frequency: DigestFrequency = "instant"


class NotificationPreferencesUpdate(BaseModel):
    email_application_status: Optional[bool] = None
    email_certificate_issued: Optional[bool] = None
    email_review_request: Optional[bool] = None
    email_system_updates: Optional[bool] = None
    inapp_application_status: Optional[bool] = None
    inapp_certificate_issued: Optional[bool] = None
    inapp_review_request: Optional[bool] = None
    inapp_system_updates: Optional[bool] = None
    sms_enabled: Optional[bool] = None
    sms_application_status: Optional[bool] = None
    sms_certificate_issued: Optional[bool] = None
    digest_frequency: Optional[DigestFrequency] = None


class NotificationListResponse(BaseModel):
    notifications: List[Dict[str, Any]]
    unread_count: int
    total: int


class SystemNotificationRequest(BaseModel):
    """Admin broadcast of a system notification."""
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    priority: Literal["low", "normal", "high", "urgent"] = "normal"
    role: Optional[RoleName] = Field(None, description="Only users with this role")


# Settings

class NarrationTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    parent_reading: str = Field(..., min_length=1)
    description: Optional[str] = None


class NarrationTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    parent_reading: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class ErrorResponse(BaseModel):
    """Response model for errors."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
