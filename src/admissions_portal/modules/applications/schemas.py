"""
Application Schemas

Pydantic schemas for request validation and response serialization.
Wire format is camelCase (see APIModel).
"""

from datetime import date, datetime

from pydantic import ConfigDict, EmailStr, Field

from admissions_portal.core.schemas import APIModel
from admissions_portal.modules.applications.models import ApplicationStatus


class ApplicationContent(APIModel):
    """Fields the owner fills in."""

    program_id: int = Field(..., ge=1)

    student_first_name: str = Field(..., min_length=1, max_length=100)
    student_last_name: str = Field(..., min_length=1, max_length=100)
    student_email: EmailStr
    student_phone: str | None = Field(None, max_length=30)
    student_date_of_birth: date | None = None
    student_nationality: str | None = Field(None, max_length=100)
    student_gender: str | None = Field(None, max_length=30)

    highest_qualification: str | None = Field(None, max_length=200)
    institution_name: str | None = Field(None, max_length=200)
    graduation_year: int | None = Field(None, ge=1950, le=2100)
    cgpa: str | None = Field(None, max_length=20)

    intake_date: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=5000)


class ApplicationCreate(ApplicationContent):
    """Request body for POST /applications. Status may be draft (default) or submitted."""

    status: str = "draft"


class ApplicationUpdate(APIModel):
    """
    Request body for PUT /applications/{id}.

    Only content fields are accepted; status, owner and review fields are
    rejected as unknown.
    """

    model_config = ConfigDict(extra="forbid")

    program_id: int | None = Field(None, ge=1)
    student_first_name: str | None = Field(None, min_length=1, max_length=100)
    student_last_name: str | None = Field(None, min_length=1, max_length=100)
    student_email: EmailStr | None = None
    student_phone: str | None = Field(None, max_length=30)
    student_date_of_birth: date | None = None
    student_nationality: str | None = Field(None, max_length=100)
    student_gender: str | None = Field(None, max_length=30)
    highest_qualification: str | None = Field(None, max_length=200)
    institution_name: str | None = Field(None, max_length=200)
    graduation_year: int | None = Field(None, ge=1950, le=2100)
    cgpa: str | None = Field(None, max_length=20)
    intake_date: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=5000)


class StatusUpdateRequest(APIModel):
    """Request body for PUT /admin/applications/{id}/status."""

    status: str = Field(..., min_length=1, max_length=50)
    notes: str | None = Field(None, max_length=5000)
    rejection_reason: str | None = Field(None, max_length=5000)
    conditional_offer_terms: str | None = Field(None, max_length=5000)


class SubmitRequest(APIModel):
    """Optional body for POST /applications/{id}/submit."""

    notes: str | None = Field(None, max_length=5000)


class StatusHistoryResponse(APIModel):
    from_status: ApplicationStatus | None
    to_status: ApplicationStatus
    timestamp: datetime
    notes: str | None
    changed_by: int | None


class DocumentCreate(APIModel):
    """Metadata for a file already uploaded to external storage."""

    document_type: str = Field(..., min_length=1, max_length=100)
    original_filename: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1, max_length=100)
    blob_ref: str = Field(..., min_length=1, max_length=500)


class DocumentResponse(APIModel):
    id: int
    application_id: int
    document_type: str
    original_filename: str
    size: int
    mime_type: str
    blob_ref: str
    uploaded_by: int | None
    created_at: datetime


class ApplicationResponse(APIModel):
    id: int
    owner_id: int
    program_id: int

    student_first_name: str
    student_last_name: str
    student_email: str
    student_phone: str | None
    student_date_of_birth: date | None
    student_nationality: str | None
    student_gender: str | None

    highest_qualification: str | None
    institution_name: str | None
    graduation_year: int | None
    cgpa: str | None

    intake_date: str | None
    notes: str | None

    status: ApplicationStatus
    admin_notes: str | None
    rejection_reason: str | None
    conditional_offer_terms: str | None

    created_at: datetime
    updated_at: datetime


class ApplicationDetailResponse(ApplicationResponse):
    """Single application with its history, documents and display names."""

    program_name: str
    university_name: str
    status_history: list[StatusHistoryResponse]
    documents: list[DocumentResponse]


class AdminStatsResponse(APIModel):
    total_applications: int
    pending_reviews: int
    approved_applications: int
    active_agents: int
    total_students: int
    total_universities: int
