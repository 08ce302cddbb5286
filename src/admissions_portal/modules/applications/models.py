"""
Application Models

Database models for student program applications:
- Application: the submission itself, with its current status
- StatusHistoryEntry: append-only record of every status change
- Document: metadata for files attached to an application (bytes live in
  external storage, only the blob reference is kept)

Status is only ever changed through the state machine; history rows are
inserted, never updated or deleted.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from admissions_portal.core.database import Base, TimestampMixin, enum_type, utcnow


class ApplicationStatus(str, Enum):
    """
    Application lifecycle states.

    Flow:
        DRAFT -> SUBMITTED -> UNDER_REVIEW -> APPROVED / REJECTED
                                  |
                                  v
                             INCOMPLETE -> SUBMITTED (resubmission)

    A draft can never jump straight to APPROVED or REJECTED.
    """

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    REJECTED = "rejected"
    INCOMPLETE = "incomplete"


# Statuses in which the owner may still edit the application content
EDITABLE_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.INCOMPLETE})

# Statuses an application may be created in
INITIAL_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED})

# Awaiting a staff decision
PENDING_REVIEW_STATUSES = frozenset({ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW})


# Shared by every column so the database enum type is declared once
STATUS_TYPE = enum_type(ApplicationStatus, "application_status")


class Application(TimestampMixin, Base):
    """
    A student's application to one program.

    owner_id is the agent or student account that created it and never changes.
    """

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    program_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Student information
    student_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    student_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    student_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    student_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    student_date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    student_nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    student_gender: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Academic background
    highest_qualification: Mapped[str | None] = mapped_column(String(200), nullable=True)
    institution_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    graduation_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cgpa: Mapped[str | None] = mapped_column(String(20), nullable=True)

    intake_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Workflow
    status: Mapped[ApplicationStatus] = mapped_column(
        STATUS_TYPE,
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    conditional_offer_terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_action_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (Index("ix_applications_status_updated", "status", "updated_at"),)

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, owner_id={self.owner_id}, status={self.status.value})>"

    @property
    def student_name(self) -> str:
        return f"{self.student_first_name} {self.student_last_name}".strip()

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES


class StatusHistoryEntry(Base):
    """One status change. from_status is NULL for the entry written at creation."""

    __tablename__ = "application_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("applications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[ApplicationStatus | None] = mapped_column(STATUS_TYPE, nullable=True)
    to_status: Mapped[ApplicationStatus] = mapped_column(STATUS_TYPE, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        from_value = self.from_status.value if self.from_status else None
        return (
            f"<StatusHistoryEntry(application_id={self.application_id}, "
            f"{from_value} -> {self.to_status.value})>"
        )


class Document(Base):
    """Metadata for a file attached to an application."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("applications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    document_type: Mapped[str] = mapped_column(String(100), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    blob_ref: Mapped[str] = mapped_column(String(500), nullable=False)
    uploaded_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, application_id={self.application_id}, type={self.document_type})>"
