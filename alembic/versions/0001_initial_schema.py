"""initial schema: users, catalog, applications, documents, audit logs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the full portal schema. Enum types store the public values
("under-review", "sub-admin") rather than member names.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

USER_ROLES = ("admin", "sub-admin", "agent", "student")
APPLICATION_STATUSES = (
    "draft",
    "submitted",
    "under-review",
    "approved",
    "rejected",
    "incomplete",
)


def upgrade() -> None:
    """Create every table and enum type."""
    user_role_enum = postgresql.ENUM(*USER_ROLES, name="user_role", create_type=False)
    user_role_enum.create(op.get_bind(), checkfirst=True)

    status_enum = postgresql.ENUM(
        *APPLICATION_STATUSES, name="application_status", create_type=False
    )
    status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("agency_name", sa.String(length=200), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("phone_number", sa.String(length=30), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "universities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_universities_name", "universities", ["name"])

    op.create_table(
        "programs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("university_id", sa.Integer(), nullable=False),
        sa.Column("tuition", sa.String(length=100), nullable=False),
        sa.Column("duration", sa.String(length=50), nullable=False),
        sa.Column("intake", sa.String(length=100), nullable=False),
        sa.Column("degree", sa.String(length=100), nullable=False),
        sa.Column("study_field", sa.String(length=100), nullable=False),
        sa.Column("requirements", sa.JSON(), nullable=False),
        sa.Column("has_scholarship", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("image_url", sa.Text(), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_programs_name", "programs", ["name"])
    op.create_index("ix_programs_university_id", "programs", ["university_id"])
    op.create_index("ix_programs_degree", "programs", ["degree"])
    op.create_index("ix_programs_study_field", "programs", ["study_field"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("program_id", sa.Integer(), nullable=False),
        sa.Column("student_first_name", sa.String(length=100), nullable=False),
        sa.Column("student_last_name", sa.String(length=100), nullable=False),
        sa.Column("student_email", sa.String(length=255), nullable=False),
        sa.Column("student_phone", sa.String(length=30), nullable=True),
        sa.Column("student_date_of_birth", sa.Date(), nullable=True),
        sa.Column("student_nationality", sa.String(length=100), nullable=True),
        sa.Column("student_gender", sa.String(length=30), nullable=True),
        sa.Column("highest_qualification", sa.String(length=200), nullable=True),
        sa.Column("institution_name", sa.String(length=200), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=True),
        sa.Column("cgpa", sa.String(length=20), nullable=True),
        sa.Column("intake_date", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", status_enum, nullable=False, server_default="draft"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("conditional_offer_terms", sa.Text(), nullable=True),
        sa.Column("last_action_by", sa.Integer(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["last_action_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_owner_id", "applications", ["owner_id"])
    op.create_index("ix_applications_program_id", "applications", ["program_id"])
    op.create_index("ix_applications_student_email", "applications", ["student_email"])
    op.create_index("ix_applications_status", "applications", ["status"])
    # Staff queue: filter by status, newest activity first
    op.create_index("ix_applications_status_updated", "applications", ["status", "updated_at"])

    op.create_table(
        "application_status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("from_status", status_enum, nullable=True),
        sa.Column("to_status", status_enum, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.Integer(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["changed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_application_status_history_application_id",
        "application_status_history",
        ["application_id"],
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(length=100), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column("blob_ref", sa.String(length=500), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_application_id", "documents", ["application_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("resource_type", sa.String(length=50), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=True),
        sa.Column("previous_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])


def downgrade() -> None:
    """Drop every table, then the enum types."""
    op.drop_table("audit_logs")
    op.drop_table("documents")
    op.drop_table("application_status_history")
    op.drop_table("applications")
    op.drop_table("programs")
    op.drop_table("universities")
    op.drop_table("users")

    postgresql.ENUM(*APPLICATION_STATUSES, name="application_status").drop(
        op.get_bind(), checkfirst=True
    )
    postgresql.ENUM(*USER_ROLES, name="user_role").drop(op.get_bind(), checkfirst=True)
