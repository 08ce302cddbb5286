"""
Application notification events

Builds NotificationEvents from committed application state: display names
come from the catalog, the agent address from the owning identity, and the
admin list from every active staff account.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.modules.applications.models import Application, ApplicationStatus
from admissions_portal.modules.catalog.repository import CatalogRepository
from admissions_portal.modules.notifications import (
    ApplicationSnapshot,
    NotificationEvent,
    NotificationKind,
    Recipients,
)
from admissions_portal.modules.users.repository import UserRepository

FALLBACK_OWNER_NAME = "your education consultant"


async def build_application_event(
    db: AsyncSession,
    application: Application,
    *,
    previous_status: ApplicationStatus | None,
    notes: str | None = None,
) -> NotificationEvent:
    """Snapshot application and resolve everyone who should hear about its new status."""
    program_name, university_name = await CatalogRepository.get_display_names(
        db, application.program_id
    )
    owner = await UserRepository.get_by_id(db, application.owner_id)
    admin_emails = await UserRepository.get_staff_emails(db)

    snapshot = ApplicationSnapshot(
        id=application.id,
        status=application.status.value,
        previous_status=previous_status.value if previous_status else None,
        student_name=application.student_name,
        student_email=application.student_email,
        owner_name=owner.full_name if owner else FALLBACK_OWNER_NAME,
        program_name=program_name,
        university_name=university_name,
        notes=notes,
        rejection_reason=(
            application.rejection_reason
            if application.status is ApplicationStatus.REJECTED
            else None
        ),
        conditional_offer_terms=(
            application.conditional_offer_terms
            if application.status is ApplicationStatus.APPROVED
            else None
        ),
    )

    return NotificationEvent(
        kind=NotificationKind.for_status(application.status.value),
        recipients=Recipients(
            student=application.student_email,
            agent=owner.username if owner else None,
            admins=tuple(admin_emails),
        ),
        application=snapshot,
    )
