"""
Application Repository

Database operations for applications, their status history and documents.
Functions flush but never commit; the calling service owns the transaction.
"""

import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.modules.applications.models import (
    Application,
    ApplicationStatus,
    Document,
    StatusHistoryEntry,
)

logger = logging.getLogger(__name__)


# ============================================
# Applications
# ============================================


async def create(
    db: AsyncSession,
    *,
    owner_id: int,
    status: ApplicationStatus,
    **fields,
) -> Application:
    """
    Insert an application and flush so its id is assigned.

    Args:
        db: Database session
        owner_id: Identity creating the application
        status: Initial status (draft or submitted)
        **fields: Content fields (student, academic, program, intake, notes)

    Returns:
        Created Application
    """
    application = Application(owner_id=owner_id, status=status, **fields)
    db.add(application)
    await db.flush()
    return application


async def get_by_id(db: AsyncSession, application_id: int) -> Application | None:
    return await db.get(Application, application_id)


async def get_for_update(db: AsyncSession, application_id: int) -> Application | None:
    """
    Load an application holding a row lock until the transaction ends.

    Concurrent transitions on the same application queue behind the lock, so
    each reads the status the previous one committed.
    """
    result = await db.execute(
        select(Application)
        .where(Application.id == application_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_for_owner(db: AsyncSession, owner_id: int) -> list[Application]:
    result = await db.execute(
        select(Application)
        .where(Application.owner_id == owner_id)
        .order_by(Application.updated_at.desc(), Application.id.desc())
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    owner_id: int | None = None,
    search: str | None = None,
) -> list[Application]:
    """
    Applications for the admin dashboard, most recently updated first.

    Args:
        status: Only this status
        owner_id: Only applications created by this identity
        search: Case-insensitive match on student first name, last name or email
    """
    query = select(Application)

    if status is not None:
        query = query.where(Application.status == status)
    if owner_id is not None:
        query = query.where(Application.owner_id == owner_id)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(Application.student_first_name).like(pattern),
                func.lower(Application.student_last_name).like(pattern),
                func.lower(Application.student_email).like(pattern),
            )
        )

    query = query.order_by(Application.updated_at.desc(), Application.id.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def owner_has_applications(db: AsyncSession, owner_id: int) -> bool:
    result = await db.execute(
        select(Application.id).where(Application.owner_id == owner_id).limit(1)
    )
    return result.first() is not None


async def count_by_status(db: AsyncSession) -> dict[ApplicationStatus, int]:
    result = await db.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    counts = {status: 0 for status in ApplicationStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


async def count_distinct_students(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(func.distinct(func.lower(Application.student_email))))
    )
    return result.scalar_one()


# ============================================
# Status history
# ============================================


async def add_history(
    db: AsyncSession,
    *,
    application_id: int,
    from_status: ApplicationStatus | None,
    to_status: ApplicationStatus,
    changed_by: int | None,
    notes: str | None = None,
) -> StatusHistoryEntry:
    entry = StatusHistoryEntry(
        application_id=application_id,
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        notes=notes,
    )
    db.add(entry)
    await db.flush()
    return entry


async def get_history(db: AsyncSession, application_id: int) -> list[StatusHistoryEntry]:
    """History entries in the order they were written."""
    result = await db.execute(
        select(StatusHistoryEntry)
        .where(StatusHistoryEntry.application_id == application_id)
        .order_by(StatusHistoryEntry.id)
    )
    return list(result.scalars().all())


# ============================================
# Documents
# ============================================


async def add_document(
    db: AsyncSession,
    *,
    application_id: int,
    uploaded_by: int,
    document_type: str,
    original_filename: str,
    size: int,
    mime_type: str,
    blob_ref: str,
) -> Document:
    document = Document(
        application_id=application_id,
        uploaded_by=uploaded_by,
        document_type=document_type,
        original_filename=original_filename,
        size=size,
        mime_type=mime_type,
        blob_ref=blob_ref,
    )
    db.add(document)
    await db.flush()
    return document


async def list_documents(db: AsyncSession, application_id: int) -> list[Document]:
    result = await db.execute(
        select(Document).where(Document.application_id == application_id).order_by(Document.id)
    )
    return list(result.scalars().all())


async def get_document(db: AsyncSession, application_id: int, document_id: int) -> Document | None:
    result = await db.execute(
        select(Document).where(
            Document.id == document_id,
            Document.application_id == application_id,
        )
    )
    return result.scalar_one_or_none()


async def delete_document(db: AsyncSession, document_id: int) -> None:
    await db.execute(delete(Document).where(Document.id == document_id))
