"""
Applications Service Layer

Owner-facing application CRUD, documents and the admin dashboard queries.
Status changes are delegated to ApplicationStateMachine; nothing here writes
Application.status after creation.

Every operation that touches an existing application consults the
authorization policy with the loaded row, so guessing another owner's id
yields 404 rather than data.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity
from admissions_portal.core.errors import ConflictError, InvalidStatusError, NotFoundError
from admissions_portal.modules.applications import repository
from admissions_portal.modules.applications.models import (
    INITIAL_STATUSES,
    PENDING_REVIEW_STATUSES,
    Application,
    ApplicationStatus,
    Document,
)
from admissions_portal.modules.applications.schemas import (
    AdminStatsResponse,
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationResponse,
    ApplicationUpdate,
    DocumentCreate,
    DocumentResponse,
    StatusHistoryResponse,
)
from admissions_portal.modules.applications.state_machine import (
    ApplicationStateMachine,
    parse_status,
)
from admissions_portal.modules.audit import service as audit_service
from admissions_portal.modules.audit.schemas import AuditAction, RequestMeta
from admissions_portal.modules.authorization import Action, Resource, require
from admissions_portal.modules.catalog.repository import CatalogRepository
from admissions_portal.modules.users.models import UserRole
from admissions_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

REQUIRED_CONTENT_FIELDS = frozenset(
    {"program_id", "student_first_name", "student_last_name", "student_email"}
)


class ApplicationLockedError(ConflictError):
    def __init__(self, status: ApplicationStatus):
        super().__init__(
            message=f"Applications in '{status.value}' status can no longer be edited.",
            error_code="APPLICATION_LOCKED",
        )


async def _load_visible(
    db: AsyncSession, application_id: int, identity: SessionIdentity
) -> Application:
    application = await repository.get_by_id(db, application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    require(
        identity,
        Action.VIEW_APPLICATION,
        Resource.application(application),
        hide_existence=True,
    )
    return application


async def to_detail(db: AsyncSession, application: Application) -> ApplicationDetailResponse:
    """Assemble the detail view: history, documents and display names."""
    history = await repository.get_history(db, application.id)
    documents = await repository.list_documents(db, application.id)
    program_name, university_name = await CatalogRepository.get_display_names(
        db, application.program_id
    )

    base = ApplicationResponse.model_validate(application)
    return ApplicationDetailResponse(
        **base.model_dump(),
        program_name=program_name,
        university_name=university_name,
        status_history=[
            StatusHistoryResponse(
                from_status=entry.from_status,
                to_status=entry.to_status,
                timestamp=entry.created_at,
                notes=entry.notes,
                changed_by=entry.changed_by,
            )
            for entry in history
        ],
        documents=[DocumentResponse.model_validate(doc) for doc in documents],
    )


# ============================================
# Owner operations
# ============================================


async def create_application(
    db: AsyncSession,
    state_machine: ApplicationStateMachine,
    identity: SessionIdentity,
    data: ApplicationCreate,
) -> Application:
    """
    Create an application owned by the caller, in draft or submitted.

    The initial history entry has no from_status. Creating directly as
    submitted announces the submission like a regular submit.

    Raises:
        ForbiddenError: Caller's role cannot create applications
        InvalidStatusError: Initial status is not draft or submitted
    """
    require(identity, Action.CREATE_APPLICATION)

    initial = parse_status(data.status)
    if initial not in INITIAL_STATUSES:
        raise InvalidStatusError(initial.value, sorted(s.value for s in INITIAL_STATUSES))

    fields = data.model_dump(exclude={"status"})
    fields["student_email"] = str(fields["student_email"])

    try:
        application = await repository.create(
            db, owner_id=identity.id, status=initial, **fields
        )
        await repository.add_history(
            db,
            application_id=application.id,
            from_status=None,
            to_status=initial,
            changed_by=identity.id,
            notes=data.notes,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"User {identity.id} created application {application.id} ({initial.value})")

    if initial is ApplicationStatus.SUBMITTED:
        await state_machine.notify(db, application, previous_status=None)

    return application


async def list_own_applications(
    db: AsyncSession, identity: SessionIdentity
) -> list[Application]:
    return await repository.list_for_owner(db, identity.id)


async def get_application(
    db: AsyncSession, application_id: int, identity: SessionIdentity
) -> Application:
    return await _load_visible(db, application_id, identity)


async def update_application(
    db: AsyncSession,
    application_id: int,
    identity: SessionIdentity,
    data: ApplicationUpdate,
) -> Application:
    """
    Edit content fields while the application is draft or incomplete.

    Raises:
        NotFoundError: Missing or not the caller's
        ForbiddenError: Policy denied the edit
        ApplicationLockedError: Status no longer allows edits
    """
    application = await _load_visible(db, application_id, identity)
    require(identity, Action.EDIT_APPLICATION, Resource.application(application))

    if not application.is_editable:
        raise ApplicationLockedError(application.status)

    changes = data.model_dump(exclude_unset=True)
    if "student_email" in changes and changes["student_email"] is not None:
        changes["student_email"] = str(changes["student_email"])

    for field, value in changes.items():
        # Required columns cannot be cleared
        if value is None and field in REQUIRED_CONTENT_FIELDS:
            continue
        setattr(application, field, value)

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"User {identity.id} edited application {application.id}: {sorted(changes)}")
    return application


# ============================================
# Documents
# ============================================


async def list_documents(
    db: AsyncSession, application_id: int, identity: SessionIdentity
) -> list[Document]:
    application = await _load_visible(db, application_id, identity)
    return await repository.list_documents(db, application.id)


async def add_document(
    db: AsyncSession,
    application_id: int,
    identity: SessionIdentity,
    data: DocumentCreate,
    meta: RequestMeta | None = None,
) -> Document:
    """Attach document metadata. The application's status is not touched."""
    application = await _load_visible(db, application_id, identity)
    require(identity, Action.MANAGE_DOCUMENTS, Resource.application(application))

    try:
        document = await repository.add_document(
            db,
            application_id=application.id,
            uploaded_by=identity.id,
            **data.model_dump(),
        )
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.ADD_DOCUMENT,
            resource_type="document",
            resource_id=document.id,
            new_data={
                "applicationId": application.id,
                "documentType": document.document_type,
                "originalFilename": document.original_filename,
            },
            meta=meta,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"User {identity.id} added document {document.id} to application {application.id}")
    return document


async def delete_document(
    db: AsyncSession,
    application_id: int,
    document_id: int,
    identity: SessionIdentity,
    meta: RequestMeta | None = None,
) -> None:
    application = await _load_visible(db, application_id, identity)
    require(identity, Action.MANAGE_DOCUMENTS, Resource.application(application))

    document = await repository.get_document(db, application.id, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)

    try:
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.DELETE_DOCUMENT,
            resource_type="document",
            resource_id=document.id,
            previous_data={
                "applicationId": application.id,
                "documentType": document.document_type,
                "originalFilename": document.original_filename,
            },
            meta=meta,
        )
        await repository.delete_document(db, document.id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"User {identity.id} deleted document {document_id} from application {application.id}")


# ============================================
# Admin dashboard
# ============================================


async def admin_list_applications(
    db: AsyncSession,
    identity: SessionIdentity,
    *,
    status: str | None = None,
    owner_id: int | None = None,
    search: str | None = None,
) -> list[Application]:
    require(identity, Action.LIST_ALL_APPLICATIONS)
    status_filter = parse_status(status) if status else None
    return await repository.list_all(db, status=status_filter, owner_id=owner_id, search=search)


async def get_stats(db: AsyncSession, identity: SessionIdentity) -> AdminStatsResponse:
    require(identity, Action.VIEW_STATS)

    counts = await repository.count_by_status(db)
    return AdminStatsResponse(
        total_applications=sum(counts.values()),
        pending_reviews=sum(counts[status] for status in PENDING_REVIEW_STATUSES),
        approved_applications=counts[ApplicationStatus.APPROVED],
        active_agents=await UserRepository.count_active(db, UserRole.AGENT),
        total_students=await repository.count_distinct_students(db),
        total_universities=await CatalogRepository.count_universities(db),
    )


async def admin_get_application(
    db: AsyncSession, application_id: int, identity: SessionIdentity
) -> Application:
    require(identity, Action.LIST_ALL_APPLICATIONS)
    return await _load_visible(db, application_id, identity)
