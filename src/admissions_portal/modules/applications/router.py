"""
Applications Router

Owner-facing endpoints for agents and students. Callers only ever see their
own applications; other ids answer 404.

Endpoints:
- POST /applications - Create (draft by default, or submitted)
- GET /applications - The caller's applications, most recently updated first
- GET /applications/{id} - Detail with status history and documents
- PUT /applications/{id} - Edit content while draft or incomplete
- POST /applications/{id}/submit - Submit a draft (or resubmit an incomplete one)
- POST /applications/{id}/documents - Attach document metadata
- GET /applications/{id}/documents - List documents
- DELETE /applications/{id}/documents/{document_id} - Remove a document
"""

import logging

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity, get_current_identity
from admissions_portal.core.context import get_request_meta, get_state_machine
from admissions_portal.core.database import get_db
from admissions_portal.modules.applications import service
from admissions_portal.modules.applications.models import ApplicationStatus
from admissions_portal.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationResponse,
    ApplicationUpdate,
    DocumentCreate,
    DocumentResponse,
    SubmitRequest,
)
from admissions_portal.modules.applications.state_machine import ApplicationStateMachine
from admissions_portal.modules.audit.schemas import RequestMeta

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Application",
    responses={
        400: {"description": "Validation failed"},
        403: {"description": "Role cannot create applications"},
    },
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    state_machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationDetailResponse:
    application = await service.create_application(db, state_machine, identity, data)
    return await service.to_detail(db, application)


@router.get("", response_model=list[ApplicationResponse], summary="List My Applications")
async def list_applications(
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> list[ApplicationResponse]:
    applications = await service.list_own_applications(db, identity)
    return [ApplicationResponse.model_validate(app) for app in applications]


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application",
    responses={404: {"description": "Not found or not yours"}},
)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> ApplicationDetailResponse:
    application = await service.get_application(db, application_id, identity)
    return await service.to_detail(db, application)


@router.put(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Edit Application",
    responses={
        400: {"description": "Validation failed, or application locked for editing"},
        404: {"description": "Not found or not yours"},
    },
)
async def update_application(
    application_id: int,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> ApplicationDetailResponse:
    application = await service.update_application(db, application_id, identity, data)
    return await service.to_detail(db, application)


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationDetailResponse,
    summary="Submit Application",
    responses={
        400: {"description": "Application cannot be submitted from its current status"},
        403: {"description": "Submitting is not allowed from the current status"},
        404: {"description": "Not found or not yours"},
    },
)
async def submit_application(
    application_id: int,
    data: SubmitRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    state_machine: ApplicationStateMachine = Depends(get_state_machine),
    meta: RequestMeta = Depends(get_request_meta),
) -> ApplicationDetailResponse:
    application = await state_machine.transition(
        db,
        application_id,
        ApplicationStatus.SUBMITTED,
        identity,
        notes=data.notes if data else None,
        meta=meta,
    )
    return await service.to_detail(db, application)


# ============================================
# Documents
# ============================================


@router.post(
    "/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach Document",
)
async def add_document(
    application_id: int,
    data: DocumentCreate,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    meta: RequestMeta = Depends(get_request_meta),
) -> DocumentResponse:
    document = await service.add_document(db, application_id, identity, data, meta)
    return DocumentResponse.model_validate(document)


@router.get(
    "/{application_id}/documents",
    response_model=list[DocumentResponse],
    summary="List Documents",
)
async def list_documents(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> list[DocumentResponse]:
    documents = await service.list_documents(db, application_id, identity)
    return [DocumentResponse.model_validate(doc) for doc in documents]


@router.delete(
    "/{application_id}/documents/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Document",
)
async def delete_document(
    application_id: int,
    document_id: int,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    meta: RequestMeta = Depends(get_request_meta),
) -> Response:
    await service.delete_document(db, application_id, document_id, identity, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
