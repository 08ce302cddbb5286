"""
Applications Admin Router

Review endpoints for admins and sub-admins.

Endpoints (mounted under /admin):
- GET /applications - All applications with filters
- GET /applications/{id} - Application detail
- PUT /applications/{id}/status - Change status through the state machine
- GET /stats - Dashboard counters (admin only)

Status updates are rate limited per admin to prevent mass operations.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity, get_current_identity
from admissions_portal.core.config import Settings
from admissions_portal.core.context import (
    get_rate_limiter,
    get_request_meta,
    get_settings_dep,
    get_state_machine,
)
from admissions_portal.core.database import get_db
from admissions_portal.core.rate_limit import RateLimiter
from admissions_portal.modules.applications import service
from admissions_portal.modules.applications.schemas import (
    AdminStatsResponse,
    ApplicationDetailResponse,
    ApplicationResponse,
    StatusUpdateRequest,
)
from admissions_portal.modules.applications.state_machine import ApplicationStateMachine
from admissions_portal.modules.audit.schemas import RequestMeta

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/applications",
    response_model=list[ApplicationResponse],
    summary="List All Applications",
    description="""
All applications, most recently updated first.

**Filters:**
- `status`: Only this status
- `userId`: Only applications owned by this user
- `search`: Case-insensitive match on student first name, last name or email

**Access:** Admin, sub-admin
""",
    responses={
        400: {"description": "Unknown status"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not staff"},
    },
)
async def list_applications(
    status: str | None = Query(None, max_length=50),
    user_id: int | None = Query(None, alias="userId"),
    search: str | None = Query(None, min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> list[ApplicationResponse]:
    applications = await service.admin_list_applications(
        db, identity, status=status, owner_id=user_id, search=search
    )
    logger.info(f"User {identity.id} listed applications: {len(applications)} returned")
    return [ApplicationResponse.model_validate(app) for app in applications]


@router.get(
    "/applications/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application (staff)",
    responses={404: {"description": "Application not found"}},
)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> ApplicationDetailResponse:
    application = await service.admin_get_application(db, application_id, identity)
    return await service.to_detail(db, application)


@router.put(
    "/applications/{application_id}/status",
    response_model=ApplicationDetailResponse,
    summary="Update Application Status",
    description="""
Move an application to a new status.

- `rejectionReason` is stored when moving to `rejected`
- `conditionalOfferTerms` is stored when moving to `approved`
- `notes` is kept on the history entry and as the admin notes

Drafts must be submitted before they can be approved or rejected.
Notifications are sent after the change is committed; delivery problems
never affect this response.
""",
    responses={
        400: {"description": "Unknown status or illegal transition"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not allowed to change this application's status"},
        404: {"description": "Application not found"},
        429: {"description": "Too many status updates"},
    },
)
async def update_application_status(
    application_id: int,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    state_machine: ApplicationStateMachine = Depends(get_state_machine),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
    meta: RequestMeta = Depends(get_request_meta),
) -> ApplicationDetailResponse:
    await rate_limiter.enforce(
        f"admin:status-update:{identity.id}",
        settings.status_update_rate_limit,
        settings.status_update_rate_window_seconds,
    )

    application = await state_machine.transition(
        db,
        application_id,
        data.status,
        identity,
        notes=data.notes,
        rejection_reason=data.rejection_reason,
        conditional_offer_terms=data.conditional_offer_terms,
        meta=meta,
    )
    return await service.to_detail(db, application)


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
    summary="Dashboard Statistics",
    responses={403: {"description": "Not an admin"}},
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> AdminStatsResponse:
    return await service.get_stats(db, identity)
