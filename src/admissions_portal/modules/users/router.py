"""
User Administration Router

Endpoints (mounted under /admin):
- GET /users - List users, optionally by role (admin, sub-admin)
- POST /users - Create an agent account (admin)
- PUT /users/{id} - Edit profile fields (admin; admins only edit themselves)
- PUT /users/{id}/status - Activate / deactivate (admin; never an admin account)
- DELETE /users/{id} - Delete an agent or sub-admin (admin)
- POST /sub-admins - Create a sub-admin with a temporary password (admin)
- GET /sub-admins - List sub-admins (admin)
- POST /sub-admins/{id}/reset-password - Issue a new temporary password (admin)

Every mutation is audited.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity, get_current_identity
from admissions_portal.core.context import get_notifications, get_request_meta
from admissions_portal.core.database import get_db
from admissions_portal.modules.audit.schemas import RequestMeta
from admissions_portal.modules.notifications import NotificationQueue
from admissions_portal.modules.users import service
from admissions_portal.modules.users.models import UserRole
from admissions_portal.modules.users.schemas import (
    PasswordResetResponse,
    SubAdminCreatedResponse,
    SubAdminCreateRequest,
    UserCreateRequest,
    UserResponse,
    UserStatusRequest,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="List Users",
    responses={401: {"description": "Not authenticated"}, 403: {"description": "Not staff"}},
)
async def list_users(
    role: UserRole | None = Query(None, description="Filter by role"),
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> list[UserResponse]:
    users = await service.list_users(db, identity, role=role)
    return [UserResponse.model_validate(user) for user in users]


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="Create an agent account. Any role in the body is ignored.",
    responses={
        400: {"description": "Validation failed or email already registered"},
        403: {"description": "Not an admin"},
    },
)
async def create_user(
    data: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    notifications: NotificationQueue = Depends(get_notifications),
    meta: RequestMeta = Depends(get_request_meta),
) -> UserResponse:
    user = await service.admin_create_user(db, notifications, identity, data, meta)
    return UserResponse.model_validate(user)


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update User Profile",
    responses={
        403: {"description": "Not an admin, or target is another admin"},
        404: {"description": "User not found"},
    },
)
async def update_user(
    user_id: int,
    data: UserUpdateRequest,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    meta: RequestMeta = Depends(get_request_meta),
) -> UserResponse:
    user = await service.update_user(db, identity, user_id, data, meta)
    return UserResponse.model_validate(user)


@router.put(
    "/users/{user_id}/status",
    response_model=UserResponse,
    summary="Activate or Deactivate User",
    responses={
        403: {"description": "Not an admin, or target is an admin"},
        404: {"description": "User not found"},
    },
)
async def set_user_status(
    user_id: int,
    data: UserStatusRequest,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    meta: RequestMeta = Depends(get_request_meta),
) -> UserResponse:
    user = await service.set_user_active(db, identity, user_id, data.active, meta)
    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete User",
    responses={
        400: {"description": "User still owns applications"},
        403: {"description": "Not an admin, or target role cannot be deleted"},
        404: {"description": "User not found"},
    },
)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    meta: RequestMeta = Depends(get_request_meta),
) -> Response:
    await service.delete_user(db, identity, user_id, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# Sub-admins
# ============================================


@router.post(
    "/sub-admins",
    response_model=SubAdminCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Sub-admin",
    description="""
Create a sub-admin account. When no password is supplied a temporary one is
generated. The credentials are emailed to the new sub-admin and returned once
in the response for the admin's reference.
""",
)
async def create_sub_admin(
    data: SubAdminCreateRequest,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    notifications: NotificationQueue = Depends(get_notifications),
    meta: RequestMeta = Depends(get_request_meta),
) -> SubAdminCreatedResponse:
    user, password = await service.create_sub_admin(db, notifications, identity, data, meta)
    return SubAdminCreatedResponse(
        sub_admin=UserResponse.model_validate(user),
        temporary_password=password,
    )


@router.get("/sub-admins", response_model=list[UserResponse], summary="List Sub-admins")
async def list_sub_admins(
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> list[UserResponse]:
    users = await service.list_sub_admins(db, identity)
    return [UserResponse.model_validate(user) for user in users]


@router.post(
    "/sub-admins/{user_id}/reset-password",
    response_model=PasswordResetResponse,
    summary="Reset Sub-admin Password",
    responses={404: {"description": "Sub-admin not found"}},
)
async def reset_sub_admin_password(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    notifications: NotificationQueue = Depends(get_notifications),
    meta: RequestMeta = Depends(get_request_meta),
) -> PasswordResetResponse:
    password = await service.reset_sub_admin_password(db, notifications, identity, user_id, meta)
    return PasswordResetResponse(temporary_password=password)
