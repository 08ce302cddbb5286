"""
Audit Log Router

Endpoints:
- GET /admin/audit-logs - Query the audit trail, newest first

Access: admin only (policy action VIEW_AUDIT_LOGS).
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity, get_current_identity
from admissions_portal.core.database import get_db
from admissions_portal.modules.audit import service
from admissions_portal.modules.audit.schemas import AuditLogFilters, AuditLogResponse
from admissions_portal.modules.authorization import Action, require

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/audit-logs",
    response_model=list[AuditLogResponse],
    summary="Query Audit Logs",
    description="""
Return audit entries matching every supplied filter, newest first.

**Filters:**
- `userId`: Actor who performed the action
- `resourceType`: e.g. `application`, `user`
- `resourceId`: Id of the affected resource
- `action`: e.g. `update-application-status`

**Access:** Admin only
""",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Not an admin"},
    },
)
async def list_audit_logs(
    user_id: int | None = Query(None, alias="userId"),
    resource_type: str | None = Query(None, alias="resourceType", max_length=50),
    resource_id: int | None = Query(None, alias="resourceId"),
    action: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> list[AuditLogResponse]:
    require(identity, Action.VIEW_AUDIT_LOGS)

    filters = AuditLogFilters(
        user_id=user_id,
        resource_type=resource_type,
        resource_id=resource_id,
        action=action,
    )
    entries = await service.query(db, filters)

    logger.info(f"Admin {identity.id} queried audit logs: {len(entries)} entries")
    return [AuditLogResponse.model_validate(entry) for entry in entries]
