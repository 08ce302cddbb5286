"""
Audit Log Service

record() runs inside the transaction of the mutation it describes. If the
entry cannot be written the whole mutation must fail, so storage errors are
raised as AuditWriteError and the caller rolls back.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.errors import AuditWriteError
from admissions_portal.modules.audit import repository
from admissions_portal.modules.audit.models import AuditLog
from admissions_portal.modules.audit.schemas import (
    AuditLogEntryCreate,
    AuditLogFilters,
    RequestMeta,
)

logger = logging.getLogger(__name__)


async def record(db: AsyncSession, entry: AuditLogEntryCreate) -> AuditLog:
    """
    Append an audit entry within the current transaction.

    Args:
        db: Session holding the mutation being audited
        entry: What happened

    Returns:
        The flushed AuditLog row

    Raises:
        AuditWriteError: If the entry could not be persisted
    """
    try:
        audit_entry = await repository.create(db, entry)
    except SQLAlchemyError as e:
        logger.error(
            f"Audit write failed for {entry.action} on "
            f"{entry.resource_type}:{entry.resource_id}: {e}"
        )
        raise AuditWriteError() from e

    logger.info(
        f"Audit: actor={entry.actor_id} action={entry.action} "
        f"resource={entry.resource_type}:{entry.resource_id}"
    )
    return audit_entry


async def record_action(
    db: AsyncSession,
    *,
    actor_id: int | None,
    action: str,
    resource_type: str,
    resource_id: int | None,
    previous_data: dict | None = None,
    new_data: dict | None = None,
    meta: RequestMeta | None = None,
) -> AuditLog:
    """Keyword-argument convenience wrapper around record()."""
    meta = meta or RequestMeta()
    return await record(
        db,
        AuditLogEntryCreate(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            previous_data=previous_data,
            new_data=new_data,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
        ),
    )


async def query(db: AsyncSession, filters: AuditLogFilters) -> list[AuditLog]:
    """Audit entries matching the filters, newest first."""
    return await repository.query(db, filters)
