"""
Audit Log Repository

Insert and query only. Entries are never updated or deleted.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AuditLog
from .schemas import AuditLogEntryCreate, AuditLogFilters


async def create(db: AsyncSession, data: AuditLogEntryCreate) -> AuditLog:
    """Add an entry to the session and flush it inside the caller's transaction."""
    entry = AuditLog(
        actor_id=data.actor_id,
        action=data.action,
        resource_type=data.resource_type,
        resource_id=data.resource_id,
        previous_data=data.previous_data,
        new_data=data.new_data,
        ip_address=data.ip_address,
        user_agent=data.user_agent[:500] if data.user_agent else None,
    )
    db.add(entry)
    await db.flush()
    return entry


async def query(db: AsyncSession, filters: AuditLogFilters) -> list[AuditLog]:
    """Entries matching every given filter, newest first."""
    stmt = select(AuditLog)

    if filters.user_id is not None:
        stmt = stmt.where(AuditLog.actor_id == filters.user_id)
    if filters.resource_type:
        stmt = stmt.where(AuditLog.resource_type == filters.resource_type)
    if filters.resource_id is not None:
        stmt = stmt.where(AuditLog.resource_id == filters.resource_id)
    if filters.action:
        stmt = stmt.where(AuditLog.action == filters.action)

    # id breaks ties between entries written in the same instant
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())

    result = await db.execute(stmt)
    return list(result.scalars().all())
