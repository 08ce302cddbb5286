"""
Application State Machine

The only code path that changes an application's status. One transition:

1. Lock the application row (concurrent transitions serialize here)
2. Ask the authorization policy whether the caller may make this change
3. Validate the target status and the edge in the transition graph
4. Update the application, append a history entry and write the audit entry,
   all in the same transaction
5. Commit, then hand a notification event to the queue

If the audit entry cannot be written the transaction is rolled back and the
transition fails. Notification problems are logged and never affect the
result.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity
from admissions_portal.core.database import utcnow
from admissions_portal.core.errors import (
    ForbiddenError,
    IllegalTransitionError,
    InvalidStatusError,
    NotFoundError,
)
from admissions_portal.modules.applications import repository
from admissions_portal.modules.applications.events import build_application_event
from admissions_portal.modules.applications.models import Application, ApplicationStatus
from admissions_portal.modules.audit import service as audit_service
from admissions_portal.modules.audit.schemas import AuditAction, RequestMeta
from admissions_portal.modules.authorization import Action, Resource, can
from admissions_portal.modules.notifications import NotificationQueue

logger = logging.getLogger(__name__)


# Every status may move to every other status, except that a draft must be
# submitted before it can be decided.
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    status: frozenset(target for target in ApplicationStatus if target is not status)
    for status in ApplicationStatus
}
VALID_STATUS_TRANSITIONS[ApplicationStatus.DRAFT] = VALID_STATUS_TRANSITIONS[
    ApplicationStatus.DRAFT
] - {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus:
    """
    Convert a wire value to ApplicationStatus.

    Raises:
        InvalidStatusError: value is not one of the enumerated statuses
    """
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(value)
    except ValueError as e:
        raise InvalidStatusError(str(value), [s.value for s in ApplicationStatus]) from e


def is_valid_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    return to_status in VALID_STATUS_TRANSITIONS.get(from_status, frozenset())


def may_change_status(
    identity: SessionIdentity, application: Application, to_status: ApplicationStatus
) -> bool:
    """Staff review the application; owners may only submit it."""
    resource = Resource.application(application)
    if can(identity, Action.UPDATE_APPLICATION_STATUS, resource):
        return True
    return to_status is ApplicationStatus.SUBMITTED and can(
        identity, Action.SUBMIT_APPLICATION, resource
    )


class ApplicationStateMachine:
    """Validated, audited status transitions."""

    def __init__(self, notifications: NotificationQueue):
        self.notifications = notifications

    async def transition(
        self,
        db: AsyncSession,
        application_id: int,
        to_status: str | ApplicationStatus,
        identity: SessionIdentity,
        *,
        notes: str | None = None,
        rejection_reason: str | None = None,
        conditional_offer_terms: str | None = None,
        meta: RequestMeta | None = None,
    ) -> Application:
        """
        Move an application to a new status.

        Args:
            db: Database session (committed on success, rolled back on failure)
            application_id: Application to change
            to_status: Target status (wire value or enum)
            identity: Caller
            notes: Free-text note stored on the history entry, and as the
                admin notes when the caller is staff
            rejection_reason: Stored when moving to rejected
            conditional_offer_terms: Stored when moving to approved
            meta: Client details for the audit entry

        Returns:
            The updated Application

        Raises:
            NotFoundError: Application missing, or not visible to the caller
            InvalidStatusError: to_status is not a known status
            ForbiddenError: Caller may not make this change
            IllegalTransitionError: The edge is not in the transition graph
            AuditWriteError: The audit entry could not be written
        """
        try:
            application = await repository.get_for_update(db, application_id)
            if application is None:
                raise NotFoundError("Application", application_id)

            if not can(identity, Action.VIEW_APPLICATION, Resource.application(application)):
                logger.warning(
                    f"{identity} attempted to change status of application {application_id} "
                    "it cannot see"
                )
                raise NotFoundError("Application", application_id)

            target = parse_status(to_status)

            if not may_change_status(identity, application, target):
                logger.warning(
                    f"{identity} denied status change of application {application_id} "
                    f"to {target.value}"
                )
                raise ForbiddenError()

            from_status = application.status
            if not is_valid_transition(from_status, target):
                raise IllegalTransitionError(from_status.value, target.value)

            application.status = target
            application.updated_at = utcnow()
            application.last_action_by = identity.id
            if notes and identity.is_staff:
                application.admin_notes = notes
            if target is ApplicationStatus.REJECTED and rejection_reason:
                application.rejection_reason = rejection_reason
            if target is ApplicationStatus.APPROVED and conditional_offer_terms:
                application.conditional_offer_terms = conditional_offer_terms

            await repository.add_history(
                db,
                application_id=application.id,
                from_status=from_status,
                to_status=target,
                changed_by=identity.id,
                notes=notes,
            )
            await audit_service.record_action(
                db,
                actor_id=identity.id,
                action=AuditAction.UPDATE_APPLICATION_STATUS,
                resource_type="application",
                resource_id=application.id,
                previous_data={"status": from_status.value},
                new_data={"status": target.value},
                meta=meta,
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Application {application.id}: {from_status.value} -> {target.value} "
            f"by user {identity.id}"
        )

        await self.notify(db, application, previous_status=from_status, notes=notes)
        return application

    async def notify(
        self,
        db: AsyncSession,
        application: Application,
        *,
        previous_status: ApplicationStatus | None,
        notes: str | None = None,
    ) -> None:
        """Queue the notification for a committed status. Never raises."""
        try:
            event = await build_application_event(
                db, application, previous_status=previous_status, notes=notes
            )
        except Exception as e:
            logger.error(
                f"Could not build notification for application {application.id}: {e}",
                exc_info=True,
            )
            return

        await self.notifications.enqueue(event)
