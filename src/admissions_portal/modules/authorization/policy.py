"""
Authorization Policy

One decision function, can(), consulted by every service before it touches a
resource. Routes only establish *who* is calling; *whether* they may act is
decided here, including the ownership re-check on every owner-scoped resource.

Rules, in priority order:
1. admin      - everything, except changing another admin account. An admin may
                edit their own profile but no admin account can be deactivated
                or deleted.
2. sub-admin  - a fixed capability set: view applications, update status,
                view users.
3. agent      - owner-scoped actions on resources they own.
4. student    - owner-scoped actions on their own resources; the only status
                change they may make is submitting a draft.
5. otherwise  - deny. Inactive identities are always denied.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from admissions_portal.core.auth import SessionIdentity
from admissions_portal.core.errors import ForbiddenError, NotFoundError
from admissions_portal.modules.users.models import UserRole


class Action(str, Enum):
    # Applications
    VIEW_APPLICATION = "view-application"
    LIST_ALL_APPLICATIONS = "list-all-applications"
    CREATE_APPLICATION = "create-application"
    EDIT_APPLICATION = "edit-application"
    SUBMIT_APPLICATION = "submit-application"
    UPDATE_APPLICATION_STATUS = "update-application-status"
    MANAGE_DOCUMENTS = "manage-documents"

    # Users
    VIEW_USERS = "view-users"
    CREATE_USER = "create-user"
    EDIT_USER = "edit-user"
    SET_USER_ACTIVE = "set-user-active"
    DELETE_USER = "delete-user"
    MANAGE_SUB_ADMINS = "manage-sub-admins"

    # Administration
    VIEW_AUDIT_LOGS = "view-audit-logs"
    VIEW_STATS = "view-stats"


# Actions that modify another identity - blocked when the target is an admin
USER_MUTATIONS = frozenset(
    {
        Action.EDIT_USER,
        Action.SET_USER_ACTIVE,
        Action.DELETE_USER,
        Action.MANAGE_SUB_ADMINS,
    }
)

SUB_ADMIN_CAPABILITIES = frozenset(
    {
        Action.VIEW_APPLICATION,
        Action.LIST_ALL_APPLICATIONS,
        Action.UPDATE_APPLICATION_STATUS,
        Action.VIEW_USERS,
    }
)

OWNER_ACTIONS = frozenset(
    {
        Action.VIEW_APPLICATION,
        Action.CREATE_APPLICATION,
        Action.EDIT_APPLICATION,
        Action.SUBMIT_APPLICATION,
        Action.MANAGE_DOCUMENTS,
    }
)

# Statuses an owner may submit from. Students only submit drafts; agents may
# also resubmit an application sent back as incomplete.
SUBMITTABLE_FROM: dict[UserRole, frozenset[str]] = {
    UserRole.AGENT: frozenset({"draft", "incomplete"}),
    UserRole.STUDENT: frozenset({"draft"}),
}


@dataclass(frozen=True)
class Resource:
    """The facts about a resource the policy needs - nothing more."""

    kind: str
    id: int | None = None
    owner_id: int | None = None
    role: UserRole | None = None
    status: str | None = None

    @classmethod
    def application(cls, application: Any) -> "Resource":
        status = application.status
        return cls(
            kind="application",
            id=application.id,
            owner_id=application.owner_id,
            status=getattr(status, "value", status),
        )

    @classmethod
    def user(cls, user: Any) -> "Resource":
        return cls(kind="user", id=user.id, owner_id=user.id, role=user.role)


def can(identity: SessionIdentity | None, action: Action, resource: Resource | None = None) -> bool:
    """
    Decide whether identity may perform action on resource.

    Pure function: no I/O, no side effects.
    """
    if identity is None or not identity.active:
        return False

    role = identity.role

    if role is UserRole.ADMIN:
        if action in USER_MUTATIONS and resource is not None and resource.role is UserRole.ADMIN:
            return action is Action.EDIT_USER and resource.id == identity.id
        return True

    if role is UserRole.SUB_ADMIN:
        return action in SUB_ADMIN_CAPABILITIES

    if role in (UserRole.AGENT, UserRole.STUDENT):
        if action not in OWNER_ACTIONS:
            return False
        if action is Action.CREATE_APPLICATION:
            return True
        if resource is None or resource.owner_id != identity.id:
            return False
        if action is Action.SUBMIT_APPLICATION:
            return resource.status in SUBMITTABLE_FROM[role]
        return True

    return False


def require(
    identity: SessionIdentity | None,
    action: Action,
    resource: Resource | None = None,
    *,
    hide_existence: bool = False,
) -> None:
    """
    Raise unless can() allows the action.

    Args:
        hide_existence: Report a denial on an owner-scoped resource as 404 so
            callers cannot discover ids they do not own

    Raises:
        ForbiddenError: Policy denied the action
        NotFoundError: Policy denied and hide_existence was requested
    """
    if can(identity, action, resource):
        return

    if hide_existence and resource is not None:
        raise NotFoundError(resource.kind.capitalize(), resource.id)
    raise ForbiddenError()
