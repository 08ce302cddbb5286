"""
Users Service Layer

Account creation and administration. Every administrative mutation is checked
against the authorization policy, recorded in the audit log within the same
transaction, and announced (best-effort) after commit.

Audit payloads describe the account's profile only; password hashes are never
written to the audit log.
"""

import asyncio
import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity
from admissions_portal.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidEmailError,
    MissingFieldError,
    NotFoundError,
    ValidationError,
)
from admissions_portal.core.security import generate_temporary_password, hash_password
from admissions_portal.modules.applications import repository as application_repository
from admissions_portal.modules.audit import service as audit_service
from admissions_portal.modules.audit.schemas import AuditAction, RequestMeta
from admissions_portal.modules.authorization import Action, Resource, require
from admissions_portal.modules.notifications import (
    NotificationEvent,
    NotificationKind,
    NotificationQueue,
    Recipients,
    UserSnapshot,
)
from admissions_portal.modules.users.models import User, UserRole
from admissions_portal.modules.users.repository import UserRepository
from admissions_portal.modules.users.schemas import (
    ProfileFields,
    SubAdminCreateRequest,
    UserCreateRequest,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

PROFILE_FIELDS = ("first_name", "last_name", "agency_name", "country", "phone_number", "website")

# Roles an admin may hard-delete
DELETABLE_ROLES = frozenset({UserRole.AGENT, UserRole.SUB_ADMIN})


class UsernameTakenError(ConflictError):
    def __init__(self):
        super().__init__(
            message="An account with this email already exists.",
            error_code="USERNAME_TAKEN",
        )
        self.fields = {"username": "Already registered."}


class WeakPasswordError(ValidationError):
    def __init__(self, field: str = "password"):
        super().__init__(
            message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            error_code="WEAK_PASSWORD",
            fields={field: f"Must be at least {MIN_PASSWORD_LENGTH} characters."},
        )


class UserHasApplicationsError(ConflictError):
    def __init__(self, user_id: int):
        super().__init__(
            message=f"User {user_id} owns applications and cannot be deleted. Deactivate the account instead.",
            error_code="USER_HAS_APPLICATIONS",
        )


# ============================================
# Helpers
# ============================================


def normalize_username(value: str | None, field: str = "username") -> str:
    """
    Validate an email address used as a username and lower-case it.

    Raises:
        MissingFieldError: value is empty
        InvalidEmailError: value is not a valid email address
    """
    if value is None or not value.strip():
        raise MissingFieldError(field)
    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise InvalidEmailError(field) from e
    return result.normalized.lower()


def check_password(value: str | None, field: str = "password") -> str:
    if not value:
        raise MissingFieldError(field)
    if len(value) < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(field)
    return value


def audit_view(user: User) -> dict:
    """Profile data recorded in audit entries."""
    return {
        "username": user.username,
        "role": user.role.value,
        "active": user.active,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "agencyName": user.agency_name,
        "country": user.country,
        "phoneNumber": user.phone_number,
        "website": user.website,
    }


def snapshot(user: User, temporary_password: str | None = None) -> UserSnapshot:
    return UserSnapshot(
        id=user.id,
        name=user.full_name,
        email=user.username,
        role=user.role.value,
        agency_name=user.agency_name,
        temporary_password=temporary_password,
    )


async def announce_user_created(
    db: AsyncSession, notifications: NotificationQueue, user: User
) -> None:
    """Tell every active staff member about a new account. Never raises."""
    try:
        admin_emails = await UserRepository.get_staff_emails(db)
    except Exception as e:
        logger.error(f"Could not resolve admin recipients for user {user.id}: {e}")
        return

    await notifications.enqueue(
        NotificationEvent(
            kind=NotificationKind.USER_CREATED,
            recipients=Recipients(admins=tuple(admin_emails)),
            user=snapshot(user),
        )
    )


async def create_account(
    db: AsyncSession,
    *,
    username: str | None,
    password: str | None,
    role: UserRole,
    profile: ProfileFields | None = None,
    active: bool = True,
) -> User:
    """
    Validate and insert a new account. The caller commits.

    Raises:
        MissingFieldError / InvalidEmailError / WeakPasswordError: Bad input
        UsernameTakenError: The email is already registered
    """
    normalized = normalize_username(username)
    check_password(password)

    if await UserRepository.username_exists(db, normalized):
        raise UsernameTakenError()

    profile_data = profile.model_dump(include=set(PROFILE_FIELDS)) if profile else {}
    return await UserRepository.create(
        db,
        username=normalized,
        password_hash=await asyncio.to_thread(hash_password, password),
        role=role,
        active=active,
        **profile_data,
    )


async def _load_user(db: AsyncSession, user_id: int) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


# ============================================
# Admin user management
# ============================================


async def list_users(
    db: AsyncSession, identity: SessionIdentity, role: UserRole | None = None
) -> list[User]:
    require(identity, Action.VIEW_USERS)
    return await UserRepository.list_users(db, role=role)


async def admin_create_user(
    db: AsyncSession,
    notifications: NotificationQueue,
    identity: SessionIdentity,
    data: UserCreateRequest,
    meta: RequestMeta | None = None,
) -> User:
    """Create an agent account on behalf of an admin."""
    require(identity, Action.CREATE_USER)

    try:
        user = await create_account(
            db,
            username=data.username,
            password=data.password,
            role=UserRole.AGENT,
            profile=data,
        )
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.CREATE_USER,
            resource_type="user",
            resource_id=user.id,
            new_data=audit_view(user),
            meta=meta,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Admin {identity.id} created user {user.id}")
    await announce_user_created(db, notifications, user)
    return user


async def update_user(
    db: AsyncSession,
    identity: SessionIdentity,
    user_id: int,
    data: UserUpdateRequest,
    meta: RequestMeta | None = None,
) -> User:
    """Edit profile fields. Admin accounts can only be edited by themselves."""
    require(identity, Action.EDIT_USER)
    user = await _load_user(db, user_id)
    require(identity, Action.EDIT_USER, Resource.user(user))

    changes = data.model_dump(exclude_unset=True)
    previous = {key: getattr(user, key) for key in changes}

    try:
        for key, value in changes.items():
            setattr(user, key, value)
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.UPDATE_USER,
            resource_type="user",
            resource_id=user.id,
            previous_data=previous,
            new_data=changes,
            meta=meta,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"User {identity.id} updated user {user.id}: {sorted(changes)}")
    return user


async def set_user_active(
    db: AsyncSession,
    identity: SessionIdentity,
    user_id: int,
    active: bool,
    meta: RequestMeta | None = None,
) -> User:
    """Activate or deactivate an account. Admin accounts cannot be changed."""
    require(identity, Action.SET_USER_ACTIVE)
    user = await _load_user(db, user_id)
    require(identity, Action.SET_USER_ACTIVE, Resource.user(user))

    previous = user.active
    try:
        user.active = active
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.ACTIVATE_USER if active else AuditAction.DEACTIVATE_USER,
            resource_type="user",
            resource_id=user.id,
            previous_data={"active": previous},
            new_data={"active": active},
            meta=meta,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Admin {identity.id} set user {user.id} active={active}")
    return user


async def delete_user(
    db: AsyncSession,
    identity: SessionIdentity,
    user_id: int,
    meta: RequestMeta | None = None,
) -> None:
    """
    Hard-delete an agent or sub-admin.

    Raises:
        ForbiddenError: Target is an admin or student
        UserHasApplicationsError: Target still owns applications
    """
    require(identity, Action.DELETE_USER)
    user = await _load_user(db, user_id)
    require(identity, Action.DELETE_USER, Resource.user(user))

    if user.role not in DELETABLE_ROLES:
        raise ForbiddenError(f"{user.role.value} accounts cannot be deleted.")

    if await application_repository.owner_has_applications(db, user.id):
        raise UserHasApplicationsError(user.id)

    try:
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.DELETE_USER,
            resource_type="user",
            resource_id=user.id,
            previous_data=audit_view(user),
            meta=meta,
        )
        await UserRepository.delete(db, user.id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Admin {identity.id} deleted user {user_id}")


# ============================================
# Sub-admins
# ============================================


async def list_sub_admins(db: AsyncSession, identity: SessionIdentity) -> list[User]:
    require(identity, Action.MANAGE_SUB_ADMINS)
    return await UserRepository.list_users(db, role=UserRole.SUB_ADMIN)


async def create_sub_admin(
    db: AsyncSession,
    notifications: NotificationQueue,
    identity: SessionIdentity,
    data: SubAdminCreateRequest,
    meta: RequestMeta | None = None,
) -> tuple[User, str]:
    """
    Create a sub-admin and email them their credentials.

    A temporary password is generated when none is supplied.

    Returns:
        (created user, the plain-text password to hand over)
    """
    require(identity, Action.MANAGE_SUB_ADMINS)

    if not data.first_name:
        raise MissingFieldError("firstName")
    if not data.last_name:
        raise MissingFieldError("lastName")

    password = data.password or generate_temporary_password()

    try:
        user = await create_account(
            db,
            username=data.username,
            password=password,
            role=UserRole.SUB_ADMIN,
            profile=ProfileFields(first_name=data.first_name, last_name=data.last_name),
        )
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.CREATE_SUB_ADMIN,
            resource_type="user",
            resource_id=user.id,
            new_data=audit_view(user),
            meta=meta,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Admin {identity.id} created sub-admin {user.id}")

    await notifications.enqueue(
        NotificationEvent(
            kind=NotificationKind.SUB_ADMIN_WELCOME,
            recipients=Recipients(user=user.username),
            user=snapshot(user, temporary_password=password),
        )
    )
    return user, password


async def reset_sub_admin_password(
    db: AsyncSession,
    notifications: NotificationQueue,
    identity: SessionIdentity,
    user_id: int,
    meta: RequestMeta | None = None,
) -> str:
    """Replace a sub-admin's password with a new temporary one and email it."""
    require(identity, Action.MANAGE_SUB_ADMINS)

    user = await UserRepository.get_by_id(db, user_id)
    if user is None or user.role is not UserRole.SUB_ADMIN:
        raise NotFoundError("Sub-admin", user_id)
    require(identity, Action.MANAGE_SUB_ADMINS, Resource.user(user))

    password = generate_temporary_password()
    try:
        user.password_hash = await asyncio.to_thread(hash_password, password)
        await audit_service.record_action(
            db,
            actor_id=identity.id,
            action=AuditAction.RESET_PASSWORD,
            resource_type="user",
            resource_id=user.id,
            meta=meta,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Admin {identity.id} reset the password of sub-admin {user.id}")

    await notifications.enqueue(
        NotificationEvent(
            kind=NotificationKind.SUB_ADMIN_WELCOME,
            recipients=Recipients(user=user.username),
            user=snapshot(user, temporary_password=password),
        )
    )
    return password
