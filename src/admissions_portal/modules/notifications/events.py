"""
Notification Events

Transient, in-memory descriptions of something worth telling people about.
Events are built from committed data and carry plain values only, so they can
be handed to a background task after the database session is gone.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class NotificationKind(str, Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    REJECTED = "rejected"
    STATUS_CHANGED = "status_changed"
    USER_CREATED = "user_created"
    SUB_ADMIN_WELCOME = "sub_admin_welcome"
    WELCOME = "welcome"

    @classmethod
    def for_status(cls, status: str) -> "NotificationKind":
        """Kind announcing a move into status; draft/incomplete use the generic notice."""
        try:
            kind = cls(status)
        except ValueError:
            return cls.STATUS_CHANGED
        if kind in APPLICATION_KINDS:
            return kind
        return cls.STATUS_CHANGED


class Audience(str, Enum):
    """Who a rendered message is written for, most specific first."""

    USER = "user"
    STUDENT = "student"
    AGENT = "agent"
    ADMIN = "admin"


APPLICATION_KINDS = frozenset(
    {
        NotificationKind.SUBMITTED,
        NotificationKind.UNDER_REVIEW,
        NotificationKind.APPROVED,
        NotificationKind.REJECTED,
        NotificationKind.STATUS_CHANGED,
    }
)


@dataclass(frozen=True)
class ApplicationSnapshot:
    id: int
    status: str
    previous_status: str | None
    student_name: str
    student_email: str
    owner_name: str
    program_name: str
    university_name: str
    notes: str | None = None
    rejection_reason: str | None = None
    conditional_offer_terms: str | None = None


@dataclass(frozen=True)
class UserSnapshot:
    id: int
    name: str
    email: str
    role: str
    agency_name: str | None = None
    # Only set for sub_admin_welcome, never logged
    temporary_password: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class Recipients:
    """
    Resolved email addresses for one event.

    Attributes:
        student: Student email taken from the application
        agent: Email of the identity that owns the application
        admins: Every active admin and sub-admin
        user: The account an administrative event is about (welcome mails)
    """

    student: str | None = None
    agent: str | None = None
    admins: tuple[str, ...] = ()
    user: str | None = None

    def targets(self) -> Iterator[tuple[Audience, str]]:
        """(audience, address) pairs, most specific audience first."""
        if self.user:
            yield Audience.USER, self.user
        if self.student:
            yield Audience.STUDENT, self.student
        if self.agent:
            yield Audience.AGENT, self.agent
        for address in self.admins:
            if address:
                yield Audience.ADMIN, address


@dataclass(frozen=True)
class NotificationEvent:
    kind: NotificationKind
    recipients: Recipients
    application: ApplicationSnapshot | None = None
    user: UserSnapshot | None = None

    @property
    def subject_id(self) -> int | None:
        if self.application is not None:
            return self.application.id
        if self.user is not None:
            return self.user.id
        return None
