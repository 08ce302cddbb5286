"""
Notifications Module

Role-specific lifecycle emails, delivered best-effort after the change that
triggered them has committed.
"""

from .dispatcher import DispatchResult, NotificationDispatcher, NotificationQueue
from .events import (
    ApplicationSnapshot,
    Audience,
    NotificationEvent,
    NotificationKind,
    Recipients,
    UserSnapshot,
)

__all__ = [
    "ApplicationSnapshot",
    "Audience",
    "DispatchResult",
    "NotificationDispatcher",
    "NotificationEvent",
    "NotificationKind",
    "NotificationQueue",
    "Recipients",
    "UserSnapshot",
]
