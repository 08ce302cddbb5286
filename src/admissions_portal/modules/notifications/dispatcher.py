"""
Notification Dispatcher

Renders and delivers lifecycle notifications. Delivery is strictly
best-effort: every recipient is attempted independently, failures are logged,
and nothing here ever raises to the code that produced the event.

NotificationQueue is the hand-off point used by services once their
transaction has committed. It submits dispatch() to the background scheduler,
or awaits it inline when the scheduler is disabled.
"""

import logging
from dataclasses import dataclass, field

from admissions_portal.core.email import EmailTransport
from admissions_portal.core.errors import NotificationError
from admissions_portal.core.scheduler import TaskScheduler

from .events import NotificationEvent
from .templates import render

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class NotificationDispatcher:
    """Turns a NotificationEvent into one email per distinct recipient."""

    def __init__(self, transport: EmailTransport, frontend_url: str):
        self.transport = transport
        self.frontend_url = frontend_url

    async def dispatch(self, event: NotificationEvent) -> DispatchResult:
        """
        Deliver event to each recipient.

        An address listed under several audiences receives only the first
        (most specific) message rendered for it.
        """
        result = DispatchResult()
        seen: set[str] = set()

        for audience, address in event.recipients.targets():
            key = address.strip().lower()
            if not key or key in seen:
                continue

            try:
                message = render(event, audience, self.frontend_url)
            except Exception as e:
                logger.error(
                    f"Failed to render {event.kind.value} for {audience.value}: {e}",
                    exc_info=True,
                )
                continue
            if message is None:
                continue
            seen.add(key)

            try:
                await self.transport.send(address, message.subject, message.html)
            except NotificationError as e:
                logger.error(f"Notification {event.kind.value} to {address} failed: {e.message}")
                result.failed.append(address)
            except Exception as e:
                logger.error(
                    f"Notification {event.kind.value} to {address} failed: {e}",
                    exc_info=True,
                )
                result.failed.append(address)
            else:
                result.sent.append(address)

        logger.info(
            f"Dispatched {event.kind.value} for #{event.subject_id}: "
            f"{len(result.sent)} sent, {len(result.failed)} failed"
        )
        return result


class NotificationQueue:
    """Hands committed events to the dispatcher without blocking the caller."""

    def __init__(self, dispatcher: NotificationDispatcher, scheduler: TaskScheduler):
        self.dispatcher = dispatcher
        self.scheduler = scheduler

    async def enqueue(self, event: NotificationEvent) -> None:
        await self.scheduler.submit(
            self.dispatcher.dispatch,
            event,
            name=f"notify:{event.kind.value}:{event.subject_id}",
        )
