"""
Background Task Scheduler

Wraps an APScheduler AsyncIOScheduler used to run work after a request has
already produced its response - notification delivery in particular.

Design Principles:
- Submitted tasks run once, as soon as the event loop is free
- Failed tasks are logged but never crash the scheduler or reach the caller
- When the scheduler is not running (disabled, or in tests) tasks are awaited
  inline, with the same log-and-continue failure handling
- The scheduler lifecycle is tied to the application lifespan; stopping it
  waits for every submitted task

Usage:
    scheduler = TaskScheduler(enabled=settings.background_notifications)
    await scheduler.start()
    await scheduler.submit(dispatcher.dispatch, event, name="notify:approved")
    await scheduler.stop()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_COALESCE = False  # Every submitted task must run
    JOB_MAX_INSTANCES = 50
    JOB_MISFIRE_GRACE_TIME = 60 * 5  # 5 minutes grace time for delayed tasks

    SHUTDOWN_TIMEOUT = 30.0  # seconds stop() waits for running tasks

    EXECUTORS = {
        "default": {"type": "asyncio"},
    }

    JOB_DEFAULTS = {
        "coalesce": JOB_COALESCE,
        "max_instances": JOB_MAX_INSTANCES,
        "misfire_grace_time": JOB_MISFIRE_GRACE_TIME,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Background task {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.debug(f"Background task {event.job_id} finished")


class TaskScheduler:
    """
    One-shot background task runner owned by the AppContext.

    The scheduler job only launches the task; the task itself is tracked here
    so stop() can wait for it. APScheduler cancels pending asyncio jobs on
    shutdown, so jobs that have not fired yet are drained by stop() as well.
    """

    def __init__(
        self,
        enabled: bool = True,
        shutdown_timeout: float = SchedulerConfig.SHUTDOWN_TIMEOUT,
    ):
        self.enabled = enabled
        self.shutdown_timeout = shutdown_timeout
        self._scheduler: AsyncIOScheduler | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def start(self) -> None:
        if not self.enabled:
            logger.info("Background scheduler disabled - tasks will run inline")
            return

        if self.running:
            logger.warning("Scheduler already running")
            return

        self._scheduler = AsyncIOScheduler(
            timezone=SchedulerConfig.TIMEZONE,
            executors=SchedulerConfig.EXECUTORS,
            job_defaults=SchedulerConfig.JOB_DEFAULTS,
        )
        self._scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
        self._scheduler.start()
        logger.info("Background scheduler started")

    async def stop(self) -> None:
        """Stop scheduling, then wait up to shutdown_timeout for submitted tasks."""
        if not self.running:
            return

        logger.info("Stopping background scheduler...")
        self._scheduler.pause()

        for job in self._scheduler.get_jobs():
            func, args, name = job.args
            job.remove()
            self._spawn(func, args, name)

        # Lets launch jobs already handed to the executor start their task
        await asyncio.sleep(0)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.shutdown_timeout
        while self._in_flight:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.wait(set(self._in_flight), timeout=remaining)

        if self._in_flight:
            logger.warning(
                f"{len(self._in_flight)} background task(s) still running after "
                f"{self.shutdown_timeout}s, cancelling"
            )
            for task in self._in_flight:
                task.cancel()
            await asyncio.gather(*self._in_flight, return_exceptions=True)

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Background scheduler stopped")

    async def submit(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        name: str | None = None,
    ) -> None:
        """
        Run func(*args) in the background, or inline when the scheduler is off.

        Never raises: a failing task is logged and dropped.
        """
        task_name = name or getattr(func, "__name__", "task")

        if self.running:
            try:
                self._scheduler.add_job(
                    self._launch,
                    trigger="date",
                    args=[func, args, task_name],
                    name=task_name,
                )
                return
            except Exception as e:
                logger.error(f"Could not schedule {task_name}, running inline: {e}")

        await _run_logged(func, args, task_name)

    async def _launch(self, func: Callable[..., Awaitable[Any]], args: tuple, name: str) -> None:
        self._spawn(func, args, name)

    def _spawn(self, func: Callable[..., Awaitable[Any]], args: tuple, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(_run_logged(func, args, name), name=name)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task


async def _run_logged(func: Callable[..., Awaitable[Any]], args: tuple, name: str) -> None:
    try:
        await func(*args)
    except Exception as e:
        logger.error(f"Task {name} failed: {e}", exc_info=True)
