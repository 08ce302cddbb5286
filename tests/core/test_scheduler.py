"""
Tests for the background task scheduler.

These tests cover:
- Inline execution when the scheduler is disabled
- stop() waiting for queued and running tasks
- Failure and timeout handling during shutdown
"""

import asyncio

import pytest

from admissions_portal.core.scheduler import TaskScheduler


class TestInlineExecution:
    @pytest.mark.asyncio
    async def test_disabled_scheduler_awaits_the_task(self):
        scheduler = TaskScheduler(enabled=False)
        await scheduler.start()
        delivered = []

        async def deliver(message):
            delivered.append(message)

        await scheduler.submit(deliver, "hello")

        assert delivered == ["hello"]
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_inline_failure_is_logged_not_raised(self):
        scheduler = TaskScheduler(enabled=False)

        async def explode():
            raise RuntimeError("boom")

        await scheduler.submit(explode)


class TestShutdown:
    @pytest.mark.asyncio
    async def test_stop_runs_tasks_that_have_not_fired_yet(self):
        scheduler = TaskScheduler(enabled=True)
        await scheduler.start()
        delivered = []

        async def deliver(message):
            await asyncio.sleep(0.05)
            delivered.append(message)

        await scheduler.submit(deliver, "queued", name="notify:queued")
        await scheduler.stop()

        assert delivered == ["queued"]
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_waits_for_running_tasks(self):
        scheduler = TaskScheduler(enabled=True)
        await scheduler.start()
        started = asyncio.Event()
        delivered = []

        async def deliver(message):
            started.set()
            await asyncio.sleep(0.1)
            delivered.append(message)

        await scheduler.submit(deliver, "in-flight")
        await asyncio.wait_for(started.wait(), timeout=2)

        await scheduler.stop()

        assert delivered == ["in-flight"]

    @pytest.mark.asyncio
    async def test_failing_task_does_not_block_the_others(self):
        scheduler = TaskScheduler(enabled=True)
        await scheduler.start()
        delivered = []

        async def explode():
            raise RuntimeError("transport down")

        async def deliver(message):
            await asyncio.sleep(0.01)
            delivered.append(message)

        await scheduler.submit(explode)
        await scheduler.submit(deliver, "after failure")
        await scheduler.stop()

        assert delivered == ["after failure"]

    @pytest.mark.asyncio
    async def test_tasks_past_the_timeout_are_cancelled(self):
        scheduler = TaskScheduler(enabled=True, shutdown_timeout=0.05)
        await scheduler.start()
        cancelled = asyncio.Event()

        async def hang():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        await scheduler.submit(hang)
        await asyncio.wait_for(scheduler.stop(), timeout=2)

        assert cancelled.is_set()
        assert not scheduler.running
