"""Tests for the in-memory sliding-window rate limiter."""

from unittest.mock import patch

import pytest

from admissions_portal.core.rate_limit import MEMORY_SWEEP_INTERVAL, RateLimiter

MODULE = "admissions_portal.core.rate_limit"


class TestMemoryLimiter:
    @pytest.mark.asyncio
    async def test_blocks_after_limit_within_window(self):
        limiter = RateLimiter()
        with patch(f"{MODULE}.time") as clock:
            clock.time.return_value = 1000.0
            results = [await limiter.check("login:10.0.0.1", 3, 60) for _ in range(4)]

            clock.time.return_value = 1061.0
            after_window = await limiter.check("login:10.0.0.1", 3, 60)

        assert results == [True, True, True, False]
        assert after_window is True

    @pytest.mark.asyncio
    async def test_idle_keys_are_evicted(self):
        limiter = RateLimiter()
        with patch(f"{MODULE}.time") as clock:
            clock.time.return_value = 1000.0
            await limiter.check("login:10.0.0.1", 5, 60)
            await limiter.check("login:10.0.0.2", 5, 60)

            clock.time.return_value = 1000.0 + 60 + MEMORY_SWEEP_INTERVAL
            await limiter.check("login:10.0.0.3", 5, 60)

        assert set(limiter._memory_store) == {"login:10.0.0.3"}
        assert set(limiter._memory_expiry) == {"login:10.0.0.3"}

    @pytest.mark.asyncio
    async def test_keys_inside_their_window_survive_a_sweep(self):
        limiter = RateLimiter()
        with patch(f"{MODULE}.time") as clock:
            clock.time.return_value = 1000.0
            await limiter.check("register:10.0.0.1", 5, 3600)

            clock.time.return_value = 1000.0 + MEMORY_SWEEP_INTERVAL + 1
            await limiter.check("login:10.0.0.2", 5, 60)

        assert "register:10.0.0.1" in limiter._memory_store

    @pytest.mark.asyncio
    async def test_blocked_key_keeps_its_hits(self):
        limiter = RateLimiter()
        with patch(f"{MODULE}.time") as clock:
            clock.time.return_value = 1000.0
            for _ in range(3):
                await limiter.check("login:10.0.0.1", 2, 60)

        assert limiter._memory_store["login:10.0.0.1"] == [1000.0, 1000.0]
        assert limiter._memory_expiry["login:10.0.0.1"] == 1060.0
