"""Tests for the health and readiness endpoints."""

from unittest.mock import AsyncMock, patch

import pytest


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_ready_when_database_answers(self, client):
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_not_ready_when_database_fails(self, app, client):
        database = app.state.context.database
        with patch.object(database, "ping", AsyncMock(side_effect=ConnectionError("down"))):
            response = await client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"
