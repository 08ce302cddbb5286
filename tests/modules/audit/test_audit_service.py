"""Unit tests for the audit log service."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from admissions_portal.core.errors import AuditWriteError
from admissions_portal.modules.audit import service
from admissions_portal.modules.audit.schemas import AuditAction, RequestMeta

MODULE = "admissions_portal.modules.audit.service"


class TestRecordAction:
    @pytest.mark.asyncio
    async def test_request_meta_is_copied_into_the_entry(self, mock_db):
        with patch(f"{MODULE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(return_value=MagicMock(id=1))

            await service.record_action(
                mock_db,
                actor_id=1,
                action=AuditAction.DEACTIVATE_USER,
                resource_type="user",
                resource_id=5,
                previous_data={"active": True},
                new_data={"active": False},
                meta=RequestMeta(ip_address="10.0.0.8", user_agent="pytest"),
            )

            entry = mock_repo.create.call_args.args[1]

        assert entry.action == "deactivate-user"
        assert entry.ip_address == "10.0.0.8"
        assert entry.user_agent == "pytest"
        assert entry.previous_data == {"active": True}

    @pytest.mark.asyncio
    async def test_missing_meta_is_allowed(self, mock_db):
        with patch(f"{MODULE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(return_value=MagicMock(id=1))

            await service.record_action(
                mock_db,
                actor_id=None,
                action=AuditAction.CREATE_USER,
                resource_type="user",
                resource_id=5,
            )

            entry = mock_repo.create.call_args.args[1]

        assert entry.ip_address is None
        assert entry.actor_id is None

    @pytest.mark.asyncio
    async def test_storage_failure_becomes_audit_write_error(self, mock_db):
        with patch(f"{MODULE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(
                side_effect=OperationalError("INSERT INTO audit_logs", {}, Exception("disk full"))
            )

            with pytest.raises(AuditWriteError) as exc_info:
                await service.record_action(
                    mock_db,
                    actor_id=1,
                    action=AuditAction.UPDATE_APPLICATION_STATUS,
                    resource_type="application",
                    resource_id=42,
                )

        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "AUDIT_WRITE_FAILED"
