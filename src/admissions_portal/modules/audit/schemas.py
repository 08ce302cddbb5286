"""Audit log schemas."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from admissions_portal.core.schemas import APIModel


class AuditAction:
    """Action names written to the audit log."""

    UPDATE_APPLICATION_STATUS = "update-application-status"
    CREATE_USER = "create-user"
    UPDATE_USER = "update-user"
    ACTIVATE_USER = "activate-user"
    DEACTIVATE_USER = "deactivate-user"
    DELETE_USER = "delete-user"
    CREATE_SUB_ADMIN = "create-sub-admin"
    RESET_PASSWORD = "reset-password"
    ADD_DOCUMENT = "add-document"
    DELETE_DOCUMENT = "delete-document"


@dataclass
class RequestMeta:
    """Client details captured alongside an audit entry."""

    ip_address: str | None = None
    user_agent: str | None = None


class AuditLogEntryCreate(BaseModel):
    """Input to AuditLogService.record."""

    actor_id: int | None
    action: str = Field(..., min_length=1, max_length=100)
    resource_type: str = Field(..., min_length=1, max_length=50)
    resource_id: int | None = None
    previous_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class AuditLogFilters(BaseModel):
    user_id: int | None = None
    resource_type: str | None = None
    resource_id: int | None = None
    action: str | None = None


class AuditLogResponse(APIModel):
    id: int
    actor_id: int | None
    action: str
    resource_type: str
    resource_id: int | None
    previous_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime
