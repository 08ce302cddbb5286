"""
HTTP tests for user and sub-admin administration.

These tests cover:
- Admin-only account management and the admin-protection rules
- Sub-admin read access
- Audit entries and welcome emails for administrative actions
"""

from html import escape

import pytest

from admissions_portal.modules.users.models import UserRole


class TestAdminProtection:
    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_another_admin(
        self, client, admin, make_user, auth_headers
    ):
        other_admin = await make_user("second.admin@nextwave.ae", UserRole.ADMIN)

        response = await client.put(
            f"/api/admin/users/{other_admin.id}/status",
            json={"active": False},
            headers=auth_headers(admin),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_self(self, client, admin, auth_headers):
        response = await client.put(
            f"/api/admin/users/{admin.id}/status",
            json={"active": False},
            headers=auth_headers(admin),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_edit_own_profile(self, client, admin, auth_headers):
        response = await client.put(
            f"/api/admin/users/{admin.id}",
            json={"firstName": "Amira", "phoneNumber": "+971400000000"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["phoneNumber"] == "+971400000000"

    @pytest.mark.asyncio
    async def test_admin_cannot_be_deleted(self, client, admin, auth_headers):
        response = await client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_profile_update_rejects_role_changes(self, client, admin, agent, auth_headers):
        response = await client.put(
            f"/api/admin/users/{agent.id}",
            json={"role": "admin"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestUserManagement:
    @pytest.mark.asyncio
    async def test_deactivate_agent_is_audited(self, client, admin, agent, auth_headers):
        response = await client.put(
            f"/api/admin/users/{agent.id}/status",
            json={"active": False},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["active"] is False

        logs = await client.get(
            "/api/admin/audit-logs",
            params={"resourceType": "user", "resourceId": agent.id},
            headers=auth_headers(admin),
        )
        [entry] = logs.json()
        assert entry["action"] == "deactivate-user"
        assert entry["previousData"] == {"active": True}
        assert entry["newData"] == {"active": False}
        assert entry["actorId"] == admin.id

    @pytest.mark.asyncio
    async def test_deactivated_agent_loses_access_immediately(
        self, client, admin, agent, auth_headers
    ):
        agent_headers = auth_headers(agent)
        await client.put(
            f"/api/admin/users/{agent.id}/status",
            json={"active": False},
            headers=auth_headers(admin),
        )

        response = await client.get("/api/applications", headers=agent_headers)

        assert response.status_code == 401
        assert response.json()["error"] == "ACCOUNT_INACTIVE"

    @pytest.mark.asyncio
    async def test_created_users_are_always_agents(self, client, admin, auth_headers, transport):
        response = await client.post(
            "/api/admin/users",
            json={
                "username": "created@agency.com",
                "password": "long-enough-pw",
                "role": "admin",
                "agencyName": "Desert Bridge",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["role"] == "agent"
        assert transport.to("admin@nextwave.ae")[0].subject.startswith("New User Account Created")

    @pytest.mark.asyncio
    async def test_audit_never_contains_password_material(self, client, admin, auth_headers):
        await client.post(
            "/api/admin/users",
            json={"username": "created@agency.com", "password": "long-enough-pw"},
            headers=auth_headers(admin),
        )

        logs = await client.get(
            "/api/admin/audit-logs", params={"action": "create-user"}, headers=auth_headers(admin)
        )

        [entry] = logs.json()
        assert "long-enough-pw" not in str(entry)
        assert "passwordHash" not in entry["newData"]
        assert "password" not in entry["newData"]

    @pytest.mark.asyncio
    async def test_agent_with_applications_cannot_be_deleted(
        self, client, admin, agent, auth_headers, application_payload
    ):
        created = await client.post(
            "/api/applications", json=application_payload, headers=auth_headers(agent)
        )
        assert created.status_code == 201

        response = await client.delete(f"/api/admin/users/{agent.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["error"] == "USER_HAS_APPLICATIONS"

    @pytest.mark.asyncio
    async def test_delete_agent_without_applications(self, client, admin, agent, auth_headers):
        response = await client.delete(f"/api/admin/users/{agent.id}", headers=auth_headers(admin))
        assert response.status_code == 204

        users = await client.get("/api/admin/users", headers=auth_headers(admin))
        assert agent.id not in [u["id"] for u in users.json()]

    @pytest.mark.asyncio
    async def test_students_cannot_be_deleted(self, client, admin, student, auth_headers):
        response = await client.delete(
            f"/api/admin/users/{student.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_user(self, client, admin, auth_headers):
        response = await client.put(
            "/api/admin/users/9999/status", json={"active": False}, headers=auth_headers(admin)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "USER_NOT_FOUND"


class TestStaffAccess:
    @pytest.mark.asyncio
    async def test_sub_admin_can_list_users(self, client, sub_admin, agent, auth_headers):
        response = await client.get(
            "/api/admin/users", params={"role": "agent"}, headers=auth_headers(sub_admin)
        )

        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [agent.id]

    @pytest.mark.asyncio
    async def test_sub_admin_cannot_manage_users(self, client, sub_admin, agent, auth_headers):
        deactivate = await client.put(
            f"/api/admin/users/{agent.id}/status",
            json={"active": False},
            headers=auth_headers(sub_admin),
        )
        create = await client.post(
            "/api/admin/users",
            json={"username": "x@agency.com", "password": "long-enough-pw"},
            headers=auth_headers(sub_admin),
        )
        audit = await client.get("/api/admin/audit-logs", headers=auth_headers(sub_admin))

        assert deactivate.status_code == 403
        assert create.status_code == 403
        assert audit.status_code == 403

    @pytest.mark.asyncio
    async def test_agent_cannot_list_users(self, client, agent, auth_headers):
        response = await client.get("/api/admin/users", headers=auth_headers(agent))
        assert response.status_code == 403


class TestSubAdmins:
    @pytest.mark.asyncio
    async def test_create_sub_admin_emails_credentials(
        self, client, admin, auth_headers, transport
    ):
        response = await client.post(
            "/api/admin/sub-admins",
            json={"username": "new.reviewer@nextwave.ae", "firstName": "Huda", "lastName": "Saleh"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["subAdmin"]["role"] == "sub-admin"
        password = body["temporaryPassword"]
        assert len(password) >= 8

        [welcome] = transport.to("new.reviewer@nextwave.ae")
        assert escape(password) in welcome.html

        login = await client.post(
            "/api/login", json={"username": "new.reviewer@nextwave.ae", "password": password}
        )
        assert login.status_code == 200
        assert login.json()["user"]["role"] == "sub-admin"

    @pytest.mark.asyncio
    async def test_sub_admin_requires_names(self, client, admin, auth_headers):
        response = await client.post(
            "/api/admin/sub-admins",
            json={"username": "new.reviewer@nextwave.ae"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "MISSING_FIELD"

    @pytest.mark.asyncio
    async def test_reset_password(self, client, admin, sub_admin, auth_headers, transport):
        response = await client.post(
            f"/api/admin/sub-admins/{sub_admin.id}/reset-password", headers=auth_headers(admin)
        )

        assert response.status_code == 200
        password = response.json()["temporaryPassword"]

        login = await client.post(
            "/api/login", json={"username": "reviewer@nextwave.ae", "password": password}
        )
        assert login.status_code == 200
        assert len(transport.to("reviewer@nextwave.ae")) == 1

    @pytest.mark.asyncio
    async def test_reset_password_only_for_sub_admins(self, client, admin, agent, auth_headers):
        response = await client.post(
            f"/api/admin/sub-admins/{agent.id}/reset-password", headers=auth_headers(admin)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "SUB_ADMIN_NOT_FOUND"
