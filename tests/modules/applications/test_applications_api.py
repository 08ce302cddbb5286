"""
HTTP tests for the application lifecycle.

These tests cover:
- Create, submit and review through the public endpoints
- History, audit entries and notifications produced by each transition
- Ownership hiding, authentication and illegal transitions
- Failure handling: email outages and audit write failures
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from admissions_portal.modules.audit import repository as audit_repository
from admissions_portal.modules.audit.models import AuditLog
from admissions_portal.modules.users.models import User


async def create_application(client, headers, payload, **extra) -> dict:
    response = await client.post("/api/applications", json={**payload, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def audit_count(app) -> int:
    async with app.state.context.database.session() as db:
        result = await db.execute(select(func.count(AuditLog.id)))
        return result.scalar_one()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_agent_submits_and_admin_approves(
        self, app, client, admin, sub_admin, agent, auth_headers, application_payload, transport
    ):
        created = await create_application(client, auth_headers(agent), application_payload)
        assert created["status"] == "draft"
        assert created["ownerId"] == agent.id
        assert transport.sent == []

        app_id = created["id"]
        submitted = await client.post(
            f"/api/applications/{app_id}/submit", headers=auth_headers(agent)
        )
        assert submitted.status_code == 200
        assert submitted.json()["status"] == "submitted"
        assert set(transport.recipients()) == {
            "omar.haddad@example.com",
            "agent@agency.com",
            "admin@nextwave.ae",
            "reviewer@nextwave.ae",
        }

        transport.sent.clear()
        approved = await client.put(
            f"/api/admin/applications/{app_id}/status",
            json={
                "status": "approved",
                "notes": "Strong academic record",
                "conditionalOfferTerms": "Submit final transcript by August",
            },
            headers=auth_headers(admin),
        )

        assert approved.status_code == 200
        body = approved.json()
        assert body["status"] == "approved"
        assert body["conditionalOfferTerms"] == "Submit final transcript by August"
        assert body["adminNotes"] == "Strong academic record"
        assert body["programName"] == "MSc Data Science"
        assert body["universityName"] == "Khalifa University"

        history = body["statusHistory"]
        assert [(h["fromStatus"], h["toStatus"]) for h in history] == [
            (None, "draft"),
            ("draft", "submitted"),
            ("submitted", "approved"),
        ]
        assert history[-1]["changedBy"] == admin.id
        assert history[-1]["notes"] == "Strong academic record"

        student_mail = transport.to("omar.haddad@example.com")
        assert len(student_mail) == 1
        assert student_mail[0].subject.startswith("Application Approved")
        assert "Submit final transcript by August" in student_mail[0].html
        assert len(transport.to("agent@agency.com")) == 1
        for staff in ("admin@nextwave.ae", "reviewer@nextwave.ae"):
            [notice] = transport.to(staff)
            assert notice.subject.startswith("Application Approved - #")

        logs = await client.get(
            "/api/admin/audit-logs",
            params={"resourceType": "application", "resourceId": app_id},
            headers=auth_headers(admin),
        )
        assert logs.status_code == 200
        entries = logs.json()
        approval = [e for e in entries if e["newData"] == {"status": "approved"}]
        assert len(approval) == 1
        assert approval[0]["actorId"] == admin.id
        assert approval[0]["action"] == "update-application-status"
        assert approval[0]["previousData"] == {"status": "submitted"}

    @pytest.mark.asyncio
    async def test_create_as_submitted_notifies_immediately(
        self, client, admin, agent, auth_headers, application_payload, transport
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        assert created["status"] == "submitted"
        assert "admin@nextwave.ae" in transport.recipients()

    @pytest.mark.asyncio
    async def test_create_with_review_status_is_rejected(
        self, client, agent, auth_headers, application_payload
    ):
        response = await client.post(
            "/api/applications",
            json={**application_payload, "status": "approved"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_STATUS"

    @pytest.mark.asyncio
    async def test_sub_admin_can_review(
        self, client, sub_admin, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "under-review"},
            headers=auth_headers(sub_admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "under-review"

    @pytest.mark.asyncio
    async def test_rejection_stores_reason(
        self, client, admin, agent, auth_headers, application_payload, transport
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )
        transport.sent.clear()

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "rejected", "rejectionReason": "Program capacity reached"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["rejectionReason"] == "Program capacity reached"
        assert "Program capacity reached" in transport.to("omar.haddad@example.com")[0].html

    @pytest.mark.asyncio
    async def test_agent_resubmits_incomplete_application(
        self, client, admin, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )
        app_id = created["id"]

        incomplete = await client.put(
            f"/api/admin/applications/{app_id}/status",
            json={"status": "incomplete", "notes": "Passport copy missing"},
            headers=auth_headers(admin),
        )
        assert incomplete.status_code == 200

        edited = await client.put(
            f"/api/applications/{app_id}",
            json={"studentPhone": "+971500000000"},
            headers=auth_headers(agent),
        )
        assert edited.status_code == 200
        assert edited.json()["studentPhone"] == "+971500000000"

        resubmitted = await client.post(
            f"/api/applications/{app_id}/submit",
            json={"notes": "Passport attached"},
            headers=auth_headers(agent),
        )
        assert resubmitted.status_code == 200
        assert resubmitted.json()["status"] == "submitted"
        assert resubmitted.json()["statusHistory"][-1]["notes"] == "Passport attached"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["under-review", "incomplete", "draft"])
    async def test_every_status_change_reaches_student_agent_and_staff(
        self, client, admin, agent, auth_headers, application_payload, transport, target
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )
        transport.sent.clear()

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": target},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert set(transport.recipients()) == {
            "omar.haddad@example.com",
            "agent@agency.com",
            "admin@nextwave.ae",
        }


class TestAccessControl:
    @pytest.mark.asyncio
    async def test_unauthenticated_status_update(self, client, agent, auth_headers, application_payload):
        created = await create_application(client, auth_headers(agent), application_payload)

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status", json={"status": "approved"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "NOT_AUTHENTICATED"

    @pytest.mark.asyncio
    async def test_invalid_token_is_unauthenticated(self, client):
        response = await client.get(
            "/api/applications", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_other_agent_sees_not_found_and_nothing_is_audited(
        self, app, client, agent, other_agent, auth_headers, application_payload
    ):
        created = await create_application(client, auth_headers(agent), application_payload)

        response = await client.get(
            f"/api/applications/{created['id']}", headers=auth_headers(other_agent)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "APPLICATION_NOT_FOUND"
        assert await audit_count(app) == 0

    @pytest.mark.asyncio
    async def test_other_agent_cannot_submit(
        self, client, agent, other_agent, auth_headers, application_payload
    ):
        created = await create_application(client, auth_headers(agent), application_payload)

        response = await client.post(
            f"/api/applications/{created['id']}/submit", headers=auth_headers(other_agent)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_agent_lists_only_own_applications(
        self, client, agent, other_agent, auth_headers, application_payload
    ):
        await create_application(client, auth_headers(agent), application_payload)
        await create_application(client, auth_headers(other_agent), application_payload)

        response = await client.get("/api/applications", headers=auth_headers(agent))

        assert response.status_code == 200
        assert [a["ownerId"] for a in response.json()] == [agent.id]

    @pytest.mark.asyncio
    async def test_agent_cannot_use_admin_status_endpoint(
        self, client, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "approved"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_student_cannot_resubmit_incomplete(
        self, client, admin, student, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(student), application_payload, status="submitted"
        )
        await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "incomplete"},
            headers=auth_headers(admin),
        )

        response = await client.post(
            f"/api/applications/{created['id']}/submit", headers=auth_headers(student)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deactivated_identity_is_refused(
        self, app, client, agent, auth_headers, application_payload
    ):
        headers = auth_headers(agent)
        async with app.state.context.database.session() as db:
            user = await db.get(User, agent.id)
            user.active = False
            await db.commit()

        response = await client.post("/api/applications", json=application_payload, headers=headers)

        assert response.status_code == 401
        assert response.json()["error"] == "ACCOUNT_INACTIVE"


class TestTransitionRules:
    @pytest.mark.asyncio
    async def test_draft_cannot_be_approved(
        self, client, admin, agent, auth_headers, application_payload
    ):
        created = await create_application(client, auth_headers(agent), application_payload)

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "approved"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ILLEGAL_TRANSITION"

        detail = await client.get(
            f"/api/admin/applications/{created['id']}", headers=auth_headers(admin)
        )
        assert detail.json()["status"] == "draft"
        assert len(detail.json()["statusHistory"]) == 1

    @pytest.mark.asyncio
    async def test_unknown_status(self, client, admin, agent, auth_headers, application_payload):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "archived"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_STATUS"
        assert "status" in response.json()["fields"]

    @pytest.mark.asyncio
    async def test_same_status_is_illegal(
        self, client, admin, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "submitted"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ILLEGAL_TRANSITION"

    @pytest.mark.asyncio
    async def test_missing_application(self, client, admin, auth_headers):
        response = await client.put(
            "/api/admin/applications/9999/status",
            json={"status": "approved"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "APPLICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_submitted_application_is_locked_for_edits(
        self, client, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.put(
            f"/api/applications/{created['id']}",
            json={"notes": "late change"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "APPLICATION_LOCKED"

    @pytest.mark.asyncio
    async def test_status_cannot_be_changed_through_edit(
        self, client, agent, auth_headers, application_payload
    ):
        created = await create_application(client, auth_headers(agent), application_payload)

        response = await client.put(
            f"/api/applications/{created['id']}",
            json={"status": "approved"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_email_outage_does_not_change_the_response(
        self, client, admin, agent, auth_headers, application_payload, transport
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )
        transport.fail_all = True

        response = await client.put(
            f"/api/admin/applications/{created['id']}/status",
            json={"status": "approved"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_audit_failure_rolls_back_the_transition(
        self, app, client, admin, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        failing = AsyncMock(
            side_effect=OperationalError("INSERT INTO audit_logs", {}, Exception("disk full"))
        )
        with patch.object(audit_repository, "create", failing):
            response = await client.put(
                f"/api/admin/applications/{created['id']}/status",
                json={"status": "approved"},
                headers=auth_headers(admin),
            )

        assert response.status_code == 500
        assert response.json()["error"] == "AUDIT_WRITE_FAILED"

        detail = await client.get(
            f"/api/admin/applications/{created['id']}", headers=auth_headers(admin)
        )
        assert detail.json()["status"] == "submitted"
        assert len(detail.json()["statusHistory"]) == 1
        assert await audit_count(app) == 0


class TestRateLimit:
    @pytest.fixture
    def settings_overrides(self):
        return {"status_update_rate_limit": 1}

    @pytest.mark.asyncio
    async def test_status_updates_are_rate_limited_per_admin(
        self, client, admin, agent, auth_headers, application_payload
    ):
        created = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )
        url = f"/api/admin/applications/{created['id']}/status"

        first = await client.put(url, json={"status": "under-review"}, headers=auth_headers(admin))
        second = await client.put(url, json={"status": "approved"}, headers=auth_headers(admin))

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["error"] == "RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in second.headers


class TestDocuments:
    @pytest.mark.asyncio
    async def test_document_metadata_lifecycle(
        self, client, admin, agent, auth_headers, application_payload
    ):
        created = await create_application(client, auth_headers(agent), application_payload)
        base = f"/api/applications/{created['id']}/documents"

        added = await client.post(
            base,
            json={
                "documentType": "passport",
                "originalFilename": "passport.pdf",
                "size": 20480,
                "mimeType": "application/pdf",
                "blobRef": "uploads/abc123",
            },
            headers=auth_headers(agent),
        )
        assert added.status_code == 201
        document_id = added.json()["id"]

        listed = await client.get(base, headers=auth_headers(agent))
        assert [d["id"] for d in listed.json()] == [document_id]

        deleted = await client.delete(f"{base}/{document_id}", headers=auth_headers(agent))
        assert deleted.status_code == 204

        detail = await client.get(f"/api/applications/{created['id']}", headers=auth_headers(agent))
        assert detail.json()["documents"] == []
        assert detail.json()["status"] == "draft"

        logs = await client.get(
            "/api/admin/audit-logs",
            params={"resourceType": "document"},
            headers=auth_headers(admin),
        )
        assert {e["action"] for e in logs.json()} == {"add-document", "delete-document"}


class TestAdminDashboard:
    @pytest.mark.asyncio
    async def test_stats(self, client, admin, agent, student, auth_headers, application_payload):
        await create_application(client, auth_headers(agent), application_payload)
        await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.get("/api/admin/stats", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {
            "totalApplications": 2,
            "pendingReviews": 1,
            "approvedApplications": 0,
            "activeAgents": 1,
            "totalStudents": 1,
            "totalUniversities": 1,
        }

    @pytest.mark.asyncio
    async def test_admin_list_filters_by_status(
        self, client, admin, agent, auth_headers, application_payload
    ):
        await create_application(client, auth_headers(agent), application_payload)
        submitted = await create_application(
            client, auth_headers(agent), application_payload, status="submitted"
        )

        response = await client.get(
            "/api/admin/applications",
            params={"status": "submitted"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [submitted["id"]]

    @pytest.mark.asyncio
    async def test_stats_are_admin_only(self, client, sub_admin, auth_headers):
        response = await client.get("/api/admin/stats", headers=auth_headers(sub_admin))
        assert response.status_code == 403
