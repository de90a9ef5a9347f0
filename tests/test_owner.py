"""Tests for the owner dashboard endpoints."""

import pytest

from supportdesk.errors import ForbiddenError, ValidationError
from supportdesk.services.auth import AuthPayload
from supportdesk.services.owner import build_filters


def owner_headers(client, slug="acme", email="owner@acme.com"):
    token = client.post(
        "/api/auth/owner/register",
        json={
            "email": email,
            "password": "supersecret",
            "name": "Owner",
            "businessName": slug.title(),
            "businessSlug": slug,
        },
    ).json()["token"]
    return {"Authorization": f"Bearer {token}"}


def visitor_message(client, slug, visitor_id, message="Hi"):
    return client.post(f"/api/chat/{slug}/message", json={"message": message, "visitorId": visitor_id}).json()


class TestBuildFilters:
    """Tests for owner query normalisation."""

    def test_defaults(self):
        filters = build_filters()
        assert (filters.limit, filters.offset, filters.status, filters.is_lead) == (50, 0, None, None)

    def test_limit_capped(self):
        assert build_filters(limit=500).limit == 100
        assert build_filters(limit=0).limit == 50

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            build_filters(status="deleted")


class TestOwnerAccess:
    """Tests for authorization on owner routes."""

    def test_requires_token(self, client):
        response = client.get("/api/owner/conversations")
        assert response.status_code == 401

    def test_customer_forbidden(self, client):
        token = client.post(
            "/api/auth/customer/register", json={"email": "c@x.com", "password": "password1"}
        ).json()["token"]

        response = client.get("/api/owner/conversations", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json() == {"error": "Owner access required", "code": "FORBIDDEN"}

    def test_owner_token_without_tenant(self, client, container):
        token = container.auth.create_token(AuthPayload(user_id="u1", role="owner"))

        response = client.get("/api/owner/dashboard/stats", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["code"] == "NO_TENANT"

    def test_cross_tenant_access(self, client, container):
        """Test an owner cannot read another tenant's conversation."""
        headers = owner_headers(client)
        demo_conversation = visitor_message(client, "demo", "v1")["conversationId"]

        response = client.get(f"/api/owner/conversations/{demo_conversation}", headers=headers)

        assert response.status_code == 403
        with pytest.raises(ForbiddenError):
            tenant = container.repositories.tenants.find_by_slug("acme")
            container.owner.convert_lead(tenant.id, demo_conversation)


class TestOwnerConversations:
    """Tests for listing, details and status changes."""

    def test_list_with_customer_preview(self, client):
        headers = owner_headers(client)
        first = visitor_message(client, "acme", "v1")["conversationId"]
        second = visitor_message(client, "acme", "v2")["conversationId"]
        visitor_message(client, "demo", "v3")

        data = client.get("/api/owner/conversations", headers=headers).json()

        assert data["total"] == 2
        assert [c["id"] for c in data["conversations"]] == [second, first]
        assert data["conversations"][0]["customer"]["visitorId"] == "v2"
        assert data["conversations"][0]["isLead"] is True

    def test_filters(self, client):
        headers = owner_headers(client)
        first = visitor_message(client, "acme", "v1")["conversationId"]
        visitor_message(client, "acme", "v2")
        client.post(f"/api/owner/conversations/{first}/convert", headers=headers)

        leads = client.get("/api/owner/conversations", params={"isLead": "true"}, headers=headers).json()
        customers = client.get("/api/owner/conversations", params={"isLead": "false"}, headers=headers).json()
        paged = client.get("/api/owner/conversations", params={"limit": 1, "offset": 1}, headers=headers).json()

        assert leads["total"] == 1
        assert [c["id"] for c in customers["conversations"]] == [first]
        assert paged["total"] == 2
        assert len(paged["conversations"]) == 1

    def test_invalid_status_filter(self, client):
        headers = owner_headers(client)

        response = client.get("/api/owner/conversations", params={"status": "gone"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS"

    def test_details(self, client):
        headers = owner_headers(client)
        conversation_id = visitor_message(client, "acme", "v1", "Where is my parcel?")["conversationId"]

        response = client.get(f"/api/owner/conversations/{conversation_id}", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["conversation"]["id"] == conversation_id
        assert data["conversation"]["customer"]["visitorId"] == "v1"
        assert [m["content"] for m in data["messages"]][0] == "Where is my parcel?"

    def test_details_not_found(self, client):
        headers = owner_headers(client)

        response = client.get("/api/owner/conversations/missing", headers=headers)

        assert response.status_code == 404
        assert response.json()["code"] == "CONVERSATION_NOT_FOUND"

    def test_update_status(self, client):
        headers = owner_headers(client)
        conversation_id = visitor_message(client, "acme", "v1")["conversationId"]

        response = client.patch(
            f"/api/owner/conversations/{conversation_id}/status", json={"status": "resolved"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "resolved"

    @pytest.mark.parametrize("body", [{}, {"status": "closed"}])
    def test_update_status_invalid(self, client, body):
        headers = owner_headers(client)
        conversation_id = visitor_message(client, "acme", "v1")["conversationId"]

        response = client.patch(f"/api/owner/conversations/{conversation_id}/status", json=body, headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid status", "code": "INVALID_STATUS"}

    def test_convert_lead_once(self, client):
        headers = owner_headers(client)
        conversation_id = visitor_message(client, "acme", "v1")["conversationId"]

        converted = client.post(f"/api/owner/conversations/{conversation_id}/convert", headers=headers)
        again = client.post(f"/api/owner/conversations/{conversation_id}/convert", headers=headers)

        assert converted.status_code == 200
        assert converted.json()["isLead"] is False
        assert converted.json()["leadConvertedAt"]
        assert again.status_code == 400
        assert again.json()["code"] == "NOT_A_LEAD"


class TestLeadsAndStats:
    """Tests for the lead list and dashboard counters."""

    def test_leads_are_active_only(self, client):
        headers = owner_headers(client)
        active = visitor_message(client, "acme", "v1")["conversationId"]
        archived = visitor_message(client, "acme", "v2")["conversationId"]
        client.patch(f"/api/owner/conversations/{archived}/status", json={"status": "archived"}, headers=headers)

        data = client.get("/api/owner/leads", headers=headers).json()

        assert [c["id"] for c in data["conversations"]] == [active]
        assert data["total"] == 1

    def test_dashboard_stats(self, client):
        headers = owner_headers(client)
        lead = visitor_message(client, "acme", "v1")["conversationId"]
        converted = visitor_message(client, "acme", "v2")["conversationId"]
        resolved = visitor_message(client, "acme", "v3")["conversationId"]
        client.post(f"/api/owner/conversations/{converted}/convert", headers=headers)
        client.patch(f"/api/owner/conversations/{resolved}/status", json={"status": "resolved"}, headers=headers)

        response = client.get("/api/owner/dashboard/stats", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["totalConversations"] == 3
        assert data["activeLeads"] == 1
        assert data["convertedLeads"] == 1
        assert data["resolvedConversations"] == 1
        activity = {a["conversationId"]: a for a in data["recentActivity"]}
        assert set(activity) == {lead, converted, resolved}
        assert activity[lead]["lastMessage"] == "Happy to help!"
