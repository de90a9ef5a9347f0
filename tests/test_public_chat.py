"""End-to-end tests for the public chat endpoints."""

from conftest import tool_call_response
from supportdesk.models.llm import LLMResponse

BOOKING = {
    "customerName": "Jane Doe",
    "customerEmail": "jane@example.com",
    "preferredDate": "2999-01-04",
    "preferredTime": "10:00",
    "serviceType": "product_demo",
    "notes": "Bring a laptop",
}


def send(client, message="Hi", visitor_id="visitor-1", conversation_id=None, slug="demo"):
    payload = {"message": message, "visitorId": visitor_id}
    if conversation_id:
        payload["conversationId"] = conversation_id
    return client.post(f"/api/chat/{slug}/message", json=payload)


class TestSendMessage:
    """Tests for POST /api/chat/{slug}/message."""

    def test_first_message_starts_lead_conversation(self, client, fake_provider):
        """Test a new visitor gets a new lead conversation and a structured reply."""
        fake_provider.queue(
            LLMResponse(text='{"answer": "Orders ship in 1-2 days.", "proposed_actions": ["Track my order"]}')
        )

        response = send(client, "When will my order ship?")

        assert response.status_code == 200
        data = response.json()
        assert data["isNewConversation"] is True
        assert data["conversationId"]
        assert data["message"]["role"] == "assistant"
        assert data["message"]["content"] == "Orders ship in 1-2 days."
        assert data["message"]["proposedActions"] == ["Track my order"]
        assert data["proposedActions"] == ["Track my order"]
        assert "toolCalls" not in data

        call = fake_provider.calls[0]
        assert call["user_message"] == "When will my order ship?"
        assert call["options"].max_tokens == 1000
        assert call["tools"].get_tool_names() == ["schedule_appointment"]

    def test_follow_up_reuses_conversation(self, client, fake_provider):
        """Test the second message continues the conversation with full history."""
        first = send(client, "Hello").json()

        second = send(client, "  Do you ship abroad?  ")

        data = second.json()
        assert data["conversationId"] == first["conversationId"]
        assert data["isNewConversation"] is False

        history = fake_provider.calls[1]["history"]
        assert [m.content for m in history] == ["Hello", "Happy to help!", "Do you ship abroad?"]
        assert fake_provider.calls[1]["user_message"] == "Do you ship abroad?"

    def test_explicit_conversation_id(self, client):
        conversation_id = send(client).json()["conversationId"]

        response = send(client, "again", conversation_id=conversation_id)

        assert response.status_code == 200
        assert response.json()["isNewConversation"] is False

    def test_tool_call_reported(self, client, fake_provider):
        """Test executed tools are returned alongside the final answer."""
        fake_provider.queue(
            tool_call_response(("call_1", "schedule_appointment", BOOKING)),
            LLMResponse(text='{"answer": "You are booked for Jan 4.", "proposed_actions": []}'),
        )

        response = send(client, "Book a product demo for Jane Doe, jane@example.com, 2999-01-04 10:00")

        data = response.json()
        assert data["message"]["content"] == "You are booked for Jan 4."
        assert data["toolCalls"] == [{"name": "schedule_appointment", "arguments": BOOKING}]
        tool_result = fake_provider.calls[1]["tool_results"][0]
        assert tool_result.success
        assert tool_result.result["appointment"]["serviceType"] == "Product Demonstration"

    def test_empty_answer_falls_back(self, client, fake_provider):
        """Test a blank final answer is replaced with an apology."""
        fake_provider.queue(LLMResponse(text='{"answer": "   ", "proposed_actions": []}'))

        data = send(client).json()

        assert data["message"]["content"].startswith("I'm sorry")

    def test_unknown_tenant(self, client):
        response = send(client, slug="nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Business not found", "code": "TENANT_NOT_FOUND"}

    def test_missing_visitor_id(self, client):
        response = client.post("/api/chat/demo/message", json={"message": "Hi"})

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_VISITOR_ID"

    def test_empty_message(self, client):
        response = send(client, "   ")

        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_MESSAGE"

    def test_oversized_message(self, client):
        response = send(client, "x" * 5001)

        assert response.status_code == 400
        assert response.json()["code"] == "MESSAGE_TOO_LONG"

    def test_other_visitors_conversation_forbidden(self, client):
        """Test a visitor cannot post into another visitor's conversation."""
        conversation_id = send(client, visitor_id="owner-of-thread").json()["conversationId"]

        response = send(client, visitor_id="intruder", conversation_id=conversation_id)

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_unknown_conversation(self, client):
        response = send(client, conversation_id="missing")

        assert response.status_code == 404
        assert response.json()["code"] == "CONVERSATION_NOT_FOUND"

    def test_rate_limit(self, client):
        """Test the eleventh message inside the window is rejected."""
        for _ in range(10):
            assert send(client).status_code == 200

        response = send(client)

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"
        # Another visitor is unaffected.
        assert send(client, visitor_id="visitor-2").status_code == 200

    def test_provider_failure(self, client, fake_provider):
        """Test unexpected provider exceptions become a generation error."""

        async def broken(*args, **kwargs):
            raise RuntimeError("socket closed")

        fake_provider.generate_reply = broken

        response = send(client)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate response from AI", "code": "LLM_GENERATION_FAILED"}


class TestHistoryAndInfo:
    """Tests for the read endpoints of the widget."""

    def test_history_in_order(self, client):
        conversation_id = send(client, "one").json()["conversationId"]
        send(client, "two")

        response = client.get(f"/api/chat/demo/conversations/{conversation_id}", params={"visitorId": "visitor-1"})

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]
        assert [m["content"] for m in messages[::2]] == ["one", "two"]

    def test_history_requires_visitor(self, client):
        conversation_id = send(client).json()["conversationId"]

        response = client.get(f"/api/chat/demo/conversations/{conversation_id}")

        assert response.status_code == 400

    def test_history_of_unknown_visitor(self, client):
        conversation_id = send(client).json()["conversationId"]

        response = client.get(f"/api/chat/demo/conversations/{conversation_id}", params={"visitorId": "stranger"})

        assert response.status_code == 404
        assert response.json()["code"] == "CUSTOMER_NOT_FOUND"

    def test_tenant_info(self, client):
        response = client.get("/api/chat/demo/info")

        assert response.status_code == 200
        assert response.json() == {
            "name": "TechHub Store",
            "slug": "demo",
            "welcomeMessage": "Welcome to TechHub Store! How can we help you today?",
            "brandColor": None,
        }

    def test_visitor_conversations_for_tenant(self, client):
        conversation_id = send(client).json()["conversationId"]

        data = client.get("/api/chat/demo/conversations", params={"visitorId": "visitor-1"}).json()

        assert [c["id"] for c in data["conversations"]] == [conversation_id]
        assert client.get("/api/chat/demo/conversations", params={"visitorId": "new"}).json() == {
            "conversations": []
        }


class TestAppBasics:
    """Tests for health, unknown routes and body validation."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_unknown_route(self, client):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found", "code": "NOT_FOUND"}

    def test_malformed_body(self, client):
        response = client.post(
            "/api/chat/demo/message", content="not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
