"""Tests for the tenant-less internal chat endpoints."""

from supportdesk.models.llm import LLMResponse


class TestInternalChat:
    """Tests for /api/internal/chat."""

    def test_new_session(self, client, fake_provider):
        """Test a message without a session starts a conversation with a plain reply."""
        fake_provider.queue(LLMResponse(text='{"answer": "Returns are free within 30 days.", "proposed_actions": ["x"]}'))

        response = client.post("/api/internal/chat/message", json={"message": "Return policy?"})

        assert response.status_code == 200
        data = response.json()
        assert data["conversationId"]
        assert data["message"]["content"] == "Returns are free within 30 days."
        assert "proposedActions" not in data
        assert fake_provider.calls[0]["tools"] is None
        assert fake_provider.calls[0]["options"].max_tokens == 500

    def test_continue_session(self, client, fake_provider):
        conversation_id = client.post("/api/internal/chat/message", json={"message": "Hi"}).json()["conversationId"]

        response = client.post("/api/internal/chat/message", json={"message": "More", "sessionId": conversation_id})

        assert response.json()["conversationId"] == conversation_id
        assert [m.content for m in fake_provider.calls[1]["history"]] == ["Hi", "Happy to help!", "More"]

    def test_unknown_session(self, client):
        response = client.post("/api/internal/chat/message", json={"message": "Hi", "sessionId": "missing"})

        assert response.status_code == 404

    def test_invalid_message(self, client):
        response = client.post("/api/internal/chat/message", json={})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_MESSAGE"

    def test_history_list_and_delete(self, client):
        conversation_id = client.post("/api/internal/chat/message", json={"message": "Hi"}).json()["conversationId"]

        history = client.get(f"/api/internal/chat/history/{conversation_id}").json()["messages"]
        listed = client.get("/api/internal/chat/conversations").json()["conversations"]
        deleted = client.delete(f"/api/internal/chat/conversations/{conversation_id}")
        missing = client.get(f"/api/internal/chat/history/{conversation_id}")

        assert [m["role"] for m in history] == ["user", "assistant"]
        assert conversation_id in [c["id"] for c in listed]
        assert deleted.json() == {"success": True}
        assert missing.status_code == 404

    def test_delete_unknown(self, client):
        assert client.delete("/api/internal/chat/conversations/missing").status_code == 404
