"""Chatbot conversation endpoints."""


def start(client, **payload):
    response = client.post("/api/chat/start", json=payload or {"language": "en"})
    assert response.status_code == 200, response.text
    return response.json()


class TestChat:
    def test_start_seeds_welcome_message(self, client):
        data = start(client)
        assert data["conversationId"]
        assert data["sessionId"].startswith("session_")
        assert len(data["messages"]) == 1
        assert data["messages"][0]["isFromUser"] is False
        assert data["messages"][0]["content"].startswith("Hello!")

    def test_opening_hours_turn(self, client):
        """Each turn stores the user message followed by one reply."""
        conversation_id = start(client)["conversationId"]

        response = client.post("/api/chat/message", json={
            "conversationId": conversation_id,
            "message": "what are your hours"
        })
        assert response.status_code == 200
        messages = response.json()["messages"]
        assert len(messages) == 3
        assert messages[1]["isFromUser"] is True
        assert messages[1]["content"] == "what are your hours"
        assert "10 AM to 5 PM" in messages[2]["content"]

        second = client.post("/api/chat/message", json={
            "conversationId": conversation_id,
            "message": "how much is a ticket?"
        })
        assert len(second.json()["messages"]) == 5

    def test_history(self, client):
        conversation_id = start(client)["conversationId"]
        client.post("/api/chat/message", json={"conversationId": conversation_id, "message": "hi"})
        response = client.get(f"/api/chat/messages/{conversation_id}")
        assert response.status_code == 200
        assert [m["isFromUser"] for m in response.json()["messages"]] == [False, True, False]

    def test_unknown_conversation(self, client):
        response = client.post("/api/chat/message", json={"conversationId": 999, "message": "hi"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Conversation not found"
        assert client.get("/api/chat/messages/999").status_code == 404

    def test_message_required(self, client):
        conversation_id = start(client)["conversationId"]
        response = client.post("/api/chat/message", json={"conversationId": conversation_id, "message": ""})
        assert response.status_code == 400

    def test_conversation_linked_to_known_user(self, client, memory_storage):
        data = start(client, language="es", userId=1)
        conversation = memory_storage.get_conversation(data["conversationId"])
        assert conversation.user_id == 1
        assert conversation.language == "es"

        anonymous = start(client, userId=999)
        assert memory_storage.get_conversation(anonymous["conversationId"]).user_id is None
