import pytest

AUTH = {"Authorization": "Bearer any-token"}


@pytest.fixture
def ticket_id(client):
    response = client.post(
        "/api/v1/tickets",
        json={
            "title": "VPN down",
            "description": "Cannot connect since this morning",
            "priority": "urgent",
            "userEmail": "ada@example.com",
            "userName": "Ada",
            "userId": "u1",
        },
    )
    assert response.status_code == 201
    return response.json()["ticket"]["id"]


def send(client, ticket_id, text, sender_id="u1", role="customer", name="Ada"):
    return client.post(
        f"/api/v1/chats/ticket/{ticket_id}/message",
        json={"senderId": sender_id, "senderName": name, "senderRole": role, "message": text},
    )


def test_conversation_flow(client, ticket_id, clock):
    chat = client.get(f"/api/v1/chats/ticket/{ticket_id}")
    assert chat.status_code == 200
    assert chat.json()["messages"] == []
    chat_id = chat.json()["chatId"]

    posted = send(client, ticket_id, "hi")
    assert posted.status_code == 201
    body = posted.json()
    assert body["chatId"] == chat_id
    assert body["ticketId"] == ticket_id
    assert body["message"]["body"] == "hi"
    assert body["message"]["edited"] is False
    assert "editedAt" not in body["message"]
    first = body["message"]

    reply = send(client, ticket_id, "on it", sender_id="a1", role="agent", name="Grace").json()["message"]

    polled = client.get(
        f"/api/v1/chats/ticket/{ticket_id}/new-messages",
        params={"lastSeenTimestamp": first["timestamp"]},
    )
    assert polled.status_code == 200
    assert [m["id"] for m in polled.json()["newMessages"]] == [reply["id"]]
    assert polled.json()["totalNew"] == 1

    edited = client.put(
        f"/api/v1/chats/ticket/{ticket_id}/message/{first['id']}",
        json={"message": "hello", "userId": "u1"},
        headers=AUTH,
    )
    assert edited.status_code == 200
    assert edited.json()["message"] == "Message updated successfully"
    assert edited.json()["updatedMessage"]["body"] == "hello"
    assert edited.json()["updatedMessage"]["edited"] is True
    assert edited.json()["updatedMessage"]["timestamp"] == first["timestamp"]

    deleted = client.delete(f"/api/v1/chats/ticket/{ticket_id}/message/{reply['id']}/a1", headers=AUTH)
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Message deleted successfully"}

    messages = client.get(f"/api/v1/chats/{chat_id}/messages").json()["messages"]
    assert [m["body"] for m in messages] == ["hello"]


def test_chat_for_unknown_ticket(client):
    response = client.get("/api/v1/chats/ticket/missing")
    assert response.status_code == 404
    assert response.json() == {"message": "Ticket not found"}


def test_post_message_missing_fields(client, ticket_id):
    response = client.post(f"/api/v1/chats/ticket/{ticket_id}/message", json={"senderId": "u1"})
    assert response.status_code == 400
    assert response.json() == {"message": "senderId, senderName, senderRole, and message are required"}


def test_post_message_unknown_ticket(client):
    response = send(client, "missing", "hi")
    assert response.status_code == 404


def test_post_message_malformed_json(client, ticket_id):
    response = client.post(
        f"/api/v1/chats/ticket/{ticket_id}/message",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "message" in response.json()


def test_poll_before_chat_exists(client, ticket_id):
    response = client.get(f"/api/v1/chats/ticket/{ticket_id}/new-messages")
    assert response.status_code == 404
    assert response.json() == {"message": "Chat not found for this ticket"}


@pytest.mark.parametrize("last_seen", ["not-a-date", "0001-01-01T00:00:00+01:00"])
def test_poll_with_invalid_timestamp(client, ticket_id, last_seen):
    send(client, ticket_id, "hi")
    response = client.get(
        f"/api/v1/chats/ticket/{ticket_id}/new-messages",
        params={"lastSeenTimestamp": last_seen},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid lastSeenTimestamp format"}


@pytest.mark.parametrize("field", ["senderId", "senderName"])
def test_post_message_blank_sender(client, ticket_id, field):
    body = {"senderId": "u1", "senderName": "Ada", "senderRole": "customer", "message": "hi"}
    body[field] = "   "
    response = client.post(f"/api/v1/chats/ticket/{ticket_id}/message", json=body)
    assert response.status_code == 400
    assert response.json() == {"message": "senderId, senderName, senderRole, and message are required"}


def test_delete_without_credential(client, ticket_id):
    message_id = send(client, ticket_id, "hi").json()["message"]["id"]
    response = client.delete(f"/api/v1/chats/ticket/{ticket_id}/message/{message_id}/u1")
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}
    assert len(client.get(f"/api/v1/chats/ticket/{ticket_id}").json()["messages"]) == 1


def test_edit_without_credential(client, ticket_id):
    message_id = send(client, ticket_id, "hi").json()["message"]["id"]
    response = client.put(
        f"/api/v1/chats/ticket/{ticket_id}/message/{message_id}",
        json={"message": "changed", "userId": "u1"},
    )
    assert response.status_code == 401


def test_edit_someone_elses_message(client, ticket_id):
    message_id = send(client, ticket_id, "hi").json()["message"]["id"]
    response = client.put(
        f"/api/v1/chats/ticket/{ticket_id}/message/{message_id}",
        json={"message": "changed", "userId": "u2"},
        headers=AUTH,
    )
    assert response.status_code == 403
    assert response.json() == {"message": "You can only edit your own messages"}


def test_edit_empty_content(client, ticket_id):
    message_id = send(client, ticket_id, "hi").json()["message"]["id"]
    response = client.put(
        f"/api/v1/chats/ticket/{ticket_id}/message/{message_id}",
        json={"message": "", "userId": "u1"},
        headers=AUTH,
    )
    assert response.status_code == 400


def test_missing_message_is_404_even_without_credential(client, ticket_id):
    send(client, ticket_id, "hi")
    response = client.delete(f"/api/v1/chats/ticket/{ticket_id}/message/nope/u1")
    assert response.status_code == 404
    assert response.json() == {"message": "Message not found"}


def test_delete_someone_elses_message(client, ticket_id):
    message_id = send(client, ticket_id, "hi").json()["message"]["id"]
    response = client.delete(f"/api/v1/chats/ticket/{ticket_id}/message/{message_id}/u2", headers=AUTH)
    assert response.status_code == 403
    assert client.get(f"/api/v1/chats/ticket/{ticket_id}").json()["messages"][0]["id"] == message_id


def test_chat_messages_unknown_chat(client):
    response = client.get("/api/v1/chats/missing/messages")
    assert response.status_code == 404
    assert response.json() == {"message": "Chat not found"}
