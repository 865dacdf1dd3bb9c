from __future__ import annotations

from app.chat import ConversationLifecycleManager, MessageRelay, SqlUserDirectory
from app.core import messages as text


PREFIX = "/api/v1/chat"


def open_conversation(session_factory, candidate_id, admin_id=None, messages=()):
    users = SqlUserDirectory()
    lifecycle = ConversationLifecycleManager(users)
    relay = MessageRelay(users)
    with session_factory() as db:
        conversation = lifecycle.join_as_candidate(db, candidate_id).conversation
        if admin_id is not None:
            lifecycle.claim(db, admin_id, conversation.id)
        for sender_id, content in messages:
            relay.send(db, conversation.id, sender_id, content)
        return conversation.id


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["connections"] == 0


def test_list_unassigned(client, session_factory, users):
    conversation_id = open_conversation(session_factory, users.candidate)

    response = client.get(f"{PREFIX}/conversations/unassigned")

    assert response.status_code == 200
    body = response.json()
    assert [c["id"] for c in body] == [conversation_id]
    assert body[0]["candidateId"] == users.candidate
    assert body[0]["adminId"] is None


def test_candidate_conversation(client, session_factory, users):
    response = client.get(f"{PREFIX}/conversations/candidate/{users.candidate}")
    assert response.status_code == 404
    assert response.json()["detail"] == text.CONVERSATION_NOT_FOUND

    conversation_id = open_conversation(session_factory, users.candidate)

    response = client.get(f"{PREFIX}/conversations/candidate/{users.candidate}")
    assert response.status_code == 200
    assert response.json()["id"] == conversation_id


def test_messages_endpoint(client, session_factory, users):
    conversation_id = open_conversation(
        session_factory,
        users.candidate,
        admin_id=users.admin,
        messages=[(users.candidate, "hi"), (users.admin, "hello Jane")],
    )

    response = client.get(f"{PREFIX}/conversations/{conversation_id}/messages")

    assert response.status_code == 200
    assert [(m["senderId"], m["content"]) for m in response.json()] == [
        (users.candidate, "hi"),
        (users.admin, "hello Jane"),
    ]
    assert client.get(f"{PREFIX}/conversations/424242/messages").status_code == 404


def test_assign_and_list_for_admin(client, session_factory, users):
    conversation_id = open_conversation(session_factory, users.candidate)

    response = client.post(f"{PREFIX}/conversations/{conversation_id}/assign/{users.admin}")
    assert response.status_code == 200
    assert response.json()["status"] == "ASSIGNED"
    assert response.json()["adminName"] == "Alex Admin"

    conflict = client.post(f"{PREFIX}/conversations/{conversation_id}/assign/{users.admin2}")
    assert conflict.status_code == 409
    assert conflict.json()["detail"] == text.CONVERSATION_ALREADY_ASSIGNED

    mine = client.get(f"{PREFIX}/conversations/admin/{users.admin}")
    assert [c["id"] for c in mine.json()] == [conversation_id]
    assert client.get(f"{PREFIX}/conversations/unassigned").json() == []


def test_assign_unknown_conversation(client, users):
    response = client.post(f"{PREFIX}/conversations/424242/assign/{users.admin}")
    assert response.status_code == 404


def test_close_is_idempotent_over_http(client, session_factory, users):
    conversation_id = open_conversation(session_factory, users.candidate)

    first = client.post(f"{PREFIX}/conversations/{conversation_id}/close")
    second = client.post(f"{PREFIX}/conversations/{conversation_id}/close")

    assert first.status_code == 200
    assert first.json()["status"] == "CLOSED"
    assert second.status_code == 200
    assert client.get(f"{PREFIX}/conversations/candidate/{users.candidate}").status_code == 404

    assign = client.post(f"{PREFIX}/conversations/{conversation_id}/assign/{users.admin}")
    assert assign.status_code == 409


def test_rest_assign_reaches_socket_room(client, users):
    with client.websocket_connect("/api/v1/ws/chat") as ws:
        ws.send_json({"event": "join_chat", "data": {"userId": users.candidate}, "ackId": 1})
        conversation_id = ws.receive_json()["data"]["conversation"]["id"]

        response = client.post(f"{PREFIX}/conversations/{conversation_id}/assign/{users.admin}")
        assert response.status_code == 200

        frame = ws.receive_json()
        assert frame["event"] == "admin_assigned"
        assert frame["data"]["adminId"] == users.admin

        client.post(f"{PREFIX}/conversations/{conversation_id}/close")
        frame = ws.receive_json()
        assert frame["event"] == "conversation_closed"
        assert frame["data"]["closedBy"] is None
