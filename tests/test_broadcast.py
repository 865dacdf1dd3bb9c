from __future__ import annotations

from app.chat import broadcast
from app.chat.broadcast import Audience
from app.chat.events import OutboundEvent
from app.chat.sessions import CloseResult
from app.core import messages as text


def test_join_notifies_admins_only_when_created(db_session, lifecycle, users):
    created = lifecycle.join_as_candidate(db_session, users.candidate)
    rejoined = lifecycle.join_as_candidate(db_session, users.candidate)

    deliveries = broadcast.for_join(created)

    assert len(deliveries) == 1
    assert deliveries[0].audience is Audience.ADMINS
    assert deliveries[0].event is OutboundEvent.NEW_UNASSIGNED_CONVERSATION
    assert deliveries[0].payload["id"] == created.conversation.id
    assert deliveries[0].payload["candidateName"] == "Jane Doe"
    assert broadcast.for_join(rejoined) == []


def test_claim_goes_to_room_and_admins(db_session, lifecycle, users):
    conversation = lifecycle.join_as_candidate(db_session, users.candidate).conversation
    claimed = lifecycle.claim(db_session, users.admin, conversation.id)

    room, admins = broadcast.for_claim(claimed)

    assert room.audience is Audience.ROOM
    assert room.conversation_id == conversation.id
    assert room.event is OutboundEvent.ADMIN_ASSIGNED
    assert room.payload["adminName"] == "Alex Admin"
    assert room.payload["status"] == "ASSIGNED"
    assert admins.audience is Audience.ADMINS
    assert admins.event is OutboundEvent.CONVERSATION_TAKEN
    assert admins.payload == {"conversationId": conversation.id, "adminId": users.admin}


def test_message_goes_to_room(db_session, lifecycle, relay, users):
    conversation = lifecycle.join_as_candidate(db_session, users.candidate).conversation
    message = relay.send(db_session, conversation.id, users.candidate, "hi")

    (delivery,) = broadcast.for_message(message)

    assert delivery.audience is Audience.ROOM
    assert delivery.conversation_id == conversation.id
    assert delivery.payload["content"] == "hi"
    assert delivery.payload["senderName"] == "Jane Doe"
    assert delivery.closes_room is False


def test_close_broadcasts_only_on_change(db_session, lifecycle, users):
    conversation = lifecycle.join_as_candidate(db_session, users.candidate).conversation
    first = lifecycle.close(db_session, conversation.id)
    second = lifecycle.close(db_session, conversation.id)

    (delivery,) = broadcast.for_close(first, closed_by=users.candidate)

    assert delivery.event is OutboundEvent.CONVERSATION_CLOSED
    assert delivery.closes_room is True
    assert delivery.payload["closedBy"] == users.candidate
    assert delivery.payload["message"] == text.CONVERSATION_CLOSED_NOTICE
    assert delivery.payload["conversation"]["status"] == "CLOSED"
    assert broadcast.for_close(second, closed_by=users.candidate) == []


def test_close_all_produces_one_close_per_conversation(db_session, lifecycle, users):
    a = lifecycle.join_as_candidate(db_session, users.candidate).conversation
    b = lifecycle.join_as_candidate(db_session, users.candidate2).conversation
    lifecycle.claim(db_session, users.admin, a.id)
    lifecycle.claim(db_session, users.admin, b.id)
    closed = lifecycle.close_all_for_admin(db_session, users.admin)

    deliveries = broadcast.for_close_all(closed, users.admin)

    assert [d.conversation_id for d in deliveries] == [a.id, b.id]
    assert all(d.payload["closedBy"] == users.admin for d in deliveries)
    assert all(d.closes_room for d in deliveries)


def test_close_result_without_change_is_silent(db_session, lifecycle, users):
    conversation = lifecycle.join_as_candidate(db_session, users.candidate).conversation
    assert broadcast.for_close(CloseResult(conversation, changed=False), None) == []
