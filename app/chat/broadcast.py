"""Translate lifecycle results into deliveries for the transport.

Nothing in here touches a connection; the WebSocket manager executes the
returned ``Delivery`` objects.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.core import messages as text
from .events import OutboundEvent
from .models import ChatMessage, Conversation
from .schemas import conversation_to_wire, message_to_wire
from .sessions import CloseResult, JoinResult


class Audience(str, enum.Enum):
    ROOM = "room"
    ADMINS = "admins"


@dataclass(frozen=True)
class Delivery:
    audience: Audience
    event: OutboundEvent
    payload: Dict[str, Any]
    conversation_id: Optional[int] = None
    # Drop the room's subscribers once this delivery has gone out
    closes_room: bool = False


def to_room(
    conversation_id: int,
    event: OutboundEvent,
    payload: Dict[str, Any],
    closes_room: bool = False,
) -> Delivery:
    return Delivery(Audience.ROOM, event, payload, conversation_id, closes_room)


def to_admins(event: OutboundEvent, payload: Dict[str, Any]) -> Delivery:
    return Delivery(Audience.ADMINS, event, payload)


def for_join(result: JoinResult) -> List[Delivery]:
    if not result.created:
        return []
    return [
        to_admins(
            OutboundEvent.NEW_UNASSIGNED_CONVERSATION,
            conversation_to_wire(result.conversation),
        )
    ]


def for_claim(conversation: Conversation) -> List[Delivery]:
    return [
        to_room(
            conversation.id,
            OutboundEvent.ADMIN_ASSIGNED,
            conversation_to_wire(conversation),
        ),
        to_admins(
            OutboundEvent.CONVERSATION_TAKEN,
            {"conversationId": conversation.id, "adminId": conversation.admin_id},
        ),
    ]


def for_message(message: ChatMessage) -> List[Delivery]:
    return [
        to_room(message.conversation_id, OutboundEvent.NEW_MESSAGE, message_to_wire(message))
    ]


def for_close(result: CloseResult, closed_by: Optional[int]) -> List[Delivery]:
    if not result.changed:
        return []
    conversation = result.conversation
    return [
        to_room(
            conversation.id,
            OutboundEvent.CONVERSATION_CLOSED,
            {
                "conversation": conversation_to_wire(conversation),
                "closedBy": closed_by,
                "message": text.CONVERSATION_CLOSED_NOTICE,
            },
            closes_room=True,
        )
    ]


def for_close_all(conversations: List[Conversation], admin_id: int) -> List[Delivery]:
    deliveries: List[Delivery] = []
    for conversation in conversations:
        deliveries.extend(for_close(CloseResult(conversation, changed=True), admin_id))
    return deliveries
