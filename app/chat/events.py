"""Event names and frame parsing for the chat socket protocol.

Client -> server::

    {"event": "send_message", "data": {"content": "hi"}, "ackId": 7}

Server -> client::

    {"event": "ack", "ackId": 7, "data": {"success": true, ...}}
    {"event": "new_message", "data": {...}}
"""

import enum
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, Union

from pydantic import ValidationError

from app.core import messages as text
from .errors import InvalidInput
from .schemas import (
    AdminConversationPayload,
    AdminPayload,
    EmptyPayload,
    JoinChatPayload,
    SendMessagePayload,
    WireModel,
)


ACK_EVENT = "ack"

AckId = Union[int, str]


class InboundEvent(str, enum.Enum):
    JOIN_CHAT = "join_chat"
    ADMIN_TAKE_CONVERSATION = "admin_take_conversation"
    SEND_MESSAGE = "send_message"
    CLOSE_CONVERSATION = "close_conversation"
    GET_UNASSIGNED_CONVERSATIONS = "get_unassigned_conversations"
    CLOSE_ALL_ADMIN_CONVERSATIONS = "close_all_admin_conversations"
    JOIN_ADMIN_ROOM = "join_admin_room"
    GET_ADMIN_CONVERSATIONS = "get_admin_conversations"


class OutboundEvent(str, enum.Enum):
    NEW_UNASSIGNED_CONVERSATION = "new_unassigned_conversation"
    ADMIN_ASSIGNED = "admin_assigned"
    CONVERSATION_TAKEN = "conversation_taken"
    NEW_MESSAGE = "new_message"
    CONVERSATION_CLOSED = "conversation_closed"


PAYLOAD_TYPES: Dict[InboundEvent, Type[WireModel]] = {
    InboundEvent.JOIN_CHAT: JoinChatPayload,
    InboundEvent.ADMIN_TAKE_CONVERSATION: AdminConversationPayload,
    InboundEvent.SEND_MESSAGE: SendMessagePayload,
    InboundEvent.CLOSE_CONVERSATION: EmptyPayload,
    InboundEvent.GET_UNASSIGNED_CONVERSATIONS: EmptyPayload,
    InboundEvent.CLOSE_ALL_ADMIN_CONVERSATIONS: AdminPayload,
    InboundEvent.JOIN_ADMIN_ROOM: AdminConversationPayload,
    InboundEvent.GET_ADMIN_CONVERSATIONS: AdminPayload,
}

# Events that put the sending connection in the admin audience
ADMIN_EVENTS = frozenset(
    {
        InboundEvent.ADMIN_TAKE_CONVERSATION,
        InboundEvent.GET_UNASSIGNED_CONVERSATIONS,
        InboundEvent.CLOSE_ALL_ADMIN_CONVERSATIONS,
        InboundEvent.JOIN_ADMIN_ROOM,
        InboundEvent.GET_ADMIN_CONVERSATIONS,
    }
)


@dataclass(frozen=True)
class InboundFrame:
    kind: InboundEvent
    payload: WireModel
    ack_id: Optional[AckId] = None


@dataclass(frozen=True)
class RawFrame:
    """A frame whose envelope decoded; the event itself may still be invalid."""

    event: Any
    data: Any
    ack_id: Optional[AckId] = None


def decode_envelope(raw: Union[str, bytes]) -> RawFrame:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidInput(text.INVALID_FRAME)
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidInput(text.INVALID_FRAME)
    if not isinstance(frame, dict):
        raise InvalidInput(text.INVALID_FRAME)

    ack_id = frame.get("ackId")
    if ack_id is not None and not isinstance(ack_id, (int, str)):
        ack_id = None
    return RawFrame(event=frame.get("event"), data=frame.get("data"), ack_id=ack_id)


def parse_frame(frame: RawFrame) -> InboundFrame:
    """Resolve the event name and validate its payload."""
    try:
        kind = InboundEvent(frame.event)
    except ValueError:
        raise InvalidInput(text.UNKNOWN_EVENT.format(event=frame.event))

    data = frame.data if frame.data is not None else {}
    if not isinstance(data, dict):
        raise InvalidInput(text.INVALID_PAYLOAD.format(event=kind.value, detail="expected an object"))

    try:
        payload = PAYLOAD_TYPES[kind].model_validate(data)
    except ValidationError as e:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidInput(text.INVALID_PAYLOAD.format(event=kind.value, detail=detail))

    return InboundFrame(kind=kind, payload=payload, ack_id=frame.ack_id)


def ack_frame(ack_id: AckId, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"event": ACK_EVENT, "ackId": ack_id, "data": data}


def event_frame(event: OutboundEvent, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"event": event.value, "data": data}
