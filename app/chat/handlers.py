"""Inbound chat event handlers."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from app.core import messages as text
from . import broadcast
from .broadcast import Delivery
from .errors import ChatError, Unbound
from .events import ADMIN_EVENTS, InboundEvent, InboundFrame, RawFrame, decode_envelope, parse_frame
from .messages import MessageRelay
from .registry import ConnectionRegistry
from .schemas import (
    AdminConversationPayload,
    AdminPayload,
    JoinChatPayload,
    SendMessagePayload,
    conversation_to_wire,
    message_to_wire,
)
from .sessions import ConversationLifecycleManager


logger = logging.getLogger("app.chat.handlers")


@dataclass
class HandlerOutcome:
    ack: Dict[str, Any]
    deliveries: List[Delivery] = field(default_factory=list)
    ack_id: Optional[Any] = None


Handler = Callable[[Session, str, Any], HandlerOutcome]


def failure(error: str, code: str) -> Dict[str, Any]:
    return {"success": False, "error": error, "code": code}


class ChatEventHandlers:
    """One handler per inbound event kind, dispatched from a single table."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        lifecycle: ConversationLifecycleManager,
        relay: MessageRelay,
    ):
        self.registry = registry
        self.lifecycle = lifecycle
        self.relay = relay
        self._handlers: Dict[InboundEvent, Handler] = {
            InboundEvent.JOIN_CHAT: self.join_chat,
            InboundEvent.ADMIN_TAKE_CONVERSATION: self.admin_take_conversation,
            InboundEvent.SEND_MESSAGE: self.send_message,
            InboundEvent.CLOSE_CONVERSATION: self.close_conversation,
            InboundEvent.GET_UNASSIGNED_CONVERSATIONS: self.get_unassigned_conversations,
            InboundEvent.CLOSE_ALL_ADMIN_CONVERSATIONS: self.close_all_admin_conversations,
            InboundEvent.JOIN_ADMIN_ROOM: self.join_admin_room,
            InboundEvent.GET_ADMIN_CONVERSATIONS: self.get_admin_conversations,
        }
        missing = set(InboundEvent) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for events: {sorted(e.value for e in missing)}")

    def handle(self, db: Session, connection_id: str, raw: Union[str, bytes]) -> HandlerOutcome:
        """Decode, dispatch and turn any failure into a failure ack."""
        frame: Optional[RawFrame] = None
        event_name = None
        try:
            frame = decode_envelope(raw)
            event_name = frame.event
            inbound = parse_frame(frame)
            return self.dispatch(db, connection_id, inbound)
        except ChatError as e:
            db.rollback()
            logger.warning(
                "Chat event rejected: %s",
                e.message,
                extra={"connection_id": connection_id, "event": event_name},
            )
            return HandlerOutcome(failure(e.message, e.code), ack_id=frame.ack_id if frame else None)
        except Exception:
            db.rollback()
            logger.error(
                "Unexpected error handling chat event",
                exc_info=True,
                extra={"connection_id": connection_id, "event": event_name},
            )
            return HandlerOutcome(
                failure(text.ERROR_INTERNAL_SERVER, "internal_error"),
                ack_id=frame.ack_id if frame else None,
            )

    def dispatch(self, db: Session, connection_id: str, inbound: InboundFrame) -> HandlerOutcome:
        if inbound.kind in ADMIN_EVENTS:
            self.registry.mark_admin(connection_id)
        outcome = self._handlers[inbound.kind](db, connection_id, inbound.payload)
        outcome.ack_id = inbound.ack_id
        return outcome

    def _require_binding(self, connection_id: str):
        binding = self.registry.lookup(connection_id)
        if binding is None:
            raise Unbound(text.CONNECTION_NOT_BOUND)
        return binding

    def join_chat(self, db: Session, connection_id: str, payload: JoinChatPayload) -> HandlerOutcome:
        result = self.lifecycle.join_as_candidate(db, payload.user_id)
        self.registry.bind(connection_id, payload.user_id, result.conversation.id)
        return HandlerOutcome(
            {
                "success": True,
                "conversation": conversation_to_wire(result.conversation),
                "messages": [message_to_wire(m) for m in result.transcript],
            },
            broadcast.for_join(result),
        )

    def admin_take_conversation(
        self, db: Session, connection_id: str, payload: AdminConversationPayload
    ) -> HandlerOutcome:
        conversation = self.lifecycle.claim(db, payload.admin_id, payload.conversation_id)
        self.registry.bind(connection_id, payload.admin_id, conversation.id)
        return HandlerOutcome(
            {"success": True, "conversation": conversation_to_wire(conversation)},
            broadcast.for_claim(conversation),
        )

    def send_message(self, db: Session, connection_id: str, payload: SendMessagePayload) -> HandlerOutcome:
        binding = self._require_binding(connection_id)
        message = self.relay.send(db, binding.conversation_id, binding.user_id, payload.content)
        return HandlerOutcome(
            {"success": True, "message": message_to_wire(message)},
            broadcast.for_message(message),
        )

    def close_conversation(self, db: Session, connection_id: str, payload: Any) -> HandlerOutcome:
        binding = self._require_binding(connection_id)
        result = self.lifecycle.close(db, binding.conversation_id)
        return HandlerOutcome(
            {"success": True, "conversation": conversation_to_wire(result.conversation)},
            broadcast.for_close(result, binding.user_id),
        )

    def get_unassigned_conversations(self, db: Session, connection_id: str, payload: Any) -> HandlerOutcome:
        conversations = self.lifecycle.list_unassigned(db)
        return HandlerOutcome(
            {"success": True, "conversations": [conversation_to_wire(c) for c in conversations]}
        )

    def close_all_admin_conversations(
        self, db: Session, connection_id: str, payload: AdminPayload
    ) -> HandlerOutcome:
        closed = self.lifecycle.close_all_for_admin(db, payload.admin_id)
        return HandlerOutcome(
            {"success": True, "closedConversations": [conversation_to_wire(c) for c in closed]},
            broadcast.for_close_all(closed, payload.admin_id),
        )

    def join_admin_room(
        self, db: Session, connection_id: str, payload: AdminConversationPayload
    ) -> HandlerOutcome:
        result = self.lifecycle.rejoin_as_admin(db, payload.admin_id, payload.conversation_id)
        self.registry.bind(connection_id, payload.admin_id, result.conversation.id)
        return HandlerOutcome(
            {
                "success": True,
                "conversation": conversation_to_wire(result.conversation),
                "messages": [message_to_wire(m) for m in result.transcript],
            }
        )

    def get_admin_conversations(self, db: Session, connection_id: str, payload: AdminPayload) -> HandlerOutcome:
        conversations = self.lifecycle.list_for_admin(db, payload.admin_id)
        return HandlerOutcome(
            {"success": True, "conversations": [conversation_to_wire(c) for c in conversations]}
        )
