"""Pydantic schemas for chat payloads (camelCase on the wire)."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import ChatMessage, Conversation


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Outbound

class ConversationOut(WireModel):
    id: int
    candidate_id: int
    candidate_name: str
    admin_id: Optional[int] = None
    admin_name: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, conversation: Conversation) -> "ConversationOut":
        admin = conversation.admin
        return cls(
            id=conversation.id,
            candidate_id=conversation.candidate_id,
            candidate_name=conversation.candidate.display_name,
            admin_id=conversation.admin_id,
            admin_name=admin.display_name if admin else None,
            status=conversation.status,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


class MessageOut(WireModel):
    id: int
    conversation_id: int
    sender_id: int
    sender_name: str
    sender_role: str
    content: str
    created_at: datetime
    message_type: str

    @classmethod
    def from_model(cls, message: ChatMessage) -> "MessageOut":
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            sender_role=message.sender_role,
            content=message.content,
            created_at=message.created_at,
            message_type=message.message_type,
        )


def conversation_to_wire(conversation: Conversation) -> Dict[str, Any]:
    return ConversationOut.from_model(conversation).to_wire()


def message_to_wire(message: ChatMessage) -> Dict[str, Any]:
    return MessageOut.from_model(message).to_wire()


# Inbound event payloads

class EmptyPayload(WireModel):
    pass


class JoinChatPayload(WireModel):
    user_id: int


class AdminConversationPayload(WireModel):
    admin_id: int
    conversation_id: int


class AdminPayload(WireModel):
    admin_id: int


class SendMessagePayload(WireModel):
    content: str = Field(default="")
