"""Message handling for the chat relay."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core import messages as text
from app.core.config import settings
from .errors import ConversationClosed, InvalidInput, NotFound, NotParticipant
from .models import ChatMessage, Conversation
from .states import MessageType
from .users import UserDirectory


logger = logging.getLogger("app.chat.messages")


class MessageRelay:
    """Validates and persists chat messages. Fan-out is left to the caller."""

    def __init__(self, users: UserDirectory, max_length: Optional[int] = None):
        self.users = users
        self.max_length = max_length or settings.CHAT_MAX_MESSAGE_LENGTH

    def send(
        self,
        db: Session,
        conversation_id: int,
        sender_id: int,
        content: Optional[str],
    ) -> ChatMessage:
        """Persist a text message from ``sender_id`` into a conversation."""
        body = (content or "").strip()
        if not body:
            raise InvalidInput(text.MESSAGE_CONTENT_REQUIRED)
        if len(body) > self.max_length:
            raise InvalidInput(text.MESSAGE_TOO_LONG.format(limit=self.max_length))

        # Row lock keeps a concurrent close from landing between check and insert
        conversation = (
            db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .with_for_update(of=Conversation)
            .first()
        )
        if not conversation:
            raise NotFound(text.CONVERSATION_NOT_FOUND)
        if conversation.is_closed:
            raise ConversationClosed(text.CONVERSATION_CLOSED)

        sender = self.users.get_profile(db, sender_id)
        if not sender:
            raise NotFound(text.USER_NOT_FOUND)
        if not conversation.has_participant(sender_id):
            raise NotParticipant(text.SENDER_NOT_PARTICIPANT)

        message = ChatMessage(
            conversation_id=conversation_id,
            sender_id=sender_id,
            sender_name=sender.display_name,
            sender_role=sender.role,
            content=body,
            message_type=MessageType.TEXT.value,
        )
        db.add(message)
        db.commit()
        db.refresh(message)

        logger.info(
            "Message created: message_id=%s, conversation_id=%s, sender_id=%s",
            message.id,
            conversation_id,
            sender_id,
        )
        return message

    @staticmethod
    def transcript(db: Session, conversation_id: int) -> List[ChatMessage]:
        """All messages of a conversation in persisted order."""
        return (
            db.query(ChatMessage)
            .filter(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .all()
        )
