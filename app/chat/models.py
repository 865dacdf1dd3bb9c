"""Chat models for candidate/admin conversations."""

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import TimestampedModel
from app.models.user import User
from .states import Assigned, Assignment, ConversationStatus, MessageType, Unassigned


class Conversation(TimestampedModel):
    """Chat session between one candidate and at most one admin."""

    __tablename__ = "conversations"
    __table_args__ = (
        # At most one open conversation per candidate
        Index(
            "uq_conversations_candidate_open",
            "candidate_id",
            unique=True,
            postgresql_where=text("status <> 'CLOSED'"),
            sqlite_where=text("status <> 'CLOSED'"),
        ),
        Index("idx_conversations_status", "status"),
        Index("idx_conversations_admin_status", "admin_id", "status"),
    )

    candidate_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    admin_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ConversationStatus.UNASSIGNED.value
    )

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    candidate: Mapped[User] = relationship(User, foreign_keys=[candidate_id], lazy="selectin")
    admin: Mapped[User | None] = relationship(User, foreign_keys=[admin_id], lazy="selectin")

    @property
    def assignment(self) -> Assignment:
        if self.admin_id is None:
            return Unassigned()
        return Assigned(admin_id=self.admin_id)

    @property
    def is_closed(self) -> bool:
        return self.status == ConversationStatus.CLOSED.value

    def has_participant(self, user_id: int) -> bool:
        return user_id == self.candidate_id or (
            self.admin_id is not None and user_id == self.admin_id
        )


class ChatMessage(TimestampedModel):
    """Individual message in a conversation. Never updated after insert."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("idx_chat_messages_conversation_created", "conversation_id", "created_at"),
    )

    conversation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    # Sender details as they were when the message was sent
    sender_name: Mapped[str] = mapped_column(String(201), nullable=False)
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MessageType.TEXT.value
    )
