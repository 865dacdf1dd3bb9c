"""Conversation lifecycle management."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import messages as text
from .errors import ClaimConflict, ConversationClosed, NotFound, NotParticipant
from .messages import MessageRelay
from .models import ChatMessage, Conversation
from .states import Assigned, ConversationStatus
from .users import UserDirectory


logger = logging.getLogger("app.chat.sessions")


@dataclass
class JoinResult:
    conversation: Conversation
    transcript: List[ChatMessage] = field(default_factory=list)
    # True only when this call created the conversation; gates the admin notification
    created: bool = False


@dataclass
class CloseResult:
    conversation: Conversation
    # False when the conversation was already closed
    changed: bool


class ConversationLifecycleManager:
    """Single authority for conversation state transitions.

    Transport-agnostic: every method takes a session, returns data and never
    talks to connections.
    """

    def __init__(self, users: UserDirectory):
        self.users = users

    @staticmethod
    def get(db: Session, conversation_id: int) -> Conversation:
        conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
        if not conversation:
            raise NotFound(text.CONVERSATION_NOT_FOUND)
        return conversation

    @staticmethod
    def active_for_candidate(db: Session, candidate_id: int) -> Optional[Conversation]:
        return (
            db.query(Conversation)
            .filter(
                Conversation.candidate_id == candidate_id,
                Conversation.status != ConversationStatus.CLOSED.value,
            )
            .order_by(Conversation.created_at, Conversation.id)
            .first()
        )

    def join_as_candidate(self, db: Session, user_id: int) -> JoinResult:
        """Return the candidate's open conversation, creating one if needed."""
        if not self.users.get_profile(db, user_id):
            raise NotFound(text.CANDIDATE_NOT_FOUND)

        existing = self.active_for_candidate(db, user_id)
        if existing:
            logger.info(
                "Candidate rejoined conversation: conversation_id=%s, candidate_id=%s",
                existing.id,
                user_id,
            )
            return JoinResult(existing, MessageRelay.transcript(db, existing.id), created=False)

        conversation = Conversation(
            candidate_id=user_id,
            admin_id=None,
            status=ConversationStatus.UNASSIGNED.value,
        )
        db.add(conversation)
        try:
            db.commit()
        except IntegrityError:
            # Another join for the same candidate committed first
            db.rollback()
            existing = self.active_for_candidate(db, user_id)
            if not existing:
                raise
            logger.info(
                "Concurrent join resolved to existing conversation: conversation_id=%s, candidate_id=%s",
                existing.id,
                user_id,
            )
            return JoinResult(existing, MessageRelay.transcript(db, existing.id), created=False)

        db.refresh(conversation)
        logger.info(
            "Conversation created: conversation_id=%s, candidate_id=%s",
            conversation.id,
            user_id,
        )
        return JoinResult(conversation, [], created=True)

    def claim(self, db: Session, admin_id: int, conversation_id: int) -> Conversation:
        """Assign an unassigned conversation to ``admin_id``.

        The status check is repeated inside a version-guarded UPDATE, so of
        two admins racing for the same conversation exactly one row update
        succeeds and the other caller gets ClaimConflict.
        """
        conversation = (
            db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .with_for_update(of=Conversation)
            .populate_existing()
            .first()
        )
        if not conversation:
            raise NotFound(text.CONVERSATION_NOT_FOUND)
        if not self.users.get_profile(db, admin_id):
            raise NotFound(text.ADMIN_NOT_FOUND)
        if conversation.is_closed:
            raise ConversationClosed(text.CONVERSATION_CLOSED)
        if isinstance(conversation.assignment, Assigned):
            raise ClaimConflict(text.CONVERSATION_ALREADY_ASSIGNED)

        result = db.execute(
            update(Conversation)
            .where(
                Conversation.id == conversation_id,
                Conversation.version == conversation.version,
                Conversation.status == ConversationStatus.UNASSIGNED.value,
            )
            .values(
                admin_id=admin_id,
                status=ConversationStatus.ASSIGNED.value,
                version=Conversation.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning(
                "Claim lost: conversation_id=%s, admin_id=%s", conversation_id, admin_id
            )
            raise ClaimConflict(text.CONVERSATION_ALREADY_ASSIGNED)

        db.commit()
        db.refresh(conversation)
        logger.info(
            "Conversation assigned: conversation_id=%s, admin_id=%s", conversation_id, admin_id
        )
        return conversation

    def close(self, db: Session, conversation_id: int) -> CloseResult:
        """Close a conversation. Closing an already closed conversation is a no-op."""
        conversation = self.get(db, conversation_id)
        if conversation.is_closed:
            return CloseResult(conversation, changed=False)

        result = db.execute(
            update(Conversation)
            .where(
                Conversation.id == conversation_id,
                Conversation.status != ConversationStatus.CLOSED.value,
            )
            .values(
                status=ConversationStatus.CLOSED.value,
                version=Conversation.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        db.commit()
        db.refresh(conversation)

        if changed:
            logger.info("Conversation closed: conversation_id=%s", conversation_id)
        return CloseResult(conversation, changed=changed)

    def close_all_for_admin(self, db: Session, admin_id: int) -> List[Conversation]:
        """Close every open conversation assigned to an admin.

        Returns only the conversations this call actually closed.
        """
        if not self.users.get_profile(db, admin_id):
            raise NotFound(text.ADMIN_NOT_FOUND)

        closed: List[Conversation] = []
        for conversation in self.list_for_admin(db, admin_id):
            result = self.close(db, conversation.id)
            if result.changed:
                closed.append(result.conversation)

        logger.info("Closed %d conversations for admin_id=%s", len(closed), admin_id)
        return closed

    @staticmethod
    def list_unassigned(db: Session) -> List[Conversation]:
        return (
            db.query(Conversation)
            .filter(Conversation.status == ConversationStatus.UNASSIGNED.value)
            .order_by(Conversation.created_at, Conversation.id)
            .all()
        )

    @staticmethod
    def list_for_admin(db: Session, admin_id: int) -> List[Conversation]:
        return (
            db.query(Conversation)
            .filter(
                Conversation.admin_id == admin_id,
                Conversation.status == ConversationStatus.ASSIGNED.value,
            )
            .order_by(Conversation.created_at, Conversation.id)
            .all()
        )

    def rejoin_as_admin(self, db: Session, admin_id: int, conversation_id: int) -> JoinResult:
        """Let the assigned admin re-enter a conversation, e.g. after a reconnect."""
        conversation = self.get(db, conversation_id)
        if conversation.is_closed:
            raise ConversationClosed(text.CONVERSATION_CLOSED)
        if conversation.assignment != Assigned(admin_id=admin_id):
            raise NotParticipant(text.CONVERSATION_NOT_ASSIGNED_TO_ADMIN)
        return JoinResult(conversation, MessageRelay.transcript(db, conversation.id), created=False)
