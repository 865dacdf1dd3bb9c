"""REST endpoints for chat conversations."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_chat_manager, get_lifecycle
from app.chat import ChatWebSocketManager, ConversationLifecycleManager, MessageRelay
from app.chat import broadcast
from app.chat.errors import ChatError
from app.chat.schemas import ConversationOut, MessageOut
from app.core import messages as text
from app.core.database import get_db


logger = logging.getLogger("app.api.chat")

router = APIRouter(prefix="/chat", tags=["chat"])


def _http_error(e: ChatError) -> HTTPException:
    return HTTPException(status_code=e.http_status, detail=e.message)


@router.get("/conversations/unassigned")
def list_unassigned_conversations(
    db: Session = Depends(get_db),
    lifecycle: ConversationLifecycleManager = Depends(get_lifecycle),
) -> List[dict]:
    return [ConversationOut.from_model(c).to_wire() for c in lifecycle.list_unassigned(db)]


@router.get("/conversations/admin/{admin_id}")
def list_admin_conversations(
    admin_id: int,
    db: Session = Depends(get_db),
    lifecycle: ConversationLifecycleManager = Depends(get_lifecycle),
) -> List[dict]:
    return [ConversationOut.from_model(c).to_wire() for c in lifecycle.list_for_admin(db, admin_id)]


@router.get("/conversations/candidate/{candidate_id}")
def get_candidate_conversation(
    candidate_id: int,
    db: Session = Depends(get_db),
    lifecycle: ConversationLifecycleManager = Depends(get_lifecycle),
) -> dict:
    conversation = lifecycle.active_for_candidate(db, candidate_id)
    if not conversation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=text.CONVERSATION_NOT_FOUND)
    return ConversationOut.from_model(conversation).to_wire()


@router.get("/conversations/{conversation_id}/messages")
def get_conversation_messages(
    conversation_id: int,
    db: Session = Depends(get_db),
    lifecycle: ConversationLifecycleManager = Depends(get_lifecycle),
) -> List[dict]:
    try:
        lifecycle.get(db, conversation_id)
    except ChatError as e:
        raise _http_error(e)
    return [MessageOut.from_model(m).to_wire() for m in MessageRelay.transcript(db, conversation_id)]


@router.post("/conversations/{conversation_id}/assign/{admin_id}")
async def assign_conversation(
    conversation_id: int,
    admin_id: int,
    db: Session = Depends(get_db),
    lifecycle: ConversationLifecycleManager = Depends(get_lifecycle),
    manager: ChatWebSocketManager = Depends(get_chat_manager),
) -> dict:
    """Claim a conversation for an admin outside of a socket session."""
    try:
        conversation = lifecycle.claim(db, admin_id, conversation_id)
    except ChatError as e:
        logger.warning("Assign rejected for conversation %s: %s", conversation_id, e.message)
        raise _http_error(e)

    body = ConversationOut.from_model(conversation).to_wire()
    await manager.deliver(broadcast.for_claim(conversation))
    return body


@router.post("/conversations/{conversation_id}/close")
async def close_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    lifecycle: ConversationLifecycleManager = Depends(get_lifecycle),
    manager: ChatWebSocketManager = Depends(get_chat_manager),
) -> dict:
    try:
        result = lifecycle.close(db, conversation_id)
    except ChatError as e:
        raise _http_error(e)

    body = ConversationOut.from_model(result.conversation).to_wire()
    await manager.deliver(broadcast.for_close(result, closed_by=None))
    return body
