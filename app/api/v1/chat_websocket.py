"""WebSocket endpoint for the live chat relay."""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import sessionmaker

from app.api.dependencies import get_chat_handlers, get_chat_manager
from app.chat import ChatEventHandlers, ChatWebSocketManager
from app.chat.events import ack_frame
from app.core.config import settings
from app.core.database import get_session_factory


logger = logging.getLogger("app.api.chat_websocket")

router = APIRouter()


@router.websocket(settings.CHAT_WS_PATH)
async def chat_websocket(
    websocket: WebSocket,
    manager: ChatWebSocketManager = Depends(get_chat_manager),
    handlers: ChatEventHandlers = Depends(get_chat_handlers),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """
    Event-based chat socket.

    Connection URL: ws://localhost:8000/api/v1/ws/chat

    Frame (Client → Server):
    {
        "event": "join_chat",
        "data": {"userId": 1},
        "ackId": 1
    }

    Frames (Server → Client):
    {"event": "ack", "ackId": 1, "data": {"success": true, ...}}
    {"event": "new_message", "data": {...}}
    """
    connection_id = await manager.connect(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Binary frames carry the same JSON envelope
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""

            # One session per event; nothing is held open across awaits
            with session_factory() as db:
                outcome = handlers.handle(db, connection_id, raw)

            await manager.deliver(outcome.deliveries)

            if outcome.ack_id is not None:
                await manager.send(connection_id, ack_frame(outcome.ack_id, outcome.ack))
            elif not outcome.ack.get("success", False):
                logger.info(
                    "Dropped failure for event without ackId: %s",
                    outcome.ack.get("error"),
                    extra={"connection_id": connection_id},
                )

    except WebSocketDisconnect:
        logger.info("Chat socket closed by client: connection_id=%s", connection_id)
    except Exception as e:
        logger.error("Chat socket error: %s", e, exc_info=True, extra={"connection_id": connection_id})
    finally:
        manager.disconnect(connection_id)
