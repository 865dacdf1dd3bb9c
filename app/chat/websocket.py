"""WebSocket management for real-time chat."""

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Set

from fastapi import WebSocket

from .broadcast import Audience, Delivery
from .events import event_frame
from .registry import Binding, ConnectionRegistry


logger = logging.getLogger("app.chat.websocket")


class ChatWebSocketManager:
    """Owns the live sockets and executes deliveries against them."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.sockets: Dict[str, WebSocket] = {}
        # Keeps deliveries to one room in the order they were produced
        self._room_locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def connect(self, websocket: WebSocket) -> str:
        """Accept the socket and register it under a fresh connection id."""
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self.sockets[connection_id] = websocket
        self.registry.register(connection_id)
        logger.info(
            "WebSocket connected: connection_id=%s, total_connections=%d",
            connection_id,
            len(self.sockets),
        )
        return connection_id

    def disconnect(self, connection_id: str) -> Binding | None:
        """Forget the socket. Conversations are left exactly as they are."""
        self.sockets.pop(connection_id, None)
        binding = self.registry.unbind(connection_id)
        if binding:
            self._release_room_lock(binding.conversation_id)
        logger.info(
            "WebSocket disconnected: connection_id=%s, user_id=%s, conversation_id=%s",
            connection_id,
            binding.user_id if binding else None,
            binding.conversation_id if binding else None,
        )
        return binding

    def _release_room_lock(self, conversation_id: int) -> None:
        """Forget the lock of a room nobody is subscribed to any more."""
        lock = self._room_locks.get(conversation_id)
        if lock is None or lock.locked():
            return
        if not self.registry.room(conversation_id):
            del self._room_locks[conversation_id]

    async def send(self, connection_id: str, frame: Dict[str, Any]) -> bool:
        websocket = self.sockets.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(frame)
            return True
        except RuntimeError as e:
            logger.warning(
                "Failed to send WebSocket frame to connection %s: %s", connection_id, e
            )
        except Exception as e:
            logger.error(
                "Unexpected error sending WebSocket frame to connection %s: %s",
                connection_id,
                e,
                exc_info=True,
            )
        self.disconnect(connection_id)
        return False

    async def _send_many(self, connection_ids: Iterable[str], frame: Dict[str, Any]) -> int:
        sent_count = 0
        for connection_id in sorted(connection_ids):
            if await self.send(connection_id, frame):
                sent_count += 1
        return sent_count

    async def deliver(self, deliveries: List[Delivery]) -> int:
        """Send each delivery to its audience.

        Returns:
            Number of frames that reached a socket
        """
        sent_count = 0
        for delivery in deliveries:
            frame = event_frame(delivery.event, delivery.payload)
            if delivery.audience is Audience.ADMINS:
                sent_count += await self._send_many(self.registry.admin_connections(), frame)
                continue

            conversation_id = delivery.conversation_id
            async with self._room_locks[conversation_id]:
                sent_count += await self._send_many(self.registry.room(conversation_id), frame)
                if delivery.closes_room:
                    members: Set[str] = self.registry.close_room(conversation_id)
                    logger.info(
                        "Unsubscribed %d connections from closed conversation %s",
                        len(members),
                        conversation_id,
                    )
            if delivery.closes_room:
                self._room_locks.pop(conversation_id, None)
        return sent_count
