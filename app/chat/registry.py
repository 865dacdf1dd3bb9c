"""In-memory tracking of live chat connections."""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Set


logger = logging.getLogger("app.chat.registry")


@dataclass(frozen=True)
class Binding:
    user_id: int
    conversation_id: int


class ConnectionRegistry:
    """Maps connections to (user, conversation) and conversations to rooms.

    Handlers for different connections call into the same instance, so every
    map is read and written under one lock. Unknown connection ids are
    tolerated everywhere: a missed connect or a double disconnect must not
    corrupt chat state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: Set[str] = set()
        # connection_id -> Binding
        self._bindings: Dict[str, Binding] = {}
        # conversation_id -> connection ids subscribed to its broadcasts
        self._rooms: Dict[int, Set[str]] = {}
        self._admins: Set[str] = set()

    def register(self, connection_id: str) -> None:
        with self._lock:
            self._connections.add(connection_id)
        logger.info("Connection registered: connection_id=%s", connection_id)

    def bind(self, connection_id: str, user_id: int, conversation_id: int) -> None:
        """Associate a connection with a user and conversation, joining its room.

        Rebinding replaces the previous association and leaves the old room.
        """
        with self._lock:
            self._connections.add(connection_id)
            previous = self._bindings.get(connection_id)
            if previous and previous.conversation_id != conversation_id:
                self._leave_room(connection_id, previous.conversation_id)
            self._bindings[connection_id] = Binding(user_id, conversation_id)
            self._rooms.setdefault(conversation_id, set()).add(connection_id)
        logger.info(
            "Connection bound: connection_id=%s, user_id=%s, conversation_id=%s",
            connection_id,
            user_id,
            conversation_id,
        )

    def unbind(self, connection_id: str) -> Optional[Binding]:
        """Forget a connection entirely. Returns what it was bound to, if anything."""
        with self._lock:
            self._connections.discard(connection_id)
            self._admins.discard(connection_id)
            binding = self._bindings.pop(connection_id, None)
            if binding:
                self._leave_room(connection_id, binding.conversation_id)
        if binding:
            logger.info(
                "Connection unbound: connection_id=%s, user_id=%s, conversation_id=%s",
                connection_id,
                binding.user_id,
                binding.conversation_id,
            )
        return binding

    def lookup(self, connection_id: str) -> Optional[Binding]:
        with self._lock:
            return self._bindings.get(connection_id)

    def mark_admin(self, connection_id: str) -> None:
        with self._lock:
            self._connections.add(connection_id)
            self._admins.add(connection_id)

    def admin_connections(self) -> Set[str]:
        with self._lock:
            return set(self._admins)

    def room(self, conversation_id: int) -> Set[str]:
        with self._lock:
            return set(self._rooms.get(conversation_id, ()))

    def close_room(self, conversation_id: int) -> Set[str]:
        """Drop every subscriber of a conversation's room.

        Bindings stay in place, so a member that keeps sending is told the
        conversation is closed instead of being treated as never joined.
        """
        with self._lock:
            members = self._rooms.pop(conversation_id, set())
        if members:
            logger.info(
                "Room closed: conversation_id=%s, members=%d", conversation_id, len(members)
            )
        return members

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def _leave_room(self, connection_id: str, conversation_id: int) -> None:
        members = self._rooms.get(conversation_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[conversation_id]
