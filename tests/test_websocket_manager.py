from __future__ import annotations

import asyncio

from app.chat import ChatWebSocketManager, ConnectionRegistry
from app.chat import broadcast
from app.chat.events import OutboundEvent


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.accepted = False
        self.frames = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, frame):
        if self.fail:
            raise RuntimeError("socket is closed")
        self.frames.append(frame)


def run(coro):
    return asyncio.run(coro)


def connect(manager, socket):
    return run(manager.connect(socket))


def test_connect_registers_socket():
    registry = ConnectionRegistry()
    manager = ChatWebSocketManager(registry)
    socket = FakeSocket()

    connection_id = connect(manager, socket)

    assert socket.accepted
    assert registry.connection_count() == 1
    assert manager.sockets[connection_id] is socket


def test_room_and_admin_audiences():
    registry = ConnectionRegistry()
    manager = ChatWebSocketManager(registry)
    candidate, admin, bystander = FakeSocket(), FakeSocket(), FakeSocket()
    cand_id = connect(manager, candidate)
    admin_id = connect(manager, admin)
    connect(manager, bystander)
    registry.bind(cand_id, 1, 10)
    registry.mark_admin(admin_id)

    sent = run(
        manager.deliver(
            [
                broadcast.to_room(10, OutboundEvent.NEW_MESSAGE, {"content": "hi"}),
                broadcast.to_admins(OutboundEvent.CONVERSATION_TAKEN, {"conversationId": 10}),
            ]
        )
    )

    assert sent == 2
    assert candidate.frames == [{"event": "new_message", "data": {"content": "hi"}}]
    assert admin.frames == [{"event": "conversation_taken", "data": {"conversationId": 10}}]
    assert bystander.frames == []


def test_closing_delivery_unsubscribes_room_after_sending():
    registry = ConnectionRegistry()
    manager = ChatWebSocketManager(registry)
    candidate = FakeSocket()
    cand_id = connect(manager, candidate)
    registry.bind(cand_id, 1, 10)

    run(
        manager.deliver(
            [
                broadcast.to_room(10, OutboundEvent.CONVERSATION_CLOSED, {"closedBy": 1}, closes_room=True),
                broadcast.to_room(10, OutboundEvent.NEW_MESSAGE, {"content": "too late"}),
            ]
        )
    )

    assert [f["event"] for f in candidate.frames] == ["conversation_closed"]
    assert registry.room(10) == set()
    assert registry.lookup(cand_id) is not None


def test_failed_send_drops_connection():
    registry = ConnectionRegistry()
    manager = ChatWebSocketManager(registry)
    healthy, broken = FakeSocket(), FakeSocket(fail=True)
    healthy_id = connect(manager, healthy)
    broken_id = connect(manager, broken)
    registry.bind(healthy_id, 1, 10)
    registry.bind(broken_id, 2, 10)

    sent = run(manager.deliver([broadcast.to_room(10, OutboundEvent.NEW_MESSAGE, {"content": "hi"})]))

    assert sent == 1
    assert healthy.frames
    assert broken_id not in manager.sockets
    assert registry.lookup(broken_id) is None
    assert registry.room(10) == {healthy_id}


def test_send_to_unknown_connection():
    manager = ChatWebSocketManager(ConnectionRegistry())
    assert run(manager.send("ghost", {"event": "x", "data": {}})) is False


def test_disconnect_returns_binding_and_is_repeatable():
    registry = ConnectionRegistry()
    manager = ChatWebSocketManager(registry)
    cand_id = connect(manager, FakeSocket())
    registry.bind(cand_id, 1, 10)

    binding = manager.disconnect(cand_id)

    assert binding.conversation_id == 10
    assert manager.disconnect(cand_id) is None
    assert registry.connection_count() == 0


def test_room_lock_released_when_last_member_leaves():
    registry = ConnectionRegistry()
    manager = ChatWebSocketManager(registry)
    cand_id = connect(manager, FakeSocket())
    admin_id = connect(manager, FakeSocket())
    registry.bind(cand_id, 1, 10)
    registry.bind(admin_id, 2, 10)

    run(manager.deliver([broadcast.to_room(10, OutboundEvent.NEW_MESSAGE, {"content": "hi"})]))
    assert 10 in manager._room_locks

    manager.disconnect(cand_id)
    assert 10 in manager._room_locks

    manager.disconnect(admin_id)
    assert 10 not in manager._room_locks
