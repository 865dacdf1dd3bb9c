from __future__ import annotations

from starlette.requests import HTTPConnection

from app.chat import ChatEventHandlers, ChatWebSocketManager, ConversationLifecycleManager


def get_chat_manager(connection: HTTPConnection) -> ChatWebSocketManager:
    return connection.app.state.chat_manager


def get_chat_handlers(connection: HTTPConnection) -> ChatEventHandlers:
    return connection.app.state.chat_handlers


def get_lifecycle(connection: HTTPConnection) -> ConversationLifecycleManager:
    return connection.app.state.chat_handlers.lifecycle
