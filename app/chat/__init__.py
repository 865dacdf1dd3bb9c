"""Live chat between candidates and admins."""

from .models import ChatMessage, Conversation
from .registry import Binding, ConnectionRegistry
from .sessions import CloseResult, ConversationLifecycleManager, JoinResult
from .messages import MessageRelay
from .handlers import ChatEventHandlers, HandlerOutcome
from .users import SqlUserDirectory, UserDirectory, UserProfile
from .websocket import ChatWebSocketManager

__all__ = [
    "ChatMessage",
    "Conversation",
    "Binding",
    "ConnectionRegistry",
    "CloseResult",
    "ConversationLifecycleManager",
    "JoinResult",
    "MessageRelay",
    "ChatEventHandlers",
    "HandlerOutcome",
    "SqlUserDirectory",
    "UserDirectory",
    "UserProfile",
    "ChatWebSocketManager",
]
