from .base import Base, TimestampedModel  # noqa: F401
from .user import User, UserRole  # noqa: F401

# Chat tables (Conversation, ChatMessage) are declared in app.chat.models and
# register themselves on Base.metadata when that module is imported.
