"""Conversation states and the assignment variant."""

import enum
from dataclasses import dataclass
from typing import Union


class ConversationStatus(str, enum.Enum):
    UNASSIGNED = "UNASSIGNED"
    ASSIGNED = "ASSIGNED"
    CLOSED = "CLOSED"


class MessageType(str, enum.Enum):
    TEXT = "text"
    SYSTEM = "system"


@dataclass(frozen=True)
class Unassigned:
    """No admin has claimed the conversation yet."""


@dataclass(frozen=True)
class Assigned:
    admin_id: int


Assignment = Union[Unassigned, Assigned]
