"""Errors raised by the chat core.

Every error here is recoverable: the event layer reports it through the
acknowledgement and the REST layer maps ``http_status``.
"""

from fastapi import status


class ChatError(Exception):
    code = "chat_error"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(ChatError):
    code = "invalid_input"
    http_status = status.HTTP_400_BAD_REQUEST


class NotFound(ChatError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class ConversationClosed(ChatError):
    code = "conversation_closed"
    http_status = status.HTTP_409_CONFLICT


class ClaimConflict(ChatError):
    code = "claim_conflict"
    http_status = status.HTTP_409_CONFLICT


class Unbound(ChatError):
    code = "unbound"
    http_status = status.HTTP_400_BAD_REQUEST


class NotParticipant(ChatError):
    code = "not_participant"
    http_status = status.HTTP_403_FORBIDDEN
