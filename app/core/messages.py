"""User-facing error messages and notices for the chat relay."""

# Conversation lifecycle
CONVERSATION_NOT_FOUND = "Conversation not found"
CONVERSATION_ALREADY_ASSIGNED = "Conversation already assigned to another admin"
CONVERSATION_CLOSED = "Conversation has been closed"
CONVERSATION_CLOSED_NOTICE = "Conversation has been closed and cannot be reopened."
CONVERSATION_NOT_ASSIGNED_TO_ADMIN = "Conversation is not assigned to this admin"

# Users
USER_NOT_FOUND = "User not found"
CANDIDATE_NOT_FOUND = "Candidate not found"
ADMIN_NOT_FOUND = "Admin not found"

# Messages
MESSAGE_CONTENT_REQUIRED = "Message content is required"
MESSAGE_TOO_LONG = "Message content exceeds {limit} characters"
SENDER_NOT_PARTICIPANT = "User is not a participant in this conversation"

# Protocol
CONNECTION_NOT_BOUND = "Connection is not joined to a conversation"
INVALID_FRAME = "Invalid message frame"
UNKNOWN_EVENT = "Unknown event: {event}"
INVALID_PAYLOAD = "Invalid payload for {event}: {detail}"

# General
ERROR_INTERNAL_SERVER = "Internal server error"
