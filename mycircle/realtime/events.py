"""WebSocket event names and the frame envelope."""

import enum
import json

from fastapi.encoders import jsonable_encoder


class Event(enum.StrEnum):
    # server -> client
    REQUEST_RECEIVED = "request_received"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"
    RECEIVE_MESSAGE = "receive_message"
    MESSAGES_READ = "messages_read"
    UNREAD_COUNT_UPDATE = "unread_count_update"
    NEW_NOTIFICATION = "new_notification"
    MESSAGE_SENT = "message_sent"
    CONVERSATION_JOINED = "conversation_joined"
    CONVERSATION_LEFT = "conversation_left"
    ERROR = "error"

    # client -> server
    JOIN_CONVERSATION = "join_conversation"
    LEAVE_CONVERSATION = "leave_conversation"
    SEND_MESSAGE = "send_message"
    READ_MESSAGES = "read_messages"


CLIENT_EVENTS = frozenset(
    e.value for e in (Event.JOIN_CONVERSATION, Event.LEAVE_CONVERSATION, Event.SEND_MESSAGE, Event.READ_MESSAGES)
)


def envelope(event: Event | str, data: dict | None = None) -> str:
    """Serialize ``{"event": ..., "data": ...}`` as a JSON text frame."""
    return json.dumps({"event": str(event), "data": jsonable_encoder(data or {})})
