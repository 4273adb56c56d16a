"""Event fan-out after a committed REST or WebSocket write.

Every function here is run as a FastAPI background task (or awaited by the
WebSocket handler) after the data is stored, so a failed push never undoes
or fails the write.
"""

import logging
from uuid import UUID

from ..chat.schemas import MessageView
from ..contacts.models import RequestStatus
from ..contacts.schemas import RecipientView, RequesterView
from ..notifications.schemas import NotificationView
from ..users.schemas import UserSummary
from .events import Event
from .manager import ConnectionManager

logger = logging.getLogger(__name__)


async def request_received(connections: ConnectionManager, view: RequesterView, requester: UserSummary) -> None:
    await connections.send_to_user(
        view.recipient.id,
        Event.REQUEST_RECEIVED,
        {"request_id": view.id, "post_id": view.post.id, "post_title": view.post.title, "requester": requester},
    )


async def request_decided(connections: ConnectionManager, view: RecipientView) -> None:
    """Tell the requester their request was approved or rejected."""
    event = Event.REQUEST_APPROVED if view.status == RequestStatus.APPROVED else Event.REQUEST_REJECTED
    await connections.send_to_user(
        view.requester.id,
        event,
        {"request_id": view.id, "post_id": view.post.id, "post_title": view.post.title, "status": view.status},
    )


async def notification_created(connections: ConnectionManager, recipient_id: UUID, view: NotificationView) -> None:
    await connections.send_to_user(recipient_id, Event.NEW_NOTIFICATION, view.model_dump(mode="json"))


async def message_delivered(connections: ConnectionManager, recipient_id: UUID, view: MessageView) -> None:
    """Push a new message. No unread badge update while the recipient has the conversation open."""
    payload = {"conversation_id": view.conversation_id, "message": view.model_dump(mode="json")}
    await connections.send_to_user(recipient_id, Event.RECEIVE_MESSAGE, payload)
    if not connections.in_room(view.conversation_id, recipient_id):
        await connections.send_to_user(recipient_id, Event.UNREAD_COUNT_UPDATE)


async def messages_read(
    connections: ConnectionManager, conversation_id: UUID, reader_id: UUID, other_id: UUID | None
) -> None:
    if other_id is not None:
        await connections.send_to_user(
            other_id, Event.MESSAGES_READ, {"conversation_id": conversation_id, "reader_id": reader_id}
        )
    await connections.send_to_user(reader_id, Event.UNREAD_COUNT_UPDATE)
