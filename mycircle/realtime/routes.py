"""WebSocket endpoint: authenticated event stream per user.

Clients connect to ``/ws?token=<jwt>`` and exchange ``{"event", "data"}``
frames. Each event that touches the database opens its own short session
in the threadpool; nothing is held between events.
"""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from ..auth.service import authenticate_token
from ..chat.schemas import MessageView
from ..chat.service import (
    get_participant_conversation,
    mark_read,
    message_recipient_id,
    send_message,
    to_message_view,
)
from ..database import get_session_factory
from ..errors import MyCircleError, Unauthorized
from ..users.service import to_uuid
from . import notifier
from .events import CLIENT_EVENTS, Event, envelope
from .manager import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

# Application-defined close code for a rejected token
WS_UNAUTHORIZED = 4401


def _authenticate(session_factory: sessionmaker, token: str | None) -> UUID:
    with session_factory() as db:
        return authenticate_token(db, token).id


def _conversation_for(session_factory: sessionmaker, conversation_id, user_id: UUID) -> UUID:
    with session_factory() as db:
        return get_participant_conversation(db, conversation_id, user_id).id


def _send_and_commit(
    session_factory: sessionmaker, sender_id: UUID, recipient_id: str, text: str
) -> tuple[MessageView, UUID | None]:
    with session_factory() as db:
        message = send_message(db, sender_id, recipient_id, text)
        db.commit()
        return to_message_view(db, message), message_recipient_id(db, message)


def _read_and_commit(session_factory: sessionmaker, conversation_id, reader_id: UUID) -> UUID | None:
    with session_factory() as db:
        other_id = mark_read(db, conversation_id, reader_id)
        db.commit()
        return other_id


async def _dispatch(
    websocket: WebSocket,
    connections: ConnectionManager,
    session_factory: sessionmaker,
    user_id: UUID,
    event: str,
    data: dict,
) -> None:
    if event == Event.JOIN_CONVERSATION:
        conversation_id = await run_in_threadpool(
            _conversation_for, session_factory, data.get("conversation_id"), user_id
        )
        connections.join(str(user_id), str(conversation_id))
        await websocket.send_text(envelope(Event.CONVERSATION_JOINED, {"conversation_id": conversation_id}))

    elif event == Event.LEAVE_CONVERSATION:
        conversation_id = to_uuid(data.get("conversation_id"))
        if conversation_id:
            connections.leave(str(user_id), str(conversation_id))
            await websocket.send_text(envelope(Event.CONVERSATION_LEFT, {"conversation_id": conversation_id}))

    elif event == Event.SEND_MESSAGE:
        view, recipient_id = await run_in_threadpool(
            _send_and_commit, session_factory, user_id, str(data.get("recipient_id") or ""), data.get("text") or ""
        )
        await websocket.send_text(envelope(Event.MESSAGE_SENT, {"message": view.model_dump(mode="json")}))
        if recipient_id is not None:
            await notifier.message_delivered(connections, recipient_id, view)

    elif event == Event.READ_MESSAGES:
        conversation_id = data.get("conversation_id")
        other_id = await run_in_threadpool(_read_and_commit, session_factory, conversation_id, user_id)
        await notifier.messages_read(connections, to_uuid(conversation_id), user_id, other_id)


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str | None = None,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    connections: ConnectionManager = websocket.app.state.connections

    try:
        user_id = await run_in_threadpool(_authenticate, session_factory, token)
    except Unauthorized as exc:
        logger.info("WebSocket rejected: %s", exc.msg)
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    await connections.connect(websocket, str(user_id))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_text(envelope(Event.ERROR, {"msg": "Invalid frame"}))
                continue

            event = frame.get("event") if isinstance(frame, dict) else None
            data = frame.get("data") if isinstance(frame, dict) else None
            if not isinstance(event, str) or event not in CLIENT_EVENTS or not isinstance(data or {}, dict):
                await websocket.send_text(envelope(Event.ERROR, {"msg": "Unknown event"}))
                continue

            try:
                await _dispatch(websocket, connections, session_factory, user_id, event, data or {})
            except MyCircleError as exc:
                await websocket.send_text(envelope(Event.ERROR, {"event": event, "msg": exc.msg}))
    except WebSocketDisconnect:
        pass
    finally:
        connections.disconnect(websocket, str(user_id))
