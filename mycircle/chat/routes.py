"""Chat routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_connections, get_current_user
from ..rate_limit import limiter
from ..realtime import notifier
from ..realtime.manager import ConnectionManager
from ..users.models import User
from .schemas import SendMessageRequest
from .service import (
    delete_conversation,
    get_messages,
    init_conversation,
    list_conversations,
    mark_read,
    message_recipient_id,
    send_message,
    to_conversation_view,
    to_message_view,
    total_unread_count,
)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/conversations")
def conversations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    connections: ConnectionManager = Depends(get_connections),
):
    views = list_conversations(db, user.id, connections.is_online)
    return JSONResponse([v.model_dump(mode="json") for v in views])


@router.get("/messages/{conversation_id}")
def messages(
    conversation_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = get_messages(db, conversation_id, user.id)
    return JSONResponse([to_message_view(db, m).model_dump(mode="json") for m in rows])


@router.get("/unread/count")
def unread_count(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return JSONResponse({"count": total_unread_count(db, user.id)})


@router.post("/message")
@limiter.limit(settings.rate_limit_messages)
def post_message(
    request: Request,
    body: SendMessageRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    connections: ConnectionManager = Depends(get_connections),
):
    message = send_message(db, user.id, body.recipient_id, body.text)
    db.commit()
    view = to_message_view(db, message)
    background_tasks.add_task(notifier.message_delivered, connections, message_recipient_id(db, message), view)
    return JSONResponse(view.model_dump(mode="json"))


@router.post("/init/{user_id}")
def init_chat(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    connections: ConnectionManager = Depends(get_connections),
):
    conversation = init_conversation(db, user.id, user_id)
    db.commit()
    view = to_conversation_view(db, conversation, user.id, connections.is_online)
    return JSONResponse(view.model_dump(mode="json"))


@router.put("/read/{conversation_id}")
def read_conversation(
    conversation_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    connections: ConnectionManager = Depends(get_connections),
):
    other_id = mark_read(db, conversation_id, user.id)
    db.commit()
    background_tasks.add_task(notifier.messages_read, connections, conversation_id, user.id, other_id)
    return JSONResponse({"msg": "Messages marked as read"})


@router.delete("/conversation/{conversation_id}")
def remove_conversation(
    conversation_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    delete_conversation(db, conversation_id, user.id)
    db.commit()
    return JSONResponse({"msg": "Conversation deleted"})
