"""Contact request routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_connections, get_current_user
from ..notifications.service import to_notification_view
from ..rate_limit import limiter
from ..realtime import notifier
from ..realtime.manager import ConnectionManager
from ..users.models import User
from ..users.schemas import UserSummary
from .schemas import ContactRequestCreate, StatusUpdateRequest
from .service import (
    create_request,
    list_received,
    list_sent,
    record_decision_notification,
    record_request_notification,
    update_status,
)

router = APIRouter(prefix="/contact", tags=["contact"])


@router.get("/received")
def received_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return JSONResponse([v.model_dump(mode="json") for v in list_received(db, user.id)])


@router.get("/sent")
def sent_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return JSONResponse([v.model_dump(mode="json") for v in list_sent(db, user.id)])


@router.post("/{post_id}")
@limiter.limit(settings.rate_limit_contact)
def request_contact(
    request: Request,
    post_id: str,
    background_tasks: BackgroundTasks,
    body: ContactRequestCreate | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    connections: ConnectionManager = Depends(get_connections),
):
    view = create_request(db, post_id, user.id, body.message if body else None)
    notification = record_request_notification(db, view, user)
    db.commit()

    background_tasks.add_task(notifier.request_received, connections, view, UserSummary.model_validate(user))
    if notification is not None:
        background_tasks.add_task(
            notifier.notification_created, connections, view.recipient.id, to_notification_view(db, notification)
        )
    return JSONResponse(view.model_dump(mode="json"))


@router.api_route("/{request_id}/status", methods=["PUT", "PATCH"])
def change_status(
    request_id: str,
    body: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    connections: ConnectionManager = Depends(get_connections),
):
    view = update_status(db, request_id, user.id, body.status)
    notification = record_decision_notification(db, view, user)
    db.commit()

    background_tasks.add_task(notifier.request_decided, connections, view)
    if notification is not None:
        background_tasks.add_task(
            notifier.notification_created, connections, view.requester.id, to_notification_view(db, notification)
        )
    return JSONResponse(view.model_dump(mode="json"))
