"""Notification routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_current_user
from ..users.models import User
from .service import delete_notification, list_notifications, mark_all_read, mark_read, to_notification_view

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def get_notifications(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return JSONResponse([n.model_dump(mode="json") for n in list_notifications(db, user.id)])


@router.put("/read-all")
def read_all(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    count = mark_all_read(db, user.id)
    db.commit()
    return JSONResponse({"msg": "All notifications marked as read", "updated": count})


@router.put("/{notification_id}/read")
def read_one(
    notification_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    notification = mark_read(db, notification_id, user.id)
    db.commit()
    return JSONResponse(to_notification_view(db, notification).model_dump(mode="json"))


@router.delete("/{notification_id}")
def remove_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    delete_notification(db, notification_id, user.id)
    db.commit()
    return JSONResponse({"msg": "Notification removed"})
