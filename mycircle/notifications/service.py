"""In-app notifications: persisted feed of things that happened to a user."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from ..config import settings
from ..errors import NotFound
from ..users.models import User
from ..users.schemas import UserSummary
from ..users.service import to_uuid
from .models import Notification, NotificationType
from .schemas import NotificationView

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    recipient_id: UUID,
    sender_id: UUID | None,
    type: NotificationType,
    title: str,
    message: str,
    link: str | None = None,
    related_id: UUID | None = None,
) -> Notification | None:
    """Persist a notification. Users are never notified about their own actions."""
    if sender_id is not None and sender_id == recipient_id:
        return None
    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=type,
        title=title,
        message=message,
        link=link,
        related_id=related_id,
    )
    db.add(notification)
    db.flush()
    logger.debug("Notification created: id=%s type=%s recipient=%s", notification.id, type, recipient_id)
    return notification


def to_notification_view(db: Session, notification: Notification) -> NotificationView:
    sender = db.get(User, notification.sender_id) if notification.sender_id else None
    return NotificationView(
        id=notification.id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        link=notification.link,
        related_id=notification.related_id,
        read=notification.read,
        sender=UserSummary.model_validate(sender) if sender else None,
        created_at=notification.created_at,
    )


def list_notifications(db: Session, user_id: UUID) -> list[NotificationView]:
    rows = (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(settings.notification_list_limit)
        .all()
    )
    return [to_notification_view(db, n) for n in rows]


def _get_owned(db: Session, notification_id: str | UUID, user_id: UUID) -> Notification:
    uid = to_uuid(notification_id)
    notification = (
        db.query(Notification)
        .filter(Notification.id == uid, Notification.recipient_id == user_id)
        .first()
        if uid
        else None
    )
    if not notification:
        raise NotFound("Notification not found")
    return notification


def mark_read(db: Session, notification_id: str | UUID, user_id: UUID) -> Notification:
    notification = _get_owned(db, notification_id, user_id)
    notification.read = True
    db.flush()
    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark every unread notification of ``user_id`` as read. Returns the count."""
    count = (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.flush()
    return count


def delete_notification(db: Session, notification_id: str | UUID, user_id: UUID) -> None:
    notification = _get_owned(db, notification_id, user_id)
    db.delete(notification)
    db.flush()
