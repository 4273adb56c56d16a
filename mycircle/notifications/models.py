"""In-app notification model."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID

from ..database.base import Base


class NotificationType(enum.StrEnum):
    REQUEST = "request"
    APPROVAL = "approval"
    INFO = "info"
    MESSAGE = "message"
    LIKE = "like"
    COMMENT = "comment"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    type = Column(
        SQLEnum(NotificationType, name="notification_type", values_callable=lambda e: [m.value for m in e]),
        default=NotificationType.SYSTEM,
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)  # client route, e.g. /requests
    related_id = Column(UUID(as_uuid=True), nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (Index("idx_notifications_recipient_created", "recipient_id", "created_at"),)
