"""Notification response schema."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from ..users.schemas import UserSummary
from .models import NotificationType


class NotificationView(BaseModel):
    id: UUID
    type: NotificationType
    title: str
    message: str
    link: str | None = None
    related_id: UUID | None = None
    read: bool = False
    sender: UserSummary | None = None
    created_at: datetime | None = None

    model_config = {"frozen": True}
