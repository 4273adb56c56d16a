"""Chat request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..users.schemas import UserSummary
from .models import MessageStatus


class SendMessageRequest(BaseModel):
    recipient_id: UUID
    text: str = Field(..., min_length=1, max_length=5000)


class MessageView(BaseModel):
    id: UUID
    conversation_id: UUID
    sender: UserSummary
    text: str
    status: MessageStatus
    read_by: list[UUID] = Field(default_factory=list)
    created_at: datetime | None = None

    model_config = {"frozen": True}


class ParticipantView(BaseModel):
    id: UUID
    display_name: str
    avatar: str | None = None
    is_online: bool = False


class ConversationView(BaseModel):
    id: UUID
    participants: list[ParticipantView]
    last_message: MessageView | None = None
    unread_count: int = 0
    updated_at: datetime | None = None
