"""User request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """Display-safe identity shown next to requests, messages and notifications."""

    id: UUID
    display_name: str
    avatar: str | None = None

    model_config = {"from_attributes": True, "frozen": True}


class UserStats(BaseModel):
    total_posts: int = 0
    active_posts: int = 0


class PrivacySettings(BaseModel):
    show_phone: bool = True
    show_email: bool = False
    show_location: bool = True
    show_stats: bool = True


class ProfileView(BaseModel):
    """Profile projection; fields hidden by privacy flags are left unset."""

    id: UUID
    display_name: str
    avatar: str | None = None
    bio: str | None = None
    role: str
    created_at: datetime | None = None
    email: str | None = None
    location: str | None = None
    contact_phone: str | None = None
    contact_whatsapp: str | None = None
    whatsapp_number: str | None = None
    stats: UserStats | None = None
    privacy: PrivacySettings | None = None


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = Field(None, min_length=1, max_length=120)
    bio: str | None = Field(None, max_length=1000)
    location: str | None = Field(None, max_length=255)
    avatar: str | None = Field(None, max_length=500)
    contact_phone: str | None = Field(None, max_length=50)
    contact_whatsapp: str | None = Field(None, max_length=50)
    whatsapp_number: str | None = Field(None, max_length=50)
    privacy: PrivacySettings | None = None
