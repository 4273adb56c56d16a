"""Post request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..users.schemas import UserSummary
from .models import PostStatus, PostType


class PostCreateRequest(BaseModel):
    type: PostType
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    price: float | None = Field(None, ge=0)
    location: str = Field(..., min_length=1, max_length=255)
    images: list[str] = Field(default_factory=list, max_length=5)
    contact_phone: str | None = Field(None, max_length=50)
    contact_whatsapp: str | None = Field(None, max_length=50)
    accepts_barter: bool = False
    barter_preferences: str | None = Field(None, max_length=500)


class PostResponse(BaseModel):
    """Public post shape. Contact fields are only set for the owner."""

    id: UUID
    type: PostType
    title: str
    description: str
    price: float | None = None
    location: str
    images: list[str] = Field(default_factory=list)
    status: PostStatus
    accepts_barter: bool = False
    barter_preferences: str | None = None
    created_at: datetime | None = None
    user: UserSummary
    contact_phone: str | None = None
    contact_whatsapp: str | None = None


class PostUpdateRequest(BaseModel):
    """Partial update; only the fields sent are changed."""

    type: PostType | None = None
    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=5000)
    price: float | None = Field(None, ge=0)
    location: str | None = Field(None, min_length=1, max_length=255)
    images: list[str] | None = Field(None, max_length=5)
    status: PostStatus | None = None
    contact_phone: str | None = Field(None, max_length=50)
    contact_whatsapp: str | None = Field(None, max_length=50)
    accepts_barter: bool | None = None
    barter_preferences: str | None = Field(None, max_length=500)
