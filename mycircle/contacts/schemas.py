"""Contact request records and views.

``ContactRequestRecord`` is the immutable shape the repository hands to the
service. The views are what leave the API: ``PostSummary`` has no contact
fields at all, so a requester view built around it cannot leak them.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..posts.models import PostType
from ..users.schemas import UserSummary
from .models import RequestStatus


class ContactRequestCreate(BaseModel):
    message: str | None = Field(None, max_length=200)


class StatusUpdateRequest(BaseModel):
    status: str


# ── Records (repository output) ───────────────────────────────────────


class OwnerContact(BaseModel):
    """Contact fields of the post owner, used only by the fallback chain."""

    contact_whatsapp: str | None = None
    whatsapp_number: str | None = None
    contact_phone: str | None = None

    model_config = {"frozen": True}


class PostRecord(BaseModel):
    id: UUID
    title: str
    type: PostType
    images: tuple[str, ...] = ()
    contact_phone: str | None = None
    contact_whatsapp: str | None = None
    owner: OwnerContact

    model_config = {"frozen": True}


class ContactRequestRecord(BaseModel):
    id: UUID
    post: PostRecord
    requester: UserSummary
    recipient: UserSummary
    status: RequestStatus
    message: str | None = None
    created_at: datetime

    model_config = {"frozen": True}


# ── Views (API output) ────────────────────────────────────────────────


class PostSummary(BaseModel):
    id: UUID
    title: str
    type: PostType
    images: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class DisclosedPost(BaseModel):
    id: UUID
    title: str
    type: PostType
    images: list[str] = Field(default_factory=list)
    contact_whatsapp: str | None = None
    contact_phone: str | None = None

    model_config = {"frozen": True}


class RequesterView(BaseModel):
    id: UUID
    post: DisclosedPost | PostSummary
    recipient: UserSummary
    status: RequestStatus
    message: str | None = None
    created_at: datetime

    model_config = {"frozen": True}


class RecipientView(BaseModel):
    id: UUID
    post: DisclosedPost
    requester: UserSummary
    status: RequestStatus
    message: str | None = None
    created_at: datetime

    model_config = {"frozen": True}
