"""Marketplace post model."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from ..database.base import Base


class PostType(enum.StrEnum):
    JOB = "job"
    SERVICE = "service"
    SELL = "sell"
    RENT = "rent"
    BARTER = "barter"


class PostStatus(enum.StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Post(Base):
    __tablename__ = "posts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(
        SQLEnum(PostType, name="post_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=True)
    location = Column(String(255), nullable=False)
    images = Column(JSON, default=list)
    status = Column(
        SQLEnum(PostStatus, name="post_status", values_callable=lambda e: [m.value for m in e]),
        default=PostStatus.ACTIVE,
        nullable=False,
    )

    # Only the owner sees these on post endpoints; others need an approved contact request
    contact_phone = Column(String(50), nullable=True)
    contact_whatsapp = Column(String(50), nullable=True)

    accepts_barter = Column(Boolean, default=False, nullable=False)
    barter_preferences = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )

    user = relationship("User")

    __table_args__ = (
        Index("idx_posts_status_created", "status", "created_at"),
    )
