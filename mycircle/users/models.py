"""User account and block models."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID

from ..database.base import Base


class UserRole(enum.StrEnum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    google_id = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(120), nullable=False)
    avatar = Column(String(500), nullable=True)
    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.USER,
        nullable=False,
    )
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)

    contact_phone = Column(String(50), nullable=True)
    contact_whatsapp = Column(String(50), nullable=True)
    # Legacy field from the first web client, still read by the contact fallback chain
    whatsapp_number = Column(String(50), nullable=True)

    # Privacy flags, applied to every profile projection seen by other users
    show_phone = Column(Boolean, default=True, nullable=False)
    show_email = Column(Boolean, default=False, nullable=False)
    show_location = Column(Boolean, default=True, nullable=False)
    show_stats = Column(Boolean, default=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.MODERATOR)


class UserBlock(Base):
    """``blocker`` no longer wants any contact from ``blocked``."""

    __tablename__ = "user_blocks"

    blocker_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    blocked_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
