"""Initial schema: users, blocks, posts, contact requests.

Revision ID: 001
Revises: None
Create Date: 2026-10-12
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = sa.Enum("user", "moderator", "admin", name="user_role")
post_type = sa.Enum("job", "service", "sell", "rent", "barter", name="post_type")
post_status = sa.Enum("active", "inactive", "sold", "completed", "archived", name="post_status")
request_status = sa.Enum("pending", "approved", "rejected", name="contact_request_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("google_id", sa.String(255), unique=True, nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("display_name", sa.String(120), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("contact_whatsapp", sa.String(50), nullable=True),
        sa.Column("whatsapp_number", sa.String(50), nullable=True),
        sa.Column("show_phone", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("show_email", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("show_location", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("show_stats", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "user_blocks",
        sa.Column("blocker_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("blocked_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_blocks_blocked_id", "user_blocks", ["blocked_id"])

    op.create_table(
        "posts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", post_type, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("images", sa.JSON(), server_default="[]"),
        sa.Column("status", post_status, nullable=False, server_default="active"),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("contact_whatsapp", sa.String(50), nullable=True),
        sa.Column("accepts_barter", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("barter_preferences", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_posts_user_id", "posts", ["user_id"])
    op.create_index("idx_posts_status_created", "posts", ["status", "created_at"])

    op.create_table(
        "contact_requests",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("post_id", UUID(as_uuid=True), sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "requester_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "recipient_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("status", request_status, nullable=False, server_default="pending"),
        sa.Column("message", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("post_id", "requester_id", name="uq_contact_requests_post_requester"),
    )
    op.create_index("ix_contact_requests_requester_id", "contact_requests", ["requester_id"])
    op.create_index("ix_contact_requests_recipient_id", "contact_requests", ["recipient_id"])


def downgrade() -> None:
    op.drop_table("contact_requests")
    op.drop_table("posts")
    op.drop_table("user_blocks")
    op.drop_table("users")
    for enum_type in (request_status, post_status, post_type, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
