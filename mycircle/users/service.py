"""User service: profile projection with privacy flags, profile updates, blocks."""

import logging
from uuid import UUID

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from ..errors import InvalidOperation, NotFound
from ..moderation.service import ContentModerator, moderate_fields
from ..posts.models import Post, PostStatus
from .models import User, UserBlock
from .schemas import PrivacySettings, ProfileUpdateRequest, ProfileView, UserStats

logger = logging.getLogger(__name__)


def to_uuid(value: str | UUID | None) -> UUID | None:
    """Convert string to UUID, returning None on failure."""
    if isinstance(value, UUID):
        return value
    if not value:
        return None
    try:
        return UUID(value)
    except (ValueError, AttributeError):
        return None


def get_user(db: Session, user_id: str | UUID) -> User | None:
    uid = to_uuid(user_id)
    if uid is None:
        return None
    return db.query(User).filter(User.id == uid, User.is_active.is_(True)).first()


def get_user_stats(db: Session, user_id: UUID) -> UserStats:
    total, active = (
        db.query(
            func.count(Post.id),
            func.sum(case((Post.status == PostStatus.ACTIVE, 1), else_=0)),
        )
        .filter(Post.user_id == user_id)
        .one()
    )
    return UserStats(total_posts=total or 0, active_posts=active or 0)


def to_profile_view(user: User, viewer_id: UUID | None, stats: UserStats | None = None) -> ProfileView:
    """Project a user for ``viewer_id``.

    The owner sees every field plus their privacy settings. Anyone else only
    gets the fields their privacy flags allow; hidden fields are never set,
    so they are absent from ``model_dump(exclude_unset=True)``.
    """
    fields = {
        "id": user.id,
        "display_name": user.display_name,
        "avatar": user.avatar,
        "bio": user.bio,
        "role": str(user.role),
        "created_at": user.created_at,
    }
    is_owner = viewer_id is not None and viewer_id == user.id

    if is_owner or user.show_email:
        fields["email"] = user.email
    if is_owner or user.show_location:
        fields["location"] = user.location
    if is_owner or user.show_phone:
        fields["contact_phone"] = user.contact_phone
        fields["contact_whatsapp"] = user.contact_whatsapp
        fields["whatsapp_number"] = user.whatsapp_number
    if stats is not None and (is_owner or user.show_stats):
        fields["stats"] = stats
    if is_owner:
        fields["privacy"] = PrivacySettings(
            show_phone=user.show_phone,
            show_email=user.show_email,
            show_location=user.show_location,
            show_stats=user.show_stats,
        )
    return ProfileView(**fields)


def update_profile(db: Session, user: User, body: ProfileUpdateRequest, moderator: ContentModerator) -> User:
    moderate_fields(moderator, {"Display name": body.display_name, "Bio": body.bio})

    changes = body.model_dump(exclude_unset=True, exclude={"privacy"})
    for field, value in changes.items():
        if field == "display_name" and value is None:
            continue
        setattr(user, field, value)
    if body.privacy is not None:
        user.show_phone = body.privacy.show_phone
        user.show_email = body.privacy.show_email
        user.show_location = body.privacy.show_location
        user.show_stats = body.privacy.show_stats

    db.flush()
    logger.info("Profile updated: user=%s fields=%s", user.id, sorted(changes))
    return user


def is_blocked_between(db: Session, a: UUID, b: UUID) -> bool:
    """True when either user has blocked the other."""
    return (
        db.query(UserBlock)
        .filter(
            or_(
                and_(UserBlock.blocker_id == a, UserBlock.blocked_id == b),
                and_(UserBlock.blocker_id == b, UserBlock.blocked_id == a),
            )
        )
        .first()
        is not None
    )


def blocked_user_ids(db: Session, blocker_id: UUID) -> list[UUID]:
    return [row.blocked_id for row in db.query(UserBlock).filter(UserBlock.blocker_id == blocker_id).all()]


def block_user(db: Session, blocker_id: UUID, target_id: str) -> None:
    target = get_user(db, target_id)
    if not target:
        raise NotFound("User not found")
    if target.id == blocker_id:
        raise InvalidOperation("You cannot block yourself")
    existing = db.get(UserBlock, (blocker_id, target.id))
    if existing:
        return
    db.add(UserBlock(blocker_id=blocker_id, blocked_id=target.id))
    db.flush()
    logger.info("User %s blocked %s", blocker_id, target.id)


def unblock_user(db: Session, blocker_id: UUID, target_id: str) -> None:
    uid = to_uuid(target_id)
    block = db.get(UserBlock, (blocker_id, uid)) if uid else None
    if not block:
        raise NotFound("User is not blocked")
    db.delete(block)
    db.flush()
