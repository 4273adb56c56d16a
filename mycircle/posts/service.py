"""Post service: creation and edits with moderation, feeds, status, deletion."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from ..errors import Forbidden, NotFound
from ..moderation.service import ContentModerator, moderate_fields
from ..users.models import User
from ..users.schemas import UserSummary
from ..users.service import blocked_user_ids, to_uuid
from .models import Post, PostStatus, PostType
from .schemas import PostCreateRequest, PostResponse, PostUpdateRequest

logger = logging.getLogger(__name__)


def create_post(db: Session, owner: User, body: PostCreateRequest, moderator: ContentModerator) -> Post:
    moderate_fields(moderator, {"Post title": body.title, "Post description": body.description})

    post = Post(user_id=owner.id, **body.model_dump())
    db.add(post)
    db.flush()
    logger.info("Post created: id=%s type=%s owner=%s", post.id, post.type, owner.id)
    return post


def get_post(db: Session, post_id: str | UUID) -> Post | None:
    uid = to_uuid(post_id)
    if uid is None:
        return None
    return db.query(Post).options(joinedload(Post.user)).filter(Post.id == uid).first()


def list_feed(
    db: Session,
    viewer_id: UUID | None,
    post_type: PostType | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Post]:
    """Active posts, newest first, without posts of users the viewer blocked."""
    query = db.query(Post).options(joinedload(Post.user)).filter(Post.status == PostStatus.ACTIVE)
    if post_type is not None:
        query = query.filter(Post.type == post_type)
    if viewer_id is not None:
        blocked = blocked_user_ids(db, viewer_id)
        if blocked:
            query = query.filter(Post.user_id.notin_(blocked))
    return query.order_by(Post.created_at.desc()).offset(offset).limit(limit).all()


def list_user_posts(db: Session, user_id: UUID) -> list[Post]:
    """Every post of ``user_id`` whatever its status, newest first."""
    return (
        db.query(Post)
        .options(joinedload(Post.user))
        .filter(Post.user_id == user_id)
        .order_by(Post.created_at.desc())
        .all()
    )


def _get_owned(db: Session, post_id: str | UUID, user_id: UUID) -> Post:
    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    if post.user_id != user_id:
        raise Forbidden("User not authorized")
    return post


# Columns that may be cleared by sending null
_CLEARABLE = {"price", "contact_phone", "contact_whatsapp", "barter_preferences"}


def update_post(
    db: Session, post_id: str | UUID, owner: User, body: PostUpdateRequest, moderator: ContentModerator
) -> Post:
    post = _get_owned(db, post_id, owner.id)
    changes = {
        name: value
        for name, value in body.model_dump(exclude_unset=True).items()
        if value is not None or name in _CLEARABLE
    }
    moderate_fields(moderator, {"Post title": changes.get("title"), "Post description": changes.get("description")})

    for name, value in changes.items():
        setattr(post, name, value)
    db.flush()
    logger.info("Post updated: id=%s fields=%s", post.id, sorted(changes))
    return post


def toggle_post_status(db: Session, post_id: str | UUID, owner: User) -> Post:
    """Hide an active post, or put any other post back on the feed."""
    post = _get_owned(db, post_id, owner.id)
    post.status = PostStatus.INACTIVE if post.status == PostStatus.ACTIVE else PostStatus.ACTIVE
    db.flush()
    logger.info("Post status toggled: id=%s status=%s", post.id, post.status)
    return post


def delete_post(db: Session, post_id: str, actor: User) -> None:
    post = get_post(db, post_id)
    # Non-owners get the same answer as for a missing post
    if not post or (post.user_id != actor.id and not actor.is_staff):
        raise NotFound("Post not found")
    db.delete(post)
    db.flush()
    logger.info("Post deleted: id=%s by=%s", post_id, actor.id)


def to_post_response(post: Post, viewer_id: UUID | None) -> dict:
    fields = {
        "id": post.id,
        "type": post.type,
        "title": post.title,
        "description": post.description,
        "price": post.price,
        "location": post.location,
        "images": list(post.images or []),
        "status": post.status,
        "accepts_barter": post.accepts_barter,
        "barter_preferences": post.barter_preferences,
        "created_at": post.created_at,
        "user": UserSummary.model_validate(post.user),
    }
    if viewer_id is not None and viewer_id == post.user_id:
        fields["contact_phone"] = post.contact_phone
        fields["contact_whatsapp"] = post.contact_whatsapp
    return PostResponse(**fields).model_dump(mode="json", exclude_unset=True)
