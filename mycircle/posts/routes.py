"""Post routes."""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_current_user, get_moderator
from ..errors import NotFound
from ..moderation.service import ContentModerator
from ..rate_limit import limiter
from ..users.models import User
from .models import PostType
from .schemas import PostCreateRequest, PostUpdateRequest
from .service import (
    create_post,
    delete_post,
    get_post,
    list_feed,
    list_user_posts,
    to_post_response,
    toggle_post_status,
    update_post,
)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("")
@limiter.limit(settings.rate_limit_posts)
def add_post(
    request: Request,
    body: PostCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    moderator: ContentModerator = Depends(get_moderator),
):
    post = create_post(db, user, body, moderator)
    db.commit()
    db.refresh(post)
    return JSONResponse(to_post_response(post, user.id), status_code=201)


@router.get("")
def feed(
    type: PostType | None = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    posts = list_feed(db, user.id, type, limit, offset)
    return JSONResponse([to_post_response(p, user.id) for p in posts])


@router.get("/my-posts")
def my_posts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return JSONResponse([to_post_response(p, user.id) for p in list_user_posts(db, user.id)])


@router.get("/{post_id}")
def post_detail(
    post_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    return JSONResponse(to_post_response(post, user.id))


@router.delete("/{post_id}")
def remove_post(
    post_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    delete_post(db, post_id, user)
    db.commit()
    return JSONResponse({"msg": "Post removed"})


@router.put("/{post_id}")
def edit_post(
    post_id: str,
    body: PostUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    moderator: ContentModerator = Depends(get_moderator),
):
    post = update_post(db, post_id, user, body, moderator)
    db.commit()
    db.refresh(post)
    return JSONResponse(to_post_response(post, user.id))


@router.patch("/{post_id}/toggle-status")
def toggle_status(
    post_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    post = toggle_post_status(db, post_id, user)
    db.commit()
    db.refresh(post)
    return JSONResponse(to_post_response(post, user.id))
