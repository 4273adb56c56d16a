"""User profile and block routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_current_user, get_moderator
from ..errors import NotFound
from ..moderation.service import ContentModerator
from .models import User
from .schemas import ProfileUpdateRequest
from .service import block_user, get_user, get_user_stats, to_profile_view, unblock_user, update_profile

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/me")
def get_me(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    view = to_profile_view(user, user.id, get_user_stats(db, user.id))
    return JSONResponse(view.model_dump(mode="json"))


@router.put("/me")
def update_me(
    body: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    moderator: ContentModerator = Depends(get_moderator),
):
    update_profile(db, user, body, moderator)
    db.commit()
    view = to_profile_view(user, user.id, get_user_stats(db, user.id))
    return JSONResponse(view.model_dump(mode="json"))


@router.get("/{user_id}")
def get_profile(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    target = get_user(db, user_id)
    if not target:
        raise NotFound("User not found")
    view = to_profile_view(target, user.id, get_user_stats(db, target.id))
    return JSONResponse(view.model_dump(mode="json", exclude_unset=True))


@router.post("/{user_id}/block")
def block(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    block_user(db, user.id, user_id)
    db.commit()
    return JSONResponse({"msg": "User blocked"})


@router.delete("/{user_id}/block")
def unblock(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    unblock_user(db, user.id, user_id)
    db.commit()
    return JSONResponse({"msg": "User unblocked"})
