"""Authentication routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_current_user
from ..users.models import User
from ..users.service import get_user_stats, to_profile_view

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
def me(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    view = to_profile_view(user, user.id, get_user_stats(db, user.id))
    return JSONResponse(view.model_dump(mode="json"))
