"""Shared FastAPI dependencies."""

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .auth.service import authenticate_token
from .database import get_db
from .moderation.service import ContentModerator
from .realtime.manager import ConnectionManager
from .users.models import User


def get_moderator(request: Request) -> ContentModerator:
    return request.app.state.moderator


def get_connections(request: Request) -> ConnectionManager:
    """Get the live-socket registry from app state."""
    return request.app.state.connections


def get_current_user(
    x_auth_token: str | None = Header(default=None, alias="x-auth-token"),
    db: Session = Depends(get_db),
) -> User:
    """Get the authenticated user from the ``x-auth-token`` header."""
    return authenticate_token(db, x_auth_token)
