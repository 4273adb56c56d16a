"""Authentication service: JWT issue and verification.

The Google OAuth exchange happens upstream; once the user is known the
backend issues its own token, sent back by clients in ``x-auth-token``.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import Unauthorized
from ..users.models import User


def create_access_token(user_id: UUID, expires_minutes: int | None = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    payload = {
        "user": {"id": str(user_id)},
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """Return the user id carried by ``token`` or raise Unauthorized."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.PyJWTError:
        raise Unauthorized("Token is not valid")
    try:
        return UUID(payload["user"]["id"])
    except (KeyError, TypeError, ValueError):
        raise Unauthorized("Token is not valid")


def authenticate_token(db: Session, token: str | None) -> User:
    """Resolve a raw token to an active user."""
    if not token:
        raise Unauthorized("No token, authorization denied")
    user_id = decode_access_token(token)
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise Unauthorized("Token is not valid")
    return user
