"""Database helpers."""

from .base import Base, SessionLocal, engine, get_db, get_session_factory
from .errors import is_unique_violation

__all__ = ["Base", "SessionLocal", "engine", "get_db", "get_session_factory", "is_unique_violation"]
