"""Shared test fixtures."""

import uuid
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mycircle.auth.service import create_access_token
from mycircle.chat.models import Conversation, ConversationParticipant, Message, MessageRead
from mycircle.contacts.models import ContactRequest, RequestStatus
from mycircle.database.base import Base
from mycircle.integrations.cache import NullCacheService
from mycircle.moderation.service import NullModerator
from mycircle.notifications.models import Notification
from mycircle.posts.models import Post, PostType
from mycircle.users.models import User, UserBlock

# Models must be imported so Base.metadata.create_all() sees all tables.
_ALL_MODELS = [
    User, UserBlock, Post, ContactRequest, Notification,
    Conversation, ConversationParticipant, Message, MessageRead,
]


@pytest.fixture
def session_factory():
    """Sessions on an in-memory SQLite database shared by the test and the app under test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Factory for users; keyword arguments override the defaults."""

    def _make(name="User", **fields):
        uid = uuid.uuid4()
        user = User(
            id=uid,
            google_id=f"google-{uid.hex}",
            email=f"{uid.hex[:8]}@example.com",
            display_name=name,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("Asha", contact_whatsapp="+919800000001", contact_phone="+919800000002")


@pytest.fixture
def requester(make_user):
    return make_user("Bilal")


@pytest.fixture
def stranger(make_user):
    return make_user("Chen")


@pytest.fixture
def make_post(db_session):
    def _make(user, title="Bicycle for sale", **fields):
        fields.setdefault("type", PostType.SELL)
        fields.setdefault("description", "Barely used, new tyres")
        fields.setdefault("location", "Koramangala")
        post = Post(id=uuid.uuid4(), user_id=user.id, title=title, **fields)
        db_session.add(post)
        db_session.commit()
        return post

    return _make


@pytest.fixture
def post(make_post, owner):
    return make_post(owner, contact_whatsapp="+919811111111")


@pytest.fixture
def approved_request(db_session, post, owner, requester):
    """An approved request, so ``owner`` and ``requester`` are connected."""
    request = ContactRequest(
        post_id=post.id,
        requester_id=requester.id,
        recipient_id=owner.id,
        status=RequestStatus.APPROVED,
    )
    db_session.add(request)
    db_session.commit()
    return request


@pytest.fixture
def null_cache():
    """No-op cache for testing."""
    return NullCacheService()


@pytest.fixture
def app_factory():
    """Build the app with a patched lifespan and the given database wiring."""
    from mycircle.database import get_db, get_session_factory
    from mycircle.main import create_app
    from mycircle.rate_limit import limiter
    from mycircle.realtime.manager import ConnectionManager

    @asynccontextmanager
    async def _test_lifespan(app):
        app.state.cache = NullCacheService()
        app.state.moderator = NullModerator()
        app.state.connections = ConnectionManager()
        yield

    def _build(factory, db_dependency):
        limiter.reset()
        with patch("mycircle.main.lifespan", _test_lifespan):
            application = create_app()
        application.dependency_overrides[get_db] = db_dependency
        application.dependency_overrides[get_session_factory] = lambda: factory
        return application

    return _build


@pytest.fixture
def app(app_factory, session_factory, db_session):
    """App whose REST handlers share the test session."""

    def _test_db():
        yield db_session

    return app_factory(session_factory, _test_db)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Build the ``x-auth-token`` header for a user."""

    def _headers(user) -> dict:
        return {"x-auth-token": create_access_token(user.id)}

    return _headers
