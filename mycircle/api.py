"""API router: all JSON endpoints under the /api prefix."""

from fastapi import APIRouter

from .auth.routes import router as auth_router
from .chat.routes import router as chat_router
from .contacts.routes import router as contacts_router
from .notifications.routes import router as notifications_router
from .posts.routes import router as posts_router
from .users.routes import router as users_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(posts_router)
api_router.include_router(contacts_router)
api_router.include_router(notifications_router)
api_router.include_router(chat_router)
