"""API routes module."""
from .ai import router as ai_router
from .auth import router as auth_router
from .config import router as config_router
from .content import router as content_router
from .files import router as files_router
from .users import router as users_router

__all__ = [
    "ai_router", "auth_router", "config_router",
    "content_router", "files_router", "users_router",
]
