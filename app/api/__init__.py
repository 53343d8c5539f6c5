from .auth import get_current_user
from .friend import router as friend_router
from .health import router as health_router
from .notification import router as notification_router

__all__ = [
    "get_current_user",
    "friend_router",
    "health_router",
    "notification_router",
]
