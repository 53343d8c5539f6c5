from .users import User, UserStatus
from .friendships import Friendship
from .notifications import Notification, NotificationType

__all__ = [
    "User",
    "UserStatus",
    "Friendship",
    "Notification",
    "NotificationType",
]
