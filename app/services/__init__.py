"""
Services layer for data access and external communications.

This layer handles:
- Relationship state transitions and queries
- User identity lookups
- Notification delivery
"""

from . import user_service
from . import notification_service
from . import friendship_service

__all__ = [
    "user_service",
    "notification_service",
    "friendship_service"
]
