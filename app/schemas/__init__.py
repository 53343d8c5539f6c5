# User schemas
from .user import UserSummary, TokenData

# Friendship schemas
from .friendship import (
    FriendRequestCreate,
    FriendRequestRespond,
    UserTarget,
    FriendshipResponse,
    FriendshipDetail,
    PendingRequests,
    RelationshipStatusResponse,
    MessageResponse
)

# Notification schemas
from .notification import (
    NotificationResponse,
    NotificationList,
    UnreadCount,
    BulkResult
)

__all__ = [
    "UserSummary",
    "TokenData",
    "FriendRequestCreate",
    "FriendRequestRespond",
    "UserTarget",
    "FriendshipResponse",
    "FriendshipDetail",
    "PendingRequests",
    "RelationshipStatusResponse",
    "MessageResponse",
    "NotificationResponse",
    "NotificationList",
    "UnreadCount",
    "BulkResult",
]
