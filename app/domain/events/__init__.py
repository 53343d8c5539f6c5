"""
Domain Events

모든 Domain Event의 기본 클래스 및 이벤트 정의
"""

from .base import DomainEvent
from .friend_events import FriendRequestSent, FriendRequestAccepted

__all__ = [
    'DomainEvent',
    'FriendRequestSent',
    'FriendRequestAccepted',
]
