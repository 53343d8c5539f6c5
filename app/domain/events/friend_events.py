"""
Friend Context Domain Events
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.models.notifications import NotificationType
from .base import DomainEvent


@dataclass
class FriendRequestSent(DomainEvent):
    """친구 요청 전송 이벤트 (수신자에게 알림)"""
    friendship_id: int
    sender_id: int
    sender_name: str
    receiver_id: int
    timestamp: datetime

    notification_type = NotificationType.FRIEND_REQUEST

    @property
    def recipient_id(self) -> Optional[int]:
        return self.receiver_id


@dataclass
class FriendRequestAccepted(DomainEvent):
    """친구 요청 수락 이벤트 (원래 요청자에게 알림)"""
    friendship_id: int
    sender_id: int
    receiver_id: int
    receiver_name: str
    timestamp: datetime

    notification_type = NotificationType.FRIEND_ACCEPTED

    @property
    def recipient_id(self) -> Optional[int]:
        return self.sender_id
