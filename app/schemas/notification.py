from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from app.models.notifications import NotificationType


class NotificationResponse(BaseModel):
    """알림 응답 스키마"""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="알림 ID")
    user_id: int = Field(..., description="수신 사용자 ID")
    type: NotificationType = Field(..., description="FRIEND_REQUEST, FRIEND_ACCEPTED")
    is_read: bool = Field(..., description="읽음 여부")
    data: Optional[Dict[str, Any]] = Field(None, description="이벤트 페이로드")
    created_at: datetime = Field(..., description="생성일시")


class NotificationList(BaseModel):
    """페이지 단위 알림 목록 스키마"""
    notifications: List[NotificationResponse] = Field(default_factory=list)
    total: int = Field(..., description="필터 조건에 맞는 전체 알림 수")
    page: int = Field(..., description="현재 페이지")
    total_pages: int = Field(..., description="전체 페이지 수")
    unread_count: int = Field(..., description="읽지 않은 알림 수")


class UnreadCount(BaseModel):
    unread_count: int


class BulkResult(BaseModel):
    """일괄 처리 결과 스키마"""
    message: str
    count: int = Field(..., description="변경된 알림 수")
