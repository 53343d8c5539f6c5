from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from app.domain.relationship import FriendshipStatus, RelationshipLabel
from .user import UserSummary


class FriendRequestCreate(BaseModel):
    """친구 요청 생성 스키마"""
    receiver_id: int = Field(..., description="친구 요청 대상 사용자 ID")


class FriendRequestRespond(BaseModel):
    """친구 요청 응답 스키마"""
    action: str = Field(..., description="accept 또는 reject")


class UserTarget(BaseModel):
    """차단/차단 해제 대상 스키마"""
    user_id: int = Field(..., description="대상 사용자 ID")


class FriendshipResponse(BaseModel):
    """친구 관계 응답 스키마"""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="친구 관계 ID")
    sender_id: int = Field(..., description="마지막 상태 전이를 일으킨 사용자 ID")
    receiver_id: int = Field(..., description="상대 사용자 ID")
    status: FriendshipStatus = Field(..., description="PENDING, ACCEPTED, REJECTED, BLOCKED")
    created_at: datetime = Field(..., description="생성일시")
    updated_at: datetime = Field(..., description="수정일시")


class FriendshipDetail(FriendshipResponse):
    """양쪽 사용자 정보가 포함된 친구 관계 스키마"""
    sender: Optional[UserSummary] = Field(None, description="요청한 사용자 정보")
    receiver: Optional[UserSummary] = Field(None, description="요청 받은 사용자 정보")


class PendingRequests(BaseModel):
    """대기 중인 친구 요청 목록 스키마"""
    received: List[FriendshipDetail] = Field(default_factory=list, description="받은 요청")
    sent: List[FriendshipDetail] = Field(default_factory=list, description="보낸 요청")


class RelationshipStatusResponse(BaseModel):
    """두 사용자 간 관계 상태 스키마"""
    status: RelationshipLabel = Field(..., description="조회자 관점의 관계 상태")
    friendship_id: Optional[int] = Field(None, description="관계 ID (none/self인 경우 null)")


class MessageResponse(BaseModel):
    """단순 메시지 응답 스키마"""
    message: str
