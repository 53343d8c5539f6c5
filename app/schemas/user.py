from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class UserSummary(BaseModel):
    """친구 관련 응답에 포함되는 공개 사용자 정보"""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="사용자 ID")
    username: str = Field(..., description="사용자명")
    display_name: Optional[str] = Field(None, description="표시명")
    avatar: Optional[str] = Field(None, description="아바타 이미지 URL")
    level: int = Field(default=1, description="게이미피케이션 레벨")


class TokenData(BaseModel):
    """JWT 토큰에서 추출한 데이터"""
    user_id: Optional[int] = None
