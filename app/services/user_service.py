"""
User identity store

친구 관계 서비스가 사용하는 사용자 조회/요약 함수들.
"""

from typing import Dict, Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.users import User, UserStatus
from app.schemas.user import UserSummary


async def find_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    """사용자 ID로 조회 (상태 무관)"""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def find_active_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    """활성 사용자(ACTIVE, 삭제되지 않음)만 조회"""
    result = await db.execute(
        select(User).where(
            User.id == user_id,
            User.status == UserStatus.ACTIVE,
            User.deleted_at.is_(None)
        )
    )
    return result.scalar_one_or_none()


async def summarize_many(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, UserSummary]:
    """여러 사용자의 공개 정보를 한 번의 쿼리로 요약"""
    ids = set(user_ids)
    if not ids:
        return {}

    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {
        user.id: UserSummary.model_validate(user)
        for user in result.scalars().all()
    }
