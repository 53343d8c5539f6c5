from typing import Tuple
from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, UniqueConstraint, CheckConstraint, Index
from app.database.postgres import Base
from app.domain.relationship import FriendshipStatus
from app.utils.time_utils import utcnow


class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # 방향과 무관한 정렬된 쌍 키 (한 쌍당 한 행)
    user_low_id = Column(Integer, nullable=False)
    user_high_id = Column(Integer, nullable=False)
    status = Column(
        Enum(FriendshipStatus, name="friendship_status"),
        nullable=False,
        default=FriendshipStatus.PENDING,
        index=True
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friendships_pair"),
        CheckConstraint("sender_id <> receiver_id", name="ck_friendships_not_self"),
        Index("ix_friendships_receiver_status", "receiver_id", "status"),
    )

    @staticmethod
    def pair_key(user_id_1: int, user_id_2: int) -> Tuple[int, int]:
        """두 사용자 ID를 정렬된 쌍 키로 변환"""
        return min(user_id_1, user_id_2), max(user_id_1, user_id_2)

    def assign_direction(self, sender_id: int, receiver_id: int):
        """sender/receiver 방향 지정 (쌍 키도 함께 갱신)"""
        self.sender_id = sender_id
        self.receiver_id = receiver_id
        self.user_low_id, self.user_high_id = self.pair_key(sender_id, receiver_id)

    def other_party(self, user_id: int) -> int:
        return self.receiver_id if self.sender_id == user_id else self.sender_id

    def __repr__(self):
        return f"<Friendship(id={self.id}, sender_id={self.sender_id}, receiver_id={self.receiver_id}, status={self.status})>"
