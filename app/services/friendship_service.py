import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import (
    BadRequestException,
    ConflictException,
    InternalServerException,
    user_not_found_error,
)
from app.core.logging import log_relationship_event
from app.domain.events import FriendRequestAccepted, FriendRequestSent
from app.domain.relationship import (
    FriendshipAction,
    FriendshipStatus,
    Role,
    Transition,
    respond_transition,
    status_label,
    transition,
)
from app.models.friendships import Friendship
from app.models.users import User
from app.schemas.friendship import (
    FriendshipDetail,
    FriendshipResponse,
    PendingRequests,
    RelationshipStatusResponse,
)
from app.schemas.user import UserSummary
from app.services import user_service
from app.services.notification_service import NotificationDispatcher
from app.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class FriendshipService:
    """
    친구 관계 관리 서비스

    두 사용자 쌍마다 최대 한 개의 관계 행을 유지하며, 상태 전이 규칙은
    app.domain.relationship.transition 에 위임합니다.
    """

    def __init__(self, db: AsyncSession, dispatcher: Optional[NotificationDispatcher] = None):
        self.db = db
        self.dispatcher = dispatcher

    # =========================================================================
    # 조회 헬퍼
    # =========================================================================

    async def find_friendship(
        self,
        user_id_1: int,
        user_id_2: int,
        for_update: bool = False
    ) -> Optional[Friendship]:
        """
        두 사용자 간의 관계를 찾습니다 (방향 무관).

        Args:
            user_id_1: 첫 번째 사용자 ID
            user_id_2: 두 번째 사용자 ID
            for_update: 쓰기 작업 전 조회인 경우 행 잠금

        Returns:
            Optional[Friendship]: 관계 또는 None
        """
        low, high = Friendship.pair_key(user_id_1, user_id_2)
        query = select(Friendship).where(
            and_(Friendship.user_low_id == low, Friendship.user_high_id == high)
        )
        if for_update:
            query = query.with_for_update()

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_friendship_by_id(
        self,
        friendship_id: int,
        for_update: bool = False
    ) -> Optional[Friendship]:
        """관계를 ID로 조회합니다."""
        query = select(Friendship).where(Friendship.id == friendship_id)
        if for_update:
            query = query.with_for_update()

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    # =========================================================================
    # 상태 전이
    # =========================================================================

    async def send_request(self, sender_id: int, receiver_id: int) -> FriendshipDetail:
        """
        친구 요청을 전송합니다.

        관계가 없으면 새 행을 만들고, 거절된 관계가 있으면 같은 행을 요청자 방향으로
        되살려 다시 PENDING 상태로 만듭니다.

        Args:
            sender_id: 요청자 ID
            receiver_id: 대상자 ID

        Returns:
            FriendshipDetail: 양쪽 사용자 정보가 포함된 관계
        """
        if sender_id == receiver_id:
            raise BadRequestException("Cannot friend yourself")

        receiver = await user_service.find_active_user_by_id(self.db, receiver_id)
        if receiver is None:
            raise user_not_found_error(receiver_id)

        existing = await self.find_friendship(sender_id, receiver_id, for_update=True)
        current = existing.status if existing else None
        next_state = transition(current, FriendshipAction.REQUEST)

        friendship = self._apply(existing, next_state, sender_id, receiver_id)
        await self._commit()
        await self.db.refresh(friendship)

        log_relationship_event(
            logger, "request", sender_id,
            target_id=receiver_id,
            friendship_id=friendship.id,
            status=friendship.status.value,
            resurrected=existing is not None
        )

        detail = await self._detail(friendship)
        self._emit(FriendRequestSent(
            friendship_id=friendship.id,
            sender_id=sender_id,
            sender_name=self._display_name(detail.sender),
            receiver_id=receiver_id,
            timestamp=utcnow()
        ))
        return detail

    async def respond(self, receiver_id: int, friendship_id: int, action: str) -> FriendshipDetail:
        """
        친구 요청을 수락하거나 거절합니다.

        Args:
            receiver_id: 응답하는 사용자 ID (요청을 받은 사람이어야 함)
            friendship_id: 친구 요청 ID
            action: "accept" 또는 "reject"

        Returns:
            FriendshipDetail: 업데이트된 관계
        """
        friendship = await self.get_friendship_by_id(friendship_id, for_update=True)
        current, role = self._state_of(friendship, receiver_id)
        friendship_action, next_state = respond_transition(current, role, action)

        self._apply(friendship, next_state, receiver_id, friendship.other_party(receiver_id))
        await self._commit()
        await self.db.refresh(friendship)

        log_relationship_event(
            logger, friendship_action.value, receiver_id,
            target_id=friendship.sender_id,
            friendship_id=friendship.id,
            status=friendship.status.value
        )

        detail = await self._detail(friendship)
        if friendship_action == FriendshipAction.ACCEPT:
            self._emit(FriendRequestAccepted(
                friendship_id=friendship.id,
                sender_id=friendship.sender_id,
                receiver_id=receiver_id,
                receiver_name=self._display_name(detail.receiver),
                timestamp=utcnow()
            ))
        return detail

    async def cancel(self, sender_id: int, friendship_id: int) -> None:
        """자신이 보낸 대기 중인 친구 요청을 취소합니다 (행 삭제)."""
        friendship = await self.get_friendship_by_id(friendship_id, for_update=True)
        current, role = self._state_of(friendship, sender_id)
        transition(current, FriendshipAction.CANCEL, role)

        receiver_id = friendship.receiver_id
        await self.db.delete(friendship)
        await self._commit()

        log_relationship_event(
            logger, "cancel", sender_id,
            target_id=receiver_id,
            friendship_id=friendship_id
        )

    async def remove(self, user_id: int, other_user_id: int) -> None:
        """친구 관계를 삭제합니다. 양쪽 누구나 호출할 수 있습니다."""
        friendship = await self.find_friendship(user_id, other_user_id, for_update=True)
        current, role = self._state_of(friendship, user_id)
        transition(current, FriendshipAction.REMOVE, role)

        friendship_id = friendship.id
        await self.db.delete(friendship)
        await self._commit()

        log_relationship_event(
            logger, "remove", user_id,
            target_id=other_user_id,
            friendship_id=friendship_id
        )

    async def block(self, blocker_id: int, target_id: int) -> FriendshipDetail:
        """
        사용자를 차단합니다.

        기존 관계(대기 중인 요청, 친구 관계 등)가 있으면 무조건 차단 상태로 덮어쓰고
        차단한 사용자를 sender로 다시 지정합니다. 차단은 알림을 보내지 않습니다.
        """
        if blocker_id == target_id:
            raise BadRequestException("Cannot block yourself")

        target = await user_service.find_user_by_id(self.db, target_id)
        if target is None:
            raise user_not_found_error(target_id)

        existing = await self.find_friendship(blocker_id, target_id, for_update=True)
        current, role = self._state_of(existing, blocker_id)
        next_state = transition(current, FriendshipAction.BLOCK, role)

        friendship = self._apply(existing, next_state, blocker_id, target_id)
        await self._commit()
        await self.db.refresh(friendship)

        log_relationship_event(
            logger, "block", blocker_id,
            target_id=target_id,
            friendship_id=friendship.id,
            status=friendship.status.value,
            previous_status=current.value if current else None
        )
        return await self._detail(friendship)

    async def unblock(self, blocker_id: int, target_id: int) -> None:
        """차단을 해제합니다. 차단한 사용자만 해제할 수 있습니다 (행 삭제)."""
        friendship = await self.find_friendship(blocker_id, target_id, for_update=True)
        current, role = self._state_of(friendship, blocker_id)
        transition(current, FriendshipAction.UNBLOCK, role)

        friendship_id = friendship.id
        await self.db.delete(friendship)
        await self._commit()

        log_relationship_event(
            logger, "unblock", blocker_id,
            target_id=target_id,
            friendship_id=friendship_id
        )

    # =========================================================================
    # 조회
    # =========================================================================

    async def list_friends(self, user_id: int) -> List[UserSummary]:
        """
        사용자의 친구 목록을 조회합니다.

        저장된 방향과 무관하게 각 관계에서 상대방을 선택합니다.
        """
        query = select(User).join(
            Friendship,
            or_(
                and_(Friendship.sender_id == user_id, User.id == Friendship.receiver_id),
                and_(Friendship.receiver_id == user_id, User.id == Friendship.sender_id)
            )
        ).where(
            Friendship.status == FriendshipStatus.ACCEPTED
        ).order_by(Friendship.id)

        result = await self.db.execute(query)
        return [UserSummary.model_validate(user) for user in result.scalars().all()]

    async def list_pending(self, user_id: int) -> PendingRequests:
        """
        대기 중인 친구 요청을 조회합니다.

        Returns:
            PendingRequests: 받은 요청(received)과 보낸 요청(sent), 각각 최신순
        """
        received_query = select(Friendship).where(
            and_(
                Friendship.receiver_id == user_id,
                Friendship.status == FriendshipStatus.PENDING
            )
        ).order_by(Friendship.created_at.desc(), Friendship.id.desc())

        sent_query = select(Friendship).where(
            and_(
                Friendship.sender_id == user_id,
                Friendship.status == FriendshipStatus.PENDING
            )
        ).order_by(Friendship.created_at.desc(), Friendship.id.desc())

        received = (await self.db.execute(received_query)).scalars().all()
        sent = (await self.db.execute(sent_query)).scalars().all()

        user_ids = {f.sender_id for f in received} | {f.receiver_id for f in sent} | {user_id}
        summaries = await user_service.summarize_many(self.db, user_ids)

        return PendingRequests(
            received=[self._detail_from(f, summaries) for f in received],
            sent=[self._detail_from(f, summaries) for f in sent]
        )

    async def get_status(self, viewer_id: int, other_id: int) -> RelationshipStatusResponse:
        """조회자 관점에서 두 사용자 간 관계 상태를 반환합니다."""
        if viewer_id == other_id:
            return RelationshipStatusResponse(status=status_label(viewer_id, other_id))

        friendship = await self.find_friendship(viewer_id, other_id)
        if friendship is None:
            return RelationshipStatusResponse(status=status_label(viewer_id, other_id))

        return RelationshipStatusResponse(
            status=status_label(viewer_id, other_id, friendship.status, friendship.sender_id),
            friendship_id=friendship.id
        )

    async def list_blocked(self, blocker_id: int) -> List[UserSummary]:
        """자신이 차단한 사용자 목록을 조회합니다."""
        query = select(User).join(
            Friendship, User.id == Friendship.receiver_id
        ).where(
            and_(
                Friendship.sender_id == blocker_id,
                Friendship.status == FriendshipStatus.BLOCKED
            )
        ).order_by(Friendship.id)

        result = await self.db.execute(query)
        return [UserSummary.model_validate(user) for user in result.scalars().all()]

    async def are_friends(self, user_id_1: int, user_id_2: int) -> bool:
        """두 사용자가 친구인지 확인합니다."""
        friendship = await self.find_friendship(user_id_1, user_id_2)
        return friendship is not None and friendship.status == FriendshipStatus.ACCEPTED

    # =========================================================================
    # 내부 헬퍼
    # =========================================================================

    @staticmethod
    def _state_of(friendship: Optional[Friendship], caller_id: int):
        """(현재 상태, 호출자 역할) 반환. 관계가 없으면 (None, OUTSIDER)."""
        if friendship is None:
            return None, Role.OUTSIDER
        return friendship.status, Role.of(caller_id, friendship.sender_id, friendship.receiver_id)

    def _apply(
        self,
        friendship: Optional[Friendship],
        next_state: Transition,
        caller_id: int,
        other_id: int
    ) -> Friendship:
        """전이 결과를 행에 반영 (없으면 새로 생성)"""
        now = utcnow()
        if friendship is None:
            friendship = Friendship(status=next_state.status, created_at=now, updated_at=now)
            friendship.assign_direction(caller_id, other_id)
            self.db.add(friendship)
            return friendship

        if next_state.reassign:
            friendship.assign_direction(caller_id, other_id)
        friendship.status = next_state.status
        friendship.updated_at = now
        return friendship

    async def _commit(self):
        """커밋 (실패 시 롤백 후 타입이 있는 에러로 변환)"""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Friendship pair conflict: {e.orig if hasattr(e, 'orig') else e}")
            raise ConflictException("Relationship was modified concurrently") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save friendship: {e}")
            raise InternalServerException("Failed to save relationship") from e

    async def _detail(self, friendship: Friendship) -> FriendshipDetail:
        summaries = await user_service.summarize_many(
            self.db, [friendship.sender_id, friendship.receiver_id]
        )
        return self._detail_from(friendship, summaries)

    @staticmethod
    def _detail_from(friendship: Friendship, summaries) -> FriendshipDetail:
        base = FriendshipResponse.model_validate(friendship)
        return FriendshipDetail(
            **base.model_dump(),
            sender=summaries.get(friendship.sender_id),
            receiver=summaries.get(friendship.receiver_id)
        )

    @staticmethod
    def _display_name(summary: Optional[UserSummary]) -> str:
        if summary is None:
            return ""
        return summary.display_name or summary.username

    def _emit(self, event):
        if self.dispatcher is not None:
            self.dispatcher.emit(event)
