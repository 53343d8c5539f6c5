from typing import List, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user
from app.database.postgres import get_async_session
from app.models.users import User
from app.schemas.friendship import (
    FriendRequestCreate,
    FriendRequestRespond,
    FriendshipDetail,
    MessageResponse,
    PendingRequests,
    RelationshipStatusResponse,
    UserTarget,
)
from app.schemas.user import UserSummary
from app.services.friendship_service import FriendshipService
from app.services.notification_service import NotificationDispatcher

router = APIRouter(prefix="/friends", tags=["Friends"])


def get_notification_dispatcher(request: Request) -> Optional[NotificationDispatcher]:
    """lifespan에서 생성한 알림 디스패처"""
    return getattr(request.app.state, "notification_dispatcher", None)


def get_friendship_service(
        db: AsyncSession = Depends(get_async_session),
        dispatcher: Optional[NotificationDispatcher] = Depends(get_notification_dispatcher)
) -> FriendshipService:
    return FriendshipService(db, dispatcher)


@router.post("/request", response_model=FriendshipDetail,
             status_code=status.HTTP_201_CREATED)
async def send_friend_request(
        friend_request: FriendRequestCreate,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """
    친구 요청을 전송합니다.

    거절된 적이 있는 상대에게는 같은 관계를 다시 대기 상태로 되돌립니다.
    """
    return await service.send_request(current_user.id, friend_request.receiver_id)


@router.post("/request/{friendship_id}/respond", response_model=FriendshipDetail)
async def respond_to_friend_request(
        friendship_id: int,
        body: FriendRequestRespond,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """받은 친구 요청을 수락(accept) 또는 거절(reject)합니다."""
    return await service.respond(current_user.id, friendship_id, body.action)


@router.delete("/request/{friendship_id}", response_model=MessageResponse)
async def cancel_friend_request(
        friendship_id: int,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """자신이 보낸 대기 중인 친구 요청을 취소합니다."""
    await service.cancel(current_user.id, friendship_id)
    return MessageResponse(message="Request cancelled successfully")


@router.delete("/remove/{other_user_id}", response_model=MessageResponse)
async def remove_friend(
        other_user_id: int,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """친구를 삭제합니다."""
    await service.remove(current_user.id, other_user_id)
    return MessageResponse(message="Friend removed successfully")


@router.post("/block", response_model=FriendshipDetail)
async def block_user(
        target: UserTarget,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """사용자를 차단합니다. 기존 관계는 차단 상태로 덮어씁니다."""
    return await service.block(current_user.id, target.user_id)


@router.post("/unblock", response_model=MessageResponse)
async def unblock_user(
        target: UserTarget,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """자신이 차단한 사용자의 차단을 해제합니다."""
    await service.unblock(current_user.id, target.user_id)
    return MessageResponse(message="User unblocked successfully")


@router.get("/list/{user_id}", response_model=List[UserSummary])
async def get_friends_list(
        user_id: int,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """특정 사용자의 친구 목록을 조회합니다."""
    return await service.list_friends(user_id)


@router.get("/pending", response_model=PendingRequests)
async def get_pending_requests(
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """받은 요청과 보낸 요청 목록을 조회합니다."""
    return await service.list_pending(current_user.id)


@router.get("/status/{user_id}", response_model=RelationshipStatusResponse)
async def get_friendship_status(
        user_id: int,
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """
    상대 사용자와의 관계 상태를 조회합니다.

    status: none, self, friends, pending_sent, pending_received,
    blocked_by_you, blocked, rejected
    """
    return await service.get_status(current_user.id, user_id)


@router.get("/blocked", response_model=List[UserSummary])
async def get_blocked_users(
        current_user: User = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """자신이 차단한 사용자 목록을 조회합니다."""
    return await service.list_blocked(current_user.id)
