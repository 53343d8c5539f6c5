from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user
from app.database.postgres import get_async_session
from app.models.users import User
from app.schemas.friendship import MessageResponse
from app.schemas.notification import (
    BulkResult,
    NotificationList,
    NotificationResponse,
    UnreadCount,
)
from app.services.notification_service import DEFAULT_PAGE_SIZE, NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: AsyncSession = Depends(get_async_session)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=NotificationList)
async def get_notifications(
        page: int = Query(1, description="페이지 번호"),
        limit: int = Query(DEFAULT_PAGE_SIZE, description="페이지 크기 (최대 50)"),
        unread_only: bool = Query(False, description="읽지 않은 알림만 조회"),
        current_user: User = Depends(get_current_user),
        service: NotificationService = Depends(get_notification_service)
):
    """
    내 알림 목록을 최신순으로 조회합니다.

    페이지 번호는 1 이상, 페이지 크기는 1~50 범위로 보정됩니다.
    """
    return await service.list_notifications(current_user.id, page, limit, unread_only)


@router.get("/unread", response_model=UnreadCount)
async def get_unread_count(
        current_user: User = Depends(get_current_user),
        service: NotificationService = Depends(get_notification_service)
):
    """읽지 않은 알림 수를 조회합니다."""
    return UnreadCount(unread_count=await service.unread_count(current_user.id))


@router.put("/read-all", response_model=BulkResult)
async def mark_all_notifications_read(
        current_user: User = Depends(get_current_user),
        service: NotificationService = Depends(get_notification_service)
):
    """읽지 않은 알림을 모두 읽음으로 표시합니다."""
    count = await service.mark_all_as_read(current_user.id)
    return BulkResult(message="All notifications marked as read", count=count)


@router.delete("/clear", response_model=BulkResult)
async def clear_read_notifications(
        current_user: User = Depends(get_current_user),
        service: NotificationService = Depends(get_notification_service)
):
    """읽은 알림을 모두 삭제합니다."""
    count = await service.clear_read(current_user.id)
    return BulkResult(message="Read notifications cleared", count=count)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
        notification_id: int,
        current_user: User = Depends(get_current_user),
        service: NotificationService = Depends(get_notification_service)
):
    """알림 하나를 읽음으로 표시합니다."""
    return await service.mark_as_read(current_user.id, notification_id)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
        notification_id: int,
        current_user: User = Depends(get_current_user),
        service: NotificationService = Depends(get_notification_service)
):
    await service.delete_notification(current_user.id, notification_id)
    return MessageResponse(message="Notification deleted")
