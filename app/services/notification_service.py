"""
Notification sink

친구 관계 변경 이벤트를 알림으로 전달합니다.
관계 변경은 알림 전송 성공 여부와 무관하게 확정되며, 전송 실패는 로그만 남깁니다.
저장된 알림은 NotificationService로 사용자별 조회, 읽음 처리, 삭제를 합니다.
"""

import asyncio
import logging
import math
from typing import Optional, Protocol, Set

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import InternalServerException, notification_not_found_error
from app.domain.events.base import DomainEvent
from app.infrastructure.kafka.producer import DomainEventProducer
from app.models.notifications import Notification
from app.schemas.notification import NotificationList, NotificationResponse

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """알림 전송 인터페이스"""

    async def notify(self, event: DomainEvent) -> None:
        ...


class DatabaseNotifier:
    """notifications 테이블에 알림 행을 기록"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def notify(self, event: DomainEvent) -> None:
        if event.recipient_id is None or event.notification_type is None:
            return

        async with self.session_factory() as session:
            session.add(Notification(
                user_id=event.recipient_id,
                type=event.notification_type,
                data=event.to_dict()
            ))
            await session.commit()


class KafkaNotifier:
    """Domain Event를 Kafka topic으로 발행"""

    def __init__(self, producer: DomainEventProducer, topic: str):
        self.producer = producer
        self.topic = topic

    async def notify(self, event: DomainEvent) -> None:
        key = str(event.recipient_id) if event.recipient_id is not None else None
        await self.producer.publish(self.topic, event, key=key)


class LoggingNotifier:
    """로그로만 남기는 알림 (로컬 개발용)"""

    async def notify(self, event: DomainEvent) -> None:
        logger.info(
            f"Notification {event.notification_type} -> user {event.recipient_id}",
            extra={"event_type": "notification", "payload": event.to_dict()}
        )


class NotificationDispatcher:
    """
    알림을 fire-and-forget으로 전달하는 디스패처

    emit()은 전송 태스크를 예약만 하고 바로 반환합니다.
    drain()은 남아있는 전송을 모두 기다립니다 (종료 시, 테스트 시).
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    def emit(self, event: DomainEvent) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(event))
        except RuntimeError:
            logger.error(f"No running event loop, dropping {event.__class__.__name__}")
            return

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: DomainEvent) -> None:
        try:
            await self.notifier.notify(event)
        except Exception as e:
            logger.error(
                f"Failed to deliver {event.__class__.__name__} to user {event.recipient_id}: {e}",
                extra={"event_type": "notification_failed"}
            )

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending))


def build_notifier(
    backend: str,
    session_factory: Optional[async_sessionmaker] = None,
    producer: Optional[DomainEventProducer] = None,
    topic: Optional[str] = None
) -> Notifier:
    """설정된 backend 이름으로 Notifier 생성"""
    if backend == "database":
        if session_factory is None:
            raise ValueError("database notifier requires a session factory")
        return DatabaseNotifier(session_factory)
    if backend == "kafka":
        if producer is None or topic is None:
            raise ValueError("kafka notifier requires a producer and topic")
        return KafkaNotifier(producer, topic)
    if backend == "log":
        return LoggingNotifier()
    raise ValueError(f"Unknown notification backend: {backend}")


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50


class NotificationService:
    """
    알림함 서비스

    사용자는 자신의 알림만 조회하고 변경할 수 있습니다.
    다른 사용자의 알림은 존재하지 않는 것으로 취급합니다.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_notifications(
        self,
        user_id: int,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        unread_only: bool = False
    ) -> NotificationList:
        """
        알림 목록을 최신순으로 페이지 단위 조회합니다.

        Args:
            user_id: 조회하는 사용자 ID
            page: 페이지 번호 (1 미만은 1로 보정)
            limit: 페이지 크기 (1 ~ MAX_PAGE_SIZE로 보정)
            unread_only: True면 읽지 않은 알림만

        Returns:
            NotificationList: 알림 목록, 전체 개수, 페이지 정보, 읽지 않은 개수
        """
        page = max(1, page)
        limit = min(MAX_PAGE_SIZE, max(1, limit))

        conditions = [Notification.user_id == user_id]
        if unread_only:
            conditions.append(Notification.is_read.is_(False))

        query = (
            select(Notification)
            .where(and_(*conditions))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        notifications = (await self.db.execute(query)).scalars().all()

        total = await self.db.scalar(
            select(func.count()).select_from(Notification).where(and_(*conditions))
        )

        return NotificationList(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
            unread_count=await self.unread_count(user_id)
        )

    async def unread_count(self, user_id: int) -> int:
        query = select(func.count()).select_from(Notification).where(
            and_(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return await self.db.scalar(query)

    async def mark_as_read(self, user_id: int, notification_id: int) -> Notification:
        """알림 하나를 읽음으로 표시"""
        notification = await self._get_owned(user_id, notification_id)
        notification.is_read = True
        await self._commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_as_read(self, user_id: int) -> int:
        """읽지 않은 알림을 모두 읽음으로 표시하고 변경된 개수를 반환"""
        result = await self.db.execute(
            update(Notification)
            .where(and_(Notification.user_id == user_id, Notification.is_read.is_(False)))
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        await self._commit()
        logger.info(f"Marked {result.rowcount} notifications as read for user {user_id}")
        return result.rowcount

    async def delete_notification(self, user_id: int, notification_id: int) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self.db.delete(notification)
        await self._commit()

    async def clear_read(self, user_id: int) -> int:
        """읽은 알림을 모두 삭제하고 삭제된 개수를 반환"""
        result = await self.db.execute(
            delete(Notification)
            .where(and_(Notification.user_id == user_id, Notification.is_read.is_(True)))
            .execution_options(synchronize_session="fetch")
        )
        await self._commit()
        logger.info(f"Cleared {result.rowcount} read notifications for user {user_id}")
        return result.rowcount

    async def _get_owned(self, user_id: int, notification_id: int) -> Notification:
        query = select(Notification).where(
            and_(Notification.id == notification_id, Notification.user_id == user_id)
        )
        notification = (await self.db.execute(query)).scalar_one_or_none()
        if notification is None:
            raise notification_not_found_error()
        return notification

    async def _commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save notification: {e}")
            raise InternalServerException("Failed to save notification") from e
