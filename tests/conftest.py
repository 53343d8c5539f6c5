import os

# app 모듈 import 전에 테스트 환경 설정
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("NOTIFICATION_BACKEND", "log")

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Dict, List
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.friend import get_notification_dispatcher
from app.database.postgres import Base, get_async_session
from app.domain.events.base import DomainEvent
from app.domain.relationship import FriendshipStatus
from app.models.users import User, UserStatus
from app.models.friendships import Friendship
from app.services.friendship_service import FriendshipService
from app.services.notification_service import NotificationDispatcher
from app.utils.auth import create_access_token
from app.utils.time_utils import utcnow


# 테스트용 인메모리 SQLite 데이터베이스 설정
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingNotifier:
    """전달된 이벤트를 기록하는 테스트용 Notifier"""

    def __init__(self):
        self.events: List[DomainEvent] = []

    async def notify(self, event: DomainEvent) -> None:
        self.events.append(event)


class FailingNotifier:
    """항상 실패하는 테스트용 Notifier"""

    def __init__(self):
        self.calls = 0

    async def notify(self, event: DomainEvent) -> None:
        self.calls += 1
        raise ConnectionError("notification transport down")


@pytest_asyncio.fixture
async def test_engine():
    """테스트용 비동기 데이터베이스 엔진 생성"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False
    )

    # 테이블 생성
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # 정리
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """테스트용 데이터베이스 세션"""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture
def dispatcher(recording_notifier) -> NotificationDispatcher:
    return NotificationDispatcher(recording_notifier)


@pytest.fixture
def service(test_session, dispatcher) -> FriendshipService:
    """기록용 Notifier가 연결된 친구 관계 서비스"""
    return FriendshipService(test_session, dispatcher)


@pytest_asyncio.fixture
async def client(test_session, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    def get_test_session():
        return test_session

    app.dependency_overrides[get_async_session] = get_test_session
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_user(session: AsyncSession, username: str, **kwargs) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        display_name=kwargs.pop("display_name", username.title()),
        **kwargs
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user_1(test_session) -> User:
    """테스트용 사용자 1"""
    return await _create_user(test_session, "testuser1", avatar="https://cdn.example.com/1.png", level=5)


@pytest_asyncio.fixture
async def test_user_2(test_session) -> User:
    """테스트용 사용자 2"""
    return await _create_user(test_session, "testuser2")


@pytest_asyncio.fixture
async def test_user_3(test_session) -> User:
    """테스트용 사용자 3"""
    return await _create_user(test_session, "testuser3")


@pytest_asyncio.fixture
async def banned_user(test_session) -> User:
    """정지된 사용자"""
    return await _create_user(test_session, "banneduser", status=UserStatus.BANNED)


@pytest_asyncio.fixture
async def deleted_user(test_session) -> User:
    """탈퇴(soft delete)한 사용자"""
    return await _create_user(test_session, "deleteduser", deleted_at=utcnow())


async def _create_friendship(
    session: AsyncSession,
    sender: User,
    receiver: User,
    status: FriendshipStatus
) -> Friendship:
    friendship = Friendship(status=status)
    friendship.assign_direction(sender.id, receiver.id)
    session.add(friendship)
    await session.commit()
    await session.refresh(friendship)
    return friendship


@pytest_asyncio.fixture
async def accepted_friendship(test_session, test_user_1, test_user_2) -> Friendship:
    """수락된 친구 관계 (1 -> 2)"""
    return await _create_friendship(test_session, test_user_1, test_user_2, FriendshipStatus.ACCEPTED)


@pytest_asyncio.fixture
async def pending_friendship(test_session, test_user_1, test_user_3) -> Friendship:
    """대기 중인 친구 요청 (1 -> 3)"""
    return await _create_friendship(test_session, test_user_1, test_user_3, FriendshipStatus.PENDING)


@pytest.fixture
def auth_headers():
    """사용자별 Bearer 토큰 헤더 생성"""
    def _auth_headers(user: User) -> Dict[str, str]:
        token = create_access_token(data={"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
