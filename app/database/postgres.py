from typing import AsyncGenerator
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from app.core.config import settings

# Base class for SQLAlchemy models
Base = declarative_base()

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    """드라이버별 엔진 옵션 (SQLite는 커넥션 풀 옵션을 받지 않음)"""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"echo": settings.debug}
    return {
        "echo": settings.debug,  # Log SQL queries in debug mode
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_pre_ping": True,  # Validate connections before use
    }


# Database engine with connection pooling
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


async def init_db():
    """Initialize database (create tables when enabled)"""
    # 모델 메타데이터 등록
    import app.models  # noqa: F401

    if not settings.auto_create_tables:
        logger.info("Skipping table creation (auto_create_tables disabled)")
        return

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def check_db_connection() -> bool:
    """Check database connection"""
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.fetchone() is not None
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


async def close_db():
    """Close database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
