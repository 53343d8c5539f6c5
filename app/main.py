"""
Whispery Social Graph Service - FastAPI Application

친구 요청/수락/거절/차단 관계를 관리하는 서비스
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import friend_router, health_router, notification_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.database import AsyncSessionLocal, init_db, close_db
from app.infrastructure.kafka import get_event_producer, kafka_config
from app.middleware.error_handler import register_error_handlers
from app.middleware.logging_middleware import LoggingMiddleware
from app.services.notification_service import NotificationDispatcher, build_notifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    # Startup
    setup_logging()
    logger.info(f"{settings.app_name} starting up...")

    await init_db()

    producer = None
    if settings.notification_backend == "kafka":
        producer = get_event_producer()
        await producer.start()

    notifier = build_notifier(
        settings.notification_backend,
        session_factory=AsyncSessionLocal,
        producer=producer,
        topic=kafka_config.topic_friend_events
    )
    app.state.notification_dispatcher = NotificationDispatcher(notifier)

    yield

    # Shutdown
    logger.info(f"{settings.app_name} shutting down...")
    await app.state.notification_dispatcher.drain()
    if producer is not None:
        await producer.stop()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(health_router)
app.include_router(friend_router)
app.include_router(notification_router)


@app.get("/")
async def root():
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
