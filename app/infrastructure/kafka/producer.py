"""
Kafka Producer

친구 관계 Domain Event를 Kafka로 발행하는 Producer
"""

import json
import logging
from typing import Any, Dict, Optional
from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from app.domain.events.base import DomainEvent
from .config import KafkaConfig, kafka_config

logger = logging.getLogger(__name__)


def _serialize_value(value: Dict[str, Any]) -> bytes:
    return json.dumps(value, ensure_ascii=False).encode("utf-8")


def _serialize_key(key: Optional[str]) -> Optional[bytes]:
    return key.encode("utf-8") if key else None


class DomainEventProducer:
    """
    Domain Event Producer

    lifespan에서 start()/stop()을 호출합니다. 전송 실패는 호출자에게 그대로 전달되며,
    알림 디스패처가 로그로 남깁니다.
    """

    def __init__(self, config: KafkaConfig = kafka_config):
        self.config = config
        self.producer: Optional[AIOKafkaProducer] = None

    @property
    def started(self) -> bool:
        return self.producer is not None

    async def start(self):
        """Producer 시작"""
        if self.started:
            logger.warning("Producer already started")
            return

        producer = AIOKafkaProducer(
            bootstrap_servers=self.config.bootstrap_servers,
            client_id=self.config.client_id,
            value_serializer=_serialize_value,
            key_serializer=_serialize_key,
            acks=self.config.acks,
            enable_idempotence=self.config.producer_enable_idempotence,
            compression_type=self.config.compression,
            linger_ms=self.config.producer_linger_ms,
            request_timeout_ms=self.config.producer_request_timeout_ms
        )
        try:
            await producer.start()
        except KafkaError as e:
            logger.error(f"Failed to start Kafka Producer: {e}")
            raise

        self.producer = producer
        logger.info(
            "Kafka Producer started",
            extra={"bootstrap_servers": self.config.bootstrap_servers}
        )

    async def stop(self):
        """Producer 중지 (버퍼에 남은 메시지는 전송 후 종료)"""
        if not self.started:
            return

        await self.producer.stop()
        self.producer = None
        logger.info("Kafka Producer stopped")

    async def publish(
        self,
        topic: str,
        event: DomainEvent,
        key: Optional[str] = None
    ):
        """
        Domain Event 발행

        Args:
            topic: Kafka topic
            event: 발행할 Domain Event
            key: Partition key (알림 수신자 ID)
        """
        if not self.started:
            raise RuntimeError("Producer not started. Call start() first.")

        payload = event.to_dict()
        try:
            metadata = await self.producer.send_and_wait(topic, value=payload, key=key)
        except KafkaError as e:
            logger.error(f"[Kafka Error] Topic: {topic}, Error: {e}")
            raise

        logger.info(
            f"Published {payload['__event_type__']} to {topic}",
            extra={
                "event_type": "kafka_publish",
                "topic": topic,
                "partition": metadata.partition,
                "offset": metadata.offset,
            }
        )


# Singleton instance
_event_producer: Optional[DomainEventProducer] = None


def get_event_producer() -> DomainEventProducer:
    """Singleton Producer 인스턴스 반환"""
    global _event_producer
    if _event_producer is None:
        _event_producer = DomainEventProducer()
    return _event_producer
