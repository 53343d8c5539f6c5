"""
Kafka Configuration

친구 관계 알림을 Kafka로 보낼 때(NOTIFICATION_BACKEND=kafka)만 사용됩니다.
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings


class KafkaConfig(BaseSettings):
    """Kafka 설정 (KAFKA_ 접두사 환경 변수)"""

    bootstrap_servers: List[str] = Field(
        default=["localhost:9092"],
        description="Kafka bootstrap servers"
    )
    client_id: str = Field(
        default="whispery-social-graph",
        description="브로커 로그/메트릭에 표시되는 클라이언트 ID"
    )

    # Producer 설정
    producer_acks: str = Field(
        default="all",
        description="Producer acks: 'all', '1', '0'"
    )
    producer_enable_idempotence: bool = Field(
        default=True,
        description="재전송 시 중복 알림 방지 (acks=all 필요)"
    )
    producer_compression_type: str = Field(
        default="gzip",
        description="Compression type: 'none', 'gzip', 'snappy', 'lz4'"
    )
    producer_linger_ms: int = Field(
        default=5,
        description="배치 대기 시간"
    )
    producer_request_timeout_ms: int = Field(
        default=30000,
        description="Request timeout in milliseconds"
    )

    # 친구 요청/수락 알림 topic (수신자 ID를 key로 파티셔닝)
    topic_friend_events: str = "friend.events"

    class Config:
        env_prefix = "KAFKA_"
        case_sensitive = False

    @property
    def acks(self):
        """aiokafka가 받는 acks 값 ('all' 또는 정수)"""
        if self.producer_acks == "all":
            return "all"
        return int(self.producer_acks)

    @property
    def compression(self):
        if self.producer_compression_type == "none":
            return None
        return self.producer_compression_type


kafka_config = KafkaConfig()
