"""
Domain Event Base Class
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional


@dataclass
class DomainEvent:
    """Domain Event 기본 클래스"""
    timestamp: datetime

    # 알림 수신자와 알림 타입 (알림을 만들지 않는 이벤트는 None)
    notification_type = None

    @property
    def recipient_id(self) -> Optional[int]:
        return None

    def to_dict(self) -> Dict:
        """Event를 dict로 변환"""
        data = asdict(self)
        # datetime을 ISO 형식 문자열로 변환
        data['timestamp'] = self.timestamp.isoformat()
        # Event 타입 추가 (Consumer에서 라우팅용)
        data['__event_type__'] = self.__class__.__name__
        return data

    @classmethod
    def from_dict(cls, data: Dict):
        """dict에서 Event 복원"""
        data = dict(data)
        if 'timestamp' in data and isinstance(data['timestamp'], str):
            data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        data.pop('__event_type__', None)
        return cls(**data)
