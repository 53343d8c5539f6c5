"""
시간 관련 유틸리티 함수
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    현재 UTC 시각을 tz 정보 없이 반환합니다.

    DB 컬럼이 timezone 없는 DateTime이므로 모든 타임스탬프는 naive UTC로 저장합니다.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
