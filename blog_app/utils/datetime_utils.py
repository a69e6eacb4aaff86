# blog_app/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

- 모든 시각은 UTC timezone-aware datetime으로 다룹니다.
- Firestore에서 읽은 Timestamp(DatetimeWithNanoseconds)도 일반 datetime으로 정규화합니다.
"""

from datetime import datetime, timezone, timedelta
from typing import Any, Optional


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """timezone-naive면 UTC로 간주하고, aware면 UTC로 변환합니다."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def next_after(previous: Optional[datetime]) -> datetime:
        """
        현재 시각을 반환하되, 직전에 발급한 시각보다 반드시 뒤가 되도록 보정합니다.
        (같은 마이크로초에 두 번 쓰기가 일어나도 순서가 유지되어야 함)
        """
        current = DateTimeUtils.now()
        if previous is not None and current <= previous:
            current = previous + timedelta(microseconds=1)
        return current

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 datetime 필드를 재귀적으로 UTC datetime으로 변환
        """
        if isinstance(obj, datetime):
            # DatetimeWithNanoseconds도 datetime의 하위 클래스입니다.
            plain = datetime(obj.year, obj.month, obj.day, obj.hour, obj.minute,
                             obj.second, obj.microsecond, tzinfo=obj.tzinfo)
            return DateTimeUtils.ensure_utc(plain)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        return obj
