"""날짜 정규화 유틸리티.

영속 계층에서 넘어오는 날짜 값(date, datetime, ISO 문자열)을
일(day) 단위로 잘라 비교 가능한 date로 맞춥니다.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

logger = logging.getLogger(__name__)


def to_day(value: Any) -> Optional[date]:
    """
    임의의 날짜 값을 date로 변환합니다.

    - None, 빈 문자열 → None
    - datetime → 해당 날짜 (시간대 정보는 무시하고 표기된 날짜 사용)
    - "2024-02-01", "2024-02-01T09:30:00+09:00", "2024-02-01 09:30:00Z" 지원

    잘못된 값은 예외 대신 None을 반환합니다.
    """
    if value is None:
        return None
    # datetime은 date의 하위 클래스이므로 먼저 검사
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            logger.warning(f"[dates] 날짜 형식을 해석할 수 없습니다: {value!r}")
            return None

    logger.warning(f"[dates] 지원하지 않는 날짜 타입입니다: {type(value).__name__}")
    return None


def days_between(start: date, end: date) -> int:
    """start에서 end까지의 일수 (end가 앞서면 음수)."""
    return (end - start).days


def day_range(start: date, end: date) -> list[date]:
    """start부터 end까지(양 끝 포함) 하루 단위 목록."""
    return [start + timedelta(days=i) for i in range(days_between(start, end) + 1)]


def week_start(day: date) -> date:
    """해당 날짜가 속한 주의 월요일."""
    return day - timedelta(days=day.weekday())


def month_start(day: date) -> date:
    return day.replace(day=1)


def add_months(day: date, months: int) -> date:
    """월 단위 이동 (1일 기준 날짜에만 사용)."""
    total = day.year * 12 + (day.month - 1) + months
    return date(total // 12, total % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)
