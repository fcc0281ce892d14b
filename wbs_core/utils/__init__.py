"""유틸리티 모듈."""

from .dates import (
    to_day,
    days_between,
    day_range,
    week_start,
    month_start,
    add_months,
    months_between,
)

__all__ = [
    "to_day",
    "days_between",
    "day_range",
    "week_start",
    "month_start",
    "add_months",
    "months_between",
]
