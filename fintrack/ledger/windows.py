"""Time windows for the analytics views."""

import calendar
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class WindowKind(str, Enum):
    ALL = "all"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class TimeWindow(BaseModel):
    """
    A calendar-date range, evaluated against "today" at read time.

    Custom ranges include both endpoints. A custom range missing either
    endpoint behaves like ALL.
    """

    model_config = ConfigDict(frozen=True)

    kind: WindowKind = WindowKind.ALL
    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def all_time(cls) -> "TimeWindow":
        return cls(kind=WindowKind.ALL)

    @classmethod
    def this_month(cls) -> "TimeWindow":
        return cls(kind=WindowKind.THIS_MONTH)

    @classmethod
    def last_month(cls) -> "TimeWindow":
        return cls(kind=WindowKind.LAST_MONTH)

    @classmethod
    def custom(cls, start: Optional[date], end: Optional[date]) -> "TimeWindow":
        return cls(kind=WindowKind.CUSTOM, start=start, end=end)

    def bounds(self, today: date) -> Optional[tuple[date, date]]:
        """Inclusive (first, last) day, or None when every date matches."""
        if self.kind == WindowKind.THIS_MONTH:
            return _month_bounds(today.year, today.month)
        if self.kind == WindowKind.LAST_MONTH:
            previous = today.replace(day=1) - timedelta(days=1)
            return _month_bounds(previous.year, previous.month)
        if self.kind == WindowKind.CUSTOM and self.start and self.end:
            return self.start, self.end
        return None

    def contains(self, day: date, today: date) -> bool:
        bounds = self.bounds(today)
        if bounds is None:
            return True
        first, last = bounds
        return first <= day <= last
