"""
Date and time utility functions for the order ledger.
Orders store timestamps as epoch milliseconds; list filters take calendar days
interpreted in the configured business timezone.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
import pytz

from ..config.settings import get_settings

settings = get_settings()
UTC_TZ = pytz.UTC


class DateUtils:
    """Conversions between calendar days and epoch-millisecond timestamps."""

    @staticmethod
    def business_timezone():
        return pytz.timezone(settings.DEFAULT_TIMEZONE)

    @staticmethod
    def now_ms() -> int:
        """Current UTC time in epoch milliseconds."""
        return int(datetime.now(UTC_TZ).timestamp() * 1000)

    @staticmethod
    def to_ms(dt: datetime) -> int:
        """Convert datetime to epoch milliseconds; naive values are taken as business-local."""
        if dt.tzinfo is None:
            dt = DateUtils.business_timezone().localize(dt)
        return int(dt.timestamp() * 1000)

    @staticmethod
    def day_start_ms(day: date) -> int:
        """First millisecond of the given day in the business timezone."""
        return DateUtils.to_ms(datetime.combine(day, time.min))

    @staticmethod
    def day_end_ms(day: date) -> int:
        """Last millisecond of the given day in the business timezone."""
        next_day = datetime.combine(day + timedelta(days=1), time.min)
        return DateUtils.to_ms(next_day) - 1

    @staticmethod
    def normalize_day_range(
        date_from: Optional[date],
        date_to: Optional[date]
    ) -> Tuple[Optional[int], Optional[int]]:
        """
        Inclusive millisecond bounds for a day range.
        Reversed bounds are swapped instead of rejected.
        """
        if date_from and date_to and date_from > date_to:
            date_from, date_to = date_to, date_from
        start = DateUtils.day_start_ms(date_from) if date_from else None
        end = DateUtils.day_end_ms(date_to) if date_to else None
        return start, end


# Convenience functions
def now_ms() -> int:
    return DateUtils.now_ms()

def to_ms(dt: datetime) -> int:
    return DateUtils.to_ms(dt)

def get_day_range_ms(date_from: Optional[date], date_to: Optional[date]) -> Tuple[Optional[int], Optional[int]]:
    return DateUtils.normalize_day_range(date_from, date_to)
