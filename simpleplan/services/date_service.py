"""
Date calculation and manipulation service.
Handles day keys, local calendar comparisons, weekday indexing and date windows.
"""
from datetime import datetime, timedelta, date
from enum import Enum
from typing import List, Union

from simpleplan.constants import (
    DAY_KEY_FORMAT, PROGRESS_PAST_DAYS, PROGRESS_FUTURE_DAYS, WEEK_WINDOW_DAYS,
    TIMEFRAME_WEEK, TIMEFRAME_MONTH
)
from simpleplan.exceptions import ValidationException

DayLike = Union[date, datetime, str]


class DayOrder(str, Enum):
    BEFORE = "before"
    SAME = "same"
    AFTER = "after"


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def to_day(value: DayLike) -> date:
        """
        Normalize a date-like value to its local calendar day.

        Naive datetimes are taken as local time. Aware datetimes are converted
        to the local zone first, so a UTC timestamp lands on the day the user
        actually saw on their clock.

        Args:
            value: date, datetime or ISO 8601 string

        Returns:
            Calendar date

        Raises:
            ValidationException: If a string cannot be parsed
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone()
            return value.date()

        if isinstance(value, date):
            return value

        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                if len(text) == 10:
                    return date.fromisoformat(text)
                return DateService.to_day(datetime.fromisoformat(text))
            except ValueError:
                raise ValidationException("date", f"cannot parse '{value}'")

        raise ValidationException("date", f"unsupported value {value!r}")

    @staticmethod
    def day_key(value: DayLike) -> str:
        """Canonical YYYY-MM-DD key from local calendar fields"""
        return DateService.to_day(value).strftime(DAY_KEY_FORMAT)

    @staticmethod
    def parse_day_key(key: str) -> date:
        """
        Parse a YYYY-MM-DD key.

        Raises:
            ValidationException: If key is not a valid day key
        """
        try:
            return datetime.strptime(key, DAY_KEY_FORMAT).date()
        except (TypeError, ValueError):
            raise ValidationException("day", f"'{key}' is not a YYYY-MM-DD day key")

    @staticmethod
    def compare_days(a: DayLike, b: DayLike) -> DayOrder:
        """Compare two values by calendar day, ignoring time-of-day"""
        key_a = DateService.day_key(a)
        key_b = DateService.day_key(b)
        if key_a < key_b:
            return DayOrder.BEFORE
        if key_a > key_b:
            return DayOrder.AFTER
        return DayOrder.SAME

    @staticmethod
    def weekday_index(value: DayLike) -> int:
        """
        Weekday number with Sunday=0 ... Saturday=6.

        Python's date.weekday() counts from Monday=0, so it is shifted by one.
        """
        return (DateService.to_day(value).weekday() + 1) % 7

    @staticmethod
    def days_between(start: DayLike, end: DayLike) -> int:
        """Whole-day difference end - start"""
        return (DateService.to_day(end) - DateService.to_day(start)).days

    @staticmethod
    def date_range(start: DayLike, end: DayLike) -> List[date]:
        """Inclusive list of days from start to end (empty if end < start)"""
        first = DateService.to_day(start)
        count = DateService.days_between(first, end)
        return [first + timedelta(days=offset) for offset in range(count + 1)]

    @staticmethod
    def get_relevant_dates(
        today: DayLike,
        past_days: int = PROGRESS_PAST_DAYS,
        future_days: int = PROGRESS_FUTURE_DAYS
    ) -> List[date]:
        """Progress window: past N days, today, next M days"""
        anchor = DateService.to_day(today)
        return DateService.date_range(
            anchor - timedelta(days=past_days),
            anchor + timedelta(days=future_days)
        )

    @staticmethod
    def filter_timeframe(days: List[date], today: DayLike, timeframe: str) -> List[date]:
        """
        Restrict a window of days to a timeframe around today.

        Args:
            days: Candidate days
            today: Reference day
            timeframe: "week" (+/-7 days), "month" (-30..+7 days) or "all"

        Returns:
            Filtered days in their original order
        """
        anchor = DateService.to_day(today)
        timeframe = getattr(timeframe, "value", timeframe)

        if timeframe == TIMEFRAME_WEEK:
            low, high = -WEEK_WINDOW_DAYS, WEEK_WINDOW_DAYS
        elif timeframe == TIMEFRAME_MONTH:
            low, high = -PROGRESS_PAST_DAYS, PROGRESS_FUTURE_DAYS
        else:
            return list(days)

        return [
            day for day in days
            if low <= (day - anchor).days <= high
        ]

    @staticmethod
    def get_month_grid(today: DayLike) -> List[date]:
        """
        Calendar grid for the month containing today.

        Starts on the Sunday on/before the 1st and ends on the Saturday
        on/after the last day of the month.
        """
        anchor = DateService.to_day(today)
        first_day = anchor.replace(day=1)
        if first_day.month == 12:
            next_month = first_day.replace(year=first_day.year + 1, month=1)
        else:
            next_month = first_day.replace(month=first_day.month + 1)
        last_day = next_month - timedelta(days=1)

        start = first_day - timedelta(days=DateService.weekday_index(first_day))
        end = last_day + timedelta(days=6 - DateService.weekday_index(last_day))
        return DateService.date_range(start, end)
