"""Shared validation utilities"""

from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_date(value):
    """
    Normalise an incoming date value to a calendar date.

    ISO datetimes (e.g. "2024-01-01T22:30:00-05:00") are converted to UTC first,
    so the resulting day never depends on the caller's local timezone.
    Plain dates pass through unchanged.
    """
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value

    if isinstance(value, str):
        raw = value.strip()
        if "T" not in raw and " " not in raw:
            return date.fromisoformat(raw)
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    return value


def utc_day_of_week(day: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday"""
    return day.isoweekday() % 7


def validate_time_window(start_time: Optional[time], end_time: Optional[time]) -> None:
    """
    Raises:
        ValueError: If the class ends before (or when) it starts
    """
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise ValueError("endTime must be after startTime")


def validate_date_bounds(start_date: Optional[date], end_date: Optional[date]) -> None:
    """
    Raises:
        ValueError: If the active-date bounds are inverted
    """
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValueError("endDate must be on or after startDate")


def validate_generation_window(from_date: date, to_date: date, max_days: int) -> None:
    """
    Validate a session generation window.

    Raises:
        ValueError: If the window is inverted or longer than max_days
    """
    if from_date > to_date:
        raise ValueError("fromDate must be before toDate")
    if (to_date - from_date).days > max_days:
        raise ValueError(f"Date range cannot exceed {max_days} days")
