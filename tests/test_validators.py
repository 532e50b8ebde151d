from datetime import date, datetime, time, timedelta, timezone

import pytest

from classbook.shared.validators import (
    to_utc_date,
    utc_day_of_week,
    validate_date_bounds,
    validate_generation_window,
    validate_time_window,
)


def test_day_of_week_starts_on_sunday():
    assert utc_day_of_week(date(2023, 12, 31)) == 0  # Sunday
    assert utc_day_of_week(date(2024, 1, 1)) == 1  # Monday
    assert utc_day_of_week(date(2024, 1, 6)) == 6  # Saturday


def test_iso_datetime_is_reduced_to_utc_date():
    # 22:30 in New York is already the next day in UTC
    assert to_utc_date("2024-01-01T22:30:00-05:00") == date(2024, 1, 2)
    assert to_utc_date("2024-01-01T00:00:00Z") == date(2024, 1, 1)


def test_plain_dates_pass_through():
    assert to_utc_date("2024-03-05") == date(2024, 3, 5)
    assert to_utc_date(date(2024, 3, 5)) == date(2024, 3, 5)
    assert to_utc_date(None) is None


def test_aware_datetime_object_converted():
    value = datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=3)))
    assert to_utc_date(value) == date(2023, 12, 31)


def test_generation_window_limits():
    validate_generation_window(date(2024, 1, 1), date(2024, 1, 1), 90)
    validate_generation_window(date(2024, 1, 1), date(2024, 3, 31), 90)

    with pytest.raises(ValueError, match="fromDate must be before toDate"):
        validate_generation_window(date(2024, 1, 8), date(2024, 1, 1), 90)

    with pytest.raises(ValueError, match="cannot exceed 90 days"):
        validate_generation_window(date(2024, 1, 1), date(2024, 5, 1), 90)


def test_time_window_and_bounds():
    validate_time_window(time(7, 0), time(8, 0))
    validate_date_bounds(None, date(2024, 1, 1))

    with pytest.raises(ValueError):
        validate_time_window(time(8, 0), time(8, 0))

    with pytest.raises(ValueError):
        validate_date_bounds(date(2024, 2, 1), date(2024, 1, 1))
