"""Tests for dt_utils date and time helpers."""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from custom_components.habit_calendar.utils import dt_utils


def test_dt_parse_date_accepts_dates_and_datetimes() -> None:
    """ISO dates and datetimes both yield a calendar date."""
    assert dt_utils.dt_parse_date("2026-10-19") == date(2026, 10, 19)
    assert dt_utils.dt_parse_date("2026-10-19T23:30:00") == date(2026, 10, 19)
    assert dt_utils.dt_parse_date("not a date") is None
    assert dt_utils.dt_parse_date(None) is None


def test_dt_to_date_uses_local_calendar_date() -> None:
    """An aware datetime maps to its date in the given zone."""
    instant = datetime(2026, 10, 20, 1, 30, tzinfo=UTC)

    assert dt_utils.dt_to_date(instant) == date(2026, 10, 20)
    assert dt_utils.dt_to_date(instant, ZoneInfo("America/Sao_Paulo")) == date(
        2026, 10, 19
    )


def test_dt_to_date_rejects_garbage() -> None:
    """Unparseable strings raise ValueError."""
    with pytest.raises(ValueError):
        dt_utils.dt_to_date("yesterday")


def test_dt_add_days_crosses_month_end() -> None:
    """Shifting by days follows the calendar."""
    assert dt_utils.dt_add_days(date(2026, 10, 31), 1) == date(2026, 11, 1)
    assert dt_utils.dt_add_days(date(2026, 3, 1), -1) == date(2026, 2, 28)


def test_dt_days_between_is_signed() -> None:
    """Counting backwards gives a negative number."""
    assert dt_utils.dt_days_between(date(2026, 10, 19), date(2026, 10, 22)) == 3
    assert dt_utils.dt_days_between(date(2026, 10, 22), date(2026, 10, 19)) == -3


def test_dt_combine_local_uses_default_zone() -> None:
    """Combining without a zone uses the configured default."""
    dt_utils.set_default_timezone(ZoneInfo("Europe/Lisbon"))

    combined = dt_utils.dt_combine_local(date(2026, 10, 19), 7, 45)

    assert combined.tzinfo == ZoneInfo("Europe/Lisbon")
    assert (combined.hour, combined.minute) == (7, 45)


def test_start_of_local_day() -> None:
    """Midnight of the local day, timezone-aware."""
    start = dt_utils.start_of_local_day(datetime(2026, 10, 19, 15, 5, tzinfo=UTC))

    assert start == datetime(2026, 10, 19, tzinfo=UTC)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("08:30", (8, 30)),
        (" 23:59 ", (23, 59)),
        ("07:05:00", (7, 5)),
        ("24:00", (24, 0)),
        ("8h30", None),
        ("", None),
        ("ab:cd", None),
    ],
)
def test_parse_time_of_day(value: str, expected: tuple[int, int] | None) -> None:
    """Parsing checks the format only, not the range."""
    assert dt_utils.parse_time_of_day(value) == expected
