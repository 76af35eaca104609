"""Tests for weekday numbering and occurrence expansion."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from academy_scheduling.services.recurrence import (
    DEFAULT_HORIZON,
    dates_spanned,
    expand_occurrences,
    schedule_weekday,
    weekday_name,
)


def test_schedule_weekday_starts_on_sunday():
    assert schedule_weekday(date(2026, 10, 18)) == 0  # Sunday
    assert schedule_weekday(date(2026, 10, 19)) == 1  # Monday
    assert schedule_weekday(date(2026, 10, 24)) == 6  # Saturday


def test_weekday_name():
    assert weekday_name(0) == "Sunday"
    assert weekday_name(1) == "Monday"


def test_dates_spanned_single_day():
    days = dates_spanned(datetime(2026, 10, 19, 18, 30), datetime(2026, 10, 19, 19, 30))
    assert days == [date(2026, 10, 19)]


def test_dates_spanned_crossing_midnight():
    days = dates_spanned(datetime(2026, 10, 19, 23, 0), datetime(2026, 10, 20, 1, 0))
    assert days == [date(2026, 10, 19), date(2026, 10, 20)]


def test_dates_spanned_ending_at_midnight_stays_on_one_day():
    """The end is excluded, so a block ending exactly at midnight does not touch the next day."""
    days = dates_spanned(datetime(2026, 10, 19, 22, 0), datetime(2026, 10, 20, 0, 0))
    assert days == [date(2026, 10, 19)]


def test_expand_occurrences_within_window():
    # Mondays and Wednesdays from Monday 19 Oct to Sunday 1 Nov
    days = expand_occurrences(frozenset({1, 3}), date(2026, 10, 19), date(2026, 11, 1))
    assert days == [
        date(2026, 10, 19),
        date(2026, 10, 21),
        date(2026, 10, 26),
        date(2026, 10, 28),
    ]


def test_expand_occurrences_window_is_inclusive():
    days = expand_occurrences(frozenset({3}), date(2026, 10, 21), date(2026, 10, 21))
    assert days == [date(2026, 10, 21)]


def test_expand_occurrences_sunday():
    days = expand_occurrences(frozenset({0}), date(2026, 10, 19), date(2026, 10, 31))
    assert days == [date(2026, 10, 25)]


def test_expand_occurrences_open_ended_uses_horizon():
    start = date(2026, 10, 19)
    days = expand_occurrences(frozenset({1}), start)
    assert days[0] == start
    assert days[-1] <= start + DEFAULT_HORIZON
    assert days[-1] > start + DEFAULT_HORIZON - timedelta(weeks=1)


def test_expand_occurrences_empty_pattern():
    assert expand_occurrences(frozenset(), date(2026, 10, 19), date(2026, 12, 31)) == []
