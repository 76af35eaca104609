"""Weekday numbering and occurrence expansion for recurring schedules.

Schedules number weekdays 0 (Sunday) to 6 (Saturday).  Python's
``date.weekday()`` and ``dateutil`` both start the week on Monday, so every
conversion goes through this module.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from dateutil.rrule import FR, MO, SA, SU, TH, TU, WE, WEEKLY, rrule

# Schedule weekday (0 = Sunday) -> dateutil weekday constant
_RRULE_DAYS = {0: SU, 1: MO, 2: TU, 3: WE, 4: TH, 5: FR, 6: SA}

_DAY_NAMES = {
    0: "Sunday",
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}

# Open-ended windows are expanded this far past valid_from
DEFAULT_HORIZON = timedelta(weeks=52)


def schedule_weekday(day: date) -> int:
    """Return the weekday of *day* with 0 = Sunday."""
    return (day.weekday() + 1) % 7


def weekday_name(weekday: int) -> str:
    return _DAY_NAMES[weekday]


def dates_spanned(start: datetime, end: datetime) -> list[date]:
    """Every calendar date touched by the half-open interval ``[start, end)``."""
    last = end.date()
    if end.time() == datetime.min.time() and last > start.date():
        last -= timedelta(days=1)
    days = []
    current = start.date()
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def expand_occurrences(
    weekdays: frozenset[int],
    valid_from: date,
    valid_until: date | None = None,
) -> list[date]:
    """Expand a weekly pattern into its concrete dates within a window.

    Both ends of the window are inclusive; without *valid_until* the window
    runs for ``DEFAULT_HORIZON``.
    """
    if not weekdays:
        return []
    until = valid_until or valid_from + DEFAULT_HORIZON
    rule = rrule(
        WEEKLY,
        byweekday=[_RRULE_DAYS[d] for d in sorted(weekdays)],
        dtstart=datetime.combine(valid_from, datetime.min.time()),
        until=datetime.combine(until, datetime.min.time()),
    )
    return [dt.date() for dt in rule]
