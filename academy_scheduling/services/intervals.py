"""Half-open interval overlap for time-of-day and datetime values.

Two intervals ``[s1, e1)`` and ``[s2, e2)`` overlap iff ``s1 < e2 and e1 > s2``.
A block ending at 18:00 and another starting at 18:00 do NOT overlap, so
back-to-back bookings are allowed.  Any absent boundary means "no overlap".
"""

from __future__ import annotations

from datetime import date, datetime, time, tzinfo


def minutes_since_midnight(value: time) -> int:
    return value.hour * 60 + value.minute


def time_of_day_overlaps(
    start1: time | None,
    end1: time | None,
    start2: time | None,
    end2: time | None,
) -> bool:
    """Return True if two time-of-day windows overlap on the same day."""
    if start1 is None or end1 is None or start2 is None or end2 is None:
        return False
    return minutes_since_midnight(start1) < minutes_since_midnight(
        end2
    ) and minutes_since_midnight(end1) > minutes_since_midnight(start2)


def instant_overlaps(
    start1: datetime | None,
    end1: datetime | None,
    start2: datetime | None,
    end2: datetime | None,
) -> bool:
    """Return True if two datetime intervals overlap."""
    if start1 is None or end1 is None or start2 is None or end2 is None:
        return False
    return start1 < end2 and end1 > start2


def project_onto(
    day: date,
    start: time | None,
    end: time | None,
    tz: tzinfo | None = None,
) -> tuple[datetime, datetime] | None:
    """Anchor a time-of-day window to a calendar date.

    *tz* is attached to both ends so the result compares with an aware
    candidate; schedule times themselves carry no timezone.
    """
    if start is None or end is None:
        return None
    return (
        datetime.combine(day, start, tzinfo=tz),
        datetime.combine(day, end, tzinfo=tz),
    )
