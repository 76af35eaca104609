"""Service for detecting scheduling conflicts against a subject's bindings."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, time

from academy_scheduling.domain.models import (
    Bindings,
    CandidateBooking,
    Conflict,
    ConflictInterval,
    ScheduleSource,
    SessionPrecedence,
    SourceKind,
)
from academy_scheduling.logging import get_logger
from academy_scheduling.services.intervals import (
    instant_overlaps,
    project_onto,
    time_of_day_overlaps,
)
from academy_scheduling.services.recurrence import (
    dates_spanned,
    expand_occurrences,
    schedule_weekday,
    weekday_name,
)

logger = get_logger(__name__)


def check_conflict(
    candidate: CandidateBooking,
    bindings: Bindings,
    precedence: SessionPrecedence = SessionPrecedence.SESSION_SUPERSEDES,
) -> Conflict | None:
    """Return the first existing commitment the candidate overlaps, or None.

    Templates are checked before sessions.  A candidate without both time
    boundaries cannot conflict.
    """
    return next(_iter_conflicts(candidate, bindings, precedence), None)


def find_conflicts(
    candidate: CandidateBooking,
    bindings: Bindings,
    precedence: SessionPrecedence = SessionPrecedence.SESSION_SUPERSEDES,
) -> list[Conflict]:
    """Return every existing commitment the candidate overlaps, in check order."""
    return list(_iter_conflicts(candidate, bindings, precedence))


def describe_conflict(conflict: Conflict) -> str:
    """Render a conflict as a message naming the class and the exact interval."""
    interval = conflict.interval
    when = ""
    if interval.on_date is not None:
        when = f" on {weekday_name(schedule_weekday(interval.on_date))} {interval.on_date.isoformat()}"
    elif interval.weekday is not None:
        when = f" on {weekday_name(interval.weekday)}s"
    hours = ""
    if interval.start_time is not None and interval.end_time is not None:
        hours = f" from {_hhmm(interval.start_time)} to {_hhmm(interval.end_time)}"
    return (
        f"Schedule conflict: the {conflict.subject_role} already has "
        f'"{conflict.source_name}"{when}{hours}.'
    )


def _hhmm(value: time) -> str:
    return value.strftime("%H:%M")


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _iter_conflicts(
    candidate: CandidateBooking,
    bindings: Bindings,
    precedence: SessionPrecedence,
) -> Iterator[Conflict]:
    if not candidate.has_boundaries:
        logger.debug(
            "candidate_without_boundaries",
            subject_id=candidate.subject_id,
            subject_role=str(candidate.subject_role),
        )
        return

    templates: list[ScheduleSource] = []
    sessions: list[ScheduleSource] = []
    for source in bindings.sources():
        # Flexible or malformed schedules never conflict
        if not source.has_boundaries:
            continue
        if source.kind == SourceKind.TEMPLATE:
            if source.id != candidate.exclude_template_id:
                templates.append(source)
        elif source.id != candidate.exclude_session_id and (
            candidate.exclude_template_id is None
            or source.template_id != candidate.exclude_template_id
        ):
            sessions.append(source)

    if candidate.is_recurring:
        yield from _recurring_conflicts(candidate, templates, sessions)
    else:
        yield from _occurrence_conflicts(candidate, bindings, templates, sessions, precedence)


def _occurrence_conflicts(
    candidate: CandidateBooking,
    bindings: Bindings,
    templates: list[ScheduleSource],
    sessions: list[ScheduleSource],
    precedence: SessionPrecedence,
) -> Iterator[Conflict]:
    days = dates_spanned(candidate.start_at, candidate.end_at)
    tz = candidate.start_at.tzinfo

    for source in templates:
        for day in days:
            if schedule_weekday(day) not in source.weekdays:
                continue
            # The session being edited replaces its template that day under any policy
            if bindings.is_edited(source.id, day):
                continue
            if precedence == SessionPrecedence.SESSION_SUPERSEDES and bindings.is_overridden(
                source.id, day
            ):
                continue
            window = project_onto(day, source.start_time, source.end_time, tz)
            if instant_overlaps(candidate.start_at, candidate.end_at, *window):
                yield _conflict(candidate, source, day)
                break

    for source in sessions:
        if source.on_date not in days:
            continue
        window = project_onto(source.on_date, source.start_time, source.end_time, tz)
        if instant_overlaps(candidate.start_at, candidate.end_at, *window):
            yield _conflict(candidate, source, source.on_date)


def _recurring_conflicts(
    candidate: CandidateBooking,
    templates: list[ScheduleSource],
    sessions: list[ScheduleSource],
) -> Iterator[Conflict]:
    for source in templates:
        common = sorted(candidate.weekdays & source.weekdays)
        if not common:
            continue
        if time_of_day_overlaps(
            candidate.start_time, candidate.end_time, source.start_time, source.end_time
        ):
            yield _conflict(candidate, source, None, weekday=common[0])

    # Without a validity window a weekly pattern has no dates to meet sessions on
    if candidate.valid_from is None:
        return
    days = set(expand_occurrences(candidate.weekdays, candidate.valid_from, candidate.valid_until))
    for source in sessions:
        if source.on_date not in days:
            continue
        if time_of_day_overlaps(
            candidate.start_time, candidate.end_time, source.start_time, source.end_time
        ):
            yield _conflict(candidate, source, source.on_date)


def _conflict(
    candidate: CandidateBooking,
    source: ScheduleSource,
    on_date: date | None,
    weekday: int | None = None,
) -> Conflict:
    if weekday is None and on_date is not None:
        weekday = schedule_weekday(on_date)
    logger.debug(
        "conflict_found",
        subject_id=candidate.subject_id,
        subject_role=str(candidate.subject_role),
        source_kind=str(source.kind),
        source_id=source.id,
    )
    return Conflict(
        subject_role=candidate.subject_role,
        source_kind=source.kind,
        source_id=source.id,
        source_name=source.name,
        template_id=source.template_id if source.kind == SourceKind.SESSION else None,
        interval=ConflictInterval(
            weekday=weekday,
            on_date=on_date,
            start_time=source.start_time,
            end_time=source.end_time,
        ),
    )
