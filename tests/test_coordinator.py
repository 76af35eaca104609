"""Tests for checking a booking for both of its subjects."""

from __future__ import annotations

from datetime import datetime, time

from academy_scheduling.domain.models import (
    BookingRequest,
    SessionPrecedence,
    SourceKind,
    SubjectRole,
)

from conftest import ACADEMY, MONDAY, TENANT, TUESDAY


def _request(start: datetime, end: datetime, athlete_id=None, coach_id=None) -> BookingRequest:
    return BookingRequest(
        tenant_id=TENANT,
        academy_id=ACADEMY,
        start_at=start,
        end_at=end,
        athlete_id=athlete_id,
        coach_id=coach_id,
    )


def test_athlete_conflict_without_coach_conflict(scenario):
    """Monday 17:00-17:30 clashes with the athlete's T1 but not with the coach's T2 (18:00-20:00)."""
    request = _request(
        datetime(2026, 10, 19, 17, 0),
        datetime(2026, 10, 19, 17, 30),
        athlete_id=scenario.athlete.id,
        coach_id=scenario.coach.id,
    )

    result = scenario.env.coordinator.check_booking(request)

    assert result.athlete_conflict is not None
    assert result.athlete_conflict.source_id == scenario.t1.id
    assert result.coach_conflict is None
    assert result.has_conflict


def test_both_subjects_are_always_checked(scenario):
    request = _request(
        datetime(2026, 10, 19, 18, 30),
        datetime(2026, 10, 19, 19, 30),
        athlete_id=scenario.athlete.id,
        coach_id=scenario.coach.id,
    )

    result = scenario.env.coordinator.check_booking(request)

    assert result.athlete_conflict.source_id == scenario.t1.id
    assert result.athlete_conflict.subject_role == SubjectRole.ATHLETE
    assert result.coach_conflict.source_id == scenario.t2.id
    assert result.coach_conflict.subject_role == SubjectRole.COACH
    assert result.primary == result.athlete_conflict
    assert result.conflicts() == [result.athlete_conflict, result.coach_conflict]


def test_coach_only_request(scenario):
    request = _request(
        datetime(2026, 10, 19, 19, 0),
        datetime(2026, 10, 19, 19, 30),
        coach_id=scenario.coach.id,
    )

    result = scenario.env.coordinator.check_booking(request)

    assert result.athlete_conflict is None
    assert result.coach_conflict.source_kind == SourceKind.TEMPLATE
    assert result.primary == result.coach_conflict


def test_free_slot_reports_no_conflict(scenario):
    request = _request(
        datetime(2026, 10, 20, 18, 0),
        datetime(2026, 10, 20, 19, 0),
        athlete_id=scenario.athlete.id,
        coach_id=scenario.coach.id,
    )

    result = scenario.env.coordinator.check_booking(request)

    assert result.athlete_conflict is None
    assert result.coach_conflict is None
    assert not result.has_conflict
    assert result.primary is None


def test_unknown_subjects_fail_open(scenario):
    request = _request(
        datetime(2026, 10, 19, 18, 0),
        datetime(2026, 10, 19, 19, 0),
        athlete_id="ghost",
        coach_id="phantom",
    )

    assert not scenario.env.coordinator.check_booking(request).has_conflict


def test_has_conflict_is_serialized(scenario):
    request = _request(
        datetime(2026, 10, 19, 18, 30),
        datetime(2026, 10, 19, 19, 30),
        athlete_id=scenario.athlete.id,
    )

    dumped = scenario.env.coordinator.check_booking(request).model_dump(mode="json")

    assert dumped["has_conflict"] is True
    assert dumped["coach_conflict"] is None
    assert dumped["athlete_conflict"]["interval"]["start_time"] == "17:00:00"


def test_candidate_for_carries_schedule_and_exclusions():
    request = BookingRequest(
        tenant_id=TENANT,
        academy_id=ACADEMY,
        on_date=TUESDAY,
        start_time=time(9),
        end_time=time(10),
        athlete_id="a",
        coach_id="c",
        exclude_session_id="s-1",
    )

    candidate = request.candidate_for(SubjectRole.COACH, "c")

    assert candidate.subject_id == "c"
    assert candidate.subject_role == SubjectRole.COACH
    assert candidate.start_at == datetime(2026, 10, 20, 9, 0)
    assert candidate.exclude_session_id == "s-1"
    assert candidate.on_date == TUESDAY


def test_unchanged_generated_session_passes_when_both_policies_count(scenario):
    session = scenario.env.session(MONDAY, time(17), time(19), template=scenario.t1)
    request = BookingRequest(
        tenant_id=TENANT,
        academy_id=ACADEMY,
        on_date=MONDAY,
        start_time=time(17),
        end_time=time(19),
        exclude_session_id=session.id,
    )
    coordinator = scenario.env.coordinator_with(SessionPrecedence.BOTH)

    assert coordinator.check_subject(request, SubjectRole.ATHLETE, scenario.athlete.id) is None
