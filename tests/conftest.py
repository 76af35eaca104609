"""Shared fixtures: fresh in-memory stores and the engine wired over them."""

from __future__ import annotations

from datetime import date, time

import pytest

from academy_scheduling.domain.models import (
    Athlete,
    AssignmentRole,
    Coach,
    CoachAssignment,
    Enrollment,
    GroupTemplateLink,
    RecurringTemplate,
    ScheduledSession,
    SessionParticipant,
    SessionPrecedence,
    SessionStatus,
    SubjectRole,
)
from academy_scheduling.repos.memory import (
    BindingRepository,
    SessionRepository,
    SubjectRepository,
    TemplateRepository,
)
from academy_scheduling.services.coordinator import BookingCoordinator
from academy_scheduling.services.resolver import ScheduleSourceResolver

TENANT = "tenant-1"
ACADEMY = "academy-1"

# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
WEDNESDAY = date(2026, 10, 21)


class Env:
    """Fresh stores plus helpers that create scoped records in them."""

    def __init__(
        self,
        subject_repo: SubjectRepository | None = None,
        binding_repo: BindingRepository | None = None,
        template_repo: TemplateRepository | None = None,
        session_repo: SessionRepository | None = None,
    ) -> None:
        self.subject_repo = subject_repo or SubjectRepository()
        self.binding_repo = binding_repo or BindingRepository()
        self.template_repo = template_repo or TemplateRepository()
        self.session_repo = session_repo or SessionRepository()
        self.resolver = ScheduleSourceResolver(
            subject_repo=self.subject_repo,
            binding_repo=self.binding_repo,
            template_repo=self.template_repo,
            session_repo=self.session_repo,
        )
        self.coordinator = BookingCoordinator(self.resolver)

    def coordinator_with(self, precedence: SessionPrecedence) -> BookingCoordinator:
        return BookingCoordinator(self.resolver, precedence=precedence)

    def athlete(self, name: str, group_id: str | None = None) -> Athlete:
        athlete = Athlete(tenant_id=TENANT, academy_id=ACADEMY, name=name, group_id=group_id)
        self.subject_repo.add_athlete(athlete)
        return athlete

    def coach(self, name: str) -> Coach:
        coach = Coach(tenant_id=TENANT, academy_id=ACADEMY, name=name)
        self.subject_repo.add_coach(coach)
        return coach

    def template(
        self,
        name: str,
        weekdays: set[int],
        start: time | None,
        end: time | None,
        group_id: str | None = None,
    ) -> RecurringTemplate:
        template = RecurringTemplate(
            tenant_id=TENANT,
            academy_id=ACADEMY,
            name=name,
            weekdays=frozenset(weekdays),
            start_time=start,
            end_time=end,
        )
        self.template_repo.add(template)
        if group_id is not None:
            self.binding_repo.link_group(GroupTemplateLink(group_id=group_id, template_id=template.id))
        return template

    def enroll(self, athlete: Athlete, template: RecurringTemplate) -> None:
        self.binding_repo.enroll(
            Enrollment(
                tenant_id=TENANT,
                academy_id=ACADEMY,
                athlete_id=athlete.id,
                template_id=template.id,
            )
        )

    def assign(
        self,
        coach: Coach,
        template: RecurringTemplate,
        role: AssignmentRole = AssignmentRole.HEAD,
    ) -> None:
        self.binding_repo.assign_coach(
            CoachAssignment(
                tenant_id=TENANT,
                academy_id=ACADEMY,
                coach_id=coach.id,
                template_id=template.id,
                role=role,
            )
        )

    def session(
        self,
        on_date: date,
        start: time | None,
        end: time | None,
        template: RecurringTemplate | None = None,
        name: str | None = None,
        status: SessionStatus = SessionStatus.SCHEDULED,
        participants: list[tuple[SubjectRole, str]] | None = None,
    ) -> ScheduledSession:
        session = ScheduledSession(
            tenant_id=TENANT,
            academy_id=ACADEMY,
            template_id=template.id if template else None,
            name=name,
            session_date=on_date,
            start_time=start,
            end_time=end,
            status=status,
        )
        self.session_repo.add(session)
        for role, subject_id in participants or []:
            self.session_repo.add_participant(
                SessionParticipant(session_id=session.id, subject_id=subject_id, subject_role=role)
            )
        return session


@pytest.fixture()
def env() -> Env:
    return Env()


@pytest.fixture()
def scenario(env: Env):
    """Athlete A in group G (T1, Monday 17:00-19:00); coach C teaches T2 (Monday 18:00-20:00) to G2."""
    t1 = env.template("Juniors", {1}, time(17, 0), time(19, 0), group_id="group-g")
    t2 = env.template("Seniors", {1}, time(18, 0), time(20, 0), group_id="group-g2")
    athlete = env.athlete("Ana", group_id="group-g")
    coach = env.coach("Carlos")
    env.assign(coach, t2)

    class Scenario:
        pass

    s = Scenario()
    s.env = env
    s.t1 = t1
    s.t2 = t2
    s.athlete = athlete
    s.coach = coach
    return s
