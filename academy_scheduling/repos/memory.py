"""In-memory subject, binding, template and session stores.

Every lookup is scoped by tenant and academy where the record carries them.
"""

from __future__ import annotations

from collections.abc import Iterable

from academy_scheduling.domain.models import (
    Athlete,
    Coach,
    CoachAssignment,
    Enrollment,
    GroupTemplateLink,
    RecurringTemplate,
    ScheduledSession,
    SessionParticipant,
    SubjectRole,
)


def _in_scope(record, tenant_id: str, academy_id: str) -> bool:
    return record.tenant_id == tenant_id and record.academy_id == academy_id


class SubjectRepository:
    """Dict-backed store for athletes and coaches, keyed by id."""

    def __init__(self) -> None:
        self._athletes: dict[str, Athlete] = {}
        self._coaches: dict[str, Coach] = {}

    def add_athlete(self, athlete: Athlete) -> None:
        self._athletes[athlete.id] = athlete

    def add_coach(self, coach: Coach) -> None:
        self._coaches[coach.id] = coach

    def get_athlete(self, tenant_id: str, academy_id: str, athlete_id: str) -> Athlete | None:
        athlete = self._athletes.get(athlete_id)
        if athlete is None or not _in_scope(athlete, tenant_id, academy_id):
            return None
        return athlete

    def get_coach(self, tenant_id: str, academy_id: str, coach_id: str) -> Coach | None:
        coach = self._coaches.get(coach_id)
        if coach is None or not _in_scope(coach, tenant_id, academy_id):
            return None
        return coach

    def list_athletes_in_groups(
        self, tenant_id: str, academy_id: str, group_ids: Iterable[str]
    ) -> list[Athlete]:
        wanted = set(group_ids)
        return [
            a
            for a in self._athletes.values()
            if a.group_id in wanted and _in_scope(a, tenant_id, academy_id)
        ]


class TemplateRepository:
    """Dict-backed store for RecurringTemplate instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, RecurringTemplate] = {}

    def add(self, template: RecurringTemplate) -> None:
        self._store[template.id] = template

    def get(self, tenant_id: str, academy_id: str, template_id: str) -> RecurringTemplate | None:
        template = self._store.get(template_id)
        if template is None or not _in_scope(template, tenant_id, academy_id):
            return None
        return template

    def get_many(
        self, tenant_id: str, academy_id: str, template_ids: Iterable[str]
    ) -> list[RecurringTemplate]:
        """Return the templates in the order their ids were given, skipping unknown ids."""
        found = []
        for template_id in template_ids:
            template = self.get(tenant_id, academy_id, template_id)
            if template is not None:
                found.append(template)
        return found

    def update(self, template: RecurringTemplate) -> None:
        self._store[template.id] = template


class BindingRepository:
    """List-backed store for group links, enrollments and coach assignments."""

    def __init__(self) -> None:
        self._group_links: list[GroupTemplateLink] = []
        self._enrollments: list[Enrollment] = []
        self._assignments: list[CoachAssignment] = []

    def link_group(self, link: GroupTemplateLink) -> None:
        self._group_links.append(link)

    def enroll(self, enrollment: Enrollment) -> None:
        self._enrollments.append(enrollment)

    def assign_coach(self, assignment: CoachAssignment) -> None:
        self._assignments.append(assignment)

    def template_ids_for_group(self, group_id: str) -> list[str]:
        return [link.template_id for link in self._group_links if link.group_id == group_id]

    def group_ids_for_template(self, template_id: str) -> list[str]:
        return [link.group_id for link in self._group_links if link.template_id == template_id]

    def replace_groups_for_template(self, template_id: str, group_ids: Iterable[str]) -> None:
        self._group_links = [
            link for link in self._group_links if link.template_id != template_id
        ]
        for group_id in group_ids:
            self._group_links.append(GroupTemplateLink(group_id=group_id, template_id=template_id))

    def enrolled_template_ids(self, tenant_id: str, academy_id: str, athlete_id: str) -> list[str]:
        return [
            e.template_id
            for e in self._enrollments
            if e.athlete_id == athlete_id and _in_scope(e, tenant_id, academy_id)
        ]

    def enrolled_athlete_ids(self, tenant_id: str, academy_id: str, template_id: str) -> list[str]:
        return [
            e.athlete_id
            for e in self._enrollments
            if e.template_id == template_id and _in_scope(e, tenant_id, academy_id)
        ]

    def assigned_template_ids(self, tenant_id: str, academy_id: str, coach_id: str) -> list[str]:
        """Templates the coach teaches, whatever the assignment role."""
        return [
            a.template_id
            for a in self._assignments
            if a.coach_id == coach_id and _in_scope(a, tenant_id, academy_id)
        ]

    def assigned_coach_ids(self, tenant_id: str, academy_id: str, template_id: str) -> list[str]:
        return [
            a.coach_id
            for a in self._assignments
            if a.template_id == template_id and _in_scope(a, tenant_id, academy_id)
        ]


class SessionRepository:
    """Dict-backed store for ScheduledSession instances plus ad-hoc participants."""

    def __init__(self) -> None:
        self._store: dict[str, ScheduledSession] = {}
        self._participants: list[SessionParticipant] = []

    def add(self, session: ScheduledSession) -> None:
        self._store[session.id] = session

    def update(self, session: ScheduledSession) -> None:
        self._store[session.id] = session

    def get(self, tenant_id: str, academy_id: str, session_id: str) -> ScheduledSession | None:
        session = self._store.get(session_id)
        if session is None or not _in_scope(session, tenant_id, academy_id):
            return None
        return session

    def add_participant(self, participant: SessionParticipant) -> None:
        self._participants.append(participant)

    def participants_for(self, session_id: str) -> list[SessionParticipant]:
        return [p for p in self._participants if p.session_id == session_id]

    def list_for_templates(
        self, tenant_id: str, academy_id: str, template_ids: Iterable[str]
    ) -> list[ScheduledSession]:
        """Sessions generated from any of the templates, cancelled ones included."""
        wanted = set(template_ids)
        return [
            s
            for s in self._store.values()
            if s.template_id in wanted and _in_scope(s, tenant_id, academy_id)
        ]

    def list_adhoc_for_subject(
        self, tenant_id: str, academy_id: str, subject_id: str, subject_role: SubjectRole
    ) -> list[ScheduledSession]:
        """Sessions linked straight to the subject, with no template behind them."""
        session_ids = [
            p.session_id
            for p in self._participants
            if p.subject_id == subject_id and p.subject_role == subject_role
        ]
        sessions = []
        for session_id in session_ids:
            session = self.get(tenant_id, academy_id, session_id)
            if session is not None and session.template_id is None:
                sessions.append(session)
        return sessions
