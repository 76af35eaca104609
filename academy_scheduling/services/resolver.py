"""Service for resolving what a subject is already committed to.

Bindings are resolved fresh on every call: group membership, enrollments
and coach assignments change at any time and a stale answer would accept or
reject bookings incorrectly.
"""

from __future__ import annotations

from datetime import date

from academy_scheduling.domain.models import (
    Bindings,
    RecurringTemplate,
    ScheduledSession,
    SessionStatus,
    SubjectRole,
)
from academy_scheduling.logging import get_logger
from academy_scheduling.repos.memory import (
    BindingRepository,
    SessionRepository,
    SubjectRepository,
    TemplateRepository,
)

logger = get_logger(__name__)


class ScheduleSourceResolver:
    """Read-only view over the subject, binding, template and session stores.

    Store errors propagate unchanged; only an unknown subject resolves to
    empty bindings.
    """

    def __init__(
        self,
        subject_repo: SubjectRepository,
        binding_repo: BindingRepository,
        template_repo: TemplateRepository,
        session_repo: SessionRepository,
    ) -> None:
        self.subject_repo = subject_repo
        self.binding_repo = binding_repo
        self.template_repo = template_repo
        self.session_repo = session_repo

    def resolve(
        self,
        tenant_id: str,
        academy_id: str,
        subject_id: str,
        subject_role: SubjectRole,
        exclude_template_id: str | None = None,
        exclude_session_id: str | None = None,
    ) -> Bindings:
        if subject_role == SubjectRole.ATHLETE:
            template_ids = self._athlete_template_ids(tenant_id, academy_id, subject_id)
        else:
            template_ids = self._coach_template_ids(tenant_id, academy_id, subject_id)

        if template_ids is None:
            logger.debug(
                "subject_not_found",
                subject_id=subject_id,
                subject_role=str(subject_role),
                academy_id=academy_id,
            )
            return Bindings()

        templates = [
            t
            for t in self.template_repo.get_many(tenant_id, academy_id, template_ids)
            if t.id != exclude_template_id
        ]
        resolved_ids = [t.id for t in templates]

        generated = self.session_repo.list_for_templates(tenant_id, academy_id, resolved_ids)
        adhoc = self.session_repo.list_adhoc_for_subject(
            tenant_id, academy_id, subject_id, subject_role
        )

        # Any generated session, whatever its status, replaces its template that day
        overridden: dict[str, set[date]] = {}
        edited: dict[str, set[date]] = {}
        for session in generated:
            overridden.setdefault(session.template_id, set()).add(session.session_date)
            if session.id == exclude_session_id:
                edited.setdefault(session.template_id, set()).add(session.session_date)

        sessions: list[ScheduledSession] = []
        seen: set[str] = set()
        for session in generated + adhoc:
            if session.id in seen:
                continue
            seen.add(session.id)
            if session.status == SessionStatus.CANCELLED or session.id == exclude_session_id:
                continue
            sessions.append(session)

        self._report_malformed(templates, sessions)

        return Bindings(
            templates=templates, sessions=sessions, overridden=overridden, edited=edited
        )

    # ------------------------------------------------------------------
    # Binding paths
    # ------------------------------------------------------------------

    def _athlete_template_ids(
        self, tenant_id: str, academy_id: str, athlete_id: str
    ) -> list[str] | None:
        """Group templates followed by directly enrolled ones, de-duplicated."""
        athlete = self.subject_repo.get_athlete(tenant_id, academy_id, athlete_id)
        if athlete is None:
            return None

        template_ids: list[str] = []
        if athlete.group_id:
            template_ids.extend(self.binding_repo.template_ids_for_group(athlete.group_id))
        template_ids.extend(
            self.binding_repo.enrolled_template_ids(tenant_id, academy_id, athlete_id)
        )
        return list(dict.fromkeys(template_ids))

    def _coach_template_ids(
        self, tenant_id: str, academy_id: str, coach_id: str
    ) -> list[str] | None:
        coach = self.subject_repo.get_coach(tenant_id, academy_id, coach_id)
        if coach is None:
            return None
        return list(
            dict.fromkeys(self.binding_repo.assigned_template_ids(tenant_id, academy_id, coach_id))
        )

    @staticmethod
    def _report_malformed(
        templates: list[RecurringTemplate], sessions: list[ScheduledSession]
    ) -> None:
        for template in templates:
            if not template.is_well_formed:
                logger.warning(
                    "schedule_source_malformed",
                    source_kind="template",
                    source_id=template.id,
                    start_time=str(template.start_time),
                    end_time=str(template.end_time),
                )
        for session in sessions:
            if not session.is_well_formed:
                logger.warning(
                    "schedule_source_malformed",
                    source_kind="session",
                    source_id=session.id,
                    session_date=session.session_date.isoformat(),
                    start_time=str(session.start_time),
                    end_time=str(session.end_time),
                )
