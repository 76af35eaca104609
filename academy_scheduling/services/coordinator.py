"""Service that checks a booking for both the athlete and the coach it names."""

from __future__ import annotations

from academy_scheduling.domain.models import (
    BookingConflicts,
    BookingRequest,
    Conflict,
    SessionPrecedence,
    SubjectRole,
)
from academy_scheduling.logging import get_logger
from academy_scheduling.services.conflicts import check_conflict
from academy_scheduling.services.resolver import ScheduleSourceResolver

logger = get_logger(__name__)


class BookingCoordinator:
    """Runs one resolve-and-evaluate pass per subject named in a booking.

    Both subjects are always checked so a caller can report every violation
    at once.
    """

    def __init__(
        self,
        resolver: ScheduleSourceResolver,
        precedence: SessionPrecedence = SessionPrecedence.SESSION_SUPERSEDES,
    ) -> None:
        self.resolver = resolver
        self.precedence = precedence

    def check_booking(self, request: BookingRequest) -> BookingConflicts:
        athlete_conflict = None
        coach_conflict = None
        if request.athlete_id is not None:
            athlete_conflict = self.check_subject(request, SubjectRole.ATHLETE, request.athlete_id)
        if request.coach_id is not None:
            coach_conflict = self.check_subject(request, SubjectRole.COACH, request.coach_id)
        return BookingConflicts(athlete_conflict=athlete_conflict, coach_conflict=coach_conflict)

    def check_subject(
        self, request: BookingRequest, subject_role: SubjectRole, subject_id: str
    ) -> Conflict | None:
        candidate = request.candidate_for(subject_role, subject_id)
        bindings = self.resolver.resolve(
            candidate.tenant_id,
            candidate.academy_id,
            subject_id,
            subject_role,
            exclude_template_id=candidate.exclude_template_id,
            exclude_session_id=candidate.exclude_session_id,
        )
        conflict = check_conflict(candidate, bindings, self.precedence)
        if conflict is not None:
            logger.warning(
                "booking_conflict_detected",
                academy_id=candidate.academy_id,
                subject_id=subject_id,
                subject_role=str(subject_role),
                source_kind=str(conflict.source_kind),
                source_id=conflict.source_id,
            )
        return conflict
