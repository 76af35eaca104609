"""FastAPI application: booking flows guarded by the schedule conflict engine."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from academy_scheduling.config import get_settings
from academy_scheduling.domain.models import (
    BookingConflicts,
    BookingRequest,
    CoachAssignment,
    ConflictResponse,
    Enrollment,
    EnrollmentRequest,
    ExtraClassRequest,
    RecurringTemplate,
    ScheduledSession,
    SessionParticipant,
    SessionUpdateRequest,
    SubjectConflict,
    SubjectRole,
    TemplateScheduleUpdate,
)
from academy_scheduling.errors import StoreUnavailableError, SubjectNotFoundError
from academy_scheduling.logging import get_logger, setup_logging
from academy_scheduling.repos.memory import (
    BindingRepository,
    SessionRepository,
    SubjectRepository,
    TemplateRepository,
)
from academy_scheduling.services.conflicts import describe_conflict
from academy_scheduling.services.coordinator import BookingCoordinator
from academy_scheduling.services.resolver import ScheduleSourceResolver
from academy_scheduling.services.templates import (
    bound_subject_ids,
    find_template_conflicts,
    merged_schedule,
)

settings = get_settings()
setup_logging(json_output=settings.log_json, log_level=settings.log_level)
logger = get_logger(__name__)

app = FastAPI(title="Academy Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
subject_repo = SubjectRepository()
binding_repo = BindingRepository()
template_repo = TemplateRepository()
session_repo = SessionRepository()

resolver = ScheduleSourceResolver(
    subject_repo=subject_repo,
    binding_repo=binding_repo,
    template_repo=template_repo,
    session_repo=session_repo,
)
coordinator = BookingCoordinator(resolver, precedence=settings.session_precedence)


# ── Error handlers ────────────────────────────────────────────────────


@app.exception_handler(StoreUnavailableError)
def _store_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("store_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"error": "STORE_UNAVAILABLE", "message": str(exc)},
    )


@app.exception_handler(SubjectNotFoundError)
def _subject_not_found(request: Request, exc: SubjectNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": f"{exc.subject_role.upper()}_NOT_FOUND", "message": str(exc)},
    )


def _require_subject(
    tenant_id: str, academy_id: str, subject_role: SubjectRole, subject_id: str
) -> None:
    """Fail closed: a no-conflict answer means nothing for a subject that does not exist."""
    if subject_role == SubjectRole.ATHLETE:
        found = subject_repo.get_athlete(tenant_id, academy_id, subject_id)
    else:
        found = subject_repo.get_coach(tenant_id, academy_id, subject_id)
    if found is None:
        raise SubjectNotFoundError(str(subject_role), subject_id)


def _reject_booking(conflicts: BookingConflicts) -> HTTPException:
    body = ConflictResponse(
        message=describe_conflict(conflicts.primary),
        conflicts=conflicts.conflicts(),
        conflicts_count=len(conflicts.conflicts()),
    )
    return HTTPException(status_code=409, detail=body.model_dump(mode="json"))


def _reject_subjects(found: list[SubjectConflict]) -> HTTPException:
    count = len(found)
    message = (
        f"Cannot save this schedule: {count} "
        f"{'person already has' if count == 1 else 'people already have'} "
        "another class in that slot."
    )
    body = ConflictResponse(
        message=message,
        conflicts=[c.conflict for c in found],
        subject_conflicts=found,
        conflicts_count=count,
    )
    return HTTPException(status_code=409, detail=body.model_dump(mode="json"))


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/conflicts/check", response_model=BookingConflicts)
def check_booking(payload: BookingRequest) -> BookingConflicts:
    """Report the athlete's and the coach's conflicts for a proposed time block."""
    if payload.athlete_id is not None:
        _require_subject(payload.tenant_id, payload.academy_id, SubjectRole.ATHLETE, payload.athlete_id)
    if payload.coach_id is not None:
        _require_subject(payload.tenant_id, payload.academy_id, SubjectRole.COACH, payload.coach_id)
    return coordinator.check_booking(payload)


@app.post("/extra-classes", response_model=ScheduledSession, status_code=201)
def create_extra_class(payload: ExtraClassRequest) -> ScheduledSession:
    """Book a one-off class for an athlete with a coach, rejecting double bookings."""
    athlete = subject_repo.get_athlete(payload.tenant_id, payload.academy_id, payload.athlete_id)
    if athlete is None:
        raise SubjectNotFoundError(str(SubjectRole.ATHLETE), payload.athlete_id)
    _require_subject(payload.tenant_id, payload.academy_id, SubjectRole.COACH, payload.coach_id)

    conflicts = coordinator.check_booking(
        BookingRequest(
            tenant_id=payload.tenant_id,
            academy_id=payload.academy_id,
            athlete_id=payload.athlete_id,
            coach_id=payload.coach_id,
            start_at=payload.start_at,
            end_at=payload.end_at,
        )
    )
    if conflicts.has_conflict:
        raise _reject_booking(conflicts)

    session = ScheduledSession(
        tenant_id=payload.tenant_id,
        academy_id=payload.academy_id,
        name=payload.name or f"Extra class - {athlete.name} - {payload.start_at:%d %b}",
        session_date=payload.start_at.date(),
        start_time=payload.start_at.time(),
        end_time=payload.end_at.time(),
    )
    session_repo.add(session)
    session_repo.add_participant(
        SessionParticipant(
            session_id=session.id, subject_id=payload.athlete_id, subject_role=SubjectRole.ATHLETE
        )
    )
    session_repo.add_participant(
        SessionParticipant(
            session_id=session.id, subject_id=payload.coach_id, subject_role=SubjectRole.COACH
        )
    )
    logger.info("extra_class_created", session_id=session.id, athlete_id=payload.athlete_id)
    return session


@app.put("/sessions/{session_id}", response_model=ScheduledSession)
def update_session(session_id: str, payload: SessionUpdateRequest) -> ScheduledSession:
    """Move or retime a session, checking everyone attending it except against itself."""
    session = session_repo.get(payload.tenant_id, payload.academy_id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    given = payload.model_fields_set
    changes = {
        field: getattr(payload, field)
        for field in ("session_date", "start_time", "end_time")
        if field in given and (field != "session_date" or payload.session_date is not None)
    }
    edited = session.model_copy(update=changes)
    if (
        edited.start_time is not None
        and edited.end_time is not None
        and edited.end_time <= edited.start_time
    ):
        raise HTTPException(status_code=422, detail="end_time must be after start_time")

    subjects: dict[tuple[SubjectRole, str], None] = {}
    for participant in session_repo.participants_for(session.id):
        subjects[(participant.subject_role, participant.subject_id)] = None
    if session.template_id is not None:
        template = template_repo.get(payload.tenant_id, payload.academy_id, session.template_id)
        if template is not None:
            athlete_ids, coach_ids = bound_subject_ids(template, binding_repo, subject_repo)
            for athlete_id in athlete_ids:
                subjects[(SubjectRole.ATHLETE, athlete_id)] = None
            for coach_id in coach_ids:
                subjects[(SubjectRole.COACH, coach_id)] = None

    request = BookingRequest(
        tenant_id=payload.tenant_id,
        academy_id=payload.academy_id,
        on_date=edited.session_date,
        start_time=edited.start_time,
        end_time=edited.end_time,
        exclude_session_id=session.id,
    )
    found: list[SubjectConflict] = []
    for role, subject_id in subjects:
        conflict = coordinator.check_subject(request, role, subject_id)
        if conflict is not None:
            found.append(SubjectConflict(subject_id=subject_id, subject_role=role, conflict=conflict))
    if found:
        raise _reject_subjects(found)

    session_repo.update(edited)
    return edited


@app.post("/enrollments", response_model=Enrollment, status_code=201)
def enroll_athlete(payload: EnrollmentRequest) -> Enrollment:
    """Enroll an athlete in a recurring class if it fits their week."""
    _require_subject(payload.tenant_id, payload.academy_id, SubjectRole.ATHLETE, payload.athlete_id)
    template = template_repo.get(payload.tenant_id, payload.academy_id, payload.template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Class not found")

    conflict = coordinator.check_subject(
        BookingRequest(
            tenant_id=payload.tenant_id,
            academy_id=payload.academy_id,
            weekdays=template.weekdays,
            start_time=template.start_time,
            end_time=template.end_time,
            exclude_template_id=template.id,
        ),
        SubjectRole.ATHLETE,
        payload.athlete_id,
    )
    if conflict is not None:
        raise _reject_booking(BookingConflicts(athlete_conflict=conflict))

    enrollment = Enrollment(
        tenant_id=payload.tenant_id,
        academy_id=payload.academy_id,
        athlete_id=payload.athlete_id,
        template_id=template.id,
    )
    binding_repo.enroll(enrollment)
    return enrollment


@app.put("/templates/{template_id}/schedule", response_model=RecurringTemplate)
def update_template_schedule(template_id: str, payload: TemplateScheduleUpdate) -> RecurringTemplate:
    """Change a class's weekdays, times or groups once every bound person still fits."""
    template = template_repo.get(payload.tenant_id, payload.academy_id, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Class not found")

    weekdays, start_time, end_time = merged_schedule(template, payload)
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise HTTPException(status_code=422, detail="end_time must be after start_time")

    found = find_template_conflicts(
        template,
        weekdays,
        start_time,
        end_time,
        coordinator=coordinator,
        binding_repo=binding_repo,
        subject_repo=subject_repo,
        group_ids=payload.group_ids,
    )
    if found:
        raise _reject_subjects(found)

    updated = template.model_copy(
        update={"weekdays": weekdays, "start_time": start_time, "end_time": end_time}
    )
    template_repo.update(updated)
    if payload.group_ids is not None:
        binding_repo.replace_groups_for_template(template.id, payload.group_ids)
    return updated


@app.post("/coach-assignments", response_model=CoachAssignment, status_code=201)
def assign_coach(payload: CoachAssignment) -> CoachAssignment:
    """Assign a coach to a recurring class if it fits their week."""
    _require_subject(payload.tenant_id, payload.academy_id, SubjectRole.COACH, payload.coach_id)
    template = template_repo.get(payload.tenant_id, payload.academy_id, payload.template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Class not found")

    conflict = coordinator.check_subject(
        BookingRequest(
            tenant_id=payload.tenant_id,
            academy_id=payload.academy_id,
            weekdays=template.weekdays,
            start_time=template.start_time,
            end_time=template.end_time,
            exclude_template_id=template.id,
        ),
        SubjectRole.COACH,
        payload.coach_id,
    )
    if conflict is not None:
        raise _reject_booking(BookingConflicts(coach_conflict=conflict))

    binding_repo.assign_coach(payload)
    return payload
