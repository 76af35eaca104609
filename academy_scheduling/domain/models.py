"""Domain models for the schedule conflict engine."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from enum import StrEnum

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator


class SubjectRole(StrEnum):
    ATHLETE = "athlete"
    COACH = "coach"


class SessionStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SourceKind(StrEnum):
    TEMPLATE = "template"
    SESSION = "session"


class AssignmentRole(StrEnum):
    HEAD = "head"
    ASSISTANT = "assistant"


class SessionPrecedence(StrEnum):
    """Which schedule wins on a date where a template also has a generated session."""

    SESSION_SUPERSEDES = "session_supersedes"
    BOTH = "both"


UNNAMED_CLASS = "Unnamed class"


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_weekdays(value: frozenset[int] | None) -> frozenset[int] | None:
    """Weekdays are numbered 0 (Sunday) to 6 (Saturday)."""
    if value is None:
        return value
    bad = sorted(day for day in value if not 0 <= day <= 6)
    if bad:
        raise ValueError(f"weekdays must be between 0 (Sunday) and 6 (Saturday), got {bad}")
    return value


# ---------------------------------------------------------------------------
# Subjects and schedule records (owned by external stores, read by the engine)
# ---------------------------------------------------------------------------


class Athlete(BaseModel):
    id: str = Field(default_factory=_new_id)
    tenant_id: str
    academy_id: str
    name: str
    group_id: str | None = None


class Coach(BaseModel):
    id: str = Field(default_factory=_new_id)
    tenant_id: str
    academy_id: str
    name: str


class RecurringTemplate(BaseModel):
    """A weekly class definition: a set of weekdays at a fixed time-of-day.

    An empty ``weekdays`` set or absent times make the template flexible; a
    flexible template never produces a time-of-day conflict on its own.
    """

    id: str = Field(default_factory=_new_id)
    tenant_id: str
    academy_id: str
    name: str | None = None
    weekdays: frozenset[int] = frozenset()
    start_time: time | None = None
    end_time: time | None = None
    is_extra: bool = False

    @field_validator("weekdays")
    @classmethod
    def _weekdays_in_range(cls, value: frozenset[int]) -> frozenset[int]:
        return _check_weekdays(value)

    @property
    def display_name(self) -> str:
        return self.name or UNNAMED_CLASS

    @property
    def is_well_formed(self) -> bool:
        """Both times absent, or both present with end strictly after start."""
        if self.start_time is None and self.end_time is None:
            return True
        if self.start_time is None or self.end_time is None:
            return False
        return self.end_time > self.start_time


class ScheduledSession(BaseModel):
    """A concrete, date-anchored occurrence.

    ``template_id`` is set for sessions generated from a template and ``None``
    for ad-hoc bookings.
    """

    id: str = Field(default_factory=_new_id)
    tenant_id: str
    academy_id: str
    template_id: str | None = None
    name: str | None = None
    session_date: date
    start_time: time | None = None
    end_time: time | None = None
    status: SessionStatus = SessionStatus.SCHEDULED

    @property
    def is_well_formed(self) -> bool:
        if self.start_time is None and self.end_time is None:
            return True
        if self.start_time is None or self.end_time is None:
            return False
        return self.end_time > self.start_time


class GroupTemplateLink(BaseModel):
    group_id: str
    template_id: str


class Enrollment(BaseModel):
    """Direct link from an athlete to a template, independent of their group."""

    id: str = Field(default_factory=_new_id)
    tenant_id: str
    academy_id: str
    athlete_id: str
    template_id: str


class CoachAssignment(BaseModel):
    id: str = Field(default_factory=_new_id)
    tenant_id: str
    academy_id: str
    coach_id: str
    template_id: str
    role: AssignmentRole = AssignmentRole.HEAD


class SessionParticipant(BaseModel):
    """Links an ad-hoc session directly to the subject attending or teaching it."""

    session_id: str
    subject_id: str
    subject_role: SubjectRole


# ---------------------------------------------------------------------------
# Engine types
# ---------------------------------------------------------------------------


class ScheduleSource(BaseModel):
    """A template or a session, flattened into the shape the evaluator reads."""

    kind: SourceKind
    id: str
    name: str
    template_id: str | None = None
    weekdays: frozenset[int] = frozenset()
    on_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None

    @property
    def has_boundaries(self) -> bool:
        """Both times present with end after start; anything else never conflicts."""
        return (
            self.start_time is not None
            and self.end_time is not None
            and self.end_time > self.start_time
        )

    @classmethod
    def from_template(cls, template: RecurringTemplate) -> ScheduleSource:
        return cls(
            kind=SourceKind.TEMPLATE,
            id=template.id,
            name=template.display_name,
            template_id=template.id,
            weekdays=template.weekdays,
            start_time=template.start_time,
            end_time=template.end_time,
        )

    @classmethod
    def from_session(
        cls, session: ScheduledSession, template: RecurringTemplate | None = None
    ) -> ScheduleSource:
        name = session.name or (template.display_name if template else UNNAMED_CLASS)
        return cls(
            kind=SourceKind.SESSION,
            id=session.id,
            name=name,
            template_id=session.template_id,
            on_date=session.session_date,
            start_time=session.start_time,
            end_time=session.end_time,
        )


class Bindings(BaseModel):
    """Everything a subject is already committed to, as of one resolution."""

    templates: list[RecurringTemplate] = Field(default_factory=list)
    sessions: list[ScheduledSession] = Field(default_factory=list)
    # template id -> dates on which a generated session replaces the template
    overridden: dict[str, set[date]] = Field(default_factory=dict)
    # template id -> date of the session being edited, which stands in for it
    edited: dict[str, set[date]] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.templates and not self.sessions

    def is_overridden(self, template_id: str, on_date: date) -> bool:
        return on_date in self.overridden.get(template_id, set())

    def is_edited(self, template_id: str, on_date: date) -> bool:
        return on_date in self.edited.get(template_id, set())

    def sources(self) -> list[ScheduleSource]:
        """Templates first, then sessions."""
        by_id = {t.id: t for t in self.templates}
        sources = [ScheduleSource.from_template(t) for t in self.templates]
        sources.extend(
            ScheduleSource.from_session(s, by_id.get(s.template_id or ""))
            for s in self.sessions
        )
        return sources


class _ScheduleFields(BaseModel):
    """Time block shared by candidates and booking requests.

    Either an occurrence (``start_at``/``end_at``, or ``on_date`` plus
    ``start_time``/``end_time``) or a recurring pattern (``weekdays`` plus
    ``start_time``/``end_time``).  Missing boundaries are allowed and mean the
    block cannot conflict with anything.
    """

    tenant_id: str
    academy_id: str
    start_at: datetime | None = None
    end_at: datetime | None = None
    on_date: date | None = None
    weekdays: frozenset[int] | None = None
    start_time: time | None = None
    end_time: time | None = None
    valid_from: date | None = None
    valid_until: date | None = None
    exclude_template_id: str | None = None
    exclude_session_id: str | None = None

    @field_validator("weekdays")
    @classmethod
    def _weekdays_in_range(cls, value: frozenset[int] | None) -> frozenset[int] | None:
        return _check_weekdays(value)

    @model_validator(mode="after")
    def _check_shape(self) -> _ScheduleFields:
        if self.weekdays is not None and (
            self.start_at is not None or self.end_at is not None or self.on_date is not None
        ):
            raise ValueError(
                "a time block is either an occurrence or a recurring pattern, not both"
            )
        if (
            self.start_at is None
            and self.end_at is None
            and self.on_date is not None
            and self.start_time is not None
            and self.end_time is not None
        ):
            self.start_at = datetime.combine(self.on_date, self.start_time)
            self.end_at = datetime.combine(self.on_date, self.end_time)
        if self.start_at is not None and self.end_at is not None:
            if (self.start_at.tzinfo is None) != (self.end_at.tzinfo is None):
                raise ValueError("start_at and end_at must both be naive or both be aware")
            if self.end_at <= self.start_at:
                raise ValueError("end_at must be after start_at")
        elif self.start_time is not None and self.end_time is not None:
            if self.end_time <= self.start_time:
                raise ValueError("end_time must be after start_time")
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be before valid_from")
        if self.start_at is not None:
            if self.on_date is None:
                self.on_date = self.start_at.date()
            elif self.on_date != self.start_at.date():
                raise ValueError("on_date must be the date of start_at")
        return self

    @property
    def is_recurring(self) -> bool:
        return self.weekdays is not None

    @property
    def has_boundaries(self) -> bool:
        if self.is_recurring:
            return bool(self.weekdays) and self.start_time is not None and self.end_time is not None
        return self.start_at is not None and self.end_at is not None


class CandidateBooking(_ScheduleFields):
    """A proposed time block for one subject."""

    subject_id: str
    subject_role: SubjectRole


class BookingRequest(_ScheduleFields):
    """A proposed time block naming an athlete, a coach, or both."""

    athlete_id: str | None = None
    coach_id: str | None = None

    def candidate_for(self, subject_role: SubjectRole, subject_id: str) -> CandidateBooking:
        fields = self.model_dump(exclude={"athlete_id", "coach_id"})
        return CandidateBooking(subject_id=subject_id, subject_role=subject_role, **fields)


class ConflictInterval(BaseModel):
    """The existing commitment's interval that the candidate overlaps."""

    weekday: int | None = None
    on_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None


class Conflict(BaseModel):
    subject_role: SubjectRole
    source_kind: SourceKind
    source_id: str
    source_name: str
    template_id: str | None = None
    interval: ConflictInterval


class BookingConflicts(BaseModel):
    athlete_conflict: Conflict | None = None
    coach_conflict: Conflict | None = None

    @computed_field
    @property
    def has_conflict(self) -> bool:
        return self.athlete_conflict is not None or self.coach_conflict is not None

    @property
    def primary(self) -> Conflict | None:
        """The conflict to report first: the athlete's, then the coach's."""
        return self.athlete_conflict or self.coach_conflict

    def conflicts(self) -> list[Conflict]:
        return [c for c in (self.athlete_conflict, self.coach_conflict) if c is not None]


class SubjectConflict(BaseModel):
    subject_id: str
    subject_role: SubjectRole
    conflict: Conflict


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ExtraClassRequest(BaseModel):
    """A one-off class for one athlete with one coach on a single day."""

    tenant_id: str
    academy_id: str
    athlete_id: str
    coach_id: str
    start_at: datetime
    end_at: datetime
    name: str | None = None

    @field_validator("start_at", "end_at")
    @classmethod
    def _local_minute(cls, value: datetime) -> datetime:
        # Stored as the academy's local wall-clock time, to the minute
        if value.tzinfo is not None:
            raise ValueError("extra class times are academy-local and must not carry a UTC offset")
        if value.second or value.microsecond:
            raise ValueError("extra class times must fall on a whole minute")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> ExtraClassRequest:
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        if self.end_at.date() != self.start_at.date():
            raise ValueError("an extra class must start and end on the same day")
        return self


class EnrollmentRequest(BaseModel):
    tenant_id: str
    academy_id: str
    athlete_id: str
    template_id: str


class SessionUpdateRequest(BaseModel):
    """Fields left out keep their stored value; an explicit null clears a time."""

    tenant_id: str
    academy_id: str
    session_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None


class TemplateScheduleUpdate(BaseModel):
    """Fields left out keep their stored value; an explicit null clears a time."""

    tenant_id: str
    academy_id: str
    weekdays: frozenset[int] | None = None
    start_time: time | None = None
    end_time: time | None = None
    group_ids: list[str] | None = None

    @field_validator("weekdays")
    @classmethod
    def _weekdays_in_range(cls, value: frozenset[int] | None) -> frozenset[int] | None:
        return _check_weekdays(value)


class ConflictResponse(BaseModel):
    error: str = "SCHEDULE_CONFLICT"
    message: str
    conflicts: list[Conflict] = Field(default_factory=list)
    subject_conflicts: list[SubjectConflict] = Field(default_factory=list)
    conflicts_count: int = 0
