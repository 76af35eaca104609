"""Service for re-validating a template's schedule against everyone bound to it."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import time

from academy_scheduling.domain.models import (
    BookingRequest,
    RecurringTemplate,
    SubjectConflict,
    SubjectRole,
    TemplateScheduleUpdate,
)
from academy_scheduling.logging import get_logger
from academy_scheduling.repos.memory import BindingRepository, SubjectRepository
from academy_scheduling.services.coordinator import BookingCoordinator

logger = get_logger(__name__)


def merged_schedule(
    template: RecurringTemplate, update: TemplateScheduleUpdate
) -> tuple[frozenset[int], time | None, time | None]:
    """Apply the fields an update explicitly sets on top of the stored template.

    An explicit ``null`` clears a time; an omitted field keeps the stored one.
    """
    given = update.model_fields_set
    weekdays = template.weekdays
    if "weekdays" in given and update.weekdays is not None:
        weekdays = update.weekdays
    start_time = update.start_time if "start_time" in given else template.start_time
    end_time = update.end_time if "end_time" in given else template.end_time
    return weekdays, start_time, end_time


def bound_subject_ids(
    template: RecurringTemplate,
    binding_repo: BindingRepository,
    subject_repo: SubjectRepository,
    group_ids: Iterable[str] | None = None,
) -> tuple[list[str], list[str]]:
    """Return the athlete ids and coach ids bound to *template*.

    Athletes are the members of the template's groups (or of *group_ids* when
    the groups are being replaced) plus its direct enrollments.
    """
    if group_ids is None:
        group_ids = binding_repo.group_ids_for_template(template.id)
    members = subject_repo.list_athletes_in_groups(
        template.tenant_id, template.academy_id, group_ids
    )
    athlete_ids = list(
        dict.fromkeys(
            [a.id for a in members]
            + binding_repo.enrolled_athlete_ids(template.tenant_id, template.academy_id, template.id)
        )
    )
    coach_ids = list(
        dict.fromkeys(
            binding_repo.assigned_coach_ids(template.tenant_id, template.academy_id, template.id)
        )
    )
    return athlete_ids, coach_ids


def find_template_conflicts(
    template: RecurringTemplate,
    weekdays: frozenset[int],
    start_time: time | None,
    end_time: time | None,
    coordinator: BookingCoordinator,
    binding_repo: BindingRepository,
    subject_repo: SubjectRepository,
    group_ids: Iterable[str] | None = None,
) -> list[SubjectConflict]:
    """Check a proposed weekly pattern for every athlete and coach bound to *template*.

    The template is excluded from each subject's own commitments.  Returns
    one entry per conflicting subject.
    """
    request = BookingRequest(
        tenant_id=template.tenant_id,
        academy_id=template.academy_id,
        weekdays=weekdays,
        start_time=start_time,
        end_time=end_time,
        exclude_template_id=template.id,
    )
    if not request.has_boundaries:
        logger.info("template_validation_skipped", template_id=template.id)
        return []

    athlete_ids, coach_ids = bound_subject_ids(template, binding_repo, subject_repo, group_ids)

    found: list[SubjectConflict] = []
    for role, subject_ids in ((SubjectRole.ATHLETE, athlete_ids), (SubjectRole.COACH, coach_ids)):
        for subject_id in subject_ids:
            conflict = coordinator.check_subject(request, role, subject_id)
            if conflict is not None:
                found.append(
                    SubjectConflict(subject_id=subject_id, subject_role=role, conflict=conflict)
                )

    logger.info(
        "template_validated",
        template_id=template.id,
        athletes_checked=len(athlete_ids),
        coaches_checked=len(coach_ids),
        conflicts=len(found),
    )
    return found
