"""Error hierarchy for the schedule conflict engine.

Only failures that must stop a booking are exceptions.  A candidate without
time boundaries or a malformed stored schedule is not an error: the engine
reports "no conflict" for it and logs the fact instead.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    pass


class StoreUnavailableError(SchedulingError):
    """A backing store could not be queried.

    Never interpreted as "no bindings": a check that could not see the
    subject's commitments must not approve a booking.
    """

    pass


class SubjectNotFoundError(SchedulingError):
    """The athlete or coach named by a caller does not exist in the academy.

    The resolver itself fails open for unknown subjects; callers raise this
    before trusting a no-conflict answer.
    """

    def __init__(self, subject_role: str, subject_id: str) -> None:
        super().__init__(f"{subject_role} {subject_id} not found")
        self.subject_role = subject_role
        self.subject_id = subject_id
