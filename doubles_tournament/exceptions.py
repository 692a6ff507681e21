"""Exceptions raised by the doubles round-robin scheduler."""

from typing import List, Optional


class TournamentSchedulerError(Exception):
    """Base exception for all scheduling errors."""

    pass


class InsufficientParticipants(TournamentSchedulerError):
    """Raised when too few participants are supplied to build a round robin."""

    pass


class UnknownParticipant(TournamentSchedulerError):
    """Raised when a participant id is not part of the current run."""

    pass


class PartnershipConflict(TournamentSchedulerError):
    """Raised when a partnership is about to be used a second time.

    This points at a defect in the rotation itself, never at bad input.
    """

    pass


class MissingTeamReference(TournamentSchedulerError):
    """Raised when a match references a team that does not exist."""

    pass


class SchedulingError(TournamentSchedulerError):
    """Raised when a schedule cannot be produced.

    Carries the full list of problems in ``errors``.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class ValidationFailure(SchedulingError):
    """Raised when generated rounds violate the round-robin invariants."""

    pass


class ScheduleEditError(SchedulingError):
    """Raised when a manual change to a timed schedule is rejected."""

    pass
