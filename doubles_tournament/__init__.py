"""Doubles round-robin scheduling: rotating partners, courts and start times."""

from doubles_tournament.exceptions import (
    InsufficientParticipants,
    MissingTeamReference,
    PartnershipConflict,
    ScheduleEditError,
    SchedulingError,
    TournamentSchedulerError,
    UnknownParticipant,
    ValidationFailure,
)
from doubles_tournament.models import (
    GeneratedSchedule,
    Match,
    Participant,
    Round,
    ScheduleOptimization,
    ScheduleResult,
    ScheduleSettings,
    Team,
    create_participants,
)
from doubles_tournament.partnership import OppositionTracker, PartnershipMatrix
from doubles_tournament.round_robin import RoundRobinScheduler, generate_round_robin
from doubles_tournament.scheduling import ScheduleGenerator, TournamentScheduler
from doubles_tournament.trackers import CourtAssignmentTracker, PlayerAvailabilityTracker
from doubles_tournament.management import (
    ConflictDetector,
    ScheduleChange,
    ScheduleChangeHistory,
    ScheduleManipulator,
)
