"""Manual edits to a timed schedule: reschedules, court moves, round swaps, undo."""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Literal, Optional, Tuple

from doubles_tournament.exceptions import ScheduleEditError
from doubles_tournament.models import (
    GeneratedSchedule,
    Match,
    Round,
    ScheduleSettings,
    Team,
)
from doubles_tournament.validation import ConstraintValidator

logger = logging.getLogger(__name__)

ChangeType = Literal["match-reschedule", "court-reassign", "round-swap"]
UNDOABLE_CHANGES = ("match-reschedule", "court-reassign", "round-swap")


def _new_change_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class ScheduleChange:
    """One recorded edit with enough state to revert it"""

    change_type: ChangeType
    description: str
    old_value: Dict[str, Any]
    new_value: Dict[str, Any]
    match_id: Optional[str] = None
    round_id: Optional[str] = None
    id: str = field(default_factory=_new_change_id)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RoundSwapValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class ScheduleChangeHistory:
    """Most recent change first, capped at ``max_history_size`` entries"""

    def __init__(self, max_history_size: int = 50):
        if max_history_size < 1:
            raise ValueError("History size must be at least 1")
        self.max_history_size = max_history_size
        self._changes: List[ScheduleChange] = []

    def add_change(self, change: ScheduleChange) -> ScheduleChange:
        self._changes.insert(0, change)
        del self._changes[self.max_history_size :]
        return change

    def get_history(self) -> List[ScheduleChange]:
        return list(self._changes)

    def get_last_change(self) -> Optional[ScheduleChange]:
        return self._changes[0] if self._changes else None

    def can_undo(self) -> bool:
        return self.get_undoable_change() is not None

    def get_undoable_change(self) -> Optional[ScheduleChange]:
        for change in self._changes:
            if change.change_type in UNDOABLE_CHANGES:
                return change
        return None

    def remove_change(self, change: ScheduleChange) -> None:
        self._changes.remove(change)

    def clear(self) -> None:
        self._changes.clear()

    def __len__(self) -> int:
        return len(self._changes)


class ConflictDetector:
    """Conflict checks for schedules that are being edited by hand"""

    @staticmethod
    def detect_conflicts(
        matches: List[Match], teams: Dict[str, Team], match_duration: int
    ) -> Tuple[bool, List[str]]:
        """Court double bookings and player overlaps across ``matches``"""
        _, court_violations = ConstraintValidator.validate_court_conflicts(
            matches, match_duration
        )
        _, player_violations = ConstraintValidator.validate_player_overlaps(
            matches, teams, match_duration
        )
        violations = court_violations + player_violations
        return len(violations) == 0, violations

    @staticmethod
    def validate_match_reschedule(
        match: Match,
        new_time: datetime,
        new_court: int,
        all_matches: List[Match],
        teams: Dict[str, Team],
        match_duration: int,
        court_count: Optional[int] = None,
    ) -> Tuple[bool, List[str]]:
        """Check a proposed time/court for ``match`` against every other match.

        Conflicts that already exist between other matches are not reported.
        """
        violations = []
        if court_count is not None and not 1 <= new_court <= court_count:
            violations.append(f"Court {new_court} does not exist (courts 1-{court_count})")

        candidate = replace(match, scheduled_time=new_time, court_number=new_court)
        for other in all_matches:
            if other.id == match.id or other.scheduled_time is None:
                continue
            pair = [other, candidate]
            _, court_violations = ConstraintValidator.validate_court_conflicts(
                pair, match_duration
            )
            _, player_violations = ConstraintValidator.validate_player_overlaps(
                pair, teams, match_duration
            )
            violations.extend(court_violations)
            violations.extend(player_violations)

        violations = list(dict.fromkeys(violations))
        return len(violations) == 0, violations


class ScheduleManipulator:
    """Apply and revert edits on a generated schedule.

    Matches and rounds are edited in place, so a ``GeneratedSchedule`` stays
    the single source of truth. Every applied edit is recorded in ``history``.
    """

    def __init__(
        self,
        schedule: GeneratedSchedule,
        settings: ScheduleSettings,
        history: Optional[ScheduleChangeHistory] = None,
    ):
        self.schedule = schedule
        self.settings = settings
        self.history = history if history is not None else ScheduleChangeHistory()

    def get_match(self, match_id: str) -> Match:
        for match in self.schedule.scheduled_matches:
            if match.id == match_id:
                return match
        raise ScheduleEditError(f"Match {match_id} not found")

    def get_round(self, round_number: int) -> Round:
        for round_ in self.schedule.rounds:
            if round_.round_number == round_number:
                return round_
        raise ScheduleEditError(f"Round {round_number} not found")

    def detect_conflicts(self) -> Tuple[bool, List[str]]:
        return ConflictDetector.detect_conflicts(
            self.schedule.scheduled_matches,
            self.schedule.team_lookup(),
            self.settings.match_duration,
        )

    def validate_match_reschedule(
        self, match: Match, new_time: datetime, new_court: int
    ) -> Tuple[bool, List[str]]:
        return ConflictDetector.validate_match_reschedule(
            match,
            new_time,
            new_court,
            self.schedule.scheduled_matches,
            self.schedule.team_lookup(),
            self.settings.match_duration,
            self.settings.court_count,
        )

    def reschedule_match(
        self, match: Match, new_time: datetime, new_court: int, force: bool = False
    ) -> ScheduleChange:
        """Move ``match`` to a new start time and court.

        Raises ScheduleEditError when the move conflicts with another match,
        unless ``force`` is set.
        """
        valid, violations = self.validate_match_reschedule(match, new_time, new_court)
        if not valid and not force:
            raise ScheduleEditError(
                f"Cannot reschedule match {match.id}: {'; '.join(violations)}", violations
            )

        change = self.history.add_change(
            ScheduleChange(
                change_type="match-reschedule",
                description=(
                    f"Rescheduled Match {match.match_number} from Court {match.court_number} "
                    f"at {self._clock(match.scheduled_time)} to Court {new_court} "
                    f"at {self._clock(new_time)}"
                ),
                old_value={
                    "scheduled_time": match.scheduled_time,
                    "court_number": match.court_number,
                },
                new_value={"scheduled_time": new_time, "court_number": new_court},
                match_id=match.id,
            )
        )
        match.scheduled_time = new_time
        match.court_number = new_court
        logger.info(f"✏️  {change.description}")
        return change

    def reassign_court(
        self, match: Match, new_court: int, force: bool = False
    ) -> ScheduleChange:
        """Move ``match`` to another court at the same start time"""
        valid, violations = self.validate_match_reschedule(
            match, match.scheduled_time, new_court
        )
        if not valid and not force:
            raise ScheduleEditError(
                f"Cannot reassign match {match.id}: {'; '.join(violations)}", violations
            )

        change = self.history.add_change(
            ScheduleChange(
                change_type="court-reassign",
                description=(
                    f"Reassigned Match {match.match_number} from Court {match.court_number} "
                    f"to Court {new_court}"
                ),
                old_value={"court_number": match.court_number},
                new_value={"court_number": new_court},
                match_id=match.id,
            )
        )
        match.court_number = new_court
        logger.info(f"✏️  {change.description}")
        return change

    @staticmethod
    def validate_round_swap(round1: Round, round2: Round) -> RoundSwapValidation:
        errors = []
        warnings = []

        if round1.id == round2.id:
            errors.append("Cannot swap a round with itself")

        for round_ in (round1, round2):
            if round_.status == "completed":
                errors.append(
                    f"Round {round_.round_number} is already completed and cannot be swapped"
                )
        for round_ in (round1, round2):
            completed = [m for m in round_.matches if m.status == "completed"]
            if completed:
                errors.append(
                    f"Round {round_.round_number} has {len(completed)} completed matches "
                    f"and cannot be swapped"
                )

        teams1 = {t for m in round1.matches for t in (m.team1_id, m.team2_id)}
        teams2 = {t for m in round2.matches for t in (m.team1_id, m.team2_id)}
        if len(teams1) != len(teams2):
            warnings.append(
                f"Rounds have different numbers of participating teams "
                f"({len(teams1)} vs {len(teams2)})"
            )

        if round1.bye_id and not round2.bye_id:
            warnings.append(
                f"Round {round1.round_number} has a bye but Round {round2.round_number} does not"
            )
        if round2.bye_id and not round1.bye_id:
            warnings.append(
                f"Round {round2.round_number} has a bye but Round {round1.round_number} does not"
            )

        distance = abs(round1.round_number - round2.round_number)
        if distance > 2:
            warnings.append(
                f"Swapping non-adjacent rounds ({distance} rounds apart) may affect tournament flow"
            )

        return RoundSwapValidation(is_valid=not errors, errors=errors, warnings=warnings)

    def swap_rounds(self, round1: Round, round2: Round) -> ScheduleChange:
        """Exchange the positions of two rounds.

        Round numbers are swapped and each round's matches take over the other
        round's start time, keeping their offsets within the round. Courts and
        everything else about the matches stay as they were.
        """
        validation = self.validate_round_swap(round1, round2)
        if not validation.is_valid:
            raise ScheduleEditError(
                f"Cannot swap rounds: {', '.join(validation.errors)}", validation.errors
            )
        for warning in validation.warnings:
            logger.warning(f"⚠️  {warning}")

        number1, number2 = round1.round_number, round2.round_number
        start1, start2 = self._round_start(round1), self._round_start(round2)
        if start1 is not None and start2 is not None:
            shift1 = start2 - start1
        else:
            shift1 = timedelta(0)

        change = self.history.add_change(
            ScheduleChange(
                change_type="round-swap",
                description=f"Swapped Round {number1} with Round {number2}",
                old_value={
                    "round1_id": round1.id,
                    "round2_id": round2.id,
                    "round1_number": number1,
                    "round2_number": number2,
                    "scheduled_times": {
                        m.id: m.scheduled_time for m in round1.matches + round2.matches
                    },
                },
                new_value={
                    "round1_id": round1.id,
                    "round2_id": round2.id,
                    "round1_number": number2,
                    "round2_number": number1,
                },
                round_id=round1.id,
            )
        )

        self._move_round(round1, number2, shift1)
        self._move_round(round2, number1, -shift1)
        self._reorder()
        logger.info(f"🔀 {change.description}")
        return change

    def undo_last_change(self) -> Optional[ScheduleChange]:
        """Revert the most recent undoable change; None when there is nothing to undo"""
        change = self.history.get_undoable_change()
        if change is None:
            return None

        if change.change_type in ("match-reschedule", "court-reassign"):
            if not change.match_id:
                raise ScheduleEditError("Match ID required for undo operation")
            match = self.get_match(change.match_id)
            for attr, value in change.old_value.items():
                setattr(match, attr, value)
        else:
            rounds = {r.id: r for r in self.schedule.rounds}
            try:
                round1 = rounds[change.old_value["round1_id"]]
                round2 = rounds[change.old_value["round2_id"]]
            except KeyError:
                raise ScheduleEditError("Round not found for undo operation") from None

            times = change.old_value["scheduled_times"]
            for round_, number in (
                (round1, change.old_value["round1_number"]),
                (round2, change.old_value["round2_number"]),
            ):
                round_.round_number = number
                for match in round_.matches:
                    match.round_number = number
                    match.scheduled_time = times.get(match.id, match.scheduled_time)
            self._reorder()

        self.history.remove_change(change)
        logger.info(f"↩️  Undid: {change.description}")
        return change

    @staticmethod
    def _round_start(round_: Round) -> Optional[datetime]:
        times = [m.scheduled_time for m in round_.matches if m.scheduled_time is not None]
        return min(times) if times else None

    @staticmethod
    def _move_round(round_: Round, new_number: int, shift: timedelta) -> None:
        round_.round_number = new_number
        for match in round_.matches:
            match.round_number = new_number
            if match.scheduled_time is not None:
                match.scheduled_time += shift

    def _reorder(self) -> None:
        self.schedule.rounds.sort(key=lambda r: r.round_number)
        self.schedule.scheduled_matches.sort(key=lambda m: (m.round_number, m.match_number))

    @staticmethod
    def _clock(moment: Optional[datetime]) -> str:
        return moment.strftime("%H:%M") if moment else "TBD"
