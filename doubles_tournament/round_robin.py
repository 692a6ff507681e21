"""Rotating-partner round robin: every pair of players partners exactly once."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from doubles_tournament.exceptions import InsufficientParticipants, TournamentSchedulerError
from doubles_tournament.models import Match, Participant, Round, Team
from doubles_tournament.partnership import OppositionTracker, PartnershipMatrix

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 4


class RoundRobinScheduler:
    """Generate rounds of partnerships with the circle method.

    Each scheduler owns the partnership matrix of exactly one run; build a new
    scheduler for every tournament you schedule.
    """

    def __init__(self, participants: Sequence[Participant], tournament_id: str):
        if len(participants) < MIN_PARTICIPANTS:
            raise InsufficientParticipants(
                f"At least {MIN_PARTICIPANTS} participants are required for individual signup tournament"
            )

        player_ids = [p.id for p in participants]
        duplicates = sorted(pid for pid, count in Counter(player_ids).items() if count > 1)
        if duplicates:
            raise ValueError(f"Duplicate participant ids: {', '.join(duplicates)}")

        self.participants = list(participants)
        self.tournament_id = tournament_id
        self.partnership_matrix = PartnershipMatrix(player_ids)
        self.opposition_tracker = OppositionTracker(player_ids)
        self.teams: List[Team] = []
        self._rounds: Optional[List[Round]] = None
        self._packing_errors: List[str] = []

    def get_required_rounds(self) -> int:
        """Rounds needed so that every player partners every other player once"""
        n = len(self.participants)
        return n - 1 if n % 2 == 0 else n

    def get_partnerships_per_round(self) -> int:
        return len(self.participants) // 2

    def get_matches_per_round(self) -> int:
        return self.get_partnerships_per_round() // 2

    def has_bye_rounds(self) -> bool:
        return len(self.participants) % 2 == 1

    def generate_rounds(self) -> List[Round]:
        """Generate all rounds; later calls return the rounds of the first call"""
        if self._rounds is None:
            self._rounds = [
                self._generate_round(round_index)
                for round_index in range(self.get_required_rounds())
            ]
            logger.info(
                f"📊 {len(self.participants)} players: {len(self._rounds)} rounds, "
                f"{self.partnership_matrix.get_used_partnerships()} partnerships, "
                f"{sum(len(r.matches) for r in self._rounds)} matches"
            )
        return list(self._rounds)

    def _generate_round(self, round_index: int) -> Round:
        round_number = round_index + 1
        n = len(self.participants)
        bye_id = None

        if n % 2 == 1:
            bye_index = round_index % n
            bye_id = self.participants[bye_index].id
            # Ring order starting right after the bye, folded end to end
            ring = self.participants[bye_index + 1 :] + self.participants[:bye_index]
            pairs = self._fold(ring)
        else:
            rotation = self._create_rotation(round_index, n)
            pairs = self._fold([self.participants[idx] for idx in rotation])

        teams = []
        for player1, player2 in pairs:
            self.partnership_matrix.mark_partnered(player1.id, player2.id)
            teams.append(
                Team(
                    id=f"{self.tournament_id}_R{round_number}_T{len(teams) + 1}",
                    tournament_id=self.tournament_id,
                    player1_id=player1.id,
                    player2_id=player2.id,
                    is_permanent=False,
                )
            )
        self.teams.extend(teams)

        matches = []
        for team1, team2 in zip(teams[0::2], teams[1::2]):
            matches.append(
                Match(
                    id=f"{self.tournament_id}_R{round_number}_M{len(matches) + 1}",
                    tournament_id=self.tournament_id,
                    round_number=round_number,
                    match_number=len(matches) + 1,
                    team1_id=team1.id,
                    team2_id=team2.id,
                )
            )
            for player in team1.player_ids:
                for opponent in team2.player_ids:
                    self.opposition_tracker.record_opposition(player, opponent)

        unmatched = [team.id for team in teams[2 * len(matches) :]]
        for team_id in unmatched:
            self._packing_errors.append(
                f"Round {round_number}: partnership {team_id} has no opposing team"
            )

        logger.debug(
            f"Round {round_number}: {len(matches)} matches, bye={bye_id}, unmatched={unmatched}"
        )
        return Round(
            id=f"{self.tournament_id}_R{round_number}",
            tournament_id=self.tournament_id,
            round_number=round_number,
            matches=matches,
            bye_id=bye_id,
            unmatched_team_ids=unmatched,
        )

    @staticmethod
    def _create_rotation(round_index: int, n: int) -> List[int]:
        """Participant index at each rotation position; index 0 stays fixed"""
        rotation = [0] * n
        for i in range(1, n):
            rotation[((i - 1 + round_index) % (n - 1)) + 1] = i
        return rotation

    @staticmethod
    def _fold(ordered: List[Participant]) -> List[Tuple[Participant, Participant]]:
        """Pair position i with position len-1-i"""
        n = len(ordered)
        return [(ordered[i], ordered[n - 1 - i]) for i in range(n // 2)]

    def validate_schedule(self, rounds: List[Round]) -> List[str]:
        """Return the violated round-robin invariants (empty when valid)"""
        errors = []

        expected_rounds = self.get_required_rounds()
        if len(rounds) != expected_rounds:
            errors.append(f"Expected {expected_rounds} rounds, but got {len(rounds)}")

        if not self.partnership_matrix.is_complete():
            errors.append(
                f"Not all partnerships have been used "
                f"({self.partnership_matrix.get_used_partnerships()}/"
                f"{self.partnership_matrix.get_total_partnerships()})"
            )

        bye_counts = Counter(r.bye_id for r in rounds if r.bye_id is not None)
        for player_id, count in bye_counts.items():
            if count > 1:
                errors.append(f"Player {player_id} has more than one bye ({count})")

        return errors

    def get_packing_errors(self) -> List[str]:
        """Rounds whose partnerships could not all be paired into matches"""
        return list(self._packing_errors)

    def get_partnership_matrix(self) -> PartnershipMatrix:
        return self.partnership_matrix

    def get_opposition_tracker(self) -> OppositionTracker:
        return self.opposition_tracker


@dataclass
class RoundRobinResult:
    """Structured outcome of round generation"""

    rounds: List[Round]
    teams: List[Team]
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    scheduler: Optional[RoundRobinScheduler] = None


def generate_round_robin(
    participants: Sequence[Participant], tournament_id: str
) -> RoundRobinResult:
    """Generate and validate all rounds, reporting problems instead of raising"""
    try:
        scheduler = RoundRobinScheduler(participants, tournament_id)
        rounds = scheduler.generate_rounds()
    except (TournamentSchedulerError, ValueError) as e:
        logger.error(f"❌ Round generation failed: {e}")
        return RoundRobinResult(rounds=[], teams=[], is_valid=False, errors=[str(e)])

    errors = scheduler.validate_schedule(rounds) + scheduler.get_packing_errors()
    for error in errors:
        logger.warning(f"⚠️  {error}")

    return RoundRobinResult(
        rounds=rounds,
        teams=list(scheduler.teams),
        is_valid=not errors,
        errors=errors,
        scheduler=scheduler,
    )
