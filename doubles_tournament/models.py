"""Data models for doubles round-robin scheduling."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Literal


@dataclass
class ScheduleSettings:
    """Schedule configuration parameters"""

    start_time: datetime
    court_count: int
    match_duration: int  # minutes
    session_break_duration: int = 60  # minutes
    strategy: Literal["greedy", "cp-sat"] = "greedy"
    player_search_increment: Optional[int] = None  # minutes, None = exact search
    max_reconciliation_attempts: int = 100
    solver_time_limit: float = 30.0  # seconds

    def __post_init__(self):
        """Validate configuration after initialization"""
        if isinstance(self.start_time, str):
            self.start_time = datetime.fromisoformat(self.start_time)

        if self.court_count < 1:
            raise ValueError("Number of courts must be at least 1")
        if self.match_duration <= 0:
            raise ValueError("Match duration must be positive")
        if self.session_break_duration < 0:
            raise ValueError("Session break duration cannot be negative")
        if self.strategy not in ("greedy", "cp-sat"):
            raise ValueError(f"Unknown scheduling strategy: {self.strategy}")
        if self.player_search_increment is not None and self.player_search_increment <= 0:
            raise ValueError("Player search increment must be positive")
        if self.max_reconciliation_attempts < 1:
            raise ValueError("Reconciliation attempts must be at least 1")
        if self.solver_time_limit <= 0:
            raise ValueError("Solver time limit must be positive")

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.match_duration)


@dataclass
class Participant:
    """Tournament participant"""

    id: str
    name: str
    tournament_id: str


def create_participants(names: List[str], tournament_id: str) -> List[Participant]:
    """Create participants with sequential ids (p1, p2, ...) from display names"""
    participants = []
    for idx, name in enumerate(names, 1):
        name = name.strip()
        if not name:
            raise ValueError(f"Participant {idx} has an empty name")
        participants.append(
            Participant(id=f"p{idx}", name=name, tournament_id=tournament_id)
        )
    return participants


@dataclass
class Team:
    """Two players sharing a side of the court for one match"""

    id: str
    tournament_id: str
    player1_id: str
    player2_id: str
    is_permanent: bool = False  # always False for individual signup

    @property
    def player_ids(self) -> List[str]:
        return [self.player1_id, self.player2_id]


@dataclass
class Match:
    """Individual match: one team against another"""

    id: str
    tournament_id: str
    round_number: int
    match_number: int
    team1_id: str
    team2_id: str
    court_number: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    status: Literal["scheduled", "in-progress", "completed"] = "scheduled"

    def end_time(self, match_duration: int) -> Optional[datetime]:
        if self.scheduled_time is None:
            return None
        return self.scheduled_time + timedelta(minutes=match_duration)

    def __str__(self):
        time_str = (
            self.scheduled_time.strftime("%H:%M") if self.scheduled_time else "TBD"
        )
        court_str = f"Court {self.court_number}" if self.court_number else "TBD"
        return f"R{self.round_number} M{self.match_number}: {self.team1_id} vs {self.team2_id} @ {time_str} on {court_str}"


@dataclass
class Round:
    """All matches sharing a round number, plus the optional bye"""

    id: str
    tournament_id: str
    round_number: int
    matches: List[Match] = field(default_factory=list)
    bye_id: Optional[str] = None  # only when the participant count is odd
    unmatched_team_ids: List[str] = field(default_factory=list)
    status: Literal["pending", "active", "completed"] = "pending"


@dataclass
class ScheduleOptimization:
    """Summary metrics of a timed schedule"""

    total_duration: int  # minutes
    sessions_count: int = 1


@dataclass
class GeneratedSchedule:
    """Abstract rounds plus the fully timed matches"""

    rounds: List[Round]
    scheduled_matches: List[Match]
    teams: List[Team]
    optimization: ScheduleOptimization

    def team_lookup(self) -> Dict[str, Team]:
        return {team.id: team for team in self.teams}

    def players_for_match(self, match: Match) -> List[str]:
        """Player ids of both teams, team 1 first"""
        teams = self.team_lookup()
        return teams[match.team1_id].player_ids + teams[match.team2_id].player_ids


@dataclass
class ScheduleResult:
    """Result of schedule generation"""

    success: bool
    schedule: Optional[GeneratedSchedule]
    generation_time: float  # seconds
    error_message: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
