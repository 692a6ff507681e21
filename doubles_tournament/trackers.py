"""Court and player timelines used while binding matches to real time."""

from bisect import insort
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple


class CourtAssignmentTracker:
    """Sorted start times of the matches reserved on each court"""

    def __init__(self, court_count: int, match_duration: int):
        if court_count < 1:
            raise ValueError("Number of courts must be at least 1")
        if match_duration <= 0:
            raise ValueError("Match duration must be positive")

        self.court_count = court_count
        self.match_duration = match_duration
        self._duration = timedelta(minutes=match_duration)
        self._court_schedules: Dict[int, List[datetime]] = {
            court: [] for court in range(1, court_count + 1)
        }

    def find_available_court(self, earliest_time: datetime) -> Tuple[int, datetime]:
        """Court with the earliest free slot at or after ``earliest_time``.

        Ties go to the lowest court number.
        """
        best_court, best_time = 1, None
        for court in range(1, self.court_count + 1):
            available = self._earliest_fit(self._court_schedules[court], earliest_time)
            if best_time is None or available < best_time:
                best_court, best_time = court, available
        return best_court, best_time

    def reserve_court(self, court_number: int, start_time: datetime) -> None:
        """Reserve a court; the slot must come from find_available_court"""
        if court_number not in self._court_schedules:
            raise ValueError(f"Court {court_number} does not exist")
        insort(self._court_schedules[court_number], start_time)

    def get_court_schedule(self, court_number: int) -> List[datetime]:
        if court_number not in self._court_schedules:
            raise ValueError(f"Court {court_number} does not exist")
        return list(self._court_schedules[court_number])

    def _earliest_fit(self, schedule: List[datetime], earliest_time: datetime) -> datetime:
        # Before the first reservation, in a gap, or after the last one
        candidate = earliest_time
        for start in schedule:
            if candidate + self._duration <= start:
                return candidate
            candidate = max(candidate, start + self._duration)
        return candidate


class PlayerAvailabilityTracker:
    """Start times of the matches each player is already committed to"""

    def __init__(self, match_duration: int, search_increment: Optional[int] = None):
        if match_duration <= 0:
            raise ValueError("Match duration must be positive")
        if search_increment is not None and search_increment <= 0:
            raise ValueError("Search increment must be positive")

        self.match_duration = match_duration
        self._duration = timedelta(minutes=match_duration)
        self._increment = (
            timedelta(minutes=search_increment) if search_increment else None
        )
        self._player_schedules: Dict[str, List[datetime]] = {}

    def are_players_available(
        self, player_ids: Iterable[str], proposed_time: datetime
    ) -> bool:
        proposed_end = proposed_time + self._duration
        for player_id in player_ids:
            for existing in self._player_schedules.get(player_id, []):
                if proposed_time < existing + self._duration and proposed_end > existing:
                    return False
        return True

    def get_earliest_available_time(
        self, player_ids: Iterable[str], earliest_time: datetime
    ) -> datetime:
        """Earliest time at or after ``earliest_time`` when all players are free.

        With a search increment the search steps forward in fixed quanta;
        otherwise the answer is exact.
        """
        player_ids = list(player_ids)

        if self._increment is not None:
            current = earliest_time
            while not self.are_players_available(player_ids, current):
                current += self._increment
            return current

        # A free slot opens either at earliest_time or at the end of a reservation
        candidates = {earliest_time}
        for player_id in player_ids:
            for existing in self._player_schedules.get(player_id, []):
                end = existing + self._duration
                if end > earliest_time:
                    candidates.add(end)

        for candidate in sorted(candidates):
            if self.are_players_available(player_ids, candidate):
                return candidate

        # Unreachable: the latest reservation end is always free
        raise AssertionError("no free slot found after the last reservation")

    def reserve_players(self, player_ids: Iterable[str], match_time: datetime) -> None:
        for player_id in player_ids:
            insort(self._player_schedules.setdefault(player_id, []), match_time)

    def get_player_schedule(self, player_id: str) -> List[datetime]:
        return list(self._player_schedules.get(player_id, []))
