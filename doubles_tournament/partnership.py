"""Partnership and opposition bookkeeping for one scheduling run."""

from collections import defaultdict
from typing import Dict, List

from doubles_tournament.exceptions import PartnershipConflict, UnknownParticipant


class PartnershipMatrix:
    """Symmetric record of which unordered pairs have already partnered.

    The order of ``player_ids`` fixes the internal indices. The diagonal is
    marked as used from the start and never counted.
    """

    def __init__(self, player_ids: List[str]):
        self.player_ids = list(player_ids)
        self._index = {player_id: idx for idx, player_id in enumerate(self.player_ids)}
        n = len(self.player_ids)
        self._matrix = [[i == j for j in range(n)] for i in range(n)]

    def _lookup(self, player_id: str) -> int:
        try:
            return self._index[player_id]
        except KeyError:
            raise UnknownParticipant(
                f"Player {player_id} not found in partnership matrix"
            ) from None

    def has_partnered(self, player1_id: str, player2_id: str) -> bool:
        """Check if two players have already been partnered"""
        return self._matrix[self._lookup(player1_id)][self._lookup(player2_id)]

    def mark_partnered(self, player1_id: str, player2_id: str) -> None:
        """Mark two players as having been partnered"""
        idx1 = self._lookup(player1_id)
        idx2 = self._lookup(player2_id)

        if self._matrix[idx1][idx2]:
            raise PartnershipConflict(
                f"Partnership {player1_id} + {player2_id} has already been used"
            )

        self._matrix[idx1][idx2] = True
        self._matrix[idx2][idx1] = True

    def get_available_partners(self, player_id: str) -> List[str]:
        """Players not yet partnered with ``player_id``, in matrix order"""
        row = self._matrix[self._lookup(player_id)]
        return [other for other, used in zip(self.player_ids, row) if not used]

    def get_total_partnerships(self) -> int:
        n = len(self.player_ids)
        return n * (n - 1) // 2

    def get_used_partnerships(self) -> int:
        n = len(self.player_ids)
        return sum(
            1 for i in range(n) for j in range(i + 1, n) if self._matrix[i][j]
        )

    def is_complete(self) -> bool:
        return self.get_used_partnerships() == self.get_total_partnerships()


class OppositionTracker:
    """Counts how often each pair of players met across the net"""

    def __init__(self, player_ids: List[str]):
        self.player_ids = list(player_ids)
        self._oppositions: Dict[str, Dict[str, int]] = {
            player_id: defaultdict(int) for player_id in self.player_ids
        }

    def _row(self, player_id: str) -> Dict[str, int]:
        if player_id not in self._oppositions:
            raise UnknownParticipant(
                f"Player {player_id} not found in opposition tracker"
            )
        return self._oppositions[player_id]

    def record_opposition(self, player1_id: str, player2_id: str) -> None:
        row1 = self._row(player1_id)
        row2 = self._row(player2_id)
        row1[player2_id] += 1
        row2[player1_id] += 1

    def get_opposition_count(self, player1_id: str, player2_id: str) -> int:
        self._row(player2_id)
        return self._row(player1_id).get(player2_id, 0)

    def get_least_played_opponents(self, player_id: str) -> List[str]:
        """Opponents ``player_id`` has faced the fewest times, in tracker order"""
        row = self._row(player_id)
        counts = {
            other: row.get(other, 0) for other in self.player_ids if other != player_id
        }
        if not counts:
            return []
        fewest = min(counts.values())
        return [other for other, count in counts.items() if count == fewest]

    def is_balanced(self, expected: int) -> bool:
        """True when every pair of players met exactly ``expected`` times"""
        return all(
            self._oppositions[player].get(other, 0) == expected
            for player in self.player_ids
            for other in self.player_ids
            if other != player
        )
