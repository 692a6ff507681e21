"""Unit tests for rotating-partner round generation."""

import unittest
from collections import Counter

from doubles_tournament.exceptions import InsufficientParticipants
from doubles_tournament.models import create_participants
from doubles_tournament.round_robin import RoundRobinScheduler, generate_round_robin


def make_players(n):
    return create_participants([f"Player {i}" for i in range(1, n + 1)], "t1")


class TestBasicLogic(unittest.TestCase):
    """Test round counts and construction rules"""

    def test_requires_four_participants(self):
        with self.assertRaises(InsufficientParticipants):
            RoundRobinScheduler(make_players(3), "t1")

    def test_duplicate_ids_rejected(self):
        players = make_players(4)
        players[3].id = players[0].id

        with self.assertRaises(ValueError):
            RoundRobinScheduler(players, "t1")

    def test_required_rounds(self):
        self.assertEqual(RoundRobinScheduler(make_players(4), "t1").get_required_rounds(), 3)
        self.assertEqual(RoundRobinScheduler(make_players(5), "t1").get_required_rounds(), 5)
        self.assertEqual(RoundRobinScheduler(make_players(8), "t1").get_required_rounds(), 7)
        self.assertEqual(RoundRobinScheduler(make_players(9), "t1").get_required_rounds(), 9)

    def test_matches_per_round(self):
        self.assertEqual(RoundRobinScheduler(make_players(4), "t1").get_matches_per_round(), 1)
        self.assertEqual(RoundRobinScheduler(make_players(5), "t1").get_matches_per_round(), 1)
        self.assertEqual(RoundRobinScheduler(make_players(6), "t1").get_matches_per_round(), 1)
        self.assertEqual(RoundRobinScheduler(make_players(8), "t1").get_matches_per_round(), 2)

    def test_bye_rounds(self):
        self.assertFalse(RoundRobinScheduler(make_players(4), "t1").has_bye_rounds())
        self.assertTrue(RoundRobinScheduler(make_players(5), "t1").has_bye_rounds())


class TestFourPlayers(unittest.TestCase):
    """Walk through the smallest tournament by hand"""

    def setUp(self):
        self.scheduler = RoundRobinScheduler(make_players(4), "t1")
        self.rounds = self.scheduler.generate_rounds()
        self.teams = {team.id: team for team in self.scheduler.teams}

    def team_pairs(self, round_):
        match = round_.matches[0]
        return (
            set(self.teams[match.team1_id].player_ids),
            set(self.teams[match.team2_id].player_ids),
        )

    def test_rotation_order(self):
        self.assertEqual(self.team_pairs(self.rounds[0]), ({"p1", "p4"}, {"p2", "p3"}))
        self.assertEqual(self.team_pairs(self.rounds[1]), ({"p1", "p3"}, {"p4", "p2"}))
        self.assertEqual(self.team_pairs(self.rounds[2]), ({"p1", "p2"}, {"p3", "p4"}))

    def test_round_metadata(self):
        for index, round_ in enumerate(self.rounds):
            self.assertEqual(round_.round_number, index + 1)
            self.assertEqual(round_.tournament_id, "t1")
            self.assertIsNone(round_.bye_id)
            self.assertEqual(len(round_.matches), 1)
            match = round_.matches[0]
            self.assertEqual(match.match_number, 1)
            self.assertIsNone(match.court_number)
            self.assertIsNone(match.scheduled_time)
            self.assertEqual(match.status, "scheduled")

    def test_oppositions_balanced(self):
        self.assertTrue(self.scheduler.get_opposition_tracker().is_balanced(2))

    def test_generate_rounds_is_repeatable(self):
        again = self.scheduler.generate_rounds()

        self.assertEqual([r.id for r in again], [r.id for r in self.rounds])
        self.assertEqual(self.scheduler.get_partnership_matrix().get_used_partnerships(), 6)


class TestFivePlayers(unittest.TestCase):
    """Odd participant count: one bye per round"""

    def setUp(self):
        self.scheduler = RoundRobinScheduler(make_players(5), "t1")
        self.rounds = self.scheduler.generate_rounds()

    def test_byes_rotate_through_players(self):
        self.assertEqual([r.bye_id for r in self.rounds], ["p1", "p2", "p3", "p4", "p5"])

    def test_one_match_per_round(self):
        teams = {team.id: team for team in self.scheduler.teams}
        for round_ in self.rounds:
            self.assertEqual(len(round_.matches), 1)
            match = round_.matches[0]
            players = teams[match.team1_id].player_ids + teams[match.team2_id].player_ids
            self.assertNotIn(round_.bye_id, players)
            self.assertEqual(len(set(players)), 4)

    def test_oppositions_balanced(self):
        self.assertTrue(self.scheduler.get_opposition_tracker().is_balanced(2))

    def test_valid(self):
        self.assertEqual(self.scheduler.validate_schedule(self.rounds), [])
        self.assertEqual(self.scheduler.get_packing_errors(), [])


class TestRoundRobinProperties(unittest.TestCase):
    """Invariants that must hold for every tournament size"""

    def test_every_size_from_4_to_32(self):
        for n in range(4, 33):
            with self.subTest(players=n):
                scheduler = RoundRobinScheduler(make_players(n), "t1")
                rounds = scheduler.generate_rounds()
                matrix = scheduler.get_partnership_matrix()

                expected_rounds = n - 1 if n % 2 == 0 else n
                self.assertEqual(len(rounds), expected_rounds)
                self.assertTrue(matrix.is_complete())
                self.assertEqual(matrix.get_used_partnerships(), n * (n - 1) // 2)
                self.assertEqual(len(scheduler.teams), n * (n - 1) // 2)
                self.assertEqual(scheduler.validate_schedule(rounds), [])

                byes = [r.bye_id for r in rounds]
                if n % 2 == 0:
                    self.assertTrue(all(bye is None for bye in byes))
                else:
                    self.assertEqual(len(set(byes)), n)

    def test_every_partnership_exactly_once(self):
        for n in (7, 9, 10, 13):
            with self.subTest(players=n):
                scheduler = RoundRobinScheduler(make_players(n), "t1")
                scheduler.generate_rounds()

                pairs = Counter(frozenset(t.player_ids) for t in scheduler.teams)
                self.assertEqual(len(pairs), n * (n - 1) // 2)
                self.assertTrue(all(count == 1 for count in pairs.values()))

    def test_matches_have_four_distinct_players(self):
        for n in (8, 9, 12, 13, 16):
            with self.subTest(players=n):
                scheduler = RoundRobinScheduler(make_players(n), "t1")
                rounds = scheduler.generate_rounds()
                teams = {team.id: team for team in scheduler.teams}

                for round_ in rounds:
                    seen = []
                    for match in round_.matches:
                        players = teams[match.team1_id].player_ids + teams[match.team2_id].player_ids
                        self.assertEqual(len(set(players)), 4)
                        seen.extend(players)
                    # Nobody plays twice in the same round
                    self.assertEqual(len(seen), len(set(seen)))

    def test_leftover_partnership_is_reported(self):
        """Six players give three partnerships per round: one has no opponent"""
        scheduler = RoundRobinScheduler(make_players(6), "t1")
        rounds = scheduler.generate_rounds()

        for round_ in rounds:
            self.assertEqual(len(round_.matches), 1)
            self.assertEqual(len(round_.unmatched_team_ids), 1)
        self.assertEqual(len(scheduler.get_packing_errors()), 5)
        self.assertIn("no opposing team", scheduler.get_packing_errors()[0])
        self.assertEqual(scheduler.validate_schedule(rounds), [])

    def test_validate_detects_problems(self):
        scheduler = RoundRobinScheduler(make_players(5), "t1")
        rounds = scheduler.generate_rounds()
        rounds[1].bye_id = rounds[0].bye_id

        errors = scheduler.validate_schedule(rounds[:4])

        self.assertEqual(len(errors), 2)
        self.assertIn("Expected 5 rounds", errors[0])
        self.assertIn("more than one bye", errors[1])

    def test_validate_incomplete_matrix(self):
        scheduler = RoundRobinScheduler(make_players(4), "t1")

        errors = scheduler.validate_schedule([])

        self.assertIn("Expected 3 rounds, but got 0", errors)
        self.assertTrue(any("Not all partnerships" in e for e in errors))


class TestGenerateRoundRobin(unittest.TestCase):
    """Structured result wrapper"""

    def test_valid_result(self):
        result = generate_round_robin(make_players(8), "t1")

        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])
        self.assertEqual(len(result.rounds), 7)
        self.assertEqual(len(result.teams), 28)
        for round_ in result.rounds:
            self.assertEqual(len(round_.matches), 2)
            self.assertIsNone(round_.bye_id)

    def test_too_few_participants(self):
        result = generate_round_robin(make_players(3), "t1")

        self.assertFalse(result.is_valid)
        self.assertEqual(result.rounds, [])
        self.assertEqual(
            result.errors,
            ["At least 4 participants are required for individual signup tournament"],
        )

    def test_packable_sizes(self):
        """Doubles pack perfectly only when N is 0 or 1 modulo 4"""
        for n in range(4, 21):
            with self.subTest(players=n):
                result = generate_round_robin(make_players(n), "t1")
                self.assertEqual(result.is_valid, n % 4 in (0, 1), result.errors)


if __name__ == "__main__":
    unittest.main()
