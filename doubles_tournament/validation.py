"""Constraint validation for generated doubles schedules."""

from collections import Counter, defaultdict
from datetime import timedelta
from itertools import combinations
from typing import Dict, List, Tuple

from doubles_tournament.models import GeneratedSchedule, Match, Round, Team


class ConstraintValidator:
    """Helper class to validate schedule constraints"""

    @staticmethod
    def validate_court_conflicts(
        matches: List[Match], match_duration: int
    ) -> Tuple[bool, List[str]]:
        """Validate that no two matches overlap on the same court"""
        violations = []
        duration = timedelta(minutes=match_duration)
        court_schedule = defaultdict(list)

        for match in matches:
            if match.court_number is not None and match.scheduled_time is not None:
                court_schedule[match.court_number].append(match)

        for court, court_matches in court_schedule.items():
            court_matches.sort(key=lambda m: m.scheduled_time)

            for current_match, next_match in zip(court_matches, court_matches[1:]):
                if current_match.scheduled_time + duration > next_match.scheduled_time:
                    violations.append(
                        f"Court {court} conflict: {current_match.id} at "
                        f"{current_match.scheduled_time:%H:%M} overlaps with "
                        f"{next_match.id} at {next_match.scheduled_time:%H:%M}"
                    )

        return len(violations) == 0, violations

    @staticmethod
    def validate_player_overlaps(
        matches: List[Match], teams: Dict[str, Team], match_duration: int
    ) -> Tuple[bool, List[str]]:
        """Validate that no player is booked into two overlapping matches"""
        violations = []
        duration = timedelta(minutes=match_duration)
        player_matches = defaultdict(list)

        for match in matches:
            if match.scheduled_time is None:
                continue
            for team_id in (match.team1_id, match.team2_id):
                team = teams.get(team_id)
                if team is None:
                    violations.append(f"Match {match.id} references unknown team {team_id}")
                    continue
                for player_id in team.player_ids:
                    player_matches[player_id].append(match)

        for player, player_match_list in player_matches.items():
            player_match_list.sort(key=lambda m: m.scheduled_time)

            for current_match, next_match in zip(player_match_list, player_match_list[1:]):
                if current_match.scheduled_time + duration > next_match.scheduled_time:
                    violations.append(
                        f"Player {player}: {current_match.id} at "
                        f"{current_match.scheduled_time:%H:%M} overlaps with "
                        f"{next_match.id} at {next_match.scheduled_time:%H:%M}"
                    )

        return len(violations) == 0, violations

    @staticmethod
    def validate_match_composition(
        matches: List[Match], teams: Dict[str, Team]
    ) -> Tuple[bool, List[str]]:
        """Validate that every match puts four distinct players on court"""
        violations = []

        for match in matches:
            team1 = teams.get(match.team1_id)
            team2 = teams.get(match.team2_id)
            if team1 is None or team2 is None:
                violations.append(f"Match {match.id} references an unknown team")
                continue

            players = team1.player_ids + team2.player_ids
            if len(set(players)) != 4:
                violations.append(
                    f"Match {match.id} does not have four distinct players: {players}"
                )

        return len(violations) == 0, violations

    @staticmethod
    def validate_partnership_coverage(
        teams: List[Team], participant_ids: List[str]
    ) -> Tuple[bool, List[str]]:
        """Validate that every pair of participants partners exactly once"""
        violations = []
        partnerships = Counter(frozenset(team.player_ids) for team in teams)

        for pair in combinations(participant_ids, 2):
            count = partnerships.get(frozenset(pair), 0)
            if count != 1:
                violations.append(
                    f"Partnership {pair[0]} + {pair[1]} used {count} times (expected 1)"
                )

        known = set(participant_ids)
        for pair in partnerships:
            if not pair <= known or len(pair) != 2:
                violations.append(f"Invalid partnership: {sorted(pair)}")

        return len(violations) == 0, violations

    @staticmethod
    def validate_bye_distribution(
        rounds: List[Round], participant_ids: List[str]
    ) -> Tuple[bool, List[str]]:
        """Validate byes: one per round for odd counts, none for even, nobody twice"""
        violations = []
        odd = len(participant_ids) % 2 == 1

        for round_ in rounds:
            if odd and round_.bye_id is None:
                violations.append(f"Round {round_.round_number} has no bye")
            elif not odd and round_.bye_id is not None:
                violations.append(
                    f"Round {round_.round_number} has an unexpected bye: {round_.bye_id}"
                )

        bye_counts = Counter(r.bye_id for r in rounds if r.bye_id is not None)
        for player_id, count in bye_counts.items():
            if count > 1:
                violations.append(f"Player {player_id} has {count} byes")

        return len(violations) == 0, violations

    @staticmethod
    def validate_all(
        schedule: GeneratedSchedule, match_duration: int, participant_ids: List[str]
    ) -> Tuple[bool, List[str]]:
        """Validate all constraints at once"""
        teams = schedule.team_lookup()
        matches = schedule.scheduled_matches

        checks = [
            ConstraintValidator.validate_court_conflicts(matches, match_duration),
            ConstraintValidator.validate_player_overlaps(matches, teams, match_duration),
            ConstraintValidator.validate_match_composition(matches, teams),
            ConstraintValidator.validate_partnership_coverage(
                schedule.teams, participant_ids
            ),
            ConstraintValidator.validate_bye_distribution(schedule.rounds, participant_ids),
        ]

        all_violations = []
        for _, violations in checks:
            all_violations.extend(violations)

        overall_valid = all(valid for valid, _ in checks)
        return overall_valid, all_violations
