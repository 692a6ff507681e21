"""Binding round-robin matches to courts and start times."""

import logging
import time as time_module
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model

from doubles_tournament.exceptions import (
    MissingTeamReference,
    SchedulingError,
    TournamentSchedulerError,
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
)
from doubles_tournament.round_robin import RoundRobinResult, generate_round_robin
from doubles_tournament.trackers import CourtAssignmentTracker, PlayerAvailabilityTracker
from doubles_tournament.validation import ConstraintValidator

logger = logging.getLogger(__name__)


def match_players(match: Match, teams: Dict[str, Team]) -> List[str]:
    """The four player ids of a match, team 1 first"""
    player_ids = []
    for team_id in (match.team1_id, match.team2_id):
        team = teams.get(team_id)
        if team is None:
            raise MissingTeamReference(f"Team {team_id} not found for match {match.id}")
        player_ids.extend(team.player_ids)
    return player_ids


class ORToolsCourtSolver:
    """CP-SAT model assigning courts and start times with minimal end time"""

    def __init__(self, settings: ScheduleSettings):
        self.settings = settings

    def solve(self, matches: List[Match], teams: Dict[str, Team]) -> None:
        """Re-time ``matches`` in place; existing court/time values are used as a hint"""
        if not matches:
            return

        duration = self.settings.match_duration
        courts = range(1, self.settings.court_count + 1)
        start_time = self.settings.start_time

        hinted = [
            m for m in matches if m.scheduled_time is not None and m.court_number is not None
        ]
        hint_end = max(
            (self._offset(m.scheduled_time) + duration for m in hinted), default=0
        )
        horizon = max(len(matches) * duration, hint_end)

        model = cp_model.CpModel()
        start_vars = []
        end_vars = []
        court_vars = []
        court_intervals = defaultdict(list)
        player_intervals = defaultdict(list)

        for idx, match in enumerate(matches):
            start_var = model.NewIntVar(0, horizon - duration, f"start_{idx}")
            end_var = model.NewIntVar(duration, horizon, f"end_{idx}")
            interval = model.NewIntervalVar(start_var, duration, end_var, f"match_{idx}")

            presences = {}
            for court in courts:
                present = model.NewBoolVar(f"court_{idx}_{court}")
                court_intervals[court].append(
                    model.NewOptionalIntervalVar(
                        start_var, duration, end_var, present, f"match_{idx}_court_{court}"
                    )
                )
                presences[court] = present
            model.AddExactlyOne(list(presences.values()))

            for player_id in match_players(match, teams):
                player_intervals[player_id].append(interval)

            start_vars.append(start_var)
            end_vars.append(end_var)
            court_vars.append(presences)

        # Constraint 1: one match at a time per court
        for intervals in court_intervals.values():
            model.AddNoOverlap(intervals)

        # Constraint 2: no player in two overlapping matches
        for intervals in player_intervals.values():
            model.AddNoOverlap(intervals)

        makespan = model.NewIntVar(0, horizon, "makespan")
        model.AddMaxEquality(makespan, end_vars)
        model.Minimize(makespan)

        for idx, match in enumerate(matches):
            if match.scheduled_time is None or match.court_number is None:
                continue
            model.AddHint(start_vars[idx], self._offset(match.scheduled_time))
            for court, present in court_vars[idx].items():
                model.AddHint(present, court == match.court_number)

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.settings.solver_time_limit
        status = solver.Solve(model)

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            raise SchedulingError(
                f"OR-Tools solver failed with status: {solver.StatusName(status)}"
            )

        logger.info(
            f"🧮 CP-SAT {solver.StatusName(status)}: makespan {solver.Value(makespan)} minutes "
            f"in {solver.WallTime():.2f} seconds"
        )

        for idx, match in enumerate(matches):
            match.scheduled_time = start_time + timedelta(minutes=solver.Value(start_vars[idx]))
            match.court_number = next(
                court for court, present in court_vars[idx].items() if solver.Value(present)
            )

    def _offset(self, moment) -> int:
        return int((moment - self.settings.start_time).total_seconds() // 60)


class ScheduleGenerator:
    """Generate the rounds and bind every match to a court and start time"""

    def __init__(
        self,
        tournament_id: str,
        participants: Sequence[Participant],
        settings: ScheduleSettings,
    ):
        self.tournament_id = tournament_id
        self.participants = list(participants)
        self.settings = settings
        self.round_robin: Optional[RoundRobinResult] = None

    def generate_schedule(self) -> GeneratedSchedule:
        """Generate complete tournament schedule"""
        result = generate_round_robin(self.participants, self.tournament_id)
        if not result.is_valid:
            raise ValidationFailure(
                f"Failed to generate rounds: {'; '.join(result.errors)}", result.errors
            )
        self.round_robin = result

        teams = {team.id: team for team in result.teams}
        scheduled_matches = self._optimize_schedule(result.rounds, teams)

        if self.settings.strategy == "cp-sat":
            ORToolsCourtSolver(self.settings).solve(scheduled_matches, teams)

        return GeneratedSchedule(
            rounds=result.rounds,
            scheduled_matches=scheduled_matches,
            teams=result.teams,
            optimization=self._calculate_optimization(scheduled_matches),
        )

    def _optimize_schedule(self, rounds: List[Round], teams: Dict[str, Team]) -> List[Match]:
        """Walk rounds in order and reserve the earliest common court/player slot"""
        court_tracker = CourtAssignmentTracker(
            self.settings.court_count, self.settings.match_duration
        )
        player_tracker = PlayerAvailabilityTracker(
            self.settings.match_duration, self.settings.player_search_increment
        )
        scheduled_matches = []
        cursor = self.settings.start_time

        for round_ in rounds:
            for match in round_.matches:
                player_ids = match_players(match, teams)
                court, start = self._reconcile(
                    match, player_ids, cursor, court_tracker, player_tracker
                )

                court_tracker.reserve_court(court, start)
                player_tracker.reserve_players(player_ids, start)
                match.court_number = court
                match.scheduled_time = start
                scheduled_matches.append(match)
                logger.debug(f"Scheduled {match}")

                if start > cursor:
                    cursor = start

        return scheduled_matches

    def _reconcile(
        self,
        match: Match,
        player_ids: List[str],
        cursor: datetime,
        court_tracker: CourtAssignmentTracker,
        player_tracker: PlayerAvailabilityTracker,
    ) -> Tuple[int, datetime]:
        # A court slot may land later than the players' first free time
        proposed = player_tracker.get_earliest_available_time(player_ids, cursor)
        for _ in range(self.settings.max_reconciliation_attempts):
            court, start = court_tracker.find_available_court(proposed)
            if player_tracker.are_players_available(player_ids, start):
                return court, start
            proposed = player_tracker.get_earliest_available_time(player_ids, start)

        raise SchedulingError(
            f"No common court and player slot found for match {match.id} "
            f"after {self.settings.max_reconciliation_attempts} attempts"
        )

    def _calculate_optimization(self, scheduled_matches: List[Match]) -> ScheduleOptimization:
        if not scheduled_matches:
            return ScheduleOptimization(total_duration=0, sessions_count=1)

        end = max(m.end_time(self.settings.match_duration) for m in scheduled_matches)
        total_duration = int((end - self.settings.start_time).total_seconds() // 60)
        # Multi-session breaks are not modelled
        return ScheduleOptimization(total_duration=total_duration, sessions_count=1)


class TournamentScheduler:
    """Main entry point: schedule, validate and report"""

    def schedule_tournament(
        self,
        participants: Sequence[Participant],
        settings: ScheduleSettings,
        tournament_id: str = "tournament",
    ) -> ScheduleResult:
        """Generate complete tournament schedule"""
        logger.info(
            f"Starting schedule generation for tournament {tournament_id}: "
            f"{len(participants)} players, {settings.court_count} courts, "
            f"{settings.match_duration} minute matches ({settings.strategy})"
        )
        start = time_module.time()

        try:
            schedule = ScheduleGenerator(tournament_id, participants, settings).generate_schedule()
        except SchedulingError as e:
            logger.error(f"❌ Failed to generate schedule: {e}")
            return ScheduleResult(
                success=False,
                schedule=None,
                generation_time=time_module.time() - start,
                error_message=str(e),
                errors=e.errors,
            )
        except TournamentSchedulerError as e:
            logger.error(f"💥 Error during scheduling: {e}")
            return ScheduleResult(
                success=False,
                schedule=None,
                generation_time=time_module.time() - start,
                error_message=str(e),
                errors=[str(e)],
            )

        generation_time = time_module.time() - start
        valid, violations = ConstraintValidator.validate_all(
            schedule, settings.match_duration, [p.id for p in participants]
        )
        if not valid:
            logger.error(f"❌ Generated schedule violates {len(violations)} constraints")
            return ScheduleResult(
                success=False,
                schedule=schedule,
                generation_time=generation_time,
                error_message="Generated schedule violates scheduling constraints",
                errors=violations,
            )

        used_courts = {m.court_number for m in schedule.scheduled_matches}
        warnings = [
            f"Court {court} was never used"
            for court in range(1, settings.court_count + 1)
            if court not in used_courts
        ]

        logger.info(f"✅ Schedule generated successfully in {generation_time:.2f} seconds")
        logger.info(
            f"📊 {len(schedule.scheduled_matches)} matches in {len(schedule.rounds)} rounds, "
            f"total duration {schedule.optimization.total_duration} minutes"
        )
        for warning in warnings:
            logger.warning(f"⚠️  {warning}")

        return ScheduleResult(
            success=True,
            schedule=schedule,
            generation_time=generation_time,
            warnings=warnings,
        )

    def print_schedule_summary(
        self, result: ScheduleResult, participants: Sequence[Participant]
    ):
        """Print a formatted summary grouped by start time"""
        if not result.success or result.schedule is None:
            print(f"❌ Schedule generation failed: {result.error_message}")
            for error in result.errors[:5]:
                print(f"   • {error}")
            return

        schedule = result.schedule
        names = {p.id: p.name for p in participants}
        teams = schedule.team_lookup()

        print(f"\n🏸 Doubles Round Robin Schedule")
        print("=" * 80)
        print(f"📊 Summary:")
        print(f"   • Players: {len(participants)}")
        print(f"   • Rounds: {len(schedule.rounds)}")
        print(f"   • Total matches: {len(schedule.scheduled_matches)}")
        print(f"   • Total duration: {schedule.optimization.total_duration} minutes")
        print(f"   • Generation time: {result.generation_time:.2f} seconds")

        if result.warnings:
            print(f"\n⚠️  Warnings:")
            for warning in result.warnings:
                print(f"   • {warning}")

        byes = [(r.round_number, r.bye_id) for r in schedule.rounds if r.bye_id]
        if byes:
            print(f"\n💤 Byes:")
            for round_number, bye_id in byes:
                print(f"   Round {round_number}: {names.get(bye_id, bye_id)}")

        def team_label(team_id: str) -> str:
            team = teams[team_id]
            return " & ".join(names.get(pid, pid) for pid in team.player_ids)

        time_slots = defaultdict(list)
        for match in schedule.scheduled_matches:
            time_slots[match.scheduled_time].append(match)

        print(f"\n📅 MATCHES:")
        print("-" * 60)
        for slot, matches_at_time in sorted(time_slots.items()):
            print(f"{slot.strftime('%H:%M')}:")
            for match in sorted(matches_at_time, key=lambda m: m.court_number):
                print(
                    f"   Court {match.court_number:<3} | Round {match.round_number:<3} | "
                    f"{team_label(match.team1_id)} vs {team_label(match.team2_id)}"
                )
