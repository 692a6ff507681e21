"""Command line interface and example configurations."""

import argparse
import csv
import json
import logging
import os
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from doubles_tournament.models import (
    Participant,
    ScheduleResult,
    ScheduleSettings,
    create_participants,
)
from doubles_tournament.scheduling import TournamentScheduler

logger = logging.getLogger(__name__)

EXAMPLE_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Henry"]


def run_all_tests() -> bool:
    """Discover and run the unit tests shipped next to the package"""
    import unittest

    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    tests_dir = os.path.join(project_root, "tests")
    if not os.path.isdir(tests_dir):
        print(f"❌ No tests directory found at {tests_dir}")
        return False

    suite = unittest.defaultTestLoader.discover(tests_dir, top_level_dir=project_root)
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return result.wasSuccessful()


def create_example_tournament() -> Tuple[str, ScheduleSettings, List[str]]:
    """Eight players on two courts, half-hour matches"""
    settings = ScheduleSettings(
        start_time=datetime(2024, 1, 1, 9, 0),
        court_count=2,
        match_duration=30,
    )
    return "example-tournament", settings, list(EXAMPLE_NAMES)


def load_config(path: str) -> Tuple[str, ScheduleSettings, List[str]]:
    """Load tournament id, settings and participant names from a JSON file"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    tournament = dict(data["tournament"])
    tournament_id = tournament.pop("id", "tournament")
    settings = ScheduleSettings(**tournament)

    names = data["participants"]
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ValueError("'participants' must be a list of names")

    return tournament_id, settings, names


def serialize_config(
    tournament_id: str, settings: ScheduleSettings, names: List[str]
) -> Dict[str, Any]:
    tournament = asdict(settings)
    tournament["start_time"] = settings.start_time.isoformat()
    return {"tournament": {"id": tournament_id, **tournament}, "participants": names}


def export_csv(
    result: ScheduleResult, participants: List[Participant], path: str
) -> int:
    """Write one row per scheduled match; returns the number of rows"""
    names = {p.id: p.name for p in participants}
    schedule = result.schedule
    teams = schedule.team_lookup()

    rows = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["round", "match", "court", "start_time", "team1", "team2", "match_id"]
        )
        for match in sorted(
            schedule.scheduled_matches, key=lambda m: (m.scheduled_time, m.court_number)
        ):
            writer.writerow(
                [
                    match.round_number,
                    match.match_number,
                    match.court_number,
                    match.scheduled_time.isoformat(),
                    " & ".join(names[pid] for pid in teams[match.team1_id].player_ids),
                    " & ".join(names[pid] for pid in teams[match.team2_id].player_ids),
                    match.id,
                ]
            )
            rows += 1
    return rows


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Doubles round-robin scheduler (rotating partners)"
    )
    parser.add_argument("--test", action="store_true", help="Run unit tests")
    parser.add_argument(
        "--run-example", action="store_true", help="Run example tournament"
    )
    parser.add_argument("--config", type=str, help="JSON configuration file")
    parser.add_argument("--save-example", type=str, help="Save example config to file")
    parser.add_argument("--export-csv", type=str, help="Export schedule to CSV file")
    parser.add_argument("--players", type=int, help="Generate N numbered players")
    parser.add_argument("--names", type=str, help="Comma separated player names")
    parser.add_argument("--courts", type=int, help="Number of courts")
    parser.add_argument("--duration", type=int, help="Match duration in minutes")
    parser.add_argument("--start", type=str, help="Start time (ISO 8601)")
    parser.add_argument(
        "--strategy", choices=["greedy", "cp-sat"], help="Court/time assignment strategy"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main command line interface"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.test:
        print("🧪 Running unit tests...")
        return 0 if run_all_tests() else 1

    if args.save_example:
        config_data = serialize_config(*create_example_tournament())
        with open(args.save_example, "w", encoding="utf-8") as f:
            json.dump(config_data, f, indent=2, ensure_ascii=False)
        print(f"📁 Example configuration saved to {args.save_example}")
        return 0

    # Determine configuration source
    try:
        if args.config:
            tournament_id, settings, names = load_config(args.config)
            print(f"📁 Loaded configuration from {args.config}")
        elif args.run_example or args.players or args.names:
            tournament_id, settings, names = create_example_tournament()
        else:
            print("❌ Please specify --config, --run-example, --players N, --names or --save-example")
            parser.print_help()
            return 2

        if args.names:
            names = [n for n in args.names.split(",") if n.strip()]
        elif args.players:
            names = [f"Player {i}" for i in range(1, args.players + 1)]

        overrides = {}
        if args.courts is not None:
            overrides["court_count"] = args.courts
        if args.duration is not None:
            overrides["match_duration"] = args.duration
        if args.start:
            overrides["start_time"] = datetime.fromisoformat(args.start)
        if args.strategy:
            overrides["strategy"] = args.strategy
        if overrides:
            settings = replace(settings, **overrides)

        participants = create_participants(names, tournament_id)
    except (OSError, KeyError, TypeError, ValueError) as e:
        print(f"❌ Error loading configuration: {e}")
        return 2

    scheduler = TournamentScheduler()
    print(f"\n🚀 Generating schedule for {len(participants)} players...")
    result = scheduler.schedule_tournament(participants, settings, tournament_id)

    scheduler.print_schedule_summary(result, participants)

    if args.export_csv and result.success:
        rows = export_csv(result, participants, args.export_csv)
        print(f"💾 Exported {rows} matches to {args.export_csv}")

    return 0 if result.success else 1
