#!/usr/bin/env python3
"""
Seed the fixtures table from the bundled baseline schedule.

Baseline matches marked played are stored finished and locked; the rest
not started. Existing rows with the same id are overwritten, so run this
before the livescore sync has written anything you want to keep.

Usage:
    python3 scripts/seed_fixtures.py [--dry-run] [--schedule PATH] [--tournament A]
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv(Path(__file__).parent.parent / ".env")

# Add src directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir / "src"))

from config import Config
from league.schedule import load_baseline, seed_records
from utils.logger import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Seed fixtures from the bundled schedule")
    parser.add_argument("--dry-run", action="store_true", help="Print the record count without writing")
    parser.add_argument("--schedule", help="Schedule JSON (default: bundled)")
    parser.add_argument("--tournament", help="Tournament tag (default: LEAGUE_BASELINE_TOURNAMENT)")
    args = parser.parse_args()

    setup_logging()

    if args.dry_run:
        schedule = load_baseline(args.schedule, tournament=args.tournament)
        records = seed_records(schedule)
        played = len([r for r in records if r["status"] == "FT"])
        print(f"Would upsert {len(records)} fixtures ({played} played) for tournament {schedule.tournament}")
        return

    config = Config()
    schedule = load_baseline(args.schedule, tournament=args.tournament or config.baseline_tournament)
    records = seed_records(schedule)

    from database.supabase_client import SupabaseClient
    db_client = SupabaseClient(config)

    try:
        written = db_client.upsert_fixtures(records)
    except Exception as e:
        print(f"❌ Seed failed: {e}")
        sys.exit(1)

    print(f"✅ Upserted {len(written)} fixtures for tournament {schedule.tournament}")


if __name__ == "__main__":
    main()
