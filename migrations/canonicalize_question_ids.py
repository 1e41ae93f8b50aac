#!/usr/bin/env python3
"""
One-time migration: move every question onto positional ids

This script:
1. Re-keys question status records whose keys or ids are malformed
2. Moves picks and statuses of each imported round from content-hash ids
   ("R3-G2-Q1-k3x9a") to positional ids ("R3-G2-Q4")

Safe to run more than once; a second run reports nothing to do.

Usage:
    python migrations/canonicalize_question_ids.py [--dry-run]
"""

import sys

from streakr import create_app
from streakr.models import Round
from streakr.services import status_service


def canonicalize(dry_run=False):
    app = create_app()

    with app.app_context():
        season = app.config["CURRENT_SEASON"]
        print("=" * 60)
        print(f"Canonicalizing question ids for season {season}")
        if dry_run:
            print("(dry run - nothing is written)")
        print("=" * 60)

        print("\n🔄 Repairing question status keys...")
        repaired = status_service.repair_question_status_keys(dry_run=dry_run)
        print(
            f"✅ Scanned {repaired['scanned']}, bad {repaired['bad']}, "
            f"migrated {repaired['migrated']}, deleted {repaired['deleted']}"
        )

        rounds = (
            Round.query.filter_by(season=season).order_by(Round.round_number).all()
        )
        if not rounds:
            print("\nNo rounds imported - nothing to migrate")
            return

        totals = {"picks_moved": 0, "picks_dropped": 0, "statuses_moved": 0}
        for round_obj in rounds:
            result = status_service.migrate_legacy_question_ids(
                season, round_obj.round_number, dry_run=dry_run
            )
            for name in totals:
                totals[name] += result[name]
            print(
                f"  {round_obj.round_code:<4} picks moved {result['picks_moved']}, "
                f"dropped {result['picks_dropped']}, "
                f"statuses moved {result['statuses_moved']}"
            )
            if result["unknown_ids"]:
                print(f"  [WARN] {len(result['unknown_ids'])} unknown ids left in place")

        print(f"\n{'=' * 60}")
        print(
            f"DONE: {totals['picks_moved']} picks moved, "
            f"{totals['picks_dropped']} dropped, {totals['statuses_moved']} statuses moved"
        )
        print(f"{'=' * 60}")


if __name__ == "__main__":
    try:
        canonicalize(dry_run="--dry-run" in sys.argv[1:])
    except Exception as e:
        print(f"\n[ERROR] Migration failed: {e}")
        import traceback

        traceback.print_exc()
        exit(1)
