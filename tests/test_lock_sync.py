"""
Tests for automatic locking of started games.
"""

from datetime import datetime, timezone

import pytest

from streakr import db
from streakr.models import QuestionStatus, SeasonContext
from streakr.services import lock_sync, round_source, status_service

from .conftest import SEASON, round_payload

NOW = datetime(2026, 3, 20, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def round3(app):
    payload = round_payload(3, [2, 2])
    games = payload["rounds"][0]["games"]
    games[0]["start_time"] = "2026-03-20T08:30:00Z"
    games[1]["start_time"] = "2026-03-21T08:30:00Z"
    round_source.import_rounds(payload, SEASON)


class TestSyncLocks:
    """Open questions of started games become pending."""

    def test_locks_started_game_only(self, season_ctx, round3, set_status):
        set_status("R3-G1-Q2", "open")

        result = lock_sync.sync_locks(season_ctx, now=NOW)
        assert result == {"round_number": 3, "started_games": 1, "locked": 1, "created": 1}

        statuses = status_service.get_statuses(
            ["R3-G1-Q1", "R3-G1-Q2", "R3-G2-Q1", "R3-G2-Q2"]
        )
        assert statuses["R3-G1-Q1"]["status"] == "pending"
        assert statuses["R3-G1-Q2"]["status"] == "pending"
        assert "R3-G2-Q1" not in statuses
        assert db.session.get(QuestionStatus, "3__R3-G1-Q1").override_mode == "auto"

    def test_second_run_changes_nothing(self, season_ctx, round3):
        lock_sync.sync_locks(season_ctx, now=NOW)
        again = lock_sync.sync_locks(season_ctx, now=NOW)
        assert (again["locked"], again["created"]) == (0, 0)

    def test_manual_and_settled_questions_left_alone(self, season_ctx, round3, set_status):
        set_status("R3-G1-Q1", "open", override_mode="manual")
        set_status("R3-G1-Q2", "final", "yes")

        result = lock_sync.sync_locks(season_ctx, now=NOW)
        assert (result["locked"], result["created"]) == (0, 0)
        assert status_service.get_status("R3-G1-Q1")["status"] == "open"
        assert status_service.get_status("R3-G1-Q2")["status"] == "final"

    def test_nothing_started(self, season_ctx, round3):
        before = datetime(2026, 3, 1, tzinfo=timezone.utc)
        result = lock_sync.sync_locks(season_ctx, now=before)
        assert result == {"round_number": 3, "started_games": 0, "locked": 0, "created": 0}
        assert QuestionStatus.query.count() == 0

    def test_explicit_and_missing_round(self, round3):
        no_round = SeasonContext(SEASON)
        assert lock_sync.sync_locks(no_round, now=NOW)["round_number"] is None
        assert lock_sync.sync_locks(no_round, round_number=3, now=NOW)["created"] == 2
        assert lock_sync.sync_locks(no_round, round_number=8, now=NOW)["started_games"] == 0
