"""
Tests for pick aggregation (chunked store reads) and pick writes.
"""

from datetime import datetime

import pytest

from streakr import db
from streakr.models import Comment, Pick
from streakr.services import pick_service, round_source
from streakr.utils import reasons
from streakr.utils.store import chunked

from .conftest import SEASON


class TestChunking:
    """Identifier lists are split into bounded IN filters."""

    @pytest.mark.parametrize("count, chunks", [(3, 1), (10, 1), (11, 2), (23, 3)])
    def test_chunk_counts(self, app, count, chunks):
        values = [f"R3-G1-Q{i}" for i in range(1, count + 1)]
        result = chunked(values)
        assert len(result) == chunks
        assert all(len(chunk) <= 10 for chunk in result)
        assert [v for chunk in result for v in chunk] == values

    def test_duplicates_dropped(self):
        assert chunked(["a", "b", "a", "c"], size=2) == [["a", "b"], ["c"]]

    def test_bad_size(self):
        with pytest.raises(ValueError):
            chunked(["a"], size=0)


class TestAggregatePicks:
    """Totals are the same however many chunks the lookup needs."""

    @pytest.mark.parametrize("count", [3, 10, 11, 23])
    def test_every_question_counted(self, make_round, make_user, add_pick, count):
        structure = make_round(3, [count])
        ids = round_source.question_ids(structure)
        alice = make_user("alice")
        bob = make_user("bob")
        for qid in ids:
            add_pick(alice, qid, "yes")
        add_pick(bob, ids[-1], "no")

        result = pick_service.aggregate_picks(ids, user_id=alice.id)

        assert len(result["stats"]) == count
        assert sum(s["yes"] for s in result["stats"].values()) == count
        assert result["stats"][ids[-1]] == {"yes": 1, "no": 1, "total": 2}
        assert len(result["user_picks"]) == count
        assert result["picks_by_user"][bob.id] == {ids[-1]: "no"}

    def test_small_limit_merges_chunks(self, app, make_round, make_user, add_pick):
        app.config["STORE_IN_FILTER_LIMIT"] = 2
        structure = make_round(3, [5])
        ids = round_source.question_ids(structure)
        alice = make_user("alice")
        for qid in ids:
            add_pick(alice, qid, "no")

        result = pick_service.aggregate_picks(ids)
        assert all(result["stats"][qid]["no"] == 1 for qid in ids)
        assert result["user_picks"] == {}

    def test_other_rounds_and_bad_values_ignored(self, make_round, make_user, add_pick):
        make_round(2, [1])
        structure = make_round(3, [1])
        alice = make_user("alice")
        add_pick(alice, "R2-G1-Q1", "yes")
        db.session.add(
            Pick(id="x", user_id=alice.id, question_id="R3-G1-Q1", pick="maybe")
        )
        db.session.commit()

        result = pick_service.aggregate_picks(round_source.question_ids(structure))
        assert result["stats"] == {"R3-G1-Q1": {"yes": 0, "no": 0, "total": 0}}
        assert result["picks_by_user"] == {}

    def test_empty(self, app):
        assert pick_service.aggregate_picks([]) == {
            "stats": {},
            "user_picks": {},
            "picks_by_user": {},
        }

    def test_comment_counts(self, make_round, make_user):
        make_round(3, [2])
        alice = make_user("alice")
        for body in ("one", "two"):
            db.session.add(
                Comment(user_id=alice.id, round_number=3, question_id="R3-G1-Q1", body=body)
            )
        db.session.commit()
        assert pick_service.get_comment_counts(["R3-G1-Q1", "R3-G1-Q2"]) == {
            "R3-G1-Q1": 2
        }


class TestSavePick:
    """Pick writes are validated against the round source and status."""

    def test_save_and_overwrite(self, season_ctx, make_round, make_user):
        make_round(3, [2])
        alice = make_user("alice")

        record, reason = pick_service.save_pick(alice, season_ctx, "R3-G1-Q1", "yes")
        assert reason is None
        assert record.id == f"{alice.id}_R3-G1-Q1"
        assert record.game_id == "R3-G1"
        assert record.round_number == 3

        record, reason = pick_service.save_pick(alice, season_ctx, "R3-G1-Q1", "no")
        assert reason is None
        assert Pick.query.filter_by(user_id=alice.id).count() == 1
        assert db.session.get(Pick, f"{alice.id}_R3-G1-Q1").pick == "no"

    def test_rejections(self, season_ctx, make_round, make_user, set_status):
        make_round(3, [2])
        alice = make_user("alice")
        set_status("R3-G1-Q2", "pending")

        assert pick_service.save_pick(alice, season_ctx, "R3-G1-Q1", "maybe") == (
            None,
            reasons.INVALID_INPUT,
        )
        assert pick_service.save_pick(alice, season_ctx, "R3-G1-Q1 ", "yes") == (
            None,
            reasons.INVALID_INPUT,
        )
        assert pick_service.save_pick(alice, season_ctx, "R3-G9-Q1", "yes") == (
            None,
            reasons.QUESTION_NOT_FOUND,
        )
        assert pick_service.save_pick(alice, season_ctx, "R3-G1-Q2", "yes") == (
            None,
            reasons.QUESTION_LOCKED,
        )
        assert Pick.query.count() == 0

    def test_clear(self, season_ctx, make_round, make_user, add_pick):
        make_round(3, [1])
        alice = make_user("alice")
        add_pick(alice, "R3-G1-Q1", "yes")

        assert pick_service.clear_pick(alice, season_ctx, "R3-G1-Q1") == (True, None)
        assert pick_service.clear_pick(alice, season_ctx, "R3-G1-Q1") == (False, None)

    def test_latest_pick(self, season_ctx, make_round, make_user):
        make_round(3, [2])
        alice = make_user("alice")
        assert pick_service.get_latest_pick(alice.id) is None

        older, _ = pick_service.save_pick(alice, season_ctx, "R3-G1-Q1", "yes")
        older.updated_at = datetime(2026, 3, 1)
        db.session.commit()
        pick_service.save_pick(alice, season_ctx, "R3-G1-Q2", "no")

        assert pick_service.get_latest_pick(alice.id).question_id == "R3-G1-Q2"
        assert round_source.get_round_structure(SEASON, 3)["round_code"] == "R3"
