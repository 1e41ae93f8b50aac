"""
Tests for status normalisation and record reconciliation.
"""

from datetime import datetime, timezone
from itertools import permutations

import pytest

from streakr.utils.status import (
    normalize_outcome,
    normalize_status,
    reconcile_statuses,
    settled_outcome,
    to_millis,
)


def record(key, question_id, status, outcome=None, updated_at=None, round_number=3, result=None):
    return {
        "id": key,
        "question_id": question_id,
        "round_number": round_number,
        "status": status,
        "outcome": outcome,
        "result": result,
        "updated_at": updated_at,
    }


class TestNormalizeOutcome:
    """Synonym handling for stored outcomes."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Winner", "yes"),
            ("WIN", "yes"),
            ("yes", "yes"),
            (" Correct ", "yes"),
            ("Loser", "no"),
            ("wrong", "no"),
            ("N", "no"),
            ("Cancelled", "void"),
            ("canceled", "void"),
            ("VOID", "void"),
            ("TBD", None),
            ("lock", None),
            ("", None),
            (None, None),
            (1, None),
        ],
    )
    def test_synonyms(self, raw, expected):
        assert normalize_outcome(raw) == expected


class TestNormalizeStatus:
    """Case folding and substring matching for stored statuses."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("OPEN", "open"),
            ("Final", "final"),
            ("finalised", "final"),
            ("Pending", "pending"),
            ("pending-review", "pending"),
            ("Voided", "void"),
            (None, "open"),
            ("something else", "open"),
        ],
    )
    def test_statuses(self, raw, expected):
        assert normalize_status(raw) == expected


class TestToMillis:
    """Timestamp coercion."""

    def test_datetime_and_strings(self):
        dt = datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert to_millis(dt) == 1772323200000
        assert to_millis(dt.replace(tzinfo=None)) == 1772323200000
        assert to_millis("2026-03-01T00:00:00Z") == 1772323200000

    def test_missing_or_unreadable_is_zero(self):
        assert to_millis(None) == 0
        assert to_millis("") == 0
        assert to_millis("not a date") == 0
        assert to_millis(True) == 0
        assert to_millis(1234) == 1234


class TestReconcileStatuses:
    """Collapsing several records per question into one entry."""

    def test_latest_record_wins_regardless_of_order(self):
        records = [
            record("3__R3-G1-Q1", "R3-G1-Q1", "open", updated_at=100),
            record("legacy-a", "R3-G1-Q1", "final", "yes", updated_at=300),
            record("legacy-b", "R3-G1-Q1", "pending", updated_at=200),
        ]
        for ordering in permutations(records):
            result = reconcile_statuses(list(ordering))
            assert result == {"R3-G1-Q1": {"status": "final", "outcome": "yes"}}

    def test_equal_timestamps_prefer_canonical_key(self):
        records = [
            record("zzz-stray", "R3-G1-Q1", "final", "no", updated_at=500),
            record("3__R3-G1-Q1", "R3-G1-Q1", "final", "yes", updated_at=500),
        ]
        for ordering in permutations(records):
            assert reconcile_statuses(list(ordering))["R3-G1-Q1"]["outcome"] == "yes"

    def test_equal_timestamps_between_strays_break_on_key(self):
        records = [
            record("stray-a", "R3-G1-Q1", "final", "no", updated_at=500),
            record("stray-b", "R3-G1-Q1", "final", "yes", updated_at=500),
        ]
        for ordering in permutations(records):
            assert reconcile_statuses(list(ordering))["R3-G1-Q1"]["outcome"] == "yes"

    def test_drops_unusable_records(self):
        records = [
            record("a", None, "final", "yes"),
            record("b", "R3-G1-Q2", None, "yes"),
            record("c", "R3-G1-Q3 ", "final", "yes"),
            record("d", "garbage", "final", "yes"),
        ]
        assert reconcile_statuses(records) == {}

    def test_legacy_result_field_and_synonyms(self):
        records = [
            record("3__R3-G1-Q1", "R3-G1-Q1", "FINAL", result="Winner", updated_at=1),
            record("3__R3-G1-Q2", "R3-G1-Q2", "Final", outcome="Loser", updated_at=1),
            record("3__R3-G1-Q3", "R3-G1-Q3", "final", outcome="TBD", updated_at=1),
        ]
        result = reconcile_statuses(records)
        assert result["R3-G1-Q1"] == {"status": "final", "outcome": "yes"}
        assert result["R3-G1-Q2"] == {"status": "final", "outcome": "no"}
        assert result["R3-G1-Q3"] == {"status": "final", "outcome": None}

    def test_limited_to_requested_questions(self):
        records = [
            record("3__R3-G1-Q1", "R3-G1-Q1", "final", "yes"),
            record("3__R3-G1-Q2", "R3-G1-Q2", "final", "no"),
        ]
        assert list(reconcile_statuses(records, ["R3-G1-Q2"])) == ["R3-G1-Q2"]


class TestSettledOutcome:
    """Which entries count as settled for scoring."""

    def test_final_with_outcome(self):
        assert settled_outcome({"status": "final", "outcome": "yes"}) == "yes"
        assert settled_outcome({"status": "final", "outcome": "no"}) == "no"

    def test_void_status_or_outcome(self):
        assert settled_outcome({"status": "void", "outcome": None}) == "void"
        assert settled_outcome({"status": "final", "outcome": "void"}) == "void"

    def test_unsettled(self):
        assert settled_outcome(None) is None
        assert settled_outcome({"status": "pending", "outcome": "yes"}) is None
        assert settled_outcome({"status": "open", "outcome": None}) is None
        assert settled_outcome({"status": "final", "outcome": None}) is None
