"""
Tests for the streak engine.

Scenarios use one game of four questions unless noted:
    R3-G1-Q1 .. R3-G1-Q4
"""

from streakr.utils.streaks import (
    PICK_CORRECT,
    PICK_PENDING,
    PICK_VOID,
    PICK_WRONG,
    classify_pick,
    compute_best_streak_across_games,
    compute_match_streak,
    compute_rolling_streak,
    correct_pick,
    find_leader,
    percentages,
    round_half_up,
)

GAME = ["R3-G1-Q1", "R3-G1-Q2", "R3-G1-Q3", "R3-G1-Q4"]


def final(outcome):
    return {"status": "final", "outcome": outcome}


OPEN = {"status": "open", "outcome": None}
VOID = {"status": "void", "outcome": "void"}


class TestMatchStreak:
    """Clean-sweep scoring for a single game."""

    def test_all_correct(self):
        picks = {q: "yes" for q in GAME}
        statuses = {q: final("yes") for q in GAME}
        assert compute_match_streak(GAME, picks, statuses) == 4

    def test_one_miss_zeroes_the_game(self):
        picks = {q: "yes" for q in GAME}
        statuses = {q: final("yes") for q in GAME}
        statuses["R3-G1-Q4"] = final("no")
        assert compute_match_streak(GAME, picks, statuses) == 0

    def test_miss_before_later_correct_answers_zeroes_the_game(self):
        picks = {q: "yes" for q in GAME}
        statuses = {q: final("yes") for q in GAME}
        statuses["R3-G1-Q3"] = final("no")
        assert compute_match_streak(GAME, picks, statuses) == 0

    def test_void_question_is_skipped(self):
        picks = {"R3-G1-Q1": "yes", "R3-G1-Q2": "no", "R3-G1-Q3": "yes"}
        statuses = {
            "R3-G1-Q1": final("yes"),
            "R3-G1-Q2": VOID,
            "R3-G1-Q3": final("yes"),
        }
        assert compute_match_streak(GAME, picks, statuses) == 2

    def test_open_and_pending_are_skipped(self):
        picks = {q: "yes" for q in GAME}
        statuses = {
            "R3-G1-Q1": final("yes"),
            "R3-G1-Q2": OPEN,
            "R3-G1-Q3": {"status": "pending", "outcome": None},
            "R3-G1-Q4": final("yes"),
        }
        assert compute_match_streak(GAME, picks, statuses) == 2

    def test_unpicked_questions_skipped_by_default(self):
        picks = {"R3-G1-Q1": "yes"}
        statuses = {q: final("yes") for q in GAME}
        assert compute_match_streak(GAME, picks, statuses) == 1

    def test_unpicked_questions_can_break_the_game(self):
        picks = {"R3-G1-Q1": "yes"}
        statuses = {q: final("yes") for q in GAME}
        assert compute_match_streak(GAME, picks, statuses, unpicked_breaks=True) == 0

    def test_no_picks_scores_zero(self):
        statuses = {q: final("yes") for q in GAME}
        assert compute_match_streak(GAME, {}, statuses) == 0

    def test_invalid_pick_values_are_ignored(self):
        picks = {"R3-G1-Q1": "maybe", "R3-G1-Q2": "yes"}
        statuses = {q: final("yes") for q in GAME}
        assert compute_match_streak(GAME, picks, statuses) == 1


class TestAcrossGames:
    """Best-of and rolling streaks over a round's games."""

    G1 = ["R3-G1-Q1", "R3-G1-Q2"]
    G2 = ["R3-G2-Q1", "R3-G2-Q2", "R3-G2-Q3"]

    def test_best_is_max_not_sum(self):
        picks = {q: "yes" for q in self.G1 + self.G2}
        statuses = {q: final("yes") for q in self.G1 + self.G2}
        assert compute_best_streak_across_games([self.G1, self.G2], picks, statuses) == 3

    def test_busted_game_does_not_affect_other_game(self):
        picks = {q: "yes" for q in self.G1 + self.G2}
        statuses = {q: final("yes") for q in self.G1 + self.G2}
        statuses["R3-G2-Q1"] = final("no")
        assert compute_best_streak_across_games([self.G1, self.G2], picks, statuses) == 2

    def test_correct_answers_after_a_miss_do_not_count(self):
        picks = {"R3-G1-Q1": "yes", **{q: "yes" for q in self.G2}}
        statuses = {q: final("yes") for q in self.G1 + self.G2}
        statuses["R3-G2-Q2"] = final("no")
        assert compute_best_streak_across_games([self.G1, self.G2], picks, statuses) == 1

    def test_round_isolation(self):
        """Picks on another round's questions never count."""
        picks = {"R2-G1-Q1": "yes", "R2-G1-Q2": "yes", "R3-G1-Q1": "yes"}
        statuses = {
            "R2-G1-Q1": final("yes"),
            "R2-G1-Q2": final("yes"),
            "R3-G1-Q1": final("yes"),
        }
        assert compute_best_streak_across_games([self.G1, self.G2], picks, statuses) == 1

    def test_rolling_adds_clean_games(self):
        picks = {q: "yes" for q in self.G1 + self.G2}
        statuses = {q: final("yes") for q in self.G1 + self.G2}
        assert compute_rolling_streak([self.G1, self.G2], picks, statuses) == 5

    def test_rolling_resets_on_bust(self):
        picks = {q: "yes" for q in self.G1 + self.G2}
        statuses = {q: final("yes") for q in self.G1 + self.G2}
        statuses["R3-G1-Q2"] = final("no")
        assert compute_rolling_streak([self.G1, self.G2], picks, statuses) == 3

        statuses = {q: final("yes") for q in self.G1 + self.G2}
        statuses["R3-G2-Q3"] = final("no")
        assert compute_rolling_streak([self.G1, self.G2], picks, statuses) == 0

    def test_rolling_skips_unpicked_games(self):
        picks = {q: "yes" for q in self.G1}
        statuses = {q: final("yes") for q in self.G1 + self.G2}
        assert compute_rolling_streak([self.G1, self.G2], picks, statuses) == 2


class TestFindLeader:
    """Round leader selection."""

    STATUSES = {q: final("yes") for q in GAME}

    def test_highest_score_leads(self):
        picks_by_user = {
            1: {"R3-G1-Q1": "yes"},
            2: {"R3-G1-Q1": "yes", "R3-G1-Q2": "yes"},
        }
        assert find_leader([GAME], picks_by_user, self.STATUSES) == (2, 2)

    def test_nobody_scoring_means_no_leader(self):
        picks_by_user = {1: {"R3-G1-Q1": "no"}, 2: {}}
        assert find_leader([GAME], picks_by_user, self.STATUSES) == (0, None)
        assert find_leader([GAME], {}, self.STATUSES) == (0, None)

    def test_tie_uses_tiebreak_key_not_input_order(self):
        picks = {"R3-G1-Q1": "yes"}
        joined = {7: 300, 8: 100, 9: 200}
        for order in ([7, 8, 9], [9, 8, 7], [8, 9, 7]):
            picks_by_user = {user_id: picks for user_id in order}
            score, leader = find_leader(
                [GAME], picks_by_user, self.STATUSES, tiebreak_key=joined.get
            )
            assert (score, leader) == (1, 8)

    def test_default_tiebreak_is_deterministic(self):
        picks = {"R3-G1-Q1": "yes"}
        first = find_leader([GAME], {"b": picks, "a": picks}, self.STATUSES)
        second = find_leader([GAME], {"a": picks, "b": picks}, self.STATUSES)
        assert first == second == (1, "a")


class TestPickHelpers:
    """Per-pick classification and percentage display."""

    def test_correct_pick(self):
        assert correct_pick(final("yes")) == "yes"
        assert correct_pick(VOID) is None
        assert correct_pick(OPEN) is None

    def test_classify_pick(self):
        assert classify_pick("yes", final("yes")) == PICK_CORRECT
        assert classify_pick("no", final("yes")) == PICK_WRONG
        assert classify_pick("no", VOID) == PICK_VOID
        assert classify_pick("no", OPEN) == PICK_PENDING
        assert classify_pick("no", None) == PICK_PENDING

    def test_round_half_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(12.49) == 12
        assert round_half_up(0.5) == 1

    def test_percentages(self):
        assert percentages(0, 0) == (0, 0)
        assert percentages(1, 1) == (50, 50)
        assert percentages(1, 2) == (33, 67)
        assert percentages(3, 0) == (100, 0)
