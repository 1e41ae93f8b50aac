"""
Streak engine

Pure scoring helpers. Everything here works on plain values:

    question_ids   ordered list of question ids for one game
    user_picks     {question_id: "yes" | "no"} for one user
    statuses       reconciled {question_id: {"status", "outcome"}}

Scores only ever come from the question ids handed in, so a round's
figures never pick up another round's picks.
"""

import math

from streakr.utils.status import OUTCOME_NO, OUTCOME_VOID, OUTCOME_YES, settled_outcome

PICK_CORRECT = "correct"
PICK_WRONG = "wrong"
PICK_VOID = "void"
PICK_PENDING = "pending"


def _is_pick(value):
    return value in (OUTCOME_YES, OUTCOME_NO)


def score_match(question_ids, user_picks, statuses, unpicked_breaks=False):
    """
    Walk one game's questions in order

    Returns:
        tuple: (correct_count, busted) where busted means a settled miss
    """
    correct = 0
    for question_id in question_ids:
        outcome = settled_outcome(statuses.get(question_id))
        pick = user_picks.get(question_id)

        if not _is_pick(pick):
            if unpicked_breaks and outcome in (OUTCOME_YES, OUTCOME_NO):
                return correct, True
            continue

        if outcome is None or outcome == OUTCOME_VOID:
            continue

        if pick == outcome:
            correct += 1
        else:
            return correct, True
    return correct, False


def compute_match_streak(question_ids, user_picks, statuses, unpicked_breaks=False):
    """
    Clean-sweep streak for one game

    Open and pending questions are skipped, as are void ones. Unpicked
    questions are skipped unless unpicked_breaks is set, in which case a
    settled question without a pick counts as a miss. A single miss makes
    the whole game worth 0.

    Returns:
        int: number of correct settled picks, or 0 if any settled pick missed
    """
    correct, busted = score_match(question_ids, user_picks, statuses, unpicked_breaks)
    return 0 if busted else correct


def compute_best_streak_across_games(
    games_question_ids, user_picks, statuses, unpicked_breaks=False
):
    """Best single-game streak in a round (the maximum, not the sum)"""
    best = 0
    for question_ids in games_question_ids:
        best = max(
            best,
            compute_match_streak(question_ids, user_picks, statuses, unpicked_breaks),
        )
    return best


def compute_rolling_streak(
    games_question_ids, user_picks, statuses, unpicked_breaks=False
):
    """
    Running streak through a round's games in order

    A busted game resets the streak to 0, a clean game adds its correct
    picks and games the user did not pick at all leave it untouched.
    """
    current = 0
    for question_ids in games_question_ids:
        if not any(_is_pick(user_picks.get(q)) for q in question_ids):
            continue
        correct, busted = score_match(
            question_ids, user_picks, statuses, unpicked_breaks
        )
        current = 0 if busted else current + correct
    return current


def find_leader(
    games_question_ids, picks_by_user, statuses, tiebreak_key=None, unpicked_breaks=False
):
    """
    Highest best-streak among all users with picks in the round

    Args:
        games_question_ids: List of ordered question id lists, one per game
        picks_by_user: {user_id: {question_id: pick}}
        statuses: Reconciled statuses for the round
        tiebreak_key: Callable user_id -> sortable; the lowest key wins a tie.
            Defaults to the user id itself.
        unpicked_breaks: Treat settled unpicked questions as misses

    Returns:
        tuple: (leader_score, leader_user_id); (0, None) when nobody scored
    """
    if tiebreak_key is None:
        tiebreak_key = str

    leader_score = 0
    leader_id = None
    for user_id, user_picks in picks_by_user.items():
        score = compute_best_streak_across_games(
            games_question_ids, user_picks, statuses, unpicked_breaks
        )
        if score <= 0:
            continue
        if score > leader_score or (
            score == leader_score and tiebreak_key(user_id) < tiebreak_key(leader_id)
        ):
            leader_score = score
            leader_id = user_id
    return leader_score, leader_id


def correct_pick(entry):
    """Winning answer for a final question, None otherwise"""
    outcome = settled_outcome(entry)
    return outcome if outcome in (OUTCOME_YES, OUTCOME_NO) else None


def classify_pick(pick, entry):
    """correct / wrong / void / pending for a single pick"""
    outcome = settled_outcome(entry)
    if outcome is None:
        return PICK_PENDING
    if outcome == OUTCOME_VOID:
        return PICK_VOID
    return PICK_CORRECT if pick == outcome else PICK_WRONG


def round_half_up(value):
    """Round .5 upwards, matching how percentages are shown to players"""
    return int(math.floor(value + 0.5))


def percentages(yes_count, no_count):
    """
    Whole-number yes/no percentages

    Returns:
        tuple: (yes_percent, no_percent); (0, 0) when there are no picks
    """
    total = yes_count + no_count
    if total <= 0:
        return 0, 0
    return (
        round_half_up(yes_count / total * 100),
        round_half_up(no_count / total * 100),
    )
