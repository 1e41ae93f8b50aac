"""
Picks view assembly

round source -> question ids -> statuses -> picks -> streaks -> response.
Each store read degrades to an empty result on its own, so one failing
fetch never blanks the whole view.
"""

import logging

from flask import current_app

from streakr.services import leaderboard_service, pick_service, round_source, status_service
from streakr.utils.streaks import compute_best_streak_across_games, correct_pick, percentages

logger = logging.getLogger(__name__)


def empty_view(round_number=0):
    """Zeroed response in the same shape as a full view"""
    return {
        "round_number": round_number,
        "round_code": None,
        "label": None,
        "games": [],
        "current_streak": 0,
        "leader_score": 0,
        "leader_name": None,
    }


def build_picks_view(season_ctx, round_number, user_id=None):
    """
    Picks view for a round

    Args:
        season_ctx: SeasonContext for the request
        round_number: Round to show
        user_id: Caller id for personal fields (None when anonymous)

    Returns:
        dict: response body (see empty_view for the shape)
    """
    structure = round_source.get_round_structure(season_ctx.season, round_number)
    if structure is None:
        return empty_view(round_number)

    ids = round_source.question_ids(structure)
    games_ids = round_source.games_question_ids(structure)

    statuses = status_service.get_round_statuses(structure)
    aggregate = pick_service.aggregate_picks(ids, user_id=user_id)
    comment_counts = pick_service.get_comment_counts(ids)

    stats = aggregate["stats"]
    user_picks = aggregate["user_picks"]

    games = []
    for game in structure["games"]:
        questions = []
        for question in game["questions"]:
            qid = question["id"]
            entry = statuses.get(qid) or {}
            counts = stats.get(qid, {"yes": 0, "no": 0})
            yes_percent, no_percent = percentages(counts["yes"], counts["no"])
            questions.append(
                {
                    "id": qid,
                    "quarter": question["quarter"],
                    "question": question["question"],
                    "status": entry.get("status", question["status"]),
                    "outcome": entry.get("outcome"),
                    "sport": game["sport"],
                    "user_pick": user_picks.get(qid),
                    "yes_percent": yes_percent,
                    "no_percent": no_percent,
                    "correct_pick": correct_pick(entry),
                    "comment_count": comment_counts.get(qid, 0),
                    "is_sponsor_question": season_ctx.is_sponsor_question(
                        round_number, qid
                    ),
                }
            )
        games.append(
            {
                "id": game["id"],
                "match": game["match"],
                "venue": game["venue"],
                "sport": game["sport"],
                "start_time": game["start_time"],
                "questions": questions,
            }
        )

    current_streak = 0
    if user_id is not None:
        current_streak = compute_best_streak_across_games(
            games_ids,
            user_picks,
            statuses,
            current_app.config.get("STREAK_UNPICKED_BREAKS", False),
        )

    leader_score, leader = leaderboard_service.round_leader(
        games_ids, aggregate["picks_by_user"], statuses
    )

    return {
        "round_number": round_number,
        "round_code": structure["round_code"],
        "label": structure["label"],
        "games": games,
        "current_streak": current_streak,
        "leader_score": leader_score,
        "leader_name": leader.full_name if leader else None,
    }
