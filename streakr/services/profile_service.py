"""
Player profile statistics
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from streakr import db
from streakr.models import Pick
from streakr.services import round_source, status_service
from streakr.utils.question_ids import infer_round_number
from streakr.utils.streaks import (
    PICK_CORRECT,
    PICK_WRONG,
    classify_pick,
    round_half_up,
)

logger = logging.getLogger(__name__)

RECENT_PICKS = 5


def empty_profile():
    return {
        "stats": {
            "display_name": "Player",
            "username": "",
            "favourite_team": "",
            "current_streak": 0,
            "best_streak": 0,
            "correct_percentage": 0,
            "rounds_played": 0,
        },
        "recent_picks": [],
    }


def build_profile(user, season):
    """
    Profile stats and the five most recent picks for a user

    Correct percentage counts settled, non-void picks only.
    """
    try:
        picks = (
            Pick.query.filter(Pick.user_id == user.id)
            .order_by(Pick.updated_at.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to load picks for profile of user {user.id}: {e}")
        db.session.rollback()
        picks = []

    statuses = status_service.get_statuses([p.question_id for p in picks])

    correct = 0
    decided = 0
    rounds_played = set()
    recent = []
    structures = {}

    for pick in picks:
        round_number = pick.round_number
        if round_number is None:
            round_number = infer_round_number(pick.question_id)
        if round_number is not None:
            rounds_played.add(round_number)

        result = classify_pick(pick.pick, statuses.get(pick.question_id))
        if result in (PICK_CORRECT, PICK_WRONG):
            decided += 1
            if result == PICK_CORRECT:
                correct += 1

        if len(recent) < RECENT_PICKS:
            if round_number not in structures:
                structures[round_number] = round_source.get_round_structure(
                    season, round_number
                )
            game, question = round_source.find_question(
                structures[round_number], pick.question_id
            )
            recent.append(
                {
                    "id": pick.question_id,
                    "round": round_number,
                    "match": game["match"] if game else "",
                    "question": question["question"] if question else "",
                    "user_pick": pick.pick,
                    "result": result,
                }
            )

    return {
        "stats": {
            "display_name": user.full_name,
            "username": user.username,
            "favourite_team": user.favourite_team or "",
            "current_streak": user.current_streak or 0,
            "best_streak": user.longest_streak or 0,
            "correct_percentage": round_half_up(correct / decided * 100) if decided else 0,
            "rounds_played": len(rounds_played),
        },
        "recent_picks": recent,
    }
