"""
Leader and leaderboard standings
"""

import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from streakr import db
from streakr.models import User
from streakr.services import pick_service, round_source, status_service
from streakr.utils.status import to_millis
from streakr.utils.streaks import compute_best_streak_across_games, find_leader

logger = logging.getLogger(__name__)


def unpicked_breaks():
    return bool(current_app.config.get("STREAK_UNPICKED_BREAKS", False))


def tiebreak_key(users):
    """
    Sort key deciding ties between users with the same score

    LEADER_TIEBREAK "created_at" prefers the oldest account, "user_id" the
    lowest id. Unknown users sort last.
    """
    mode = current_app.config.get("LEADER_TIEBREAK", "created_at")

    def key(user_id):
        user = users.get(user_id)
        if mode == "created_at" and user is not None and user.created_at:
            return (0, to_millis(user.created_at), user_id)
        if mode == "created_at":
            return (1, 0, user_id)
        return (0, 0, user_id)

    return key


def load_users(user_ids):
    try:
        return User.get_by_ids(user_ids)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load {len(user_ids)} users: {e}")
        db.session.rollback()
        return {}


def round_leader(games_question_ids, picks_by_user, statuses):
    """
    Leader of a round

    Returns:
        tuple: (leader_score, leader User or None)
    """
    users = load_users(list(picks_by_user))
    score, leader_id = find_leader(
        games_question_ids,
        picks_by_user,
        statuses,
        tiebreak_key=tiebreak_key(users),
        unpicked_breaks=unpicked_breaks(),
    )
    return score, users.get(leader_id)


def _entry(rank, user, score):
    return {
        "rank": rank,
        "user_id": user.id,
        "display_name": user.full_name,
        "favourite_team": user.favourite_team,
        "avatar_url": user.avatar_url,
        "score": score,
        "current_streak": user.current_streak or 0,
        "longest_streak": user.longest_streak or 0,
    }


def _rank(scored, users, limit, caller_id):
    """
    Order (user_id, score) pairs and cut to the top `limit`

    Users sharing a score share a rank. The caller's own entry is returned
    separately even when outside the top.
    """
    key = tiebreak_key(users)
    ordered = sorted(scored, key=lambda item: (-item[1], key(item[0])))

    entries = []
    caller_entry = None
    rank = 0
    previous = None
    for position, (user_id, score) in enumerate(ordered, 1):
        user = users.get(user_id)
        if user is None:
            continue
        if score != previous:
            rank = position
            previous = score
        entry = _entry(rank, user, score)
        if len(entries) < limit:
            entries.append(entry)
        if user_id == caller_id:
            caller_entry = entry
    return entries, caller_entry


def round_leaderboard(season_ctx, round_number, caller_id=None, limit=None):
    """Standings for one round by best single-game streak"""
    limit = limit or current_app.config.get("LEADERBOARD_LIMIT", 50)
    structure = round_source.get_round_structure(season_ctx.season, round_number)
    games = round_source.games_question_ids(structure)
    statuses = status_service.get_round_statuses(structure)
    picks_by_user = pick_service.aggregate_picks(round_source.question_ids(structure))[
        "picks_by_user"
    ]

    scored = [
        (
            user_id,
            compute_best_streak_across_games(
                games, user_picks, statuses, unpicked_breaks()
            ),
        )
        for user_id, user_picks in picks_by_user.items()
    ]
    entries, caller_entry = _rank(scored, load_users(list(picks_by_user)), limit, caller_id)
    return {
        "scope": "round",
        "round_number": round_number,
        "entries": entries,
        "user_entry": caller_entry,
    }


def overall_leaderboard(caller_id=None, limit=None):
    """Season standings by longest stored streak"""
    limit = limit or current_app.config.get("LEADERBOARD_LIMIT", 50)
    try:
        users = User.query.filter(User.is_active.is_(True)).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load users for leaderboard: {e}")
        db.session.rollback()
        users = []

    by_id = {user.id: user for user in users}
    scored = [(user.id, user.longest_streak or 0) for user in users]
    entries, caller_entry = _rank(scored, by_id, limit, caller_id)
    return {"scope": "overall", "entries": entries, "user_entry": caller_entry}
