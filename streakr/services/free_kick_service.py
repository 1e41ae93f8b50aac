"""
Golden Free Kick

A once-per-season power-up a player may spend on a game they lost. This
module only decides eligibility and records the use; restoring the streak
is left to whoever reads the FreeKickUse record.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from streakr import db
from streakr.models import FreeKickUse
from streakr.services import pick_service, round_source, status_service
from streakr.utils import reasons
from streakr.utils.question_ids import game_id as make_game_id
from streakr.utils.question_ids import parse_game_id
from streakr.utils.status import (
    OUTCOME_NO,
    OUTCOME_YES,
    SETTLED_STATUSES,
    settled_outcome,
)

logger = logging.getLogger(__name__)


def check_free_kick(user, season_ctx, game_id):
    """
    Run the eligibility checks in order, stopping at the first failure

    Returns:
        tuple: (context dict, None) when eligible, else (None, reason code)
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None, reasons.UNAUTHENTICATED

    parsed = parse_game_id(game_id)
    if parsed is None:
        return None, reasons.INVALID_INPUT
    round_number, position = parsed
    canonical_game_id = make_game_id(round_number, position)

    if FreeKickUse.get_for(season_ctx.season, user.id) is not None:
        return None, reasons.FREE_KICK_ALREADY_USED

    structure = round_source.get_round_structure(season_ctx.season, round_number)
    game = round_source.find_game(structure, canonical_game_id)
    if game is None:
        return None, reasons.GAME_NOT_FOUND

    question_ids = [q["id"] for q in game["questions"]]
    if not question_ids:
        return None, reasons.NO_QUESTIONS

    user_picks = pick_service.get_user_picks(user.id, question_ids)
    if not user_picks:
        return None, reasons.NO_PICKS

    statuses = status_service.get_round_statuses(structure)
    picked = [qid for qid in question_ids if qid in user_picks]

    for qid in picked:
        entry = statuses.get(qid) or {}
        if entry.get("status") not in SETTLED_STATUSES:
            return None, reasons.NOT_SETTLED

    lost = [
        qid
        for qid in picked
        if settled_outcome(statuses.get(qid)) in (OUTCOME_YES, OUTCOME_NO)
        and user_picks[qid] != settled_outcome(statuses.get(qid))
    ]
    if not lost:
        return None, reasons.NO_LOSS

    return {
        "round_number": round_number,
        "game_id": canonical_game_id,
        "lost_question_ids": lost,
    }, None


def use_free_kick(user, season_ctx, game_id, restore_streak_to=None):
    """
    Spend the user's free kick for the season on a game

    The use is recorded with a plain insert on the "{season}__{user}" key, so
    two simultaneous requests cannot both succeed.

    Returns:
        tuple: (FreeKickUse, None) on success or (None, reason code)
    """
    eligible, reason = check_free_kick(user, season_ctx, game_id)
    if reason:
        logger.info(
            f"Free kick refused for user {getattr(user, 'id', None)} on {game_id}: {reason}"
        )
        return None, reason

    record = FreeKickUse(
        id=FreeKickUse.make_key(season_ctx.season, user.id),
        season=season_ctx.season,
        user_id=user.id,
        round_number=eligible["round_number"],
        game_id=eligible["game_id"],
        restore_streak_to=restore_streak_to,
    )
    try:
        db.session.add(record)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Free kick for user {user.id} lost a race with another request")
        return None, reasons.FREE_KICK_ALREADY_USED
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to record free kick for user {user.id}: {e}")
        return None, reasons.STORE_ERROR

    logger.info(
        f"User {user.id} used their {season_ctx.season} free kick on {eligible['game_id']}"
    )
    return record, None
