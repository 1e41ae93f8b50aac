"""
Pick aggregation and pick writes
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from streakr import db
from streakr.models import Comment, Pick
from streakr.services import round_source, status_service
from streakr.utils import reasons
from streakr.utils.question_ids import infer_round_number, is_valid_question_id
from streakr.utils.status import STATUS_OPEN
from streakr.utils.store import fetch_in_chunks

logger = logging.getLogger(__name__)

PICK_CHOICES = ("yes", "no")


def empty_stats(question_ids):
    return {question_id: {"yes": 0, "no": 0, "total": 0} for question_id in question_ids}


def aggregate_picks(question_ids, user_id=None):
    """
    Collect every pick recorded against a set of question ids

    Lookups are chunked, so the result is the same for 3 or 300 questions.
    Picks other than "yes"/"no" are ignored.

    Args:
        question_ids: Question ids to aggregate
        user_id: Optional caller whose own picks are returned separately

    Returns:
        dict: {
            "stats": {question_id: {"yes", "no", "total"}},
            "user_picks": {question_id: pick} for user_id,
            "picks_by_user": {user_id: {question_id: pick}},
        }
    """
    question_ids = list(dict.fromkeys(question_ids))
    result = {"stats": empty_stats(question_ids), "user_picks": {}, "picks_by_user": {}}
    if not question_ids:
        return result

    try:
        picks = fetch_in_chunks(Pick.query, Pick.question_id, question_ids)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch picks for {len(question_ids)} questions: {e}")
        db.session.rollback()
        return result

    for pick in picks:
        if pick.pick not in PICK_CHOICES or pick.question_id not in result["stats"]:
            continue

        counts = result["stats"][pick.question_id]
        counts[pick.pick] += 1
        counts["total"] += 1

        result["picks_by_user"].setdefault(pick.user_id, {})[pick.question_id] = pick.pick
        if user_id is not None and pick.user_id == user_id:
            result["user_picks"][pick.question_id] = pick.pick

    return result


def get_user_picks(user_id, question_ids):
    """One user's {question_id: pick} among the given question ids"""
    try:
        picks = fetch_in_chunks(
            Pick.query.filter(Pick.user_id == user_id), Pick.question_id, question_ids
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch picks for user {user_id}: {e}")
        db.session.rollback()
        return {}
    return {p.question_id: p.pick for p in picks if p.pick in PICK_CHOICES}


def get_comment_counts(question_ids):
    """Number of comments per question id"""
    counts = {}
    try:
        comments = fetch_in_chunks(Comment.query, Comment.question_id, question_ids)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch comment counts: {e}")
        db.session.rollback()
        return counts

    for comment in comments:
        counts[comment.question_id] = counts.get(comment.question_id, 0) + 1
    return counts


def get_latest_pick(user_id):
    """The user's most recently changed pick, or None"""
    return (
        Pick.query.filter(Pick.user_id == user_id)
        .order_by(Pick.updated_at.desc())
        .first()
    )


def _locate_question(season_ctx, question_id):
    """Validate a question id against the round source"""
    if not is_valid_question_id(question_id):
        return None, reasons.INVALID_INPUT

    round_number = infer_round_number(question_id)
    structure = round_source.get_round_structure(season_ctx.season, round_number)
    game, question = round_source.find_question(structure, question_id)
    if question is None:
        return None, reasons.QUESTION_NOT_FOUND

    status = status_service.get_status(question_id)
    current = status["status"] if status else question["status"]
    if current != STATUS_OPEN:
        return None, reasons.QUESTION_LOCKED

    return (round_number, game["id"]), None


def save_pick(user, season_ctx, question_id, pick):
    """
    Set the user's pick for an open question

    Returns:
        tuple: (Pick, None) on success or (None, reason code)
    """
    if pick not in PICK_CHOICES:
        return None, reasons.INVALID_INPUT

    located, reason = _locate_question(season_ctx, question_id)
    if reason:
        return None, reason
    round_number, game_id = located

    try:
        record = Pick.upsert(
            user.id, question_id, pick, round_number=round_number, game_id=game_id
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to save pick {user.id}/{question_id}: {e}")
        return None, reasons.STORE_ERROR

    logger.info(f"User {user.id} picked {pick} on {question_id}")
    return record, None


def clear_pick(user, season_ctx, question_id):
    """
    Remove the user's pick for an open question

    Returns:
        tuple: (True if a pick was removed, None) or (None, reason code)
    """
    located, reason = _locate_question(season_ctx, question_id)
    if reason:
        return None, reason

    try:
        removed = Pick.clear(user.id, question_id)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to clear pick {user.id}/{question_id}: {e}")
        return None, reasons.STORE_ERROR

    if removed:
        logger.info(f"User {user.id} cleared pick on {question_id}")
    return removed, None