"""
Question settlement

Admin actions that move a question between open, pending, final and void,
followed by a recompute of the stored streaks of everyone who picked it.
"""

import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from streakr import db
from streakr.models import Pick, QuestionStatus, User
from streakr.services import pick_service, round_source, status_service
from streakr.utils import reasons
from streakr.utils.question_ids import infer_round_number, is_valid_question_id
from streakr.utils.status import STATUS_FINAL, STATUS_OPEN, STATUS_PENDING, STATUS_VOID
from streakr.utils.streaks import compute_rolling_streak

logger = logging.getLogger(__name__)

# action -> (status, outcome)
SETTLEMENT_ACTIONS = {
    "lock": (STATUS_PENDING, None),
    "reopen": (STATUS_OPEN, None),
    "final_yes": (STATUS_FINAL, "yes"),
    "final_no": (STATUS_FINAL, "no"),
    "final_void": (STATUS_VOID, "void"),
    "void": (STATUS_VOID, "void"),
}


def affected_user_ids(question_id):
    rows = (
        db.session.query(Pick.user_id)
        .filter(Pick.question_id == question_id)
        .distinct()
        .all()
    )
    return [row[0] for row in rows]


def recompute_user_streaks(season, round_number, user_ids):
    """
    Recompute current/longest streak for users from a round's settled picks

    Returns:
        int: number of users updated
    """
    if not user_ids:
        return 0

    structure = round_source.get_round_structure(season, round_number)
    games = round_source.games_question_ids(structure)
    ids = round_source.question_ids(structure)
    statuses = status_service.get_round_statuses(structure)
    breaks = current_app.config.get("STREAK_UNPICKED_BREAKS", False)

    users = User.get_by_ids(user_ids)
    for user_id in user_ids:
        user = users.get(user_id)
        if user is None:
            continue
        user_picks = pick_service.get_user_picks(user_id, ids)
        user.record_streak(compute_rolling_streak(games, user_picks, statuses, breaks))
    return len(users)


def settle_question(season_ctx, question_id, action, round_number=None):
    """
    Apply an admin settlement action to a question

    The round is taken from the question id when it carries one, so a stale
    admin screen cannot file a status under the wrong round.

    Returns:
        tuple: (result dict, None) or (None, reason code)
    """
    question_id = str(question_id or "").strip()
    if not question_id or action not in SETTLEMENT_ACTIONS:
        return None, reasons.INVALID_INPUT
    if not is_valid_question_id(question_id):
        return None, reasons.INVALID_INPUT

    inferred = infer_round_number(question_id)
    round_used = inferred if inferred is not None else round_number
    if round_used is None:
        return None, reasons.INVALID_INPUT

    status, outcome = SETTLEMENT_ACTIONS[action]
    try:
        QuestionStatus.upsert(
            round_used,
            question_id,
            status=status,
            outcome=outcome,
            result=None,
            override_mode="manual",
        )
        db.session.flush()

        user_ids = affected_user_ids(question_id)
        updated = recompute_user_streaks(season_ctx.season, round_used, user_ids)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Settlement of {question_id} ({action}) failed: {e}")
        return None, reasons.STORE_ERROR

    if inferred is not None and round_number is not None and inferred != round_number:
        logger.warning(
            f"Settlement round mismatch for {question_id}: body said {round_number}, "
            f"using {inferred}"
        )
    logger.info(
        f"Settled {question_id} as {status}/{outcome} (round {round_used}), "
        f"recomputed {updated} users"
    )

    return {
        "question_id": question_id,
        "status": status,
        "outcome": outcome,
        "round_number_used": round_used,
        "round_number_from_body": round_number,
        "round_number_inferred": inferred,
        "users_updated": updated,
    }, None
