"""
Automatic question locking

Once a game has started its open questions become pending. Questions an
admin has set by hand (override_mode "manual") are left alone.
"""

import logging
from datetime import datetime, timezone

from streakr import db
from streakr.models import QuestionStatus
from streakr.services import round_source, status_service
from streakr.utils.question_ids import question_status_key
from streakr.utils.status import STATUS_OPEN, STATUS_PENDING

logger = logging.getLogger(__name__)


def _game_started(game, now):
    if not game.get("start_time"):
        return False
    start = datetime.fromisoformat(game["start_time"])
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return now >= start


def sync_locks(season_ctx, round_number=None, now=None):
    """
    Lock open questions of every started game in a round

    Idempotent: a second run finds nothing left to lock.

    Returns:
        dict: {"round_number", "started_games", "locked", "created"}
    """
    now = now or datetime.now(timezone.utc)
    if round_number is None:
        round_number = season_ctx.current_round

    result = {"round_number": round_number, "started_games": 0, "locked": 0, "created": 0}
    if round_number is None:
        return result

    structure = round_source.get_round_structure(season_ctx.season, round_number)
    started = [g for g in (structure or {}).get("games", []) if _game_started(g, now)]
    result["started_games"] = len(started)
    if not started:
        return result

    question_ids = [q["id"] for game in started for q in game["questions"]]
    statuses = status_service.get_statuses(question_ids)

    try:
        for game in started:
            for question in game["questions"]:
                qid = question["id"]
                entry = statuses.get(qid)
                current = entry["status"] if entry else question["status"]
                if current != STATUS_OPEN:
                    continue

                canonical = db.session.get(
                    QuestionStatus, question_status_key(round_number, qid)
                )
                if canonical is not None and canonical.override_mode == "manual":
                    continue

                QuestionStatus.upsert(
                    round_number, qid, status=STATUS_PENDING, override_mode="auto"
                )
                if entry is None:
                    result["created"] += 1
                else:
                    result["locked"] += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if result["locked"] or result["created"]:
        logger.info(
            f"Round {round_number}: locked {result['locked']} questions, "
            f"created {result['created']} status records"
        )
    return result
