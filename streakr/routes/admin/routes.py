import logging

from flask import abort, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from streakr import db
from streakr.models import QuestionStatus, Round, SeasonConfig, SeasonContext
from streakr.routes.admin import bp
from streakr.services import lock_sync, settlement_service, status_service
from streakr.services.scheduler_service import scheduler_service
from streakr.utils import reasons
from streakr.utils.auth_tokens import admin_required
from streakr.utils.question_ids import MAX_NUMBER

logger = logging.getLogger(__name__)


def error_response(reason, message=None):
    body = {"ok": False, "error": reason, "message": message or reasons.message_for(reason)}
    return jsonify(body), reasons.http_status(reason)


def _optional_int(value):
    """int(value) for ints and digit strings, None when absent; raises ValueError"""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    number = int(value)
    if abs(number) > MAX_NUMBER:
        raise ValueError(f"{value!r} is out of range")
    return number


@bp.route("/settlement", methods=["POST"])
@admin_required
def settlement():
    """Lock, reopen or settle a question"""
    data = request.get_json(silent=True) or {}
    try:
        body_round = _optional_int(data.get("round_number"))
    except (TypeError, ValueError):
        return error_response(reasons.INVALID_INPUT, "round_number must be a number")

    result, reason = settlement_service.settle_question(
        SeasonContext.for_request(),
        data.get("question_id"),
        str(data.get("action") or "").strip().lower(),
        round_number=body_round,
    )
    if reason:
        return error_response(reason)
    return jsonify({"ok": True, **result})


@bp.route("/question-status/repair", methods=["POST"])
@admin_required
def repair_question_status():
    """Re-key malformed question status records (?round=N&dry_run=1)"""
    try:
        round_number = _optional_int(request.args.get("round"))
    except ValueError:
        return error_response(reasons.INVALID_INPUT, "round must be a number")
    dry_run = request.args.get("dry_run") in ("1", "true", "yes")

    try:
        result = status_service.repair_question_status_keys(round_number, dry_run=dry_run)
    except SQLAlchemyError:
        return error_response(reasons.STORE_ERROR)
    return jsonify({"ok": True, **result})


@bp.route("/locks/sync", methods=["POST"])
@admin_required
def sync_locks():
    """Lock open questions of started games (defaults to the current round)"""
    data = request.get_json(silent=True) or {}
    try:
        round_number = _optional_int(data.get("round_number"))
    except (TypeError, ValueError):
        return error_response(reasons.INVALID_INPUT, "round_number must be a number")

    try:
        result = lock_sync.sync_locks(SeasonContext.for_request(), round_number)
    except SQLAlchemyError:
        logger.exception("Manual lock sync failed")
        return error_response(reasons.STORE_ERROR)
    return jsonify({"ok": True, **result})


@bp.route("/season/current-round", methods=["POST"])
@admin_required
def set_current_round():
    """Publish a round as the season's current round"""
    data = request.get_json(silent=True) or {}
    try:
        round_number = _optional_int(data.get("round_number"))
    except (TypeError, ValueError):
        round_number = None
    if round_number is None or round_number < 0:
        return error_response(reasons.INVALID_INPUT, "round_number must be a number >= 0")

    season_ctx = SeasonContext.for_request()
    try:
        record = SeasonConfig.get_or_create(season_ctx.season)
        record.publish_round(round_number)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to publish round {round_number}: {e}")
        return error_response(reasons.STORE_ERROR)

    logger.info(f"Season {season_ctx.season} current round set to {round_number}")
    return jsonify({"ok": True, "season": season_ctx.season, "current_round": round_number})


@bp.route("/rounds/<int:round_number>")
@admin_required
def round_detail(round_number):
    """Imported games and questions of a round in the current season"""
    if round_number > MAX_NUMBER:
        abort(404)
    round_obj = Round.get_for_season(SeasonContext.for_request().season, round_number)
    if round_obj is None:
        abort(404)
    return jsonify({"ok": True, "round": round_obj.to_dict()})


@bp.route("/question-status")
@admin_required
def question_status_records():
    """Raw status records of a round, duplicates included"""
    try:
        round_number = _optional_int(request.args.get("round"))
    except ValueError:
        return error_response(reasons.INVALID_INPUT, "round must be a number")
    if round_number is None:
        return error_response(reasons.INVALID_INPUT, "round is required")

    records = (
        QuestionStatus.query.filter(QuestionStatus.round_number == round_number)
        .order_by(QuestionStatus.question_id, QuestionStatus.updated_at.desc())
        .all()
    )
    return jsonify({"ok": True, "records": [record.to_dict() for record in records]})


@bp.route("/scheduler")
@admin_required
def scheduler_status():
    return jsonify({"ok": True, **scheduler_service.get_status()})
