import logging
from functools import wraps

from flask import jsonify, request
from flask_login import current_user, login_required

from streakr import db, limiter
from streakr.models import SeasonContext, User
from streakr.routes.api import bp
from streakr.services import (
    free_kick_service,
    leaderboard_service,
    pick_service,
    picks_view,
    profile_service,
)
from streakr.utils import reasons
from streakr.utils.question_ids import MAX_NUMBER, is_valid_question_id
from streakr.utils.streaks import percentages

logger = logging.getLogger(__name__)


def add_security_headers(f):
    """Keep personalised API responses out of shared caches"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = f(*args, **kwargs)
        headers = getattr(response, "headers", None)
        if headers is None and isinstance(response, tuple):
            headers = getattr(response[0], "headers", None)
        if headers is not None:
            headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    return decorated_function


def error_response(reason, message=None):
    body = {"ok": False, "error": reason, "message": message or reasons.message_for(reason)}
    return jsonify(body), reasons.http_status(reason)


def caller_id():
    return current_user.id if current_user.is_authenticated else None


def parse_round_arg(name="round"):
    """
    Optional non-negative round number from the query string

    Returns:
        tuple: (round number or None, error flag)
    """
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None, False
    try:
        value = int(raw)
    except ValueError:
        return None, True
    if value < 0 or value > MAX_NUMBER:
        return None, True
    return value, False


@bp.route("/health")
def health():
    return jsonify({"ok": True, "status": "healthy"})


@bp.route("/picks")
@add_security_headers
def picks():
    """Round picks view; personal fields only when signed in"""
    requested, invalid = parse_round_arg()
    if invalid:
        return error_response(reasons.INVALID_INPUT, "round must be a number >= 0")

    round_number = 0
    try:
        season_ctx = SeasonContext.for_request()
        round_number = season_ctx.resolve_round(requested)
        view = picks_view.build_picks_view(season_ctx, round_number, caller_id())
        return jsonify({"ok": True, **view})
    except Exception:
        logger.exception(f"Picks view failed for round {round_number}")
        db.session.rollback()
        body = {"ok": False, "error": "INTERNAL_ERROR", **picks_view.empty_view(round_number)}
        return jsonify(body), 500


@bp.route("/user-picks")
@login_required
@add_security_headers
def latest_pick():
    """The caller's most recently changed pick"""
    pick = pick_service.get_latest_pick(current_user.id)
    if pick is None:
        return jsonify({"question_id": None, "pick": None})
    return jsonify({"question_id": pick.question_id, "pick": pick.pick})


@bp.route("/user-picks", methods=["POST"])
@login_required
@limiter.limit("60 per minute")
@add_security_headers
def save_user_pick():
    """Set or clear the caller's pick for a question"""
    data = request.get_json(silent=True) or {}
    question_id = str(data.get("question_id") or "").strip()
    action = str(data.get("action") or "").strip().lower()

    if not question_id or not is_valid_question_id(question_id):
        return error_response(reasons.INVALID_INPUT, "A valid question_id is required")

    season_ctx = SeasonContext.for_request()

    if action == "clear":
        removed, reason = pick_service.clear_pick(current_user, season_ctx, question_id)
        if reason:
            return error_response(reason)
        return jsonify({"ok": True, "cleared": removed})

    pick = str(data.get("pick") or data.get("outcome") or "").strip().lower()
    record, reason = pick_service.save_pick(current_user, season_ctx, question_id, pick)
    if reason:
        return error_response(reason)
    return jsonify({"ok": True, "pick": record.to_dict()})


@bp.route("/free-kick", methods=["POST"])
@limiter.limit("10 per minute")
@add_security_headers
def free_kick():
    """Spend the caller's Golden Free Kick on a lost game"""
    if not current_user.is_authenticated:
        return error_response(reasons.UNAUTHENTICATED)

    data = request.get_json(silent=True) or {}
    game_id = str(data.get("game_id") or "").strip()
    if not game_id:
        return error_response(reasons.INVALID_INPUT, "game_id is required")

    restore = data.get("restore_streak_to")
    if restore is not None:
        if (
            isinstance(restore, bool)
            or not isinstance(restore, int)
            or not 0 <= restore <= MAX_NUMBER
        ):
            return error_response(
                reasons.INVALID_INPUT, "restore_streak_to must be a number >= 0"
            )

    record, reason = free_kick_service.use_free_kick(
        current_user, SeasonContext.for_request(), game_id, restore_streak_to=restore
    )
    if reason:
        return error_response(reason)
    return jsonify({"ok": True, "free_kick": record.to_dict()})


@bp.route("/leaderboard")
@add_security_headers
def leaderboard():
    """Overall (longest streak) or round (best game streak) standings"""
    scope = request.args.get("scope", "overall").strip().lower()
    if scope not in ("overall", "round"):
        return error_response(reasons.INVALID_INPUT, "scope must be overall or round")

    if scope == "overall":
        return jsonify({"ok": True, **leaderboard_service.overall_leaderboard(caller_id())})

    requested, invalid = parse_round_arg()
    if invalid:
        return error_response(reasons.INVALID_INPUT, "round must be a number >= 0")

    season_ctx = SeasonContext.for_request()
    board = leaderboard_service.round_leaderboard(
        season_ctx, season_ctx.resolve_round(requested), caller_id()
    )
    return jsonify({"ok": True, **board})


@bp.route("/profile")
@add_security_headers
def profile():
    """Profile of ?uid= or of the caller"""
    uid = request.args.get("uid")
    if uid is None:
        if not current_user.is_authenticated:
            return error_response(reasons.UNAUTHENTICATED)
        user = current_user
    else:
        try:
            uid = int(uid)
        except ValueError:
            return error_response(reasons.INVALID_INPUT, "uid must be a number")
        if not 0 <= uid <= MAX_NUMBER:
            return error_response(reasons.INVALID_INPUT, "uid is out of range")
        user = db.session.get(User, uid)
        if user is None:
            return jsonify({"ok": True, **profile_service.empty_profile()})

    season_ctx = SeasonContext.for_request()
    return jsonify({"ok": True, **profile_service.build_profile(user, season_ctx.season)})


@bp.route("/questions/<question_id>/stats")
def question_stats(question_id):
    """Yes/no split for one question"""
    if not is_valid_question_id(question_id):
        return error_response(reasons.INVALID_INPUT, "Malformed question id")

    counts = pick_service.aggregate_picks([question_id])["stats"][question_id]
    yes_percent, no_percent = percentages(counts["yes"], counts["no"])
    return jsonify(
        {
            "ok": True,
            "question_id": question_id,
            "yes_count": counts["yes"],
            "no_count": counts["no"],
            "total": counts["total"],
            "yes_percent": yes_percent,
            "no_percent": no_percent,
        }
    )
