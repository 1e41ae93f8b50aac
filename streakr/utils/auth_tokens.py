"""
Bearer-token identity for the JSON API

Clients send "Authorization: Bearer <token>" where the token is an
itsdangerous-signed user id. Flask-Login's request loader turns that into
current_user, so routes use login_required / current_user as usual.
"""

import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request
from flask_login import current_user
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from streakr import db
from streakr.utils import reasons

logger = logging.getLogger(__name__)

TOKEN_SALT = "streakr-auth"


def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user):
    """Sign a bearer token for a user"""
    return _serializer().dumps({"uid": user.id})


def verify_token(token):
    """
    Resolve a bearer token to a user id

    Returns:
        int: user id, or None if the token is missing, forged or expired
    """
    if not token:
        return None
    max_age = current_app.config.get("AUTH_TOKEN_MAX_AGE")
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.info("Rejected expired auth token")
        return None
    except BadSignature:
        logger.warning(f"Rejected invalid auth token from {request.remote_addr}")
        return None

    try:
        return int(data.get("uid"))
    except (AttributeError, TypeError, ValueError):
        return None


def bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def register_identity_loaders(login_manager):
    """Wire user/request loaders and a JSON 401 into Flask-Login"""
    from streakr.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.request_loader
    def load_user_from_request(req):
        user_id = verify_token(bearer_token())
        if user_id is None:
            return None
        user = db.session.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        return (
            jsonify(
                {
                    "ok": False,
                    "error": reasons.UNAUTHENTICATED,
                    "message": reasons.message_for(reasons.UNAUTHENTICATED),
                }
            ),
            401,
        )


def has_admin_token():
    expected = current_app.config.get("ADMIN_TOKEN")
    supplied = request.headers.get("X-Admin-Token")
    if not expected or not supplied:
        return False
    return hmac.compare_digest(str(expected), str(supplied))


def admin_required(f):
    """Allow admin users, or callers presenting the configured admin token"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if has_admin_token():
            return f(*args, **kwargs)
        if current_user.is_authenticated and current_user.is_admin:
            return f(*args, **kwargs)

        reason = (
            reasons.FORBIDDEN
            if current_user.is_authenticated
            else reasons.UNAUTHENTICATED
        )
        logger.warning(f"Admin access denied for {request.path} ({reason})")
        return (
            jsonify(
                {"ok": False, "error": reason, "message": reasons.message_for(reason)}
            ),
            reasons.http_status(reason),
        )

    return decorated_function
