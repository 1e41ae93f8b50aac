import logging
import os

from flask import Flask, g, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
login_manager = LoginManager()
cache = Cache()
migrate = Migrate()


def get_real_ip():
    """
    Get the real client IP address, accounting for reverse proxies.
    Checks X-Forwarded-For, X-Real-IP, and falls back to remote_addr.
    """
    # X-Forwarded-For: client, proxy1, proxy2, ...
    if request.headers.get("X-Forwarded-For"):
        return request.headers.get("X-Forwarded-For").split(",")[0].strip()
    if request.headers.get("X-Real-IP"):
        return request.headers.get("X-Real-IP")
    return get_remote_address()


limiter = Limiter(
    key_func=get_real_ip,
    default_limits=["10000 per day", "1000 per hour"],
)


def create_app(config_name=None):
    app = Flask(__name__)

    # Determine configuration
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    cache.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Bearer-token identity for the JSON API
    from streakr.utils.auth_tokens import register_identity_loaders

    register_identity_loaders(login_manager)

    # Import and register blueprints
    from streakr.routes.api import bp as api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    from streakr.routes.admin import bp as admin_bp

    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.before_request
    def reset_season_context():
        # SeasonContext.for_request rebuilds the snapshot on first use
        g.pop("season_ctx", None)

    # Register error handlers
    register_error_handlers(app)

    # Setup logging
    from streakr.utils.logging_config import setup_logging

    setup_logging(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    # Initialize and start background scheduler
    if not app.config.get("TESTING", False):
        from streakr.services.scheduler_service import scheduler_service

        scheduler_service.init_app(app)

    logger.info(
        f"STREAKr starting with '{config_name}' configuration "
        f"(season {app.config['CURRENT_SEASON']})"
    )

    return app


def register_error_handlers(app):
    """Register global JSON error handlers"""

    @app.after_request
    def after_request(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if not app.config.get("DEBUG"):
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response

    @app.errorhandler(400)
    def bad_request_error(error):
        app.logger.warning(
            f"400 Bad Request: {str(error)} - Path: {request.path} - Method: {request.method}"
        )
        return jsonify({"ok": False, "error": "INVALID_INPUT"}), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        return jsonify({"ok": False, "error": "UNAUTHENTICATED"}), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({"ok": False, "error": "FORBIDDEN"}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"ok": False, "error": "NOT_FOUND"}), 404

    @app.errorhandler(429)
    def too_many_requests_error(error):
        return jsonify({"ok": False, "error": "TOO_MANY_REQUESTS"}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"ok": False, "error": "INTERNAL_ERROR"}), 500


from streakr import models  # noqa: F401, E402 - imported for model registration
