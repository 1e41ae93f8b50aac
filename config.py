import os
import secrets
import warnings

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Config:
    # Generate a secure key if not provided (with a warning)
    _secret_key = os.environ.get("SECRET_KEY")

    if not _secret_key:
        _secret_key = secrets.token_urlsafe(32)
        warnings.warn(
            "SECRET_KEY not set! Using auto-generated key. "
            "Issued bearer tokens will stop verifying after a restart.",
            UserWarning,
        )

    SECRET_KEY = _secret_key

    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "streakr_db"
            db_user = os.environ.get("DB_USER") or "streakr_user"
            db_password = os.environ.get("DB_PASSWORD") or "streakr_password"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "streakr.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Season settings
    CURRENT_SEASON = int(os.environ.get("CURRENT_SEASON") or 2026)
    ROUNDS_SOURCE_FILE = os.environ.get(
        "ROUNDS_SOURCE_FILE", os.path.join(basedir, "data", "rounds-2026.json")
    )

    # Round source start times without an offset are in this timezone
    TIMEZONE = os.environ.get("TIMEZONE", "Australia/Melbourne")

    # Authentication
    ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "")
    AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE") or 30 * 24 * 3600)

    # Store access - identifier list filters are issued in chunks of this size
    STORE_IN_FILTER_LIMIT = int(os.environ.get("STORE_IN_FILTER_LIMIT") or 10)

    # Streak rules
    # False: an unpicked settled question is skipped. True: it busts the match.
    STREAK_UNPICKED_BREAKS = (
        os.environ.get("STREAK_UNPICKED_BREAKS", "False").lower() == "true"
    )
    LEADER_TIEBREAK = os.environ.get("LEADER_TIEBREAK", "created_at")
    LEADERBOARD_LIMIT = int(os.environ.get("LEADERBOARD_LIMIT") or 50)

    # Caching configuration
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "SimpleCache")
    CACHE_DEFAULT_TIMEOUT = int(
        os.environ.get("CACHE_DEFAULT_TIMEOUT", 300)
    )  # 5 minutes
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "streakr:"

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")

    # Scheduler configuration
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "True").lower() == "true"
    LOCK_SYNC_INTERVAL_MINUTES = int(os.environ.get("LOCK_SYNC_INTERVAL_MINUTES") or 5)

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = os.environ.get("LOG_TO_CONSOLE", "True").lower() == "true"
    LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "True").lower() == "true"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "False").lower() == "true"


class ProductionConfig(Config):
    """Production configuration with security focus"""

    DEBUG = False

    # In production, require explicit environment variables
    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "PRODUCTION WARNING: SECRET_KEY not explicitly set! "
                "Using auto-generated key is not recommended for production.",
                UserWarning,
            )
        if not os.environ.get("ADMIN_TOKEN"):
            warnings.warn(
                "PRODUCTION WARNING: ADMIN_TOKEN not set! "
                "Admin endpoints will only accept admin users.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    SECRET_KEY = "testing-secret-key"
    ADMIN_TOKEN = "testing-admin-token"
    CACHE_TYPE = "NullCache"
    SCHEDULER_ENABLED = False
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False
    RATELIMIT_ENABLED = False
    STREAK_UNPICKED_BREAKS = False
    LEADER_TIEBREAK = "created_at"

    def __init__(self):
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
