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
            "🔐 SECRET_KEY not set! Using auto-generated key. "
            "This will cause sessions to reset on app restart. "
            "Run 'python3 generate_secrets.py' to generate a secure key.",
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
            # Hosted Postgres providers still hand out the legacy scheme
            if database_url.startswith("postgres://"):
                database_url = database_url.replace(
                    "postgres://", "postgresql+psycopg://", 1
                )
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "fantaschedina"
            db_user = os.environ.get("DB_USER") or "fantaschedina"
            db_password = os.environ.get("DB_PASSWORD") or "fantaschedina"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "app.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Uploads (spreadsheets and team logos)
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB

    # Email configuration
    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT") or 587)
    MAIL_USE_TLS = os.environ.get("MAIL_USE_TLS", "true").lower() in ["true", "on", "1"]
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    FROM_EMAIL = os.environ.get("FROM_EMAIL") or "noreply@fantaschedina.com"
    FROM_NAME = os.environ.get("FROM_NAME", "FantaSchedina")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL") or "admin@example.com"

    # Game rules
    TIMEZONE = os.environ.get("TIMEZONE", "Europe/Rome")
    PREDICTION_LOCK_MINUTES = int(os.environ.get("PREDICTION_LOCK_MINUTES") or 30)
    MIN_PREDICTIONS_PER_MATCH_DAY = int(
        os.environ.get("MIN_PREDICTIONS_PER_MATCH_DAY") or 5
    )
    MAX_PREDICTIONS_PER_MATCH_DAY = int(
        os.environ.get("MAX_PREDICTIONS_PER_MATCH_DAY") or 5
    )
    PREDICTION_CREDITS_MIN = int(os.environ.get("PREDICTION_CREDITS_MIN") or 1)
    PREDICTION_CREDITS_MAX = int(os.environ.get("PREDICTION_CREDITS_MAX") or 10)
    PREDICTION_CREDITS_DEFAULT = int(os.environ.get("PREDICTION_CREDITS_DEFAULT") or 1)

    # Prize rules: "fixed" pays PRIZE_PERFECT_AMOUNT per 100% user,
    # "pot" splits the match day pot between the 90% and 100% tiers
    PRIZE_MODE = os.environ.get("PRIZE_MODE", "fixed")
    PRIZE_PERFECT_AMOUNT = int(os.environ.get("PRIZE_PERFECT_AMOUNT") or 10)
    PRIZE_NEAR_PERFECT_THRESHOLD = int(
        os.environ.get("PRIZE_NEAR_PERFECT_THRESHOLD") or 90
    )
    PRIZE_NEAR_PERFECT_SHARE = float(os.environ.get("PRIZE_NEAR_PERFECT_SHARE") or 0.35)

    # Caching configuration
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "RedisCache")
    CACHE_DEFAULT_TIMEOUT = int(
        os.environ.get("CACHE_DEFAULT_TIMEOUT", 300)
    )  # 5 minutes
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "fantaschedina:"

    # WebSocket configuration
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "eventlet")
    SOCKETIO_CORS_ORIGINS = os.environ.get("SOCKETIO_CORS_ORIGINS", "*")

    # Rate limiting
    RATELIMIT_ENABLED = True

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

    def __init__(self):
        super().__init__()
        # Fallback to SimpleCache if Redis isn't available in development
        try:
            import redis

            redis_client = redis.Redis.from_url(self.CACHE_REDIS_URL)
            redis_client.ping()
        except ImportError:
            self._fallback_to_simple_cache()
        except redis.exceptions.ConnectionError:
            self._fallback_to_simple_cache()

    def _fallback_to_simple_cache(self):
        self.CACHE_TYPE = "SimpleCache"
        warnings.warn(
            "🔶 Redis not available, falling back to SimpleCache for development.",
            UserWarning,
        )


class ProductionConfig(Config):
    """Production configuration with security focus"""

    DEBUG = False

    # In production, require explicit environment variables
    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "🚨 PRODUCTION WARNING: SECRET_KEY not explicitly set! "
                "Using auto-generated key is not recommended for production.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DEBUG = False
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    CACHE_TYPE = "NullCache"
    CACHE_REDIS_URL = None
    SOCKETIO_ASYNC_MODE = "threading"
    LOG_TO_FILE = False
    LOG_LEVEL = "WARNING"
    ADMIN_EMAIL = "admin@example.com"
    MAIL_USERNAME = None
    MAIL_PASSWORD = None

    def _build_database_uri(self):
        return "sqlite:///:memory:"


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
