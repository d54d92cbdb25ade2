import logging
import os

from flask import Flask, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
login_manager = LoginManager()
socketio = SocketIO()
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


# Use Redis in production for shared rate limiting across multiple workers
limiter_storage_uri = "memory://"
redis_url = os.environ.get("REDIS_URL") or os.environ.get("CACHE_REDIS_URL")
if redis_url:
    try:
        import redis

        redis_client = redis.Redis.from_url(redis_url)
        redis_client.ping()
        limiter_storage_uri = redis_url
        logger.info(f"Rate limiter using Redis storage at {redis_url}")
    except ImportError as e:
        logger.warning(f"Redis client not installed, rate limiter uses memory: {e}")
    except redis.exceptions.ConnectionError as e:
        logger.warning(f"Redis not available for rate limiter, using memory: {e}")

limiter = Limiter(
    key_func=get_real_ip,
    default_limits=["5000 per day", "500 per hour"],
    storage_uri=limiter_storage_uri,
)


def create_app(config_name=None):
    app = Flask(__name__)

    # Determine configuration
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Session cookie settings for the SPA client
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SECURE"] = (
        False
        if app.config.get("DEBUG")
        else app.config.get("FLASK_ENV") == "production"
    )
    app.config["PERMANENT_SESSION_LIFETIME"] = 7 * 86400  # 1 week
    app.config["REMEMBER_COOKIE_DURATION"] = 7 * 86400

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    allowed_origins = app.config.get("SOCKETIO_CORS_ORIGINS", "*")
    if allowed_origins == "*" and not app.config.get("DEBUG") and not app.testing:
        # In production, restrict CORS to configured domains
        allowed_origins = os.environ.get(
            "ALLOWED_ORIGINS", "https://fantaschedina.example.com"
        ).split(",")

    # Try to use Redis as message queue for Socket.IO
    message_queue = None
    socketio_redis_url = app.config.get("CACHE_REDIS_URL") or os.environ.get(
        "REDIS_URL"
    )
    if socketio_redis_url and not app.testing:
        try:
            import redis

            redis_client = redis.Redis.from_url(socketio_redis_url)
            redis_client.ping()
            message_queue = socketio_redis_url
            logger.info(f"Socket.IO using Redis message queue at {socketio_redis_url}")
        except ImportError as e:
            logger.warning(f"Redis client not installed for Socket.IO: {e}")
        except redis.exceptions.ConnectionError as e:
            logger.warning(f"Redis not available for Socket.IO message queue: {e}")

    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE", "eventlet"),
        logger=app.debug,
        engineio_logger=app.debug,
        ping_timeout=60,
        ping_interval=25,
        message_queue=message_queue,
    )
    cache.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Import and register blueprints
    from fantaschedina.routes.auth import bp as auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api")

    from fantaschedina.routes.matches import bp as matches_bp

    app.register_blueprint(matches_bp, url_prefix="/api/matches")

    from fantaschedina.routes.predictions import bp as predictions_bp

    app.register_blueprint(predictions_bp, url_prefix="/api/predictions")

    from fantaschedina.routes.teams import bp as teams_bp

    app.register_blueprint(teams_bp, url_prefix="/api/teams")

    from fantaschedina.routes.users import bp as users_bp

    app.register_blueprint(users_bp, url_prefix="/api/users")

    from fantaschedina.routes.prizes import bp as prizes_bp

    app.register_blueprint(prizes_bp, url_prefix="/api/prizes")

    from fantaschedina.routes.stats import bp as stats_bp

    app.register_blueprint(stats_bp, url_prefix="/api")

    # Register error handlers
    register_error_handlers(app)

    # Setup logging
    from fantaschedina.utils.logging_config import setup_logging

    setup_logging(app)

    log_config_summary(app, config_name)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


def log_config_summary(app, config_name):
    """Log which configuration and database the app starts with"""
    logger.info(f"FantaSchedina starting with '{config_name}' configuration")

    if config_name == "production" and app.config.get("DEBUG"):
        logger.warning("DEBUG mode is enabled in production!")

    db_url = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if "sqlite" in db_url:
        logger.info(
            "Using SQLite database ({})".format(
                "in-memory" if "memory" in db_url else "app.db file"
            )
        )
    elif "postgresql" in db_url:
        # Hide credentials
        logger.info(f"Using PostgreSQL database at {db_url.split('@')[-1]}")
    else:
        logger.info(
            f"Using database: {db_url.split('://')[0] if '://' in db_url else 'Unknown'}"
        )


def register_error_handlers(app):
    """Register global error handlers"""

    @app.before_request
    def reject_non_object_json():
        # Forms read JSON bodies as mappings
        if request.method in ("POST", "PUT", "PATCH") and request.is_json:
            body = request.get_json(silent=True)
            if body is not None and not isinstance(body, dict):
                return (
                    jsonify({"error": "Il corpo della richiesta deve essere un oggetto JSON"}),
                    400,
                )

    @app.after_request
    def after_request(response):
        # Add security headers to all responses
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"

        if not app.config.get("DEBUG") and not app.testing:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = (
                "no-store, no-cache, must-revalidate, max-age=0"
            )

        return response

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Non autenticato"}), 401

    @app.errorhandler(400)
    def bad_request_error(error):
        app.logger.warning(
            f"400 Bad Request: {error.description} - Path: {request.path} - Method: {request.method}"
        )
        return jsonify({"error": error.description or "Richiesta non valida"}), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        return jsonify({"error": "Non autenticato"}), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({"error": "Accesso negato"}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"error": "Risorsa non trovata"}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({"error": "Metodo non consentito"}), 405

    @app.errorhandler(413)
    def request_too_large_error(error):
        return jsonify({"error": "File troppo grande (massimo 5MB)"}), 413

    @app.errorhandler(429)
    def too_many_requests_error(error):
        return jsonify({"error": "Troppe richieste, riprova più tardi"}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"error": "Errore interno del server"}), 500

    @app.errorhandler(Exception)
    def unhandled_exception(error):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"Unhandled error on {request.method} {request.path}: {error}")
        db.session.rollback()
        return jsonify({"error": "Errore interno del server"}), 500


from fantaschedina import models  # noqa: F401, E402 - imported for model registration

# Handlers are registered before init_app so every app instance replays them
from fantaschedina import socketio_handlers  # noqa: F401, E402
