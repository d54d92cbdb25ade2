import logging
from datetime import datetime, timezone

from flask import jsonify, request
from flask_login import login_required
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fantaschedina import db, limiter
from fantaschedina.models import PrizeDistribution, User
from fantaschedina.routes.stats import bp
from fantaschedina.socketio_handlers import get_connection_stats
from fantaschedina.utils.cache_utils import cached_route, get_cache_stats

logger = logging.getLogger(__name__)

LEADERBOARD_MODES = ("current", "overall")


@bp.route("/statistics/matchday/<int:match_day>/total-credits")
@login_required
def match_day_total_credits(match_day):
    return jsonify(
        {
            "match_day": match_day,
            "total_credits": PrizeDistribution.get_total_credits(match_day),
        }
    )


@bp.route("/statistics/user/<int:user_id>/correct-predictions/<int:match_day>")
@login_required
def user_correct_predictions(user_id, match_day):
    db.get_or_404(User, user_id)

    stats = PrizeDistribution.get_user_stats(match_day, user_id=user_id)
    if stats:
        entry = stats[0]
    else:
        entry = {
            "user_id": user_id,
            "predictions_total": 0,
            "predictions_scored": 0,
            "predictions_correct": 0,
            "correct_percentage": 0,
            "credits_played": 0,
            "tier": None,
        }
    entry["match_day"] = match_day
    return jsonify(entry)


@bp.route("/statistics/matchday/<int:match_day>")
@login_required
def match_day_statistics(match_day):
    """Per-user summary of a match day"""
    return jsonify(
        {
            "match_day": match_day,
            "total_credits": PrizeDistribution.get_total_credits(match_day),
            "users": PrizeDistribution.get_user_stats(match_day),
        }
    )


@bp.route("/leaderboard")
def leaderboard():
    mode = request.args.get("mode", "overall")
    if mode not in LEADERBOARD_MODES:
        return jsonify({"error": "Modalità classifica non valida"}), 400
    return _leaderboard(mode)


@cached_route(timeout=300, key_prefix="leaderboard")
def _leaderboard(mode):
    match_day = User.get_latest_resulted_match_day() if mode == "current" else None
    return {
        "mode": mode,
        "match_day": match_day,
        "leaderboard": User.get_leaderboard(mode),
    }


@bp.route("/health")
@limiter.exempt
def health():
    """Liveness probe with database and WebSocket status"""
    database_ok = True
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        db.session.rollback()
        database_ok = False

    return (
        jsonify(
            {
                "status": "ok" if database_ok else "degraded",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "database": "ok" if database_ok else "error",
                "websocket": get_connection_stats(),
                "cache": get_cache_stats(),
            }
        ),
        200 if database_ok else 503,
    )
