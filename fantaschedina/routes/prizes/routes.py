import logging

from flask import jsonify
from flask_login import current_user, login_required

from fantaschedina.models import PrizeDistribution, WinnerPayout
from fantaschedina.routes.prizes import bp
from fantaschedina.socketio_handlers import broadcast_leaderboard_update
from fantaschedina.utils.cache_utils import cached_route, invalidate_model_cache
from fantaschedina.utils.decorators import admin_required

logger = logging.getLogger(__name__)


@bp.route("/matchday/<int:match_day>")
@login_required
@cached_route(timeout=300, key_prefix="prize")
def match_day_prize(match_day):
    """Stored distribution for the match day, or an unsaved preview"""
    distribution = PrizeDistribution.get_by_match_day(match_day)
    if distribution:
        data = distribution.to_dict()
        data["is_preview"] = False
        return data

    summary = PrizeDistribution.compute(match_day)
    summary["is_distributed"] = False
    summary["is_preview"] = True
    return summary


@bp.route("/matchday/<int:match_day>/calculate", methods=["POST"])
@admin_required
def calculate_prize(match_day):
    distribution = PrizeDistribution.calculate(match_day)
    invalidate_model_cache("prize_distribution")

    logger.info(f"Admin {current_user.username} calculated prizes for day {match_day}")
    return jsonify(distribution.to_dict())


@bp.route("/matchday/<int:match_day>/distribute", methods=["POST"])
@admin_required
def distribute_prize(match_day):
    """Pay out the match day, a repeated call returns the existing payouts"""
    distribution, payouts, created = PrizeDistribution.distribute(match_day)

    if created:
        invalidate_model_cache("winner_payout")
        broadcast_leaderboard_update("prizes_distributed", match_day)
        logger.info(
            f"Admin {current_user.username} distributed prizes for day {match_day}"
        )

    return jsonify(
        {
            "distribution": distribution.to_dict(),
            "payouts": [payout.to_dict() for payout in payouts],
            "already_distributed": not created,
        }
    )


@bp.route("/matchday/<int:match_day>/payouts")
@login_required
@cached_route(timeout=300, key_prefix="payouts")
def match_day_payouts(match_day):
    return [payout.to_dict() for payout in WinnerPayout.get_by_match_day(match_day)]


@bp.route("/user")
@login_required
def user_payouts():
    payouts = WinnerPayout.get_by_user(current_user.id)
    return jsonify(
        {
            "payouts": [payout.to_dict() for payout in payouts],
            "total_credits": sum(payout.amount for payout in payouts),
        }
    )


@bp.route("/payouts")
@admin_required
def all_payouts():
    return jsonify([payout.to_dict() for payout in WinnerPayout.get_all()])
