import logging
from datetime import datetime, timezone
from fractions import Fraction

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from fantaschedina import db
from fantaschedina.utils.scoring import (
    TIER_NEAR_PERFECT,
    TIER_PERFECT,
    amount_per_user,
    correct_percentage,
    prize_tier,
    split_pot,
)

logger = logging.getLogger(__name__)


class PrizeDistribution(db.Model):
    __tablename__ = "prize_distributions"

    id = db.Column(db.Integer, primary_key=True)
    match_day = db.Column(db.Integer, unique=True, nullable=False, index=True)

    # Pot and its split between tiers
    total_pot = db.Column(db.Integer, nullable=False, default=0)
    pot_for_90_pct = db.Column(db.Integer, nullable=False, default=0)
    pot_for_100_pct = db.Column(db.Integer, nullable=False, default=0)

    # Winners per tier
    users_90_pct_correct = db.Column(db.Integer, nullable=False, default=0)
    users_100_pct_correct = db.Column(db.Integer, nullable=False, default=0)

    # One-way flag, payouts exist once it is set
    is_distributed = db.Column(db.Boolean, nullable=False, default=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<PrizeDistribution day={self.match_day} pot={self.total_pot} distributed={self.is_distributed}>"

    @staticmethod
    def get_by_match_day(match_day):
        return PrizeDistribution.query.filter_by(match_day=match_day).first()

    @staticmethod
    def get_total_credits(match_day):
        """Sum of credits played on every prediction of the match day"""
        from .match import Match
        from .prediction import Prediction

        total = (
            db.session.query(func.sum(Prediction.credits))
            .join(Match, Prediction.match_id == Match.id)
            .filter(Match.match_day == match_day)
            .scalar()
        )
        return int(total or 0)

    @staticmethod
    def get_user_stats(match_day, user_id=None):
        """
        Per-user prediction summary for a match day.

        Only predictions on matches with a posted result are scored.

        Returns:
            List of dicts ordered by correct predictions, best first
        """
        from .match import Match
        from .prediction import Prediction
        from .user import User

        threshold = current_app.config.get("PRIZE_NEAR_PERFECT_THRESHOLD", 90)

        query = (
            db.session.query(
                Prediction.user_id,
                User.username,
                func.count(Prediction.id),
                func.sum(case((Match.has_result.is_(True), 1), else_=0)),
                func.sum(case((Prediction.is_correct.is_(True), 1), else_=0)),
                func.sum(Prediction.credits),
            )
            .join(Match, Prediction.match_id == Match.id)
            .join(User, Prediction.user_id == User.id)
            .filter(Match.match_day == match_day)
        )
        if user_id is not None:
            query = query.filter(Prediction.user_id == user_id)

        stats = []
        for uid, username, total, scored, correct, credits in query.group_by(
            Prediction.user_id, User.username
        ).all():
            scored = int(scored or 0)
            correct = int(correct or 0)
            stats.append(
                {
                    "user_id": uid,
                    "username": username,
                    "predictions_total": int(total or 0),
                    "predictions_scored": scored,
                    "predictions_correct": correct,
                    "correct_percentage": correct_percentage(correct, scored),
                    "credits_played": int(credits or 0),
                    "tier": prize_tier(correct, scored, threshold),
                }
            )

        stats.sort(
            key=lambda s: (
                -s["predictions_correct"],
                -Fraction(s["predictions_correct"], s["predictions_scored"] or 1),
                s["username"].lower(),
            )
        )
        return stats

    @staticmethod
    def compute(match_day):
        """
        Work out pot, tiers and per-user amounts without touching the database.

        In "fixed" mode every perfect user receives PRIZE_PERFECT_AMOUNT and
        the near-perfect band pays nothing. In "pot" mode the pot is split
        between the two tiers and each tier's share is divided evenly.
        """
        config = current_app.config
        mode = config.get("PRIZE_MODE", "fixed")

        total_pot = PrizeDistribution.get_total_credits(match_day)
        stats = PrizeDistribution.get_user_stats(match_day)
        perfect = [s for s in stats if s["tier"] == TIER_PERFECT]
        near_perfect = [s for s in stats if s["tier"] == TIER_NEAR_PERFECT]

        if mode == "pot":
            pot_for_90, pot_for_100 = split_pot(
                total_pot, config.get("PRIZE_NEAR_PERFECT_SHARE", 0.35)
            )
            amount_100 = amount_per_user(pot_for_100, len(perfect))
            amount_90 = amount_per_user(pot_for_90, len(near_perfect))
        else:
            amount_100 = config.get("PRIZE_PERFECT_AMOUNT", 10)
            amount_90 = 0
            pot_for_100 = amount_100 * len(perfect)
            pot_for_90 = 0

        winners = []
        for entry, amount in [(s, amount_100) for s in perfect] + [
            (s, amount_90) for s in near_perfect
        ]:
            if amount > 0:
                winners.append(dict(entry, amount=amount))

        return {
            "match_day": match_day,
            "prize_mode": mode,
            "total_pot": total_pot,
            "pot_for_90_pct": pot_for_90,
            "pot_for_100_pct": pot_for_100,
            "users_90_pct_correct": len(near_perfect),
            "users_100_pct_correct": len(perfect),
            "amount_per_90_pct_user": amount_90,
            "amount_per_100_pct_user": amount_100 if perfect else 0,
            "winners": winners,
        }

    def apply(self, summary):
        self.total_pot = summary["total_pot"]
        self.pot_for_90_pct = summary["pot_for_90_pct"]
        self.pot_for_100_pct = summary["pot_for_100_pct"]
        self.users_90_pct_correct = summary["users_90_pct_correct"]
        self.users_100_pct_correct = summary["users_100_pct_correct"]

    @staticmethod
    def calculate(match_day):
        """
        Persist the distribution row for a match day.

        A distributed row is returned untouched.
        """
        distribution = PrizeDistribution.get_by_match_day(match_day)
        if distribution and distribution.is_distributed:
            return distribution

        summary = PrizeDistribution.compute(match_day)
        if distribution is None:
            distribution = PrizeDistribution(match_day=match_day)
            db.session.add(distribution)
        distribution.apply(summary)
        db.session.commit()

        logger.info(
            f"Prize calculated for match day {match_day}: pot {summary['total_pot']}, "
            f"{summary['users_100_pct_correct']} perfect, "
            f"{summary['users_90_pct_correct']} near perfect"
        )
        return distribution

    @staticmethod
    def distribute(match_day):
        """
        Pay out a match day once.

        Payout rows and the distributed flag are committed together. A match
        day that was already paid returns its existing payouts.

        Returns:
            (distribution, payouts, created)
        """
        from .winner_payout import WinnerPayout

        distribution = PrizeDistribution.get_by_match_day(match_day)
        if distribution and distribution.is_distributed:
            return distribution, WinnerPayout.get_by_match_day(match_day), False

        summary = PrizeDistribution.compute(match_day)
        try:
            if distribution is None:
                distribution = PrizeDistribution(match_day=match_day)
                db.session.add(distribution)
            distribution.apply(summary)

            payouts = []
            for winner in summary["winners"]:
                payout = WinnerPayout(
                    user_id=winner["user_id"],
                    match_day=match_day,
                    correct_percentage=winner["correct_percentage"],
                    predictions_correct=winner["predictions_correct"],
                    predictions_total=winner["predictions_scored"],
                    amount=winner["amount"],
                )
                db.session.add(payout)
                payouts.append(payout)

            distribution.is_distributed = True
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Prize distribution failed for match day {match_day}: {e}")
            raise

        logger.info(
            f"Prize distributed for match day {match_day}: {len(payouts)} payouts"
        )
        return distribution, payouts, True

    def to_dict(self):
        return {
            "id": self.id,
            "match_day": self.match_day,
            "total_pot": self.total_pot,
            "pot_for_90_pct": self.pot_for_90_pct,
            "pot_for_100_pct": self.pot_for_100_pct,
            "users_90_pct_correct": self.users_90_pct_correct,
            "users_100_pct_correct": self.users_100_pct_correct,
            "is_distributed": self.is_distributed,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
