from datetime import datetime, timezone

from fantaschedina import db


class WinnerPayout(db.Model):
    __tablename__ = "winner_payouts"

    id = db.Column(db.Integer, primary_key=True)

    # Payout identification
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    match_day = db.Column(db.Integer, nullable=False)

    # Result that earned the payout
    correct_percentage = db.Column(db.Integer, nullable=False)
    predictions_correct = db.Column(db.Integer, nullable=False)
    predictions_total = db.Column(db.Integer, nullable=False)

    amount = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("user_id", "match_day", name="unique_user_match_day_payout"),
        db.Index("idx_payout_match_day", "match_day"),
    )

    def __repr__(self):
        return f"<WinnerPayout user_id={self.user_id} day={self.match_day} amount={self.amount}>"

    @staticmethod
    def get_all():
        return WinnerPayout.query.order_by(
            WinnerPayout.match_day.desc(), WinnerPayout.amount.desc()
        ).all()

    @staticmethod
    def get_by_match_day(match_day):
        return (
            WinnerPayout.query.filter_by(match_day=match_day)
            .order_by(WinnerPayout.amount.desc(), WinnerPayout.user_id)
            .all()
        )

    @staticmethod
    def get_by_user(user_id):
        return (
            WinnerPayout.query.filter_by(user_id=user_id)
            .order_by(WinnerPayout.match_day.desc())
            .all()
        )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "match_day": self.match_day,
            "correct_percentage": self.correct_percentage,
            "predictions_correct": self.predictions_correct,
            "predictions_total": self.predictions_total,
            "amount": self.amount,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
