import secrets
from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy import case, func

from fantaschedina import db
from fantaschedina.utils.scoring import correct_percentage, rank_entries


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    # Team name doubles as the login name
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    # 4-digit PIN, kept as entered
    pin = db.Column(db.String(4), nullable=False)

    # Account status
    is_admin = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    predictions = db.relationship(
        "Prediction", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    payouts = db.relationship(
        "WinnerPayout", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (db.Index("idx_user_created_at", "created_at"),)

    def __repr__(self):
        return f"<User {self.username}>"

    def check_pin(self, pin):
        """Compare a PIN against the stored one"""
        if pin is None:
            return False
        return secrets.compare_digest(str(self.pin), str(pin))

    @staticmethod
    def get_by_username(username):
        if not username:
            return None
        return User.query.filter_by(username=username.strip()).first()

    @staticmethod
    def verify_pin(username, pin):
        """Return the user when username and PIN match, else None"""
        user = User.get_by_username(username)
        if user and user.check_pin(pin):
            return user
        return None

    @staticmethod
    def create(username, pin, is_admin=False):
        user = User(username=username.strip(), pin=pin, is_admin=is_admin)
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def get_all():
        return User.query.order_by(User.username).all()

    def update(self, username=None, pin=None, is_admin=None):
        if username is not None:
            self.username = username.strip()
        if pin is not None:
            self.pin = pin
        if is_admin is not None:
            self.is_admin = is_admin
        db.session.commit()
        return self

    def delete(self):
        db.session.delete(self)
        db.session.commit()

    @staticmethod
    def get_latest_resulted_match_day():
        """Highest match day with at least one posted result"""
        from .match import Match

        return (
            db.session.query(func.max(Match.match_day))
            .filter(Match.has_result.is_(True))
            .scalar()
        )

    @staticmethod
    def _collect_stats(match_days=None, before_match_day=None):
        """
        Aggregate scored predictions and payouts per user.

        Args:
            match_days: Optional list restricting the match days counted
            before_match_day: Optional bound, only days strictly lower count
        """
        from .match import Match
        from .prediction import Prediction
        from .winner_payout import WinnerPayout

        stats_query = (
            db.session.query(
                Prediction.user_id,
                func.count(Prediction.id),
                func.sum(case((Prediction.is_correct.is_(True), 1), else_=0)),
            )
            .join(Match, Prediction.match_id == Match.id)
            .filter(Match.has_result.is_(True))
        )
        payout_query = db.session.query(
            WinnerPayout.user_id, func.sum(WinnerPayout.amount)
        )

        if match_days is not None:
            stats_query = stats_query.filter(Match.match_day.in_(match_days))
            payout_query = payout_query.filter(WinnerPayout.match_day.in_(match_days))
        if before_match_day is not None:
            stats_query = stats_query.filter(Match.match_day < before_match_day)
            payout_query = payout_query.filter(
                WinnerPayout.match_day < before_match_day
            )

        stats = {
            user_id: (int(total or 0), int(correct or 0))
            for user_id, total, correct in stats_query.group_by(
                Prediction.user_id
            ).all()
        }
        credits = {
            user_id: int(amount or 0)
            for user_id, amount in payout_query.group_by(WinnerPayout.user_id).all()
        }

        entries = []
        for user in User.query.filter_by(is_admin=False).all():
            total, correct = stats.get(user.id, (0, 0))
            entries.append(
                {
                    "id": user.id,
                    "username": user.username,
                    "correct_predictions": correct,
                    "total_predictions": total,
                    "success_rate": correct_percentage(correct, total),
                    "credits_won": credits.get(user.id, 0),
                }
            )
        return rank_entries(entries)

    @staticmethod
    def get_leaderboard(mode="overall"):
        """
        Build the leaderboard.

        Args:
            mode: "current" restricts to the latest match day with a result,
                "overall" spans every match day

        Returns:
            List of entry dicts ordered by position, each carrying the
            position held before the latest resulted match day
        """
        latest = User.get_latest_resulted_match_day()

        if mode == "current":
            if latest is None:
                return User._collect_stats(match_days=[])
            entries = User._collect_stats(match_days=[latest])

            from .match import Match

            previous_day = (
                db.session.query(func.max(Match.match_day))
                .filter(Match.has_result.is_(True), Match.match_day < latest)
                .scalar()
            )
            previous = (
                User._collect_stats(match_days=[previous_day])
                if previous_day is not None
                else None
            )
        else:
            entries = User._collect_stats()
            previous = (
                User._collect_stats(before_match_day=latest)
                if latest is not None
                else None
            )

        previous_positions = (
            {entry["id"]: entry["position"] for entry in previous} if previous else {}
        )
        for entry in entries:
            entry["previous_position"] = previous_positions.get(entry["id"])

        return entries

    def to_dict(self, include_pin=False):
        """Convert user to dictionary for API responses"""
        data = {
            "id": self.id,
            "username": self.username,
            "is_admin": self.is_admin,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_pin:
            data["pin"] = self.pin
        return data
