from datetime import datetime, timezone

from flask import current_app

from fantaschedina import db
from fantaschedina.utils.scoring import is_editable, is_valid_outcome


class PredictionRejected(ValueError):
    """Raised when a prediction cannot be created, changed or removed"""


class Prediction(db.Model):
    __tablename__ = "predictions"

    id = db.Column(db.Integer, primary_key=True)

    # Prediction identification
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    match_id = db.Column(
        db.Integer, db.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )

    # Prediction details
    prediction = db.Column(db.String(1), nullable=False)  # "1", "X" or "2"
    credits = db.Column(db.Integer, nullable=False, default=1)

    # Results (set when the match result is posted)
    is_correct = db.Column(db.Boolean)
    is_editable = db.Column(db.Boolean, default=True, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Constraints and indexes
    __table_args__ = (
        db.UniqueConstraint("user_id", "match_id", name="unique_user_match_prediction"),
        db.Index("idx_prediction_match", "match_id"),
        db.Index("idx_prediction_user", "user_id"),
    )

    def __repr__(self):
        return f"<Prediction user_id={self.user_id} match_id={self.match_id} {self.prediction}>"

    def can_edit(self, now=None):
        """Check if the prediction can still be changed"""
        if not self.is_editable or self.match is None or self.match.has_result:
            return False
        return is_editable(
            self.match.match_date,
            now,
            current_app.config.get("PREDICTION_LOCK_MINUTES", 30),
        )

    @staticmethod
    def get_all():
        return Prediction.query.order_by(Prediction.created_at.desc()).all()

    @staticmethod
    def get_by_match(match_id):
        return Prediction.query.filter_by(match_id=match_id).all()

    @staticmethod
    def get_by_user(user_id):
        from .match import Match

        return (
            Prediction.query.join(Match, Prediction.match_id == Match.id)
            .filter(Prediction.user_id == user_id)
            .order_by(Match.match_day, Match.match_date)
            .all()
        )

    @staticmethod
    def get_by_user_and_match(user_id, match_id):
        return Prediction.query.filter_by(user_id=user_id, match_id=match_id).first()

    @staticmethod
    def get_by_match_day(match_day):
        from .match import Match

        return (
            Prediction.query.join(Match, Prediction.match_id == Match.id)
            .filter(Match.match_day == match_day)
            .order_by(Match.match_date, Prediction.user_id)
            .all()
        )

    @staticmethod
    def get_user_predictions_for_match_day(user_id, match_day):
        from .match import Match

        return (
            Prediction.query.join(Match, Prediction.match_id == Match.id)
            .filter(Prediction.user_id == user_id, Match.match_day == match_day)
            .order_by(Match.match_date)
            .all()
        )

    @staticmethod
    def check_match_day_gating(user_id, match, now=None):
        """
        Validate the match day progression rule.

        A match on a later day than the earliest open one requires the user
        to already hold the minimum number of predictions on that earliest day.

        Returns:
            (ok, message)
        """
        from .match import Match

        earliest = Match.get_earliest_open_match_day(now)
        if earliest is None or match.match_day <= earliest:
            return True, "Match day available"

        open_matches = [m for m in Match.get_by_match_day(earliest) if m.is_open(now)]
        required = min(
            current_app.config.get("MIN_PREDICTIONS_PER_MATCH_DAY", 5),
            len(open_matches),
        )
        held = len(Prediction.get_user_predictions_for_match_day(user_id, earliest))

        if held < required:
            return (
                False,
                f"Devi inserire almeno {required} pronostici per la giornata "
                f"{earliest} prima di passare alla successiva",
            )
        return True, "Match day available"

    @staticmethod
    def submit(user_id, match, outcome, credits=None, now=None):
        """
        Create a prediction, or update the existing one for the same match.

        Returns:
            (prediction, created)

        Raises:
            PredictionRejected: when the outcome is invalid, the match is
                locked, the match day is full or not reachable yet
        """
        if not is_valid_outcome(outcome):
            raise PredictionRejected("Il pronostico deve essere 1, X o 2")

        if credits is None:
            credits = current_app.config.get("PREDICTION_CREDITS_DEFAULT", 1)

        existing = Prediction.get_by_user_and_match(user_id, match.id)
        if existing:
            if not existing.can_edit(now):
                raise PredictionRejected(
                    "Il pronostico non è più modificabile per questa partita"
                )
            existing.prediction = outcome
            existing.credits = credits
            return existing, False

        if not match.is_open(now):
            raise PredictionRejected("Le previsioni per questa partita sono chiuse")

        limit = current_app.config.get("MAX_PREDICTIONS_PER_MATCH_DAY", 5)
        held = Prediction.get_user_predictions_for_match_day(user_id, match.match_day)
        if len(held) >= limit:
            raise PredictionRejected(
                f"Hai già pronosticato {limit} partite per questa giornata. "
                "Non puoi aggiungerne altre."
            )

        ok, message = Prediction.check_match_day_gating(user_id, match, now)
        if not ok:
            raise PredictionRejected(message)

        prediction = Prediction(
            user_id=user_id,
            match_id=match.id,
            prediction=outcome,
            credits=credits,
            is_editable=True,
        )
        db.session.add(prediction)
        return prediction, True

    def update(self, outcome=None, credits=None, now=None):
        """Change an existing prediction while it is editable"""
        if not self.can_edit(now):
            raise PredictionRejected(
                "Il pronostico non è più modificabile per questa partita"
            )
        if outcome is not None:
            if not is_valid_outcome(outcome):
                raise PredictionRejected("Il pronostico deve essere 1, X o 2")
            self.prediction = outcome
        if credits is not None:
            self.credits = credits
        return self

    def delete(self, now=None):
        if not self.can_edit(now):
            raise PredictionRejected(
                "Il pronostico non è più modificabile per questa partita"
            )
        db.session.delete(self)

    def to_dict(self, include_match=False, now=None):
        """Convert prediction to dictionary for API responses"""
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "match_id": self.match_id,
            "match_day": self.match.match_day if self.match else None,
            "prediction": self.prediction,
            "credits": self.credits,
            "is_correct": self.is_correct,
            "is_editable": self.can_edit(now),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_match and self.match:
            data["match"] = self.match.to_dict(now)

        return data
