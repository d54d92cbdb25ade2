from datetime import datetime, timezone

from flask import current_app

from fantaschedina import db
from fantaschedina.utils.scoring import is_editable, is_valid_outcome, lock_time


class Match(db.Model):
    __tablename__ = "matches"

    id = db.Column(db.Integer, primary_key=True)

    # Teams, free text as printed on the schedule
    home_team = db.Column(db.String(100), nullable=False)
    away_team = db.Column(db.String(100), nullable=False)

    # Scheduling
    match_date = db.Column(db.DateTime, nullable=False)  # UTC
    match_day = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255))

    # Result: "1" home win, "X" draw, "2" away win
    result = db.Column(db.String(1))
    has_result = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    predictions = db.relationship(
        "Prediction", backref="match", lazy="dynamic", cascade="all, delete-orphan"
    )

    # Indexes
    __table_args__ = (
        db.Index("idx_match_day_date", "match_day", "match_date"),
        db.CheckConstraint("home_team != away_team", name="different_teams"),
    )

    def __repr__(self):
        return f"<Match {self.home_team} - {self.away_team} Day {self.match_day}>"

    @property
    def lock_time(self):
        """Time after which predictions are frozen"""
        return lock_time(
            self.match_date, current_app.config.get("PREDICTION_LOCK_MINUTES", 30)
        )

    def is_open(self, now=None):
        """Check if the match still accepts predictions"""
        if self.has_result:
            return False
        return is_editable(
            self.match_date,
            now,
            current_app.config.get("PREDICTION_LOCK_MINUTES", 30),
        )

    @property
    def local_match_date(self):
        """Get match date in the application's timezone"""
        # Lazy import to avoid circular imports
        from fantaschedina.utils.timezone_utils import convert_to_app_timezone

        return convert_to_app_timezone(self.match_date)

    def set_result(self, result):
        """
        Post the match result and score every prediction on it.

        Predictions are updated in bulk and frozen.
        """
        from .prediction import Prediction

        if not is_valid_outcome(result):
            raise ValueError("Risultato non valido")

        self.result = result
        self.has_result = True

        Prediction.query.filter(
            Prediction.match_id == self.id, Prediction.prediction == result
        ).update(
            {Prediction.is_correct: True, Prediction.is_editable: False},
            synchronize_session=False,
        )
        Prediction.query.filter(
            Prediction.match_id == self.id, Prediction.prediction != result
        ).update(
            {Prediction.is_correct: False, Prediction.is_editable: False},
            synchronize_session=False,
        )

    @staticmethod
    def get_all():
        return Match.query.order_by(Match.match_date, Match.id).all()

    @staticmethod
    def get_by_match_day(match_day):
        return (
            Match.query.filter_by(match_day=match_day)
            .order_by(Match.match_date, Match.id)
            .all()
        )

    @staticmethod
    def get_match_days():
        rows = db.session.query(Match.match_day).distinct().order_by(Match.match_day)
        return [row[0] for row in rows.all()]

    @staticmethod
    def get_earliest_open_match_day(now=None):
        """Smallest match day with at least one match still open"""
        pending = (
            Match.query.filter(Match.has_result.is_(False))
            .order_by(Match.match_day)
            .all()
        )
        for match in pending:
            if match.is_open(now):
                return match.match_day
        return None

    @staticmethod
    def create(home_team, away_team, match_date, match_day, description=None):
        match = Match(
            home_team=home_team.strip(),
            away_team=away_team.strip(),
            match_date=_to_naive_utc(match_date),
            match_day=match_day,
            description=description or None,
        )
        db.session.add(match)
        return match

    def update(self, **fields):
        """Update editable fields, ignoring unknown keys and None values"""
        for key in ("home_team", "away_team", "match_day", "description"):
            value = fields.get(key)
            if value is not None:
                setattr(self, key, value.strip() if isinstance(value, str) else value)
        if fields.get("match_date") is not None:
            self.match_date = _to_naive_utc(fields["match_date"])
        return self

    def delete(self):
        db.session.delete(self)

    def to_dict(self, now=None):
        """Convert match to dictionary for API responses"""
        local_date = self.local_match_date
        return {
            "id": self.id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "match_date": _isoformat_utc(self.match_date),
            "local_match_date": local_date.isoformat() if local_date else None,
            "match_day": self.match_day,
            "description": self.description,
            "result": self.result,
            "has_result": self.has_result,
            "is_open": self.is_open(now),
            "lock_time": self.lock_time.isoformat() if self.match_date else None,
        }


def _to_naive_utc(dt):
    # Stored datetimes are naive UTC
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _isoformat_utc(dt):
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
