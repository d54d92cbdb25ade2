from datetime import datetime, timezone

from sqlalchemy import func

from fantaschedina import db


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)

    # Team identification
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    manager_name = db.Column(db.String(200))

    # Visual elements: base64 data URI or a static path
    logo = db.Column(db.Text)

    # Standing
    credits = db.Column(db.Integer, default=0, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (db.CheckConstraint("credits >= 0", name="non_negative_credits"),)

    def __repr__(self):
        return f"<Team {self.name}>"

    @staticmethod
    def get_all():
        """Teams ordered by credits, richest first"""
        return Team.query.order_by(Team.credits.desc(), Team.name).all()

    @staticmethod
    def get_by_name(name):
        """Case-insensitive lookup by team name"""
        if not name:
            return None
        return Team.query.filter(
            func.lower(Team.name) == name.strip().lower()
        ).first()

    @staticmethod
    def create(name, manager_name=None, credits=0, logo=None):
        team = Team(
            name=name.strip(),
            manager_name=manager_name,
            credits=credits or 0,
            logo=logo,
        )
        db.session.add(team)
        return team

    def update(self, name=None, manager_name=None, credits=None, logo=None):
        if name is not None:
            self.name = name.strip()
        if manager_name is not None:
            self.manager_name = manager_name
        if credits is not None:
            self.update_credits(credits)
        if logo is not None:
            self.logo = logo
        return self

    def update_credits(self, credits):
        if credits < 0:
            raise ValueError("I crediti non possono essere negativi")
        self.credits = credits
        return self

    def delete(self):
        db.session.delete(self)

    @staticmethod
    def set_logo(team_name, logo):
        """
        Attach a logo to the team with the given name.

        Returns:
            True if the team exists and was updated, False otherwise
        """
        team = Team.get_by_name(team_name)
        if not team:
            return False
        team.logo = logo
        return True

    def to_dict(self):
        """Convert team to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "manager_name": self.manager_name,
            "logo": self.logo,
            "credits": self.credits,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
