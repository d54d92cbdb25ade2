#!/usr/bin/env python3
"""
FantaSchedina Management CLI

This script provides command-line management functionality for the FantaSchedina application.
"""

import logging
import os

import click
from flask.cli import with_appcontext
from flask_migrate import downgrade, migrate, upgrade
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fantaschedina import create_app, db
from fantaschedina.models import Match, Prediction, PrizeDistribution, Team, User
from fantaschedina.services.team_import import import_default_teams
from fantaschedina.utils.spreadsheet import MatchSpreadsheetParser
from fantaschedina.utils.timezone_utils import format_match_time

app = create_app()


@click.group()
def cli():
    """FantaSchedina Management CLI"""
    pass


# User Management Commands
@cli.group()
def user():
    """User management commands"""
    pass


@user.command()
@click.argument("username")
@click.argument("pin")
@with_appcontext
def create_admin(username, pin):
    """Create an admin user"""
    if len(username.strip()) < 3:
        click.echo("❌ Team name must be at least 3 characters")
        return
    if len(pin) != 4 or not pin.isdigit():
        click.echo("❌ PIN must be exactly 4 digits")
        return

    if User.get_by_username(username):
        click.echo(f"❌ User '{username}' already exists!")
        return

    try:
        User.create(username, pin, is_admin=True)
        click.echo(f"✅ Created admin user '{username}'")
    except IntegrityError as e:
        db.session.rollback()
        click.echo(f"❌ User '{username}' already exists!")
        logging.error(f"Admin creation failed - integrity error: {e}")


@user.command()
@with_appcontext
def list_users():
    """List all users"""
    users = User.get_all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("Users:")
    for u in users:
        role = "👑" if u.is_admin else "⚽"
        predictions = u.predictions.count()
        click.echo(f"  {role} {u.username} - {predictions} predictions")


# Team Commands
@cli.group()
def team():
    """Team management commands"""
    pass


@team.command()
@with_appcontext
def import_defaults():
    """Create the league's teams"""
    try:
        created, skipped = import_default_teams()
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error importing teams: {str(e)}")
        return

    for name in created:
        click.echo(f"✅ Created team: {name}")
    for name in skipped:
        click.echo(f"⚪ Team already exists: {name}")
    click.echo(f"🎉 Team import completed ({len(created)} new)")


@team.command()
@with_appcontext
def list_teams():
    """List teams by credits"""
    teams = Team.get_all()

    if not teams:
        click.echo("No teams found.")
        return

    click.echo("Teams:")
    for position, t in enumerate(teams, start=1):
        click.echo(f"  {position}. {t.name} ({t.manager_name or '-'}) - {t.credits} crediti")


# Match Commands
@cli.group()
def match():
    """Match management commands"""
    pass


@match.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_matches(path):
    """Import matches from a spreadsheet"""
    with open(path, "rb") as f:
        parsed = MatchSpreadsheetParser().parse(f.read(), os.path.basename(path))

    if not parsed["success"]:
        click.echo(f"❌ {parsed['error']}")
        return

    try:
        matches = [Match.create(**match_data) for match_data in parsed["matches"]]
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error importing matches: {str(e)}")
        return

    for m in matches:
        click.echo(
            f"  ✅ Day {m.match_day}: {m.home_team} - {m.away_team} "
            f"({format_match_time(m.match_date)})"
        )
    click.echo(f"🎉 Imported {len(matches)} matches")


# Prize Commands
@cli.group()
def prize():
    """Prize calculation and distribution commands"""
    pass


@prize.command()
@click.argument("match_day", type=int)
@with_appcontext
def calculate(match_day):
    """Calculate (and store) the prize for a match day"""
    distribution = PrizeDistribution.calculate(match_day)

    click.echo(f"🏆 Match day {match_day}")
    click.echo(f"   Pot: {distribution.total_pot}")
    click.echo(
        f"   100%: {distribution.users_100_pct_correct} users, "
        f"{distribution.pot_for_100_pct} credits"
    )
    click.echo(
        f"   90%: {distribution.users_90_pct_correct} users, "
        f"{distribution.pot_for_90_pct} credits"
    )
    if distribution.is_distributed:
        click.echo("   ⚠️  Already distributed, values are frozen")


@prize.command()
@click.argument("match_day", type=int)
@with_appcontext
def distribute(match_day):
    """Pay out the prize for a match day"""
    try:
        _, payouts, created = PrizeDistribution.distribute(match_day)
    except SQLAlchemyError as e:
        click.echo(f"❌ Database error distributing prizes: {str(e)}")
        return

    if not created:
        click.echo(f"⚪ Match day {match_day} was already distributed")

    for payout in payouts:
        click.echo(
            f"  💰 {payout.user.username}: {payout.amount} credits "
            f"({payout.predictions_correct}/{payout.predictions_total})"
        )
    click.echo(f"🎉 {len(payouts)} payouts for match day {match_day}")


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


# Database Migration Commands
@cli.group()
def db_migrate():
    """Database migration commands"""
    pass


@db_migrate.command()
@with_appcontext
def init_migrations():
    """Initialize migrations repository"""
    if os.path.exists(os.path.join("migrations", "alembic.ini")):
        click.echo("❌ Migrations repository already exists!")
        return

    # Use the Flask-Migrate init function
    from flask_migrate import init as flask_migrate_init

    flask_migrate_init()
    click.echo("✅ Migrations repository initialized!")


@db_migrate.command()
@click.option("-m", "--message", required=True, help="Migration message")
@with_appcontext
def create_migration(message):
    """Create a new migration"""
    migrate(message=message)
    click.echo(f"✅ Migration created: {message}")


@db_migrate.command()
@click.option("--revision", default="head", help="Revision to upgrade to")
@with_appcontext
def apply_migrations(revision):
    """Apply migrations to database"""
    upgrade(revision=revision)
    click.echo(f"✅ Migrations applied to {revision}")


@db_migrate.command()
@click.option("--revision", required=True, help="Revision to downgrade to")
@with_appcontext
def rollback_migration(revision):
    """Rollback migrations to specific revision"""
    downgrade(revision=revision)
    click.echo(f"✅ Rolled back to {revision}")


# Info Commands
@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("⚽ FantaSchedina Application Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    user_count = User.query.filter_by(is_admin=False).count()
    click.echo(f"👥 Players: {user_count}")

    team_count = Team.query.count()
    click.echo(f"🛡️  Teams: {team_count}")

    match_days = Match.get_match_days()
    match_count = Match.query.count()
    resulted_count = Match.query.filter_by(has_result=True).count()
    click.echo(
        f"⚽ Matches: {resulted_count}/{match_count} with result "
        f"across {len(match_days)} match days"
    )

    current_day = Match.get_earliest_open_match_day()
    if current_day is not None:
        click.echo(f"📅 Open match day: {current_day}")
    else:
        click.echo("⚠️  Open match day: None")

    click.echo(f"📝 Predictions: {Prediction.query.count()}")

    distributed = PrizeDistribution.query.filter_by(is_distributed=True).count()
    click.echo(f"🏆 Distributed match days: {distributed}")


if __name__ == "__main__":
    with app.app_context():
        cli()
