#!/usr/bin/env python3
"""
STREAKr Management CLI

Command-line management for rounds, settlement maintenance, users and the
season configuration.
"""

import json
import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from streakr import create_app, db
from streakr.models import Pick, QuestionStatus, Round, SeasonConfig, SeasonContext, User
from streakr.services import lock_sync, round_source, status_service
from streakr.utils.auth_tokens import issue_token

app = create_app()


def _season_context():
    return SeasonContext.load(current_app.config["CURRENT_SEASON"])


@click.group()
def cli():
    """STREAKr Management CLI"""
    pass


# Season Commands
@cli.group()
def season():
    """Season configuration commands"""
    pass


@season.command("set-round")
@click.argument("round_number", type=click.IntRange(min=0))
@with_appcontext
def set_round(round_number):
    """Publish ROUND_NUMBER as the current round"""
    season_year = current_app.config["CURRENT_SEASON"]
    try:
        record = SeasonConfig.get_or_create(season_year)
        record.publish_round(round_number)
        db.session.commit()
        click.echo(f"✅ Season {season_year} current round is now {round_number}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error publishing round: {str(e)}")
        logging.error(f"Publishing round failed - SQL error: {e}")


@season.command("sponsor")
@click.argument("round_number", type=click.IntRange(min=0))
@click.argument("question_id")
@with_appcontext
def sponsor(round_number, question_id):
    """Mark QUESTION_ID as the sponsor question of ROUND_NUMBER"""
    season_year = current_app.config["CURRENT_SEASON"]
    try:
        record = SeasonConfig.get_or_create(season_year)
        record.set_sponsor_question(round_number, question_id)
        db.session.commit()
        click.echo(f"✅ Sponsor question for round {round_number}: {question_id}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error setting sponsor question: {str(e)}")


# Round Commands
@cli.group()
def rounds():
    """Round source commands"""
    pass


@rounds.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False), required=False)
@click.option("--season", "season_year", type=int, help="Season (default: CURRENT_SEASON)")
@with_appcontext
def import_rounds(path, season_year):
    """Import rounds from a JSON file (default: ROUNDS_SOURCE_FILE)"""
    path = path or current_app.config["ROUNDS_SOURCE_FILE"]
    season_year = season_year or current_app.config["CURRENT_SEASON"]
    try:
        counts, message = round_source.import_rounds_file(path, season_year)
        click.echo(f"✅ {message}")
    except (OSError, ValueError, json.JSONDecodeError) as e:
        click.echo(f"❌ Could not read round source {path}: {str(e)}")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database error importing rounds: {str(e)}")


@rounds.command("list")
@with_appcontext
def list_rounds():
    """List imported rounds for the current season"""
    season_year = current_app.config["CURRENT_SEASON"]
    stored = (
        Round.query.filter_by(season=season_year).order_by(Round.round_number).all()
    )
    if not stored:
        click.echo(f"No rounds imported for {season_year}.")
        return

    current = _season_context().current_round
    click.echo(f"Rounds ({season_year}):")
    for r in stored:
        marker = "🟢" if r.round_number == current else "⚪"
        questions = sum(len(g.questions) for g in r.games)
        click.echo(
            f"  {marker} {r.round_code:<4} {r.display_label} - "
            f"{len(r.games)} games, {questions} questions"
        )


# Question Status Commands
@cli.group("status")
def status_cmd():
    """Question status maintenance"""
    pass


@status_cmd.command("repair")
@click.option("--round", "round_number", type=int, help="Only repair one round")
@click.option("--dry-run", is_flag=True, help="Report without writing")
@with_appcontext
def repair(round_number, dry_run):
    """Move malformed status records onto canonical keys"""
    result = status_service.repair_question_status_keys(round_number, dry_run=dry_run)
    click.echo(
        f"Scanned {result['scanned']}, bad {result['bad']}, "
        f"migrated {result['migrated']}, deleted {result['deleted']}"
        + (" (dry run)" if dry_run else "")
    )
    for record in result["records"]:
        click.echo(f"   {record['from_question_id']!r} -> {record['to_question_id']}")


@status_cmd.command("migrate-ids")
@click.argument("round_number", type=click.IntRange(min=0))
@click.option("--dry-run", is_flag=True, help="Report without writing")
@with_appcontext
def migrate_ids(round_number, dry_run):
    """Move picks and statuses from content-hash ids to positional ids"""
    result = status_service.migrate_legacy_question_ids(
        current_app.config["CURRENT_SEASON"], round_number, dry_run=dry_run
    )
    if not result["known_ids"]:
        click.echo(f"❌ Round {round_number} has no questions in the round source")
        return
    click.echo(
        f"✅ Picks moved: {result['picks_moved']}, dropped: {result['picks_dropped']}, "
        f"statuses moved: {result['statuses_moved']}"
        + (" (dry run)" if dry_run else "")
    )
    if result["unknown_ids"]:
        click.echo(f"⚠️  {len(result['unknown_ids'])} ids not found in the round source:")
        for question_id in result["unknown_ids"]:
            click.echo(f"   {question_id}")


# Lock Commands
@cli.group()
def locks():
    """Question locking commands"""
    pass


@locks.command("sync")
@click.option("--round", "round_number", type=int, help="Round (default: current)")
@with_appcontext
def sync(round_number):
    """Lock open questions of started games"""
    try:
        result = lock_sync.sync_locks(_season_context(), round_number)
    except SQLAlchemyError as e:
        click.echo(f"❌ Database error during lock sync: {str(e)}")
        return

    if result["round_number"] is None:
        click.echo("⚠️  No current round published")
        return
    click.echo(
        f"✅ Round {result['round_number']}: {result['started_games']} started games, "
        f"{result['locked']} locked, {result['created']} created"
    )


# User Management Commands
@cli.group()
def user():
    """User management commands"""
    pass


@user.command("create")
@click.argument("username")
@click.option("--email", help="Email address")
@click.option("--display-name", help="Display name")
@click.option("--admin", is_flag=True, help="Grant admin access")
@with_appcontext
def create_user(username, email, display_name, admin):
    """Create a player (or admin) account"""
    try:
        new_user = User(username=username, email=email, is_active=True, is_admin=admin)
        new_user.set_display_name(display_name)
        db.session.add(new_user)
        db.session.commit()
        role = "admin" if admin else "player"
        click.echo(f"✅ Created {role} '{username}' (id {new_user.id})")
    except IntegrityError:
        db.session.rollback()
        click.echo(f"❌ User '{username}' or email '{email}' already exists!")


@user.command("token")
@click.argument("username")
@with_appcontext
def token(username):
    """Print a bearer token for USERNAME"""
    found = User.query.filter_by(username=username).first()
    if not found:
        click.echo(f"❌ User '{username}' not found!")
        return
    click.echo(issue_token(found))


@user.command("list")
@with_appcontext
def list_users():
    """List all users"""
    users = User.query.order_by(User.created_at.desc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("Users:")
    for u in users:
        state = "🟢" if u.is_active else "🔴"
        admin = " (admin)" if u.is_admin else ""
        click.echo(
            f"  {state} {u.username}{admin} - streak {u.current_streak}, "
            f"best {u.longest_streak}"
        )


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


@cli.command()
@with_appcontext
def info():
    """Show application status"""
    click.echo("🏉 STREAKr Application Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    season_ctx = _season_context()
    if season_ctx.current_round is not None:
        click.echo(f"✅ Season {season_ctx.season}: round {season_ctx.current_round}")
    else:
        click.echo(f"⚠️  Season {season_ctx.season}: no round published")

    click.echo(f"👥 Active Users: {User.query.filter_by(is_active=True).count()}")
    click.echo(f"🎯 Picks: {Pick.query.count()}")
    click.echo(f"📋 Status records: {QuestionStatus.query.count()}")


if __name__ == "__main__":
    with app.app_context():
        cli()
