import logging
from datetime import datetime, timezone

from flask import current_app, g
from sqlalchemy.exc import SQLAlchemyError

from streakr import db

logger = logging.getLogger(__name__)


class SeasonConfig(db.Model):
    """Per-season settings: which round is published and the sponsor question"""

    __tablename__ = "season_config"

    season = db.Column(db.Integer, primary_key=True)

    current_round = db.Column(db.Integer)
    sponsor_round = db.Column(db.Integer)
    sponsor_question_id = db.Column(db.String(150))

    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<SeasonConfig {self.season} round={self.current_round}>"

    @staticmethod
    def get_or_create(season):
        record = db.session.get(SeasonConfig, season)
        if record is None:
            record = SeasonConfig(season=season)
            db.session.add(record)
        return record

    def publish_round(self, round_number):
        """Make a round the current one for the season"""
        self.current_round = round_number
        self.updated_at = datetime.now(timezone.utc)

    def set_sponsor_question(self, round_number, question_id):
        self.sponsor_round = round_number
        self.sponsor_question_id = question_id
        self.updated_at = datetime.now(timezone.utc)


class SeasonContext:
    """
    Read-only snapshot of a season's configuration for one request

    Built once at the start of a request and passed to every service that
    needs the current round or sponsor question.
    """

    def __init__(
        self, season, current_round=None, sponsor_round=None, sponsor_question_id=None
    ):
        self.season = season
        self.current_round = current_round
        self.sponsor_round = sponsor_round
        self.sponsor_question_id = sponsor_question_id

    def __repr__(self):
        return f"<SeasonContext {self.season} round={self.current_round}>"

    @staticmethod
    def load(season):
        """Fetch the season configuration; a store failure yields an empty context"""
        try:
            record = db.session.get(SeasonConfig, season)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load season config for {season}: {e}")
            db.session.rollback()
            record = None

        if record is None:
            return SeasonContext(season)

        return SeasonContext(
            season,
            current_round=record.current_round,
            sponsor_round=record.sponsor_round,
            sponsor_question_id=record.sponsor_question_id,
        )

    @staticmethod
    def for_request():
        """The configured season's context, loaded once per request"""
        if "season_ctx" not in g:
            g.season_ctx = SeasonContext.load(current_app.config["CURRENT_SEASON"])
        return g.season_ctx

    def resolve_round(self, requested=None):
        """Requested round if given, else the published round, else round 1"""
        if requested is not None:
            return requested
        if self.current_round is not None:
            return self.current_round
        return 1

    def is_sponsor_question(self, round_number, question_id):
        return (
            self.sponsor_question_id is not None
            and self.sponsor_round == round_number
            and self.sponsor_question_id == question_id
        )
