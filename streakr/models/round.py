from datetime import datetime, timezone

from streakr import db
from streakr.utils.question_ids import round_code


class Round(db.Model):
    __tablename__ = "rounds"

    id = db.Column(db.Integer, primary_key=True)

    # Round identification
    season = db.Column(db.Integer, nullable=False)
    round_number = db.Column(db.Integer, nullable=False)  # 0 = opening round
    label = db.Column(db.String(50))

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    games = db.relationship(
        "Game",
        backref="round",
        lazy="selectin",
        order_by="Game.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("season", "round_number", name="unique_season_round"),
        db.Index("idx_round_season", "season"),
    )

    def __repr__(self):
        return f"<Round {self.season} {self.round_code}>"

    @property
    def round_code(self):
        return round_code(self.round_number)

    @property
    def display_label(self):
        if self.label:
            return self.label
        return "Opening Round" if self.round_number == 0 else f"Round {self.round_number}"

    @staticmethod
    def get_for_season(season, round_number):
        """Get a round by season and round number"""
        return Round.query.filter_by(season=season, round_number=round_number).first()

    def to_dict(self):
        """Convert round to dictionary for API responses"""
        return {
            "id": self.id,
            "season": self.season,
            "round_number": self.round_number,
            "round_code": self.round_code,
            "label": self.display_label,
            "games": [game.to_dict() for game in self.games],
        }
