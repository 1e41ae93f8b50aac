from datetime import datetime, timezone

from streakr import db
from streakr.utils.question_ids import game_id as make_game_id


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)

    # Game identification
    round_id = db.Column(db.Integer, db.ForeignKey("rounds.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False)  # 1-based order within round

    # Game details
    match = db.Column(db.String(120), nullable=False)
    venue = db.Column(db.String(120))
    sport = db.Column(db.String(20), default="AFL")
    start_time = db.Column(db.DateTime)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    questions = db.relationship(
        "Question",
        backref="game",
        lazy="selectin",
        order_by="Question.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("round_id", "position", name="unique_round_game_position"),
        db.Index("idx_game_start_time", "start_time"),
    )

    def __repr__(self):
        return f"<Game {self.game_code} {self.match}>"

    @property
    def game_code(self):
        """Game identifier, e.g. R3-G2"""
        return make_game_id(self.round.round_number, self.position)

    def has_started(self, now=None):
        """Check if game has started"""
        if not self.start_time:
            return False
        now_utc = now or datetime.now(timezone.utc)
        start_time = self.start_time

        # If start_time is timezone-naive, assume it's in UTC
        if start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=timezone.utc)

        return now_utc >= start_time

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        return {
            "id": self.game_code,
            "match": self.match,
            "venue": self.venue,
            "sport": self.sport,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "questions": [question.to_dict() for question in self.questions],
        }
