from datetime import datetime, timezone

from streakr import db
from streakr.utils.question_ids import pick_key

PICK_VALUES = ("yes", "no")


class Pick(db.Model):
    """One user's active answer to one question, keyed "{user}_{questionId}" """

    __tablename__ = "picks"

    id = db.Column(db.String(200), primary_key=True)

    # Pick identification
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    question_id = db.Column(db.String(150), nullable=False)
    round_number = db.Column(db.Integer)
    game_id = db.Column(db.String(20))

    # Pick details
    pick = db.Column(db.String(10), nullable=False)  # yes / no

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("idx_pick_question", "question_id"),
        db.Index("idx_pick_user_round", "user_id", "round_number"),
    )

    def __repr__(self):
        return f"<Pick user_id={self.user_id} question={self.question_id} pick={self.pick}>"

    @staticmethod
    def upsert(user_id, question_id, pick, round_number=None, game_id=None):
        """Create or overwrite the user's pick for a question (created_at set once)"""
        if pick not in PICK_VALUES:
            raise ValueError(f"pick must be one of {PICK_VALUES}")

        key = pick_key(user_id, question_id)
        record = db.session.get(Pick, key)
        if record is None:
            record = Pick(id=key, user_id=user_id, question_id=question_id)
            db.session.add(record)

        record.pick = pick
        record.round_number = round_number
        if game_id:
            record.game_id = game_id
        record.updated_at = datetime.now(timezone.utc)
        return record

    @staticmethod
    def clear(user_id, question_id):
        """Delete the user's pick for a question; returns True if one existed"""
        record = db.session.get(Pick, pick_key(user_id, question_id))
        if record is None:
            return False
        db.session.delete(record)
        return True

    def to_dict(self):
        """Convert pick to dictionary for API responses"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "question_id": self.question_id,
            "round_number": self.round_number,
            "game_id": self.game_id,
            "pick": self.pick,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
