from streakr import db
from streakr.utils.question_ids import positional_question_id


class Question(db.Model):
    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)

    game_id = db.Column(db.Integer, db.ForeignKey("games.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False)  # 1-based order within game
    quarter = db.Column(db.Integer, nullable=False, default=1)
    prompt = db.Column(db.String(500), nullable=False)

    # Status as authored in the round source; question_status records override it
    default_status = db.Column(db.String(20), default="open")

    __table_args__ = (
        db.UniqueConstraint("game_id", "position", name="unique_game_question_position"),
    )

    def __repr__(self):
        return f"<Question {self.question_code}>"

    @property
    def question_code(self):
        """Canonical (positional) question identifier, e.g. R3-G2-Q4"""
        return positional_question_id(
            self.game.round.round_number, self.game.position, self.position
        )

    def to_dict(self):
        return {
            "id": self.question_code,
            "quarter": self.quarter,
            "question": self.prompt,
            "status": self.default_status or "open",
        }
