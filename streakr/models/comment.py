from datetime import datetime, timezone

from streakr import db


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    round_number = db.Column(db.Integer, index=True)
    question_id = db.Column(db.String(150), nullable=False, index=True)
    body = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Comment {self.id} on {self.question_id}>"
