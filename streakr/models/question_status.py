from datetime import datetime, timezone

from streakr import db
from streakr.utils.question_ids import question_status_key


class QuestionStatus(db.Model):
    """
    Settlement state of a question

    The canonical record for a question is keyed "{round}__{questionId}".
    Older writers left records under other keys, so several records may
    describe the same question; readers collapse them by latest update.
    """

    __tablename__ = "question_status"

    id = db.Column(db.String(200), primary_key=True)

    round_number = db.Column(db.Integer, index=True)
    question_id = db.Column(db.String(150), index=True)

    status = db.Column(db.String(20))  # open / pending / final / void
    outcome = db.Column(db.String(20))  # yes / no / void
    result = db.Column(db.String(20))  # legacy outcome field
    override_mode = db.Column(db.String(10))  # manual / auto

    updated_at = db.Column(db.DateTime)

    __table_args__ = (
        db.Index("idx_question_status_round_question", "round_number", "question_id"),
    )

    def __repr__(self):
        return f"<QuestionStatus {self.id} {self.status}/{self.outcome}>"

    @property
    def raw_outcome(self):
        """Outcome as stored, falling back to the legacy result field"""
        return self.outcome if self.outcome is not None else self.result

    @staticmethod
    def upsert(round_number, question_id, **fields):
        """
        Merge fields onto the canonical record for a question

        Only the given fields are written; None clears a field. updated_at is
        always stamped.
        """
        key = question_status_key(round_number, question_id)
        record = db.session.get(QuestionStatus, key)
        if record is None:
            record = QuestionStatus(
                id=key, round_number=round_number, question_id=question_id
            )
            db.session.add(record)

        for name, value in fields.items():
            setattr(record, name, value)
        record.updated_at = datetime.now(timezone.utc)
        return record

    def to_dict(self):
        return {
            "key": self.id,
            "round_number": self.round_number,
            "question_id": self.question_id,
            "status": self.status,
            "outcome": self.raw_outcome,
            "override_mode": self.override_mode,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
