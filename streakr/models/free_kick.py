from datetime import datetime, timezone

from streakr import db


class FreeKickUse(db.Model):
    """
    Marker that a user has spent their one Golden Free Kick for a season

    The record's existence is the "already used" state. It is only ever
    created through a conditional insert on the "{season}__{user}" key.
    """

    __tablename__ = "free_kick_uses"

    id = db.Column(db.String(64), primary_key=True)

    season = db.Column(db.Integer, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    round_number = db.Column(db.Integer, nullable=False)
    game_id = db.Column(db.String(20), nullable=False)
    restore_streak_to = db.Column(db.Integer)

    used_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("season", "user_id", name="unique_season_user_free_kick"),
    )

    def __repr__(self):
        return f"<FreeKickUse {self.id} {self.game_id}>"

    @staticmethod
    def make_key(season, user_id):
        return f"{season}__{user_id}"

    @staticmethod
    def get_for(season, user_id):
        return db.session.get(FreeKickUse, FreeKickUse.make_key(season, user_id))

    def to_dict(self):
        return {
            "season": self.season,
            "user_id": self.user_id,
            "round_number": self.round_number,
            "game_id": self.game_id,
            "restore_streak_to": self.restore_streak_to,
            "used_at": self.used_at.isoformat() if self.used_at else None,
        }
