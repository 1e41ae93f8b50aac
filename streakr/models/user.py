from datetime import datetime, timezone

from flask_login import UserMixin

from streakr import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True, index=True)

    # Profile information
    first_name = db.Column(db.String(50))
    last_name = db.Column(db.String(50))
    display_name = db.Column(db.String(100))
    favourite_team = db.Column(db.String(50))
    avatar_url = db.Column(db.String(500))

    # Account status
    is_active = db.Column(db.Boolean, default=True)
    is_admin = db.Column(db.Boolean, default=False)

    # Streak state (maintained by settlement)
    current_streak = db.Column(db.Integer, default=0, nullable=False)
    longest_streak = db.Column(db.Integer, default=0, nullable=False)
    streak_updated_at = db.Column(db.DateTime)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    picks = db.relationship(
        "Pick", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_user_created_at", "created_at"),
        db.Index("idx_user_longest_streak", "longest_streak"),
    )

    def __repr__(self):
        return f"<User {self.username}>"

    @property
    def full_name(self):
        """Return first/last name, display name or username"""
        if self.first_name or self.last_name:
            return f"{self.first_name or ''} {self.last_name or ''}".strip()
        return self.display_name or self.username or "Player"

    def set_display_name(self, display_name):
        """Set display name with sanitization"""
        import html

        if display_name:
            self.display_name = html.escape(display_name.strip())
        else:
            self.display_name = display_name

    def record_streak(self, current_streak):
        """Store a recomputed current streak, raising the longest streak if beaten"""
        self.current_streak = max(0, int(current_streak))
        self.longest_streak = max(self.longest_streak or 0, self.current_streak)
        self.streak_updated_at = datetime.now(timezone.utc)

    @staticmethod
    def get_by_ids(user_ids):
        """Load users for a collection of ids as a {id: User} mapping"""
        from streakr.utils.store import fetch_in_chunks

        ids = [int(user_id) for user_id in user_ids]
        users = fetch_in_chunks(User.query, User.id, ids)
        return {user.id: user for user in users}

