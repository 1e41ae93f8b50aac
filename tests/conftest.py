"""
tests/conftest.py - Pytest configuration and fixtures

Every test gets a fresh app on an in-memory SQLite database. The factory
fixtures build rounds, users, picks and status records directly in the
store so service tests do not need to go through the HTTP layer.
"""

from datetime import datetime, timedelta, timezone

import pytest

from streakr import create_app, db
from streakr.models import Pick, QuestionStatus, SeasonConfig, SeasonContext, User
from streakr.services import round_source
from streakr.utils.auth_tokens import issue_token

SEASON = 2026


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def season_ctx(app):
    return SeasonContext(SEASON, current_round=3)


@pytest.fixture
def make_user(app):
    """Create and commit a user; later calls get later created_at values"""
    created = []

    def _make_user(username, is_admin=False, created_at=None, **fields):
        if created_at is None:
            created_at = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(
                minutes=len(created)
            )
        user = User(
            username=username,
            email=f"{username}@example.com",
            is_admin=is_admin,
            created_at=created_at,
            **fields,
        )
        db.session.add(user)
        db.session.commit()
        created.append(user)
        return user

    return _make_user


def round_payload(round_number, games, start_time="2026-03-20T19:30:00"):
    """
    Round source payload with `games` games of question prompts

    games: list of question counts, e.g. [3, 2] -> G1 has 3 questions, G2 has 2
    """
    return {
        "season": SEASON,
        "rounds": [
            {
                "round_number": round_number,
                "games": [
                    {
                        "match": f"Home {g} vs Away {g}",
                        "venue": "MCG",
                        "start_time": start_time,
                        "questions": [
                            {"quarter": q, "question": f"Game {g} question {q}?"}
                            for q in range(1, count + 1)
                        ],
                    }
                    for g, count in enumerate(games, 1)
                ],
            }
        ],
    }


@pytest.fixture
def make_round(app):
    """Import a round into the store and return its structure"""

    def _make_round(round_number, games, start_time="2026-03-20T19:30:00"):
        round_source.import_rounds(round_payload(round_number, games, start_time), SEASON)
        return round_source.get_round_structure(SEASON, round_number)

    return _make_round


@pytest.fixture
def add_pick(app):
    def _add_pick(user, question_id, pick):
        from streakr.utils.question_ids import infer_round_number, positional_prefix

        record = Pick.upsert(
            user.id,
            question_id,
            pick,
            round_number=infer_round_number(question_id),
            game_id=positional_prefix(question_id).rsplit("-", 1)[0],
        )
        db.session.commit()
        return record

    return _add_pick


@pytest.fixture
def set_status(app):
    """Write a status record, canonical unless `key` is given"""

    def _set_status(
        question_id,
        status,
        outcome=None,
        round_number=None,
        key=None,
        updated_at=None,
        override_mode=None,
    ):
        from streakr.utils.question_ids import infer_round_number, question_status_key

        if round_number is None:
            round_number = infer_round_number(question_id)
        record = QuestionStatus(
            id=key or question_status_key(round_number, question_id),
            round_number=round_number,
            question_id=question_id,
            status=status,
            outcome=outcome,
            override_mode=override_mode,
            updated_at=updated_at or datetime.now(timezone.utc),
        )
        db.session.merge(record)
        db.session.commit()
        return record

    return _set_status


@pytest.fixture
def publish_round(app):
    def _publish_round(round_number):
        config = SeasonConfig.get_or_create(SEASON)
        config.publish_round(round_number)
        db.session.commit()

    return _publish_round


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {issue_token(user)}"}

    return _auth_headers


@pytest.fixture
def admin_headers(app):
    return {"X-Admin-Token": app.config["ADMIN_TOKEN"]}
