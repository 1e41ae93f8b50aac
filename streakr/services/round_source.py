"""
Round source

Read side: the ordered round/game/question structure as plain dicts, cached
with Flask-Caching because every picks request walks it.

Write side: importing round definitions from JSON. Two layouts are accepted:

    nested  {"season": 2026, "rounds": [{"round_number": 0, "games": [
                {"match": ..., "venue": ..., "start_time": ...,
                 "questions": [{"quarter": 1, "question": ..., "status": ...}]}]}]}
    rows    [{"Round": "OR", "Game": 1, "Match": ..., "Venue": ...,
              "StartTime": ..., "Question": ..., "Quarter": 1, "Status": "Open"}]

Question and game order in the file is the positional order, so ids derived
from it stay stable as long as the file keeps its order.
"""

import json
import logging

from streakr import db
from streakr.models import Game, Question, Round
from streakr.utils.cache_utils import cached_query, invalidate_model_cache
from streakr.utils.question_ids import content_question_id
from streakr.utils.status import normalize_status
from streakr.utils.timezone_utils import parse_start_time

logger = logging.getLogger(__name__)


@cached_query("Round", timeout=600)
def get_round_structure(season, round_number):
    """
    Ordered structure of a round

    Returns:
        dict: {"season", "round_number", "round_code", "label", "games": [...]}
        or None when the round does not exist
    """
    round_obj = Round.get_for_season(season, round_number)
    if round_obj is None:
        return None

    games = []
    for game in round_obj.games:
        games.append(
            {
                "id": game.game_code,
                "position": game.position,
                "match": game.match,
                "venue": game.venue,
                "sport": game.sport,
                "start_time": game.start_time.isoformat() if game.start_time else None,
                "questions": [
                    {
                        "id": question.question_code,
                        "position": question.position,
                        "quarter": question.quarter,
                        "question": question.prompt,
                        "status": normalize_status(question.default_status),
                    }
                    for question in game.questions
                ],
            }
        )

    return {
        "season": round_obj.season,
        "round_number": round_obj.round_number,
        "round_code": round_obj.round_code,
        "label": round_obj.display_label,
        "games": games,
    }


def question_ids(structure):
    """Every question id of a round, in order"""
    if not structure:
        return []
    return [q["id"] for game in structure["games"] for q in game["questions"]]


def games_question_ids(structure):
    """Question ids grouped per game, both in order"""
    if not structure:
        return []
    return [[q["id"] for q in game["questions"]] for game in structure["games"]]


def find_game(structure, game_id):
    if not structure:
        return None
    for game in structure["games"]:
        if game["id"] == game_id:
            return game
    return None


def find_question(structure, question_id):
    """
    Locate a question in a round structure

    Returns:
        tuple: (game, question) dicts, or (None, None)
    """
    if not structure:
        return None, None
    for game in structure["games"]:
        for question in game["questions"]:
            if question["id"] == question_id:
                return game, question
    return None, None


def legacy_question_id_map(season, round_number):
    """
    Map content-derived ids of a round onto their positional ids

    Returns:
        dict: {content_id: positional_id}
    """
    round_obj = Round.get_for_season(season, round_number)
    if round_obj is None:
        return {}

    mapping = {}
    for game in round_obj.games:
        for question in game.questions:
            legacy_id = content_question_id(
                round_number, game.game_code, question.quarter, question.prompt
            )
            mapping[legacy_id] = question.question_code
    return mapping


def _parse_round_number(value):
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    code = str(value or "").strip().upper()
    if code == "OR":
        return 0
    if code.startswith("R") and code[1:].isdigit():
        return int(code[1:])
    if code.isdigit():
        return int(code)
    raise ValueError(f"Unrecognised round: {value!r}")


def _rows_to_rounds(rows):
    """Group flat spreadsheet-style rows into nested round definitions"""
    rounds = {}
    for row in rows:
        round_number = _parse_round_number(row.get("Round"))
        game_position = int(row.get("Game"))
        games = rounds.setdefault(round_number, {})
        game = games.setdefault(
            game_position,
            {
                "match": row.get("Match", ""),
                "venue": row.get("Venue"),
                "sport": row.get("Sport", "AFL"),
                "start_time": row.get("StartTime"),
                "questions": [],
            },
        )
        game["questions"].append(
            {
                "quarter": int(row.get("Quarter") or 1),
                "question": row.get("Question", ""),
                "status": row.get("Status", "open"),
            }
        )

    # Game ids are positional, so declared game numbers must run 1..N
    for round_number, games in rounds.items():
        expected = list(range(1, len(games) + 1))
        if sorted(games) != expected:
            raise ValueError(
                f"Round {round_number} declares games {sorted(games)}, expected {expected}"
            )

    return [
        {
            "round_number": round_number,
            "games": [games[position] for position in sorted(games)],
        }
        for round_number, games in sorted(rounds.items())
    ]


def parse_rounds_payload(payload):
    """
    Normalise either accepted layout into (season, [round definitions])

    Season is None when the payload does not name one.
    """
    if isinstance(payload, list):
        return None, _rows_to_rounds(payload)
    if isinstance(payload, dict) and isinstance(payload.get("rounds"), list):
        rounds = payload["rounds"]
        if rounds and "Round" in rounds[0]:
            rounds = _rows_to_rounds(rounds)
        return payload.get("season"), rounds
    raise ValueError("Round source must be a list of rows or an object with 'rounds'")


def import_rounds(payload, season):
    """
    Replace the stored games and questions of every round in the payload

    Args:
        payload: Parsed JSON in either accepted layout
        season: Season to import into when the payload does not name one

    Returns:
        tuple: ({"rounds", "games", "questions"} counts, message)
    """
    payload_season, rounds = parse_rounds_payload(payload)
    season = int(payload_season or season)

    counts = {"rounds": 0, "games": 0, "questions": 0}
    try:
        for definition in rounds:
            round_number = _parse_round_number(definition.get("round_number"))
            round_obj = Round.get_for_season(season, round_number)
            if round_obj is None:
                round_obj = Round(season=season, round_number=round_number)
                db.session.add(round_obj)
            round_obj.label = definition.get("label") or round_obj.label

            round_obj.games.clear()
            db.session.flush()

            for game_position, game_def in enumerate(definition.get("games", []), 1):
                game = Game(
                    position=game_position,
                    match=game_def.get("match", ""),
                    venue=game_def.get("venue"),
                    sport=game_def.get("sport") or "AFL",
                    start_time=parse_start_time(game_def.get("start_time")),
                )
                round_obj.games.append(game)

                for question_position, question_def in enumerate(
                    game_def.get("questions", []), 1
                ):
                    game.questions.append(
                        Question(
                            position=question_position,
                            quarter=int(question_def.get("quarter") or 1),
                            prompt=str(question_def.get("question", "")).strip(),
                            default_status=normalize_status(question_def.get("status")),
                        )
                    )
                    counts["questions"] += 1
                counts["games"] += 1
            counts["rounds"] += 1

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    invalidate_model_cache("Round")
    message = (
        f"Imported {counts['rounds']} rounds, {counts['games']} games and "
        f"{counts['questions']} questions for season {season}"
    )
    logger.info(message)
    return counts, message


def import_rounds_file(path, season):
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    return import_rounds(payload, season)

