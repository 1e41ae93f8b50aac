"""
Tests for importing the round source from row-style files.
"""

import pytest

from streakr.models import Round
from streakr.services import round_source

from .conftest import SEASON


def row(round_code, game, quarter, question, match="Blues v Tigers"):
    return {
        "Round": round_code,
        "Game": game,
        "Match": match,
        "Quarter": quarter,
        "Question": question,
    }


class TestRowImport:
    """Spreadsheet rows grouped by round and declared game number."""

    def test_games_keep_declared_numbers(self, app):
        rows = [
            row("R3", 2, 1, "Will the Cats kick the first goal?", match="Cats v Swans"),
            row("R3", 1, 1, "Will the Blues lead at quarter time?"),
            row("R3", 1, 2, "Will there be 5+ goals in Q2?"),
        ]
        counts, _ = round_source.import_rounds(rows, SEASON)
        assert counts == {"rounds": 1, "games": 2, "questions": 3}

        structure = round_source.get_round_structure(SEASON, 3)
        assert [g["id"] for g in structure["games"]] == ["R3-G1", "R3-G2"]
        assert structure["games"][1]["match"] == "Cats v Swans"
        assert [q["id"] for q in structure["games"][0]["questions"]] == [
            "R3-G1-Q1",
            "R3-G1-Q2",
        ]

    def test_opening_round_code(self, app):
        round_source.import_rounds([row("OR", 1, 1, "Will it rain?")], SEASON)
        structure = round_source.get_round_structure(SEASON, 0)
        assert structure["games"][0]["questions"][0]["id"] == "OR-G1-Q1"

    @pytest.mark.parametrize("game_numbers", [[1, 3], [2], [0, 1]])
    def test_gaps_in_game_numbers_are_rejected(self, app, game_numbers):
        rows = [row("R3", n, 1, f"Question for game {n}?") for n in game_numbers]
        with pytest.raises(ValueError):
            round_source.import_rounds(rows, SEASON)
        assert Round.get_for_season(SEASON, 3) is None
