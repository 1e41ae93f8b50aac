"""
Question identity for STREAKr

Every question a player can pick is addressed by a string identifier built
from its round, game and question position:

    round code   "OR" for the opening round (0), otherwise "R{n}"
    game id      "{round code}-G{game position}"            e.g. R3-G2
    question id  "{game id}-Q{question position}"           e.g. R3-G2-Q4

Older data also carries content-derived identifiers which append an FNV-1a
hash of the question text: "{game id}-Q{quarter}-{hash}". Positional ids are
the canonical scheme; content ids are only computed to migrate legacy
records onto their positional counterparts.
"""

import re

QUESTION_ID_PATTERN = re.compile(r"^(OR|R\d+)-G\d+-Q\d+(-[0-9a-z]+)?$")
POSITIONAL_PREFIX_PATTERN = re.compile(r"^(OR|R\d+)-G\d+-Q\d+")
GAME_ID_PATTERN = re.compile(r"^(OR|R(\d+))-G(\d+)$")

# Largest round, game, question or user number the store columns can hold
MAX_NUMBER = 2**31 - 1

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _require_int(value, minimum, name):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def round_code(round_number):
    """Round code for a round number: 0 -> "OR", n -> "R{n}" """
    _require_int(round_number, 0, "round_number")
    return "OR" if round_number == 0 else f"R{round_number}"


def game_id(round_number, game_position):
    """Game identifier for a 1-based game position within a round"""
    _require_int(game_position, 1, "game_position")
    return f"{round_code(round_number)}-G{game_position}"


def positional_question_id(round_number, game_position, question_position):
    """Canonical question identifier, e.g. R3-G2-Q4"""
    _require_int(question_position, 1, "question_position")
    return f"{game_id(round_number, game_position)}-Q{question_position}"


def fnv1a_32(text):
    """
    32-bit FNV-1a over the UTF-16 code units of text

    UTF-16 units keep hashes identical to the ones already stored by the
    browser-side writers.
    """
    data = text.encode("utf-16-le")
    h = FNV_OFFSET_BASIS
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def to_base36(number):
    """Lowercase base-36 representation of a non-negative integer"""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def content_question_id(round_number, game_code, quarter, question_text):
    """
    Content-derived (legacy) question identifier

    Args:
        round_number: Round number (0 = opening round)
        game_code: Game identifier, e.g. "R3-G2"
        quarter: Quarter the question belongs to
        question_text: Free-text prompt; trimmed and lower-cased before hashing

    Returns:
        str: "{game_code}-Q{quarter}-{base36 hash}"
    """
    _require_int(round_number, 0, "round_number")
    _require_int(quarter, 1, "quarter")
    text = str(question_text or "").strip().lower()
    base = f"{round_number}|{game_code}|Q{quarter}|{text}"
    return f"{game_code}-Q{quarter}-{to_base36(fnv1a_32(base))}"


def _within_store_range(*numbers):
    return all(number <= MAX_NUMBER for number in numbers)


def is_valid_question_id(question_id):
    """Check an identifier against the strict question id pattern"""
    if not isinstance(question_id, str):
        return False
    if QUESTION_ID_PATTERN.match(question_id) is None:
        return False
    prefix = POSITIONAL_PREFIX_PATTERN.match(question_id).group(0)
    return _within_store_range(*(int(n) for n in re.findall(r"\d+", prefix)))


def is_positional_question_id(question_id):
    return is_valid_question_id(question_id) and question_id.count("-") == 2


def positional_prefix(question_id):
    """
    Positional prefix of an identifier, or None when it has none

    "R2-G3-Q4-x9z" -> "R2-G3-Q4", "R2-G3-Q4 " -> "R2-G3-Q4", "junk" -> None
    """
    match = POSITIONAL_PREFIX_PATTERN.match(str(question_id or "").strip())
    return match.group(0) if match else None


def infer_round_number(question_id):
    """Round number encoded in a question (or game) id, None if absent"""
    q = str(question_id or "").strip().upper()
    if q.startswith("OR-"):
        return 0
    match = re.match(r"^R(\d+)-", q)
    if match:
        return int(match.group(1))
    return None


def parse_game_id(value):
    """
    Parse "R4-G6" / "or-g1" into (round_number, game_position)

    Returns:
        tuple: (round_number, game_position) or None when malformed
    """
    match = GAME_ID_PATTERN.match(str(value or "").strip().upper())
    if not match:
        return None
    round_number = 0 if match.group(1) == "OR" else int(match.group(2))
    position = int(match.group(3))
    if position < 1 or not _within_store_range(round_number, position):
        return None
    return round_number, position


def question_status_key(round_number, question_id):
    """Document key of the canonical status record for a question"""
    return f"{round_number}__{question_id}"


def pick_key(user_id, question_id):
    """Document key of a user's pick for a question"""
    return f"{user_id}_{question_id}"
