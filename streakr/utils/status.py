"""
Question status normalisation and reconciliation

Status records have been written by several generations of admin tools, so
the status and outcome fields arrive with inconsistent casing and wording
and the same question can have more than one record. This module turns a
pile of raw records into one authoritative {status, outcome} per question.
"""

from datetime import datetime, timezone

from streakr.utils.question_ids import is_valid_question_id, question_status_key

STATUS_OPEN = "open"
STATUS_PENDING = "pending"
STATUS_FINAL = "final"
STATUS_VOID = "void"

QUESTION_STATUSES = (STATUS_OPEN, STATUS_PENDING, STATUS_FINAL, STATUS_VOID)
SETTLED_STATUSES = (STATUS_FINAL, STATUS_VOID)

OUTCOME_YES = "yes"
OUTCOME_NO = "no"
OUTCOME_VOID = "void"

OUTCOME_SYNONYMS = {
    OUTCOME_YES: ("yes", "y", "correct", "win", "winner"),
    OUTCOME_NO: ("no", "n", "wrong", "loss", "loser"),
    OUTCOME_VOID: ("void", "cancelled", "canceled"),
}

# Substring fallbacks, checked in this order
_STATUS_FRAGMENTS = (
    ("open", STATUS_OPEN),
    ("final", STATUS_FINAL),
    ("pend", STATUS_PENDING),
    ("void", STATUS_VOID),
)


def normalize_outcome(value):
    """
    Map a stored outcome onto yes / no / void

    Unrecognised values (including "lock" and "TBD") mean "no outcome yet"
    and return None.
    """
    if not isinstance(value, str):
        return None
    s = value.strip().lower()
    for outcome, synonyms in OUTCOME_SYNONYMS.items():
        if s in synonyms:
            return outcome
    return None


def normalize_status(value):
    """Case-fold a stored status and match it onto the four known statuses"""
    s = str(value if value is not None else STATUS_OPEN).strip().lower()
    if s in QUESTION_STATUSES:
        return s
    for fragment, status in _STATUS_FRAGMENTS:
        if fragment in s:
            return status
    return STATUS_OPEN


def to_millis(ts):
    """Epoch milliseconds for a stored timestamp; missing or unreadable is 0"""
    if ts is None or ts == "":
        return 0
    if isinstance(ts, bool):
        return 0
    if isinstance(ts, (int, float)):
        return int(ts)
    if isinstance(ts, str):
        try:
            ts = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        except ValueError:
            return 0
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return int(ts.timestamp() * 1000)
    return 0


def _field(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _raw_outcome(record):
    outcome = _field(record, "outcome")
    return outcome if outcome is not None else _field(record, "result")


def _record_rank(record, question_id):
    """
    Ordering key for records of one question

    Latest update wins. Equal timestamps fall back to the canonical record,
    then to the record key, so the winner never depends on input order.
    """
    key = str(_field(record, "id") or "")
    round_number = _field(record, "round_number")
    canonical = round_number is not None and key == question_status_key(
        round_number, question_id
    )
    return (to_millis(_field(record, "updated_at")), canonical, key)


def reconcile_statuses(records, question_ids=None):
    """
    Collapse raw status records into one authoritative entry per question

    Args:
        records: Iterable of status records (models or dicts) carrying
            question_id, status, outcome/result, updated_at and id
        question_ids: Optional collection limiting the questions returned

    Returns:
        dict: {question_id: {"status": str, "outcome": str or None}}
    """
    wanted = set(question_ids) if question_ids is not None else None
    winners = {}

    for record in records:
        question_id = _field(record, "question_id")
        status = _field(record, "status")

        if not question_id or not status:
            continue
        if not is_valid_question_id(question_id):
            continue
        if wanted is not None and question_id not in wanted:
            continue

        rank = _record_rank(record, question_id)
        current = winners.get(question_id)
        if current is None or rank > current[0]:
            winners[question_id] = (rank, record)

    return {
        question_id: {
            "status": normalize_status(_field(record, "status")),
            "outcome": normalize_outcome(_raw_outcome(record)),
        }
        for question_id, (_, record) in winners.items()
    }


def settled_outcome(entry):
    """
    Outcome that scoring should use for a reconciled entry

    Returns "yes" / "no" for a final question with a usable outcome, "void"
    when the question or its outcome is void, and None while undecided.
    """
    if not entry:
        return None
    status = entry.get("status")
    outcome = entry.get("outcome")
    if status not in SETTLED_STATUSES:
        return None
    if status == STATUS_VOID or outcome == OUTCOME_VOID:
        return OUTCOME_VOID
    if outcome in (OUTCOME_YES, OUTCOME_NO):
        return outcome
    return None
