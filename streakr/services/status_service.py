"""
Question status access

Request-time reads (fetch + reconcile) and the maintenance jobs that keep
status records on their canonical "{round}__{questionId}" keys.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from streakr import db
from streakr.models import Pick, QuestionStatus
from streakr.services import round_source
from streakr.utils.question_ids import (
    is_positional_question_id,
    is_valid_question_id,
    pick_key,
    positional_prefix,
    question_status_key,
)
from streakr.utils.status import (
    normalize_outcome,
    normalize_status,
    reconcile_statuses,
    to_millis,
)
from streakr.utils.store import fetch_in_chunks

logger = logging.getLogger(__name__)


def fetch_status_records(question_ids):
    """
    Raw status records for a set of question ids, fetched in chunks

    A store failure is logged and yields no records.
    """
    if not question_ids:
        return []
    try:
        return fetch_in_chunks(
            QuestionStatus.query, QuestionStatus.question_id, question_ids
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch question statuses: {e}")
        db.session.rollback()
        return []


def get_statuses(question_ids):
    """Authoritative {status, outcome} per question id (missing ids absent)"""
    return reconcile_statuses(fetch_status_records(question_ids), question_ids)


def get_status(question_id):
    return get_statuses([question_id]).get(question_id)


def get_round_statuses(structure):
    """
    Status of every question in a round structure

    Questions without a status record keep the status authored in the round
    source and have no outcome.
    """
    ids = round_source.question_ids(structure)
    statuses = get_statuses(ids)
    for game in (structure or {}).get("games", []):
        for question in game["questions"]:
            statuses.setdefault(
                question["id"], {"status": question["status"], "outcome": None}
            )
    return statuses


def _record_summary(record, target_id):
    return {
        "key": record.id,
        "round_number": record.round_number,
        "from_question_id": record.question_id,
        "to_question_id": target_id,
        "status": record.status,
        "outcome": normalize_outcome(record.raw_outcome),
    }


def _merge_onto_canonical(record, round_number, target_id):
    """
    Fold a stray record into the canonical record for target_id

    The stray record only overwrites the canonical one when it is at least as
    recent, and its timestamp is carried over, so the merge never changes
    what readers would reconcile to.

    Returns:
        bool: True if the canonical record was written
    """
    canonical = db.session.get(
        QuestionStatus, question_status_key(round_number, target_id)
    )
    if canonical is not None and to_millis(record.updated_at) < to_millis(
        canonical.updated_at
    ):
        return False

    fields = {
        "status": normalize_status(record.status),
        "outcome": normalize_outcome(record.raw_outcome),
        "result": None,
    }
    if record.override_mode:
        fields["override_mode"] = record.override_mode
    merged = QuestionStatus.upsert(round_number, target_id, **fields)
    if record.updated_at is not None:
        merged.updated_at = record.updated_at
    return True


def repair_question_status_keys(round_number=None, dry_run=False):
    """
    Re-key status records onto their canonical document keys

    A record needs repair when its question id fails the strict pattern but
    starts with a positional prefix, or when a valid id sits under a
    non-canonical key. Each is merged onto "{round}__{id}" and deleted.
    Running it twice changes nothing the second time.

    Returns:
        dict: scanned / bad / migrated / deleted counts plus the affected records
    """
    query = QuestionStatus.query
    if round_number is not None:
        query = query.filter(QuestionStatus.round_number == round_number)
    records = query.all()

    bad = []
    for record in records:
        raw_id = record.question_id or ""
        if record.round_number is None or not raw_id.strip():
            continue

        cleaned = raw_id.strip()
        if is_valid_question_id(cleaned):
            target_id = cleaned
            if (
                target_id == raw_id
                and record.id == question_status_key(record.round_number, target_id)
            ):
                continue
        else:
            target_id = positional_prefix(cleaned)
            if not target_id:
                continue

        bad.append((record, target_id))

    bad.sort(key=lambda item: (to_millis(item[0].updated_at), item[0].id))

    result = {
        "scanned": len(records),
        "bad": len(bad),
        "migrated": 0,
        "deleted": 0,
        "dry_run": dry_run,
        "records": [_record_summary(record, target) for record, target in bad],
    }
    if dry_run or not bad:
        return result

    try:
        for record, target_id in bad:
            if record.id == question_status_key(record.round_number, target_id):
                record.question_id = target_id
                result["migrated"] += 1
                continue
            if _merge_onto_canonical(record, record.round_number, target_id):
                result["migrated"] += 1
            db.session.delete(record)
            db.session.flush()
            result["deleted"] += 1
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Question status key repair failed")
        raise

    logger.info(
        f"Repaired question status keys: scanned={result['scanned']} "
        f"bad={result['bad']} migrated={result['migrated']} deleted={result['deleted']}"
    )
    return result


def migrate_legacy_question_ids(season, round_number, dry_run=False):
    """
    Move picks and status records from content-hash ids to positional ids

    The hash ids are recomputed from the round source; records whose id is
    not a known hash id of the round are left alone.

    Returns:
        dict: counts of picks and statuses moved plus ids that were unknown
    """
    mapping = round_source.legacy_question_id_map(season, round_number)
    result = {
        "round_number": round_number,
        "known_ids": len(mapping),
        "picks_moved": 0,
        "picks_dropped": 0,
        "statuses_moved": 0,
        "unknown_ids": [],
        "dry_run": dry_run,
    }
    if not mapping:
        return result

    legacy_picks = Pick.query.filter(Pick.round_number == round_number).all()
    legacy_statuses = QuestionStatus.query.filter(
        QuestionStatus.round_number == round_number
    ).all()

    unknown = set()
    try:
        for pick in legacy_picks:
            if is_positional_question_id(pick.question_id):
                continue
            target_id = mapping.get(pick.question_id)
            if target_id is None:
                unknown.add(pick.question_id)
                continue

            existing = db.session.get(Pick, pick_key(pick.user_id, target_id))
            if existing is not None:
                # A positional pick made later wins over the legacy one
                if not dry_run:
                    db.session.delete(pick)
                result["picks_dropped"] += 1
                continue

            if not dry_run:
                replacement = Pick(
                    id=pick_key(pick.user_id, target_id),
                    user_id=pick.user_id,
                    question_id=target_id,
                    round_number=pick.round_number,
                    game_id=pick.game_id,
                    pick=pick.pick,
                    created_at=pick.created_at,
                    updated_at=pick.updated_at,
                )
                db.session.delete(pick)
                db.session.flush()
                db.session.add(replacement)
            result["picks_moved"] += 1

        for record in legacy_statuses:
            if is_positional_question_id(record.question_id):
                continue
            target_id = mapping.get(record.question_id)
            if target_id is None:
                unknown.add(record.question_id)
                continue
            if dry_run:
                result["statuses_moved"] += 1
                continue
            if record.id == question_status_key(round_number, target_id):
                record.question_id = target_id
            else:
                _merge_onto_canonical(record, round_number, target_id)
                db.session.delete(record)
                db.session.flush()
            result["statuses_moved"] += 1

        if not dry_run:
            db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Legacy question id migration failed for round {round_number}")
        raise

    result["unknown_ids"] = sorted(str(question_id) for question_id in unknown)
    logger.info(
        f"Round {round_number} id migration: {result['picks_moved']} picks, "
        f"{result['statuses_moved']} statuses moved, {len(unknown)} unknown ids"
    )
    return result
