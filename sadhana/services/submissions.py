"""
Submission store: persists scored submissions and entities, and hands the
computation core read-only snapshots.

Public API
----------
create_entity(db, name)                          -> Entity
list_entities(db)                                -> list[Entity]
rename_entity(db, entity_id, name)               -> Entity
delete_entity(db, entity_id)                     -> int   (submissions removed)
create_submission(db, data)                      -> Submission
get_submission(db, submission_id)                -> Submission
list_submissions(db, ...)                        -> (total, list[Submission])
delete_submission(db, submission_id)             -> None
load_records(db, entity_id=None)                 -> list[SubmissionRecord]

Scores are computed once in create_submission() and never recomputed;
there is no update path for a submission.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from sadhana.core.errors import (
    EntityNameTakenError,
    EntityNotFoundError,
    SubmissionNotFoundError,
)
from sadhana.core.logging import get_logger
from sadhana.models.entity import Entity
from sadhana.models.submission import Submission
from sadhana.services.aggregation import SubmissionRecord
from sadhana.services.scoring import compute_score

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# DTOs
# ---------------------------------------------------------------------------

@dataclass
class SubmissionInput:
    """Lightweight DTO so the service layer stays schema-agnostic."""
    date: date
    entity_id: int
    early_session: int = 0
    before_cutoff: int = 0
    mid_morning: int = 0
    late_morning: int = 0
    reading_minutes: int = 0
    reading_subject: Optional[str] = None
    listening_minutes: int = 0
    speaker: Optional[str] = None
    service_minutes: int = 0
    service_name: Optional[str] = None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

def get_entity(db: Session, entity_id: int) -> Entity:
    entity = db.get(Entity, entity_id)
    if entity is None:
        raise EntityNotFoundError(entity_id)
    return entity


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    q = select(Entity.id).where(func.lower(Entity.name) == name.lower())
    if exclude_id is not None:
        q = q.where(Entity.id != exclude_id)
    return db.execute(q).first() is not None


def create_entity(db: Session, name: str) -> Entity:
    if _name_taken(db, name):
        raise EntityNameTakenError(name)
    entity = Entity(name=name)
    db.add(entity)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EntityNameTakenError(name) from None
    db.refresh(entity)
    logger.info("entity_created", entity_id=entity.id)
    return entity


def list_entities(db: Session) -> list[Entity]:
    return list(db.scalars(select(Entity).order_by(Entity.name, Entity.id)))


def count_entities(db: Session) -> int:
    return db.scalar(select(func.count(Entity.id))) or 0


def rename_entity(db: Session, entity_id: int, name: str) -> Entity:
    entity = get_entity(db, entity_id)
    if _name_taken(db, name, exclude_id=entity_id):
        raise EntityNameTakenError(name)
    entity.name = name
    db.commit()
    db.refresh(entity)
    logger.info("entity_renamed", entity_id=entity_id)
    return entity


def delete_entity(db: Session, entity_id: int) -> int:
    """Delete an entity together with all of its submissions."""
    entity = get_entity(db, entity_id)
    removed = db.scalar(
        select(func.count(Submission.id)).where(Submission.entity_id == entity_id)
    ) or 0
    db.delete(entity)
    db.commit()
    logger.info("entity_deleted", entity_id=entity_id, submissions_removed=removed)
    return removed


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

def create_submission(db: Session, data: SubmissionInput) -> Submission:
    """Score the raw activity and persist it with the frozen breakdown."""
    get_entity(db, data.entity_id)

    breakdown = compute_score(
        data.early_session,
        data.before_cutoff,
        data.mid_morning,
        data.late_morning,
        data.reading_minutes,
        data.listening_minutes,
        data.service_minutes,
    )

    submission = Submission(
        date=data.date,
        entity_id=data.entity_id,
        early_session=data.early_session,
        before_cutoff=data.before_cutoff,
        mid_morning=data.mid_morning,
        late_morning=data.late_morning,
        reading_minutes=data.reading_minutes,
        reading_subject=data.reading_subject,
        listening_minutes=data.listening_minutes,
        speaker=data.speaker,
        service_minutes=data.service_minutes,
        service_name=data.service_name,
        **breakdown.as_dict(),
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    logger.info(
        "submission_created",
        submission_id=submission.id,
        entity_id=submission.entity_id,
        day=str(submission.date),
        total_score=submission.total_score,
    )
    return submission


def get_submission(db: Session, submission_id: int) -> Submission:
    submission = db.get(Submission, submission_id, options=[joinedload(Submission.entity)])
    if submission is None:
        raise SubmissionNotFoundError(submission_id)
    return submission


def list_submissions(
    db: Session,
    entity_id: Optional[int] = None,
    name: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list[Submission]]:
    """Return (total, page) ordered by date desc, newest row first."""
    q = select(Submission).join(Submission.entity)
    if entity_id is not None:
        q = q.where(Submission.entity_id == entity_id)
    if name:
        q = q.where(Entity.name.ilike(f"%{name}%"))
    if start is not None:
        q = q.where(Submission.date >= start)
    if end is not None:
        q = q.where(Submission.date <= end)

    total = db.scalar(select(func.count()).select_from(q.subquery())) or 0
    items = db.scalars(
        q.options(joinedload(Submission.entity))
        .order_by(Submission.date.desc(), Submission.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()
    return total, list(items)


def delete_submission(db: Session, submission_id: int) -> None:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise SubmissionNotFoundError(submission_id)
    db.delete(submission)
    db.commit()
    logger.info("submission_deleted", submission_id=submission_id)


# ---------------------------------------------------------------------------
# Snapshot for the computation core
# ---------------------------------------------------------------------------

def to_record(submission: Submission) -> SubmissionRecord:
    return SubmissionRecord(
        date=submission.date,
        entity_id=submission.entity_id,
        entity_name=submission.entity_name,
        total_score=submission.total_score,
        submission_id=submission.id,
        reading_subject=submission.reading_subject,
        speaker=submission.speaker,
        service_name=submission.service_name,
    )


def load_records(db: Session, entity_id: Optional[int] = None) -> list[SubmissionRecord]:
    """Fresh snapshot of every stored submission (optionally one entity's)."""
    q = select(Submission).options(joinedload(Submission.entity))
    if entity_id is not None:
        q = q.where(Submission.entity_id == entity_id)
    q = q.order_by(Submission.date.desc(), Submission.id.desc())
    return [to_record(s) for s in db.scalars(q).all()]
