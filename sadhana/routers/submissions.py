"""
Submissions router.

POST   /submissions            — score + persist a daily report
POST   /submissions/score      — score preview, nothing stored
GET    /submissions            — list (filters + pagination, newest first)
GET    /submissions/{id}
DELETE /submissions/{id}

There is no update route: scores are frozen at creation.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from sadhana.db.base import get_db
from sadhana.models.submission import Submission
from sadhana.schemas.common import ERROR_RESPONSES
from sadhana.schemas.submission import (
    ActivityIn,
    ScoreBreakdownResponse,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionResponse,
)
from sadhana.services.scoring import compute_score
from sadhana.services.submissions import (
    SubmissionInput,
    create_submission,
    delete_submission,
    get_submission,
    list_submissions,
)

router = APIRouter(prefix="/submissions", tags=["submissions"])


# ---------------------------------------------------------------------------
# Serialization helper
# ---------------------------------------------------------------------------

def _submission_to_response(s: Submission) -> SubmissionResponse:
    return SubmissionResponse(
        id=s.id,
        date=str(s.date),
        entity_id=s.entity_id,
        entity_name=s.entity_name,
        early_session=s.early_session,
        before_cutoff=s.before_cutoff,
        mid_morning=s.mid_morning,
        late_morning=s.late_morning,
        reading_minutes=s.reading_minutes,
        reading_subject=s.reading_subject,
        listening_minutes=s.listening_minutes,
        speaker=s.speaker,
        service_minutes=s.service_minutes,
        service_name=s.service_name,
        total_rounds=s.total_rounds,
        score_a=s.score_a,
        score_b=s.score_b,
        score_c=s.score_c,
        score_d=s.score_d,
        total_score=s.total_score,
        created_at=s.created_at.isoformat() if s.created_at else "",
    )


# ---------------------------------------------------------------------------
# POST /submissions
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a daily report",
    responses={404: ERROR_RESPONSES[404], 422: ERROR_RESPONSES[422]},
)
def submit(body: SubmissionCreate, db: Session = Depends(get_db)):
    """
    Score the day's activity and store it.

    ### Scoring
    | Part | Rule |
    |---|---|
    | `score_a` | rounds × 2.5 / 2.0 / 1.5 / 1.0 by bracket, capped at 25, rounded half-up |
    | `score_b` | reading minutes: 0 → 0, ≤15 → 7, ≤30 → 15, ≤45 → 20, more → 30 |
    | `score_c` | listening minutes: same bands as reading |
    | `score_d` | service minutes: 0 → 0, ≤15 → 5, ≤30 → 8, ≤45 → 12, more → 15 |
    """
    submission = create_submission(db, SubmissionInput(**body.model_dump()))
    return _submission_to_response(submission)


@router.post(
    "/score",
    response_model=ScoreBreakdownResponse,
    summary="Preview the score of a day's activity",
)
def preview_score(body: ActivityIn):
    breakdown = compute_score(
        body.early_session,
        body.before_cutoff,
        body.mid_morning,
        body.late_morning,
        body.reading_minutes,
        body.listening_minutes,
        body.service_minutes,
    )
    return ScoreBreakdownResponse(**breakdown.as_dict())


# ---------------------------------------------------------------------------
# GET /submissions
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=SubmissionListResponse,
    summary="List submissions (newest first)",
)
def get_submissions(
    entity_id: Optional[int] = Query(default=None, ge=1, description="Only this entity."),
    name: Optional[str] = Query(
        default=None, max_length=128, description="Case-insensitive entity name fragment."
    ),
    start: Optional[date] = Query(default=None, description="Earliest date (inclusive)."),
    end: Optional[date] = Query(default=None, description="Latest date (inclusive)."),
    limit: int = Query(default=50, ge=1, le=500, description="Page size."),
    offset: int = Query(default=0, ge=0, description="Skip N items."),
    db: Session = Depends(get_db),
):
    total, items = list_submissions(
        db, entity_id=entity_id, name=name, start=start, end=end, limit=limit, offset=offset
    )
    return SubmissionListResponse(
        total=total,
        items=[_submission_to_response(s) for s in items],
    )


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Get one submission",
    responses={404: ERROR_RESPONSES[404]},
)
def get_one(submission_id: int, db: Session = Depends(get_db)):
    return _submission_to_response(get_submission(db, submission_id))


@router.delete(
    "/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a submission",
    responses={404: ERROR_RESPONSES[404]},
)
def remove(submission_id: int, db: Session = Depends(get_db)):
    delete_submission(db, submission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
