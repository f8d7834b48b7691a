"""
Stats router — summaries for dashboards.

GET /stats/overview
GET /stats/monthly-averages
GET /stats/weeks/{year}/{week}
GET /stats/months/{year}/{month}
GET /stats/entities/{entity_id}/progress
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from sadhana.core.config import settings
from sadhana.db.base import get_db
from sadhana.routers.ranking import improvement_to_response, trend_to_response, window_to_response
from sadhana.schemas.common import ERROR_RESPONSES
from sadhana.schemas.stats import (
    LabelCountOut,
    MonthlyAverageOut,
    OverviewResponse,
    WeeklyProgressResponse,
    WindowSummaryResponse,
)
from sadhana.services.stats import (
    WindowSummary,
    monthly_averages,
    monthly_summary,
    overview,
    weekly_progress,
    weekly_summary,
)
from sadhana.services.submissions import count_entities, get_entity, load_records
from sadhana.services.weeks import iso_year, week_number

router = APIRouter(prefix="/stats", tags=["stats"])


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def _summary_to_response(s: WindowSummary) -> WindowSummaryResponse:
    return WindowSummaryResponse(
        window_kind=s.window_kind.value,
        window_key=s.window_key,
        start=str(s.start),
        end=str(s.end),
        total_score=s.total_score,
        submission_count=s.submission_count,
        top=[window_to_response(w) for w in s.top],
        leader=window_to_response(s.leader) if s.leader else None,
        favourite_subject=(
            LabelCountOut(label=s.favourite_subject.label, count=s.favourite_subject.count)
            if s.favourite_subject else None
        ),
        previous_total=s.previous_total,
        trend_pct=round(s.trend_pct, 2),
        needs_attention=[window_to_response(w) for w in s.needs_attention],
        excluded=s.excluded,
    )


@router.get("/overview", response_model=OverviewResponse, summary="Headline numbers")
def get_overview(
    as_of: Optional[date] = Query(default=None, description="Defaults to today (UTC)."),
    db: Session = Depends(get_db),
):
    """
    Submissions in the current ISO week, registered entities, and submissions
    scoring above zero but under ATTENTION_THRESHOLD.
    """
    result = overview(
        load_records(db),
        total_entities=count_entities(db),
        as_of=as_of or _today(),
        attention_threshold=settings.ATTENTION_THRESHOLD,
    )
    return OverviewResponse(
        as_of=str(result.as_of),
        week_key=result.week_key,
        submissions_this_week=result.submissions_this_week,
        total_entities=result.total_entities,
        submissions_needing_attention=result.submissions_needing_attention,
    )


@router.get(
    "/monthly-averages",
    response_model=list[MonthlyAverageOut],
    summary="Average submission score per month",
)
def get_monthly_averages(db: Session = Depends(get_db)):
    return [
        MonthlyAverageOut(month_key=m.month_key, average=m.average, submission_count=m.submission_count)
        for m in monthly_averages(load_records(db))
    ]


@router.get(
    "/weeks/{year}/{week}",
    response_model=WindowSummaryResponse,
    summary="ISO week summary",
    responses={422: ERROR_RESPONSES[422]},
)
def get_week(
    year: int = Path(ge=1, le=9999),
    week: int = Path(ge=1, le=53),
    top: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Top entities, entity of the week, favourite subject and trend vs the previous week."""
    return _summary_to_response(weekly_summary(load_records(db), year, week, top=top))


@router.get(
    "/months/{year}/{month}",
    response_model=WindowSummaryResponse,
    summary="Calendar month summary",
)
def get_month(
    year: int = Path(ge=1, le=9999),
    month: int = Path(ge=1, le=12),
    top: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return _summary_to_response(monthly_summary(
        load_records(db),
        year,
        month,
        top=top,
        attention_threshold=settings.ATTENTION_THRESHOLD,
    ))


@router.get(
    "/entities/{entity_id}/progress",
    response_model=WeeklyProgressResponse,
    summary="One entity's progress within an ISO week",
    responses={404: ERROR_RESPONSES[404], 422: ERROR_RESPONSES[422]},
)
def get_progress(
    entity_id: int,
    year: Optional[int] = Query(default=None, ge=1, le=9999, description="ISO year."),
    week: Optional[int] = Query(default=None, ge=1, le=53, description="ISO week."),
    db: Session = Depends(get_db),
):
    """Defaults to the current ISO week."""
    get_entity(db, entity_id)
    today = _today()
    progress = weekly_progress(
        load_records(db, entity_id=entity_id),
        entity_id,
        year if year is not None else iso_year(today),
        week if week is not None else week_number(today),
        min_history=settings.SIGNIFICANT_IMPROVEMENT_MIN_HISTORY,
        threshold_pct=settings.SIGNIFICANT_IMPROVEMENT_PCT,
    )
    return WeeklyProgressResponse(
        entity_id=progress.entity_id,
        week_key=progress.week_key,
        start=str(progress.start),
        end=str(progress.end),
        week_total=progress.week_total,
        days=[trend_to_response(p) for p in progress.days],
        improvement=improvement_to_response(progress.improvement),
    )
