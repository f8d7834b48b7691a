"""
Ranking router — aggregates, leaderboard, improvements.

GET /aggregates/{window_kind}          — per-entity totals per window
GET /aggregates/{window_kind}/maxima   — best single submission per window
GET /leaderboard                       — ranked weekly / monthly / all-time board
GET /improvements                      — population-wide records and alerts
GET /improvements/{entity_id}          — one entity vs its own history

Every request loads a fresh snapshot and recomputes; nothing is cached.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sadhana.core.config import settings
from sadhana.db.base import get_db
from sadhana.schemas.common import ERROR_RESPONSES
from sadhana.schemas.ranking import (
    AggregateWindowOut,
    AggregationResponse,
    EntityImprovementResponse,
    ImprovementEventOut,
    ImprovementResultOut,
    LeaderboardEntryOut,
    LeaderboardResponse,
    MaximaResponse,
    PopulationReportResponse,
    TrendPointOut,
    WindowHighOut,
)
from sadhana.services.aggregation import (
    AggregateWindow,
    WindowHigh,
    WindowKind,
    aggregate,
    all_of,
    for_entity,
    name_contains,
    window_maxima,
)
from sadhana.services.improvement import (
    ImprovementEvent,
    ImprovementResult,
    detect,
    is_all_time_record,
    scan_population,
)
from sadhana.services.leaderboard import RankBy, build_entries, rank, top_n
from sadhana.services.stats import TrendPoint, score_trend
from sadhana.services.submissions import get_entity, load_records

router = APIRouter(tags=["ranking"])


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


# ---------------------------------------------------------------------------
# Serialization helpers (shared with the stats router)
# ---------------------------------------------------------------------------

def window_to_response(w: AggregateWindow) -> AggregateWindowOut:
    return AggregateWindowOut(
        entity_id=w.entity_id,
        entity_name=w.entity_name,
        window_kind=w.window_kind.value,
        window_key=w.window_key,
        total_score=w.total_score,
        submission_count=w.submission_count,
    )


def _high_to_response(h: WindowHigh) -> WindowHighOut:
    return WindowHighOut(
        window_key=h.window_key,
        entity_id=h.entity_id,
        entity_name=h.entity_name,
        score=h.score,
        date=str(h.date),
    )


def improvement_to_response(r: ImprovementResult) -> ImprovementResultOut:
    return ImprovementResultOut(
        history_length=r.history_length,
        latest_score=r.latest_score,
        previous_best=r.previous_best,
        improvement=r.improvement,
        percentage_increase=round(r.percentage_increase, 2),
        is_personal_best=r.is_personal_best,
        previous_average=round(r.previous_average, 2),
        average_improvement=round(r.average_improvement, 2),
        average_percentage=round(r.average_percentage, 2),
        is_significant=r.is_significant,
    )


def _event_to_response(e: ImprovementEvent) -> ImprovementEventOut:
    return ImprovementEventOut(
        entity_id=e.entity_id,
        entity_name=e.entity_name,
        kind=e.kind.value,
        latest_score=e.latest_score,
        baseline=round(e.baseline, 2),
        absolute_delta=round(e.absolute_delta, 2),
        percentage_delta=round(e.percentage_delta, 2),
        as_of_date=str(e.as_of_date),
    )


def trend_to_response(p: TrendPoint) -> TrendPointOut:
    return TrendPointOut(date=str(p.date), score=p.score, delta=p.delta)


# ---------------------------------------------------------------------------
# GET /aggregates/{window_kind}
# ---------------------------------------------------------------------------

@router.get(
    "/aggregates/{window_kind}",
    response_model=AggregationResponse,
    summary="Per-entity score totals per window",
    responses={422: ERROR_RESPONSES[422]},
)
def get_aggregates(
    window_kind: WindowKind,
    key: Optional[str] = Query(
        default=None,
        description='Single window key, e.g. "2024-W10" or "2024-03".',
        examples=["2024-W10"],
    ),
    entity_id: Optional[int] = Query(default=None, ge=1),
    name: Optional[str] = Query(default=None, max_length=128),
    db: Session = Depends(get_db),
):
    """Sum `total_score` and count submissions per (window, entity)."""
    predicate = all_of(
        for_entity(entity_id) if entity_id is not None else None,
        name_contains(name) if name else None,
    )
    result = aggregate(load_records(db), window_kind, window_selector=key, predicate=predicate)
    return AggregationResponse(
        window_kind=result.window_kind.value,
        excluded=result.excluded,
        windows=[window_to_response(w) for w in result.windows],
    )


@router.get(
    "/aggregates/{window_kind}/maxima",
    response_model=MaximaResponse,
    summary="Best single submission per window",
)
def get_maxima(
    window_kind: WindowKind,
    key: Optional[str] = Query(default=None, description="Single window key."),
    db: Session = Depends(get_db),
):
    result = window_maxima(load_records(db), window_kind, window_selector=key)
    return MaximaResponse(
        window_kind=result.window_kind.value,
        excluded=result.excluded,
        highs=[_high_to_response(h) for h in result.highs],
    )


# ---------------------------------------------------------------------------
# GET /leaderboard
# ---------------------------------------------------------------------------

@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Ranked leaderboard",
)
def get_leaderboard(
    by: RankBy = Query(default=RankBy.weekly, description="Score to rank by."),
    limit: Optional[int] = Query(
        default=None, ge=1, le=1000,
        description="Top-N cut. Defaults to LEADERBOARD_DEFAULT_LIMIT.",
    ),
    as_of: Optional[date] = Query(
        default=None, description="Reference day for week/month windows. Defaults to today (UTC)."
    ),
    db: Session = Depends(get_db),
):
    """
    Descending by the selected score; equal scores are ordered by entity name.
    """
    board = build_entries(load_records(db), as_of or _today())
    ranked = rank(board.entries, by)
    shown = top_n(ranked, limit or settings.LEADERBOARD_DEFAULT_LIMIT)
    return LeaderboardResponse(
        as_of=str(board.as_of),
        week_key=board.week_key,
        month_key=board.month_key,
        ranked_by=by.value,
        total=len(ranked),
        excluded=board.excluded,
        entries=[
            LeaderboardEntryOut(
                rank=i,
                entity_id=e.entity_id,
                entity_name=e.entity_name,
                weekly_score=e.weekly_score,
                monthly_score=e.monthly_score,
                all_time_score=e.all_time_score,
            )
            for i, e in enumerate(shown, start=1)
        ],
    )


# ---------------------------------------------------------------------------
# GET /improvements
# ---------------------------------------------------------------------------

@router.get(
    "/improvements",
    response_model=PopulationReportResponse,
    summary="All-time high, new records, personal bests and significant improvements",
)
def get_improvements(db: Session = Depends(get_db)):
    report = scan_population(
        load_records(db),
        min_history=settings.SIGNIFICANT_IMPROVEMENT_MIN_HISTORY,
        threshold_pct=settings.SIGNIFICANT_IMPROVEMENT_PCT,
    )
    return PopulationReportResponse(
        all_time_high=_high_to_response(report.all_time_high) if report.all_time_high else None,
        new_all_time_record=report.new_all_time_record,
        significant_improvements=[_event_to_response(e) for e in report.significant_improvements],
        personal_bests=[_event_to_response(e) for e in report.personal_bests],
        excluded=report.excluded,
    )


@router.get(
    "/improvements/{entity_id}",
    response_model=EntityImprovementResponse,
    summary="One entity's latest score vs its history",
    responses={404: ERROR_RESPONSES[404]},
)
def get_entity_improvement(entity_id: int, db: Session = Depends(get_db)):
    """
    `percentage_increase` compares with the previous best;
    `average_percentage` compares with the average of earlier submissions and
    drives `is_significant`.
    """
    get_entity(db, entity_id)
    population = load_records(db)
    # load_records() is newest first.
    mine = [r for r in population if for_entity(entity_id)(r)]
    result = detect(
        [r.total_score for r in mine],
        min_history=settings.SIGNIFICANT_IMPROVEMENT_MIN_HISTORY,
        threshold_pct=settings.SIGNIFICANT_IMPROVEMENT_PCT,
    )
    record = False
    if mine:
        latest_id = mine[0].submission_id
        record = is_all_time_record(
            mine[0].total_score,
            (r.total_score for r in population if r.submission_id != latest_id),
        )
    return EntityImprovementResponse(
        entity_id=entity_id,
        improvement=improvement_to_response(result),
        is_all_time_record=record,
        trend=[trend_to_response(p) for p in score_trend(mine, entity_id, settings.SCORE_TREND_LENGTH)],
    )
