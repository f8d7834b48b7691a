"""
Summary statistics over a submission snapshot.

Public API
----------
score_trend(records, entity_id, length)                    -> list[TrendPoint]
favourite_label(records, attr)                             -> LabelCount | None
trend_percentage(current, previous)                        -> float
weekly_summary(records, year, week, top)                   -> WindowSummary
monthly_summary(records, year, month, top, attention)      -> WindowSummary
monthly_averages(records)                                  -> list[MonthlyAverage]
overview(records, total_entities, as_of, attention)        -> Overview
weekly_progress(records, entity_id, year, week, ...)       -> WeeklyProgress
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from sadhana.services.aggregation import (
    AggregateWindow,
    SubmissionRecord,
    WindowKind,
    aggregate,
    between,
    for_entity,
    resolve_dates,
    window_bounds,
    window_key_for,
)
from sadhana.services.improvement import (
    DEFAULT_MIN_HISTORY,
    DEFAULT_THRESHOLD_PCT,
    ImprovementResult,
    detect,
)
from sadhana.services.leaderboard import rank_windows, top_n
from sadhana.services.weeks import week_date_range


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrendPoint:
    date: date
    score: int
    delta: int          # vs the previous (older) point; 0 for the oldest


@dataclass(frozen=True)
class LabelCount:
    label: str
    count: int


@dataclass
class WindowSummary:
    window_kind: WindowKind
    window_key: str
    start: date
    end: date
    total_score: int
    submission_count: int
    top: list[AggregateWindow]
    leader: Optional[AggregateWindow]
    favourite_subject: Optional[LabelCount]
    previous_total: int = 0
    trend_pct: float = 0.0
    needs_attention: list[AggregateWindow] = field(default_factory=list)
    excluded: int = 0


@dataclass(frozen=True)
class MonthlyAverage:
    month_key: str
    average: int
    submission_count: int


@dataclass(frozen=True)
class Overview:
    as_of: date
    week_key: str
    submissions_this_week: int
    total_entities: int
    submissions_needing_attention: int


@dataclass
class WeeklyProgress:
    entity_id: int
    week_key: str
    start: date
    end: date
    week_total: int
    days: list[TrendPoint]
    improvement: ImprovementResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _newest_first(
    records: Iterable[SubmissionRecord],
) -> tuple[list[tuple[SubmissionRecord, date]], int]:
    resolved, excluded = resolve_dates(records)
    resolved.sort(key=lambda pair: (pair[1], pair[0].submission_id or 0), reverse=True)
    return resolved, excluded


def _trend(rows: list[tuple[SubmissionRecord, date]]) -> list[TrendPoint]:
    """rows newest first → points oldest first with day-over-day deltas."""
    points = []
    for i, (record, day) in enumerate(rows):
        older = rows[i + 1][0].total_score if i + 1 < len(rows) else record.total_score
        points.append(TrendPoint(date=day, score=record.total_score, delta=record.total_score - older))
    points.reverse()
    return points


def trend_percentage(current: int, previous: int) -> float:
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def score_trend(
    records: Iterable[SubmissionRecord],
    entity_id: int,
    length: int = 7,
) -> list[TrendPoint]:
    """Last `length` submissions of one entity, oldest first."""
    rows, _ = _newest_first(r for r in records if r.entity_id == entity_id)
    return _trend(rows[:max(length, 0)])


def favourite_label(
    records: Iterable[SubmissionRecord],
    attr: str = "reading_subject",
) -> Optional[LabelCount]:
    """Most frequent non-empty label; ties go to the alphabetically first."""
    counts = Counter(
        label.strip()
        for label in (getattr(r, attr) for r in records)
        if label and label.strip()
    )
    if not counts:
        return None
    label, count = min(counts.items(), key=lambda item: (-item[1], item[0]))
    return LabelCount(label=label, count=count)


def _window_summary(
    snapshot: list[SubmissionRecord],
    kind: WindowKind,
    key: str,
    top: int,
) -> WindowSummary:
    start, end = window_bounds(kind, key)
    result = aggregate(snapshot, kind, window_selector=key)
    ranked = rank_windows(result.windows)
    in_window = [r for r in snapshot if between(start, end)(r)]
    return WindowSummary(
        window_kind=kind,
        window_key=key,
        start=start,
        end=end,
        total_score=sum(w.total_score for w in result.windows),
        submission_count=sum(w.submission_count for w in result.windows),
        top=top_n(ranked, top),
        leader=ranked[0] if ranked else None,
        favourite_subject=favourite_label(in_window, "reading_subject"),
        excluded=result.excluded,
    )


def weekly_summary(
    records: Iterable[SubmissionRecord],
    year: int,
    week: int,
    top: int = 10,
) -> WindowSummary:
    """Totals, top entities and favourite subject for one ISO week, with the
    percentage change against the preceding week."""
    snapshot = list(records)
    monday, _ = week_date_range(week, year)
    key = window_key_for(monday, WindowKind.week)
    summary = _window_summary(snapshot, WindowKind.week, key, top)

    previous_key = window_key_for(monday - timedelta(days=7), WindowKind.week)
    previous = aggregate(snapshot, WindowKind.week, window_selector=previous_key)
    summary.previous_total = sum(w.total_score for w in previous.windows)
    summary.trend_pct = trend_percentage(summary.total_score, summary.previous_total)
    return summary


def monthly_summary(
    records: Iterable[SubmissionRecord],
    year: int,
    month: int,
    top: int = 10,
    attention_threshold: int = 50,
) -> WindowSummary:
    """Totals, top entities, favourite subject and entities whose monthly
    total is positive but under `attention_threshold`."""
    snapshot = list(records)
    key = f"{year:04d}-{month:02d}"
    summary = _window_summary(snapshot, WindowKind.month, key, top)
    summary.needs_attention = [
        w for w in aggregate(snapshot, WindowKind.month, window_selector=key).windows
        if 0 < w.total_score < attention_threshold
    ]
    return summary


def monthly_averages(records: Iterable[SubmissionRecord]) -> list[MonthlyAverage]:
    """Average submission score per calendar month, chronological."""
    totals: dict[str, list[int]] = {}
    resolved, _ = resolve_dates(records)
    for record, day in resolved:
        slot = totals.setdefault(window_key_for(day, WindowKind.month), [0, 0])
        slot[0] += record.total_score
        slot[1] += 1
    return [
        MonthlyAverage(
            month_key=key,
            average=int((Decimal(total) / Decimal(count)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
            submission_count=count,
        )
        for key, (total, count) in sorted(totals.items())
    ]


def overview(
    records: Iterable[SubmissionRecord],
    total_entities: int,
    as_of: date,
    attention_threshold: int = 50,
) -> Overview:
    resolved, _ = resolve_dates(records)
    week = window_key_for(as_of, WindowKind.week)
    return Overview(
        as_of=as_of,
        week_key=week,
        submissions_this_week=sum(
            1 for _, day in resolved if window_key_for(day, WindowKind.week) == week
        ),
        total_entities=total_entities,
        submissions_needing_attention=sum(
            1 for record, _ in resolved if 0 < record.total_score < attention_threshold
        ),
    )


def weekly_progress(
    records: Iterable[SubmissionRecord],
    entity_id: int,
    year: int,
    week: int,
    min_history: int = DEFAULT_MIN_HISTORY,
    threshold_pct: float = DEFAULT_THRESHOLD_PCT,
) -> WeeklyProgress:
    """One entity's ISO week: daily scores, week total, and the latest day
    compared against the earlier days of the same week."""
    start, end = week_date_range(week, year)
    selected = [r for r in records if for_entity(entity_id)(r) and between(start, end)(r)]
    rows, _ = _newest_first(selected)
    return WeeklyProgress(
        entity_id=entity_id,
        week_key=window_key_for(start, WindowKind.week),
        start=start,
        end=end,
        week_total=sum(record.total_score for record, _ in rows),
        days=_trend(rows),
        improvement=detect([record.total_score for record, _ in rows], min_history, threshold_pct),
    )
