"""
Leaderboard ranker.

Entries carry three window scores for the same reference date: the ISO
week containing it, the calendar month containing it, and all-time.
Sorting is descending by the selected score, ties broken by ascending
entity name then entity id, so the order never depends on input order.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence, TypeVar

from sadhana.core.errors import InvalidInputError
from sadhana.services.aggregation import (
    AggregateWindow,
    AggregationResult,
    SubmissionRecord,
    WindowKind,
    aggregate,
    window_key_for,
)


class RankBy(str, enum.Enum):
    weekly = "weekly"
    monthly = "monthly"
    all_time = "all_time"


@dataclass(frozen=True)
class LeaderboardEntry:
    entity_id: int
    entity_name: str
    weekly_score: int
    monthly_score: int
    all_time_score: int

    def score_for(self, by: RankBy | str) -> int:
        return getattr(self, f"{RankBy(by).value}_score")


@dataclass
class Leaderboard:
    as_of: date
    week_key: str
    month_key: str
    entries: list[LeaderboardEntry]
    excluded: int = 0


T = TypeVar("T")


def build_entries(records: Iterable[SubmissionRecord], as_of: date) -> Leaderboard:
    """
    Combine the week, month and all-time windows around `as_of` into one
    entry per entity. Entities without submissions in a window score 0 there.
    """
    snapshot = list(records)
    week = window_key_for(as_of, WindowKind.week)
    month = window_key_for(as_of, WindowKind.month)

    weekly = aggregate(snapshot, WindowKind.week, window_selector=week)
    monthly = aggregate(snapshot, WindowKind.month, window_selector=month)
    all_time = aggregate(snapshot, WindowKind.all_time)

    return Leaderboard(
        as_of=as_of,
        week_key=week,
        month_key=month,
        entries=merge_windows(weekly, monthly, all_time),
        excluded=all_time.excluded,
    )


def merge_windows(
    weekly: AggregationResult,
    monthly: AggregationResult,
    all_time: AggregationResult,
) -> list[LeaderboardEntry]:
    week_by_id = weekly.by_entity()
    month_by_id = monthly.by_entity()
    entries = []
    # Every scored entity has an all-time window; week/month are subsets.
    for window in all_time.windows:
        w = week_by_id.get(window.entity_id)
        m = month_by_id.get(window.entity_id)
        entries.append(LeaderboardEntry(
            entity_id=window.entity_id,
            entity_name=window.entity_name,
            weekly_score=w.total_score if w else 0,
            monthly_score=m.total_score if m else 0,
            all_time_score=window.total_score,
        ))
    return entries


def rank(
    entries: Iterable[LeaderboardEntry],
    by: RankBy | str = RankBy.weekly,
) -> list[LeaderboardEntry]:
    selected = RankBy(by)
    return sorted(
        entries,
        key=lambda e: (-e.score_for(selected), e.entity_name, e.entity_id),
    )


def rank_windows(windows: Iterable[AggregateWindow]) -> list[AggregateWindow]:
    """Rank aggregate windows (usually one window key) by total score."""
    return sorted(windows, key=lambda w: (-w.total_score, w.entity_name, w.entity_id))


def top_n(entries: Sequence[T], n: int) -> list[T]:
    """First n entries; fewer when the population is smaller."""
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise InvalidInputError("n", n)
    return list(entries[:n])
