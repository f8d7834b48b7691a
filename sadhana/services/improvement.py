"""
Improvement detector — compare an entity's latest score with its own past.

Two baselines
-------------
  personal best   previous_best = max(history[1:])
                  improvement   = latest - previous_best
                  percentage    = improvement / previous_best * 100  (0 when best <= 0)

  significant     previous_average = mean(history[1:])
                  average_percentage = (latest - average) / average * 100
                  flagged when len(history) >= min_history (3)
                  AND average_percentage > threshold_pct (20)

A single-entry history has no baseline: previous_best = latest, nothing is
flagged. An empty history returns ImprovementResult.empty(). Every
percentage is finite.

All-time records compare against the whole population, so they take the
population's scores rather than one entity's history.

Public API
----------
detect(history, min_history, threshold_pct)        -> ImprovementResult
is_all_time_record(latest, other_scores)           -> bool
scan_population(records, min_history, threshold_pct) -> PopulationReport
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from sadhana.services.aggregation import (
    SubmissionRecord,
    WindowHigh,
    WindowKind,
    resolve_dates,
    window_maxima,
)

DEFAULT_MIN_HISTORY = 3
DEFAULT_THRESHOLD_PCT = 20.0


class ImprovementKind(str, enum.Enum):
    personal_best = "personal_best"
    significant_improvement = "significant_improvement"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImprovementResult:
    history_length: int
    latest_score: float
    previous_best: float
    improvement: float
    percentage_increase: float
    is_personal_best: bool
    previous_average: float
    average_improvement: float
    average_percentage: float
    is_significant: bool

    @classmethod
    def empty(cls) -> "ImprovementResult":
        """Neutral result for an entity with no history at all."""
        return cls(
            history_length=0,
            latest_score=0,
            previous_best=0,
            improvement=0,
            percentage_increase=0.0,
            is_personal_best=False,
            previous_average=0.0,
            average_improvement=0.0,
            average_percentage=0.0,
            is_significant=False,
        )


@dataclass(frozen=True)
class ImprovementEvent:
    entity_id: int
    entity_name: str
    kind: ImprovementKind
    latest_score: float
    baseline: float
    absolute_delta: float
    percentage_delta: float
    as_of_date: date


@dataclass
class PopulationReport:
    all_time_high: Optional[WindowHigh]
    new_all_time_record: bool
    significant_improvements: list[ImprovementEvent] = field(default_factory=list)
    personal_bests: list[ImprovementEvent] = field(default_factory=list)
    excluded: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _percentage(delta: float, base: float) -> float:
    if base <= 0:
        return 0.0
    pct = delta / base * 100
    return pct if math.isfinite(pct) else 0.0


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def detect(
    history: Sequence[float],
    min_history: int = DEFAULT_MIN_HISTORY,
    threshold_pct: float = DEFAULT_THRESHOLD_PCT,
) -> ImprovementResult:
    """Evaluate one entity's scores, most recent first."""
    if not history:
        return ImprovementResult.empty()

    latest = history[0]
    prior = list(history[1:])

    if prior:
        previous_best = max(prior)
        previous_average = sum(prior) / len(prior)
    else:
        previous_best = latest
        previous_average = latest

    improvement = latest - previous_best
    percentage_increase = _percentage(improvement, previous_best)

    average_improvement = latest - previous_average
    average_percentage = _percentage(average_improvement, previous_average)

    return ImprovementResult(
        history_length=len(history),
        latest_score=latest,
        previous_best=previous_best,
        improvement=improvement,
        percentage_increase=percentage_increase,
        is_personal_best=bool(prior) and latest > previous_best,
        previous_average=previous_average,
        average_improvement=average_improvement,
        average_percentage=average_percentage,
        is_significant=(
            len(history) >= min_history and average_percentage > threshold_pct
        ),
    )


def is_all_time_record(latest: float, other_scores: Iterable[float]) -> bool:
    """True when `latest` strictly beats every other score in the population."""
    others = list(other_scores)
    if not others:
        return False
    return latest > max(others)


def scan_population(
    records: Iterable[SubmissionRecord],
    min_history: int = DEFAULT_MIN_HISTORY,
    threshold_pct: float = DEFAULT_THRESHOLD_PCT,
) -> PopulationReport:
    """
    Run the detector for every entity in a snapshot and check whether the
    most recent submission overall set a new all-time record.
    """
    snapshot = list(records)
    resolved, excluded = resolve_dates(snapshot)
    if not resolved:
        return PopulationReport(all_time_high=None, new_all_time_record=False, excluded=excluded)

    # Newest first; submission_id orders same-day rows.
    resolved.sort(key=lambda pair: (pair[1], pair[0].submission_id or 0), reverse=True)

    newest = resolved[0][0]
    new_record = is_all_time_record(
        newest.total_score, (record.total_score for record, _ in resolved[1:])
    )
    highs = window_maxima((record for record, _ in resolved), WindowKind.all_time).highs

    histories: dict[int, list[tuple[SubmissionRecord, date]]] = {}
    for record, day in resolved:
        histories.setdefault(record.entity_id, []).append((record, day))

    significant: list[ImprovementEvent] = []
    bests: list[ImprovementEvent] = []
    for entity_id, rows in histories.items():
        latest_record, latest_day = rows[0]
        result = detect([r.total_score for r, _ in rows], min_history, threshold_pct)
        if result.is_significant:
            significant.append(ImprovementEvent(
                entity_id=entity_id,
                entity_name=latest_record.entity_name,
                kind=ImprovementKind.significant_improvement,
                latest_score=result.latest_score,
                baseline=result.previous_average,
                absolute_delta=result.average_improvement,
                percentage_delta=result.average_percentage,
                as_of_date=latest_day,
            ))
        if result.is_personal_best:
            bests.append(ImprovementEvent(
                entity_id=entity_id,
                entity_name=latest_record.entity_name,
                kind=ImprovementKind.personal_best,
                latest_score=result.latest_score,
                baseline=result.previous_best,
                absolute_delta=result.improvement,
                percentage_delta=result.percentage_increase,
                as_of_date=latest_day,
            ))

    significant.sort(key=lambda e: (-e.percentage_delta, e.entity_name, e.entity_id))
    bests.sort(key=lambda e: (-e.absolute_delta, e.entity_name, e.entity_id))

    return PopulationReport(
        all_time_high=highs[0] if highs else None,
        new_all_time_record=new_record,
        significant_improvements=significant,
        personal_bests=bests,
        excluded=excluded,
    )
