"""
Aggregation engine — sum submission scores per entity per time window.

Windows
-------
  day       key "2024-03-05"   (ISO date)
  week      key "2024-W10"     (ISO year + ISO week, see services/weeks.py)
  month     key "2024-03"
  all_time  key "all"

Records whose date cannot be resolved (or whose total_score is not an
integer) are skipped and counted in `excluded`; one malformed historical
row must not block a whole leaderboard. Exclusions are logged.

Everything here works on an in-memory snapshot: callers load the current
collection and re-run. There is no incremental update path.

Public API
----------
aggregate(records, window_kind, window_selector, predicate)  -> AggregationResult
window_maxima(records, window_kind, window_selector)         -> MaximaResult
resolve_dates(records)                                       -> (list[(record, date)], excluded)
window_key_for(day, window_kind)                             -> str
window_bounds(window_kind, key)                              -> (date, date) | None
for_entity / name_contains / between                         -> predicates
"""
from __future__ import annotations

import calendar
import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Optional

from sadhana.core.errors import AmbiguousDateError, InvalidInputError
from sadhana.core.logging import get_logger
from sadhana.services.weeks import parse_week_key, week_date_range, week_key

logger = get_logger(__name__)


class WindowKind(str, enum.Enum):
    day = "day"
    week = "week"
    month = "month"
    all_time = "all_time"


ALL_TIME_KEY = "all"


# ---------------------------------------------------------------------------
# Input / result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubmissionRecord:
    """Read-only snapshot of a stored submission, as handed to the core."""
    date: Any                       # date | datetime | ISO string; may be garbage
    entity_id: int
    entity_name: str
    total_score: Any
    submission_id: Optional[int] = None
    reading_subject: Optional[str] = None
    speaker: Optional[str] = None
    service_name: Optional[str] = None


@dataclass(frozen=True)
class AggregateWindow:
    entity_id: int
    entity_name: str
    window_kind: WindowKind
    window_key: str
    total_score: int
    submission_count: int


@dataclass
class AggregationResult:
    window_kind: WindowKind
    windows: list[AggregateWindow] = field(default_factory=list)
    excluded: int = 0

    def by_entity(self) -> dict[int, AggregateWindow]:
        """Index a single-window result by entity_id."""
        return {w.entity_id: w for w in self.windows}


@dataclass(frozen=True)
class WindowHigh:
    """Best single submission inside one window."""
    window_key: str
    entity_id: int
    entity_name: str
    score: int
    date: date


@dataclass
class MaximaResult:
    window_kind: WindowKind
    highs: list[WindowHigh] = field(default_factory=list)
    excluded: int = 0


Predicate = Callable[[SubmissionRecord], bool]


# ---------------------------------------------------------------------------
# Date / key helpers
# ---------------------------------------------------------------------------

def coerce_date(value: Any) -> date:
    """
    Normalize a submission date to a calendar date.
    Aware datetimes are converted to UTC first. Raises AmbiguousDateError.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return coerce_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
    raise AmbiguousDateError(value)


def _valid_score(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def resolve_dates(
    records: Iterable[SubmissionRecord],
) -> tuple[list[tuple[SubmissionRecord, date]], int]:
    """Pair each usable record with its calendar date; count the rest."""
    resolved: list[tuple[SubmissionRecord, date]] = []
    excluded = 0
    for record in records:
        try:
            day = coerce_date(record.date)
        except AmbiguousDateError:
            excluded += 1
            continue
        if not _valid_score(record.total_score):
            excluded += 1
            continue
        resolved.append((record, day))
    return resolved, excluded


def window_key_for(day: date, window_kind: WindowKind | str) -> str:
    kind = WindowKind(window_kind)
    if kind is WindowKind.day:
        return day.isoformat()
    if kind is WindowKind.week:
        return week_key(day)
    if kind is WindowKind.month:
        return f"{day.year:04d}-{day.month:02d}"
    return ALL_TIME_KEY


def window_bounds(window_kind: WindowKind | str, key: str) -> Optional[tuple[date, date]]:
    """Inclusive date range covered by a window key; None for all-time."""
    kind = WindowKind(window_kind)
    if kind is WindowKind.all_time:
        return None
    if kind is WindowKind.week:
        year, week = parse_week_key(key)
        return week_date_range(week, year)
    if kind is WindowKind.month:
        try:
            year_part, month_part = key.split("-")
            year, month = int(year_part), int(month_part)
            last = calendar.monthrange(year, month)[1]
            return date(year, month, 1), date(year, month, last)
        except (AttributeError, ValueError, calendar.IllegalMonthError):
            raise InvalidInputError("month_key", key, 'must look like "YYYY-MM"') from None
    try:
        day = date.fromisoformat(key)
    except (TypeError, ValueError):
        raise InvalidInputError("day_key", key, 'must look like "YYYY-MM-DD"') from None
    return day, day


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def for_entity(entity_id: int) -> Predicate:
    return lambda record: record.entity_id == entity_id


def name_contains(fragment: str) -> Predicate:
    needle = fragment.casefold()
    return lambda record: needle in (record.entity_name or "").casefold()


def between(start: Optional[date], end: Optional[date]) -> Predicate:
    """Inclusive date-range predicate; either bound may be open."""
    def _match(record: SubmissionRecord) -> bool:
        try:
            day = coerce_date(record.date)
        except AmbiguousDateError:
            return False
        if start is not None and day < start:
            return False
        if end is not None and day > end:
            return False
        return True
    return _match


def all_of(*predicates: Optional[Predicate]) -> Optional[Predicate]:
    active = [p for p in predicates if p is not None]
    if not active:
        return None
    return lambda record: all(p(record) for p in active)


# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------

def aggregate(
    records: Iterable[SubmissionRecord],
    window_kind: WindowKind | str,
    window_selector: Optional[str] = None,
    predicate: Optional[Predicate] = None,
) -> AggregationResult:
    """
    Group by (window_key, entity_id); sum total_score and count submissions.

    window_selector keeps a single window key. predicate runs per record
    before grouping. Output is ordered by window key, entity name, entity id.
    """
    kind = WindowKind(window_kind)
    resolved, excluded = resolve_dates(records)

    # (key, entity_id) -> [total, count, latest day, display name]
    groups: dict[tuple[str, int], list[Any]] = {}
    for record, day in resolved:
        key = window_key_for(day, kind)
        if window_selector is not None and key != window_selector:
            continue
        if predicate is not None and not predicate(record):
            continue
        slot = groups.get((key, record.entity_id))
        if slot is None:
            groups[(key, record.entity_id)] = [record.total_score, 1, day, record.entity_name]
            continue
        slot[0] += record.total_score
        slot[1] += 1
        # The most recent submission carries the current display name.
        if day >= slot[2]:
            slot[2] = day
            slot[3] = record.entity_name

    windows = [
        AggregateWindow(
            entity_id=entity_id,
            entity_name=name,
            window_kind=kind,
            window_key=key,
            total_score=total,
            submission_count=count,
        )
        for (key, entity_id), (total, count, _, name) in groups.items()
    ]
    windows.sort(key=lambda w: (w.window_key, w.entity_name, w.entity_id))

    if excluded:
        logger.warning(
            "aggregation_excluded_records",
            window_kind=kind.value,
            excluded=excluded,
        )
    return AggregationResult(window_kind=kind, windows=windows, excluded=excluded)


def window_maxima(
    records: Iterable[SubmissionRecord],
    window_kind: WindowKind | str,
    window_selector: Optional[str] = None,
) -> MaximaResult:
    """
    Best single submission per window. Ties go to the smaller entity name,
    then the earlier date.
    """
    kind = WindowKind(window_kind)
    resolved, excluded = resolve_dates(records)

    best: dict[str, WindowHigh] = {}
    for record, day in resolved:
        key = window_key_for(day, kind)
        if window_selector is not None and key != window_selector:
            continue
        candidate = WindowHigh(
            window_key=key,
            entity_id=record.entity_id,
            entity_name=record.entity_name,
            score=record.total_score,
            date=day,
        )
        current = best.get(key)
        if current is None or _beats(candidate, current):
            best[key] = candidate

    if excluded:
        logger.warning(
            "window_maxima_excluded_records",
            window_kind=kind.value,
            excluded=excluded,
        )
    highs = [best[key] for key in sorted(best)]
    return MaximaResult(window_kind=kind, highs=highs, excluded=excluded)


def _beats(a: WindowHigh, b: WindowHigh) -> bool:
    return (-a.score, a.entity_name, a.date) < (-b.score, b.entity_name, b.date)
