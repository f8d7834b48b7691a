"""
Score calculator — raw daily activity → ScoreBreakdown.

Rules
-----
  score_a  Meditation rounds, weighted by bracket and capped at 25:
             early * 2.5 + before * 2.0 + mid_morning * 1.5 + late_morning * 1.0
           rounded half-up (24.5 → 25).
  score_b  Reading minutes     → READING_BANDS
  score_c  Listening minutes   → LISTENING_BANDS
  score_d  Service minutes     → SERVICE_BANDS

  total_score = score_a + score_b + score_c + score_d

Band tables are ordered (upper, points) pairs. A value falls in the first
band whose upper bound it does not exceed; the lower bound is the previous
band's upper bound, exclusive. The last band is open-ended (upper=None).

Public API
----------
compute_score(early, before, mid_morning, late_morning,
              reading_minutes, listening_minutes, service_minutes) -> ScoreBreakdown
band_points(minutes, bands)                                         -> int
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Sequence

from sadhana.core.errors import InvalidInputError


# ---------------------------------------------------------------------------
# Band tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreBand:
    upper: Optional[int]   # inclusive; None = open top band
    points: int


READING_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(0, 0),
    ScoreBand(15, 7),
    ScoreBand(30, 15),
    ScoreBand(45, 20),
    ScoreBand(None, 30),
)

LISTENING_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(0, 0),
    ScoreBand(15, 7),
    ScoreBand(30, 15),
    ScoreBand(45, 20),
    ScoreBand(None, 30),
)

SERVICE_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(0, 0),
    ScoreBand(15, 5),
    ScoreBand(30, 8),
    ScoreBand(45, 12),
    ScoreBand(None, 15),
)

# Per-round weight for each bracket, earliest first.
ROUND_WEIGHTS: tuple[Decimal, ...] = (
    Decimal("2.5"),
    Decimal("2.0"),
    Decimal("1.5"),
    Decimal("1.0"),
)
ROUNDS_CAP = Decimal(25)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreBreakdown:
    total_rounds: int
    score_a: int
    score_b: int
    score_c: int
    score_d: int
    total_score: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_count(field: str, value: Any) -> int:
    # bool is an int subclass; True rounds are not a thing.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field, value)
    if value < 0:
        raise InvalidInputError(field, value)
    return value


def band_points(minutes: int, bands: Sequence[ScoreBand]) -> int:
    """Return the points of the band that `minutes` falls in."""
    for band in bands:
        if band.upper is None or minutes <= band.upper:
            return band.points
    raise ValueError("band table must end with an open-ended band")


def rounds_score(early: int, before: int, mid_morning: int, late_morning: int) -> int:
    weighted = sum(
        (Decimal(count) * weight
         for count, weight in zip((early, before, mid_morning, late_morning), ROUND_WEIGHTS)),
        Decimal(0),
    )
    capped = min(ROUNDS_CAP, weighted)
    return int(capped.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def compute_score(
    early: int,
    before: int,
    mid_morning: int,
    late_morning: int,
    reading_minutes: int,
    listening_minutes: int,
    service_minutes: int,
) -> ScoreBreakdown:
    """
    Score one day of activity. Pure and deterministic.
    Raises InvalidInputError for negative or non-integer inputs.
    """
    early = _require_count("early_session", early)
    before = _require_count("before_cutoff", before)
    mid_morning = _require_count("mid_morning", mid_morning)
    late_morning = _require_count("late_morning", late_morning)
    reading_minutes = _require_count("reading_minutes", reading_minutes)
    listening_minutes = _require_count("listening_minutes", listening_minutes)
    service_minutes = _require_count("service_minutes", service_minutes)

    score_a = rounds_score(early, before, mid_morning, late_morning)
    score_b = band_points(reading_minutes, READING_BANDS)
    score_c = band_points(listening_minutes, LISTENING_BANDS)
    score_d = band_points(service_minutes, SERVICE_BANDS)

    return ScoreBreakdown(
        total_rounds=early + before + mid_morning + late_morning,
        score_a=score_a,
        score_b=score_b,
        score_c=score_c,
        score_d=score_d,
        total_score=score_a + score_b + score_c + score_d,
    )
