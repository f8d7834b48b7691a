"""
Statistics schemas.

GET /stats/weeks/{year}/{week}                  → WindowSummaryResponse
GET /stats/months/{year}/{month}                → WindowSummaryResponse
GET /stats/overview                             → OverviewResponse
GET /stats/monthly-averages                     → list[MonthlyAverageOut]
GET /stats/entities/{entity_id}/progress        → WeeklyProgressResponse
"""
from typing import Optional

from pydantic import BaseModel, Field

from sadhana.schemas.ranking import AggregateWindowOut, ImprovementResultOut, TrendPointOut


class LabelCountOut(BaseModel):
    label: str
    count: int


class WindowSummaryResponse(BaseModel):
    window_kind: str
    window_key: str
    start: str
    end: str
    total_score: int
    submission_count: int
    top: list[AggregateWindowOut]
    leader: Optional[AggregateWindowOut] = None
    favourite_subject: Optional[LabelCountOut] = None
    previous_total: int = Field(default=0, description="Weekly only: total of the preceding week.")
    trend_pct: float = Field(default=0.0, description="Weekly only: change vs preceding week.")
    needs_attention: list[AggregateWindowOut] = Field(
        default_factory=list,
        description="Monthly only: entities with a positive total under the attention threshold.",
    )
    excluded: int = 0


class MonthlyAverageOut(BaseModel):
    month_key: str
    average: int
    submission_count: int


class OverviewResponse(BaseModel):
    as_of: str
    week_key: str
    submissions_this_week: int
    total_entities: int
    submissions_needing_attention: int


class WeeklyProgressResponse(BaseModel):
    entity_id: int
    week_key: str
    start: str
    end: str
    week_total: int
    days: list[TrendPointOut]
    improvement: ImprovementResultOut
