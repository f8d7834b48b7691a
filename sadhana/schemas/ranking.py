"""
Aggregation, leaderboard and improvement schemas.

GET /aggregates/{window_kind}          → AggregationResponse
GET /aggregates/{window_kind}/maxima   → MaximaResponse
GET /leaderboard                       → LeaderboardResponse
GET /improvements                      → PopulationReportResponse
GET /improvements/{entity_id}          → EntityImprovementResponse
"""
from typing import Optional

from pydantic import BaseModel, Field


class AggregateWindowOut(BaseModel):
    entity_id: int
    entity_name: str
    window_kind: str
    window_key: str = Field(description='"2024-03-05", "2024-W10", "2024-03" or "all".')
    total_score: int
    submission_count: int


class AggregationResponse(BaseModel):
    window_kind: str
    excluded: int = Field(description="Records skipped because of an unusable date or score.")
    windows: list[AggregateWindowOut]


class WindowHighOut(BaseModel):
    window_key: str
    entity_id: int
    entity_name: str
    score: int
    date: str


class MaximaResponse(BaseModel):
    window_kind: str
    excluded: int
    highs: list[WindowHighOut]


class LeaderboardEntryOut(BaseModel):
    rank: int
    entity_id: int
    entity_name: str
    weekly_score: int
    monthly_score: int
    all_time_score: int


class LeaderboardResponse(BaseModel):
    as_of: str
    week_key: str
    month_key: str
    ranked_by: str
    total: int = Field(description="Entities on the full board before the limit.")
    excluded: int
    entries: list[LeaderboardEntryOut]


class ImprovementResultOut(BaseModel):
    history_length: int
    latest_score: float
    previous_best: float
    improvement: float
    percentage_increase: float = Field(description="vs previous best; always finite.")
    is_personal_best: bool
    previous_average: float
    average_improvement: float
    average_percentage: float = Field(description="vs average of earlier entries.")
    is_significant: bool


class ImprovementEventOut(BaseModel):
    entity_id: int
    entity_name: str
    kind: str = Field(description='"personal_best" | "significant_improvement"')
    latest_score: float
    baseline: float
    absolute_delta: float
    percentage_delta: float
    as_of_date: str


class PopulationReportResponse(BaseModel):
    all_time_high: Optional[WindowHighOut] = None
    new_all_time_record: bool
    significant_improvements: list[ImprovementEventOut]
    personal_bests: list[ImprovementEventOut]
    excluded: int


class TrendPointOut(BaseModel):
    date: str
    score: int
    delta: int


class EntityImprovementResponse(BaseModel):
    entity_id: int
    improvement: ImprovementResultOut
    is_all_time_record: bool = Field(
        description="Latest submission beats every other score in the population."
    )
    trend: list[TrendPointOut] = Field(description="Recent scores, oldest first.")
