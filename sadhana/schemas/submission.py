"""
Submission request / response schemas.

POST /submissions          → SubmissionCreate  → SubmissionResponse
POST /submissions/score    → ActivityIn        → ScoreBreakdownResponse
GET  /submissions          → SubmissionListResponse
"""
from __future__ import annotations

import datetime as dt
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NonNegative = Annotated[int, Field(ge=0, le=10_000)]

# minutes field → label field that must accompany it
_LABEL_FOR = {
    "reading_minutes": "reading_subject",
    "listening_minutes": "speaker",
    "service_minutes": "service_name",
}


class ActivityIn(BaseModel):
    """Raw activity for one day. All counts default to 0."""

    early_session: NonNegative = Field(
        default=0, description="Rounds in the earliest bracket (weight 2.5)."
    )
    before_cutoff: NonNegative = Field(
        default=0, description="Rounds before the morning cutoff (weight 2.0)."
    )
    mid_morning: NonNegative = Field(
        default=0, description="Rounds mid-morning (weight 1.5)."
    )
    late_morning: NonNegative = Field(
        default=0, description="Rounds late morning or later (weight 1.0)."
    )
    reading_minutes: NonNegative = Field(default=0, description="Minutes of text study.")
    listening_minutes: NonNegative = Field(default=0, description="Minutes of lecture listening.")
    service_minutes: NonNegative = Field(default=0, description="Minutes of service.")


class SubmissionCreate(ActivityIn):
    """A daily report. Each label is required when its minutes are > 0."""

    date: dt.date = Field(description="Calendar day of the practice.", examples=["2024-03-05"])
    entity_id: int = Field(ge=1, description="Reporting entity.")
    reading_subject: Optional[str] = Field(default=None, max_length=256, examples=["Bhagavad Gita"])
    speaker: Optional[str] = Field(default=None, max_length=256)
    service_name: Optional[str] = Field(default=None, max_length=256)

    @field_validator("reading_subject", "speaker", "service_name", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @model_validator(mode="after")
    def labels_present(self) -> "SubmissionCreate":
        for minutes_field, label_field in _LABEL_FOR.items():
            if getattr(self, minutes_field) > 0 and not getattr(self, label_field):
                raise ValueError(f"{label_field} is required when {minutes_field} > 0")
        return self


class ScoreBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_rounds: int
    score_a: int = Field(description="Meditation rounds, 0–25.")
    score_b: int = Field(description="Reading band: 0, 7, 15, 20 or 30.")
    score_c: int = Field(description="Listening band: 0, 7, 15, 20 or 30.")
    score_d: int = Field(description="Service band: 0, 5, 8, 12 or 15.")
    total_score: int


class SubmissionResponse(ScoreBreakdownResponse):
    id: int
    date: str
    entity_id: int
    entity_name: str
    early_session: int
    before_cutoff: int
    mid_morning: int
    late_morning: int
    reading_minutes: int
    reading_subject: Optional[str] = None
    listening_minutes: int
    speaker: Optional[str] = None
    service_minutes: int
    service_name: Optional[str] = None
    created_at: str


class SubmissionListResponse(BaseModel):
    total: int
    items: list[SubmissionResponse]
