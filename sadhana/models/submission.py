"""
Submission — one daily practice report for one entity.

Raw activity inputs plus the ScoreBreakdown computed at creation time.
Rows are never updated: the scores stay frozen, and a bad report is
deleted as a whole.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sadhana.db.base import Base


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        CheckConstraint(
            "early_session >= 0 AND before_cutoff >= 0 "
            "AND mid_morning >= 0 AND late_morning >= 0",
            name="ck_submission_rounds_non_negative",
        ),
        CheckConstraint(
            "reading_minutes >= 0 AND listening_minutes >= 0 AND service_minutes >= 0",
            name="ck_submission_minutes_non_negative",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    entity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # --- Meditation rounds by time-of-day bracket ---
    early_session: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    before_cutoff: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mid_morning: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    late_morning: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Minutes + labels ---
    reading_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reading_subject: Mapped[str | None] = mapped_column(String(256), nullable=True)
    listening_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    speaker: Mapped[str | None] = mapped_column(String(256), nullable=True)
    service_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    service_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # --- Frozen ScoreBreakdown ---
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False)
    score_a: Mapped[int] = mapped_column(Integer, nullable=False)
    score_b: Mapped[int] = mapped_column(Integer, nullable=False)
    score_c: Mapped[int] = mapped_column(Integer, nullable=False)
    score_d: Mapped[int] = mapped_column(Integer, nullable=False)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    entity: Mapped["Entity"] = relationship(back_populates="submissions")  # noqa: F821

    @property
    def entity_name(self) -> str:
        return self.entity.name if self.entity is not None else ""
