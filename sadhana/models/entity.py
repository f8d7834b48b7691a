from datetime import datetime
from sqlalchemy import Integer, String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sadhana.db.base import Base


class Entity(Base):
    """A practising member whose daily submissions are scored and ranked."""

    __tablename__ = "entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    submissions: Mapped[list["Submission"]] = relationship(  # noqa: F821
        back_populates="entity",
        cascade="all, delete-orphan",
    )
