"""initial schema

Revision ID: 0001
Revises:
Create Date: 2024-03-01 00:00:00.000000

entities + submissions. Submission scores are written once at insert time
and never updated; deleting an entity cascades to its submissions.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- entities ---
    op.create_table(
        "entities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_entities_name"),
    )
    op.create_index("ix_entities_id", "entities", ["id"])
    op.create_index("ix_entities_name", "entities", ["name"])

    # --- submissions ---
    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("early_session", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("before_cutoff", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mid_morning", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("late_morning", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reading_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reading_subject", sa.String(256), nullable=True),
        sa.Column("listening_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("speaker", sa.String(256), nullable=True),
        sa.Column("service_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("service_name", sa.String(256), nullable=True),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("score_a", sa.Integer(), nullable=False),
        sa.Column("score_b", sa.Integer(), nullable=False),
        sa.Column("score_c", sa.Integer(), nullable=False),
        sa.Column("score_d", sa.Integer(), nullable=False),
        sa.Column("total_score", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["entity_id"], ["entities.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "early_session >= 0 AND before_cutoff >= 0 "
            "AND mid_morning >= 0 AND late_morning >= 0",
            name="ck_submission_rounds_non_negative",
        ),
        sa.CheckConstraint(
            "reading_minutes >= 0 AND listening_minutes >= 0 AND service_minutes >= 0",
            name="ck_submission_minutes_non_negative",
        ),
    )
    op.create_index("ix_submissions_id", "submissions", ["id"])
    op.create_index("ix_submissions_date", "submissions", ["date"])
    op.create_index("ix_submissions_entity_id", "submissions", ["entity_id"])
    op.create_index("ix_submissions_total_score", "submissions", ["total_score"])


def downgrade() -> None:
    op.drop_index("ix_submissions_total_score", table_name="submissions")
    op.drop_index("ix_submissions_entity_id", table_name="submissions")
    op.drop_index("ix_submissions_date", table_name="submissions")
    op.drop_index("ix_submissions_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("ix_entities_name", table_name="entities")
    op.drop_index("ix_entities_id", table_name="entities")
    op.drop_table("entities")
