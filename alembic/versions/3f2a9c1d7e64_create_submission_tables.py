"""create submission, daily index and scheduled job tables

Revision ID: 3f2a9c1d7e64
Revises:
Create Date: 2024-05-01 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "3f2a9c1d7e64"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "submission_records",
        sa.Column("resource_id", sa.Text(), nullable=False, comment="Reddit post id."),
        sa.Column("author_id", sa.Text(), nullable=False, comment="Submitting actor."),
        sa.Column("kind", sa.Text(), nullable=False, comment="Record type discriminator."),
        sa.Column("record", postgresql.JSONB(), nullable=False, comment="Serialized SubmissionRecord."),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("resource_id"),
    )
    op.create_index(
        "idx_submission_records_author_created", "submission_records", ["author_id", "created_at"]
    )

    op.create_table(
        "daily_submissions",
        sa.Column("index_key", sa.Text(), nullable=False),
        sa.Column("resource_id", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Text(), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("record", postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint("index_key", "resource_id", name="pk_daily_submission"),
    )
    op.create_index("idx_daily_submissions_author_day", "daily_submissions", ["author_id", "day"])

    op.create_table(
        "scheduled_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=False, comment="Job name, used to find its handler."),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        sa.Column("run_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_scheduled_jobs_pending_run_at",
        "scheduled_jobs",
        ["run_at"],
        postgresql_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    op.drop_index("ix_scheduled_jobs_pending_run_at", table_name="scheduled_jobs")
    op.drop_table("scheduled_jobs")
    op.drop_index("idx_daily_submissions_author_day", table_name="daily_submissions")
    op.drop_table("daily_submissions")
    op.drop_index("idx_submission_records_author_created", table_name="submission_records")
    op.drop_table("submission_records")
