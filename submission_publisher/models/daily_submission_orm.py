"""
SQLAlchemy ORM model for the 'daily_submissions' table (per-actor daily index).
"""

from datetime import date
from typing import Any, Dict

from sqlalchemy import Date, Index, PrimaryKeyConstraint, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DailySubmissionORM(Base):
    """
    Index entry linking an actor's day to the submissions made on it.

    Attributes:
        index_key (str): "{actor_id}:{YYYY-MM-DD}".
        resource_id (str): The Reddit post id.
        author_id (str): Submitting actor.
        day (date): UTC day of the submission.
        record (dict): Copy of the SubmissionRecord, equivalent to the canonical row.
    """
    __tablename__ = "daily_submissions"

    index_key: Mapped[str] = mapped_column(Text, nullable=False)
    resource_id: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(Text, nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    record: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("index_key", "resource_id", name="pk_daily_submission"),
        Index("idx_daily_submissions_author_day", "author_id", "day"),
    )

    def __repr__(self) -> str:
        return f"<DailySubmissionORM(index_key='{self.index_key}', resource_id='{self.resource_id}')>"
