"""
SQLAlchemy ORM model for the 'submission_records' table (canonical store).
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Index, Text, TIMESTAMP
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base


class SubmissionRecordORM(Base):
    """
    One row per published post, keyed by the post id.

    Attributes:
        resource_id (str): The Reddit post id. Primary key.
        author_id (str): Username of the submitting actor.
        kind (str): Record type discriminator (e.g. "drawing").
        record (dict): Full serialized SubmissionRecord.
        created_at (datetime): When the submission was created.
        updated_at (datetime): Last time the row was written.
    """
    __tablename__ = "submission_records"

    resource_id: Mapped[str] = mapped_column(Text, primary_key=True, comment="Reddit post id.")
    author_id: Mapped[str] = mapped_column(Text, nullable=False, comment="Submitting actor.")
    kind: Mapped[str] = mapped_column(Text, nullable=False, comment="Record type discriminator.")
    record: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, comment="Serialized SubmissionRecord.")
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_submission_records_author_created", "author_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<SubmissionRecordORM(resource_id='{self.resource_id}', author_id='{self.author_id}')>"
