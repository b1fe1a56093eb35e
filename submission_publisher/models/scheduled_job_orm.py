"""
SQLAlchemy ORM model for the 'scheduled_jobs' table (durable job queue).
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Index, Integer, Text, TIMESTAMP, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base

JOB_STATUS_PENDING = "pending"
JOB_STATUS_RUNNING = "running"
JOB_STATUS_COMPLETED = "completed"
JOB_STATUS_FAILED = "failed"


class ScheduledJobORM(Base):
    """
    A deferred job waiting for (or done with) execution by the job runner.

    Rows outlive the process that scheduled them; the runner picks up any
    pending row whose `run_at` has passed.
    """
    __tablename__ = "scheduled_jobs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, comment="Job name, used to find its handler.")
    payload: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    run_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=JOB_STATUS_PENDING, server_default=JOB_STATUS_PENDING
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index(
            "ix_scheduled_jobs_pending_run_at", "run_at",
            postgresql_where=text(f"status = '{JOB_STATUS_PENDING}'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<ScheduledJobORM(id={self.id}, name='{self.name}', status='{self.status}', run_at='{self.run_at}')>"
