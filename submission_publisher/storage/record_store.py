"""
Record stores for submission records.

Every write replaces the whole stored record with a freshly built one; this
module never reads a record back in order to modify it.
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Protocol

from sqlalchemy import func, literal_column, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from submission_publisher.models import DailySubmissionORM, SubmissionRecordORM
from submission_publisher.models.dtos import SubmissionRecord
from submission_publisher.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)


def index_day(created_at: datetime) -> date:
    """UTC day a submission belongs to in the daily index."""
    return created_at.astimezone(timezone.utc).date()


def daily_index_key(actor_id: str, day: date) -> str:
    """Key of an actor's daily index, e.g. ``"u1:2024-05-01"``."""
    return f"{actor_id}:{day.isoformat()}"


class RecordStore(Protocol):
    """A protocol that defines the interface for submission record stores."""

    async def put(self, key: str, record: SubmissionRecord) -> None:
        """Store `record` under `key`, replacing whatever was there."""
        ...

    async def append_index(self, index_key: str, record: SubmissionRecord) -> None:
        """Add `record` to the index identified by `index_key`."""
        ...

    async def get(self, key: str) -> Optional[SubmissionRecord]:
        ...

    async def list_index(self, index_key: str) -> List[SubmissionRecord]:
        ...

    async def mark_expired(self, key: str) -> bool:
        """Flag the record as expired in every place it is stored."""
        ...


class SQLAlchemyRecordStore:
    """
    Postgres-backed record store.

    The canonical record lives in `submission_records`; the per-actor daily
    index lives in `daily_submissions`.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        """
        Args:
            session: An optional AsyncSession to use for all operations. If None,
                     a new session is created for each operation. Do not share one
                     session between stores that write concurrently.
        """
        self._shared_session = session

    async def put(self, key: str, record: SubmissionRecord) -> None:
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            try:
                stmt = pg_insert(SubmissionRecordORM).values(
                    resource_id=key,
                    author_id=record.author_id,
                    kind=record.kind,
                    record=record.model_dump(mode="json"),
                    created_at=record.created_at,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[SubmissionRecordORM.resource_id],
                    set_={
                        "author_id": stmt.excluded.author_id,
                        "kind": stmt.excluded.kind,
                        "record": stmt.excluded.record,
                        "created_at": stmt.excluded.created_at,
                        "updated_at": func.now(),
                    },
                )
                await session.execute(stmt)
                await session.commit()
                logger.info(f"Stored submission record for post {key}")
            except SQLAlchemyError as e:
                logger.error(f"Database error storing submission record for post {key}: {e}", exc_info=True)
                await session.rollback()
                raise

    async def append_index(self, index_key: str, record: SubmissionRecord) -> None:
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            try:
                stmt = pg_insert(DailySubmissionORM).values(
                    index_key=index_key,
                    resource_id=record.resource_id,
                    author_id=record.author_id,
                    day=index_day(record.created_at),
                    record=record.model_dump(mode="json"),
                )
                stmt = stmt.on_conflict_do_update(
                    constraint="pk_daily_submission",
                    set_={"record": stmt.excluded.record},
                )
                await session.execute(stmt)
                await session.commit()
                logger.info(f"Appended post {record.resource_id} to daily index {index_key}")
            except SQLAlchemyError as e:
                logger.error(f"Database error appending to daily index {index_key}: {e}", exc_info=True)
                await session.rollback()
                raise

    async def get(self, key: str) -> Optional[SubmissionRecord]:
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            result = await session.execute(
                select(SubmissionRecordORM.record).where(SubmissionRecordORM.resource_id == key)
            )
            data = result.scalar_one_or_none()
            return SubmissionRecord.model_validate(data) if data is not None else None

    async def list_index(self, index_key: str) -> List[SubmissionRecord]:
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            result = await session.execute(
                select(DailySubmissionORM.record)
                .where(DailySubmissionORM.index_key == index_key)
                .order_by(DailySubmissionORM.resource_id)
            )
            return [SubmissionRecord.model_validate(data) for data in result.scalars().all()]

    async def mark_expired(self, key: str) -> bool:
        # Only the expired flag changes; counters stay as downstream processes wrote them
        expired_flag = func.jsonb_set(
            literal_column("record"), literal_column("'{expired}'"), literal_column("'true'::jsonb")
        )
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            try:
                result = await session.execute(
                    update(SubmissionRecordORM)
                    .where(SubmissionRecordORM.resource_id == key)
                    .values(record=expired_flag, updated_at=func.now())
                )
                await session.execute(
                    update(DailySubmissionORM)
                    .where(DailySubmissionORM.resource_id == key)
                    .values(record=expired_flag)
                )
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Database error expiring submission record for post {key}: {e}", exc_info=True)
                await session.rollback()
                raise
        if result.rowcount == 0:
            logger.warning(f"No submission record found to expire for post {key}")
            return False
        logger.info(f"Marked submission record for post {key} as expired")
        return True


class InMemoryRecordStore:
    """Process-local record store for development and tests."""

    def __init__(self):
        self.records: Dict[str, SubmissionRecord] = {}
        self.indexes: Dict[str, Dict[str, SubmissionRecord]] = {}

    async def put(self, key: str, record: SubmissionRecord) -> None:
        self.records[key] = record

    async def append_index(self, index_key: str, record: SubmissionRecord) -> None:
        self.indexes.setdefault(index_key, {})[record.resource_id] = record

    async def get(self, key: str) -> Optional[SubmissionRecord]:
        return self.records.get(key)

    async def list_index(self, index_key: str) -> List[SubmissionRecord]:
        entries = self.indexes.get(index_key, {})
        return [entries[resource_id] for resource_id in sorted(entries)]

    async def mark_expired(self, key: str) -> bool:
        record = self.records.get(key)
        if record is None:
            return False
        expired = record.model_copy(update={"expired": True})
        self.records[key] = expired
        for entries in self.indexes.values():
            if key in entries:
                entries[key] = expired
        return True
