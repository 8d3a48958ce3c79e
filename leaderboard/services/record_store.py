from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from leaderboard.core.exceptions import ConflictError, StorageUnavailable
from leaderboard.models.point_event import PointEvent
from leaderboard.schemas.point_event import PointEventCreate

logger = structlog.get_logger()


class RecordStore:
    """Append-only store of point events"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def insert(self, event: PointEventCreate) -> PointEvent:
        """
        Persist a validated event.

        Raises:
            ConflictError: an event with the same id is already stored
            StorageUnavailable: the database could not complete the insert
        """
        row = PointEvent(
            id=event.id,
            category=event.category,
            points=event.points,
            timestamp=event.timestamp
        )

        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except IntegrityError:
            raise ConflictError(event.id)
        except SQLAlchemyError as e:
            logger.error("point_event_insert_failed", event_id=event.id, error=str(e))
            raise StorageUnavailable("Failed to store event") from e

        return row

    async def query(self, since: Optional[datetime] = None) -> list[PointEvent]:
        """Events with timestamp >= since (all events when since is None), oldest first"""
        stmt = select(PointEvent).order_by(PointEvent.timestamp, PointEvent.id)
        if since is not None:
            stmt = stmt.where(PointEvent.timestamp >= since)
        return await self._fetch(stmt)

    async def recent(self, limit: int) -> list[PointEvent]:
        """Most recent events, newest first"""
        stmt = (
            select(PointEvent)
            .order_by(PointEvent.timestamp.desc(), PointEvent.id)
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> list[PointEvent]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("point_event_query_failed", error=str(e))
            raise StorageUnavailable("Failed to read events") from e
