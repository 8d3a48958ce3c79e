from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from leaderboard.core.exceptions import StorageUnavailable
from leaderboard.models.point_event import PointEvent
from leaderboard.schemas.leaderboard import LeaderboardRow, TimeWindow

logger = structlog.get_logger()

WINDOW_SPANS = {
    TimeWindow.FIVE_MINUTES: timedelta(minutes=5),
    TimeWindow.ONE_HOUR: timedelta(hours=1),
}


def window_bound(window: TimeWindow, now: datetime) -> Optional[datetime]:
    """Lower timestamp bound for a window, None when unbounded"""
    span = WINDOW_SPANS.get(TimeWindow(window))
    if span is None:
        return None
    return now - span


class Aggregator:
    """Grouped point totals per category"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def leaderboard(
            self,
            window: TimeWindow = TimeWindow.ALL,
            now: Optional[datetime] = None
    ) -> List[LeaderboardRow]:
        """
        Sum points and count events per category.

        Rows are sorted by total points descending; equal totals are ordered
        by category name.
        """
        now = now or datetime.now(timezone.utc)
        bound = window_bound(window, now)

        total = func.sum(PointEvent.points).label("total_points")
        stmt = (
            select(
                PointEvent.category,
                total,
                func.count(PointEvent.id).label("event_count")
            )
            .group_by(PointEvent.category)
            .order_by(total.desc(), PointEvent.category)
        )
        if bound is not None:
            stmt = stmt.where(PointEvent.timestamp >= bound)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error("leaderboard_query_failed", window=TimeWindow(window).value, error=str(e))
            raise StorageUnavailable("Failed to compute leaderboard") from e

        logger.info("leaderboard_query", window=TimeWindow(window).value, categories=len(rows))

        return [
            LeaderboardRow(
                category=row[0],
                total_points=int(row[1] or 0),
                event_count=row[2]
            )
            for row in rows
        ]
