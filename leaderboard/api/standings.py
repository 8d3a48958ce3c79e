# GET /leaderboard

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from leaderboard.core.dependencies import get_aggregator
from leaderboard.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse, TimeWindow
from leaderboard.services.aggregator import Aggregator

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
        time_window: TimeWindow = Query(
            default=TimeWindow.ALL,
            alias="timeWindow",
            description="5min, 1hour or all"
        ),
        aggregator: Aggregator = Depends(get_aggregator)
):
    """
    Ranked house totals for the selected time window.

    Houses are sorted by points descending, ties by name.
    """
    now = datetime.now(timezone.utc)
    rows = await aggregator.leaderboard(time_window, now=now)

    return LeaderboardResponse(
        time_window=time_window,
        leaderboard=[
            LeaderboardEntry(house=row.category, points=row.total_points, events=row.event_count)
            for row in rows
        ],
        timestamp=now
    )
