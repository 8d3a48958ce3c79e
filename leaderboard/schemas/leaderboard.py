from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class TimeWindow(str, Enum):
    """Lower bound applied to event timestamps"""
    FIVE_MINUTES = "5min"
    ONE_HOUR = "1hour"
    ALL = "all"


@dataclass(frozen=True)
class LeaderboardRow:
    """Aggregate for one category, computed per query"""
    category: str
    total_points: int
    event_count: int


class LeaderboardEntry(BaseModel):
    """Single ranked house"""
    house: str
    points: int
    events: int


class LeaderboardResponse(BaseModel):
    """Ranked totals for a time window"""
    time_window: TimeWindow = Field(..., alias="timeWindow")
    leaderboard: List[LeaderboardEntry]
    timestamp: datetime

    model_config = {"populate_by_name": True}
