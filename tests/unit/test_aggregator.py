import pytest
from datetime import datetime, timedelta, timezone

from leaderboard.core.exceptions import StorageUnavailable
from leaderboard.schemas.leaderboard import TimeWindow
from leaderboard.schemas.point_event import PointEventCreate
from leaderboard.services.aggregator import Aggregator, window_bound

NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


async def add(store, event_id, category, points, age):
    await store.insert(PointEventCreate(
        id=event_id,
        category=category,
        points=points,
        timestamp=NOW - age
    ))


def summary(rows):
    return [(r.category, r.total_points, r.event_count) for r in rows]


def test_window_bound():
    assert window_bound(TimeWindow.FIVE_MINUTES, NOW) == NOW - timedelta(minutes=5)
    assert window_bound(TimeWindow.ONE_HOUR, NOW) == NOW - timedelta(hours=1)
    assert window_bound(TimeWindow.ALL, NOW) is None
    assert window_bound("1hour", NOW) == NOW - timedelta(hours=1)


@pytest.mark.asyncio
async def test_empty_store(aggregator):
    assert await aggregator.leaderboard(TimeWindow.ALL, now=NOW) == []


@pytest.mark.asyncio
async def test_time_windows_exclude_older_events(store, aggregator):
    await add(store, "recent", "Gryffindor", 10, timedelta(minutes=2))
    await add(store, "half-hour", "Gryffindor", 5, timedelta(minutes=30))
    await add(store, "old", "Slytherin", 50, timedelta(hours=3))
    await add(store, "edge", "Ravenclaw", 1, timedelta(minutes=5))

    five = await aggregator.leaderboard(TimeWindow.FIVE_MINUTES, now=NOW)
    hour = await aggregator.leaderboard(TimeWindow.ONE_HOUR, now=NOW)
    everything = await aggregator.leaderboard(TimeWindow.ALL, now=NOW)

    # Bound is inclusive
    assert summary(five) == [("Gryffindor", 10, 1), ("Ravenclaw", 1, 1)]
    assert summary(hour) == [("Gryffindor", 15, 2), ("Ravenclaw", 1, 1)]
    assert summary(everything) == [
        ("Slytherin", 50, 1),
        ("Gryffindor", 15, 2),
        ("Ravenclaw", 1, 1),
    ]


@pytest.mark.asyncio
async def test_ties_ordered_by_category(store, aggregator):
    await add(store, "a", "Slytherin", 10, timedelta(seconds=1))
    await add(store, "b", "Hufflepuff", 10, timedelta(seconds=2))
    await add(store, "c", "Gryffindor", 10, timedelta(seconds=3))
    await add(store, "d", "Ravenclaw", -3, timedelta(seconds=4))

    rows = await aggregator.leaderboard(TimeWindow.ALL, now=NOW)

    assert [r.category for r in rows] == ["Gryffindor", "Hufflepuff", "Slytherin", "Ravenclaw"]


@pytest.mark.asyncio
async def test_unreachable_database_raises_storage_unavailable(broken_session_factory):
    aggregator = Aggregator(broken_session_factory)

    with pytest.raises(StorageUnavailable):
        await aggregator.leaderboard(TimeWindow.ALL, now=NOW)
