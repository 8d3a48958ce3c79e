"""
Pytest configuration and fixtures.

Every test gets its own SQLite database file under ``tmp_path``.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from leaderboard.core.config import Settings
from leaderboard.core.database import build_engine, build_session_factory, init_models
from leaderboard.main import create_app
from leaderboard.services.aggregator import Aggregator
from leaderboard.services.ingestion import IngestionService
from leaderboard.services.notifier import Notifier
from leaderboard.services.producer import EventSource
from leaderboard.services.record_store import RecordStore

DATA_GEN = Path(__file__).resolve().parents[1] / "scripts" / "data_gen.py"


class FakeSubscriber:
    """Collects broadcast messages; can be told to fail on send"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: List[Any] = []

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.messages.append(data)


class FakeEventSource(EventSource):
    """In-memory source; lines are fed by the test, None ends the stream"""

    def __init__(self, lines=()):
        self.preload = list(lines)
        self.starts = 0
        self.stops = 0
        self._queue = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self.starts += 1
        self._running = True
        self._queue = asyncio.Queue()
        for line in self.preload:
            self._queue.put_nowait(line)

    async def feed(self, line: str) -> None:
        await self._queue.put(line)

    async def finish(self) -> None:
        await self._queue.put(None)

    async def readline(self):
        if self._queue is None:
            return None
        line = await self._queue.get()
        if line is None:
            self._running = False
        return line

    async def stop(self) -> None:
        self.stops += 1
        if self._running:
            self._running = False
            self._queue.put_nowait(None)


@pytest.fixture
def fake_subscriber():
    return FakeSubscriber


@pytest.fixture
def fake_source():
    return FakeEventSource


@pytest.fixture
def data_gen_script() -> Path:
    return DATA_GEN


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database and a fast data generator"""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'leaderboard.db'}",
        generator_command=[sys.executable, "-u", str(DATA_GEN), "--interval", "0.05"],
        generator_stop_timeout=5.0
    )


@pytest_asyncio.fixture
async def session_factory(settings):
    engine = build_engine(settings)
    await init_models(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def broken_session_factory(tmp_path):
    """Sessions for a database file whose directory does not exist"""
    engine = build_engine(Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'leaderboard.db'}"
    ))
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> RecordStore:
    return RecordStore(session_factory)


@pytest.fixture
def aggregator(session_factory) -> Aggregator:
    return Aggregator(session_factory)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def ingestion(store, notifier) -> IngestionService:
    return IngestionService(store, notifier)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture
async def api_client(app):
    """Async client with the application lifespan running"""
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client


async def wait_until(predicate, timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll an (optionally async) predicate until it holds or time runs out"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        result = predicate()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            return True
        await asyncio.sleep(interval)
    return False


@pytest.fixture
def wait_for():
    return wait_until
