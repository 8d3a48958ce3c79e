"""
Data generator supervision.

An `EventSource` yields newline-delimited JSON event records. The
`ProducerSupervisor` owns at most one running source, pumps each line into the
ingestion service and reports whether the source is still producing. A source
that ends on its own (process exit, EOF) flips the supervisor back to
``Stopped`` without any caller action.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Sequence
import asyncio
import json

import structlog

from leaderboard.core.exceptions import (
    ConflictError,
    MalformedProducerLine,
    StorageUnavailable,
    SubprocessSpawnError,
    ValidationError,
)
from leaderboard.services.ingestion import IngestionService

logger = structlog.get_logger()


class GeneratorState(str, Enum):
    STOPPED = "Stopped"
    RUNNING = "Running"


def parse_producer_line(line: str) -> Dict[str, Any]:
    """Decode one output line into an event payload"""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedProducerLine(line, f"invalid JSON ({e.msg})") from e
    if not isinstance(payload, dict):
        raise MalformedProducerLine(line, "expected a JSON object")
    return payload


class EventSource(ABC):
    """Something that can be started, stopped and read line by line"""

    @property
    @abstractmethod
    def running(self) -> bool:
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop producing; must be safe to call repeatedly"""

    @abstractmethod
    async def readline(self) -> Optional[str]:
        """Next line, or None once the source is exhausted"""


class SubprocessEventSource(EventSource):
    """Runs an external command and reads events from its stdout"""

    def __init__(
            self,
            command: Sequence[str],
            cwd: Optional[str] = None,
            stop_timeout: float = 5.0
    ):
        self.command = list(command)
        self.cwd = cwd
        self.stop_timeout = stop_timeout
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stderr_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    async def start(self) -> None:
        if not self.command:
            raise SubprocessSpawnError("No data generator command configured")
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                cwd=self.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            logger.error("generator_spawn_failed", command=self.command, error=str(e))
            raise SubprocessSpawnError(f"Failed to start data generator: {e}") from e

        self._stderr_task = asyncio.create_task(self._drain_stderr(self._process))
        logger.info("generator_process_started", pid=self._process.pid, command=self.command)

    async def readline(self) -> Optional[str]:
        process = self._process
        if process is None or process.stdout is None:
            return None
        try:
            line = await process.stdout.readline()
        except ValueError as e:
            # Line exceeded the stream buffer limit; the reader has discarded it
            raise MalformedProducerLine("", f"line too long ({e})") from e
        if not line:
            return None
        return line.decode("utf-8", errors="replace")

    async def stop(self) -> None:
        process = self._process
        if process is None:
            return

        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=self.stop_timeout)
            except asyncio.TimeoutError:
                logger.warning("generator_kill_after_timeout", pid=process.pid, timeout=self.stop_timeout)
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
        else:
            await process.wait()

        if self._stderr_task is not None:
            await self._stderr_task

        if self._process is process:
            self._process = None
            self._stderr_task = None
            logger.info("generator_process_exited", pid=process.pid, returncode=process.returncode)

    async def _drain_stderr(self, process: asyncio.subprocess.Process) -> None:
        if process.stderr is None:
            return
        while True:
            line = await process.stderr.readline()
            if not line:
                break
            logger.warning(
                "generator_stderr",
                pid=process.pid,
                output=line.decode("utf-8", errors="replace").rstrip()
            )


class ProducerSupervisor:
    """Starts, stops and watches a single event source"""

    def __init__(self, source: EventSource, ingestion: IngestionService):
        self.source = source
        self.ingestion = ingestion
        self._lock = asyncio.Lock()
        self._pump: Optional[asyncio.Task] = None

    def status(self) -> GeneratorState:
        if self._pump is not None and not self._pump.done():
            return GeneratorState.RUNNING
        return GeneratorState.STOPPED

    async def start(self) -> bool:
        """Start the source; returns False when it was already running"""
        async with self._lock:
            if self.status() is GeneratorState.RUNNING:
                logger.info("generator_already_running")
                return False

            await self.source.start()
            self._pump = asyncio.create_task(self._pump_lines())
            logger.info("generator_started")
            return True

    async def stop(self) -> bool:
        """Stop the source; returns False when nothing was running"""
        async with self._lock:
            pump = self._pump
            if pump is None or pump.done():
                return False

            await self.source.stop()
            await pump
            logger.info("generator_stopped")
            return True

    async def handle_line(self, line: str) -> bool:
        """Ingest one output line; bad lines are logged and dropped"""
        text = line.strip()
        if not text:
            return False

        try:
            payload = parse_producer_line(text)
            await self.ingestion.ingest(payload)
            return True
        except (MalformedProducerLine, ValidationError) as e:
            logger.warning("producer_line_malformed", error=e.message, details=e.details, line=text[:200])
        except ConflictError as e:
            logger.warning("producer_event_duplicate", event_id=e.event_id)
        except StorageUnavailable as e:
            logger.error("producer_event_not_stored", error=e.message)
        except Exception:
            logger.exception("producer_line_failed", line=text[:200])
        return False

    async def _pump_lines(self) -> None:
        ingested = 0
        try:
            while True:
                try:
                    line = await self.source.readline()
                except MalformedProducerLine as e:
                    logger.warning("producer_line_malformed", error=e.message)
                    continue
                if line is None:
                    break
                if await self.handle_line(line):
                    ingested += 1
        except Exception:
            logger.exception("producer_pump_failed")
        finally:
            await self.source.stop()
            logger.info("producer_pump_finished", ingested=ingested)
