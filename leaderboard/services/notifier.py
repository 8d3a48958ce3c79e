"""
Broadcast channel for change notifications.

Subscribers are opaque handles exposing an async ``send_json(message)``;
FastAPI/Starlette ``WebSocket`` objects qualify as-is. Delivery is best
effort: a failed send is logged, never raised, and the handle is dropped once
the fan-out has finished.
"""

import asyncio
from typing import Any, Dict, Protocol, Set

import structlog

logger = structlog.get_logger()


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None:
        ...


class Notifier:
    """Registry of live subscribers with fan-out broadcast"""

    def __init__(self) -> None:
        self._subscribers: Set[Subscriber] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, handle: Subscriber) -> None:
        async with self._lock:
            self._subscribers.add(handle)
            count = len(self._subscribers)
        logger.info("subscriber_connected", subscribers=count)

    async def unsubscribe(self, handle: Subscriber) -> None:
        """Remove a handle; unknown handles are ignored"""
        async with self._lock:
            if handle not in self._subscribers:
                return
            self._subscribers.discard(handle)
            count = len(self._subscribers)
        logger.info("subscriber_disconnected", subscribers=count)

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """
        Send a message to every current subscriber.

        Returns the number of successful deliveries.
        """
        async with self._lock:
            targets = list(self._subscribers)

        if not targets:
            return 0

        results = await asyncio.gather(
            *(handle.send_json(message) for handle in targets),
            return_exceptions=True
        )

        failed = []
        for handle, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning("broadcast_send_failed", error=repr(result))
                failed.append(handle)

        # Prune failed handles
        for handle in failed:
            await self.unsubscribe(handle)

        delivered = len(targets) - len(failed)
        logger.debug("broadcast_sent", message_type=message.get("type"), delivered=delivered)
        return delivered
