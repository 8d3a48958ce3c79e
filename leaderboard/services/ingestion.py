from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError
import structlog

from leaderboard.core.exceptions import ValidationError
from leaderboard.schemas.point_event import PointEventCreate, PointEventResponse
from leaderboard.services.notifier import Notifier
from leaderboard.services.record_store import RecordStore

logger = structlog.get_logger()


def validate_event(raw_event: Mapping[str, Any]) -> PointEventCreate:
    """Validate a raw payload, generating an id when absent"""
    if not isinstance(raw_event, Mapping):
        raise ValidationError("Event payload must be an object")
    try:
        return PointEventCreate.model_validate(dict(raw_event))
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid event payload", details=errors) from e


class IngestionService:
    """Validates, persists and announces point events"""

    def __init__(self, store: RecordStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier

    async def ingest(self, raw_event: Mapping[str, Any]) -> PointEventResponse:
        """
        Ingest one event.

        Broadcasts exactly one ``new_point`` message on success; validation,
        conflict and storage errors propagate without a broadcast.
        """
        event = validate_event(raw_event)
        row = await self.store.insert(event)
        stored = PointEventResponse.model_validate(row)

        logger.info(
            "point_event_ingested",
            event_id=stored.id,
            category=stored.category,
            points=stored.points
        )

        await self.notifier.broadcast({
            "type": "new_point",
            "data": stored.model_dump(mode="json")
        })

        return stored
