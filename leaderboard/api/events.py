from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Query, status

from leaderboard.core.config import settings
from leaderboard.core.dependencies import get_ingestion_service, get_record_store
from leaderboard.schemas.point_event import EventIngestResponse, PointEventResponse
from leaderboard.services.ingestion import IngestionService
from leaderboard.services.record_store import RecordStore

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventIngestResponse, status_code=status.HTTP_201_CREATED)
async def submit_event(
        payload: Dict[str, Any] = Body(..., examples=[{
            "id": "e1",
            "category": "Gryffindor",
            "points": 10,
            "timestamp": "2024-02-01T10:00:00Z"
        }]),
        ingestion: IngestionService = Depends(get_ingestion_service)
):
    """
    Ingest a single point event.

    - **id**: optional, generated when absent
    - **category**: house the points are awarded to
    - **points**: signed integer
    - **timestamp**: when the points were awarded (ISO-8601)

    Connected WebSocket clients receive a `new_point` message on success.
    """
    stored = await ingestion.ingest(payload)
    return EventIngestResponse(data=stored)


@router.get("/recent", response_model=List[PointEventResponse])
async def recent_events(
        limit: int = Query(
            default=settings.recent_events_default_limit,
            ge=1,
            le=100,
            description="Number of events to return"
        ),
        store: RecordStore = Depends(get_record_store)
):
    """Most recent events, newest first."""
    rows = await store.recent(limit)
    return [PointEventResponse.model_validate(row) for row in rows]
