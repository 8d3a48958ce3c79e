# Component access for route handlers

from fastapi import Request, WebSocket

from leaderboard.services.aggregator import Aggregator
from leaderboard.services.ingestion import IngestionService
from leaderboard.services.notifier import Notifier
from leaderboard.services.producer import ProducerSupervisor
from leaderboard.services.record_store import RecordStore


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_aggregator(request: Request) -> Aggregator:
    return request.app.state.aggregator


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion


def get_supervisor(request: Request) -> ProducerSupervisor:
    return request.app.state.supervisor


def get_notifier(websocket: WebSocket) -> Notifier:
    return websocket.app.state.notifier
