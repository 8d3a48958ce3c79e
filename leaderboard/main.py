from contextlib import asynccontextmanager
from typing import Optional
import time

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from leaderboard.core.config import Settings, settings as default_settings
from leaderboard.core.database import build_engine, build_session_factory, init_models
from leaderboard.core.exceptions import (
    ConflictError,
    LeaderboardError,
    StorageUnavailable,
    SubprocessSpawnError,
    ValidationError,
)
from leaderboard.api import events, generator, standings, websocket
from leaderboard.services.aggregator import Aggregator
from leaderboard.services.ingestion import IngestionService
from leaderboard.services.notifier import Notifier
from leaderboard.services.producer import ProducerSupervisor, SubprocessEventSource
from leaderboard.services.record_store import RecordStore

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ]
)

logger = structlog.get_logger()

ERROR_STATUS = {
    ValidationError: 422,
    ConflictError: status.HTTP_409_CONFLICT,
    StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    SubprocessSpawnError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def leaderboard_error_handler(request: Request, exc: LeaderboardError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.warning(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
        status_code=status_code
    )

    content = {"success": False, "error": exc.message}
    if isinstance(exc, ValidationError) and exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=status_code, content=content)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build components at startup, tear them down on shutdown"""
        engine = build_engine(settings)
        await init_models(engine)
        session_factory = build_session_factory(engine)

        notifier = Notifier()
        store = RecordStore(session_factory)
        ingestion = IngestionService(store, notifier)
        source = SubprocessEventSource(
            settings.generator_command,
            cwd=settings.generator_cwd,
            stop_timeout=settings.generator_stop_timeout
        )

        app.state.notifier = notifier
        app.state.record_store = store
        app.state.aggregator = Aggregator(session_factory)
        app.state.ingestion = ingestion
        app.state.supervisor = ProducerSupervisor(source, ingestion)

        logger.info("application_startup", app_name=settings.app_name)
        try:
            yield
        finally:
            await app.state.supervisor.stop()
            await engine.dispose()
            logger.info("application_shutdown")

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"]
    )

    # Middleware for logging requests
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2)
        )

        return response

    app.add_exception_handler(LeaderboardError, leaderboard_error_handler)

    # Include routers
    app.include_router(events.router)
    app.include_router(standings.router)
    app.include_router(generator.router)
    app.include_router(websocket.router)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "subscribers": request.app.state.notifier.subscriber_count,
            "generator": request.app.state.supervisor.status().value
        }

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "House Points Leaderboard API",
            "endpoints": {
                "health": "/health",
                "events": "/events",
                "recent_events": "/events/recent",
                "leaderboard": "/leaderboard",
                "generator": "/generator/status",
                "websocket": "/ws",
                "docs": "/docs"
            }
        }

    return app


app = create_app()
