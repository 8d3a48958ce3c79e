# Data generator control

from fastapi import APIRouter, Depends

from leaderboard.core.dependencies import get_supervisor
from leaderboard.schemas.generator import GeneratorActionResponse, GeneratorStatusResponse
from leaderboard.services.producer import GeneratorState, ProducerSupervisor

router = APIRouter(prefix="/generator", tags=["generator"])


@router.post("/start", response_model=GeneratorActionResponse)
async def start_generator(supervisor: ProducerSupervisor = Depends(get_supervisor)):
    """Start the data generator; no-op when it is already running."""
    started = await supervisor.start()
    message = "Data generator started" if started else "Data generator already running"
    return GeneratorActionResponse(message=message)


@router.post("/stop", response_model=GeneratorActionResponse)
async def stop_generator(supervisor: ProducerSupervisor = Depends(get_supervisor)):
    """Stop the data generator; no-op when it is not running."""
    stopped = await supervisor.stop()
    message = "Data generator stopped" if stopped else "Data generator not running"
    return GeneratorActionResponse(message=message)


@router.get("/status", response_model=GeneratorStatusResponse)
async def generator_status(supervisor: ProducerSupervisor = Depends(get_supervisor)):
    state = supervisor.status()
    return GeneratorStatusResponse(
        running=state is GeneratorState.RUNNING,
        message=state.value
    )
