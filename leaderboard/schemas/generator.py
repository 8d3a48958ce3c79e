from pydantic import BaseModel


class GeneratorActionResponse(BaseModel):
    """Acknowledgement for start/stop"""
    success: bool = True
    message: str


class GeneratorStatusResponse(BaseModel):
    """Current data generator state"""
    running: bool
    message: str
