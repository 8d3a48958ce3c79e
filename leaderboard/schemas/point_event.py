# Pydantic schemas

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, StrictInt, field_validator

# Range of the points column (32-bit INTEGER)
POINTS_MIN = -2**31
POINTS_MAX = 2**31 - 1


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PointEventCreate(BaseModel):
    """Schema for an incoming point event"""

    id: Optional[str] = Field(default=None, min_length=1, max_length=255, validate_default=True)
    category: str = Field(..., min_length=1, max_length=255)
    points: StrictInt = Field(..., ge=POINTS_MIN, le=POINTS_MAX)
    timestamp: datetime

    @field_validator('id')
    @classmethod
    def generate_missing_id(cls, v: Optional[str]) -> str:
        if v is None:
            return str(uuid4())
        return v

    @field_validator('category')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Field cannot be empty or whitespace')
        return v.strip()

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)


class PointEventResponse(BaseModel):
    """Stored point event"""

    id: str
    category: str
    points: int
    timestamp: datetime

    model_config = {"from_attributes": True}

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes
        return as_utc(v)


class EventIngestResponse(BaseModel):
    """Response for a single ingested event"""

    success: bool = True
    data: PointEventResponse
