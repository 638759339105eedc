"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.records import SensorReading


class StoredReading(BaseModel):
    """A persisted sensor reading together with server-assigned metadata."""

    id: str = Field(..., description="Identifier assigned by the store on insert.")
    sensor_id: int = Field(..., ge=0)
    date: datetime = Field(..., description="Instant the reading was observed.")
    temperature: float
    humidity: float
    wind_speed: float
    pressure: Optional[float] = None
    precipitation: Optional[float] = None
    wind_direction: Optional[float] = None
    solar_radiation: Optional[float] = None
    uv_index: Optional[float] = None
    visibility: Optional[float] = None
    cloud_cover: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_reading(
        cls, reading: SensorReading, *, record_id: str, created_at: datetime
    ) -> "StoredReading":
        return cls(
            id=record_id,
            created_at=created_at,
            updated_at=created_at,
            **reading.to_document(),
        )


class ErrorResponse(BaseModel):
    """Body returned for every rejected request."""

    message: str
    error: Optional[str] = Field(
        default=None, description="Underlying storage detail, when available."
    )
