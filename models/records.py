"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class MetricField:
    """A numeric measurement column and the domain its values must fall in."""

    name: str
    required: bool
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    aliases: Tuple[str, ...] = ()

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    @property
    def error_message(self) -> str:
        if self.maximum is None:
            return f"Invalid {self.name}, must be a non-negative number."
        return (
            f"Invalid {self.name}, must be a number between "
            f"{self.minimum:g} and {self.maximum:g}."
        )


# Ordered as readings are validated; the first failing field is reported.
METRIC_FIELDS: Tuple[MetricField, ...] = (
    MetricField("temperature", required=True, minimum=-50, maximum=50),
    MetricField("humidity", required=True, minimum=0, maximum=100),
    MetricField("wind_speed", required=True, minimum=0, aliases=("windSpeed",)),
    MetricField("pressure", required=False, minimum=800, maximum=1100),
    MetricField("precipitation", required=False, minimum=0),
    MetricField("wind_direction", required=False, minimum=0, maximum=360, aliases=("windDirection",)),
    MetricField("solar_radiation", required=False, minimum=0, aliases=("solarRadiation",)),
    MetricField("uv_index", required=False, minimum=0, maximum=11, aliases=("uvIndex",)),
    MetricField("visibility", required=False, minimum=0),
    MetricField("cloud_cover", required=False, minimum=0, maximum=100, aliases=("cloudCover",)),
)

METRIC_NAMES: Tuple[str, ...] = tuple(field.name for field in METRIC_FIELDS)


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single validated observation from one sensor at one instant."""

    sensor_id: int
    date: datetime
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

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)
