"""Validation of incoming sensor readings and read-path query parameters.

Both paths are driven by ordered rule lists so the first failing field of a
malformed request is always the same one. Write payloads are strict about
types; query strings arrive as text and are parsed before range checks.
Unknown keys are ignored on both paths.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from models.records import METRIC_FIELDS, MetricField, SensorReading

_MISSING = object()


class ReadingValidationError(ValueError):
    """Client-supplied data failed a type, range or format check."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass(frozen=True)
class ReadingFilters:
    """Validated read-path filters."""

    sensor_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    thresholds: Tuple[Tuple[str, float], ...] = ()
    metrics: Tuple[str, ...] = ()
    statistic: Optional[str] = None


@dataclass(frozen=True)
class FieldRule:
    """A single step of write-path validation."""

    name: str
    required: bool
    convert: Callable[[Any], Any]
    message: str
    aliases: Tuple[str, ...] = ()


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into an aware UTC datetime."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError("Timestamp out of range") from exc
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc
    else:
        raise ValueError("Timestamp must be a string or a number.")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError("Timestamp out of range") from exc


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _to_sensor_id(value: Any) -> int:
    if not _is_number(value):
        raise ValueError("sensor_id must be numeric")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("sensor_id must be integral")
        value = int(value)
    if value < 0:
        raise ValueError("sensor_id must be non-negative")
    return value


def _metric_converter(metric: MetricField) -> Callable[[Any], float]:
    def convert(value: Any) -> float:
        if not _is_number(value) or not metric.contains(value):
            raise ValueError(metric.error_message)
        try:
            return float(value)
        except OverflowError as exc:
            raise ValueError(metric.error_message) from exc

    return convert


WRITE_RULES: Tuple[FieldRule, ...] = (
    FieldRule(
        name="sensor_id",
        required=True,
        convert=_to_sensor_id,
        message="Invalid sensor_id, must be a non-negative integer.",
        aliases=("sensorId",),
    ),
    FieldRule(
        name="date",
        required=True,
        convert=parse_timestamp,
        message="Invalid date format.",
        aliases=("observedAt", "observed_at"),
    ),
) + tuple(
    FieldRule(
        name=metric.name,
        required=metric.required,
        convert=_metric_converter(metric),
        message=metric.error_message,
        aliases=metric.aliases,
    )
    for metric in METRIC_FIELDS
)


def _lookup(payload: Mapping[str, Any], name: str, aliases: Tuple[str, ...]) -> Any:
    for key in (name, *aliases):
        if key in payload:
            return payload[key]
    return _MISSING


def validate_reading(payload: Mapping[str, Any]) -> SensorReading:
    """Validate a write payload and return an immutable reading.

    Rules run in ``WRITE_RULES`` order and stop at the first failure. A
    ``None`` value for an optional field counts as absent.
    """

    values: Dict[str, Any] = {}
    for rule in WRITE_RULES:
        raw = _lookup(payload, rule.name, rule.aliases)
        if raw is _MISSING or raw is None:
            if rule.required:
                raise ReadingValidationError(rule.name, rule.message)
            continue
        try:
            values[rule.name] = rule.convert(raw)
        except ValueError as exc:
            raise ReadingValidationError(rule.name, rule.message) from exc
    return SensorReading(**values)


def _parse_query_float(raw: str, metric: MetricField) -> float:
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise ReadingValidationError(metric.name, metric.error_message) from exc
    if not math.isfinite(value) or not metric.contains(value):
        raise ReadingValidationError(metric.name, metric.error_message)
    return value


_CANONICAL_METRICS: Dict[str, str] = {
    alias: metric.name for metric in METRIC_FIELDS for alias in metric.aliases
}


def _split_metrics(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    names = (name.strip() for name in raw.split(","))
    return tuple(_CANONICAL_METRICS.get(name, name) for name in names if name)


def validate_filters(params: Mapping[str, str]) -> ReadingFilters:
    """Validate read-path query parameters into :class:`ReadingFilters`."""

    sensor_id: Optional[int] = None
    raw_sensor = params.get("sensor_id") or params.get("sensorId")
    if raw_sensor:
        try:
            sensor_id = int(raw_sensor.strip())
        except ValueError as exc:
            raise ReadingValidationError(
                "sensor_id", "Invalid sensor_id, must be an integer."
            ) from exc

    dates: Dict[str, Optional[datetime]] = {"startDate": None, "endDate": None}
    for name in dates:
        raw_date = params.get(name)
        if not raw_date:
            continue
        try:
            dates[name] = parse_timestamp(raw_date)
        except ValueError as exc:
            raise ReadingValidationError(name, f"Invalid {name} format.") from exc

    thresholds: List[Tuple[str, float]] = []
    for metric in METRIC_FIELDS:
        raw = _lookup(params, metric.name, metric.aliases)
        if raw is _MISSING:
            continue
        thresholds.append((metric.name, _parse_query_float(raw, metric)))

    statistic = (params.get("statistic") or "").strip() or None
    return ReadingFilters(
        sensor_id=sensor_id,
        start_date=dates["startDate"],
        end_date=dates["endDate"],
        thresholds=tuple(thresholds),
        metrics=_split_metrics(params.get("metrics")),
        statistic=statistic,
    )
