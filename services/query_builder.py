"""Translate validated read filters into store predicates and aggregations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from services.aggregator import Aggregator, ComputedField
from services.validator import ReadingFilters

GROUP_KEY = "sensor_id"


@dataclass(frozen=True)
class AggregationSpec:
    """A grouped aggregation over the readings matching ``predicate``."""

    predicate: Dict[str, Any]
    group_key: str
    computed_fields: Tuple[ComputedField, ...]


def build_predicate(filters: ReadingFilters) -> Dict[str, Any]:
    """Combine every active filter into a single AND predicate.

    Metric filters are thresholds: ``humidity=50`` selects readings with
    humidity of at least 50, never an exact match.
    """

    predicate: Dict[str, Any] = {}
    if filters.sensor_id is not None:
        predicate["sensor_id"] = filters.sensor_id

    date_range: Dict[str, Any] = {}
    if filters.start_date is not None:
        date_range["$gte"] = filters.start_date
    if filters.end_date is not None:
        date_range["$lte"] = filters.end_date
    if date_range:
        predicate["date"] = date_range

    for metric, threshold in filters.thresholds:
        predicate[metric] = {"$gte": threshold}
    return predicate


def build_aggregation(
    filters: ReadingFilters, aggregator: Optional[Aggregator] = None
) -> Optional[AggregationSpec]:
    """Return an aggregation when both metrics and a statistic were requested."""

    if not filters.metrics or not filters.statistic:
        return None
    aggregator = aggregator or Aggregator()
    return AggregationSpec(
        predicate=build_predicate(filters),
        group_key=GROUP_KEY,
        computed_fields=tuple(
            aggregator.computed_fields(filters.metrics, filters.statistic)
        ),
    )
