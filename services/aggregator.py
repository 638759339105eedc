"""Grouped statistics over stored sensor readings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

Reducer = Callable[[Sequence[float]], Optional[float]]


def _minimum(values: Sequence[float]) -> Optional[float]:
    return min(values) if values else None


def _maximum(values: Sequence[float]) -> Optional[float]:
    return max(values) if values else None


def _total(values: Sequence[float]) -> float:
    return math.fsum(values)


def _average(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return math.fsum(values) / len(values)


STATISTICS: Dict[str, Reducer] = {
    "min": _minimum,
    "max": _maximum,
    "sum": _total,
    "average": _average,
}


@dataclass(frozen=True)
class ComputedField:
    """One output column of an aggregation row."""

    name: str
    metric: str
    reducer: Reducer


def _numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def computed_fields(
        self, metrics: Iterable[str], statistic: str
    ) -> List[ComputedField]:
        """Return one computed field per metric, or none for an unknown statistic."""
        reducer = STATISTICS.get(statistic)
        if reducer is None:
            return []
        return [
            ComputedField(name=f"{metric}_{statistic}", metric=metric, reducer=reducer)
            for metric in metrics
        ]

    def aggregate(
        self,
        documents: Iterable[Mapping[str, Any]],
        group_key: str,
        computed_fields: Sequence[ComputedField],
    ) -> List[Dict[str, Any]]:
        groups: Dict[Any, List[Mapping[str, Any]]] = {}
        for document in documents:
            groups.setdefault(document.get(group_key), []).append(document)

        rows: List[Dict[str, Any]] = []
        for key in sorted(groups, key=lambda item: (item is None, item)):
            members = groups[key]
            row: Dict[str, Any] = {group_key: key}
            for computed in computed_fields:
                values = [
                    member[computed.metric]
                    for member in members
                    if _numeric(member.get(computed.metric))
                ]
                row[computed.name] = computed.reducer(values)
            rows.append(row)
        return rows
