from __future__ import annotations

from datetime import datetime, timezone

from services.query_builder import GROUP_KEY, build_aggregation, build_predicate
from services.validator import ReadingFilters


def test_no_filters_matches_everything() -> None:
    assert build_predicate(ReadingFilters()) == {}


def test_sensor_and_closed_date_range() -> None:
    start = datetime(2022, 1, 1, tzinfo=timezone.utc)
    end = datetime(2022, 1, 31, tzinfo=timezone.utc)

    predicate = build_predicate(ReadingFilters(sensor_id=4, start_date=start, end_date=end))

    assert predicate == {"sensor_id": 4, "date": {"$gte": start, "$lte": end}}


def test_open_ended_date_range() -> None:
    end = datetime(2022, 1, 31, tzinfo=timezone.utc)

    assert build_predicate(ReadingFilters(end_date=end)) == {"date": {"$lte": end}}


def test_metric_filters_are_lower_bounds() -> None:
    filters = ReadingFilters(thresholds=(("humidity", 50.0), ("uv_index", 3.0)))

    assert build_predicate(filters) == {
        "humidity": {"$gte": 50.0},
        "uv_index": {"$gte": 3.0},
    }


def test_aggregation_requires_metrics_and_statistic() -> None:
    assert build_aggregation(ReadingFilters(metrics=("temperature",))) is None
    assert build_aggregation(ReadingFilters(statistic="average")) is None


def test_aggregation_names_fields_after_metric_and_statistic() -> None:
    filters = ReadingFilters(
        sensor_id=1,
        metrics=("temperature", "wind_speed"),
        statistic="average",
    )

    spec = build_aggregation(filters)

    assert spec is not None
    assert spec.predicate == {"sensor_id": 1}
    assert spec.group_key == GROUP_KEY == "sensor_id"
    assert [field.name for field in spec.computed_fields] == [
        "temperature_average",
        "wind_speed_average",
    ]
    assert [field.metric for field in spec.computed_fields] == ["temperature", "wind_speed"]


def test_unknown_statistic_yields_no_computed_fields() -> None:
    spec = build_aggregation(ReadingFilters(metrics=("temperature",), statistic="median"))

    assert spec is not None
    assert spec.computed_fields == ()
