import logging

import pytest

from datastore.mock_documents import ConstraintViolation, MockDocumentCollection
from services.readings import ReadingService
from services.validator import ReadingValidationError


@pytest.fixture()
def service() -> ReadingService:
    return ReadingService(collection=MockDocumentCollection(name="test"))


def _payload(**overrides) -> dict:
    payload = {
        "sensor_id": 1,
        "date": "2024-06-01T00:00:00Z",
        "temperature": 18,
        "humidity": 70,
        "wind_speed": 2,
    }
    payload.update(overrides)
    return payload


def test_record_and_query_round_trip(service: ReadingService) -> None:
    stored = service.record_reading(_payload())

    results = service.query_readings({"sensor_id": "1"})

    assert results == [stored]


def test_query_with_metric_threshold(service: ReadingService) -> None:
    service.record_reading(_payload(sensor_id=1, temperature=10))
    service.record_reading(_payload(sensor_id=2, temperature=20))

    results = service.query_readings({"temperature": "15"})

    assert [item.sensor_id for item in results] == [2]
    assert all(item.temperature >= 15 for item in results)


def test_query_aggregation_sum(service: ReadingService) -> None:
    service.record_reading(_payload(precipitation=1.5))
    service.record_reading(_payload(date="2024-06-01T01:00:00Z", precipitation=2.5))

    rows = service.query_readings({"metrics": "precipitation", "statistic": "sum"})

    assert rows == [{"sensor_id": 1, "precipitation_sum": 4.0}]


def test_rejected_reading_is_logged(service: ReadingService, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        with pytest.raises(ReadingValidationError):
            service.record_reading(_payload(humidity=120))

    records = [record for record in caplog.records if record.name == "services.readings"]
    assert records, "Expected the rejection to be logged."
    assert any(getattr(record, "field", None) == "humidity" for record in records)
    assert service.collection.count() == 0


def test_duplicate_reading_is_logged_and_raised(service: ReadingService, caplog) -> None:
    service.record_reading(_payload())

    with caplog.at_level(logging.WARNING):
        with pytest.raises(ConstraintViolation):
            service.record_reading(_payload())

    messages = [record.getMessage() for record in caplog.records if record.name == "services.readings"]
    assert "Duplicate sensor reading" in messages


def test_rejected_query_is_logged(service: ReadingService, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        with pytest.raises(ReadingValidationError):
            service.query_readings({"sensor_id": "abc"})

    assert any(
        getattr(record, "reason", "") == "Invalid sensor_id, must be an integer."
        for record in caplog.records
    )
