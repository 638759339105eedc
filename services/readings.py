"""Orchestration of the write and read paths for sensor readings."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Union

from app.schemas import StoredReading
from datastore.mock_documents import (
    ConstraintViolation,
    MockDocumentCollection,
    StorageError,
    build_default_collection,
)
from services.aggregator import Aggregator
from services.query_builder import build_aggregation, build_predicate
from services.validator import ReadingValidationError, validate_filters, validate_reading

logger = logging.getLogger(__name__)

QueryResult = Union[List[StoredReading], List[Dict[str, Any]]]


class ReadingService:
    """Coordinates validation, query construction and the document collection."""

    def __init__(
        self,
        collection: MockDocumentCollection,
        aggregator: Optional[Aggregator] = None,
    ) -> None:
        self.collection = collection
        self.aggregator = aggregator or Aggregator()

    def record_reading(self, payload: Mapping[str, Any]) -> StoredReading:
        """Validate ``payload`` and insert it.

        Raises :class:`ReadingValidationError` for rejected input and
        :class:`StorageError` (or :class:`ConstraintViolation`) when the
        collection refuses the insert.
        """
        try:
            reading = validate_reading(payload)
        except ReadingValidationError as exc:
            logger.warning(
                "Rejected sensor reading",
                extra={"field": exc.field, "reason": exc.message},
            )
            raise

        try:
            stored = self.collection.insert(reading)
        except ConstraintViolation as exc:
            logger.warning(
                "Duplicate sensor reading",
                extra={"sensor_id": reading.sensor_id, "error": str(exc)},
            )
            raise
        except StorageError as exc:
            logger.error(
                "Failed to store sensor reading",
                extra={"sensor_id": reading.sensor_id, "error": str(exc)},
            )
            raise

        logger.info("Stored sensor reading", extra={"sensor_id": stored.sensor_id})
        return stored

    def query_readings(self, params: Mapping[str, str]) -> QueryResult:
        """Return matching readings, or grouped rows when an aggregation is requested."""
        try:
            filters = validate_filters(params)
        except ReadingValidationError as exc:
            logger.warning(
                "Rejected sensor query",
                extra={"field": exc.field, "reason": exc.message},
            )
            raise

        aggregation = build_aggregation(filters, self.aggregator)
        try:
            if aggregation is None:
                results: QueryResult = self.collection.find(build_predicate(filters))
            else:
                results = self.collection.aggregate(
                    aggregation.predicate,
                    aggregation.group_key,
                    aggregation.computed_fields,
                )
        except StorageError as exc:
            logger.error("Failed to query sensor readings", extra={"error": str(exc)})
            raise

        logger.info(
            "Queried sensor readings",
            extra={
                "sensor_id": filters.sensor_id,
                "metrics": ",".join(filters.metrics) or None,
                "statistic": filters.statistic,
                "row_count": len(results),
            },
        )
        return results


@lru_cache
def build_default_service() -> ReadingService:
    """Factory that wires the service with the default collection."""
    return ReadingService(collection=build_default_collection())
