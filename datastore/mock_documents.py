from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from pydantic import ValidationError

from app.schemas import StoredReading
from models.records import SensorReading
from services.aggregator import Aggregator, ComputedField
from settings import get_settings

logger = logging.getLogger(__name__)

Predicate = Mapping[str, Any]

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "$eq": lambda field, bound: field == bound,
    "$gt": lambda field, bound: field > bound,
    "$gte": lambda field, bound: field >= bound,
    "$lt": lambda field, bound: field < bound,
    "$lte": lambda field, bound: field <= bound,
}


class StorageError(Exception):
    """Raised when the collection cannot complete an operation."""


class ConstraintViolation(StorageError):
    """Raised when an insert would break the unique (sensor_id, date) index."""


def _unique_key(sensor_id: int, date: datetime) -> Tuple[int, str]:
    return sensor_id, date.astimezone(timezone.utc).isoformat()


def _matches_condition(value: Any, condition: Any) -> bool:
    if not isinstance(condition, Mapping):
        return value == condition
    for operator, bound in condition.items():
        compare = _OPERATORS.get(operator)
        if compare is None:
            raise StorageError(f"Unsupported query operator {operator!r}.")
        if value is None:
            return False
        try:
            if not compare(value, bound):
                return False
        except TypeError:
            return False
    return True


def matches(document: Mapping[str, Any], predicate: Predicate) -> bool:
    """Return True when every condition in ``predicate`` holds for ``document``."""
    return all(
        _matches_condition(document.get(field), condition)
        for field, condition in predicate.items()
    )


class MockDocumentCollection:
    """In-process stand-in for a document store collection of sensor readings."""

    def __init__(
        self,
        name: str,
        persistence_path: Optional[Path] = None,
        aggregator: Optional[Aggregator] = None,
    ) -> None:
        self.name = name
        self._documents: List[StoredReading] = []
        self._unique_index: Dict[Tuple[int, str], str] = {}
        self.persistence_path = persistence_path
        self.aggregator = aggregator or Aggregator()
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def insert(self, reading: SensorReading) -> StoredReading:
        key = _unique_key(reading.sensor_id, reading.date)
        stored = StoredReading.from_reading(
            reading,
            record_id=uuid4().hex,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            existing = self._unique_index.get(key)
            if existing is not None:
                raise ConstraintViolation(
                    f"E11000 duplicate key error collection: {self.name} index: "
                    f"sensor_id_1_date_1 dup key: {{ sensor_id: {key[0]}, date: {key[1]} }}"
                )
            self._documents.append(stored)
            self._unique_index[key] = stored.id
            try:
                self._persist()
            except OSError as exc:
                self._documents.pop()
                del self._unique_index[key]
                raise StorageError(f"Failed to persist collection {self.name!r}: {exc}") from exc
            return stored.model_copy(deep=True)

    def find(self, predicate: Predicate) -> list[StoredReading]:
        """Return deep copies of every document matching ``predicate``."""

        with self._lock:
            return [
                document.model_copy(deep=True)
                for document in self._documents
                if matches(document.model_dump(), predicate)
            ]

    def aggregate(
        self,
        predicate: Predicate,
        group_key: str,
        computed_fields: Sequence[ComputedField],
    ) -> list[dict[str, Any]]:
        with self._lock:
            documents = [
                dumped
                for dumped in (document.model_dump() for document in self._documents)
                if matches(dumped, predicate)
            ]
        return self.aggregator.aggregate(documents, group_key, computed_fields)

    def count(self) -> int:
        with self._lock:
            return len(self._documents)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = [document.model_dump(mode="json") for document in self._documents]
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, ValueError):
            logger.warning(
                "Ignoring unreadable collection file %s", self.persistence_path
            )
            data = []

        if not isinstance(data, list):
            logger.warning(
                "Ignoring collection file %s without a list of documents",
                self.persistence_path,
            )
            data = []

        for payload in data:
            try:
                document = StoredReading.model_validate(payload)
            except ValidationError as exc:
                logger.warning(
                    "Skipping unreadable document in %s",
                    self.persistence_path,
                    extra={"error": str(exc)},
                )
                continue
            self._documents.append(document)
            self._unique_index[_unique_key(document.sensor_id, document.date)] = document.id


@lru_cache
def build_default_collection(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> MockDocumentCollection:
    settings = get_settings()
    collection_name = settings.collection_name if name is None else name
    collection_path = settings.collection_persistence_path if path is None else path
    persistence = Path(collection_path) if collection_path else None
    return MockDocumentCollection(name=collection_name, persistence_path=persistence)
