from __future__ import annotations

from typing import Iterable

from datastore.mock_documents import build_default_collection
from services.readings import build_default_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    collection_path = tmp_path / "readings.json"

    monkeypatch.setenv("READINGS_COLLECTION_NAME", "custom-collection")
    monkeypatch.setenv("READINGS_PERSISTENCE_PATH", str(collection_path))
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    caches = (get_settings, build_default_collection, build_default_service)
    _clear_caches(caches)

    try:
        settings = get_settings()
        service = build_default_service()

        assert settings.log_level == "DEBUG"
        assert service.collection is build_default_collection()
        assert service.collection.name == "custom-collection"
        assert service.collection.persistence_path == collection_path
    finally:
        _clear_caches(caches)


def test_blank_persistence_path_disables_persistence(monkeypatch) -> None:
    monkeypatch.setenv("READINGS_PERSISTENCE_PATH", "   ")
    monkeypatch.delenv("READINGS_COLLECTION_NAME", raising=False)

    caches = (get_settings, build_default_collection)
    _clear_caches(caches)

    try:
        collection = build_default_collection()

        assert collection.name == "weather_sensors"
        assert collection.persistence_path is None
    finally:
        _clear_caches(caches)
