"""
Buildings dataset loader.

The dataset is a JSON array of building records as served by the campus
buildings web service:

    {"id": "...", "name": "Burruss Hall", "latitude": 37.2288, "longitude": -80.4235,
     "imageUrl": "...", "descriptionUrl": "..."}

Parsing is fallible per record: a record without usable coordinates raises
`MalformedRecordError`, and the batch helpers collect those as `RecordError`s
instead of aborting. The dataset itself comes from a local JSON file when one
is configured, otherwise from the web service through the on-disk cache.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import httpx
from pydantic import ValidationError

from artour.config.settings import Settings
from artour.core.cache import FileCache
from artour.core.env import resolve_project_path
from artour.core.geo import GeoPoint
from artour.core.http import get_json
from artour.domain.models import Building, RecordError

logger = logging.getLogger(__name__)

DATASET_CACHE_NAMESPACE = "datasets"


class MalformedRecordError(ValueError):
    """A building record that cannot be turned into a `Building`."""

    def __init__(self, reason: str, *, record_id: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.record_id = record_id


@dataclass
class DatasetLoad:
    """Parsed dataset plus the records that were skipped."""

    buildings: list[Building] = field(default_factory=list)
    errors: list[RecordError] = field(default_factory=list)
    source: str = ""


def _coordinate(raw: Mapping[str, Any], key: str, record_id: str | None) -> float:
    if key not in raw or raw[key] is None:
        raise MalformedRecordError(f"missing {key}", record_id=record_id)
    value = raw[key]
    if isinstance(value, bool):
        raise MalformedRecordError(f"{key} is not a number: {value!r}", record_id=record_id)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"{key} is not a number: {value!r}", record_id=record_id) from None
    if not math.isfinite(number):
        raise MalformedRecordError(f"{key} is not finite: {value!r}", record_id=record_id)
    return number


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def record_id_of(raw: Any) -> str | None:
    """Best-effort identifier of a raw record, for error reports."""
    if isinstance(raw, Building):
        return raw.id
    if not isinstance(raw, Mapping):
        return None
    for key in ("id", "name"):
        value = raw.get(key)
        if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value).strip():
            return str(value).strip()
    return None


def parse_building(raw: Building | Mapping[str, Any]) -> Building:
    """Turn one dataset record into a `Building`.

    Records without an explicit `id` fall back to their `name`, since the public
    dataset carries no identifier field.

    Raises:
        MalformedRecordError: If coordinates or the name are missing or invalid.
    """
    if isinstance(raw, Building):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedRecordError(f"record is not an object: {type(raw).__name__}")

    record_id = record_id_of(raw)
    name = _optional_str(raw, "name")
    if name is None:
        raise MalformedRecordError("missing name", record_id=record_id)

    location = GeoPoint(
        lat=_coordinate(raw, "latitude", record_id),
        lon=_coordinate(raw, "longitude", record_id),
    )
    try:
        return Building(
            id=record_id or name,
            name=name,
            location=location,
            image_url=_optional_str(raw, "imageUrl"),
            description_url=_optional_str(raw, "descriptionUrl"),
        )
    except ValidationError as exc:
        reason = "; ".join(str(e.get("msg", "")) for e in exc.errors())
        raise MalformedRecordError(reason, record_id=record_id) from None


def parse_buildings(records: Iterable[Any]) -> tuple[list[Building], list[RecordError]]:
    """Parse every record, collecting failures instead of raising."""
    buildings: list[Building] = []
    errors: list[RecordError] = []
    for index, raw in enumerate(records):
        try:
            buildings.append(parse_building(raw))
        except MalformedRecordError as exc:
            logger.warning("Skipping building record #%s (%s): %s", index, exc.record_id, exc.reason)
            errors.append(RecordError(index=index, record_id=exc.record_id, reason=exc.reason))
    return buildings, errors


def _as_record_list(payload: Any, source: str) -> list[Any]:
    if not isinstance(payload, list):
        raise ValueError(f"Invalid buildings dataset from {source}; expected a JSON array.")
    return payload


def load_buildings(path: str | Path) -> DatasetLoad:
    """Load and parse a local buildings JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    buildings, errors = parse_buildings(_as_record_list(payload, str(resolved)))
    return DatasetLoad(buildings=buildings, errors=errors, source=str(resolved))


def fetch_dataset_payload(
    settings: Settings,
    cache: FileCache,
    *,
    transport: httpx.BaseTransport | None = None,
) -> list[Any]:
    """Return the raw dataset, from the cache when fresh, else from the web service.

    A failed download falls back to an expired cached copy when one exists.
    """
    ds = settings.dataset

    def _download() -> list[Any]:
        logger.info("Downloading buildings dataset from %s", ds.url)
        payload = get_json(ds.url, timeout_seconds=ds.http_timeout_seconds, transport=transport)
        return _as_record_list(payload, ds.url)

    payload = cache.get_or_set(
        DATASET_CACHE_NAMESPACE,
        ds.cache_key,
        _download,
        ttl_seconds=ds.cache_ttl_seconds,
        stale_if_error=True,
        stale_predicate=lambda exc: isinstance(exc, httpx.HTTPError),
    )
    return _as_record_list(payload, ds.cache_key)


def build_cache(settings: Settings) -> FileCache:
    return FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


def load_dataset(
    settings: Settings,
    *,
    cache: FileCache | None = None,
    transport: httpx.BaseTransport | None = None,
) -> DatasetLoad:
    """Load the configured dataset: local file if set, otherwise the cached web service."""
    if settings.dataset.path:
        return load_buildings(settings.dataset.path)

    cache = cache or build_cache(settings)
    payload = fetch_dataset_payload(settings, cache, transport=transport)
    buildings, errors = parse_buildings(payload)
    return DatasetLoad(buildings=buildings, errors=errors, source=settings.dataset.url)
