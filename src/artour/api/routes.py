"""
API routes.

Endpoints:
- POST   `/api/sessions`: start a tour session (configured dataset, or inline records).
- POST   `/api/sessions/{id}/heading`: feed a compass heading reading.
- POST   `/api/sessions/{id}/location`: feed a location sample; returns events + commands.
- DELETE `/api/sessions/{id}`: end a session.
- GET    `/api/dataset/report`: quality report for the configured dataset.
- GET    `/api/settings`: proximity/overlay settings in effect.
"""

from __future__ import annotations

import threading
import uuid
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from artour.catalog.loader import DatasetLoad, load_dataset, parse_buildings
from artour.config.settings import get_settings
from artour.core.geo import GeoPoint
from artour.engine.proximity import ConcurrentUpdateError
from artour.quality.report import build_quality_report
from artour.tour.session import TourSession

router = APIRouter()

_sessions: dict[str, TourSession] = {}
_sessions_lock = threading.Lock()


class CreateSessionRequest(BaseModel):
    buildings: list[Any] | None = None


class HeadingSample(BaseModel):
    heading_deg: float


class LocationSample(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


@lru_cache
def _dataset() -> DatasetLoad:
    return load_dataset(get_settings())


def _session(session_id: str) -> TourSession:
    with _sessions_lock:
        session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


@router.post("/api/sessions")
def create_session(payload: CreateSessionRequest | None = None) -> dict:
    """Start a session over the configured dataset or the records in the body."""
    settings = get_settings()
    if payload is not None and payload.buildings is not None:
        buildings, errors = parse_buildings(payload.buildings)
    else:
        dataset = _dataset()
        buildings, errors = dataset.buildings, dataset.errors

    session = TourSession(settings, buildings, dataset_errors=errors)
    session_id = uuid.uuid4().hex
    with _sessions_lock:
        _sessions[session_id] = session
    return {
        "session_id": session_id,
        "building_count": len(buildings),
        "errors": [e.model_dump() for e in errors],
    }


@router.post("/api/sessions/{session_id}/heading")
def post_heading(session_id: str, sample: HeadingSample) -> dict:
    session = _session(session_id)
    session.on_heading(sample.heading_deg)
    return {"heading_deg": session.heading_deg}


@router.post("/api/sessions/{session_id}/location")
def post_location(session_id: str, sample: LocationSample) -> dict:
    """Run one engine update; 409 if another update on this session is in flight."""
    session = _session(session_id)
    try:
        step = session.on_location(GeoPoint(lat=sample.lat, lon=sample.lon))
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    result = step.result
    return {
        "stale_heading": result.stale_heading,
        "events": [e.as_dict() for e in result.events],
        "anchors": {bid: list(a.position) for bid, a in result.anchors.items()},
        "errors": [e.model_dump() for e in result.errors],
        "commands": [
            {
                "op": c.op.value,
                "building_id": c.building_id,
                "node": c.node,
                "position": list(c.position) if c.position is not None else None,
                "opacity": c.opacity,
                "fade_out_node": c.fade_out_node,
                "duration_seconds": c.duration_seconds,
            }
            for c in step.commands
        ],
    }


@router.delete("/api/sessions/{session_id}")
def delete_session(session_id: str) -> dict:
    with _sessions_lock:
        removed = _sessions.pop(session_id, None)
    if removed is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return {"deleted": session_id}


@router.get("/api/dataset/report")
def get_dataset_report() -> dict:
    return build_quality_report(_dataset())


@router.get("/api/settings")
def get_public_settings() -> dict:
    settings = get_settings()
    return {
        "proximity": settings.proximity.model_dump(),
        "overlay": settings.overlay.model_dump(),
        "dataset": {"url": settings.dataset.url, "cache_key": settings.dataset.cache_key},
    }
