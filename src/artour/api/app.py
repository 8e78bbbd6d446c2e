# src/artour/api/app.py
"""
FastAPI application wiring.

Exposes tour sessions over HTTP so a thin client (or a replay tool) can push
heading/location samples and receive transition events and renderer commands.
Business logic lives in `artour.api.routes` and `artour.tour.session`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from artour import __version__
from artour.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="ARTour API", version=__version__)

# CORS (dev-friendly), configured via env:
# - ARTOUR_CORS_ORIGINS="http://localhost:8003,http://127.0.0.1:8003"
cors_origins = [s.strip() for s in os.getenv("ARTOUR_CORS_ORIGINS", "").split(",") if s.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
