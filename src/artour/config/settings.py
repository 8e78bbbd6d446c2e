# src/artour/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/artour/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `ARTOUR_LOG_LEVEL`, `ARTOUR_DATASET_URL`)
- an external YAML file via `ARTOUR_CONFIG_PATH`

Design rule:
- Proximity radii and overlay timings live in YAML, not hard-coded in the engine.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from artour.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `artour.config`."""
    text = resources.files("artour.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "ARTour"
    log_level: str = "INFO"


class ProximitySettings(BaseModel):
    visibility_radius_miles: float = Field(0.25, gt=0)
    detail_radius_miles: float = Field(0.10, gt=0)

    @model_validator(mode="after")
    def _validate_order(self) -> "ProximitySettings":
        if self.detail_radius_miles >= self.visibility_radius_miles:
            raise ValueError("proximity.detail_radius_miles must be smaller than visibility_radius_miles")
        return self


class DatasetSettings(BaseModel):
    url: str = "http://orca.cs.vt.edu/VTBuildingsJAX-RS/webresources/vtBuildings"
    path: str | None = None
    cache_key: str = "VTBuildings.json"
    cache_ttl_seconds: int = 60 * 60 * 24 * 7
    http_timeout_seconds: float = 15


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/artour"
    default_ttl_seconds: int = 60 * 60 * 24


class OverlaySettings(BaseModel):
    crossfade_seconds: float = Field(1.0, ge=0)
    detail_opacity: float = Field(0.92, ge=0, le=1)
    detail_node_suffix: str = "-detailsNode"


class EnrichmentSettings(BaseModel):
    timeout_seconds: float = Field(15, gt=0)
    fallback_text: str = "No data found"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    dataset: DatasetSettings = Field(default_factory=DatasetSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    overlay: OverlaySettings = Field(default_factory=OverlaySettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload."""
    load_dotenv_if_present()
    data = dict(data)

    cache_dir = os.getenv("ARTOUR_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("ARTOUR_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    dataset_url = os.getenv("ARTOUR_DATASET_URL")
    if dataset_url:
        data.setdefault("dataset", {})["url"] = dataset_url

    dataset_path = os.getenv("ARTOUR_DATASET_PATH")
    if dataset_path:
        data.setdefault("dataset", {})["path"] = dataset_path

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("ARTOUR_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
