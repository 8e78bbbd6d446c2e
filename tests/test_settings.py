import pytest
from pydantic import ValidationError

from artour.config.settings import ProximitySettings, get_settings
from artour.engine.proximity import ProximityThresholds


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_default_thresholds_match_tour_policy(fresh_settings):
    settings = fresh_settings()
    thresholds = ProximityThresholds.from_settings(settings.proximity)
    assert thresholds.visibility_radius_miles == 0.25
    assert thresholds.detail_radius_miles == 0.10
    assert settings.overlay.detail_opacity == 0.92
    assert settings.dataset.cache_key == "VTBuildings.json"


def test_detail_radius_must_be_inside_visibility_radius():
    with pytest.raises(ValidationError, match="detail_radius_miles"):
        ProximitySettings(visibility_radius_miles=0.1, detail_radius_miles=0.2)


def test_env_overrides_are_applied(monkeypatch, fresh_settings, tmp_path):
    monkeypatch.setenv("ARTOUR_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ARTOUR_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("ARTOUR_DATASET_URL", "https://example.test/b")
    settings = fresh_settings()
    assert settings.app.log_level == "DEBUG"
    assert settings.cache.dir == str(tmp_path)
    assert settings.dataset.url == "https://example.test/b"


def test_external_config_file_replaces_packaged_defaults(monkeypatch, fresh_settings, tmp_path):
    cfg = tmp_path / "artour.yaml"
    cfg.write_text(
        "proximity:\n  visibility_radius_miles: 0.5\n  detail_radius_miles: 0.2\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ARTOUR_CONFIG_PATH", str(cfg))
    settings = fresh_settings()
    assert settings.proximity.visibility_radius_miles == 0.5
    assert settings.proximity.detail_radius_miles == 0.2
    assert settings.overlay.crossfade_seconds == 1.0
