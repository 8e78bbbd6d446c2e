from starlette.testclient import TestClient

from artour.api.app import app
from artour.catalog.loader import DatasetLoad, parse_buildings

from conftest import BURRUSS, south_of


def _start(client, records):
    resp = client.post("/api/sessions", json={"buildings": records})
    assert resp.status_code == 200
    return resp.json()["session_id"]


def test_session_flow_reports_events_and_commands(building_records):
    near = south_of(BURRUSS, 0.05)
    with TestClient(app) as c:
        sid = _start(c, building_records + [{"name": "Broken"}])

        early = c.post(f"/api/sessions/{sid}/location", json={"lat": near.lat, "lon": near.lon}).json()
        assert early["stale_heading"] is True
        assert early["events"] == []

        assert c.post(f"/api/sessions/{sid}/heading", json={"heading_deg": 45}).status_code == 200
        data = c.post(f"/api/sessions/{sid}/location", json={"lat": near.lat, "lon": near.lon}).json()

    assert data["stale_heading"] is False
    transitions = {e["building_id"]: (e["old_state"], e["new_state"]) for e in data["events"]}
    assert transitions == {"burruss-hall": ("hidden", "detail"), "torgersen-hall": ("hidden", "label")}
    assert set(data["anchors"]) == {"burruss-hall", "torgersen-hall"}
    assert any(cmd["node"] == "burruss-hall-detailsNode" for cmd in data["commands"])


def test_create_session_reports_skipped_records(building_records):
    with TestClient(app) as c:
        resp = c.post("/api/sessions", json={"buildings": building_records + [{"name": "Broken"}]})
    body = resp.json()
    assert body["building_count"] == 2
    assert body["errors"][0]["reason"] == "missing latitude"


def test_unknown_session_is_404():
    with TestClient(app) as c:
        assert c.post("/api/sessions/nope/heading", json={"heading_deg": 1}).status_code == 404
        assert c.delete("/api/sessions/nope").status_code == 404


def test_overlapping_location_update_is_409(building_records):
    import artour.api.routes as routes

    with TestClient(app) as c:
        sid = _start(c, building_records)
        c.post(f"/api/sessions/{sid}/heading", json={"heading_deg": 0})
        engine = routes._sessions[sid].engine
        engine._lock.acquire()
        try:
            resp = c.post(f"/api/sessions/{sid}/location", json={"lat": BURRUSS.lat, "lon": BURRUSS.lon})
        finally:
            engine._lock.release()
        assert resp.status_code == 409
        assert c.delete(f"/api/sessions/{sid}").status_code == 200


def test_default_session_and_report_use_configured_dataset(monkeypatch, building_records):
    import artour.api.routes as routes

    buildings, errors = parse_buildings(building_records)
    monkeypatch.setattr(routes, "_dataset", lambda: DatasetLoad(buildings=buildings, errors=errors, source="stub"))

    with TestClient(app) as c:
        created = c.post("/api/sessions").json()
        report = c.get("/api/dataset/report").json()
        settings = c.get("/api/settings").json()

    assert created["building_count"] == 2
    assert report["source"] == "stub"
    assert settings["proximity"]["visibility_radius_miles"] == 0.25
