import json

import pytest

from artour.cli import main, read_track

from conftest import BURRUSS, south_of


def _write_dataset(tmp_path, records):
    path = tmp_path / "buildings.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return str(path)


def test_locate_lists_visible_buildings_as_json(tmp_path, capsys, building_records):
    dataset = _write_dataset(tmp_path, building_records)
    user = south_of(BURRUSS, 0.05)
    code = main(["locate", "--lat", str(user.lat), "--lon", str(user.lon), "--dataset", dataset, "--json"])
    assert code == 0

    out = json.loads(capsys.readouterr().out)
    states = {b["id"]: b["state"] for b in out["buildings"]}
    assert states == {"burruss-hall": "detail", "torgersen-hall": "label"}
    assert out["buildings"][0]["id"] == "burruss-hall"


def test_replay_csv_track_prints_transitions(tmp_path, capsys, building_records):
    dataset = _write_dataset(tmp_path, building_records[:1])
    points = [south_of(BURRUSS, d) for d in (0.3, 0.15, 0.08, 0.3)]
    track = tmp_path / "track.csv"
    lines = ["lat,lon,heading", f"{points[0].lat},{points[0].lon},"]
    lines += [f"{p.lat},{p.lon},12.5" for p in points]
    track.write_text("\n".join(lines) + "\n", encoding="utf-8")

    assert main(["replay", "--track", str(track), "--dataset", dataset]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "[0] waiting for heading"
    assert [line.split(": ", 1)[1].split(" (")[0] for line in out[1:]] == [
        "hidden -> label",
        "label -> detail",
        "detail -> hidden",
    ]


def test_read_track_accepts_json(tmp_path):
    track = tmp_path / "track.json"
    track.write_text(json.dumps([{"lat": 1, "lon": 2, "heading": 3}, {"lat": 4, "lon": 5}]), encoding="utf-8")
    assert read_track(track) == [
        {"lat": 1.0, "lon": 2.0, "heading": 3.0},
        {"lat": 4.0, "lon": 5.0, "heading": None},
    ]


def test_read_track_rejects_rows_that_are_not_objects(tmp_path):
    track = tmp_path / "track.json"
    track.write_text(json.dumps([[37.2, -80.4]]), encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid track sample #0"):
        read_track(track)


def test_dataset_report_exit_code_reflects_errors(tmp_path, capsys, building_records):
    dup = building_records + [dict(building_records[0])]
    assert main(["dataset-report", "--dataset", _write_dataset(tmp_path, dup)]) == 1
    report = json.loads(capsys.readouterr().out)
    assert any(i["code"] == "duplicate_ids" for i in report["issues"])
