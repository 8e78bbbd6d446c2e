"""
ARTour CLI entrypoint.

Runs the proximity engine without a device: one-shot lookups from a given
position, replays of recorded location tracks, and dataset maintenance.
"""

from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path
from typing import Any

from artour.catalog.loader import DatasetLoad, build_cache, fetch_dataset_payload, load_buildings, load_dataset
from artour.config.settings import Settings, get_settings
from artour.core.geo import GeoPoint
from artour.core.logging import configure_logging
from artour.domain.models import DisplayState
from artour.engine.proximity import ProximityEngine, ProximityThresholds
from artour.quality.report import build_quality_report
from artour.tour.session import TourSession


def _load(settings: Settings, dataset: str | None) -> DatasetLoad:
    return load_buildings(dataset) if dataset else load_dataset(settings)


def _thresholds(settings: Settings, args: argparse.Namespace) -> ProximityThresholds:
    prox = settings.proximity
    return ProximityThresholds(
        visibility_radius_miles=args.visibility_radius if args.visibility_radius is not None else prox.visibility_radius_miles,
        detail_radius_miles=args.detail_radius if args.detail_radius is not None else prox.detail_radius_miles,
    )


def read_track(path: str | Path) -> list[dict[str, float | None]]:
    """Read a location track: a JSON array of {lat, lon, heading} or a CSV with those columns."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".csv":
        rows: list[dict[str, Any]] = list(csv.DictReader(text.splitlines()))
    else:
        rows = json.loads(text)
        if not isinstance(rows, list):
            raise ValueError(f"Invalid track {path}; expected a JSON array.")

    samples: list[dict[str, float | None]] = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"Invalid track sample #{i} in {path}: expected an object with lat/lon.")
        try:
            heading = row.get("heading")
            samples.append(
                {
                    "lat": float(row["lat"]),
                    "lon": float(row["lon"]),
                    "heading": float(heading) if heading not in (None, "") else None,
                }
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid track sample #{i} in {path}: {exc}") from exc
    return samples


def _cmd_locate(args: argparse.Namespace) -> int:
    settings = get_settings()
    load = _load(settings, args.dataset)
    engine = ProximityEngine(_thresholds(settings, args))
    result = engine.update(GeoPoint(lat=args.lat, lon=args.lon), args.heading, load.buildings)

    rows = []
    for b in load.buildings:
        anchor = result.anchors.get(b.id)
        state = engine.state_of(b.id)
        if anchor is None or state is None:
            continue
        if state is DisplayState.HIDDEN and not args.all:
            continue
        rows.append(
            {
                "id": b.id,
                "name": b.name,
                "state": state.value,
                "distance_miles": round(anchor.distance_miles, 4),
                "bearing_deg": round(anchor.bearing_deg, 2),
                "position_m": [round(v, 2) for v in anchor.position],
            }
        )
    rows.sort(key=lambda r: r["distance_miles"])

    if args.json:
        print(json.dumps({"buildings": rows, "skipped": [e.model_dump() for e in load.errors]}, ensure_ascii=False, indent=2))
        return 0

    for r in rows:
        x, y, z = r["position_m"]
        print(
            f"{r['state']:>6}  {r['name']} ({r['id']})  {r['distance_miles']:.3f} mi  "
            f"bearing={r['bearing_deg']:.1f}  pos=({x:.1f}, {y:.1f}, {z:.1f})"
        )
    if load.errors:
        print(f"skipped {len(load.errors)} malformed record(s)")
    return 0


def _cmd_replay(args: argparse.Namespace) -> int:
    settings = get_settings()
    load = _load(settings, args.dataset)
    session = TourSession(
        settings, load.buildings, dataset_errors=load.errors, thresholds=_thresholds(settings, args)
    )

    steps: list[dict[str, Any]] = []
    for i, sample in enumerate(read_track(args.track)):
        if sample["heading"] is not None:
            session.on_heading(sample["heading"])
        step = session.on_location(GeoPoint(lat=sample["lat"], lon=sample["lon"]))
        steps.append(
            {
                "step": i,
                "stale_heading": step.result.stale_heading,
                "events": [e.as_dict() for e in step.result.events],
                "commands": [f"{c.op.value}:{c.node}" for c in step.commands],
            }
        )

    if args.json:
        print(json.dumps(steps, ensure_ascii=False, indent=2))
        return 0

    for s in steps:
        if s["stale_heading"]:
            print(f"[{s['step']}] waiting for heading")
            continue
        for e in s["events"]:
            print(f"[{s['step']}] {e['building_id']}: {e['old_state']} -> {e['new_state']} ({e['distance_miles']:.3f} mi)")
    return 0


def _cmd_dataset_report(args: argparse.Namespace) -> int:
    settings = get_settings()
    report = build_quality_report(_load(settings, args.dataset))
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0 if report["ok"] else 1


def _cmd_fetch_dataset(_: argparse.Namespace) -> int:
    settings = get_settings()
    payload = fetch_dataset_payload(settings, build_cache(settings))
    print(f"{len(payload)} record(s) cached under {settings.cache.dir} as {settings.dataset.cache_key}")
    return 0


def _add_dataset_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--dataset", type=str, default=None, help="Local buildings JSON (default: configured dataset)")


def _add_threshold_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--visibility-radius", type=float, default=None, help="Miles; beyond this nothing is shown")
    p.add_argument("--detail-radius", type=float, default=None, help="Miles; at or inside this the detail card shows")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ARTour CLI."""
    parser = argparse.ArgumentParser(prog="artour")
    sub = parser.add_subparsers(dest="command", required=True)

    loc = sub.add_parser("locate", help="Show what a user at a position would see.")
    loc.add_argument("--lat", required=True, type=float)
    loc.add_argument("--lon", required=True, type=float)
    loc.add_argument("--heading", type=float, default=0.0, help="Compass heading in degrees")
    loc.add_argument("--all", action="store_true", help="Include hidden buildings")
    loc.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    _add_dataset_args(loc)
    _add_threshold_args(loc)
    loc.set_defaults(func=_cmd_locate)

    rep = sub.add_parser("replay", help="Replay a recorded track and print state transitions.")
    rep.add_argument("--track", required=True, help="JSON array or CSV of lat,lon,heading samples")
    rep.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    _add_dataset_args(rep)
    _add_threshold_args(rep)
    rep.set_defaults(func=_cmd_replay)

    q = sub.add_parser("dataset-report", help="Quality report for the buildings dataset.")
    _add_dataset_args(q)
    q.set_defaults(func=_cmd_dataset_report)

    f = sub.add_parser("fetch-dataset", help="Download the buildings dataset into the local cache.")
    f.set_defaults(func=_cmd_fetch_dataset)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m artour.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
