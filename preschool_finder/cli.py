"""
Terminal front end for the preschool directory.

Run:
  python -m preschool_finder.cli --data förskolor.json search "Solna"
  python -m preschool_finder.cli nearby --lat 59.33 --lng 18.06 --radius 5
  python -m preschool_finder.cli compare 101 102 103
  python -m preschool_finder.cli map "Uppsala" --lat 59.86 --lng 17.64 --output forskolor.html
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from .catalog.engine import CatalogEngine
from .data_ingestion.config import DEFAULT_INGESTION_CONFIG, IngestionConfig
from .data_ingestion.ingest import load_catalog
from .errors import LocationError, LocationErrorKind
from .geolocation.backends import FixedPositionBackend
from .geolocation.config import DEFAULT_GEOLOCATION_CONFIG
from .geolocation.service import GeolocationService
from .rendering.map_view import FoliumMapView
from .rendering.tables import comparison_frame, results_frame

logger = logging.getLogger(__name__)

LOCATION_MESSAGES = {
    LocationErrorKind.unsupported: "Geolocation stöds inte här. Ange --lat och --lng.",
    LocationErrorKind.permission_denied: "Platsåtkomst nekad.",
    LocationErrorKind.unavailable: "Platsinformation är inte tillgänglig.",
    LocationErrorKind.timeout: "Tidsgräns för platsförfrågan uppnådd.",
}
INVALID_POSITION_MESSAGE = "Ogiltig position: latitud måste vara -90..90 och longitud -180..180."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="preschool-finder", description="Search and compare preschools.")
    parser.add_argument("--data", type=Path, default=None, help="Dataset file (.json, .csv or .js)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Free-text search with optional filters")
    p_search.add_argument("query", nargs="?", default="")
    p_search.add_argument("--municipality")
    p_search.add_argument("--operator-type")

    p_nearby = sub.add_parser("nearby", help="Preschools near a position")
    p_nearby.add_argument("--lat", type=float)
    p_nearby.add_argument("--lng", type=float)
    p_nearby.add_argument("--radius", type=float, default=DEFAULT_GEOLOCATION_CONFIG.default_radius_km)
    p_nearby.add_argument("--limit", type=int, default=DEFAULT_GEOLOCATION_CONFIG.nearby_display_limit)

    p_compare = sub.add_parser("compare", help="Side-by-side comparison")
    p_compare.add_argument("ids", nargs="+")

    p_map = sub.add_parser("map", help="Write an HTML map of the filtered view")
    p_map.add_argument("query", nargs="?", default="")
    p_map.add_argument("--municipality")
    p_map.add_argument("--operator-type")
    p_map.add_argument("--lat", type=float, help="Mark this position and zoom to it")
    p_map.add_argument("--lng", type=float)
    p_map.add_argument("--output", type=Path, required=True)

    return parser


def _load_engine(data: Path | None) -> CatalogEngine:
    config = IngestionConfig(data_path=data) if data else DEFAULT_INGESTION_CONFIG
    return CatalogEngine(load_catalog(config))


def _print_frame(df: pd.DataFrame) -> None:
    if df.empty:
        print("Inga förskolor hittades.")
        return
    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(df.to_string(index=False, na_rep="—"))


def _cmd_search(engine: CatalogEngine, args: argparse.Namespace) -> int:
    engine.search(args.query)
    engine.apply_filters(args.municipality, args.operator_type)
    print(f"Visar {len(engine.filtered)} förskolor")
    _print_frame(results_frame(engine.results_page()))
    return 0


async def _locate_and_find(service: GeolocationService, radius_km: float):
    coords = await service.acquire_location()
    return service.find_nearby(coords, radius_km)


def _cmd_nearby(engine: CatalogEngine, args: argparse.Namespace) -> int:
    try:
        if args.lat is not None:
            backend = FixedPositionBackend(args.lat, args.lng)
        else:
            backend = FixedPositionBackend.from_config(DEFAULT_GEOLOCATION_CONFIG)
    except ValidationError:
        print(INVALID_POSITION_MESSAGE, file=sys.stderr)
        return 1
    service = GeolocationService(engine, backend)

    try:
        found = asyncio.run(_locate_and_find(service, args.radius))
    except LocationError as exc:
        print(LOCATION_MESSAGES[exc.kind], file=sys.stderr)
        return 1

    print(f"{len(found)} förskolor inom {args.radius:g} km")
    for facility in service.nearest(args.limit):
        print(
            f"{facility.name}  {facility.distance_km:.1f} km bort  "
            f"{facility.municipality} • {facility.operator_type}"
        )
    return 0


def _cmd_compare(engine: CatalogEngine, args: argparse.Namespace) -> int:
    for facility_id in args.ids:
        if not engine.add_to_comparison(facility_id):
            print(f"Hoppar över {facility_id}: okänd, redan vald eller jämförelsen är full", file=sys.stderr)
    if not engine.comparison:
        print("Inga förskolor att jämföra.")
        return 0
    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(comparison_frame(engine.comparison).to_string(na_rep="—"))
    return 0


def _cmd_map(engine: CatalogEngine, args: argparse.Namespace) -> int:
    view = FoliumMapView()
    engine.on_filtered_change(view.sync_markers)
    engine.search(args.query)
    engine.apply_filters(args.municipality, args.operator_type)

    if args.lat is not None:
        try:
            backend = FixedPositionBackend(args.lat, args.lng)
        except ValidationError:
            print(INVALID_POSITION_MESSAGE, file=sys.stderr)
            return 1
        service = GeolocationService(engine, backend)
        service.on_location(lambda coords: view.show_user(coords, service.config.user_zoom))
        asyncio.run(service.acquire_location())
    view.save(args.output)
    print(f"Karta med {len(view.markers)} markörer sparad: {args.output}")
    return 0


COMMANDS = {
    "search": _cmd_search,
    "nearby": _cmd_nearby,
    "compare": _cmd_compare,
    "map": _cmd_map,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command in ("nearby", "map") and (args.lat is None) != (args.lng is None):
        parser.error("--lat och --lng måste anges tillsammans")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    engine = _load_engine(args.data)
    return COMMANDS[args.command](engine, args)


if __name__ == "__main__":
    sys.exit(main())
