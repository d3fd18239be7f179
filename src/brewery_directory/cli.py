"""Command line interface for querying the brewery directory."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from .directory import BreweryDirectory
from .errors import DirectoryError
from .export import write_to_csv
from .filters import BreweryFilters, filter_breweries
from .models import BreweryRecord
from .settings import CacheSettings, DirectorySettings, GeocodeSettings, SupabaseSettings

logger = logging.getLogger(__name__)

LIST_COMMANDS = {
    "cities": "get_all_cities",
    "counties": "get_all_counties",
    "types": "get_all_types",
    "amenities": "get_all_amenities",
}
LOOKUP_COMMANDS = {
    "city": "get_breweries_by_city",
    "county": "get_breweries_by_county",
    "type": "get_breweries_by_type",
    "amenity": "get_breweries_by_amenity",
}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query the Maryland brewery directory")
    parser.add_argument("--config", type=Path, help="Optional JSON file overriding settings")
    parser.add_argument("--env-file", type=Path, default=Path(".env.local"), help="dotenv file with Supabase credentials")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--full", action="store_true", help="Print complete records instead of summaries")
    parser.add_argument("--geocode", action="store_true", help="Geocode breweries that lack coordinates")
    parser.add_argument("--email", type=str, default=None, help="Contact email passed to the geocoding provider")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("stats", help="Print site statistics")
    for name in LIST_COMMANDS:
        commands.add_parser(name, help=f"List all {name}")
    for name in LOOKUP_COMMANDS:
        lookup = commands.add_parser(name, help=f"List breweries for one {name}")
        lookup.add_argument("value")

    search = commands.add_parser("search", help="Search breweries by text")
    search.add_argument("query", nargs="?", default="")
    search.add_argument("--city", default=None)
    search.add_argument("--county", default=None)
    search.add_argument("--type", dest="brewery_type", default=None)
    search.add_argument("--amenity", default=None)
    search.add_argument("--open-now", action="store_true")

    nearby = commands.add_parser("nearby", help="Breweries near a coordinate")
    nearby.add_argument("latitude", type=float)
    nearby.add_argument("longitude", type=float)
    nearby.add_argument("--radius", type=float, default=None, help="Radius in miles")

    export = commands.add_parser("export", help="Write every brewery to CSV")
    export.add_argument("output", type=Path)
    return parser.parse_args(argv)


def load_config(path: Path | None) -> Dict[str, Any]:
    if not path:
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def build_settings(args: argparse.Namespace, config: Dict[str, Any]) -> DirectorySettings:
    supabase_config = dict(config.get("supabase", {}))
    cache_config = dict(config.get("cache", {}))
    geocode_config = dict(config.get("geocode", {}))

    if "tags" in cache_config:
        cache_config["tags"] = tuple(cache_config["tags"])
    if args.geocode:
        geocode_config["enabled"] = True
    if args.email is not None:
        geocode_config["email"] = args.email

    settings = DirectorySettings(
        supabase=SupabaseSettings.from_env(**supabase_config),
        cache=CacheSettings(**cache_config),
        geocode=GeocodeSettings(**geocode_config),
    )
    if "nearby_radius_miles" in config:
        settings.nearby_radius_miles = float(config["nearby_radius_miles"])
    return settings


def summarize(brewery: BreweryRecord) -> Dict[str, Any]:
    return {
        "id": brewery.id,
        "name": brewery.name,
        "slug": brewery.slug,
        "city": brewery.city,
        "county": brewery.county,
        "type": list(brewery.type_labels),
    }


async def run_command(directory: BreweryDirectory, args: argparse.Namespace) -> Any:
    if args.command == "stats":
        return (await directory.get_site_statistics()).to_dict()
    if args.command in LIST_COMMANDS:
        return await getattr(directory, LIST_COMMANDS[args.command])()
    if args.command in LOOKUP_COMMANDS:
        return await getattr(directory, LOOKUP_COMMANDS[args.command])(args.value)
    if args.command == "search":
        breweries = await directory.search_breweries(args.query)
        filters = BreweryFilters(
            city=args.city,
            county=args.county,
            type=args.brewery_type,
            amenity=args.amenity,
            open_now=args.open_now,
        )
        return filter_breweries(breweries, filters)
    if args.command == "nearby":
        return await directory.get_nearby_breweries(args.latitude, args.longitude, args.radius)
    if args.command == "export":
        breweries = await directory.get_all_brewery_data()
        return {"rows": write_to_csv(breweries, args.output), "path": str(args.output)}
    raise ValueError(f"Unknown command {args.command}")


def render(result: Any, full: bool) -> str:
    if isinstance(result, list) and result and isinstance(result[0], BreweryRecord):
        result = [brewery.to_row() if full else summarize(brewery) for brewery in result]
    return json.dumps(result, indent=2, ensure_ascii=False)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    if args.env_file and args.env_file.exists():
        load_dotenv(args.env_file)

    settings = build_settings(args, load_config(args.config))
    directory = BreweryDirectory.from_settings(settings)

    try:
        result = asyncio.run(run_command(directory, args))
    except DirectoryError as exc:
        logger.error("%s", exc)
        return 1

    print(render(result, args.full))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
