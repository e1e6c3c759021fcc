#!/usr/bin/env python3
"""
CLI entry point for the rfcache emitter location cache.

Defines the following commands:
  rfcache migrate DB
  rfcache show DB TYPE ID
  rfcache query DB TYPE (--bbox S N W E | --near LAT LON RADIUS_M)
  rfcache rank CAPTURE [--limit N]
  rfcache serve DB [--port 8000]
  rfcache version
"""

import sys
from argparse import ArgumentParser, Namespace
from importlib.metadata import PackageNotFoundError, version as _get_version

import uvicorn

from rfcache.utils.log import get_logger
from rfcache.utils.geo import bounding_box
from rfcache.utils.validate import BoundingBox, EmitterType, RfIdentification
from rfcache.storage.config import StoreConfig
from rfcache.storage.dao import EmitterStore
from rfcache.storage.errors import EmitterStoreError
from rfcache.server import create_app
from rfcache.parsers import kismet
from rfcache.analysis.ranking import rank_observations

logger = get_logger(__name__)


def migrate(db_path: str) -> None:
    """
    Create the emitter database, or bring an older one up to date.

    Parameters
    ----------
    db_path
        SQLite file holding the emitter cache.
    """
    logger.info("Migrate: db=%s", db_path)
    with EmitterStore(StoreConfig(db_path=db_path)) as store:
        logger.info("Schema v%d, %d emitters", store.schema_version, store.count())


def show(db_path: str, rf_type: str, rf_id: str) -> None:
    """
    Print what is stored about one emitter.
    """
    ident = RfIdentification(rf_type=EmitterType(rf_type), rf_id=rf_id)
    with EmitterStore(StoreConfig.inspect(db_path)) as store:
        info = store.get_emitter(ident)
    if info is None:
        logger.info("%s: not found", ident)
        return
    logger.info(
        "%s: lat=%f lon=%f radius_ns=%.1f radius_ew=%.1f trust=%d note=%r",
        ident, info.latitude, info.longitude, info.radius_ns, info.radius_ew, info.trust, info.note,
    )


def query(db_path: str, rf_type: str, bb: BoundingBox) -> None:
    """
    List the emitters of one type inside a bounding box.
    """
    logger.info("Query: type=%s, box=%s", rf_type, bb)
    with EmitterStore(StoreConfig.inspect(db_path)) as store:
        found = store.get_emitters(EmitterType(rf_type), bb)
    for ident in sorted(found):
        logger.info("%s", ident)
    logger.info("%d emitters", len(found))


def rank(capture: str, limit: int | None) -> None:
    """
    Rank the emitters heard in a Kismet capture, strongest first.

    Parameters
    ----------
    capture
        Path to a `.kismet` file.
    limit
        Show at most this many emitters.
    """
    logger.info("Rank: capture=%s, limit=%s", capture, limit)
    for obs in rank_observations(kismet.parse_kismet(capture), limit):
        logger.info("%s", obs)


def serve(db_path: str, port: int) -> None:
    """
    Spin up FastAPI+Uvicorn to serve the read-only inspection API.

    Parameters
    ----------
    db_path
        SQLite file holding the emitter cache.
    port
        Port on which to serve HTTP.
    """
    logger.info("Serve: db=%s, port=%d", db_path, port)
    app = create_app(db_path)
    uvicorn.run(app, host="127.0.0.1", port=port)


def version() -> None:
    """
    Print the installed rfcache package version.
    """
    try:
        ver = _get_version("rfcache")
    except PackageNotFoundError:
        ver = "unknown"
    logger.info("rfcache version %s", ver)


def parse_args(argv: list[str] | None = None) -> Namespace:
    """
    Parse command-line arguments and return the populated namespace.
    """
    parser = ArgumentParser(prog="rfcache")
    subparsers = parser.add_subparsers(dest="command", required=True)
    types = [t.value for t in EmitterType]

    # rfcache migrate
    p = subparsers.add_parser("migrate", help="Create or upgrade the emitter database.")
    p.add_argument("db", type=str, help="Database file.")

    # rfcache show
    p = subparsers.add_parser("show", help="Show one emitter.")
    p.add_argument("db", type=str, help="Database file.")
    p.add_argument("rf_type", choices=types, help="Emitter type.")
    p.add_argument("rf_id", type=str, help="Emitter id.")

    # rfcache query
    p = subparsers.add_parser("query", help="List emitters inside a bounding box.")
    p.add_argument("db", type=str, help="Database file.")
    p.add_argument("rf_type", choices=types, help="Emitter type.")
    grp = p.add_mutually_exclusive_group(required=True)
    grp.add_argument(
        "--bbox", nargs=4, type=float, metavar=("SOUTH", "NORTH", "WEST", "EAST"),
        help="Box edges in decimal degrees.",
    )
    grp.add_argument(
        "--near", nargs=3, type=float, metavar=("LAT", "LON", "RADIUS_M"),
        help="Box reaching RADIUS_M metres around a point.",
    )

    # rfcache rank
    p = subparsers.add_parser("rank", help="Rank emitters heard in a Kismet capture.")
    p.add_argument("capture", type=str, help="Path to a .kismet file.")
    p.add_argument("--limit", type=int, default=None, help="Show at most N emitters.")

    # rfcache serve
    p = subparsers.add_parser("serve", help="Serve via FastAPI + Uvicorn.")
    p.add_argument("db", type=str, help="Database file.")
    p.add_argument(
        "--port", type=int, default=8000, help="Port number to serve on."
    )

    # rfcache version
    subparsers.add_parser("version", help="Show rfcache version and exit.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """
    Entry point: dispatch to the selected subcommand.
    """
    args = parse_args(argv)
    try:
        match args.command:
            case "migrate":
                migrate(args.db)
            case "show":
                show(args.db, args.rf_type, args.rf_id)
            case "query":
                if args.bbox:
                    south, north, west, east = args.bbox
                    bb = BoundingBox(south=south, north=north, west=west, east=east)
                else:
                    bb = bounding_box(*args.near)
                query(args.db, args.rf_type, bb)
            case "rank":
                rank(args.capture, args.limit)
            case "serve":
                serve(args.db, args.port)
            case "version":
                version()
            case _:
                sys.exit(1)
    except EmitterStoreError as exc:
        logger.error("Emitter cache unavailable: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
