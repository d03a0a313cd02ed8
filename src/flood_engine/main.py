"""Command-line entry point."""

import argparse
import asyncio
import json
import logging
import sys

from flood_engine.config import settings
from flood_engine.flood.areas import scenario_label
from flood_engine.flood.elevation_model import TopographicModel
from flood_engine.flood.generator import FloodGenerator
from flood_engine.flood.grid import build
from flood_engine.flood.types import FloodConfig
from flood_engine.models import JobStatus, PolygonMode, ReachabilityStrategy
from flood_engine.runner import FloodJobRunner


def setup_logging() -> None:
    """Configure logging for the CLI.

    Logs go to stderr so GeoJSON on stdout stays parseable.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flood-engine",
        description="Compute sea-level rise flood extents as GeoJSON.",
    )
    parser.add_argument("--water-level", type=float, required=True, help="Water level in meters")
    parser.add_argument(
        "--resolution",
        type=int,
        default=settings.default_resolution,
        help="Grid cells per axis",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in ReachabilityStrategy],
        default=ReachabilityStrategy.EXACT.value,
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in PolygonMode],
        default=PolygonMode.EXACT.value,
        help="Exact boundary polygons or a single convex hull",
    )
    parser.add_argument("--no-contours", action="store_true", help="Omit waterline contours")
    parser.add_argument("--output", "-o", help="Write GeoJSON here instead of stdout")
    return parser


async def main(argv: list[str] | None = None) -> int:
    """Run one flood computation and emit its GeoJSON."""
    args = build_parser().parse_args(argv)
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info(
        "Flood engine starting: %.2f m (%s)",
        args.water_level,
        scenario_label(args.water_level),
    )

    config = FloodConfig(
        resolution=args.resolution,
        strategy=args.strategy,
        polygon_mode=args.mode,
        contours_enabled=not args.no_contours,
    )
    model = TopographicModel()
    grid = build(model.bounds, config.resolution, model)
    runner = FloodJobRunner(FloodGenerator(config, grid, model=model))
    try:
        job = await runner.submit(args.water_level)
    finally:
        runner.shutdown()

    if job.status != JobStatus.COMPLETED or job.result is None:
        logger.error("Flood computation %s: %s", job.status.value, job.error)
        return 1

    payload = json.dumps(job.result.features_to_geojson())
    if args.output:
        with open(args.output, "w") as f:
            f.write(payload)
        logger.info("Wrote %d features to %s", len(job.result.features), args.output)
    else:
        sys.stdout.write(payload + "\n")
    return 0


def run() -> None:
    """Entry point for the flood-engine console script."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
