#!/usr/bin/env python3
"""
tspgen/app.py

Command line entry point.

Sub-commands:
 - generate:  generate one clustered instance and write it (json, geojson or
              TSPLIB) to a file or to stdout, optionally with a per-cluster
              CSV summary.
 - visualize: render an instance, and optionally a route through it, as an
              interactive HTML map (or a PNG when the output ends in .png).

Usage examples:
  tspgen generate -n 100 -c 5 --max 1000 --std-dev 25 --seed 7 -o instance.json
  tspgen generate -n 100 -c 5 -o instance.geojson --summary clusters.csv
  tspgen --config config.yaml generate --format tsplib
  tspgen visualize -i instance.json -s "0 3 1 2" -o route.html

Precedence: command line flags > config file > built-in defaults.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from tspgen.errors import TspGenError
from tspgen.generation.generator import InstanceGenerator
from tspgen.instances.instance import ASSIGNMENT_POLICIES
from tspgen.instances.summary import cluster_summary
from tspgen.utils.config import load_config
from tspgen.utils.logger import RunLogger
from tspgen.utils.serialization import FORMATS, InstanceSerializer
from tspgen.visualization.plotting import plot_instance
from tspgen.visualization.renderer import parse_route, render

_logger = logging.getLogger("tspgen")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def fatal(msg: str, exit_code: int = 2) -> None:
    """Print fatal message and exit."""
    print("FATAL:", msg, file=sys.stderr)
    sys.exit(exit_code)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_solution(value: str) -> str:
    """Route text from --solution: the content of a file, or the value itself."""
    try:
        path = Path(value)
        if path.is_file():
            return path.read_text(encoding="utf-8")
    except OSError:
        # too long or otherwise not a usable path: inline indices
        pass
    return value


def bootstrap_run_logger(cfg: Dict[str, Any]) -> Optional[RunLogger]:
    """Structured run log, only when a logs directory is configured."""
    if not (cfg.get("output", {}) or {}).get("logs_dir"):
        return None
    run_log = RunLogger(run_id=None, instance_id=None, config=cfg)
    _logger.debug("structured run log at %s", run_log.log_path)
    return run_log


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tspgen",
        description="Generator of realistic TSP instances where the cities are grouped in clusters.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML configuration file.")
    parser.add_argument("--log-level", default=None, help="Console log level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--log-dir", type=Path, default=None, help="Write a structured run log in this directory.")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate one clustered instance.")
    gen.add_argument("-n", "--nb-cities", type=int, default=None, help="Number of cities to visit (default 10).")
    gen.add_argument("-c", "--nb-centroids", type=int, default=None, help="Number of cluster centroids (default 3).")
    gen.add_argument("-m", "--max", dest="max_width", type=float, default=None, help="Width of the square map (default 1000).")
    gen.add_argument("-d", "--std-dev", type=float, default=None, help="Std deviation between a city and its centroid (default 10).")
    gen.add_argument("-s", "--seed", type=int, default=None, help="Seed making the generation reproducible.")
    gen.add_argument("--assignment", choices=ASSIGNMENT_POLICIES, default=None, help="How cities are spread over centroids.")
    gen.add_argument("--clamp", dest="clamp", action="store_const", const=True, default=None, help="Clip cities to the map.")
    gen.add_argument("--no-clamp", dest="clamp", action="store_const", const=False, help="Leave cities outside the map.")
    gen.add_argument("-f", "--format", choices=FORMATS, default=None, help="Output format (default: from suffix, else json).")
    gen.add_argument("-o", "--output", type=Path, default=None, help="Output file; stdout when absent.")
    gen.add_argument("--include-distances", action="store_const", const=True, default=None,
                     help="Add the city-to-city cost matrix to json output.")
    gen.add_argument("-D", "--duration", action="store_const", const=True, default=None,
                     help="Cost matrix holds durations (seconds) rather than distances.")
    gen.add_argument("--summary", type=Path, default=None, help="Write a per-cluster CSV summary here.")

    vis = sub.add_parser("visualize", help="Render an instance (and a route) as an HTML map or PNG.")
    vis.add_argument("-i", "--instance", type=Path, required=True, help="Instance file (json or geojson).")
    vis.add_argument("-s", "--solution", default=None,
                     help="Route as whitespace separated city indices, or a file holding them.")
    vis.add_argument("-o", "--output", type=Path, default=None, help="Output .html or .png; HTML on stdout when absent.")
    vis.add_argument("--close-tour", dest="close_tour", action="store_const", const=True, default=None,
                     help="Return to the first city.")
    vis.add_argument("--no-close-tour", dest="close_tour", action="store_const", const=False, help="Keep the route open.")
    vis.add_argument("--speed", type=float, default=None, help="Map units per hour used for the route duration.")
    vis.add_argument("--hide-centroids", action="store_true", help="Do not draw the centroids.")
    return parser.parse_args(argv)


def run_generate(args: argparse.Namespace, cfg: Dict[str, Any], run_log: Optional[RunLogger]) -> None:
    output_cfg = cfg.setdefault("output", {})
    if args.include_distances is not None:
        output_cfg["include_distances"] = True
    if args.duration is not None:
        output_cfg["duration"] = True
    if args.format is not None:
        output_cfg["format"] = args.format

    generator = InstanceGenerator(config=cfg, run_logger=run_log)
    instance = generator.generate_one(
        nb_cities=args.nb_cities,
        nb_centroids=args.nb_centroids,
        max_width=args.max_width,
        std_dev=args.std_dev,
        seed=args.seed,
        assignment=args.assignment,
        clamp=args.clamp,
    )
    if instance.params.seed is None:
        _logger.info("unseeded run; replay it with --seed %d", instance.meta["entropy"])

    serializer = InstanceSerializer(config=cfg, run_logger=run_log)
    if args.output is not None:
        serializer.save(instance, args.output, fmt=args.format)
    else:
        sys.stdout.write(serializer.dumps(instance) + "\n")

    if args.summary is not None:
        args.summary.parent.mkdir(parents=True, exist_ok=True)
        cluster_summary(instance).to_csv(args.summary, index=False)
        _logger.info("cluster summary written to %s", args.summary)


def run_visualize(args: argparse.Namespace, cfg: Dict[str, Any], run_log: Optional[RunLogger]) -> None:
    vis_cfg = cfg.setdefault("visualization", {})
    if args.close_tour is not None:
        vis_cfg["close_tour"] = args.close_tour
    if args.speed is not None:
        vis_cfg["speed"] = args.speed
    if args.hide_centroids:
        vis_cfg["show_centroids"] = False

    instance = InstanceSerializer(config=cfg, run_logger=run_log).load(args.instance)

    route = None
    if args.solution is not None:
        route = parse_route(read_solution(args.solution))

    if args.output is not None and args.output.suffix.lower() == ".png":
        plot_instance(
            instance,
            args.output,
            route=route,
            close_tour=bool(vis_cfg.get("close_tour", False)),
            speed=float(vis_cfg.get("speed", 50.0)),
        )
        _logger.info("static plot written to %s", args.output)
        return

    html = render(instance, route, config=cfg)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(html, encoding="utf-8")
        _logger.info("map written to %s", args.output)
    else:
        sys.stdout.write(html)
    if run_log is not None:
        run_log.log("rendered", {"instance_id": instance.id, "route_length": None if route is None else len(route)})


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (OSError, TspGenError, ValueError) as ex:
        fatal(f"Failed to load config file '{args.config}': {ex}")
    if args.log_dir is not None:
        cfg.setdefault("output", {})["logs_dir"] = str(args.log_dir)
    configure_logging(args.log_level or (cfg.get("logging", {}) or {}).get("level", "INFO"))

    run_log = bootstrap_run_logger(cfg)
    try:
        if args.command == "generate":
            run_generate(args, cfg, run_log)
        else:
            run_visualize(args, cfg, run_log)
    except (TspGenError, OSError) as ex:
        if run_log is not None:
            run_log.save_run({"status": "failed", "command": args.command, "error": str(ex)})
        fatal(str(ex))
    if run_log is not None:
        run_log.save_run({"status": "completed", "command": args.command})
    return 0


if __name__ == "__main__":
    sys.exit(main())
