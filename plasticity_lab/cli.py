"""Command line entry point for running evidence-filtered simulations."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
import sys
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError

from .api.schemas import SimulationPayload, SimulationRequest
from .config import DEFAULT_CATALOG_CONFIG, DEFAULT_MODULATION_CONFIG, DEFAULT_TELEMETRY_CONFIG
from .graph.catalog import CatalogError, load_reference_catalogs
from .simulation.engine import SimulationEngine
from .simulation.modulation import ConnectivityModulator
from .simulation.profiles import ModifierLibrary, UnknownProfileError
from .telemetry import configure_telemetry


LOGGER = logging.getLogger(__name__)


def _load_request(path: Path, args: argparse.Namespace) -> SimulationRequest:
    with path.open("r", encoding="utf-8") as handle:
        raw: Any = json.load(handle)
    if isinstance(raw, list):
        raw = {"documents": raw}
    if not isinstance(raw, dict):
        raise ValueError("Expected a list of documents or an object with a 'documents' list")
    for name in ("intervention", "setting", "duration"):
        value = getattr(args, name)
        if value is not None:
            raw[name] = value
    return SimulationRequest.model_validate(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evidence-filtered brain network simulation")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate_parser = subparsers.add_parser("simulate", help="Simulate an intervention over a document batch")
    simulate_parser.add_argument("documents", type=Path, help="JSON file with the documents to analyse")
    simulate_parser.add_argument("--intervention", default=None, help="Intervention tag, e.g. psilocybin")
    simulate_parser.add_argument("--setting", default=None, help="Setting tag, e.g. calm_nature")
    simulate_parser.add_argument("--duration", default=None, help="Duration tag: short, medium or extended")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible jitter")
    simulate_parser.add_argument("--no-jitter", action="store_true", help="Disable random jitter")
    simulate_parser.add_argument("--indent", type=int, default=2, help="JSON indentation of the output")

    subparsers.add_parser("regions", help="List the catalogued brain regions")
    subparsers.add_parser("profiles", help="List intervention, setting and duration tags")

    return parser


def _run_simulate(args: argparse.Namespace) -> int:
    try:
        request = _load_request(args.documents, args)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"Could not read documents: {exc}", file=sys.stderr)
        return 2

    config = replace(DEFAULT_MODULATION_CONFIG)
    if args.seed is not None:
        config.seed = args.seed
    if args.no_jitter:
        config.jitter = 0.0
    engine = SimulationEngine(modulator=ConnectivityModulator.from_config(config))
    try:
        result = engine.run(request.to_domain())
    except UnknownProfileError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    payload = SimulationPayload.from_domain(result)
    print(payload.model_dump_json(indent=args.indent or None), file=sys.stdout)
    return 0


def _run_regions() -> int:
    regions, connections = load_reference_catalogs(
        DEFAULT_CATALOG_CONFIG.regions_path,
        DEFAULT_CATALOG_CONFIG.connections_path,
    )
    for region in sorted(regions, key=lambda item: item.code):
        aliases = ", ".join(sorted(region.aliases))
        print(f"{region.code}\t{region.display_name}\t{aliases}", file=sys.stdout)
    print(f"{len(regions)} regions, {len(connections)} connections", file=sys.stdout)
    return 0


def _run_profiles() -> int:
    library = ModifierLibrary.load_default(DEFAULT_CATALOG_CONFIG.modifiers_path)
    interventions, settings, durations = library.tags()
    print("interventions:", ", ".join(interventions), file=sys.stdout)
    print("settings:", ", ".join(settings), file=sys.stdout)
    print("durations:", ", ".join(durations), file=sys.stdout)
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    telemetry = configure_telemetry(DEFAULT_TELEMETRY_CONFIG)
    try:
        if args.command == "simulate":
            return _run_simulate(args)
        if args.command == "regions":
            return _run_regions()
        if args.command == "profiles":
            return _run_profiles()
    except CatalogError as exc:
        LOGGER.error("Reference data is invalid: %s", exc)
        return 1
    finally:
        telemetry.shutdown()

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
