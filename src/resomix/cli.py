"""Command-line interface for running event mixing on JSON event batches."""

from __future__ import annotations

import argparse
import dataclasses
import importlib.util
import logging
from pathlib import Path
from typing import Any

from .config import MixingConfig
from .io import (
    load_batches_json,
    load_config_json,
    write_histograms_table,
    write_observations_table,
)
from .mixer import EventMixer
from .models import BatchResult
from .sink import HistogramRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="resomix",
        description="Build same-event and mixed-event pair mass spectra from selected candidates.",
    )
    parser.add_argument(
        "--batches",
        required=True,
        help="Input JSON with key 'batches' (or a single object with 'events' and 'candidates').",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Mixing configuration JSON (sections: event_cuts, track_cuts, first, second, ...).",
    )
    parser.add_argument(
        "--mixed-event",
        action="store_true",
        help="Enable mixed-event pairing regardless of the configuration file.",
    )
    parser.add_argument(
        "--out",
        required=True,
        help="Output table file for pair observations (.parquet, .csv, .pkl).",
    )
    parser.add_argument(
        "--histograms",
        default=None,
        help="Optional output table for histogram bin contents (.parquet, .csv, .pkl).",
    )
    parser.add_argument(
        "--custom-script",
        default=None,
        help="Path to Python file with process(results, context) function.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: load inputs, run the mixer, write tables, optional custom hook."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = load_config_json(args.config) if args.config else MixingConfig()
    if args.mixed_event:
        config = dataclasses.replace(
            config, mixing=dataclasses.replace(config.mixing, enabled=True)
        )
    batches = load_batches_json(args.batches)

    registry = HistogramRegistry()
    mixer = EventMixer(config, sink=registry)
    results = mixer.process_batches(batches)
    observations = [obs for res in results for obs in res.observations]
    write_observations_table(args.out, observations)
    logger.info("Wrote %d observations from %d batches to %s", len(observations), len(results), args.out)
    if args.histograms:
        write_histograms_table(args.histograms, registry)
        logger.info("Wrote histogram contents to %s", args.histograms)

    if args.custom_script:
        run_custom_script(
            script_path=args.custom_script,
            results=results,
            context={
                "batches_path": args.batches,
                "config_path": args.config,
                "config": config,
                "registry": registry,
                "output_path": args.out,
                "histograms_path": args.histograms,
            },
        )
    return 0


def run_custom_script(
    script_path: str, results: list[BatchResult], context: dict[str, Any]
) -> None:
    """Execute user-supplied post-processing callback `process(results, context)`."""
    module = _load_module(script_path)
    process = getattr(module, "process", None)
    if process is None or not callable(process):
        raise ValueError(
            f"Custom script {script_path} must define callable process(results, context)."
        )
    process(results, context)


def _load_module(script_path: str):
    """Import a Python module from an arbitrary file path."""
    path = Path(script_path)
    spec = importlib.util.spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot import custom script: {script_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


if __name__ == "__main__":
    raise SystemExit(main())
