"""Toy event-mixing example: generate random proton/kaon events and mix them.

Run from repository root without installation:
    PYTHONPATH=src python examples/toy_mixing_api.py --out examples/toy_pairs.parquet
"""

from __future__ import annotations

import argparse
import math
from pathlib import Path
from random import Random

from resomix import (
    AxisSpec,
    Candidate,
    Event,
    EventBatch,
    EventMixer,
    HistogramBinning,
    HistogramRegistry,
    MixingConfig,
    MixingSettings,
    SpeciesSelection,
)
from resomix.io import write_histograms_table, write_observations_table
from resomix.pid import PDG_KAON, PDG_PROTON


def make_event(rng: Random, event_id: str, n_tracks: int) -> tuple[Event, list[Candidate]]:
    """One event with tracks that look like protons or kaons in the TPC."""
    event = Event(
        event_id=event_id,
        pos_z=rng.gauss(0.0, 4.0),
        mult_percentile=rng.uniform(0.0, 100.0),
        mag_field=rng.choice((-5.0, 5.0)),
    )
    tracks = []
    for k in range(n_tracks):
        pt = rng.expovariate(1.0 / 0.8) + 0.15
        eta = rng.uniform(-0.8, 0.8)
        is_proton = rng.random() < 0.4
        tracks.append(
            Candidate(
                track_id=f"{event_id}-t{k}",
                event_id=event_id,
                sign=rng.choice((-1, 1)),
                p=pt * math.cosh(eta),
                pt=pt,
                eta=eta,
                phi=rng.uniform(0.0, 2.0 * math.pi),
                tpc_nsigma_pr=rng.gauss(0.0, 1.0) if is_proton else rng.gauss(5.0, 1.0),
                tpc_nsigma_ka=rng.gauss(6.0, 1.0) if is_proton else rng.gauss(0.0, 1.0),
                tpc_n_cls_found=rng.randint(60, 159),
                dca_xy=rng.gauss(0.0, 0.02),
                dca_z=rng.gauss(0.0, 0.03),
            )
        )
    return event, tracks


def make_batch(rng: Random, batch_idx: int, n_events: int, n_tracks: int) -> EventBatch:
    events, candidates = [], []
    for e in range(n_events):
        event, tracks = make_event(rng, f"b{batch_idx}e{e}", n_tracks)
        events.append(event)
        candidates.extend(tracks)
    return EventBatch(events=tuple(events), candidates=tuple(candidates))


def main(argv: list[str] | None = None) -> int:
    """Mix proton/anti-kaon toy pairs and write observation and histogram tables."""
    parser = argparse.ArgumentParser(description="Toy proton/kaon event mixing.")
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--batches", type=int, default=4)
    parser.add_argument("--events", type=int, default=20, help="Events per batch.")
    parser.add_argument("--tracks", type=int, default=12, help="Tracks per event.")
    parser.add_argument("--out", default="examples/toy_pairs.parquet")
    parser.add_argument("--histograms", default=None)
    args = parser.parse_args(argv)

    rng = Random(args.seed)
    config = MixingConfig(
        first=SpeciesSelection(pdg_code=PDG_PROTON, sign=1),
        second=SpeciesSelection(pdg_code=PDG_KAON, sign=-1),
        mixing=MixingSettings(enabled=True),
        binning=HistogramBinning(mass=AxisSpec(300, 1.4, 2.0, "Inv. mass pK (GeV/c^2)")),
    )
    registry = HistogramRegistry()
    mixer = EventMixer(config, sink=registry)
    results = mixer.process_batches(
        make_batch(rng, b, args.events, args.tracks) for b in range(args.batches)
    )
    observations = [obs for res in results for obs in res.observations]
    write_observations_table(Path(args.out), observations)
    if args.histograms:
        write_histograms_table(Path(args.histograms), registry)
    n_signal = sum(len(res.signal) for res in results)
    n_background = sum(len(res.background) for res in results)
    print(f"Wrote {n_signal} same-event and {n_background} mixed-event pairs to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
