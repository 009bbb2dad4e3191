"""Example custom callback: count signal and background pairs in a mass window."""

from __future__ import annotations

import json
from pathlib import Path

MASS_WINDOW = (1.0, 3.0)


def process(results, context):
    """Summarize same-event and mixed-event yields per batch and save them as JSON."""
    low, high = MASS_WINDOW
    batches = []
    for idx, res in enumerate(results):
        n_signal = sum(1 for obs in res.signal if low <= obs.mass < high)
        n_background = sum(1 for obs in res.background if low <= obs.mass < high)
        batches.append(
            {
                "batch": idx,
                "n_events": res.n_events,
                "n_mixing_pools": res.n_mixing_pools,
                "signal_in_window": n_signal,
                "background_in_window": n_background,
            }
        )
    payload = {
        "mass_window": list(MASS_WINDOW),
        "first_pdg": context["config"].first.signed_pdg,
        "second_pdg": context["config"].second.signed_pdg,
        "batches": batches,
    }
    out = Path(context["output_path"]).with_name("mass_window_summary.json")
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"Wrote {out}")
