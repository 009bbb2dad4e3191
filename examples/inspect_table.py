"""Utility script to inspect pair-observation tables and compare mass spectra."""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np


def _require_pandas():
    """Import pandas with an actionable error if not installed."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required. Install with: pip install pandas pyarrow"
        ) from exc
    return pd


def load_table(path: str):
    """Load table data from parquet/csv/pickle into a pandas DataFrame."""
    pd = _require_pandas()
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(p)
    if suffix == ".csv":
        return pd.read_csv(p)
    if suffix in (".pkl", ".pickle"):
        return pd.read_pickle(p)
    raise ValueError("Supported input formats: .parquet, .csv, .pkl")


def normalized_spectra(df, nbins: int, low: float, high: float):
    """Signal and background mass spectra, background scaled to the signal integral."""
    edges = np.linspace(low, high, nbins + 1)
    signal, _ = np.histogram(df.loc[df["kind"] == "signal", "mass"], bins=edges)
    background, _ = np.histogram(df.loc[df["kind"] == "background", "mass"], bins=edges)
    scale = signal.sum() / background.sum() if background.sum() > 0 else 0.0
    return edges, signal.astype(float), background * scale


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: print the table head and the mixed-event subtracted yield."""
    parser = argparse.ArgumentParser(description="Inspect event-mixing pair table.")
    parser.add_argument("--input", required=True, help="Path to .parquet/.csv/.pkl output.")
    parser.add_argument("--head", type=int, default=10, help="Rows to print.")
    parser.add_argument("--bins", type=int, default=60)
    parser.add_argument("--range", nargs=2, type=float, default=(1.4, 2.0), metavar=("LOW", "HIGH"))
    args = parser.parse_args(argv)

    df = load_table(args.input)
    print(df.head(args.head).to_string(index=False))
    print(f"\nRows={len(df)}  " + "  ".join(f"{k}={v}" for k, v in df["kind"].value_counts().items()))

    _, signal, background = normalized_spectra(df, args.bins, *args.range)
    print(f"Same-event minus mixed-event in range: {float((signal - background).sum()):.1f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
