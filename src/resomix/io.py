"""Input/output helpers for JSON batches and configs, and tabular result export."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Iterable

import numpy as np

from .config import (
    AxisSpec,
    EventCuts,
    HistogramBinning,
    MixingConfig,
    MixingSettings,
    PairCuts,
    RejectionHypothesis,
    SpeciesSelection,
    TrackCuts,
)
from .exceptions import ConfigurationError
from .models import Candidate, Event, EventBatch, Observation
from .sink import HistogramRegistry

_CONFIG_SECTIONS: dict[str, type] = {
    "event_cuts": EventCuts,
    "track_cuts": TrackCuts,
    "first": SpeciesSelection,
    "second": SpeciesSelection,
    "rejection": RejectionHypothesis,
    "pair_cuts": PairCuts,
    "mixing": MixingSettings,
}

_CANDIDATE_FIELDS = {f.name for f in dataclasses.fields(Candidate)}


def load_batches_json(path: str | Path) -> list[EventBatch]:
    """Load event batches from JSON.

    Expected shape:
    {
      "batches": [
        {"events": [...], "candidates": [...]},
        ...
      ]
    }
    A single `{"events": [...], "candidates": [...]}` object is read as one batch.
    """
    data = _load_json(path)
    if "batches" in data:
        batches_data = data["batches"]
        if not isinstance(batches_data, list):
            raise ValueError("Batches JSON key 'batches' must be a list.")
    else:
        batches_data = [data]
    return [
        _parse_batch_item(item=item, idx=idx, context=f"{path}")
        for idx, item in enumerate(batches_data)
    ]


def load_config_json(path: str | Path) -> MixingConfig:
    """Load a `MixingConfig` from JSON; missing sections keep their defaults."""
    return config_from_dict(_load_json(path))


def config_from_dict(data: dict[str, Any]) -> MixingConfig:
    """Build a `MixingConfig` from a nested dictionary of section overrides."""
    unknown = set(data) - set(_CONFIG_SECTIONS) - {"binning"}
    if unknown:
        raise ConfigurationError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")
    kwargs: dict[str, Any] = {}
    for section, cls in _CONFIG_SECTIONS.items():
        if section in data:
            kwargs[section] = _parse_section(section, cls, data[section])
    if "binning" in data:
        kwargs["binning"] = _parse_binning(data["binning"])
    return MixingConfig(**kwargs)


def write_observations_table(path: str | Path, observations: Iterable[Observation]) -> None:
    """Write pair observations into Parquet/CSV/Pickle table."""
    pd = _require_pandas()
    df = pd.DataFrame(_observation_rows(observations))
    _write_frame(df, path)


def write_histograms_table(path: str | Path, registry: HistogramRegistry) -> None:
    """Write every nonzero histogram bin as one row `(channel, bin indices, content)`."""
    pd = _require_pandas()
    rows: list[dict[str, Any]] = []
    for hist in registry:
        for raw_index in np.argwhere(hist.counts != 0):
            index = tuple(int(i) for i in raw_index)
            row: dict[str, Any] = {"channel": hist.name, "title": hist.title}
            for axis_idx, (bin_idx, axis) in enumerate(zip(index, hist.axes, strict=True)):
                width = (axis.high - axis.low) / axis.nbins
                row[f"bin{axis_idx}"] = bin_idx
                row[f"center{axis_idx}"] = axis.low + (bin_idx + 0.5) * width
            row["content"] = float(hist.counts[index])
            rows.append(row)
    _write_frame(pd.DataFrame(rows), path)


def _observation_rows(observations: Iterable[Observation]) -> list[dict[str, Any]]:
    """Flatten observations into DataFrame-ready row dictionaries."""
    return [
        {
            "kind": obs.kind,
            "mass": obs.mass,
            "pt": obs.pt,
            "event_id_1": obs.event_ids[0],
            "event_id_2": obs.event_ids[1],
            "track_id_1": obs.track_ids[0],
            "track_id_2": obs.track_ids[1],
        }
        for obs in observations
    ]


def _write_frame(df, path: str | Path) -> None:
    out = Path(path)
    suffix = out.suffix.lower()
    if suffix == ".parquet":
        df.to_parquet(out, index=False)
    elif suffix in (".pkl", ".pickle"):
        df.to_pickle(out)
    elif suffix == ".csv":
        df.to_csv(out, index=False)
    else:
        raise ValueError(
            f"Unsupported output format '{suffix}'. Use .parquet, .csv, or .pkl"
        )


def _require_pandas():
    """Import pandas lazily and provide a clear installation hint on failure."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required to write output tables. Install pandas and pyarrow."
        ) from exc
    return pd


def _parse_batch_item(item: Any, idx: int, context: str) -> EventBatch:
    """Parse one batch dictionary into an `EventBatch`."""
    if not isinstance(item, dict):
        raise ValueError(f"Batch entry at index {idx} in {context} must be an object.")
    events_data = item.get("events")
    if not isinstance(events_data, list):
        raise ValueError(f"Batch {idx} in {context} must contain a list under key 'events'.")
    candidates_data = item.get("candidates", item.get("tracks"))
    if not isinstance(candidates_data, list):
        raise ValueError(f"Batch {idx} in {context} must contain a list under key 'candidates'.")
    events = tuple(
        _parse_event_item(item=ev, idx=eidx, context=f"batch {idx} in {context}")
        for eidx, ev in enumerate(events_data)
    )
    candidates = tuple(
        _parse_candidate_item(item=cand, idx=cidx, context=f"batch {idx} in {context}")
        for cidx, cand in enumerate(candidates_data)
    )
    return EventBatch(events=events, candidates=candidates)


def _parse_event_item(item: Any, idx: int, context: str) -> Event:
    """Parse one event dictionary into an `Event`."""
    if not isinstance(item, dict):
        raise ValueError(f"Event entry at index {idx} in {context} must be an object.")
    try:
        multiplicity = item.get("multiplicity")
        return Event(
            event_id=str(item.get("event_id", f"evt{idx}")),
            pos_z=float(item["pos_z"]),
            mult_percentile=float(item["mult_percentile"]),
            mag_field=float(item["mag_field"]),
            multiplicity=float(multiplicity) if multiplicity is not None else None,
        )
    except KeyError as exc:
        raise ValueError(f"Event at index {idx} in {context} is missing field {exc}.") from exc


def _parse_candidate_item(item: Any, idx: int, context: str) -> Candidate:
    """Parse one candidate dictionary into a `Candidate`."""
    if not isinstance(item, dict):
        raise ValueError(f"Candidate entry at index {idx} in {context} must be an object.")
    unknown = set(item) - _CANDIDATE_FIELDS
    if unknown:
        raise ValueError(
            f"Candidate at index {idx} in {context} has unknown field(s): {', '.join(sorted(unknown))}"
        )
    for required in ("event_id", "sign", "p", "pt", "eta", "phi"):
        if required not in item:
            raise ValueError(f"Candidate at index {idx} in {context} is missing field '{required}'.")
    values = dict(item)
    values["track_id"] = str(item.get("track_id", f"trk{idx}"))
    values["event_id"] = str(item["event_id"])
    values["sign"] = int(item["sign"])
    for name in ("tpc_n_cls_found", "tpc_n_cls_shared", "its_n_cls"):
        if name in values:
            values[name] = int(values[name])
    return Candidate(**values)


def _parse_section(section: str, cls: type, value: Any):
    """Validate one configuration section and build its dataclass."""
    if not isinstance(value, dict):
        raise ConfigurationError(f"Configuration section '{section}' must be an object.")
    allowed = {f.name for f in dataclasses.fields(cls)}
    unknown = set(value) - allowed
    if unknown:
        raise ConfigurationError(
            f"Unknown key(s) in section '{section}': {', '.join(sorted(unknown))}"
        )
    kwargs = {k: tuple(v) if isinstance(v, list) else v for k, v in value.items()}
    return cls(**kwargs)


def _parse_binning(value: Any) -> HistogramBinning:
    """Parse `{"mass": [nbins, low, high], ...}` into `HistogramBinning`."""
    if not isinstance(value, dict):
        raise ConfigurationError("Configuration section 'binning' must be an object.")
    defaults = HistogramBinning()
    kwargs: dict[str, AxisSpec] = {}
    for name, axis in value.items():
        if name not in ("mass", "pt", "dca_xy"):
            raise ConfigurationError(f"Unknown binning axis '{name}'.")
        title = getattr(defaults, name).title
        if isinstance(axis, list) and len(axis) == 3:
            kwargs[name] = AxisSpec(int(axis[0]), float(axis[1]), float(axis[2]), title)
        elif isinstance(axis, dict):
            kwargs[name] = AxisSpec(
                int(axis["nbins"]), float(axis["low"]), float(axis["high"]), str(axis.get("title", title))
            )
        else:
            raise ConfigurationError(
                f"Binning axis '{name}' must be [nbins, low, high] or an object."
            )
    return HistogramBinning(**kwargs)


def _load_json(path: str | Path) -> dict[str, Any]:
    """Read and validate a JSON object document from disk."""
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"JSON document at {path} must be an object.")
    return data
