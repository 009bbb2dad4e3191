"""Observation sink protocol and an in-memory histogram registry.

The engine only ever talks to a sink through `add` and `fill`, with the
channel names defined below. `HistogramRegistry` is the default sink; any
object with the same two methods can replace it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import numpy as np
from boost_histogram import storage
from hist import Hist, axis as hax

from .config import AxisSpec, MixingConfig
from .pid import pdg_symbol

logger = logging.getLogger(__name__)

TRACKS = "tracks"
VERTEX_Z_ALL = "vertex_z_all"
VERTEX_Z = "vertex_z"
ETA_VS_PT = "eta_vs_pt"
SAME_EVENT_CANDIDATES = "same_event_candidates"
SAME_EVENT_MASS = "same_event_mass"
MIXED_EVENT_MASS = "mixed_event_mass"
SAME_EVENT_MASS_PT = "same_event_mass_pt"
MIXED_EVENT_MASS_PT = "mixed_event_mass_pt"

# Per-species QA channels, suffixed with `_first` / `_second`.
SPECIES_CHANNELS = ("p", "dca_xy", "nsigma_tof", "nsigma_tpc", "rapidity")


def species_channel(name: str, leg: str) -> str:
    """Channel name of a per-species QA quantity, e.g. `p_first`."""
    return f"{name}_{leg}"


class ObservationSink(Protocol):
    """Anything that can register named channels and accumulate fills."""

    def add(self, name: str, axes: Sequence[AxisSpec], title: str = "") -> None:
        ...

    def fill(self, name: str, *values: float, weight: float = 1.0) -> None:
        ...


@dataclass
class Histogram:
    """Fixed-binning n-dimensional histogram backed by `hist.Hist`.

    Axes carry no flow bins, so out-of-range fills raise `entries` but no bin.
    """

    name: str
    axes: tuple[AxisSpec, ...]
    title: str = ""
    hist: Hist = field(init=False, repr=False)
    entries: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self.hist = Hist(
            *(
                hax.Regular(a.nbins, a.low, a.high, name=f"x{i}", label=a.title or f"x{i}",
                            underflow=False, overflow=False)
                for i, a in enumerate(self.axes)
            ),
            storage=storage.Double(),
        )

    def fill(self, values: Sequence[float], weight: float = 1.0) -> None:
        if len(values) != len(self.axes):
            raise ValueError(
                f"Histogram '{self.name}' expects {len(self.axes)} values, got {len(values)}."
            )
        self.entries += 1
        self.hist.fill(*(np.asarray([v], dtype=float) for v in values), weight=weight)

    @property
    def counts(self) -> np.ndarray:
        return self.hist.values()

    def bin_centers(self, axis_index: int = 0) -> np.ndarray:
        return np.asarray(self.hist.axes[axis_index].centers)

    @property
    def integral(self) -> float:
        return float(self.hist.values().sum())


class HistogramRegistry:
    """Name-addressed collection of histograms implementing `ObservationSink`."""

    def __init__(self) -> None:
        self._histograms: dict[str, Histogram] = {}

    def add(self, name: str, axes: Sequence[AxisSpec], title: str = "") -> None:
        if name in self._histograms:
            raise ValueError(f"Histogram '{name}' is already registered.")
        self._histograms[name] = Histogram(name=name, axes=tuple(axes), title=title or name)

    def fill(self, name: str, *values: float, weight: float = 1.0) -> None:
        try:
            hist = self._histograms[name]
        except KeyError as exc:
            raise KeyError(f"Histogram '{name}' was never registered.") from exc
        hist.fill(values, weight)

    def get(self, name: str) -> Histogram:
        return self._histograms[name]

    def names(self) -> list[str]:
        return list(self._histograms)

    def __contains__(self, name: object) -> bool:
        return name in self._histograms

    def __iter__(self):
        return iter(self._histograms.values())


def register_channels(sink: ObservationSink, config: MixingConfig) -> None:
    """Register every channel the engine fills for `config`.

    The `_second` species channels exist only for non-identical species.
    """
    binning = config.binning
    mass_axis = binning.mass
    pt_axis = binning.pt
    dca_axis = binning.dca_xy
    sigma_axis = AxisSpec(100, -10.0, 10.0)

    sink.add(TRACKS, [AxisSpec(2, 0.5, 2.5, "Tracks")])
    sink.add(VERTEX_Z_ALL, [AxisSpec(100, -20.0, 20.0, "vtx")])
    sink.add(VERTEX_Z, [AxisSpec(100, -20.0, 20.0, "vtx")])
    sink.add(SAME_EVENT_CANDIDATES, [AxisSpec(2, 0.5, 2.5)])
    sink.add(SAME_EVENT_MASS, [mass_axis])
    sink.add(MIXED_EVENT_MASS, [mass_axis])
    sink.add(SAME_EVENT_MASS_PT, [mass_axis, pt_axis])
    sink.add(MIXED_EVENT_MASS_PT, [mass_axis, pt_axis])
    sink.add(
        ETA_VS_PT,
        [pt_axis, AxisSpec(100, -10.0, 10.0, "eta")],
        title=f"eta_{config.first.pdg_code}",
    )

    legs = [("first", config.first.pdg_code)]
    if not config.is_identical:
        legs.append(("second", config.second.pdg_code))
    for leg, pdg in legs:
        symbol = pdg_symbol(pdg)
        sink.add(species_channel("p", leg), [pt_axis], title=f"p_{pdg}")
        sink.add(species_channel("dca_xy", leg), [pt_axis, dca_axis], title=f"dca_{pdg}")
        sink.add(
            species_channel("nsigma_tof", leg),
            [pt_axis, sigma_axis.retitled(f"Nsigma_TOF({symbol})")],
            title=f"nsigmaTOF_{pdg}",
        )
        sink.add(
            species_channel("nsigma_tpc", leg),
            [pt_axis, sigma_axis.retitled(f"Nsigma_TPC({symbol})")],
            title=f"nsigmaTPC_{pdg}",
        )
        sink.add(
            species_channel("rapidity", leg),
            [pt_axis, sigma_axis.retitled(f"y({symbol})")],
            title=f"rapidity_{pdg}",
        )
    logger.debug("Registered observation channels for %d species leg(s)", len(legs))
