"""Configurable cuts, PID hypotheses, mixing controls and histogram binning.

All objects are frozen dataclasses with defaults, so a bare `MixingConfig()`
is a valid same-sign proton-proton configuration. `MixingConfig.validate`
is the single place where fatal configuration errors are detected.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .exceptions import ConfigurationError
from .pid import PDG_PROTON, is_supported_pdg

Range = tuple[float, float]


@dataclass(frozen=True)
class EventCuts:
    """Event-level windows applied through each candidate's owning event."""

    mult_percentile_range: Range = (-100.0, 1000.0)
    max_abs_vertex_z: float = 10.0


@dataclass(frozen=True)
class TrackCuts:
    """Track-quality, impact-parameter and kinematic gates.

    The `*_exclusion` values discard candidates with `|dca|` below them, so a
    zero exclusion keeps everything.
    """

    momentum_range: Range = (0.0, 100.0)
    max_abs_eta: float = 100.0
    min_tpc_n_cls_found: int = 0
    max_tpc_n_cls_shared: int = 100
    max_tpc_chi2_ncl: float = 100.0
    min_tpc_crossed_rows_over_findable: float = 0.0
    min_its_n_cls: int = 0
    max_its_chi2_ncl: float = 100.0
    max_abs_dca_xy: float = 100.0
    max_abs_dca_z: float = 100.0
    dca_xy_exclusion: float = 0.0
    dca_z_exclusion: float = 0.0
    max_abs_rapidity: float = 100.0


@dataclass(frozen=True)
class SpeciesSelection:
    """PID hypothesis for one pair leg.

    Below `pid_momentum_threshold` the TPC window decides, above it the TOF
    window does.
    """

    pdg_code: int = PDG_PROTON
    sign: int = 1
    tpc_nsigma_range: Range = (-3.0, 3.0)
    pid_momentum_threshold: float = 10.0
    tof_nsigma_range: Range = (-3.0, 3.0)

    @property
    def signed_pdg(self) -> int:
        return self.sign * self.pdg_code


@dataclass(frozen=True)
class RejectionHypothesis:
    """Optional TOF veto applied to the second species when non-identical."""

    pdg_code: int = 0
    tof_nsigma_range: Range = (0.0, 0.0)

    @property
    def active(self) -> bool:
        return self.pdg_code != 0


@dataclass(frozen=True)
class PairCuts:
    """Close-pair rejection thresholds and the pair rapidity window."""

    min_delta_eta: float = 0.01
    min_delta_phi_star: float = 0.01
    radius: float = 1.2   # metres
    max_abs_rapidity: float = 0.5


@dataclass(frozen=True)
class MixingSettings:
    """Event-mixing switch and mixing-pool granularity."""

    enabled: bool = False
    vertex_bin_width: float = 2.0
    mult_bin_width: float = 50.0


@dataclass(frozen=True)
class AxisSpec:
    """Uniform histogram axis `(nbins, low, high)`."""

    nbins: int
    low: float
    high: float
    title: str = ""

    def retitled(self, title: str) -> "AxisSpec":
        return AxisSpec(self.nbins, self.low, self.high, title)


@dataclass(frozen=True)
class HistogramBinning:
    """Binning of the mass, transverse-momentum and impact-parameter axes."""

    mass: AxisSpec = AxisSpec(500, 0.4, 0.6, "Inv. mass (GeV/c^2)")
    pt: AxisSpec = AxisSpec(1000, 0.0, 10.0, "pT (GeV/c)")
    dca_xy: AxisSpec = AxisSpec(100, -1.0, 1.0, "DCA_xy (cm)")


@dataclass(frozen=True)
class MixingConfig:
    """Complete configuration surface of one mixing run."""

    event_cuts: EventCuts = field(default_factory=EventCuts)
    track_cuts: TrackCuts = field(default_factory=TrackCuts)
    first: SpeciesSelection = field(default_factory=SpeciesSelection)
    second: SpeciesSelection = field(default_factory=SpeciesSelection)
    rejection: RejectionHypothesis = field(default_factory=RejectionHypothesis)
    pair_cuts: PairCuts = field(default_factory=PairCuts)
    mixing: MixingSettings = field(default_factory=MixingSettings)
    binning: HistogramBinning = field(default_factory=HistogramBinning)

    @property
    def is_identical(self) -> bool:
        """Both legs share the same signed PDG code."""
        return self.first.signed_pdg == self.second.signed_pdg

    def validate(self) -> None:
        """Raise `ConfigurationError` for any setting the engine cannot run with."""
        for label, species in (("first", self.first), ("second", self.second)):
            if species.pdg_code == 0:
                raise ConfigurationError(f"PDG code of the {label} particle is 0.")
            if not is_supported_pdg(species.pdg_code):
                raise ConfigurationError(
                    f"PDG code of the {label} particle ({species.pdg_code}) is not supported."
                )
            if species.sign not in (-1, 1):
                raise ConfigurationError(
                    f"Sign of the {label} particle must be +1 or -1, got {species.sign}."
                )
            _check_range(f"{label}.tpc_nsigma_range", species.tpc_nsigma_range)
            _check_range(f"{label}.tof_nsigma_range", species.tof_nsigma_range)
        if self.rejection.active:
            if not is_supported_pdg(self.rejection.pdg_code):
                raise ConfigurationError(
                    f"Rejection PDG code ({self.rejection.pdg_code}) is not supported."
                )
            _check_range("rejection.tof_nsigma_range", self.rejection.tof_nsigma_range)
        _check_range("event_cuts.mult_percentile_range", self.event_cuts.mult_percentile_range)
        _check_range("track_cuts.momentum_range", self.track_cuts.momentum_range)
        if self.mixing.vertex_bin_width <= 0.0:
            raise ConfigurationError("mixing.vertex_bin_width must be positive.")
        if self.mixing.mult_bin_width <= 0.0:
            raise ConfigurationError("mixing.mult_bin_width must be positive.")
        if self.pair_cuts.radius <= 0.0:
            raise ConfigurationError("pair_cuts.radius must be positive.")
        for name in ("mass", "pt", "dca_xy"):
            axis = getattr(self.binning, name)
            if axis.nbins <= 0 or axis.high <= axis.low:
                raise ConfigurationError(
                    f"binning.{name} must have nbins > 0 and high > low, got {axis!r}."
                )


def _check_range(name: str, value: Range) -> None:
    if len(value) != 2:
        raise ConfigurationError(f"{name} must be a [low, high] pair, got {value!r}.")
    if value[0] > value[1]:
        raise ConfigurationError(f"{name} is inverted: {value!r}.")
