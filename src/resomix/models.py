"""Core data models used by the event-mixing engine.

This module defines:
- batch-scoped detector records (`Candidate`, `Event`, `EventBatch`)
- particle-mass assignment objects (`ParticleHypothesis`)
- four-momentum arithmetic (`LorentzVector`)
- engine outputs (`Observation`, `BatchResult`).

Cut and configuration objects live in `resomix.config`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

SIGNAL = "signal"
BACKGROUND = "background"

MixingPoolKey = tuple[int, int]


@dataclass(frozen=True)
class Candidate:
    """Single measured track with kinematics, PID response and quality metrics.

    PID responses are stored as n-sigma deviations from the expected TPC
    energy loss and TOF arrival time for each supported species.
    """

    track_id: str
    event_id: str
    sign: int
    p: float   # momentum magnitude
    pt: float
    eta: float
    phi: float
    tpc_nsigma_pi: float = 0.0
    tpc_nsigma_ka: float = 0.0
    tpc_nsigma_pr: float = 0.0
    tpc_nsigma_de: float = 0.0
    tof_nsigma_pi: float = 0.0
    tof_nsigma_ka: float = 0.0
    tof_nsigma_pr: float = 0.0
    tof_nsigma_de: float = 0.0
    tpc_n_cls_found: int = 0
    tpc_n_cls_shared: int = 0
    tpc_chi2_ncl: float = 0.0
    tpc_crossed_rows_over_findable: float = 1.0
    its_n_cls: int = 0
    its_chi2_ncl: float = 0.0
    dca_xy: float = 0.0
    dca_z: float = 0.0


@dataclass(frozen=True)
class Event:
    """One collision record.

    `mag_field` is in kGauss. `multiplicity` is the raw multiplicity estimate
    used for mixing; when absent the percentile is used instead.
    """

    event_id: str
    pos_z: float
    mult_percentile: float
    mag_field: float
    multiplicity: float | None = None


@dataclass(frozen=True)
class EventBatch:
    """One upstream delivery: ordered events plus ordered candidates."""

    events: tuple[Event, ...]
    candidates: tuple[Candidate, ...]


@dataclass(frozen=True)
class ParticleHypothesis:
    """Named particle hypothesis used to assign a mass to a pair leg."""

    name: str
    mass: float
    pdg_id: int | None = None


@dataclass(frozen=True)
class LorentzVector:
    """Simple 4-vector with convenience properties and addition."""

    px: float
    py: float
    pz: float
    e: float

    def __add__(self, other: "LorentzVector") -> "LorentzVector":
        """Component-wise 4-vector addition."""
        return LorentzVector(
            self.px + other.px,
            self.py + other.py,
            self.pz + other.pz,
            self.e + other.e,
        )

    @property
    def p2(self) -> float:
        """Squared 3-momentum magnitude."""
        return self.px * self.px + self.py * self.py + self.pz * self.pz

    @property
    def mass2(self) -> float:
        """Invariant mass squared."""
        return self.e * self.e - self.p2

    @property
    def mass(self) -> float:
        """Invariant mass with signed handling for small negative mass2 values."""
        m2 = self.mass2
        return m2**0.5 if m2 >= 0.0 else -((-m2) ** 0.5)

    @property
    def pt(self) -> float:
        """Transverse momentum."""
        return (self.px * self.px + self.py * self.py) ** 0.5


@dataclass(frozen=True)
class Observation:
    """One accepted pair, tagged as same-event signal or mixed-event background."""

    mass: float
    pt: float
    kind: str
    event_ids: tuple[str, str]
    track_ids: tuple[str, str]


@dataclass
class BatchResult:
    """Observations and bookkeeping counters for one processed batch."""

    observations: list[Observation] = field(default_factory=list)
    n_events: int = 0
    n_candidates: int = 0
    n_selected_first: int = 0
    n_selected_second: int = 0
    n_mixing_pools: int = 0
    same_event_candidates: int = 0
    same_event_accepted: int = 0
    mixed_event_candidates: int = 0
    mixed_event_accepted: int = 0

    @property
    def signal(self) -> list[Observation]:
        """Accepted same-event observations."""
        return [o for o in self.observations if o.kind == SIGNAL]

    @property
    def background(self) -> list[Observation]:
        """Accepted mixed-event observations."""
        return [o for o in self.observations if o.kind == BACKGROUND]
