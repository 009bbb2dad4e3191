"""Pair construction strategies and the per-pair correlation evaluator.

Two strategies cover the two species configurations:
- `IdenticalPairing`: both legs come from the first-species pools, same-event
  pairs are the unordered `k < l` combinations.
- `NonIdenticalPairing`: first leg from the first-species pool, second leg
  from the second-species pool, full cross products.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import combinations, product
from typing import Iterator, Protocol

from .config import MixingConfig, PairCuts
from .context import BatchContext
from .models import Candidate, Event, LorentzVector, ParticleHypothesis
from .physics import candidate_to_lorentz, delta_phi_star, pair_kinematics
from .pid import particle_hypothesis_from_pdg

LegPair = tuple[Candidate, Candidate]


@dataclass(frozen=True)
class CandidatePair:
    """Two legs with their hypotheses and derived pair observables."""

    first: Candidate
    second: Candidate
    first_hypothesis: ParticleHypothesis
    second_hypothesis: ParticleHypothesis
    p4: LorentzVector
    mass: float
    pt: float
    rapidity: float
    delta_eta: float
    delta_phi_star: float


class PairingStrategy(Protocol):
    def same_event_pairs(self, context: BatchContext, event: Event) -> Iterator[LegPair]:
        ...

    def mixed_event_pairs(
        self, context: BatchContext, event_1: Event, event_2: Event
    ) -> Iterator[LegPair]:
        ...


class IdenticalPairing:
    """Same-species pairing from the first-species pools only."""

    def same_event_pairs(self, context: BatchContext, event: Event) -> Iterator[LegPair]:
        return combinations(context.first_of(event.event_id), 2)

    def mixed_event_pairs(
        self, context: BatchContext, event_1: Event, event_2: Event
    ) -> Iterator[LegPair]:
        return product(context.first_of(event_1.event_id), context.first_of(event_2.event_id))


class NonIdenticalPairing:
    """Cross-species pairing between first- and second-species pools."""

    def same_event_pairs(self, context: BatchContext, event: Event) -> Iterator[LegPair]:
        return product(context.first_of(event.event_id), context.second_of(event.event_id))

    def mixed_event_pairs(
        self, context: BatchContext, event_1: Event, event_2: Event
    ) -> Iterator[LegPair]:
        return product(context.first_of(event_1.event_id), context.second_of(event_2.event_id))


def make_pairing_strategy(config: MixingConfig) -> PairingStrategy:
    """Pick the pairing strategy once from the species configuration."""
    return IdenticalPairing() if config.is_identical else NonIdenticalPairing()


@dataclass
class PairEvaluator:
    """Build `CandidatePair` objects and apply close-pair and rapidity cuts."""

    first_hypothesis: ParticleHypothesis
    second_hypothesis: ParticleHypothesis
    cuts: PairCuts

    @classmethod
    def from_config(cls, config: MixingConfig) -> "PairEvaluator":
        return cls(
            first_hypothesis=particle_hypothesis_from_pdg(config.first.pdg_code),
            second_hypothesis=particle_hypothesis_from_pdg(config.second.pdg_code),
            cuts=config.pair_cuts,
        )

    def build(
        self,
        first: Candidate,
        second: Candidate,
        mag_field_1: float,
        mag_field_2: float,
    ) -> CandidatePair:
        """Combine two legs; each field belongs to the leg's own event."""
        p4 = candidate_to_lorentz(first, self.first_hypothesis.mass) + candidate_to_lorentz(
            second, self.second_hypothesis.mass
        )
        mass, pt, y = pair_kinematics(p4)
        return CandidatePair(
            first=first,
            second=second,
            first_hypothesis=self.first_hypothesis,
            second_hypothesis=self.second_hypothesis,
            p4=p4,
            mass=mass,
            pt=pt,
            rapidity=y,
            delta_eta=second.eta - first.eta,
            delta_phi_star=delta_phi_star(first, second, mag_field_1, mag_field_2, self.cuts.radius),
        )

    def is_close_pair(self, pair: CandidatePair) -> bool:
        """Both angular separations below threshold: likely split or merged tracks."""
        return (
            abs(pair.delta_eta) < self.cuts.min_delta_eta
            and abs(pair.delta_phi_star) < self.cuts.min_delta_phi_star
        )

    def accepts(self, pair: CandidatePair) -> bool:
        if self.is_close_pair(pair):
            return False
        if math.isnan(pair.rapidity):
            return False
        return abs(pair.rapidity) <= self.cuts.max_abs_rapidity
