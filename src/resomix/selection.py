"""Candidate selection: quality gates, event windows and PID species tests."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import MixingConfig, RejectionHypothesis, SpeciesSelection, TrackCuts
from .context import BatchContext
from .models import Candidate, Event, EventBatch
from .physics import track_rapidity
from .pid import particle_hypothesis_from_pdg, tof_nsigma, tof_selection, tpc_nsigma, tpc_selection
from .sink import ETA_VS_PT, TRACKS, VERTEX_Z, VERTEX_Z_ALL, ObservationSink, species_channel

logger = logging.getLogger(__name__)


def passes_track_quality(candidate: Candidate, cuts: TrackCuts) -> bool:
    """Apply momentum, eta, cluster, chi2 and impact-parameter gates."""
    p_min, p_max = cuts.momentum_range
    if not p_min < candidate.p < p_max:
        return False
    if abs(candidate.eta) >= cuts.max_abs_eta:
        return False
    if candidate.tpc_n_cls_found < cuts.min_tpc_n_cls_found:
        return False
    if candidate.tpc_n_cls_shared > cuts.max_tpc_n_cls_shared:
        return False
    if candidate.its_n_cls < cuts.min_its_n_cls:
        return False
    if candidate.its_chi2_ncl > cuts.max_its_chi2_ncl:
        return False
    if candidate.tpc_chi2_ncl > cuts.max_tpc_chi2_ncl:
        return False
    if candidate.tpc_crossed_rows_over_findable < cuts.min_tpc_crossed_rows_over_findable:
        return False
    if abs(candidate.dca_xy) > cuts.max_abs_dca_xy:
        return False
    if abs(candidate.dca_xy) < cuts.dca_xy_exclusion:
        return False
    if abs(candidate.dca_z) > cuts.max_abs_dca_z:
        return False
    if abs(candidate.dca_z) < cuts.dca_z_exclusion:
        return False
    return True


def matches_species(candidate: Candidate, species: SpeciesSelection) -> bool:
    """Charge sign plus TPC (low momentum) or TOF (high momentum) n-sigma window."""
    if candidate.sign != species.sign:
        return False
    if candidate.p < species.pid_momentum_threshold:
        return tpc_selection(candidate, species.pdg_code, species.tpc_nsigma_range)
    return tof_selection(candidate, species.pdg_code, species.tof_nsigma_range)


def is_vetoed(candidate: Candidate, rejection: RejectionHypothesis) -> bool:
    """True when an active rejection hypothesis claims the candidate via TOF."""
    if not rejection.active:
        return False
    return tof_selection(candidate, rejection.pdg_code, rejection.tof_nsigma_range)


@dataclass
class CandidateSelector:
    """Fill the per-event species pools of a `BatchContext` from one batch."""

    config: MixingConfig
    sink: ObservationSink

    def __post_init__(self) -> None:
        self._first_mass = particle_hypothesis_from_pdg(self.config.first.pdg_code).mass
        self._second_mass = particle_hypothesis_from_pdg(self.config.second.pdg_code).mass
        self._identical = self.config.is_identical

    def passes_event_cuts(self, event: Event) -> bool:
        cuts = self.config.event_cuts
        if not abs(event.pos_z) < cuts.max_abs_vertex_z:
            return False
        low, high = cuts.mult_percentile_range
        return low < event.mult_percentile < high

    def select(self, batch: EventBatch, context: BatchContext) -> None:
        """Populate `context.events` and both species pools from `batch`."""
        for event in batch.events:
            context.events[event.event_id] = event
            self.sink.fill(VERTEX_Z_ALL, event.pos_z)
        self.sink.fill(TRACKS, 2.0, weight=float(len(batch.candidates)))

        for candidate in batch.candidates:
            if not passes_track_quality(candidate, self.config.track_cuts):
                continue
            self.sink.fill(TRACKS, 1.0)
            event = context.events.get(candidate.event_id)
            if event is None:
                logger.debug(
                    "Dropping track %s: event %s is not in the batch",
                    candidate.track_id,
                    candidate.event_id,
                )
                continue
            self.sink.fill(VERTEX_Z, event.pos_z)
            if not self.passes_event_cuts(event):
                continue
            self.sink.fill(ETA_VS_PT, candidate.pt, candidate.eta)

            y_first = track_rapidity(candidate, self._first_mass)
            if abs(y_first) > self.config.track_cuts.max_abs_rapidity:
                continue
            self.sink.fill(species_channel("rapidity", "first"), candidate.pt, y_first)

            if matches_species(candidate, self.config.first):
                context.add_first(candidate)
                self._fill_species_qa(candidate, self.config.first, "first")
                # at most one species pool per candidate
                continue

            if self._identical:
                continue
            if is_vetoed(candidate, self.config.rejection):
                continue
            if matches_species(candidate, self.config.second):
                context.add_second(candidate)
                self._fill_species_qa(candidate, self.config.second, "second")
                self.sink.fill(
                    species_channel("rapidity", "second"),
                    candidate.pt,
                    track_rapidity(candidate, self._second_mass),
                )

        logger.debug(
            "Selected %d first-species and %d second-species candidates in %d events",
            sum(len(v) for v in context.first_pools.values()),
            sum(len(v) for v in context.second_pools.values()),
            len(batch.events),
        )

    def _fill_species_qa(
        self,
        candidate: Candidate,
        species: SpeciesSelection,
        leg: str,
    ) -> None:
        self.sink.fill(species_channel("p", leg), candidate.p)
        self.sink.fill(species_channel("dca_xy", leg), candidate.pt, candidate.dca_xy)
        self.sink.fill(
            species_channel("nsigma_tof", leg), candidate.p, tof_nsigma(candidate, species.pdg_code)
        )
        self.sink.fill(
            species_channel("nsigma_tpc", leg), candidate.p, tpc_nsigma(candidate, species.pdg_code)
        )
