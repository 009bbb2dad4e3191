"""High-level event-mixing engine: select, bin, pair, and flush one batch at a time."""

from __future__ import annotations

import logging
from typing import Iterable

from .binning import EventBinner
from .config import MixingConfig
from .context import BatchContext
from .models import BACKGROUND, SIGNAL, BatchResult, Event, EventBatch, Observation
from .pairing import CandidatePair, PairEvaluator, make_pairing_strategy
from .selection import CandidateSelector
from .sink import (
    MIXED_EVENT_MASS,
    MIXED_EVENT_MASS_PT,
    SAME_EVENT_CANDIDATES,
    SAME_EVENT_MASS,
    SAME_EVENT_MASS_PT,
    HistogramRegistry,
    ObservationSink,
    register_channels,
)

logger = logging.getLogger(__name__)


class EventMixer:
    """Build same-event signal and mixed-event background pair observations.

    The configuration is validated once here, so an unusable configuration
    fails before any batch is touched. Batch state lives in a `BatchContext`
    that is cleared after every batch, even when processing raises.
    """

    def __init__(self, config: MixingConfig | None = None, sink: ObservationSink | None = None) -> None:
        self.config = config or MixingConfig()
        self.config.validate()
        self.sink: ObservationSink = sink if sink is not None else HistogramRegistry()
        register_channels(self.sink, self.config)
        self.selector = CandidateSelector(self.config, self.sink)
        self.binner = EventBinner(self.config.mixing, self.config.is_identical)
        self.strategy = make_pairing_strategy(self.config)
        self.evaluator = PairEvaluator.from_config(self.config)
        self.context = BatchContext()
        logger.info(
            "Configured mixing: identical=%s first=%+d second=%+d mixed_event=%s",
            self.config.is_identical,
            self.config.first.signed_pdg,
            self.config.second.signed_pdg,
            self.config.mixing.enabled,
        )

    def process_batch(self, batch: EventBatch) -> BatchResult:
        """Run selection, binning and pairing for one batch.

        Workflow:
        1. Select candidates into per-event species pools.
        2. Assign events with selected candidates to mixing pools.
        3. For each pool (ascending key) and event index `i`: same-event pairs,
           then, with mixing enabled, cross-event pairs with every `j > i`.
        4. Clear all batch state.
        """
        result = BatchResult(n_events=len(batch.events), n_candidates=len(batch.candidates))
        context = self.context
        try:
            self.selector.select(batch, context)
            result.n_selected_first = sum(len(v) for v in context.first_pools.values())
            result.n_selected_second = sum(len(v) for v in context.second_pools.values())
            self.binner.bin_events(context)
            result.n_mixing_pools = len(context.mixing_pools)

            for key in sorted(context.mixing_pools):
                pool = context.mixing_pools[key]
                for i, event_1 in enumerate(pool):
                    self._same_event(event_1, result)
                    if not self.config.mixing.enabled:
                        continue
                    for event_2 in pool[i + 1:]:
                        self._mixed_event(event_1, event_2, result)
        finally:
            context.clear()
        logger.debug(
            "Batch done: %d signal / %d background observations from %d pools",
            result.same_event_accepted,
            result.mixed_event_accepted,
            result.n_mixing_pools,
        )
        return result

    def process_batches(self, batches: Iterable[EventBatch]) -> list[BatchResult]:
        """Run `process_batch` sequentially over a sequence of batches."""
        return [self.process_batch(batch) for batch in batches]

    def _same_event(self, event: Event, result: BatchResult) -> None:
        for first, second in self.strategy.same_event_pairs(self.context, event):
            pair = self.evaluator.build(first, second, event.mag_field, event.mag_field)
            result.same_event_candidates += 1
            self.sink.fill(SAME_EVENT_CANDIDATES, 1.0)
            if not self.evaluator.accepts(pair):
                continue
            result.same_event_accepted += 1
            self.sink.fill(SAME_EVENT_CANDIDATES, 2.0)
            self.sink.fill(SAME_EVENT_MASS, pair.mass)
            self.sink.fill(SAME_EVENT_MASS_PT, pair.mass, pair.pt)
            result.observations.append(_observation(pair, SIGNAL))

    def _mixed_event(self, event_1: Event, event_2: Event, result: BatchResult) -> None:
        for first, second in self.strategy.mixed_event_pairs(self.context, event_1, event_2):
            pair = self.evaluator.build(first, second, event_1.mag_field, event_2.mag_field)
            result.mixed_event_candidates += 1
            if not self.evaluator.accepts(pair):
                continue
            result.mixed_event_accepted += 1
            self.sink.fill(MIXED_EVENT_MASS, pair.mass)
            self.sink.fill(MIXED_EVENT_MASS_PT, pair.mass, pair.pt)
            result.observations.append(_observation(pair, BACKGROUND))


def _observation(pair: CandidatePair, kind: str) -> Observation:
    return Observation(
        mass=pair.mass,
        pt=pair.pt,
        kind=kind,
        event_ids=(pair.first.event_id, pair.second.event_id),
        track_ids=(pair.first.track_id, pair.second.track_id),
    )
