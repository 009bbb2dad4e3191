"""Assignment of events to mixing pools keyed by `(vertex z, multiplicity)`."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .config import MixingSettings
from .context import BatchContext
from .models import Event, MixingPoolKey

logger = logging.getLogger(__name__)


def round_half_away(x: float) -> int:
    """Round to nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def mixing_pool_key(event: Event, settings: MixingSettings) -> MixingPoolKey:
    """Quantize an event into its mixing-pool key.

    The raw multiplicity is used when the event carries one, the percentile
    otherwise.
    """
    mult = event.multiplicity if event.multiplicity is not None else event.mult_percentile
    return (
        round_half_away(event.pos_z / settings.vertex_bin_width),
        math.floor(mult / settings.mult_bin_width),
    )


@dataclass
class EventBinner:
    """Append every event with selected candidates to its mixing pool."""

    settings: MixingSettings
    identical: bool

    def has_candidates(self, event: Event, context: BatchContext) -> bool:
        if context.first_of(event.event_id):
            return True
        if self.identical:
            return False
        return bool(context.second_of(event.event_id))

    def bin_events(self, context: BatchContext) -> None:
        # context.events preserves batch arrival order.
        for event in context.events.values():
            if not self.has_candidates(event, context):
                continue
            key = mixing_pool_key(event, self.settings)
            context.mixing_pools.setdefault(key, []).append(event)
        logger.debug(
            "Binned %d events into %d mixing pools",
            sum(len(v) for v in context.mixing_pools.values()),
            len(context.mixing_pools),
        )
