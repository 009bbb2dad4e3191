"""Batch-scoped mutable state shared by the selector, binner and pair builder."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Candidate, Event, MixingPoolKey


@dataclass
class BatchContext:
    """Per-batch candidate pools and mixing pools.

    Pools hold references to the batch's own `Candidate`/`Event` objects, so
    nothing is copied and everything goes away with `clear()`.
    """

    events: dict[str, Event] = field(default_factory=dict)
    first_pools: dict[str, list[Candidate]] = field(default_factory=dict)
    second_pools: dict[str, list[Candidate]] = field(default_factory=dict)
    mixing_pools: dict[MixingPoolKey, list[Event]] = field(default_factory=dict)

    def add_first(self, candidate: Candidate) -> None:
        self.first_pools.setdefault(candidate.event_id, []).append(candidate)

    def add_second(self, candidate: Candidate) -> None:
        self.second_pools.setdefault(candidate.event_id, []).append(candidate)

    def first_of(self, event_id: str) -> list[Candidate]:
        return self.first_pools.get(event_id, [])

    def second_of(self, event_id: str) -> list[Candidate]:
        return self.second_pools.get(event_id, [])

    def is_empty(self) -> bool:
        return not (self.events or self.first_pools or self.second_pools or self.mixing_pools)

    def clear(self) -> None:
        self.events.clear()
        self.first_pools.clear()
        self.second_pools.clear()
        self.mixing_pools.clear()
