"""
Structured signals emitted by the draft core for presentation layers.

The core never renders anything. Listeners subscribe to an EventBus and
receive events in batches: everything emitted inside one ``bus.batch()``
block (one sync tick, one panic entry) is delivered as a single list.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DraftSignal:
    """Base class for all emitted events."""

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class PickProcessed(DraftSignal):
    pick: Any                       # Pick
    player: Any = None              # Player, None if not in catalog
    analysis: Any = None            # PickAnalysis


@dataclass(frozen=True)
class TurnChanged(DraftSignal):
    is_user_turn: bool
    is_estimated: bool = False


@dataclass(frozen=True)
class DraftStatusChanged(DraftSignal):
    status: str


@dataclass(frozen=True)
class ScarcityUpdated(DraftSignal):
    levels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RecommendationsReady(DraftSignal):
    recommendations: Any            # RecommendationSet


@dataclass(frozen=True)
class QueueChanged(DraftSignal):
    player_ids: List[str] = field(default_factory=list)
    evicted: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PlanChanged(DraftSignal):
    removed: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TimerTick(DraftSignal):
    remaining_seconds: int


@dataclass(frozen=True)
class TimerThreshold(DraftSignal):
    remaining_seconds: int


@dataclass(frozen=True)
class TimerExpired(DraftSignal):
    pass


@dataclass(frozen=True)
class AutoPickSuggested(DraftSignal):
    player: Optional[Any] = None    # Queue head, advisory only


Listener = Callable[[List[DraftSignal]], None]


class EventBus:
    """Observer hub with per-tick batching."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._pending: List[DraftSignal] = []
        self._depth = 0

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @contextmanager
    def batch(self):
        """Coalesce all events emitted inside the block into one delivery."""
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0 and self._pending:
                events, self._pending = self._pending, []
                self._deliver(events)

    def emit(self, event: DraftSignal) -> None:
        if self._depth > 0:
            self._pending.append(event)
        else:
            self._deliver([event])

    def _deliver(self, events: List[DraftSignal]) -> None:
        for listener in list(self._listeners):
            try:
                listener(events)
            except Exception as e:
                # A broken presentation listener must not stop the sync loop
                logger.error(f"Event listener failed: {e}", exc_info=True)
