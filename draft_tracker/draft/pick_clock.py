"""
Pick-clock countdown driven by the session scheduler.

The clock does not own a timer thread: the scheduler calls ``tick()`` once
per elapsed second. Threshold events fire at 30s, 15s and every second of
the final five; at zero the clock expires and suggests the queue head.
"""

import logging
from typing import Callable, Optional

from .. import config
from .events import AutoPickSuggested, EventBus, TimerExpired, TimerThreshold, TimerTick

logger = logging.getLogger(__name__)


class PickClock:
    """Countdown for the tracked participant's pick."""

    def __init__(self, event_bus: EventBus, queue_head: Optional[Callable] = None):
        """
        Args:
            event_bus: Bus receiving timer events
            queue_head: Callable returning the current queue head (or None)
        """
        self.event_bus = event_bus
        self.queue_head = queue_head or (lambda: None)
        self.remaining: Optional[int] = None

    @property
    def running(self) -> bool:
        return self.remaining is not None

    def start(self, seconds: int = config.DEFAULT_PICK_CLOCK_SECONDS) -> None:
        if seconds <= 0:
            raise ValueError(f"Pick clock needs a positive duration, got {seconds}")
        self.remaining = int(seconds)
        logger.info(f"Pick clock started: {self.remaining}s")
        self.event_bus.emit(TimerTick(remaining_seconds=self.remaining))

    def tick(self) -> None:
        """Advance one second."""
        if self.remaining is None:
            return

        self.remaining -= 1
        remaining = self.remaining

        with self.event_bus.batch():
            self.event_bus.emit(TimerTick(remaining_seconds=remaining))

            if remaining in config.CLOCK_THRESHOLDS or 0 < remaining <= config.CLOCK_FINAL_SECONDS:
                self.event_bus.emit(TimerThreshold(remaining_seconds=remaining))

            if remaining <= 0:
                self.remaining = None
                head = self.queue_head()
                logger.warning(
                    "Pick clock expired"
                    + (f"; queue suggests {head.name}" if head else "; queue is empty")
                )
                self.event_bus.emit(TimerExpired())
                # Advisory only: picks cannot be submitted to the provider
                self.event_bus.emit(AutoPickSuggested(player=head))

    def clear(self) -> None:
        """Cancel the countdown. Safe to call when not running."""
        if self.remaining is not None:
            logger.debug(f"Pick clock cleared with {self.remaining}s left")
        self.remaining = None
