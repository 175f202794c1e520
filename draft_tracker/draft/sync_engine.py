"""
Poll the provider's pick feed and fold new picks into the session.

The DraftSyncEngine is responsible for:
- Fetching draft metadata and the pick feed on a fixed interval
- Appending only the picks beyond the local cursor
- Evicting drafted players from the queue and the plan
- Detecting turn start/end for the tracked participant
- Emitting every signal produced by one cycle as a single batch
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

from .. import config
from .draft_event import DraftState, DraftStatus, Pick
from .draft_state_manager import DraftStateManager
from .errors import TransientFetchError
from .event_store import PickEventStore
from .events import (
    DraftStatusChanged,
    EventBus,
    PickProcessed,
    PlanChanged,
    QueueChanged,
    ScarcityUpdated,
    TurnChanged,
)
from .pick_queue import PickQueue
from .plan_builder import DraftPlan
from .recommendation_engine import analyze_pick
from .sleeper_client import SleeperClient

logger = logging.getLogger(__name__)


class DraftSyncEngine:
    """Keeps local draft state aligned with the provider's pick feed."""

    def __init__(
        self,
        client: SleeperClient,
        draft_state: DraftState,
        state_manager: DraftStateManager,
        event_bus: EventBus,
        queue: Optional[PickQueue] = None,
        plan: Optional[DraftPlan] = None,
        event_store: Optional[PickEventStore] = None,
        draft_position: Optional[int] = None,
        poll_interval: float = config.POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize sync engine.

        Args:
            client: Draft data provider
            draft_state: Session draft state (mutated here only)
            state_manager: Pick history and analytics
            event_bus: Bus receiving per-cycle signal batches
            queue: Pick queue to evict drafted players from
            plan: Draft plan to evict drafted players from
            event_store: Optional append-only pick log
            draft_position: Configured slot, used when the provider order is unknown
            poll_interval: Seconds between polls
            clock: Monotonic time source for request deadlines
        """
        self.client = client
        self.draft_state = draft_state
        self.state_manager = state_manager
        self.event_bus = event_bus
        self.queue = queue
        self.plan = plan
        self.event_store = event_store
        self.draft_position = draft_position
        self.poll_interval = poll_interval
        self.clock = clock

        self.running = False
        self.next_poll_at: Optional[float] = None
        self.poll_count = 0

    # ----- Scheduling -----

    def start(self, now: Optional[float] = None) -> None:
        """Start polling with an immediate first cycle."""
        if self.running:
            return
        now = time.monotonic() if now is None else now
        self.running = True
        logger.info(f"Sync started for draft {self.draft_state.draft_id} (every {self.poll_interval}s)")
        self.poll(now)

    def stop(self) -> None:
        """Stop polling. Safe to call repeatedly."""
        if self.running:
            logger.info(f"Sync stopped after {self.poll_count} polls")
        self.running = False
        self.next_poll_at = None

    def is_due(self, now: float) -> bool:
        return self.running and (self.next_poll_at is None or now >= self.next_poll_at)

    def poll(self, now: float) -> List[Pick]:
        """Run one scheduled cycle and schedule the next."""
        self.next_poll_at = now + self.poll_interval
        return self.tick()

    # ----- Cycles -----

    def tick(self) -> List[Pick]:
        """
        One poll cycle. Network failures are logged and retried next cycle.

        Returns:
            Newly appended picks (empty on failure or when nothing changed)
        """
        self.poll_count += 1
        try:
            return self._sync(config.POLL_TIMEOUT_SECONDS)
        except TransientFetchError as e:
            logger.warning(f"Poll #{self.poll_count} failed, retrying next cycle: {e}")
            return []

    def refresh(self) -> List[Pick]:
        """
        Out-of-band fetch of the pick feed bounded by the refresh timeout.

        Draft metadata is left to the scheduled polls so the refresh costs
        a single request.

        Raises:
            TransientFetchError: On network failure or once the deadline passes
        """
        logger.info("Manual refresh")
        return self._sync(config.REFRESH_TIMEOUT_SECONDS, include_metadata=False)

    def _remaining(self, deadline: float) -> float:
        remaining = deadline - self.clock()
        if remaining <= 0:
            raise TransientFetchError(f"Sync deadline exceeded by {-remaining:.1f}s")
        return remaining

    def _sync(self, timeout: float, include_metadata: bool = True) -> List[Pick]:
        # One deadline covers every request in the cycle
        deadline = self.clock() + timeout
        draft_id = self.draft_state.draft_id

        draft = None
        if include_metadata:
            draft = self.client.fetch_draft(draft_id, timeout=self._remaining(deadline))
        raw_picks = self.client.fetch_draft_picks(draft_id, timeout=self._remaining(deadline))
        self._remaining(deadline)

        with self.event_bus.batch():
            if draft:
                previous_status = self.draft_state.status
                self.draft_state.update_metadata(draft)
                self.state_manager.team_count = self.draft_state.team_count
                if self.draft_state.status != previous_status:
                    logger.info(
                        f"Draft status: {previous_status.value} → {self.draft_state.status.value}"
                    )
                    self.event_bus.emit(DraftStatusChanged(status=self.draft_state.status.value))

            all_picks = self._parse_picks(raw_picks)
            if len(all_picks) < self.state_manager.pick_count:
                logger.warning(
                    f"Feed returned {len(all_picks)} picks but {self.state_manager.pick_count} "
                    f"are already applied"
                )
            delta = all_picks[self.state_manager.pick_count:]

            if delta:
                self._apply(delta)

            self._update_turn(len(all_picks))

        return delta

    @staticmethod
    def _parse_picks(raw_picks) -> List[Pick]:
        picks = []
        for raw in raw_picks or []:
            try:
                picks.append(Pick.from_sleeper(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed pick record: {e}")
        return sorted(picks, key=lambda p: p.pick_no)

    def _apply(self, delta: List[Pick]) -> None:
        logger.info(f"Detected {len(delta)} new pick(s)")
        processed = self.state_manager.apply_picks(delta)

        if self.event_store is not None:
            self.event_store.append_picks(delta)

        for pick, player, position, scarcity in processed:
            analysis = None
            if player is not None:
                analysis = analyze_pick(pick, player, scarcity)
            logger.info(
                f"  Pick {pick.pick_no}: {player.name if player else pick.player_name or pick.player_id} "
                f"({position.value if position else '?'}) → roster {pick.roster_id}"
                + (f" [{analysis.grade}]" if analysis else "")
            )
            self.event_bus.emit(PickProcessed(pick=pick, player=player, analysis=analysis))

        self.event_bus.emit(ScarcityUpdated(levels=self.state_manager.scarcity_levels()))

        drafted = self.state_manager.drafted_ids

        if self.queue is not None:
            evicted = self.queue.evict_drafted(drafted)
            if evicted:
                self.event_bus.emit(QueueChanged(
                    player_ids=self.queue.player_ids,
                    evicted=[p.player_id for p in evicted],
                ))

        if self.plan is not None:
            removed = self.plan.remove_drafted(drafted)
            if removed:
                self.event_bus.emit(PlanChanged(removed=removed))

    # ----- Turn detection -----

    def detect_turn(self, total_picks: int) -> Tuple[bool, bool, Optional[int]]:
        """
        Whether the tracked participant is on the clock.

        Resolution order: the provider's slot/roster order (authoritative),
        the tracked owner's slot in the provider's draft order, the
        configured draft position (estimated), then a roster-id modulo
        guess (estimated).

        Returns:
            (is_user_turn, is_estimated, roster id on the clock or None)
        """
        state = self.draft_state

        if state.status != DraftStatus.DRAFTING:
            return False, False, None
        if total_picks >= state.team_count * state.rounds:
            return False, False, None

        slot = state.slot_for_pick(total_picks)
        picker = state.slot_to_roster_id.get(slot)

        if state.tracked_roster_id is not None and picker is not None:
            return picker == state.tracked_roster_id, False, picker

        if state.tracked_owner_id is not None and state.tracked_owner_id in state.draft_order:
            return state.draft_order[state.tracked_owner_id] == slot, False, picker

        if self.draft_position is not None:
            return self.draft_position == slot, True, picker

        if state.tracked_roster_id is not None:
            teams = state.team_count
            return (total_picks + 1) % teams == state.tracked_roster_id % teams, True, picker

        return False, True, picker

    def _update_turn(self, total_picks: int) -> None:
        is_turn, is_estimated, picker = self.detect_turn(total_picks)
        state = self.draft_state

        was_turn = state.is_user_turn
        state.is_user_turn = is_turn
        state.turn_is_estimated = is_estimated
        state.current_picker = picker

        if is_turn != was_turn:
            logger.info(
                ("Your turn" if is_turn else "Turn ended")
                + f" at pick {total_picks + 1}"
                + (" (estimated)" if is_estimated else "")
            )
            self.event_bus.emit(TurnChanged(is_user_turn=is_turn, is_estimated=is_estimated))
