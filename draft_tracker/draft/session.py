"""
Main orchestrator for a live draft session.

The DraftSession coordinates all components:
- Resolves the draft, scoring format and tracked roster at open
- Loads the player catalog once (demo catalog if it is empty)
- Drives the sync engine and pick clock from a single scheduler step
- Enters panic mode on turn start and leaves it on turn end
- Persists the plan and queue whenever they change
"""

import logging
import random
import signal
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .. import config
from ..catalog import Player, PlayerCatalog, demo_catalog
from ..valuation import (
    ScoringFormat,
    parse_scoring_format,
    scoring_format_from_reception_points,
)
from .config_provider import DraftConfig, FileConfigProvider
from .draft_event import DraftState, create_initial_draft_state
from .draft_state_manager import DraftStateManager
from .errors import DraftNotFound, EmptyCatalog, InvalidConfiguration, TransientFetchError
from .event_store import PickEventStore, create_session_filepath
from .events import DraftSignal, EventBus, PlanChanged, QueueChanged, RecommendationsReady
from .pick_clock import PickClock
from .pick_queue import PickQueue
from .plan_builder import DraftPlan, generate_plan
from .recommendation_engine import PanicMode, RecommendationSet, generate_recommendations
from .sleeper_client import SleeperClient
from .sync_engine import DraftSyncEngine

logger = logging.getLogger(__name__)


class DraftSession:
    """Owns one draft's state and wires the sync, clock and panic components."""

    def __init__(
        self,
        config_provider: FileConfigProvider,
        data_provider: SleeperClient,
        event_bus: Optional[EventBus] = None,
        catalog: Optional[PlayerCatalog] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        events_dir: Optional[Path] = None
    ):
        """
        Initialize draft session.

        Args:
            config_provider: Source of DraftConfig and plan/queue persistence
            data_provider: Draft data provider (Sleeper client)
            event_bus: Bus for presentation listeners (created if None)
            catalog: Preloaded catalog; fetched from the provider if None
            clock: Monotonic time source used by the scheduler
            rng: Optional seeded RNG for ADP jitter
            events_dir: Directory for the JSONL pick log (None disables it)
        """
        self.config_provider = config_provider
        self.client = data_provider
        self.event_bus = event_bus or EventBus()
        self.clock = clock
        self.rng = rng
        self.events_dir = events_dir
        self._preloaded_catalog = catalog

        self.config: Optional[DraftConfig] = None
        self.draft_state: Optional[DraftState] = None
        self.state_manager: Optional[DraftStateManager] = None
        self.sync: Optional[DraftSyncEngine] = None
        self.catalog: Optional[PlayerCatalog] = None
        self.scoring_format: ScoringFormat = ScoringFormat.HALF_PPR
        self.trending: List[Dict] = []

        self.queue = PickQueue()
        self.plan = DraftPlan()
        self.panic = PanicMode()
        self.pick_clock = PickClock(self.event_bus, queue_head=lambda: self.queue.head())

        self.is_open = False
        self.shutdown_requested = False
        self._last_clock_tick: Optional[float] = None

    # ----- Lifecycle -----

    def open(self) -> None:
        """
        Resolve the draft and build all session state.

        Raises:
            InvalidConfiguration: If the configuration cannot drive a session
            DraftNotFound: If the league or draft does not exist
            TransientFetchError: If the provider is unreachable
        """
        logger.info("="*60)
        logger.info("INITIALIZING DRAFT SESSION")
        logger.info("="*60)

        self.config = self.config_provider.load()
        self.config.validate()

        draft, league = self._resolve_draft(self.config)
        self.draft_state = create_initial_draft_state(draft, team_count=self.config.team_count)
        logger.info(
            f"Draft {self.draft_state.draft_id}: {self.draft_state.team_count} teams, "
            f"{self.draft_state.rounds} rounds, {self.draft_state.draft_type}, "
            f"status {self.draft_state.status.value}"
        )

        self.scoring_format = self._resolve_scoring_format(self.config, league, draft)
        league_id = self.config.league_id or draft.get('league_id')
        roster_id, owner_id = self._identify_tracked(self.config, league_id)
        self.draft_state.tracked_roster_id = roster_id
        self.draft_state.tracked_owner_id = owner_id

        self.catalog = self._load_catalog(self.scoring_format)
        self.state_manager = DraftStateManager(
            team_count=self.draft_state.team_count,
            catalog=self.catalog,
            tracked_roster_id=roster_id,
            tracked_owner_id=owner_id,
        )

        event_store = None
        if self.events_dir is not None:
            event_store = PickEventStore(create_session_filepath(self.events_dir, self.draft_state.draft_id))
            if event_store.replay(self.state_manager):
                logger.info(f"Resumed from pick log {event_store.filepath}")

        self._restore_user_state()

        self.sync = DraftSyncEngine(
            client=self.client,
            draft_state=self.draft_state,
            state_manager=self.state_manager,
            event_bus=self.event_bus,
            queue=self.queue,
            plan=self.plan,
            event_store=event_store,
            draft_position=self.config.draft_position,
            poll_interval=self.config.poll_interval,
            clock=self.clock,
        )

        self.trending = self._load_trending()
        self.event_bus.subscribe(self._on_events)
        self.is_open = True

        logger.info(
            f"Session ready: {len(self.catalog)} players ({self.scoring_format.value})"
            + (" [DEMO DATA]" if self.catalog.is_demo else "")
        )

    def _require_open(self) -> None:
        if not self.is_open:
            raise InvalidConfiguration("Draft session is not open")

    def _resolve_draft(self, draft_config: DraftConfig) -> Tuple[dict, Optional[dict]]:
        league = None

        if draft_config.league_id:
            league = self.client.fetch_league(draft_config.league_id)
            if league is None:
                raise DraftNotFound(f"League {draft_config.league_id} not found")

        if draft_config.draft_id:
            draft = self.client.fetch_draft(draft_config.draft_id)
            if draft is None:
                raise DraftNotFound(f"Draft {draft_config.draft_id} not found")
            return draft, league

        drafts = self.client.fetch_league_drafts(draft_config.league_id)
        if not drafts:
            raise DraftNotFound(f"League {draft_config.league_id} has no drafts")

        draft_id = drafts[0]['draft_id']
        # League listings can omit the slot mapping
        draft = self.client.fetch_draft(draft_id) or drafts[0]
        logger.info(f"Using most recent league draft {draft_id}")
        return draft, league

    @staticmethod
    def _resolve_scoring_format(
        draft_config: DraftConfig,
        league: Optional[dict],
        draft: dict
    ) -> ScoringFormat:
        if draft_config.scoring_format is not None:
            return draft_config.scoring_format

        rec = ((league or {}).get('scoring_settings') or {}).get('rec')
        scoring_format = scoring_format_from_reception_points(rec)
        if scoring_format is not None:
            logger.info(f"Scoring format from league settings (rec={rec}): {scoring_format.value}")
            return scoring_format

        scoring_type = (draft.get('metadata') or {}).get('scoring_type')
        try:
            scoring_format = parse_scoring_format(scoring_type)
        except ValueError:
            logger.warning(f"Unrecognized draft scoring type {scoring_type!r}")
            scoring_format = None
        if scoring_format is not None:
            logger.info(f"Scoring format from draft metadata: {scoring_format.value}")
            return scoring_format

        logger.warning("Scoring format not configured; defaulting to Half-PPR")
        return ScoringFormat.HALF_PPR

    def _identify_tracked(
        self,
        draft_config: DraftConfig,
        league_id: Optional[str]
    ) -> Tuple[Optional[int], Optional[str]]:
        """Roster and owner id for the tracked username, (None, None) if unmatched."""
        username = (draft_config.tracked_username or '').strip()
        if not username:
            logger.warning("No tracked username configured; roster will be estimated")
            return None, None

        owner_id = None
        if league_id:
            for user in self.client.fetch_users(league_id):
                names = {(user.get('display_name') or '').lower(), (user.get('username') or '').lower()}
                if username.lower() in names:
                    owner_id = user.get('user_id')
                    break

        if owner_id is None:
            user = self.client.fetch_user(username)
            owner_id = user.get('user_id') if user else None

        if owner_id is None:
            logger.warning(f"User {username} not found; roster will be estimated")
            return None, None

        roster_id = None
        if league_id:
            for roster in self.client.fetch_rosters(league_id):
                if roster.get('owner_id') == owner_id or owner_id in (roster.get('co_owners') or []):
                    roster_id = roster.get('roster_id')
                    break

        if roster_id is None and owner_id in self.draft_state.draft_order:
            slot = self.draft_state.draft_order[owner_id]
            roster_id = self.draft_state.slot_to_roster_id.get(slot)

        logger.info(f"Tracking {username}: owner {owner_id}, roster {roster_id}")
        return roster_id, owner_id

    def _fetch_catalog(self, scoring_format: ScoringFormat) -> PlayerCatalog:
        """
        Raises:
            EmptyCatalog: If the provider's catalog cannot be loaded or is empty
        """
        if self._preloaded_catalog is not None:
            catalog = self._preloaded_catalog
            if catalog.scoring_format != scoring_format:
                catalog = catalog.rebuild(scoring_format)
        else:
            try:
                players = self.client.fetch_players()
            except TransientFetchError as e:
                raise EmptyCatalog(f"Player catalog unavailable: {e}") from e
            catalog = PlayerCatalog.from_sleeper(players, scoring_format, rng=self.rng)

        if catalog.is_empty():
            raise EmptyCatalog("Player catalog is empty")
        return catalog

    def _load_catalog(self, scoring_format: ScoringFormat) -> PlayerCatalog:
        try:
            return self._fetch_catalog(scoring_format)
        except EmptyCatalog as e:
            logger.warning(f"{e}; using demo catalog")
            return demo_catalog(scoring_format)

    def _load_trending(self) -> List[Dict]:
        try:
            raw = self.client.fetch_trending_players()
        except TransientFetchError as e:
            logger.warning(f"Trending players unavailable: {e}")
            return []

        trending = []
        for entry in raw:
            player = self.catalog.get(str(entry.get('player_id')))
            if player is not None:
                trending.append({'player': player, 'count': entry.get('count', 0)})
        logger.info(f"Trending adds: {len(trending)} catalog players")
        return trending

    def _restore_user_state(self) -> None:
        draft_id = self.draft_state.draft_id
        drafted = self.state_manager.drafted_ids

        plan = self.config_provider.load_plan(draft_id)
        if plan is not None:
            plan.remove_drafted(drafted)
            self.plan = plan
            logger.info(f"Restored plan with {len(plan.player_ids())} players")

        queue = self.config_provider.load_queue(draft_id)
        if queue is not None:
            queue.evict_drafted(drafted)
            self.queue = queue
            logger.info(f"Restored queue with {len(queue)} players")

    def close(self) -> None:
        """Stop syncing, persist user state and release the provider."""
        if self.sync is not None:
            self.sync.stop()
        self.pick_clock.clear()
        self.panic.exit()
        self.event_bus.unsubscribe(self._on_events)
        if self.is_open:
            self._save_plan()
            self._save_queue()
        self.is_open = False
        self.client.close()

    # ----- Scheduling -----

    def start(self) -> None:
        """Start syncing with an immediate first poll."""
        self._require_open()
        self._synced(lambda: self.sync.start(self.clock()))

    def advance(self, now: Optional[float] = None) -> None:
        """
        Single scheduler step: poll when due, tick the clock per elapsed second.

        Every signal raised during the step, including the turn-start
        recommendations and the first clock tick, is delivered as one batch.
        """
        now = self.clock() if now is None else now

        with self.event_bus.batch():
            if self.sync is not None and self.sync.is_due(now):
                self._synced(lambda: self.sync.poll(now), now=now)

            if not self.pick_clock.running:
                self._last_clock_tick = None
                return

            if self._last_clock_tick is None:
                self._last_clock_tick = now

            while self.pick_clock.running and now - self._last_clock_tick >= config.CLOCK_INTERVAL_SECONDS:
                self._last_clock_tick += config.CLOCK_INTERVAL_SECONDS
                self.pick_clock.tick()

    def run_live_session(self, duration_minutes: Optional[int] = None) -> None:
        """
        Blocking loop for the CLI. Press Ctrl+C to stop gracefully.

        Args:
            duration_minutes: Run for N minutes (None = run until interrupted)
        """
        self._require_open()

        def signal_handler(sig, frame):
            logger.info("\nShutdown requested (Ctrl+C)")
            self.shutdown_requested = True

        signal.signal(signal.SIGINT, signal_handler)

        logger.info("="*60)
        logger.info("STARTING LIVE DRAFT SYNC")
        logger.info("="*60)
        logger.info(f"Draft: {self.draft_state.draft_id}")
        logger.info(f"Poll interval: {self.sync.poll_interval}s")
        logger.info(f"Current state: {self.state_manager.pick_count} picks, round {self.state_manager.current_round()}")
        logger.info("Press Ctrl+C to stop")
        logger.info("="*60)

        start_time = self.clock()
        self.start()

        while not self.shutdown_requested:
            if duration_minutes is not None:
                elapsed_minutes = (self.clock() - start_time) / 60
                if elapsed_minutes >= duration_minutes:
                    logger.info(f"Duration limit reached ({duration_minutes} minutes)")
                    break

            self.advance()
            time.sleep(config.CLOCK_INTERVAL_SECONDS)

        self.sync.stop()
        self.pick_clock.clear()

        logger.info("="*60)
        logger.info("LIVE DRAFT SESSION ENDED")
        logger.info("="*60)
        logger.info(f"Final state: {self.state_manager.pick_count} picks")
        logger.info(f"Total polls: {self.sync.poll_count}")
        logger.info("="*60)

    # ----- Turn handling -----

    def _on_events(self, events: List[DraftSignal]) -> None:
        for event in events:
            if isinstance(event, QueueChanged):
                self._save_queue()
            elif isinstance(event, PlanChanged):
                self._save_plan()

    def _synced(self, fetch, now: Optional[float] = None):
        """Run a sync call and react to any turn change within the same batch."""
        was_turn = self.draft_state.is_user_turn
        with self.event_bus.batch():
            result = fetch()
            self._react_to_turn(was_turn, now=now)
        return result

    def _react_to_turn(self, was_turn: bool, exit_panic: bool = True, now: Optional[float] = None) -> None:
        is_turn = self.draft_state.is_user_turn
        if is_turn and not was_turn:
            self._on_turn_start(now)
        elif was_turn and not is_turn:
            self._on_turn_end(exit_panic)

    def _on_turn_start(self, now: Optional[float] = None) -> None:
        # The cycle that detected the turn has just synced
        self.trigger_panic(refresh=False)
        self.start_clock(now=now)

    def _on_turn_end(self, exit_panic: bool = True) -> None:
        self.clear_clock()
        if exit_panic:
            self.panic.exit()

    # ----- Recommendations -----

    def recommendations(self) -> RecommendationSet:
        """Current recommendations without entering panic mode."""
        self._require_open()
        return generate_recommendations(
            self.catalog,
            self.state_manager,
            plan=self.plan,
            turn_is_estimated=self.draft_state.turn_is_estimated,
        )

    def trigger_panic(self, refresh: bool = True) -> Optional[RecommendationSet]:
        """
        Enter panic mode: best-effort refresh, then recommend.

        Returns:
            RecommendationSet, or None if panic mode was already active
        """
        self._require_open()

        def produce() -> RecommendationSet:
            if refresh:
                try:
                    self.sync.refresh()
                except TransientFetchError as e:
                    logger.warning(f"Refresh failed, using last-known state: {e}")
            return self.recommendations()

        was_turn = self.draft_state.is_user_turn
        with self.event_bus.batch():
            result = self.panic.enter(produce)
            if result is not None:
                self.event_bus.emit(RecommendationsReady(recommendations=result))
            # A turn end seen by this refresh keeps the panic the user asked for
            self._react_to_turn(was_turn, exit_panic=False)
        return result

    def exit_panic(self) -> None:
        self.panic.exit()

    def refresh(self) -> int:
        """
        Manual refresh.

        Returns:
            Number of new picks

        Raises:
            TransientFetchError: On network failure or timeout
        """
        self._require_open()
        return len(self._synced(self.sync.refresh))

    # ----- Pick clock -----

    def start_clock(self, seconds: Optional[int] = None, now: Optional[float] = None) -> None:
        seconds = seconds or self.draft_state.pick_timer_seconds or self.config.pick_clock_seconds
        self.pick_clock.start(seconds)
        self._last_clock_tick = self.clock() if now is None else now

    def clear_clock(self) -> None:
        self.pick_clock.clear()
        self._last_clock_tick = None

    # ----- Queue -----

    def _require_player(self, player_id: str) -> Player:
        player = self.catalog.get(player_id)
        if player is None:
            raise KeyError(f"Unknown player {player_id}")
        return player

    def enqueue(self, player_id: str) -> bool:
        """
        Raises:
            KeyError: If the player is not in the catalog
            ValueError: If the player has already been drafted
        """
        self._require_open()
        player = self._require_player(player_id)
        if player_id in self.state_manager.drafted_ids:
            raise ValueError(f"{player.name} has already been drafted")

        added = self.queue.enqueue(player)
        if added:
            self.event_bus.emit(QueueChanged(player_ids=self.queue.player_ids))
        return added

    def dequeue(self, player_id: str) -> Optional[Player]:
        self._require_open()
        removed = self.queue.dequeue(player_id)
        if removed is not None:
            self.event_bus.emit(QueueChanged(player_ids=self.queue.player_ids))
        return removed

    def move_in_queue(self, player_id: str, direction: str) -> bool:
        self._require_open()
        moved = self.queue.reorder(player_id, direction)
        if moved:
            self.event_bus.emit(QueueChanged(player_ids=self.queue.player_ids))
        return moved

    def _save_queue(self) -> None:
        if self.draft_state is not None:
            self.config_provider.save_queue(self.draft_state.draft_id, self.queue)

    # ----- Plan -----

    @property
    def draft_position(self) -> Optional[int]:
        """Configured slot, else the tracked owner's slot in the provider order."""
        if self.config is not None and self.config.draft_position is not None:
            return self.config.draft_position
        if self.draft_state is not None and self.draft_state.tracked_owner_id:
            return self.draft_state.draft_order.get(self.draft_state.tracked_owner_id)
        return None

    def generate_plan(self, draft_position: Optional[int] = None) -> DraftPlan:
        """
        Build and store a fresh plan.

        Raises:
            InvalidConfiguration: If no draft position is known
        """
        self._require_open()
        draft_position = draft_position or self.draft_position
        if draft_position is None:
            raise InvalidConfiguration("A draft_position is required to generate a plan")

        try:
            plan = generate_plan(
                self.catalog,
                team_count=self.draft_state.team_count,
                draft_position=draft_position,
                scoring_format=self.scoring_format,
                rounds=min(self.draft_state.rounds, config.PLAN_ROUNDS),
            )
        except ValueError as e:
            raise InvalidConfiguration(str(e)) from e

        plan.remove_drafted(self.state_manager.drafted_ids)
        self._set_plan(plan)
        return plan

    def add_to_plan(self, round_number: int, player_id: str, backup: bool = False) -> bool:
        self._require_open()
        player = self._require_player(player_id)
        if backup:
            added = self.plan.add_backup(round_number, player)
        else:
            added = self.plan.add_target(round_number, player)
        if added:
            self.event_bus.emit(PlanChanged())
        return added

    def remove_from_plan(self, player_id: str) -> bool:
        self._require_open()
        removed = self.plan.remove_player(player_id)
        if removed:
            self.event_bus.emit(PlanChanged(removed=[player_id]))
        return removed

    def _set_plan(self, plan: DraftPlan) -> None:
        self.plan = plan
        if self.sync is not None:
            self.sync.plan = plan
        self.event_bus.emit(PlanChanged())

    def _save_plan(self) -> None:
        if self.draft_state is not None:
            self.config_provider.save_plan(self.draft_state.draft_id, self.plan)

    # ----- Snapshot -----

    def snapshot(self) -> dict:
        """Read-only view of the session for presentation layers."""
        self._require_open()
        composition = self.state_manager.roster_composition()
        return {
            **self.draft_state.to_dict(),
            'pick_count': self.state_manager.pick_count,
            'current_round': self.state_manager.current_round(),
            'overall_pick': self.state_manager.overall_pick(),
            'scoring_format': self.scoring_format.value,
            'using_demo_data': self.catalog.is_demo,
            'roster_is_estimated': composition.is_estimated,
            'panic_active': self.panic.active,
            'clock_remaining': self.pick_clock.remaining,
            'queue_length': len(self.queue),
        }
