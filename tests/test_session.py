"""Tests for the draft session orchestrator."""

import pytest

from draft_tracker.draft.config_provider import DraftConfig, FileConfigProvider
from draft_tracker.draft.draft_event import Pick
from draft_tracker.draft.errors import DraftNotFound, InvalidConfiguration, TransientFetchError
from draft_tracker.draft.event_store import PickEventStore, create_session_filepath
from draft_tracker.draft.events import (
    PickProcessed,
    QueueChanged,
    RecommendationsReady,
    TimerTick,
    TurnChanged,
)
from draft_tracker.draft.pick_queue import PickQueue
from draft_tracker.draft.session import DraftSession
from draft_tracker.valuation import ScoringFormat

from fakes import (
    EventRecorder,
    FakeClock,
    FakeSleeper,
    identity_slots,
    sleeper_draft,
    sleeper_pick,
    synthetic_catalog,
)

LEAGUE = {'league_id': 'L1', 'scoring_settings': {'rec': 1.0}}
USERS = [
    {'user_id': 'u3', 'username': 'me', 'display_name': 'Me'},
    {'user_id': 'u5', 'username': 'rival', 'display_name': 'Rival'},
]
ROSTERS = [{'roster_id': 3, 'owner_id': 'u3'}, {'roster_id': 5, 'owner_id': 'u5'}]


def _client(**overrides) -> FakeSleeper:
    values = dict(
        draft=sleeper_draft(slot_to_roster_id=identity_slots()),
        league=LEAGUE,
        users=USERS,
        rosters=ROSTERS,
    )
    values.update(overrides)
    return FakeSleeper(**values)


def _session(tmp_path, client=None, catalog='synthetic', events_dir=None, **overrides):
    config_values = {'league_id': 'L1', 'tracked_username': 'me'}
    config_values.update(overrides)
    provider = FileConfigProvider(
        path=tmp_path / 'draft_config.json',
        state_dir=tmp_path / 'state',
        environ={},
        overrides=config_values,
    )
    session = DraftSession(
        provider,
        client or _client(),
        catalog=synthetic_catalog() if catalog == 'synthetic' else catalog,
        clock=FakeClock(0.0),
        events_dir=events_dir,
    )
    recorder = EventRecorder()
    session.event_bus.subscribe(recorder)
    return session, recorder


def test_open_resolves_draft_and_tracked_roster(tmp_path) -> None:
    session, _ = _session(tmp_path)
    session.open()

    assert session.is_open
    assert session.draft_state.draft_id == 'd1'
    assert session.draft_state.tracked_roster_id == 3
    assert session.draft_state.tracked_owner_id == 'u3'
    assert session.state_manager.has_tracked_roster
    assert session.scoring_format == ScoringFormat.FULL_PPR
    assert session.catalog.scoring_format == ScoringFormat.FULL_PPR
    assert not session.catalog.is_demo


def test_open_with_draft_id_only(tmp_path) -> None:
    session, _ = _session(tmp_path, league_id=None, draft_id='d1')
    session.open()

    assert session.draft_state.draft_id == 'd1'
    assert session.draft_state.tracked_roster_id == 3
    assert session.scoring_format == ScoringFormat.HALF_PPR


def test_configured_scoring_format_wins(tmp_path) -> None:
    session, _ = _session(tmp_path, scoring_format='standard')
    session.open()
    assert session.scoring_format == ScoringFormat.STANDARD


def test_scoring_format_from_draft_metadata() -> None:
    resolve = DraftSession._resolve_scoring_format
    empty = DraftConfig(league_id='L1')

    assert resolve(empty, {'scoring_settings': {'rec': 0.5}}, {}) == ScoringFormat.HALF_PPR
    assert resolve(empty, None, {'metadata': {'scoring_type': 'ppr'}}) == ScoringFormat.FULL_PPR
    assert resolve(empty, None, {'metadata': {'scoring_type': 'idp'}}) == ScoringFormat.HALF_PPR
    assert resolve(empty, None, {}) == ScoringFormat.HALF_PPR


def test_unknown_league_is_fatal(tmp_path) -> None:
    session, _ = _session(tmp_path, league_id='nope')
    with pytest.raises(DraftNotFound):
        session.open()
    assert not session.is_open


def test_league_without_drafts_is_fatal(tmp_path) -> None:
    session, _ = _session(tmp_path, client=_client(drafts=[]))
    with pytest.raises(DraftNotFound):
        session.open()


def test_missing_ids_are_invalid(tmp_path) -> None:
    session, _ = _session(tmp_path, league_id=None)
    with pytest.raises(InvalidConfiguration):
        session.open()


def test_unreachable_provider_propagates(tmp_path) -> None:
    client = _client()
    client.fail = True
    session, _ = _session(tmp_path, client=client)
    with pytest.raises(TransientFetchError):
        session.open()


def test_unknown_user_leaves_roster_estimated(tmp_path) -> None:
    session, _ = _session(tmp_path, tracked_username='ghost')
    session.open()

    assert session.draft_state.tracked_roster_id is None
    assert session.state_manager.roster_composition().is_estimated


def test_roster_from_draft_order_when_not_in_rosters(tmp_path) -> None:
    client = _client(
        draft=sleeper_draft(slot_to_roster_id=identity_slots(), draft_order={'u3': 7}),
        rosters=[],
    )
    session, _ = _session(tmp_path, client=client)
    session.open()

    assert session.draft_state.tracked_roster_id == 7
    assert session.draft_position == 7


def test_empty_catalog_falls_back_to_demo(tmp_path) -> None:
    session, _ = _session(tmp_path, catalog=None)
    session.open()

    assert session.catalog.is_demo
    assert session.snapshot()['using_demo_data']
    assert session.recommendations().using_demo_data


def test_trending_keeps_catalog_players(tmp_path) -> None:
    client = _client(trending=[{'player_id': 'p1', 'count': 50}, {'player_id': 'zzz', 'count': 3}])
    session, _ = _session(tmp_path, client=client)
    session.open()

    assert [entry['player'].player_id for entry in session.trending] == ['p1']
    assert session.trending[0]['count'] == 50


def test_turn_start_enters_panic_and_starts_clock(tmp_path) -> None:
    client = _client(picks=[sleeper_pick(1, 'p1', roster_id=1), sleeper_pick(2, 'p2', roster_id=2)])
    session, recorder = _session(tmp_path, client=client)
    session.open()

    session.start()

    assert session.draft_state.is_user_turn
    assert session.panic.active
    assert session.pick_clock.remaining == 90
    ready = recorder.of_type(RecommendationsReady)
    assert len(ready) == 1
    assert 'p1' not in ready[0].recommendations.player_ids

    session.advance(now=2.0)
    assert session.pick_clock.remaining == 88

    client.picks.append(sleeper_pick(3, 'p3', roster_id=3))
    session.advance(now=3.0)

    assert not session.draft_state.is_user_turn
    assert not session.panic.active
    assert not session.pick_clock.running


def test_turn_start_is_delivered_as_one_batch(tmp_path) -> None:
    client = _client(picks=[sleeper_pick(1, 'p1', roster_id=1)])
    session, recorder = _session(tmp_path, client=client)
    session.open()
    session.start()
    delivered = len(recorder.batches)

    client.picks.append(sleeper_pick(2, 'p2', roster_id=2))
    session.advance(now=3.0)

    assert len(recorder.batches) == delivered + 1
    kinds = [type(event) for event in recorder.batches[-1]]
    assert PickProcessed in kinds
    assert kinds.index(TurnChanged) < kinds.index(RecommendationsReady) < kinds.index(TimerTick)
    assert session.pick_clock.remaining == 90


def test_turn_end_during_panic_refresh_keeps_panic_active(tmp_path) -> None:
    client = _client(picks=[sleeper_pick(1, 'p1', roster_id=1), sleeper_pick(2, 'p2', roster_id=2)])
    session, recorder = _session(tmp_path, client=client)
    session.open()
    session.start()
    session.exit_panic()
    assert session.pick_clock.running

    client.picks.append(sleeper_pick(3, 'p3', roster_id=3))
    result = session.trigger_panic()

    assert result is not None
    assert 'p3' not in result.player_ids
    assert session.panic.active
    assert not session.draft_state.is_user_turn
    assert not session.pick_clock.running
    assert recorder.of_type(TurnChanged)[-1].is_user_turn is False


def test_manual_refresh_starts_turn(tmp_path) -> None:
    client = _client(picks=[sleeper_pick(1, 'p1', roster_id=1)])
    session, recorder = _session(tmp_path, client=client)
    session.open()
    session.start()
    assert not session.panic.active

    client.picks.append(sleeper_pick(2, 'p2', roster_id=2))
    assert session.refresh() == 1

    assert session.panic.active
    assert session.pick_clock.running
    assert len(recorder.of_type(RecommendationsReady)) == 1


def test_provider_pick_timer_sets_clock(tmp_path) -> None:
    client = _client(draft=sleeper_draft(slot_to_roster_id=identity_slots(), pick_timer=60))
    session, _ = _session(tmp_path, client=client)
    session.open()

    session.start_clock()
    assert session.pick_clock.remaining == 60

    session.clear_clock()
    assert not session.pick_clock.running


def test_clock_ticks_emit_timer_events(tmp_path) -> None:
    session, recorder = _session(tmp_path)
    session.open()

    session.start_clock(5)
    session.advance(now=3.0)

    ticks = [e.remaining_seconds for e in recorder.of_type(TimerTick)]
    assert ticks == [5, 4, 3, 2]


def test_panic_reentry_returns_none(tmp_path) -> None:
    session, _ = _session(tmp_path)
    session.open()

    first = session.trigger_panic()
    assert first is not None
    assert len(first) == 3
    assert session.trigger_panic() is None

    session.exit_panic()
    assert session.trigger_panic() is not None


def test_panic_survives_failed_refresh(tmp_path) -> None:
    client = _client()
    session, _ = _session(tmp_path, client=client)
    session.open()
    client.fail = True

    result = session.trigger_panic()

    assert result is not None
    assert len(result) == 3


def test_refresh_counts_new_picks(tmp_path) -> None:
    client = _client()
    session, _ = _session(tmp_path, client=client)
    session.open()

    client.picks = [sleeper_pick(1, 'p1', roster_id=1), sleeper_pick(2, 'p2', roster_id=2)]
    assert session.refresh() == 2
    assert session.refresh() == 0

    client.fail = True
    with pytest.raises(TransientFetchError):
        session.refresh()


def test_queue_operations_are_persisted(tmp_path) -> None:
    client = _client()
    session, recorder = _session(tmp_path, client=client)
    session.open()

    assert session.enqueue('p10')
    assert session.enqueue('p11')
    assert not session.enqueue('p10')
    assert session.move_in_queue('p11', 'up')
    assert session.queue.player_ids == ['p11', 'p10']
    assert len(recorder.of_type(QueueChanged)) == 3

    stored = session.config_provider.load_queue('d1')
    assert stored.player_ids == ['p11', 'p10']

    with pytest.raises(KeyError):
        session.enqueue('missing')

    client.picks = [sleeper_pick(1, 'p11', roster_id=5)]
    session.refresh()

    assert session.queue.player_ids == ['p10']
    assert session.config_provider.load_queue('d1').player_ids == ['p10']
    with pytest.raises(ValueError):
        session.enqueue('p11')

    assert session.dequeue('p10').player_id == 'p10'
    assert session.dequeue('p10') is None


def test_generate_plan_uses_configured_position(tmp_path) -> None:
    session, _ = _session(tmp_path, draft_position=4)
    session.open()

    plan = session.generate_plan()

    assert plan is session.plan
    assert session.sync.plan is plan
    assert len(plan.get(1).targets) == 4
    assert session.config_provider.load_plan('d1').player_ids() == plan.player_ids()


def test_generate_plan_requires_position(tmp_path) -> None:
    session, _ = _session(tmp_path)
    session.open()

    with pytest.raises(InvalidConfiguration):
        session.generate_plan()
    with pytest.raises(InvalidConfiguration):
        session.generate_plan(draft_position=20)


def test_plan_edits(tmp_path) -> None:
    session, _ = _session(tmp_path)
    session.open()

    assert session.add_to_plan(3, 'p30')
    assert session.add_to_plan(3, 'p31', backup=True)
    assert not session.add_to_plan(3, 'p30', backup=True)
    assert session.remove_from_plan('p30')
    assert not session.remove_from_plan('p30')
    assert session.config_provider.load_plan('d1').player_ids() == ['p31']

    with pytest.raises(KeyError):
        session.add_to_plan(3, 'missing')


def test_resume_from_pick_log_and_saved_queue(tmp_path) -> None:
    events_dir = tmp_path / 'events'
    store = PickEventStore(create_session_filepath(events_dir, 'd1'))
    store.append_picks([Pick(pick_no=1, player_id='p10', roster_id=1)])

    catalog = synthetic_catalog()
    provider = FileConfigProvider(path=tmp_path / 'draft_config.json', state_dir=tmp_path / 'state', environ={})
    provider.save_queue('d1', PickQueue([catalog.get('p10'), catalog.get('p11')]))

    session, _ = _session(tmp_path, events_dir=events_dir)
    session.open()

    assert session.state_manager.pick_count == 1
    assert session.queue.player_ids == ['p11']


def test_snapshot(tmp_path) -> None:
    session, _ = _session(tmp_path)
    session.open()
    session.start_clock(30)

    snapshot = session.snapshot()

    assert snapshot['draft_id'] == 'd1'
    assert snapshot['pick_count'] == 0
    assert snapshot['current_round'] == 1
    assert snapshot['overall_pick'] == 1
    assert snapshot['scoring_format'] == 'full_ppr'
    assert snapshot['clock_remaining'] == 30
    assert snapshot['queue_length'] == 0
    assert not snapshot['panic_active']
    assert not snapshot['roster_is_estimated']


def test_operations_require_open_session(tmp_path) -> None:
    session, _ = _session(tmp_path)
    with pytest.raises(InvalidConfiguration):
        session.snapshot()
    with pytest.raises(InvalidConfiguration):
        session.trigger_panic()


def test_close_persists_and_releases_client(tmp_path) -> None:
    client = _client()
    session, _ = _session(tmp_path, client=client)
    session.open()
    session.start()
    session.add_to_plan(2, 'p20')

    session.close()
    session.close()

    assert client.closed
    assert not session.is_open
    assert not session.sync.running
    assert session.config_provider.load_plan('d1').player_ids() == ['p20']
