"""Tests for the JSONL pick log."""

import pytest

from draft_tracker.draft.draft_event import Pick
from draft_tracker.draft.event_store import PickEventStore, create_session_filepath


def test_append_and_load(tmp_path) -> None:
    store = PickEventStore(tmp_path / 'logs' / 'draft.jsonl')
    picks = [
        Pick(pick_no=1, player_id='p1', roster_id=1, metadata={'first_name': 'A'}),
        Pick(pick_no=2, player_id='p2', roster_id=2),
    ]

    store.append_picks(picks[:1])
    store.append_picks(picks[1:])
    store.append_picks([])

    assert store.load_all_picks() == picks


def test_missing_file_loads_empty(tmp_path) -> None:
    store = PickEventStore(tmp_path / 'none.jsonl')
    assert store.load_all_picks() == []


def test_corrupt_lines_are_skipped(tmp_path) -> None:
    path = tmp_path / 'draft.jsonl'
    path.write_text(
        Pick(pick_no=1, player_id='p1').to_json() + '\n'
        + '{not json\n'
        + '\n'
        + '{"pick_no": 2}\n',
        encoding='utf-8'
    )

    picks = PickEventStore(path).load_all_picks()
    assert [p.player_id for p in picks] == ['p1']


def test_session_filepath(tmp_path) -> None:
    path = create_session_filepath(tmp_path, 'd42', session_id='s1')
    assert path == tmp_path / 'draft_d42_s1.jsonl'


def test_replay_into_state_manager(tmp_path, state_manager) -> None:
    store = PickEventStore(tmp_path / 'draft.jsonl')
    store.append_picks([Pick(pick_no=i, player_id=f"p{i}") for i in range(1, 14)])

    assert store.replay(state_manager) == 13
    assert state_manager.current_round() == 2
    assert 'p13' in state_manager.drafted_ids


def test_replay_refuses_existing_history(tmp_path, state_manager) -> None:
    state_manager.apply_picks([Pick(pick_no=1, player_id='p1')])
    with pytest.raises(ValueError):
        PickEventStore(tmp_path / 'draft.jsonl').replay(state_manager)
