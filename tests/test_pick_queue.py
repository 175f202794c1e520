"""Tests for the user pick queue."""

import pytest

from draft_tracker.draft.pick_queue import PickQueue

from fakes import make_player


@pytest.fixture
def players():
    return [make_player(pid, 'WR', adp) for pid, adp in (('A', 10.0), ('B', 11.0), ('C', 12.0))]


def test_enqueue_preserves_order_and_dedupes(players) -> None:
    queue = PickQueue()
    for player in players:
        assert queue.enqueue(player)

    assert not queue.enqueue(players[1])
    assert queue.player_ids == ['A', 'B', 'C']
    assert queue.head().player_id == 'A'


def test_drafted_player_is_evicted_and_not_readded(players) -> None:
    """Queue [A,B,C] loses B to another roster and stays [A,C]."""
    queue = PickQueue(players)

    evicted = queue.evict_drafted({'B'})

    assert [p.player_id for p in evicted] == ['B']
    assert queue.player_ids == ['A', 'C']

    queue.evict_drafted({'B', 'X'})
    assert queue.player_ids == ['A', 'C']
    assert 'B' not in queue


def test_explicit_enqueue_after_eviction(players) -> None:
    queue = PickQueue(players)
    queue.evict_drafted({'B'})

    assert queue.enqueue(players[1])
    assert queue.player_ids == ['A', 'C', 'B']


def test_reorder_swaps_neighbours(players) -> None:
    queue = PickQueue(players)

    assert queue.reorder('C', 'up')
    assert queue.player_ids == ['A', 'C', 'B']

    assert queue.reorder('A', 'down')
    assert queue.player_ids == ['C', 'A', 'B']


def test_reorder_at_edges_is_a_no_op(players) -> None:
    queue = PickQueue(players)

    assert not queue.reorder('A', 'up')
    assert not queue.reorder('C', 'down')
    assert not queue.reorder('missing', 'up')
    assert queue.player_ids == ['A', 'B', 'C']


def test_reorder_rejects_unknown_direction(players) -> None:
    queue = PickQueue(players)
    with pytest.raises(ValueError):
        queue.reorder('A', 'sideways')


def test_dequeue(players) -> None:
    queue = PickQueue(players)

    assert queue.dequeue('B').player_id == 'B'
    assert queue.dequeue('B') is None
    assert len(queue) == 2


def test_dict_round_trip(players) -> None:
    queue = PickQueue(players)
    restored = PickQueue.from_dict(queue.to_dict())
    assert restored.player_ids == queue.player_ids
