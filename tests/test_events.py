"""Tests for the event bus."""

from draft_tracker.draft.events import DraftStatusChanged, EventBus, TurnChanged

from fakes import EventRecorder


def test_emit_outside_batch_delivers_immediately(event_bus, recorder) -> None:
    event_bus.emit(TurnChanged(is_user_turn=True))
    event_bus.emit(TurnChanged(is_user_turn=False))
    assert len(recorder.batches) == 2


def test_batch_coalesces_nested_emits(event_bus, recorder) -> None:
    with event_bus.batch():
        event_bus.emit(DraftStatusChanged(status='drafting'))
        with event_bus.batch():
            event_bus.emit(TurnChanged(is_user_turn=True))
        assert recorder.batches == []

    assert len(recorder.batches) == 1
    assert [e.name for e in recorder.batches[0]] == ['DraftStatusChanged', 'TurnChanged']


def test_empty_batch_delivers_nothing(event_bus, recorder) -> None:
    with event_bus.batch():
        pass
    assert recorder.batches == []


def test_failing_listener_does_not_block_others() -> None:
    bus = EventBus()

    def broken(events):
        raise RuntimeError("render failed")

    recorder = EventRecorder()
    bus.subscribe(broken)
    bus.subscribe(recorder)

    bus.emit(TurnChanged(is_user_turn=True))

    assert len(recorder.events) == 1


def test_unsubscribe(event_bus, recorder) -> None:
    event_bus.unsubscribe(recorder)
    event_bus.emit(TurnChanged(is_user_turn=True))
    assert recorder.batches == []
