"""
Shared fixtures for the draft tracker tests.

All provider access goes through FakeSleeper; no test touches the network.
"""

import pytest

from draft_tracker.draft.draft_event import create_initial_draft_state
from draft_tracker.draft.draft_state_manager import DraftStateManager
from draft_tracker.draft.events import EventBus

from fakes import EventRecorder, FakeSleeper, synthetic_catalog


@pytest.fixture
def catalog():
    return synthetic_catalog()


@pytest.fixture
def state_manager(catalog):
    return DraftStateManager(team_count=12, catalog=catalog)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    recorder = EventRecorder()
    event_bus.subscribe(recorder)
    return recorder


@pytest.fixture
def fake_client():
    return FakeSleeper()


@pytest.fixture
def draft_state(fake_client):
    return create_initial_draft_state(fake_client.draft)
