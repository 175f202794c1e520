"""
Live draft subsystem for the Sleeper draft tracker.

This package polls a Sleeper draft's pick feed, keeps scarcity and roster
analytics current, and produces panic-mode recommendations, a draft plan,
a pick queue and a pick clock for the tracked participant.
"""

from .draft_event import DraftState, DraftStatus, Pick
from .draft_state_manager import DraftStateManager
from .errors import (
    DraftNotFound,
    DraftTrackerError,
    EmptyCatalog,
    InvalidConfiguration,
    StaleDataInconsistency,
    TransientFetchError,
)
from .event_store import PickEventStore
from .events import EventBus
from .session import DraftSession
from .sleeper_client import SleeperClient
from .sync_engine import DraftSyncEngine

__all__ = [
    'DraftState',
    'DraftStatus',
    'Pick',
    'DraftStateManager',
    'DraftNotFound',
    'DraftTrackerError',
    'EmptyCatalog',
    'InvalidConfiguration',
    'StaleDataInconsistency',
    'TransientFetchError',
    'PickEventStore',
    'EventBus',
    'DraftSession',
    'SleeperClient',
    'DraftSyncEngine',
]
