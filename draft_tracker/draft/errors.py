"""
Exception types for the live draft subsystem.

Expected "not found" lookups (unknown user, unmatched roster) return None
instead of raising. Exceptions are reserved for conditions the caller must
react to differently:

- TransientFetchError: retry on the next poll cycle
- DraftNotFound: fatal for the session
- InvalidConfiguration: session cannot start
"""


class DraftTrackerError(Exception):
    """Base class for draft tracker errors."""


class TransientFetchError(DraftTrackerError):
    """Network failure or timeout talking to the draft data provider."""


class DraftNotFound(DraftTrackerError):
    """The configured league or draft does not exist."""


class EmptyCatalog(DraftTrackerError):
    """The player catalog failed to load or has no players."""


class StaleDataInconsistency(DraftTrackerError):
    """A drafted player slipped into a fresh recommendation list."""

    def __init__(self, player_id: str, player_name: str = ''):
        self.player_id = player_id
        self.player_name = player_name
        super().__init__(
            f"Drafted player {player_name or player_id} ({player_id}) "
            f"survived into recommendations"
        )


class InvalidConfiguration(DraftTrackerError):
    """Required configuration is missing or malformed."""
