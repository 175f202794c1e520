"""
Core data structures for draft picks and draft state.

A Pick is one entry of the provider's append-only pick feed. DraftState is
the session's view of the draft: metadata plus whose turn it is.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
import json


class DraftStatus(str, Enum):
    PRE_DRAFT = 'pre_draft'
    DRAFTING = 'drafting'
    PAUSED = 'paused'
    COMPLETE = 'complete'


@dataclass(frozen=True)
class Pick:
    """Represents a single pick from the draft feed."""

    pick_no: int                        # Overall pick number (1-based)
    player_id: str                      # Sleeper player ID
    roster_id: Optional[int] = None     # Roster that made the pick
    picked_by: Optional[str] = None     # Owner (user) id that made the pick
    draft_slot: Optional[int] = None    # Draft slot of the picking team
    metadata: Dict[str, str] = field(default_factory=dict)  # Provider name/position/team

    def round(self, team_count: int) -> int:
        """Round implied by the pick number."""
        return (self.pick_no - 1) // team_count + 1

    @property
    def player_name(self) -> str:
        first = self.metadata.get('first_name', '')
        last = self.metadata.get('last_name', '')
        return f"{first} {last}".strip()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'pick_no': self.pick_no,
            'player_id': self.player_id,
            'roster_id': self.roster_id,
            'picked_by': self.picked_by,
            'draft_slot': self.draft_slot,
            'metadata': dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Pick':
        """Create Pick from dictionary (JSON deserialization)."""
        return cls(
            pick_no=int(data['pick_no']),
            player_id=str(data['player_id']),
            roster_id=data.get('roster_id'),
            picked_by=data.get('picked_by'),
            draft_slot=data.get('draft_slot'),
            metadata=dict(data.get('metadata') or {}),
        )

    @classmethod
    def from_sleeper(cls, data: dict) -> 'Pick':
        """
        Create Pick from a Sleeper /draft/<id>/picks entry.

        Raises:
            KeyError: If pick_no or player_id is missing
        """
        roster_id = data.get('roster_id')
        return cls(
            pick_no=int(data['pick_no']),
            player_id=str(data['player_id']),
            roster_id=int(roster_id) if roster_id is not None else None,
            picked_by=data.get('picked_by') or None,
            draft_slot=data.get('draft_slot'),
            metadata={
                k: v for k, v in (data.get('metadata') or {}).items()
                if k in ('first_name', 'last_name', 'position', 'team')
            },
        )

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'Pick':
        """Create Pick from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class DraftState:
    """Session view of the draft. Mutated only by the sync engine."""

    draft_id: str
    status: DraftStatus = DraftStatus.PRE_DRAFT
    draft_type: str = 'snake'
    team_count: int = 12
    rounds: int = 15
    tracked_roster_id: Optional[int] = None
    tracked_owner_id: Optional[str] = None
    is_user_turn: bool = False
    turn_is_estimated: bool = True
    current_picker: Optional[int] = None
    pick_timer_seconds: Optional[int] = None
    slot_to_roster_id: Dict[int, int] = field(default_factory=dict)
    draft_order: Dict[str, int] = field(default_factory=dict)  # owner_id -> slot

    def update_metadata(self, draft: dict) -> None:
        """Refresh fields from a Sleeper /draft/<id> response."""
        settings = draft.get('settings') or {}

        try:
            self.status = DraftStatus(draft.get('status', self.status.value))
        except ValueError:
            pass

        self.draft_type = draft.get('type') or self.draft_type
        self.team_count = int(settings.get('teams') or self.team_count)
        self.rounds = int(settings.get('rounds') or self.rounds)
        self.pick_timer_seconds = settings.get('pick_timer') or self.pick_timer_seconds

        slots = draft.get('slot_to_roster_id') or {}
        if slots:
            self.slot_to_roster_id = {int(k): int(v) for k, v in slots.items() if v is not None}

        order = draft.get('draft_order') or {}
        if order:
            self.draft_order = {str(k): int(v) for k, v in order.items()}

    def slot_for_pick(self, index: int) -> int:
        """Draft slot (1-based) on the clock for a 0-based overall pick index."""
        round_index, position = divmod(index, self.team_count)
        if self.draft_type == 'snake' and round_index % 2 == 1:
            return self.team_count - position
        return position + 1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'draft_id': self.draft_id,
            'status': self.status.value,
            'draft_type': self.draft_type,
            'team_count': self.team_count,
            'rounds': self.rounds,
            'tracked_roster_id': self.tracked_roster_id,
            'tracked_owner_id': self.tracked_owner_id,
            'is_user_turn': self.is_user_turn,
            'turn_is_estimated': self.turn_is_estimated,
            'current_picker': self.current_picker,
            'pick_timer_seconds': self.pick_timer_seconds,
        }


def create_initial_draft_state(draft: dict, team_count: Optional[int] = None) -> DraftState:
    """
    Create the draft state from a Sleeper draft record.

    Args:
        draft: Raw draft JSON (must include draft_id)
        team_count: Fallback team count when the draft settings omit it

    Returns:
        DraftState initialized from provider metadata
    """
    state = DraftState(
        draft_id=str(draft['draft_id']),
        team_count=team_count or 12,
    )
    state.update_metadata(draft)
    return state
