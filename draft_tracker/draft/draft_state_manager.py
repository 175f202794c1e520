"""
Manage the local pick history and the analytics derived from it.

The DraftStateManager is responsible for:
- Holding the append-only pick list (never mutated or reordered)
- Updating position scarcity incrementally as picks are applied
- Deriving the tracked roster's position composition
- Estimating that composition from the round when the roster is unknown
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

from .. import config
from ..catalog import Player, PlayerCatalog
from ..normalizer import Position, infer_position_from_name, normalize_position
from .draft_event import Pick

logger = logging.getLogger(__name__)


class ScarcityLevel(str, Enum):
    ABUNDANT = 'Abundant'
    NORMAL = 'Normal'
    SCARCE = 'Scarce'
    CRITICAL = 'Critical'

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    ScarcityLevel.ABUNDANT: 0,
    ScarcityLevel.NORMAL: 1,
    ScarcityLevel.SCARCE: 2,
    ScarcityLevel.CRITICAL: 3,
}

# Typical tracked-roster build used when ownership is unknown: round -> position
ROUND_ESTIMATE_CURVE = {
    1: Position.RB,
    2: Position.WR,
    3: Position.RB,
    4: Position.WR,
    5: Position.TE,
    6: Position.QB,
    7: Position.RB,
    8: Position.WR,
    9: Position.RB,
    10: Position.WR,
    11: Position.TE,
    12: Position.QB,
    13: Position.K,
    14: Position.DEF,
    15: Position.WR,
}


def classify_scarcity(remaining: int) -> ScarcityLevel:
    """Scarcity label for the number of quality players left at a position."""
    if remaining <= config.SCARCITY_CRITICAL_MAX:
        return ScarcityLevel.CRITICAL
    if remaining <= config.SCARCITY_SCARCE_MAX:
        return ScarcityLevel.SCARCE
    if remaining >= config.SCARCITY_ABUNDANT_MIN:
        return ScarcityLevel.ABUNDANT
    return ScarcityLevel.NORMAL


class AppliedPick(NamedTuple):
    """One applied pick with the position's scarcity level before it was counted."""

    pick: Pick
    player: Optional[Player]
    position: Optional[Position]
    scarcity: Optional[ScarcityLevel]


@dataclass
class PositionScarcity:
    """Drafted-vs-estimated quality counts for one position."""

    starters_estimate: int
    drafted_count: int = 0

    @property
    def remaining(self) -> int:
        return self.starters_estimate - self.drafted_count

    @property
    def level(self) -> ScarcityLevel:
        return classify_scarcity(self.remaining)

    def to_dict(self) -> dict:
        return {
            'starters_estimate': self.starters_estimate,
            'drafted_count': self.drafted_count,
            'remaining': self.remaining,
            'level': self.level.value,
        }


@dataclass
class RosterComposition:
    """Position counts for the tracked roster."""

    counts: Dict[str, int] = field(default_factory=dict)
    is_estimated: bool = False
    uncounted: int = 0  # picks whose position could not be resolved

    def count(self, position) -> int:
        return self.counts.get(normalize_position(position).value, 0)

    def to_dict(self) -> dict:
        return {
            'counts': dict(self.counts),
            'is_estimated': self.is_estimated,
            'uncounted': self.uncounted,
        }


def _empty_counts() -> Dict[str, int]:
    return {position: 0 for position in config.POSITIONS}


class DraftStateManager:
    """Owns the pick history and its derived scarcity/roster analytics."""

    def __init__(
        self,
        team_count: int = config.DEFAULT_NUM_TEAMS,
        catalog: Optional[PlayerCatalog] = None,
        tracked_roster_id: Optional[int] = None,
        tracked_owner_id: Optional[str] = None
    ):
        """
        Initialize the state manager.

        Args:
            team_count: Teams in the draft (used for round arithmetic)
            catalog: Player catalog for position lookups
            tracked_roster_id: Roster id of the tracked participant, if known
            tracked_owner_id: Owner (user) id of the tracked participant, if known
        """
        self.team_count = team_count
        self.catalog = catalog
        self.tracked_roster_id = tracked_roster_id
        self.tracked_owner_id = tracked_owner_id

        self._picks: List[Pick] = []
        self.drafted_ids: Set[str] = set()
        self.position_scarcity: Dict[str, PositionScarcity] = self._fresh_scarcity()

    @staticmethod
    def _fresh_scarcity() -> Dict[str, PositionScarcity]:
        return {
            position: PositionScarcity(
                starters_estimate=config.STARTERS_ESTIMATE.get(
                    position, config.DEFAULT_STARTERS_ESTIMATE
                )
            )
            for position in config.POSITIONS
        }

    @property
    def picks(self) -> Tuple[Pick, ...]:
        """Read-only view of the pick history."""
        return tuple(self._picks)

    @property
    def pick_count(self) -> int:
        return len(self._picks)

    def set_tracked(self, roster_id: Optional[int], owner_id: Optional[str] = None) -> None:
        self.tracked_roster_id = roster_id
        self.tracked_owner_id = owner_id

    @property
    def has_tracked_roster(self) -> bool:
        return self.tracked_roster_id is not None or self.tracked_owner_id is not None

    def apply_picks(self, picks: Iterable[Pick]) -> List[AppliedPick]:
        """
        Append new picks and update scarcity over them only.

        Earlier entries are never revisited. A pick number that does not
        increase is logged but still appended, since the local list must
        stay aligned with the provider's feed by index.

        Args:
            picks: New picks in feed order

        Returns:
            AppliedPick records in feed order
        """
        processed = []

        for pick in picks:
            if self._picks and pick.pick_no <= self._picks[-1].pick_no:
                logger.warning(
                    f"Pick number {pick.pick_no} does not follow {self._picks[-1].pick_no}"
                )

            self._picks.append(pick)
            self.drafted_ids.add(pick.player_id)

            player = self.catalog.get(pick.player_id) if self.catalog else None
            position = self.resolve_position(pick, player)

            scarcity = None
            entry = self.position_scarcity.get(position.value) if position is not None else None
            if entry is not None:
                scarcity = entry.level
                entry.drafted_count += 1

            processed.append(AppliedPick(pick, player, position, scarcity))

            logger.debug(
                f"Applied Pick {pick.pick_no}: {player.name if player else pick.player_name} "
                f"({position.value if position else '?'}) → roster {pick.roster_id}"
            )

        return processed

    def resolve_position(self, pick: Pick, player: Optional[Player] = None) -> Optional[Position]:
        """
        Position of a picked player.

        Resolution order: catalog, pick metadata, curated name table.
        Returns None when every source fails.
        """
        if player is None and self.catalog is not None:
            player = self.catalog.get(pick.player_id)

        if player is not None and player.position != Position.UNKNOWN:
            return player.position

        position = normalize_position(pick.metadata.get('position'))
        if position != Position.UNKNOWN:
            return position

        return infer_position_from_name(pick.player_name)

    def is_tracked_pick(self, pick: Pick) -> bool:
        if self.tracked_roster_id is not None and pick.roster_id is not None:
            return pick.roster_id == self.tracked_roster_id
        if self.tracked_owner_id is not None and pick.picked_by:
            return pick.picked_by == self.tracked_owner_id
        return False

    def scarcity(self, position) -> ScarcityLevel:
        """Scarcity level for a position (Normal for positions outside the taxonomy)."""
        entry = self.position_scarcity.get(normalize_position(position).value)
        if entry is None:
            return ScarcityLevel.NORMAL
        return entry.level

    def scarcity_levels(self) -> Dict[str, str]:
        return {position: entry.level.value for position, entry in self.position_scarcity.items()}

    def current_round(self) -> int:
        return self.pick_count // self.team_count + 1

    def overall_pick(self) -> int:
        return self.pick_count + 1

    def roster_composition(self) -> RosterComposition:
        """
        Position counts for the tracked roster.

        Falls back to the round-based estimate when the tracked roster is
        unknown. Picks whose position cannot be resolved are reported in
        ``uncounted`` rather than guessed.
        """
        if not self.has_tracked_roster:
            return self.estimate_roster_from_round()

        counts = _empty_counts()
        uncounted = 0

        for pick in self._picks:
            if not self.is_tracked_pick(pick):
                continue

            position = self.resolve_position(pick)
            if position is None or position.value not in counts:
                uncounted += 1
                logger.warning(f"Could not resolve position for pick {pick.pick_no} ({pick.player_id})")
                continue

            counts[position.value] += 1

        return RosterComposition(counts=counts, is_estimated=False, uncounted=uncounted)

    def estimate_roster_from_round(self) -> RosterComposition:
        """Approximate tracked-roster counts from the number of completed rounds."""
        counts = _empty_counts()
        completed_rounds = min(self.current_round() - 1, len(ROUND_ESTIMATE_CURVE))

        for round_number in range(1, completed_rounds + 1):
            counts[ROUND_ESTIMATE_CURVE[round_number].value] += 1

        return RosterComposition(counts=counts, is_estimated=True)

    def tracked_picks(self) -> List[Pick]:
        return [pick for pick in self._picks if self.is_tracked_pick(pick)]

    def reset(self) -> None:
        """Clear history and rebuild scarcity from scratch (session reset only)."""
        self._picks = []
        self.drafted_ids = set()
        self.position_scarcity = self._fresh_scarcity()
        logger.info("Draft state reset")
