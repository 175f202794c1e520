"""
User-managed priority queue of players to surface first.
"""

import logging
from typing import Iterable, List, Optional

from ..catalog import Player

logger = logging.getLogger(__name__)


class PickQueue:
    """Ordered, id-deduplicated list of undrafted players."""

    def __init__(self, players: Optional[Iterable[Player]] = None):
        self._players: List[Player] = []
        for player in players or []:
            self.enqueue(player)

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self):
        return iter(list(self._players))

    def __contains__(self, player_id: str) -> bool:
        return any(p.player_id == player_id for p in self._players)

    @property
    def players(self) -> List[Player]:
        return list(self._players)

    @property
    def player_ids(self) -> List[str]:
        return [p.player_id for p in self._players]

    def head(self) -> Optional[Player]:
        return self._players[0] if self._players else None

    def enqueue(self, player: Player) -> bool:
        """
        Append a player unless already queued.

        Returns:
            True if the player was added
        """
        if player.player_id in self:
            logger.debug(f"{player.name} already queued")
            return False

        self._players.append(player)
        logger.info(f"Queued {player.name} ({player.position.value}) at #{len(self._players)}")
        return True

    def dequeue(self, player_id: str) -> Optional[Player]:
        """Remove a player by id; returns the removed player or None."""
        for index, player in enumerate(self._players):
            if player.player_id == player_id:
                del self._players[index]
                logger.info(f"Removed {player.name} from queue")
                return player
        return None

    def reorder(self, player_id: str, direction: str) -> bool:
        """
        Swap a player with its neighbour.

        Args:
            player_id: Player to move
            direction: 'up' (towards the head) or 'down'

        Returns:
            True if the player moved; False at either end or when not queued

        Raises:
            ValueError: If direction is not 'up' or 'down'
        """
        if direction not in ('up', 'down'):
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

        ids = self.player_ids
        if player_id not in ids:
            return False

        index = ids.index(player_id)
        target = index - 1 if direction == 'up' else index + 1
        if target < 0 or target >= len(self._players):
            return False

        self._players[index], self._players[target] = self._players[target], self._players[index]
        return True

    def evict_drafted(self, drafted_ids) -> List[Player]:
        """
        Drop every queued player whose id is in drafted_ids.

        Returns:
            The evicted players, in queue order
        """
        evicted = [p for p in self._players if p.player_id in drafted_ids]
        if evicted:
            self._players = [p for p in self._players if p.player_id not in drafted_ids]
            logger.info(f"Evicted drafted players from queue: {', '.join(p.name for p in evicted)}")
        return evicted

    def to_dict(self) -> dict:
        return {'players': [p.to_dict() for p in self._players]}

    @classmethod
    def from_dict(cls, data: dict) -> 'PickQueue':
        return cls(Player.from_dict(p) for p in data.get('players', []))
