"""
Player catalog: normalized view of draftable NFL players.

Built once per session from the Sleeper player dictionary. ADP, tier and
risk are computed at load time; if the scoring format changes the whole
catalog is rebuilt rather than patched.
"""

import logging
import random
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from .normalizer import Position, normalize_position
from .valuation import (
    RiskLevel,
    ScoringFormat,
    Tier,
    compute_adp,
    compute_risk,
    is_draftable,
    tier_for_rank,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Player:
    """A draftable player with computed valuation."""

    player_id: str
    name: str
    position: Position
    team: Optional[str]
    adp: float
    tier: Tier
    risk_level: RiskLevel
    years_exp: Optional[int] = None
    college: Optional[str] = None
    rookie: bool = False
    injury_status: Optional[str] = None
    search_rank: Optional[int] = None
    age: Optional[int] = None
    active: bool = True

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'player_id': self.player_id,
            'name': self.name,
            'position': self.position.value,
            'team': self.team,
            'adp': self.adp,
            'tier': self.tier.value,
            'risk_level': self.risk_level.value,
            'years_exp': self.years_exp,
            'college': self.college,
            'rookie': self.rookie,
            'injury_status': self.injury_status,
            'search_rank': self.search_rank,
            'age': self.age,
            'active': self.active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Player':
        """Create Player from dictionary (JSON deserialization)."""
        return cls(
            player_id=str(data['player_id']),
            name=data['name'],
            position=normalize_position(data['position']),
            team=data.get('team'),
            adp=float(data['adp']),
            tier=Tier(data['tier']),
            risk_level=RiskLevel(data['risk_level']),
            years_exp=data.get('years_exp'),
            college=data.get('college'),
            rookie=data.get('rookie', False),
            injury_status=data.get('injury_status'),
            search_rank=data.get('search_rank'),
            age=data.get('age'),
            active=data.get('active', True),
        )


def build_player(
    player_id: str,
    name: str,
    position,
    team: Optional[str],
    search_rank: Optional[int],
    scoring_format: ScoringFormat,
    years_exp: Optional[int] = None,
    age: Optional[int] = None,
    injury_status: Optional[str] = None,
    college: Optional[str] = None,
    active: bool = True,
    rng: Optional[random.Random] = None
) -> Player:
    """Create a Player, computing ADP, tier and risk from raw attributes."""
    position = normalize_position(position)
    adp = compute_adp(search_rank, position, scoring_format, rng=rng)

    return Player(
        player_id=str(player_id),
        name=name,
        position=position,
        team=team,
        adp=adp,
        tier=tier_for_rank(adp),
        risk_level=compute_risk(age, years_exp, injury_status),
        years_exp=years_exp,
        college=college,
        rookie=years_exp == 0,
        injury_status=injury_status or None,
        search_rank=search_rank,
        age=age,
        active=active,
    )


class PlayerCatalog:
    """Indexed collection of players keyed by provider player_id."""

    def __init__(
        self,
        players: Iterable[Player],
        scoring_format: ScoringFormat = ScoringFormat.HALF_PPR,
        is_demo: bool = False
    ):
        self.scoring_format = scoring_format
        self.is_demo = is_demo
        self._players: Dict[str, Player] = {p.player_id: p for p in players}
        self._frame: Optional[pd.DataFrame] = None

    @classmethod
    def from_sleeper(
        cls,
        players_json: Dict[str, dict],
        scoring_format: ScoringFormat,
        rng: Optional[random.Random] = None
    ) -> 'PlayerCatalog':
        """
        Build a catalog from the Sleeper /players/nfl dictionary.

        Args:
            players_json: Mapping of Sleeper player_id -> player record
            scoring_format: League scoring format for ADP adjustment
            rng: Optional seeded RNG for ADP jitter

        Returns:
            PlayerCatalog of active players with a fantasy position
        """
        players = []
        skipped = 0

        for player_id, raw in (players_json or {}).items():
            positions = raw.get('fantasy_positions') or []
            if not raw.get('active') or not positions:
                skipped += 1
                continue

            position = normalize_position(positions[0])
            if position == Position.UNKNOWN:
                skipped += 1
                continue

            name = raw.get('full_name') or (
                f"{raw.get('first_name', '')} {raw.get('last_name', '')}".strip()
            )

            players.append(build_player(
                player_id=player_id,
                name=name,
                position=position,
                team=raw.get('team'),
                search_rank=raw.get('search_rank'),
                scoring_format=scoring_format,
                years_exp=raw.get('years_exp'),
                age=raw.get('age'),
                injury_status=raw.get('injury_status'),
                college=raw.get('college'),
                active=bool(raw.get('active')),
                rng=rng,
            ))

        logger.info(f"Loaded {len(players)} players for analysis ({skipped} skipped)")
        return cls(players, scoring_format=scoring_format)

    def rebuild(self, scoring_format: ScoringFormat) -> 'PlayerCatalog':
        """Recompute every player's valuation for a new scoring format."""
        players = []
        for player in self._players.values():
            adp = compute_adp(player.search_rank, player.position, scoring_format)
            players.append(replace(player, adp=adp, tier=tier_for_rank(adp)))

        logger.info(f"Rebuilt catalog for {scoring_format.value}: {len(players)} players")
        return PlayerCatalog(players, scoring_format=scoring_format, is_demo=self.is_demo)

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._players

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def is_empty(self) -> bool:
        return not self._players

    @property
    def players(self) -> List[Player]:
        return list(self._players.values())

    @property
    def frame(self) -> pd.DataFrame:
        """DataFrame index over the catalog (built lazily)."""
        if self._frame is None:
            self._frame = pd.DataFrame(
                [
                    {
                        'player_id': p.player_id,
                        'position': p.position.value,
                        'adp': p.adp,
                    }
                    for p in self._players.values()
                ],
                columns=['player_id', 'position', 'adp']
            )
        return self._frame

    def available(
        self,
        drafted_ids: Set[str],
        current_round: Optional[int] = None,
        positions: Optional[Iterable] = None
    ) -> List[Player]:
        """
        Undrafted players ordered by ascending ADP.

        Args:
            drafted_ids: Player ids already picked
            current_round: When given, apply the draftability policy for that round
            positions: Optional subset of positions to keep

        Returns:
            List of Players, best ADP first
        """
        df = self.frame
        filtered_df = df[~df['player_id'].isin(list(drafted_ids))]

        if positions is not None:
            keep = [normalize_position(p).value for p in positions]
            filtered_df = filtered_df[filtered_df['position'].isin(keep)]

        filtered_df = filtered_df.sort_values(['adp', 'player_id'])
        players = [self._players[pid] for pid in filtered_df['player_id']]

        if current_round is not None:
            players = [p for p in players if is_draftable(p, current_round)]

        return players

    def adp_window(
        self,
        low: float,
        high: float,
        positions: Optional[Iterable] = None
    ) -> List[Player]:
        """Players whose ADP falls within [low, high], ascending ADP."""
        df = self.frame
        filtered_df = df[(df['adp'] >= low) & (df['adp'] <= high)]

        if positions is not None:
            keep = [normalize_position(p).value for p in positions]
            filtered_df = filtered_df[filtered_df['position'].isin(keep)]

        filtered_df = filtered_df.sort_values(['adp', 'player_id'])
        return [self._players[pid] for pid in filtered_df['player_id']]


# Fixed fallback catalog used when the real one cannot be loaded.
DEMO_PLAYERS = [
    ('demo_rb1', 'Christian McCaffrey', 'RB', 'SF', 1, 8, 29),
    ('demo_wr1', 'CeeDee Lamb', 'WR', 'DAL', 2, 5, 26),
    ('demo_wr2', 'Justin Jefferson', 'WR', 'MIN', 3, 5, 26),
    ('demo_rb2', 'Bijan Robinson', 'RB', 'ATL', 4, 2, 23),
    ('demo_wr3', "Ja'Marr Chase", 'WR', 'CIN', 5, 4, 25),
    ('demo_rb3', 'Breece Hall', 'RB', 'NYJ', 6, 3, 24),
    ('demo_wr4', 'Amon-Ra St. Brown', 'WR', 'DET', 8, 4, 25),
    ('demo_te1', 'Travis Kelce', 'TE', 'KC', 20, 12, 35),
    ('demo_qb1', 'Josh Allen', 'QB', 'BUF', 24, 7, 28),
    ('demo_te2', 'Sam LaPorta', 'TE', 'DET', 40, 2, 24),
    ('demo_qb2', 'Jalen Hurts', 'QB', 'PHI', 44, 6, 26),
    ('demo_rb4', 'Kyren Williams', 'RB', 'LAR', 30, 3, 24),
    ('demo_wr5', 'Garrett Wilson', 'WR', 'NYJ', 18, 3, 24),
    ('demo_k1', 'Justin Tucker', 'K', 'BAL', 190, 13, 35),
    ('demo_def1', 'San Francisco 49ers', 'DEF', 'SF', 195, None, None),
]


def demo_catalog(scoring_format: ScoringFormat = ScoringFormat.HALF_PPR) -> PlayerCatalog:
    """Small fixed catalog flagged as demo data."""
    players = [
        build_player(
            player_id=pid,
            name=name,
            position=position,
            team=team,
            search_rank=rank,
            scoring_format=scoring_format,
            years_exp=years_exp,
            age=age,
        )
        for pid, name, position, team, rank, years_exp, age in DEMO_PLAYERS
    ]
    return PlayerCatalog(players, scoring_format=scoring_format, is_demo=True)
