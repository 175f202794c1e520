"""
In-memory stand-ins for the Sleeper API used across the test suite.
"""

from typing import Dict, List, Optional

from draft_tracker.catalog import Player, PlayerCatalog, build_player
from draft_tracker.draft.errors import TransientFetchError
from draft_tracker.normalizer import normalize_position
from draft_tracker.valuation import RiskLevel, ScoringFormat, tier_for_rank

# Repeating position pattern for synthetic search ranks
RANK_PATTERN = ['RB', 'WR', 'WR', 'RB', 'WR', 'QB', 'TE', 'RB', 'WR', 'QB']


def make_player(
    player_id: str,
    position: str = 'RB',
    adp: float = 50.0,
    name: Optional[str] = None,
    team: Optional[str] = 'KC',
    injury_status: Optional[str] = None,
    active: bool = True,
    search_rank: Optional[int] = None,
) -> Player:
    """Player with a fixed ADP (no valuation pipeline)."""
    return Player(
        player_id=player_id,
        name=name or f"Player {player_id}",
        position=normalize_position(position),
        team=team,
        adp=adp,
        tier=tier_for_rank(adp),
        risk_level=RiskLevel.LOW,
        injury_status=injury_status,
        search_rank=search_rank,
        active=active,
    )


def synthetic_catalog(max_rank: int = 220, sparse_kickers: int = 12, sparse_defenses: int = 12) -> PlayerCatalog:
    """
    Standard-scoring catalog where ADP equals search rank.

    Player ids are 'p<rank>'. Kickers ('k1'..) and defenses ('def1'..) have
    no search rank, so their ADP is undraftable until a plan back-fills it.
    """
    players = [
        build_player(
            player_id=f"p{rank}",
            name=f"Player {rank}",
            position=RANK_PATTERN[(rank - 1) % len(RANK_PATTERN)],
            team='KC',
            search_rank=rank,
            scoring_format=ScoringFormat.STANDARD,
            years_exp=4,
            age=26,
        )
        for rank in range(1, max_rank + 1)
    ]
    players += [
        build_player(f"k{i}", f"Kicker {i}", 'K', 'KC', None, ScoringFormat.STANDARD)
        for i in range(1, sparse_kickers + 1)
    ]
    players += [
        build_player(f"def{i}", f"Defense {i}", 'DEF', 'KC', None, ScoringFormat.STANDARD)
        for i in range(1, sparse_defenses + 1)
    ]
    return PlayerCatalog(players, scoring_format=ScoringFormat.STANDARD)


def sleeper_pick(
    pick_no: int,
    player_id: str,
    roster_id: Optional[int] = None,
    picked_by: Optional[str] = None,
    position: Optional[str] = None,
    first_name: str = '',
    last_name: str = '',
) -> Dict:
    """Raw /draft/<id>/picks record."""
    metadata = {'first_name': first_name, 'last_name': last_name}
    if position:
        metadata['position'] = position
    return {
        'pick_no': pick_no,
        'player_id': player_id,
        'roster_id': roster_id,
        'picked_by': picked_by,
        'draft_slot': roster_id,
        'metadata': metadata,
    }


def sleeper_draft(
    draft_id: str = 'd1',
    teams: int = 12,
    rounds: int = 15,
    status: str = 'drafting',
    draft_type: str = 'snake',
    slot_to_roster_id: Optional[Dict] = None,
    draft_order: Optional[Dict] = None,
    pick_timer: Optional[int] = None,
    league_id: Optional[str] = 'L1',
) -> Dict:
    """Raw /draft/<id> record."""
    settings = {'teams': teams, 'rounds': rounds}
    if pick_timer:
        settings['pick_timer'] = pick_timer
    return {
        'draft_id': draft_id,
        'league_id': league_id,
        'status': status,
        'type': draft_type,
        'settings': settings,
        'slot_to_roster_id': {str(k): v for k, v in (slot_to_roster_id or {}).items()},
        'draft_order': draft_order,
        'metadata': {},
    }


def identity_slots(teams: int = 12) -> Dict[int, int]:
    return {slot: slot for slot in range(1, teams + 1)}


class FakeSleeper:
    """Scriptable draft data provider."""

    def __init__(
        self,
        draft: Optional[Dict] = None,
        picks: Optional[List[Dict]] = None,
        league: Optional[Dict] = None,
        drafts: Optional[List[Dict]] = None,
        users: Optional[List[Dict]] = None,
        rosters: Optional[List[Dict]] = None,
        players: Optional[Dict] = None,
        trending: Optional[List[Dict]] = None,
        clock: Optional['FakeClock'] = None,
        latency: float = 0.0,
    ):
        self.draft = draft or sleeper_draft()
        self.picks = list(picks or [])
        self.league = league
        self.drafts = drafts if drafts is not None else [self.draft]
        self.users = users or []
        self.rosters = rosters or []
        self.players = players or {}
        self.trending = trending or []
        self.fail = False
        self.closed = False
        self.timeouts: List[float] = []
        self.clock = clock
        self.latency = latency  # seconds each draft request advances the clock by

    def _check(self) -> None:
        if self.fail:
            raise TransientFetchError("provider offline")

    def fetch_league(self, league_id):
        self._check()
        if self.league and self.league.get('league_id') == league_id:
            return self.league
        return None

    def fetch_league_drafts(self, league_id):
        self._check()
        return list(self.drafts)

    def _timed(self, timeout) -> None:
        self.timeouts.append(timeout)
        if self.clock is not None:
            self.clock.now += self.latency

    def fetch_draft(self, draft_id, timeout=10):
        self._check()
        self._timed(timeout)
        return self.draft if self.draft and self.draft['draft_id'] == draft_id else None

    def fetch_draft_picks(self, draft_id, timeout=10):
        self._check()
        self._timed(timeout)
        return list(self.picks)

    def fetch_users(self, league_id):
        self._check()
        return list(self.users)

    def fetch_rosters(self, league_id):
        self._check()
        return list(self.rosters)

    def fetch_user(self, username):
        self._check()
        for user in self.users:
            if user.get('username') == username:
                return user
        return None

    def fetch_players(self, force_refresh=False):
        self._check()
        return dict(self.players)

    def fetch_trending_players(self, trend_type='add', lookback_hours=24, limit=25):
        self._check()
        return list(self.trending)

    def close(self):
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class EventRecorder:
    """EventBus listener that keeps every delivered batch."""

    def __init__(self):
        self.batches = []

    def __call__(self, events):
        self.batches.append(list(events))

    @property
    def events(self):
        return [event for batch in self.batches for event in batch]

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]
