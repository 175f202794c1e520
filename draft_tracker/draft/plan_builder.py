"""
Round-by-round draft plan for the tracked participant.

The plan is computed before (or during) the draft from the catalog's ADP:
for each round it lists up to four primary targets and four backups near
the participant's expected pick, following a hand-authored position
priority per round that is rebalanced as positions fill up.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from .. import config
from ..catalog import Player, PlayerCatalog
from ..valuation import ScoringFormat, is_draftable

logger = logging.getLogger(__name__)


@dataclass
class PlanRound:
    """Targets and backups for one round."""

    targets: List[Player] = field(default_factory=list)
    backups: List[Player] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'targets': [p.to_dict() for p in self.targets],
            'backups': [p.to_dict() for p in self.backups],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PlanRound':
        return cls(
            targets=[Player.from_dict(p) for p in data.get('targets', [])],
            backups=[Player.from_dict(p) for p in data.get('backups', [])],
        )


class DraftPlan:
    """Mapping of round -> PlanRound. Drafted players are removed as they go."""

    def __init__(self, rounds: Optional[Dict[int, PlanRound]] = None):
        self.rounds: Dict[int, PlanRound] = dict(rounds or {})

    def get(self, round_number: int) -> PlanRound:
        return self.rounds.get(round_number, PlanRound())

    def is_empty(self) -> bool:
        return not any(r.targets or r.backups for r in self.rounds.values())

    def player_ids(self) -> List[str]:
        ids = []
        for round_number in sorted(self.rounds):
            plan_round = self.rounds[round_number]
            ids.extend(p.player_id for p in plan_round.targets + plan_round.backups)
        return ids

    def set_round(
        self,
        round_number: int,
        targets: Iterable[Player],
        backups: Iterable[Player] = ()
    ) -> None:
        """Replace a round manually; lists are deduplicated and capped at four."""
        self._check_round(round_number)
        targets = _dedupe(targets)[:config.PLAN_SLOTS_PER_LIST]
        target_ids = {p.player_id for p in targets}
        backups = [p for p in _dedupe(backups) if p.player_id not in target_ids]
        self.rounds[round_number] = PlanRound(
            targets=targets,
            backups=backups[:config.PLAN_SLOTS_PER_LIST],
        )

    def add_target(self, round_number: int, player: Player) -> bool:
        return self._add(round_number, player, backup=False)

    def add_backup(self, round_number: int, player: Player) -> bool:
        return self._add(round_number, player, backup=True)

    def _add(self, round_number: int, player: Player, backup: bool) -> bool:
        self._check_round(round_number)
        plan_round = self.rounds.setdefault(round_number, PlanRound())
        entries = plan_round.backups if backup else plan_round.targets

        if player.player_id in {p.player_id for p in plan_round.targets + plan_round.backups}:
            return False
        if len(entries) >= config.PLAN_SLOTS_PER_LIST:
            return False

        entries.append(player)
        return True

    def remove_player(self, player_id: str) -> bool:
        """Remove a player from every round; True if anything was removed."""
        removed = False
        for plan_round in self.rounds.values():
            before = len(plan_round.targets) + len(plan_round.backups)
            plan_round.targets = [p for p in plan_round.targets if p.player_id != player_id]
            plan_round.backups = [p for p in plan_round.backups if p.player_id != player_id]
            removed = removed or before != len(plan_round.targets) + len(plan_round.backups)
        return removed

    def remove_drafted(self, drafted_ids) -> List[str]:
        """Remove every planned player that has been drafted by anyone."""
        removed = [pid for pid in dict.fromkeys(self.player_ids()) if pid in drafted_ids]
        for player_id in removed:
            self.remove_player(player_id)
        if removed:
            logger.info(f"Removed {len(removed)} drafted players from plan")
        return removed

    @staticmethod
    def _check_round(round_number: int) -> None:
        if not 1 <= round_number <= config.PLAN_ROUNDS:
            raise ValueError(f"Round must be 1-{config.PLAN_ROUNDS}, got {round_number}")

    def to_dict(self) -> dict:
        return {str(r): plan_round.to_dict() for r, plan_round in sorted(self.rounds.items())}

    @classmethod
    def from_dict(cls, data: dict) -> 'DraftPlan':
        return cls({int(r): PlanRound.from_dict(d) for r, d in (data or {}).items()})


def _dedupe(players: Iterable[Player]) -> List[Player]:
    seen = set()
    result = []
    for player in players:
        if player.player_id not in seen:
            seen.add(player.player_id)
            result.append(player)
    return result


def expected_overall_pick(round_number: int, team_count: int, draft_position: int) -> int:
    """Overall pick number for a draft position in a snake draft."""
    if round_number % 2 == 1:
        pick_in_round = draft_position
    else:
        pick_in_round = team_count - draft_position + 1
    return (round_number - 1) * team_count + pick_in_round


def adp_window(round_number: int) -> int:
    """Half-width of the ADP candidate window for a round."""
    for last_round, width in config.PLAN_WINDOWS:
        if last_round is None or round_number <= last_round:
            return width
    return config.PLAN_WINDOWS[-1][1]


def round_priorities(round_number: int, planned: Dict[str, int]) -> List[str]:
    """
    Position priority for a round after roster-balance adjustments.

    QB is forced to the top from round 8 when none is planned yet (TE from
    round 9), and positions at their plan cap are dropped.
    """
    priorities = list(config.PLAN_ROUND_PRIORITIES.get(round_number, ['RB', 'WR']))

    if round_number >= config.PLAN_TE_PROMOTE_ROUND and planned.get('TE', 0) == 0:
        priorities = ['TE'] + [p for p in priorities if p != 'TE']

    if round_number >= config.PLAN_QB_PROMOTE_ROUND and planned.get('QB', 0) == 0:
        priorities = ['QB'] + [p for p in priorities if p != 'QB']

    return [
        p for p in priorities
        if planned.get(p, 0) < config.PLAN_POSITION_CAPS.get(p, config.PLAN_ROUNDS)
    ]


def backfill_sparse_positions(players: List[Player]) -> Dict[str, Player]:
    """
    Give K/DEF players without a usable ADP a default plan ADP.

    Players are spread across the position's default band in search-rank
    order. Returns player_id -> Player carrying the plan ADP.
    """
    plan_players = {}

    for position, (low, high) in config.PLAN_DEFAULT_BANDS.items():
        sparse = [
            p for p in players
            if p.position.value == position and p.adp > config.MAX_DRAFTABLE_ADP
        ]
        sparse.sort(key=lambda p: (p.search_rank is None, p.search_rank or 0, p.name))

        step = (high - low) / max(len(sparse) - 1, 1)
        for index, player in enumerate(sparse):
            plan_players[player.player_id] = replace(player, adp=min(high, low + index * step))

    return plan_players


def generate_plan(
    catalog: PlayerCatalog,
    team_count: int,
    draft_position: int,
    scoring_format: Optional[ScoringFormat] = None,
    rounds: int = config.PLAN_ROUNDS
) -> DraftPlan:
    """
    Build a round-by-round plan for a snake-draft position.

    Args:
        catalog: Player catalog
        team_count: Teams in the draft
        draft_position: Tracked participant's first-round slot (1-based)
        scoring_format: Scoring format; the catalog is re-valued if it differs
        rounds: Number of rounds to plan (max 15)

    Returns:
        DraftPlan with up to 4 targets and 4 backups per round
    """
    if not 1 <= draft_position <= team_count:
        raise ValueError(f"draft_position must be 1-{team_count}, got {draft_position}")

    if scoring_format is not None and scoring_format != catalog.scoring_format:
        catalog = catalog.rebuild(scoring_format)

    rounds = min(rounds, config.PLAN_ROUNDS)
    plan_players = {p.player_id: p for p in catalog.players}
    plan_players.update(backfill_sparse_positions(catalog.players))
    plan_catalog = PlayerCatalog(plan_players.values(), scoring_format=catalog.scoring_format)

    planned = {position: 0 for position in config.POSITIONS}
    used_ids = set()
    plan = DraftPlan()

    for round_number in range(1, rounds + 1):
        overall = expected_overall_pick(round_number, team_count, draft_position)
        width = adp_window(round_number)
        priorities = round_priorities(round_number, planned)

        candidates = [
            p for p in plan_catalog.adp_window(overall - width, overall + width, priorities)
            if p.player_id not in used_ids and is_draftable(p, round_number)
        ]

        # Closest to the expected pick first within each position
        by_position = {position: [] for position in priorities}
        for player in sorted(candidates, key=lambda p: (abs(p.adp - overall), p.adp)):
            by_position[player.position.value].append(player)

        ordered = []
        while any(by_position.values()):
            for position in priorities:
                if by_position[position]:
                    ordered.append(by_position[position].pop(0))

        slots = config.PLAN_SLOTS_PER_LIST
        plan_round = PlanRound(targets=ordered[:slots], backups=ordered[slots:2 * slots])
        plan.rounds[round_number] = plan_round

        if plan_round.targets:
            planned[plan_round.targets[0].position.value] += 1
        used_ids.update(p.player_id for p in plan_round.targets + plan_round.backups)

        logger.debug(
            f"Round {round_number} (pick {overall}, ±{width}): "
            f"priorities {priorities}, targets "
            f"{[p.name for p in plan_round.targets]}"
        )

    logger.info(
        f"Generated {rounds}-round plan for slot {draft_position}/{team_count} "
        f"({catalog.scoring_format.value}); planned starters {planned}"
    )
    return plan
