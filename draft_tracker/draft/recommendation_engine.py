"""
Panic-mode recommendations and per-pick analysis.

Recommendations run as a waterfall over the tracked participant's plan,
position scarcity and ADP value, after a roster-needs filter removes
positions the roster should not be adding yet (or any more).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .. import config
from ..catalog import Player, PlayerCatalog
from ..valuation import RiskLevel, Tier, injury_penalty
from .draft_event import Pick
from .draft_state_manager import DraftStateManager, RosterComposition, ScarcityLevel
from .errors import StaleDataInconsistency
from .plan_builder import DraftPlan

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    PLAN_TARGET = 'Plan Target'
    PLAN_BACKUP = 'Plan Backup'
    SCARCITY = 'Scarcity Pick'
    VALUE = 'Value Pick'
    FALLBACK = 'Fallback'


@dataclass(frozen=True)
class Recommendation:
    player: Player
    strategy: Strategy
    confidence: int
    reason: str

    def to_dict(self) -> dict:
        return {
            'player': self.player.to_dict(),
            'strategy': self.strategy.value,
            'confidence': self.confidence,
            'reason': self.reason,
        }


@dataclass
class RecommendationSet:
    """Ranked recommendations plus the flags describing their inputs."""

    recommendations: List[Recommendation] = field(default_factory=list)
    current_round: int = 1
    overall_pick: int = 1
    using_demo_data: bool = False
    roster_is_estimated: bool = False
    turn_is_estimated: bool = False

    def __len__(self) -> int:
        return len(self.recommendations)

    def __iter__(self):
        return iter(self.recommendations)

    @property
    def player_ids(self) -> List[str]:
        return [r.player.player_id for r in self.recommendations]

    def to_dict(self) -> dict:
        return {
            'recommendations': [r.to_dict() for r in self.recommendations],
            'current_round': self.current_round,
            'overall_pick': self.overall_pick,
            'using_demo_data': self.using_demo_data,
            'roster_is_estimated': self.roster_is_estimated,
            'turn_is_estimated': self.turn_is_estimated,
        }


def position_cap(position: str, current_round: int) -> Optional[int]:
    """
    Maximum roster count at which a position may still be recommended.

    Returns:
        0 when the position is excluded this round, None when uncapped
    """
    if position == 'K':
        return 0 if current_round < config.KICKER_MIN_ROUND else 1
    if position == 'DEF':
        return 0 if current_round < config.DEFENSE_MIN_ROUND else 1
    if position in ('QB', 'TE'):
        for before_round, cap in config.QB_TE_CAPS:
            if before_round is None or current_round < before_round:
                return cap
    return None


def allowed_positions(composition: RosterComposition, current_round: int) -> List[str]:
    """Positions the roster still needs at this round."""
    allowed = []
    for position in config.POSITIONS:
        cap = position_cap(position, current_round)
        if cap is None or composition.count(position) < cap:
            allowed.append(position)
    return allowed


def _confidence(base: int, player: Player) -> int:
    value = base - injury_penalty(player.injury_status)
    return max(config.MIN_CONFIDENCE, min(config.MAX_CONFIDENCE, value))


def generate_recommendations(
    catalog: PlayerCatalog,
    state_manager: DraftStateManager,
    plan: Optional[DraftPlan] = None,
    turn_is_estimated: bool = False
) -> RecommendationSet:
    """
    Produce up to three recommendations for the current pick.

    Strategies are tried in order: plan target, plan backup (only when no
    target survives), scarcity pick, value pick, then ADP fallback until
    the list is full. A player appears at most once.

    Args:
        catalog: Player catalog (possibly the demo catalog)
        state_manager: Pick history and derived scarcity/roster analytics
        plan: The tracked participant's plan, if any
        turn_is_estimated: Passed through to the result flags

    Returns:
        RecommendationSet ordered by strategy priority
    """
    drafted = state_manager.drafted_ids
    current_round = state_manager.current_round()
    overall = state_manager.overall_pick()
    composition = state_manager.roster_composition()
    allowed = allowed_positions(composition, current_round)

    pool = catalog.available(drafted, current_round=current_round, positions=allowed)

    recommendations: List[Recommendation] = []
    chosen = set()

    def add(player: Player, strategy: Strategy, base: int, reason: str) -> None:
        if len(recommendations) >= config.MAX_RECOMMENDATIONS or player.player_id in chosen:
            return
        chosen.add(player.player_id)
        recommendations.append(Recommendation(
            player=player,
            strategy=strategy,
            confidence=_confidence(base, player),
            reason=reason,
        ))

    def eligible(player: Player) -> bool:
        return (
            player.player_id not in drafted
            and player.player_id not in chosen
            and player.position.value in allowed
        )

    # 1-2. Plan target, else plan backup
    plan_round = plan.get(current_round) if plan is not None else None
    if plan_round is not None:
        targets = [p for p in plan_round.targets if eligible(p)]
        if targets:
            add(targets[0], Strategy.PLAN_TARGET, config.STRATEGY_CONFIDENCE['plan_target'],
                f"Round {current_round} plan target")
        else:
            backups = [p for p in plan_round.backups if eligible(p)]
            if backups:
                add(backups[0], Strategy.PLAN_BACKUP, config.STRATEGY_CONFIDENCE['plan_backup'],
                    f"Round {current_round} plan backup; all targets gone")

    # 3. Scarcity: worst allowed position first
    scarce = sorted(
        (
            (state_manager.scarcity(position), position) for position in allowed
            if state_manager.scarcity(position).severity >= ScarcityLevel.SCARCE.severity
        ),
        key=lambda item: -item[0].severity
    )
    for level, position in scarce:
        candidate = next(
            (p for p in pool if p.position.value == position and eligible(p)), None
        )
        if candidate is not None:
            key = 'scarcity_critical' if level == ScarcityLevel.CRITICAL else 'scarcity_scarce'
            add(candidate, Strategy.SCARCITY, config.STRATEGY_CONFIDENCE[key],
                f"{position} is {level.value.lower()}")
            break

    # 4. Value: best faller
    faller = next(
        (p for p in pool if eligible(p) and p.adp < overall - config.FALLER_MARGIN), None
    )
    if faller is not None:
        add(faller, Strategy.VALUE, config.STRATEGY_CONFIDENCE['value'],
            f"ADP {faller.adp:.1f} at pick {overall}: falling {overall - faller.adp:.0f} spots")

    # 5. Fallback by ADP
    for player in pool:
        if len(recommendations) >= config.MAX_RECOMMENDATIONS:
            break
        if eligible(player):
            add(player, Strategy.FALLBACK, config.STRATEGY_CONFIDENCE['fallback'],
                f"Best available by ADP ({player.adp:.1f})")

    # Drafted players must never be surfaced
    clean = []
    for recommendation in recommendations:
        if recommendation.player.player_id in drafted:
            error = StaleDataInconsistency(recommendation.player.player_id, recommendation.player.name)
            logger.warning(str(error))
            continue
        clean.append(recommendation)

    result = RecommendationSet(
        recommendations=clean,
        current_round=current_round,
        overall_pick=overall,
        using_demo_data=catalog.is_demo,
        roster_is_estimated=composition.is_estimated,
        turn_is_estimated=turn_is_estimated,
    )

    logger.info(
        f"Recommendations for pick {overall} (round {current_round}): "
        + ", ".join(f"{r.player.name} [{r.strategy.value} {r.confidence}]" for r in clean)
    )
    return result


class PanicMode:
    """Idle/Active state machine around recommendation generation."""

    def __init__(self):
        self.active = False
        self.last_result: Optional[RecommendationSet] = None

    def enter(self, produce: Callable[[], RecommendationSet]) -> Optional[RecommendationSet]:
        """
        Enter panic mode and produce recommendations.

        Returns:
            The recommendations, or None if panic mode is already active
        """
        if self.active:
            logger.info("Panic mode already active; ignoring re-entry")
            return None

        self.active = True
        try:
            self.last_result = produce()
        except Exception:
            self.active = False
            raise

        logger.info("Panic mode entered")
        return self.last_result

    def exit(self) -> None:
        if self.active:
            logger.info("Panic mode exited")
        self.active = False


# ----- Pick analysis -----

PICK_TIPS = {
    'Reach': [
        "A reach can work for a player you believe in, but weigh who else was still on the board.",
        "Early rounds reward safe floors more than upside.",
        "If the roster is built around this player, the extra cost may be worth it.",
    ],
    'Great Value': [
        "Players falling past ADP are how leagues are won.",
        "When a player falls, ask why: injury, age, or just draft flow?",
        "Banked value early leaves room for riskier picks later.",
    ],
    'Good Pick': [
        "A consensus pick that fills a need without reaching.",
        "Safe early picks give the roster a strong base.",
        "This pick fits most draft strategies.",
    ],
}


@dataclass(frozen=True)
class PickAnalysis:
    """Grade for one processed pick."""

    pick_no: int
    player_id: str
    player_name: str
    position: str
    adp: float
    grade: str
    value: float            # pick number minus ADP; positive means the player fell
    confidence: int
    scarcity: Optional[str] = None  # position's level when the pick was made
    notes: List[str] = field(default_factory=list)
    tip: str = ''

    def to_dict(self) -> Dict:
        return {
            'pick_no': self.pick_no,
            'player_id': self.player_id,
            'player_name': self.player_name,
            'position': self.position,
            'adp': self.adp,
            'grade': self.grade,
            'value': self.value,
            'confidence': self.confidence,
            'scarcity': self.scarcity,
            'notes': list(self.notes),
            'tip': self.tip,
        }


def analyze_pick(pick: Pick, player: Player, scarcity: Optional[ScarcityLevel] = None) -> PickAnalysis:
    """
    Grade a pick against the player's ADP.

    Picks more than PICK_GRADE_WINDOW before ADP are reaches, more than the
    window after are great value; everything else is a good pick. Confidence
    starts at PICK_CONFIDENCE_BASE and is adjusted for the grade, the
    position's scarcity, elite tier and high risk.

    Args:
        pick: The processed pick
        player: Catalog entry for the picked player
        scarcity: Position scarcity before this pick was counted
    """
    adjust = config.PICK_CONFIDENCE_ADJUSTMENTS
    value = pick.pick_no - player.adp
    position = player.position.value
    confidence = config.PICK_CONFIDENCE_BASE
    notes = []

    if value < -config.PICK_GRADE_WINDOW:
        grade = 'Reach'
        notes.append(f"Drafted {-value - config.PICK_GRADE_WINDOW:.0f} picks early")
        confidence += adjust['reach']
    elif value > config.PICK_GRADE_WINDOW:
        grade = 'Great Value'
        notes.append(f"Fell {value - config.PICK_GRADE_WINDOW:.0f} picks past ADP")
        confidence += adjust['great_value']
    else:
        grade = 'Good Pick'
        notes.append("Drafted within expected range")

    if scarcity == ScarcityLevel.CRITICAL:
        notes.append(f"{position} is running thin")
        confidence += adjust['scarcity_critical']
    elif scarcity == ScarcityLevel.ABUNDANT:
        notes.append(f"Many {position}s still available")
        confidence += adjust['scarcity_abundant']

    if player.tier == Tier.ELITE:
        notes.append("Elite-tier talent")
        confidence += adjust['elite']
    if player.risk_level == RiskLevel.HIGH:
        notes.append("Higher injury or performance risk")
        confidence += adjust['high_risk']
    if player.rookie:
        notes.append("Rookie")

    tips = PICK_TIPS[grade]

    return PickAnalysis(
        pick_no=pick.pick_no,
        player_id=player.player_id,
        player_name=player.name,
        position=position,
        adp=player.adp,
        grade=grade,
        value=round(value, 1),
        confidence=max(config.MIN_CONFIDENCE, min(config.MAX_CONFIDENCE, confidence)),
        scarcity=scarcity.value if scarcity is not None else None,
        notes=notes,
        tip=tips[pick.pick_no % len(tips)],
    )
