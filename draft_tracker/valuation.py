"""
Player valuation: ADP, tier, risk, and draftability.

ADP is derived from the provider's search rank. The reference behavior
jittered each band randomly; here the band centre is used so valuations are
reproducible, and callers wanting variety pass a seeded random.Random.
"""

import logging
import random
from enum import Enum
from typing import Optional

import numpy as np

from . import config
from .normalizer import normalize_position

logger = logging.getLogger(__name__)


class ScoringFormat(str, Enum):
    """League scoring format."""

    FULL_PPR = 'full_ppr'
    HALF_PPR = 'half_ppr'
    STANDARD = 'standard'


class Tier(str, Enum):
    ELITE = 'Elite'
    HIGH = 'High'
    MID = 'Mid'
    DEEP = 'Deep'
    FLYER = 'Flyer'


class RiskLevel(str, Enum):
    LOW = 'Low'
    MEDIUM = 'Medium'
    HIGH = 'High'


_SCORING_ALIASES = {
    'ppr': ScoringFormat.FULL_PPR,
    'full_ppr': ScoringFormat.FULL_PPR,
    'full': ScoringFormat.FULL_PPR,
    'half_ppr': ScoringFormat.HALF_PPR,
    'half': ScoringFormat.HALF_PPR,
    '0.5_ppr': ScoringFormat.HALF_PPR,
    'standard': ScoringFormat.STANDARD,
    'std': ScoringFormat.STANDARD,
    'non_ppr': ScoringFormat.STANDARD,
}

_BAND_UPPERS = np.array([upper for upper, _ in config.ADP_SPREAD_BANDS])
_BAND_SPREADS = np.array([spread for _, spread in config.ADP_SPREAD_BANDS])


def parse_scoring_format(value) -> Optional[ScoringFormat]:
    """
    Parse a scoring format label such as 'PPR', 'Half PPR' or 'standard'.

    Returns:
        ScoringFormat, or None when value is empty

    Raises:
        ValueError: If the label is not a known scoring format
    """
    if value is None:
        return None
    if isinstance(value, ScoringFormat):
        return value

    key = str(value).strip().lower().replace('-', '_').replace(' ', '_')
    if not key:
        return None

    if key not in _SCORING_ALIASES:
        raise ValueError(f"Unknown scoring format: {value!r}")
    return _SCORING_ALIASES[key]


def scoring_format_from_reception_points(rec_points) -> Optional[ScoringFormat]:
    """Map a league's points-per-reception setting to a scoring format."""
    if rec_points is None:
        return None
    if rec_points >= 1:
        return ScoringFormat.FULL_PPR
    if rec_points >= 0.5:
        return ScoringFormat.HALF_PPR
    return ScoringFormat.STANDARD


def adp_spread(search_rank: int) -> float:
    """Spread (in picks) of the ADP band containing search_rank."""
    idx = int(np.searchsorted(_BAND_UPPERS, search_rank, side='left'))
    if idx >= len(_BAND_SPREADS):
        return float(_BAND_SPREADS[-1])
    return float(_BAND_SPREADS[idx])


def compute_base_adp(
    search_rank: Optional[int],
    rng: Optional[random.Random] = None
) -> float:
    """
    Unadjusted ADP from a search rank.

    Args:
        search_rank: Provider search rank (1 = first overall)
        rng: Optional seeded RNG; jitters within the band spread when given

    Returns:
        ADP as a float; UNDRAFTABLE_ADP for missing or very deep ranks
    """
    if search_rank is None or search_rank <= 0 or search_rank > config.UNDRAFTABLE_RANK:
        return config.UNDRAFTABLE_ADP

    adp = float(search_rank)
    if rng is not None:
        spread = adp_spread(search_rank)
        adp += rng.uniform(-spread, spread)

    return max(1.0, adp)


def ppr_boost(adp: float, position, scoring_format: ScoringFormat) -> float:
    """Picks an ADP moves earlier because of reception scoring."""
    factor = config.PPR_IMPACT[ScoringFormat(scoring_format).value]
    if factor == 0:
        return 0.0

    bands = config.PPR_BOOST.get(normalize_position(position).value)
    if not bands:
        return 0.0

    for max_adp, boost in bands:
        if max_adp is None or adp <= max_adp:
            return boost * factor
    return 0.0


def adjust_adp_for_format(adp: float, position, scoring_format: ScoringFormat) -> float:
    """Apply the scoring-format adjustment to an unadjusted ADP."""
    if adp >= config.UNDRAFTABLE_ADP:
        return adp
    return max(1.0, adp - ppr_boost(adp, position, scoring_format))


def compute_adp(
    search_rank: Optional[int],
    position,
    scoring_format: ScoringFormat,
    rng: Optional[random.Random] = None
) -> float:
    """Format-adjusted ADP for a player."""
    base = compute_base_adp(search_rank, rng=rng)
    return adjust_adp_for_format(base, position, scoring_format)


def tier_for_rank(adjusted_rank: float) -> Tier:
    for max_rank, tier in config.TIER_THRESHOLDS:
        if adjusted_rank <= max_rank:
            return Tier(tier)
    return Tier(config.LOWEST_TIER)


def compute_tier(
    search_rank: Optional[int],
    position,
    scoring_format: ScoringFormat,
    rng: Optional[random.Random] = None
) -> Tier:
    """Tier from the same rank-adjustment pipeline as compute_adp."""
    return tier_for_rank(compute_adp(search_rank, position, scoring_format, rng=rng))


def compute_risk(
    age: Optional[int],
    years_exp: Optional[int],
    injury_status: Optional[str]
) -> RiskLevel:
    """
    Additive risk score bucketed into Low/Medium/High.

    age > 30: +2, fewer than 2 seasons: +1, injury designation: +3
    """
    risk = 0
    if age is not None and age > config.RISK_AGE_THRESHOLD:
        risk += 2
    if years_exp is not None and years_exp < config.RISK_EXPERIENCE_THRESHOLD:
        risk += 1
    if injury_status:
        risk += 3

    if risk >= config.RISK_HIGH_MIN:
        return RiskLevel.HIGH
    if risk >= config.RISK_MEDIUM_MIN:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def is_draftable(player, current_round: int) -> bool:
    """
    Whether a player can realistically be drafted in current_round.

    Excludes inactive and teamless players, players on IR/PUP/suspended/COVID
    lists, Doubtful players before round 9, deep ADPs (>300) before round 13,
    and anything with ADP > 400 or no ADP at all.
    """
    if not player.active:
        return False

    if not player.team:
        return False

    if player.adp is None or player.adp > config.MAX_DRAFTABLE_ADP:
        return False

    status = (player.injury_status or '').strip().upper()
    if status in config.UNAVAILABLE_STATUSES:
        return False

    if status == 'DOUBTFUL' and current_round < config.DOUBTFUL_MIN_ROUND:
        return False

    if player.adp > config.DEEP_ADP_THRESHOLD and current_round < config.DEEP_ADP_MIN_ROUND:
        return False

    return True


def injury_penalty(injury_status: Optional[str]) -> int:
    """Confidence points removed for an injury designation."""
    if not injury_status:
        return 0
    return config.INJURY_PENALTY.get(injury_status.strip().upper(), config.DEFAULT_INJURY_PENALTY)
