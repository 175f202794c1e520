"""
Normalize provider position codes and infer positions from player names.
"""

import logging
import re
from enum import Enum
from typing import Dict, Optional

from fuzzywuzzy import fuzz, process

logger = logging.getLogger(__name__)


class Position(str, Enum):
    """Fantasy football positions plus a sentinel for unknown codes."""

    QB = 'QB'
    RB = 'RB'
    WR = 'WR'
    TE = 'TE'
    K = 'K'
    DEF = 'DEF'
    UNKNOWN = 'UNKNOWN'


# Provider-specific aliases
POSITION_ALIASES = {
    'QB': Position.QB,
    'RB': Position.RB,
    'HB': Position.RB,
    'FB': Position.RB,
    'WR': Position.WR,
    'TE': Position.TE,
    'K': Position.K,
    'PK': Position.K,
    'DEF': Position.DEF,
    'DST': Position.DEF,
    'D/ST': Position.DEF,
    'D': Position.DEF,
}

# Hand-curated fallback for picks whose position the provider omitted.
NAME_POSITIONS: Dict[str, Position] = {
    'Christian McCaffrey': Position.RB,
    'Bijan Robinson': Position.RB,
    'Breece Hall': Position.RB,
    'Jahmyr Gibbs': Position.RB,
    'Saquon Barkley': Position.RB,
    'Jonathan Taylor': Position.RB,
    'Derrick Henry': Position.RB,
    'Josh Jacobs': Position.RB,
    "De'Von Achane": Position.RB,
    'Kyren Williams': Position.RB,
    'CeeDee Lamb': Position.WR,
    "Ja'Marr Chase": Position.WR,
    'Justin Jefferson': Position.WR,
    'Tyreek Hill': Position.WR,
    'Amon-Ra St. Brown': Position.WR,
    'A.J. Brown': Position.WR,
    'Puka Nacua': Position.WR,
    'Garrett Wilson': Position.WR,
    'Nico Collins': Position.WR,
    'Malik Nabers': Position.WR,
    'Travis Kelce': Position.TE,
    'Sam LaPorta': Position.TE,
    'Mark Andrews': Position.TE,
    'Trey McBride': Position.TE,
    'George Kittle': Position.TE,
    'Brock Bowers': Position.TE,
    'Josh Allen': Position.QB,
    'Jalen Hurts': Position.QB,
    'Lamar Jackson': Position.QB,
    'Patrick Mahomes': Position.QB,
    'Joe Burrow': Position.QB,
    'C.J. Stroud': Position.QB,
    'Justin Tucker': Position.K,
    'Harrison Butker': Position.K,
    'Brandon Aubrey': Position.K,
}

# Minimum fuzzy score to accept a name-table match
NAME_MATCH_THRESHOLD = 90

_DEFENSE_NAME = re.compile(r'\b(defense|d/st|dst)\b', re.IGNORECASE)


def normalize_position(raw) -> Position:
    """
    Canonicalize a provider position code.

    Args:
        raw: Position code as reported by the provider (e.g. 'DST', 'wr')

    Returns:
        Position enum member; Position.UNKNOWN for codes outside the taxonomy
    """
    if raw is None:
        return Position.UNKNOWN

    if isinstance(raw, Position):
        return raw

    code = str(raw).strip().upper()
    return POSITION_ALIASES.get(code, Position.UNKNOWN)


def infer_position_from_name(name: Optional[str]) -> Optional[Position]:
    """
    Infer a position from a player's name via the curated name table.

    Lossy fallback used only when neither the catalog nor the pick
    metadata carries a position.

    Args:
        name: Player full name

    Returns:
        Position, or None if the name cannot be matched confidently
    """
    if not name or not name.strip():
        return None

    if _DEFENSE_NAME.search(name):
        return Position.DEF

    if name in NAME_POSITIONS:
        return NAME_POSITIONS[name]

    match_result = process.extractOne(
        name,
        list(NAME_POSITIONS.keys()),
        scorer=fuzz.token_sort_ratio
    )

    if match_result is None:
        return None

    matched_name, score = match_result[0], match_result[1]

    if score < NAME_MATCH_THRESHOLD:
        logger.debug(f"No confident name match for '{name}' (best '{matched_name}' {score}%)")
        return None

    logger.debug(f"Inferred position for '{name}' via '{matched_name}' ({score}%)")
    return NAME_POSITIONS[matched_name]
