"""
Configuration constants for the live Sleeper draft tracker.
"""

# League Settings
DEFAULT_NUM_TEAMS = 12
DEFAULT_ROUNDS = 15
DEFAULT_SCORING_FORMAT = 'half_ppr'

# Fantasy positions (fixed taxonomy)
POSITIONS = ['QB', 'RB', 'WR', 'TE', 'K', 'DEF']

# "Draftable quality" players per position across the league.
# Not literal starting-lineup slots.
STARTERS_ESTIMATE = {
    'QB': 15,    # ~12 + backups
    'RB': 30,    # ~24 + handcuffs
    'WR': 36,    # ~30 + depth
    'TE': 15,    # ~12 + backups
    'K': 12,     # One per team
    'DEF': 12,   # One per team
}
DEFAULT_STARTERS_ESTIMATE = 12

# Scarcity thresholds on remaining quality players
SCARCITY_CRITICAL_MAX = 3
SCARCITY_SCARCE_MAX = 8
SCARCITY_ABUNDANT_MIN = 20

# ===== VALUATION =====

# ADP spread bands: (max search rank, spread in picks)
# Tight at the top of the board, widest beyond rank 200.
ADP_SPREAD_BANDS = [
    (12, 0.5),
    (36, 1.5),
    (72, 3.0),
    (120, 5.0),
    (200, 8.0),
    (500, 12.0),
]
UNDRAFTABLE_RANK = 500
UNDRAFTABLE_ADP = 999.0

# Reception impact per scoring format
PPR_IMPACT = {
    'full_ppr': 1.0,
    'half_ppr': 0.5,
    'standard': 0.0,
}

# PPR ADP boost (picks moved earlier) by position: (max adp, boost)
PPR_BOOST = {
    'WR': [(50, 6), (100, 4), (None, 2)],
    'RB': [(50, 4), (100, 3), (None, 1)],
    'TE': [(50, 4), (100, 2), (None, 1)],
}

# Tier cut-offs on adjusted rank
TIER_THRESHOLDS = [
    (36, 'Elite'),
    (72, 'High'),
    (120, 'Mid'),
    (180, 'Deep'),
]
LOWEST_TIER = 'Flyer'

# Risk scoring
RISK_AGE_THRESHOLD = 30
RISK_EXPERIENCE_THRESHOLD = 2
RISK_HIGH_MIN = 4
RISK_MEDIUM_MIN = 2

# Draftability
UNAVAILABLE_STATUSES = ['IR', 'PUP', 'SUS', 'COV', 'NA']
DOUBTFUL_MIN_ROUND = 9
DEEP_ADP_THRESHOLD = 300
DEEP_ADP_MIN_ROUND = 13
MAX_DRAFTABLE_ADP = 400

# ===== RECOMMENDATIONS =====

MAX_RECOMMENDATIONS = 3
FALLER_MARGIN = 6
MIN_CONFIDENCE = 10
MAX_CONFIDENCE = 95

STRATEGY_CONFIDENCE = {
    'plan_target': 95,
    'plan_backup': 92,
    'scarcity_critical': 88,
    'scarcity_scarce': 82,
    'value': 85,
    'fallback': 75,
}

INJURY_PENALTY = {
    'QUESTIONABLE': 8,
    'DOUBTFUL': 12,
    'OUT': 12,
}
DEFAULT_INJURY_PENALTY = 10

# Earliest round at which kickers / defenses are recommended
KICKER_MIN_ROUND = 13
DEFENSE_MIN_ROUND = 12

# QB/TE roster caps: (rounds before, cap); cap applies once roster holds that many
QB_TE_CAPS = [(8, 1), (12, 2), (None, 3)]

# Pick grading window around ADP
PICK_GRADE_WINDOW = 12

# Pick grade confidence: base plus adjustments, clamped to MIN/MAX_CONFIDENCE
PICK_CONFIDENCE_BASE = 75
PICK_CONFIDENCE_ADJUSTMENTS = {
    'reach': -15,
    'great_value': 20,
    'scarcity_critical': 10,
    'scarcity_abundant': -5,
    'elite': 15,
    'high_risk': -10,
}

# ===== DRAFT PLAN =====

PLAN_ROUNDS = 15
PLAN_SLOTS_PER_LIST = 4

# ADP window half-width by round band: (last round of band, width)
PLAN_WINDOWS = [(7, 15), (12, 25), (None, 50)]

# Default ADP bands for positions with sparse ADP
PLAN_DEFAULT_BANDS = {
    'K': (180, 200),
    'DEF': (190, 210),
}

PLAN_POSITION_CAPS = {
    'QB': 2,
    'TE': 2,
    'K': 1,
    'DEF': 1,
    'RB': 6,
    'WR': 6,
}

PLAN_QB_PROMOTE_ROUND = 8
PLAN_TE_PROMOTE_ROUND = 9

# Hand-authored position priorities per round
PLAN_ROUND_PRIORITIES = {
    1: ['RB', 'WR'],
    2: ['WR', 'RB'],
    3: ['RB', 'WR', 'TE'],
    4: ['WR', 'RB', 'TE'],
    5: ['QB', 'TE', 'WR', 'RB'],
    6: ['RB', 'WR', 'QB', 'TE'],
    7: ['WR', 'RB', 'QB', 'TE'],
    8: ['QB', 'TE', 'RB', 'WR'],
    9: ['RB', 'WR', 'TE', 'QB'],
    10: ['WR', 'RB', 'QB', 'TE'],
    11: ['RB', 'WR', 'TE'],
    12: ['WR', 'RB', 'QB'],
    13: ['DEF', 'K', 'RB', 'WR'],
    14: ['K', 'DEF', 'WR', 'RB'],
    15: ['RB', 'WR', 'K', 'DEF'],
}

# ===== LIVE DRAFT CONFIGURATION =====

# Sleeper API
SLEEPER_BASE_URL = "https://api.sleeper.app/v1"

# Polling
POLL_INTERVAL_SECONDS = 3  # seconds between Sleeper polls
POLL_TIMEOUT_SECONDS = 10  # per-request timeout for background polls
REFRESH_TIMEOUT_SECONDS = 5  # hard timeout for manual refresh / panic entry
CLOCK_INTERVAL_SECONDS = 1

# Pick clock
DEFAULT_PICK_CLOCK_SECONDS = 90
CLOCK_THRESHOLDS = [30, 15]
CLOCK_FINAL_SECONDS = 5

# Trending players
TRENDING_LOOKBACK_HOURS = 24
TRENDING_LIMIT = 25

# Storage
CACHE_DIR = 'data/cache'
PLAYER_CACHE_HOURS = 24
DRAFT_EVENTS_DIR = 'data/draft_events'
DRAFT_STATE_DIR = 'data/draft_state'
CONFIG_FILE = 'data/draft_config.json'

# Logging
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# ===== DRAFT SESSION API CONFIGURATION =====

API_HOST = '127.0.0.1'
API_PORT = 8000

# Environment variable overrides for DraftConfig
ENV_VARS = {
    'SLEEPER_LEAGUE_ID': 'league_id',
    'SLEEPER_DRAFT_ID': 'draft_id',
    'SLEEPER_USERNAME': 'tracked_username',
    'FANTASY_SCORING_FORMAT': 'scoring_format',
    'FANTASY_DRAFT_POSITION': 'draft_position',
    'FANTASY_LEAGUE_SIZE': 'team_count',
}
