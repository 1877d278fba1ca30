"""Configuration settings for the QB composite scoring engine."""

# -----------------------------------------------------------------------------
# SEASON PARAMETERS
# -----------------------------------------------------------------------------
# First season played on a 17-game schedule; earlier modern seasons had 16.
SEVENTEEN_GAME_SEASON_START = 2021
REGULAR_SEASON_GAMES = 17
LEGACY_REGULAR_SEASON_GAMES = 16
# Credit for one playoff start when playoffs are included in availability.
PLAYOFF_GAME_CREDIT = 1

# Year weights by distance from the target season (0 = target season).
# Performance metrics emphasize the most recent season.
YEAR_WEIGHTS = {
    0: 0.75,
    1: 0.20,
    2: 0.05,
}
SINGLE_SEASON_YEAR_WEIGHTS = {0: 1.0}

# -----------------------------------------------------------------------------
# ELIGIBILITY
# -----------------------------------------------------------------------------
# Games started needed in single-season mode.
MIN_GAMES_STARTED_COMPLETED = 9    # separates starters from backups
MIN_GAMES_STARTED_IN_PROGRESS = 1  # early-season samples are small
# Multi-year mode: career starts plus a season in the recency window.
MIN_CAREER_GAMES_STARTED = 15
RECENCY_WINDOW_YEARS = 2

# -----------------------------------------------------------------------------
# SAMPLE SIZE THRESHOLDS
# -----------------------------------------------------------------------------
# Clutch split population means only count players with this many attempts.
POPULATION_MIN_ATTEMPTS = 10
# Stats component: attempts needed for a season to enter z-scoring.
STATS_MIN_ATTEMPTS_TARGET = 150
STATS_MIN_ATTEMPTS_PRIOR = 200
STATS_MIN_ATTEMPTS_IN_PROGRESS = 15
# Team component: starts needed for a season's record to count.
TEAM_MIN_GAMES_STARTED_MULTI_YEAR = 4
TEAM_MIN_GAMES_STARTED_SINGLE = 1
# Durability consistency: a "healthy starter" season.
CONSISTENCY_MIN_GAMES_STARTED = 8

# -----------------------------------------------------------------------------
# METRIC CONSTANTS
# -----------------------------------------------------------------------------
# ANY/A = (yds + 20*TD - 45*INT - sack yds) / (att + sacks)
ANY_A_TD_BONUS = 20
ANY_A_INT_PENALTY = 45

# Z-scores are capped at +/- this many standard deviations.
Z_SCORE_CAP = 3.0

# -----------------------------------------------------------------------------
# CLUTCH SCORING
# -----------------------------------------------------------------------------
# Per-game rates that earn a full clutch leaf score.
ELITE_GWD_PER_GAME = 1 / 3
ELITE_4QC_PER_GAME = 0.25

# Round multipliers for playoff clutch drives.
PLAYOFF_CLUTCH_MULTIPLIERS = {
    "wild_card": 1.06,
    "divisional": 1.08,
    "conference": 1.12,
    "super_bowl": 1.22,
}
# Playoff bonus leaf: points out of PLAYOFF_BONUS_MAX.
PLAYOFF_BONUS_MAX = 20.0
PLAYOFF_BONUS_WIN_RATE_POINTS = 12.0
PLAYOFF_BONUS_POINTS_PER_GAME = 2.0

# -----------------------------------------------------------------------------
# TEAM SCORING
# -----------------------------------------------------------------------------
# Career playoff achievement points (capped at PLAYOFF_ACHIEVEMENT_CAP).
PLAYOFF_ACHIEVEMENT_POINTS = {
    "super_bowl_win": 5.0,
    "super_bowl_appearance": 3.0,
    "conference_win": 2.0,
    "conference_appearance": 1.0,
    "per_game": 0.5,
}
PLAYOFF_ACHIEVEMENT_CAP = 15.0

# -----------------------------------------------------------------------------
# WEIGHTS
# -----------------------------------------------------------------------------
# Default weight tree, as edited in the UI: every component switched on.
# Sibling values sum to 100. Also supplies the sub-weights for any branch
# given as a bare number.
# Interior nodes carry their own share under the "weight" key.
DEFAULT_WEIGHTS = {
    "team": {
        "weight": 25,
        "regular_season": 65,
        "offensive_output": 15,
        "playoff": 20,
    },
    "stats": {
        "weight": 35,
        "efficiency": {
            "weight": 45,
            "any_a": 45,
            "td_pct": 35,
            "completion_pct": 20,
        },
        "protection": {
            "weight": 30,
            "sack_pct": 25,
            "turnover_rate": 75,
        },
        "volume": {
            "weight": 25,
            "pass_yards": 40,
            "pass_tds": 30,
            "rush_yards": 10,
            "rush_tds": 15,
            "total_attempts": 5,
        },
    },
    "clutch": {
        "weight": 15,
        "game_winning_drives": 25,
        "fourth_quarter_comebacks": 25,
        "situational": {
            "weight": 25,
            "third_down": 20,
            "fourth_down": 15,
            "red_zone": 15,
            "ultra_high_pressure": 20,
            "score_differential": 10,
            "november": 10,
            "december_january": 10,
        },
        "playoff_bonus": 25,
    },
    "durability": {
        "weight": 15,
        "availability": 50,
        "consistency": 50,
    },
    "support": {
        "weight": 10,
        "offensive_line": 34,
        "weapons": 33,
        "defense": 33,
    },
}
# Named weight presets ("scoring philosophies"). Branches given as a bare
# number keep the DEFAULT_WEIGHTS sub-weights.
WEIGHT_PRESETS = {
    "default": {
        "team": 0,
        "stats": {
            "weight": 100,
            "efficiency": {"weight": 45, "any_a": 45, "td_pct": 35, "completion_pct": 20},
            "protection": {"weight": 30, "sack_pct": 25, "turnover_rate": 75},
            "volume": {"weight": 25, "pass_yards": 40, "pass_tds": 30, "rush_yards": 10,
                       "rush_tds": 15, "total_attempts": 5},
        },
        "clutch": 0,
        "durability": 0,
        "support": 0,
    },
    "winner": {
        "team": {"weight": 70, "regular_season": 75, "offensive_output": 25, "playoff": 0},
        "stats": {
            "weight": 30,
            "efficiency": {"weight": 45, "any_a": 50, "td_pct": 35, "completion_pct": 15},
            "protection": {"weight": 30, "sack_pct": 35, "turnover_rate": 65},
            "volume": {"weight": 25, "pass_yards": 25, "pass_tds": 35, "rush_yards": 15,
                       "rush_tds": 20, "total_attempts": 5},
        },
        "clutch": {"weight": 0, "game_winning_drives": 30, "fourth_quarter_comebacks": 20,
                   "situational": 20, "playoff_bonus": 30},
        "durability": {"weight": 0, "availability": 80, "consistency": 20},
        "support": {"weight": 0, "offensive_line": 34, "weapons": 33, "defense": 33},
    },
    "volume_hero": {
        "team": 0,
        "stats": {
            "weight": 100,
            "efficiency": {"weight": 10, "any_a": 30, "td_pct": 40, "completion_pct": 30},
            "protection": {"weight": 5, "sack_pct": 20, "turnover_rate": 80},
            "volume": {"weight": 85, "pass_yards": 35, "pass_tds": 40, "rush_yards": 15,
                       "rush_tds": 5, "total_attempts": 5},
        },
        "clutch": 0,
        "durability": 0,
        "support": 0,
    },
    "efficiency_purist": {
        "team": 0,
        "stats": {
            "weight": 100,
            "efficiency": {"weight": 70, "any_a": 60, "td_pct": 30, "completion_pct": 10},
            "protection": {"weight": 25, "sack_pct": 20, "turnover_rate": 80},
            "volume": {"weight": 5, "pass_yards": 20, "pass_tds": 30, "rush_yards": 10,
                       "rush_tds": 10, "total_attempts": 30},
        },
        "clutch": 0,
        "durability": 0,
        "support": 0,
    },
    "balanced_attack": {
        "team": 0,
        "stats": {
            "weight": 100,
            "efficiency": {"weight": 40, "any_a": 45, "td_pct": 35, "completion_pct": 20},
            "protection": {"weight": 30, "sack_pct": 40, "turnover_rate": 60},
            "volume": {"weight": 30, "pass_yards": 30, "pass_tds": 35, "rush_yards": 15,
                       "rush_tds": 15, "total_attempts": 5},
        },
        "clutch": 0,
        "durability": 0,
        "support": 0,
    },
    "scotts_preset": {
        "team": 33,
        "stats": {
            "weight": 67,
            "efficiency": {"weight": 45, "any_a": 45, "td_pct": 40, "completion_pct": 15},
            "protection": {"weight": 10, "sack_pct": 25, "turnover_rate": 75},
            "volume": {"weight": 45, "pass_yards": 35, "pass_tds": 35, "rush_yards": 10,
                       "rush_tds": 15, "total_attempts": 5},
        },
        "clutch": 0,
        "durability": 0,
        "support": 0,
    },
}

PRESET_DESCRIPTIONS = {
    "default": "Pure QB quality: statistical evaluation isolating individual quarterback talent",
    "winner": "Winning is everything: results-focused with elite QB recognition",
    "volume_hero": "Volume hero: filling up the stat sheet is everything",
    "efficiency_purist": "Efficiency purist: minimize mistakes, maximize per-play value",
    "balanced_attack": "Balanced attack: complete QB evaluation across every statistical category",
    "scotts_preset": "Scott's preset: team success and statistical performance together",
}

# Final composite scale.
SCORE_SCALE = 100.0
