"""
Leaf scorers for the composite weight tree.

Each leaf of WEIGHT_SCHEMA maps to a function of (profile, settings,
population) returning a score in [0, 1], or None when the player has no data
for it. Multi-season leaves are year-weighted: the target season counts most
and older seasons progressively less; weights are renormalized over the
seasons that actually have data.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from config.settings import (
    CONSISTENCY_MIN_GAMES_STARTED,
    ELITE_4QC_PER_GAME,
    ELITE_GWD_PER_GAME,
    LEGACY_REGULAR_SEASON_GAMES,
    PLAYOFF_ACHIEVEMENT_CAP,
    PLAYOFF_ACHIEVEMENT_POINTS,
    PLAYOFF_BONUS_MAX,
    PLAYOFF_BONUS_POINTS_PER_GAME,
    PLAYOFF_BONUS_WIN_RATE_POINTS,
    PLAYOFF_CLUTCH_MULTIPLIERS,
    PLAYOFF_GAME_CREDIT,
    REGULAR_SEASON_GAMES,
    SEVENTEEN_GAME_SEASON_START,
    SINGLE_SEASON_YEAR_WEIGHTS,
    STATS_MIN_ATTEMPTS_IN_PROGRESS,
    STATS_MIN_ATTEMPTS_PRIOR,
    STATS_MIN_ATTEMPTS_TARGET,
    TEAM_MIN_GAMES_STARTED_MULTI_YEAR,
    TEAM_MIN_GAMES_STARTED_SINGLE,
    YEAR_WEIGHTS,
)
from qb_rankings.data.profiles import PlayerSeasonProfile, PlayoffRound, PlayoffTotals, SeasonTotals
from qb_rankings.features.aggregator import AggregatedStats
from qb_rankings.features.clutch_categories import CLUTCH_CATEGORIES
from qb_rankings.features.eligibility import ScoringMode, SeasonStatus
from qb_rankings.features.population import (
    PopulationSummary,
    calculate_z_score,
    z_score_to_percentile,
)
from qb_rankings.utils.helpers import clip, safe_divide

logger = logging.getLogger(__name__)

LeafPath = Tuple[str, ...]


@dataclass(frozen=True)
class ScoringSettings:
    """Runtime options for one scoring pass."""
    season: int
    season_status: SeasonStatus = SeasonStatus.COMPLETED
    mode: ScoringMode = ScoringMode.SINGLE_SEASON
    include_playoffs: bool = True

    @property
    def year_weights(self) -> Dict[int, float]:
        """Season -> weight for the scoring window."""
        by_distance = YEAR_WEIGHTS if self.mode == ScoringMode.MULTI_YEAR else SINGLE_SEASON_YEAR_WEIGHTS
        return {self.season - distance: weight for distance, weight in by_distance.items()}

    def min_stat_attempts(self, season: int) -> int:
        """Attempts a season needs to enter stats z-scoring."""
        if season == self.season:
            if self.season_status == SeasonStatus.IN_PROGRESS:
                return STATS_MIN_ATTEMPTS_IN_PROGRESS
            return STATS_MIN_ATTEMPTS_TARGET
        return STATS_MIN_ATTEMPTS_PRIOR


@dataclass
class PopulationContext:
    """
    Roster-wide baselines, built once before any player is scored.

    ``stat_baselines`` maps season -> stat leaf -> (mean, std dev) over the
    eligible players meeting that season's attempt threshold. ``clutch``
    holds one PopulationSummary per clutch category.
    """
    player_count: int = 0
    stat_baselines: Dict[int, Dict[str, Tuple[float, float]]] = field(default_factory=dict)
    clutch: Dict[str, PopulationSummary] = field(default_factory=dict)


def year_weighted(values: Dict[int, Optional[float]], year_weights: Dict[int, float]) -> Optional[float]:
    """Weighted mean of per-season values, renormalized over seasons present."""
    total = 0.0
    weight_sum = 0.0
    for season, value in values.items():
        weight = year_weights.get(season, 0.0)
        if value is None or weight <= 0:
            continue
        total += value * weight
        weight_sum += weight
    if weight_sum == 0:
        return None
    return total / weight_sum


def _window_lines(profile: PlayerSeasonProfile, settings: ScoringSettings) -> List[SeasonTotals]:
    weights = settings.year_weights
    return [line for line in profile.seasons if weights.get(line.season, 0) > 0]


def _playoffs_for(profile: PlayerSeasonProfile, season: int,
                  settings: ScoringSettings) -> Optional[PlayoffTotals]:
    if not settings.include_playoffs:
        return None
    return profile.playoff_line(season)


# -----------------------------------------------------------------------------
# Team
# -----------------------------------------------------------------------------

def score_regular_season(profile, settings, population) -> Optional[float]:
    """Year-weighted QB win percentage over seasons with enough starts."""
    min_starts = (
        TEAM_MIN_GAMES_STARTED_MULTI_YEAR
        if settings.mode == ScoringMode.MULTI_YEAR
        else TEAM_MIN_GAMES_STARTED_SINGLE
    )
    values = {
        line.season: line.win_pct
        for line in _window_lines(profile, settings)
        if line.games_started >= min_starts and line.decisions > 0
    }
    return year_weighted(values, settings.year_weights)


def score_offensive_output(profile, settings, population) -> Optional[float]:
    values = {
        line.season: clip(line.offensive_output / 100.0)
        for line in _window_lines(profile, settings)
        if line.offensive_output is not None
    }
    return year_weighted(values, settings.year_weights)


def playoff_achievement_points(playoff: PlayoffTotals) -> float:
    """Achievement points for one postseason, before year weighting."""
    if playoff.games == 0:
        return 0.0
    points = 0.0
    if playoff.round_reached == PlayoffRound.SUPER_BOWL:
        if playoff.won_super_bowl:
            points += PLAYOFF_ACHIEVEMENT_POINTS["super_bowl_win"]
        else:
            points += PLAYOFF_ACHIEVEMENT_POINTS["super_bowl_appearance"]
        points += PLAYOFF_ACHIEVEMENT_POINTS["conference_win"]
    elif playoff.round_reached == PlayoffRound.CONFERENCE:
        points += PLAYOFF_ACHIEVEMENT_POINTS["conference_appearance"]
    points += playoff.games * PLAYOFF_ACHIEVEMENT_POINTS["per_game"]
    return points


def score_playoff(profile, settings, population) -> Optional[float]:
    """Career playoff achievement, year-weighted, capped and scaled to [0, 1]."""
    if not settings.include_playoffs:
        return None
    weights = settings.year_weights
    points = sum(
        playoff_achievement_points(playoff) * weights.get(season, 0.0)
        for season, playoff in profile.playoffs.items()
    )
    return min(points, PLAYOFF_ACHIEVEMENT_CAP) / PLAYOFF_ACHIEVEMENT_CAP


# -----------------------------------------------------------------------------
# Stats
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class StatLeaf:
    extract: Callable[[AggregatedStats], float]
    inverted: bool = False


STAT_LEAVES: Dict[str, StatLeaf] = {
    "any_a": StatLeaf(lambda s: s.any_per_attempt),
    "td_pct": StatLeaf(lambda s: s.touchdown_rate),
    "completion_pct": StatLeaf(lambda s: s.completion_rate),
    "sack_pct": StatLeaf(lambda s: s.sack_rate, inverted=True),
    "turnover_rate": StatLeaf(lambda s: s.turnover_rate, inverted=True),
    "pass_yards": StatLeaf(lambda s: s.total_yards),
    "pass_tds": StatLeaf(lambda s: s.total_touchdowns),
    "rush_yards": StatLeaf(lambda s: s.total_rush_yards),
    "rush_tds": StatLeaf(lambda s: s.total_rush_touchdowns),
    "total_attempts": StatLeaf(lambda s: s.total_attempts + s.total_rush_attempts),
}


def stat_leaf_frame(profiles: List[PlayerSeasonProfile], settings: ScoringSettings) -> pd.DataFrame:
    """
    One row per qualifying player-season in the window, one column per stat leaf.

    A season qualifies when it meets its attempt threshold.
    """
    rows = []
    for profile in profiles:
        for line in _window_lines(profile, settings):
            if line.attempts < settings.min_stat_attempts(line.season):
                continue
            stats = line.to_stats()
            row = {"player_id": profile.player_id, "season": line.season}
            for name, leaf in STAT_LEAVES.items():
                row[name] = leaf.extract(stats)
            rows.append(row)
    return pd.DataFrame(rows, columns=["player_id", "season", *STAT_LEAVES])


def stat_baselines(frame: pd.DataFrame) -> Dict[int, Dict[str, Tuple[float, float]]]:
    """Per-season (mean, population std dev) of every stat leaf."""
    if frame.empty:
        return {}
    leaves = list(STAT_LEAVES)
    grouped = frame.groupby("season")[leaves]
    means = grouped.mean()
    stds = grouped.std(ddof=0).fillna(0.0)
    return {
        int(season): {
            name: (float(means.at[season, name]), float(stds.at[season, name]))
            for name in leaves
        }
        for season in means.index
    }


def _stat_scorer(name: str):
    leaf = STAT_LEAVES[name]

    def score(profile, settings, population) -> Optional[float]:
        z_scores: Dict[int, Optional[float]] = {}
        for line in _window_lines(profile, settings):
            if line.attempts < settings.min_stat_attempts(line.season):
                continue
            baseline = population.stat_baselines.get(line.season, {}).get(name)
            if baseline is None:
                continue
            mean, std_dev = baseline
            value = leaf.extract(line.to_stats())
            z_scores[line.season] = calculate_z_score(value, mean, std_dev, leaf.inverted)
        z = year_weighted(z_scores, settings.year_weights)
        if z is None:
            return None
        return z_score_to_percentile(z)

    score.__name__ = f"score_{name}"
    score.__doc__ = f"Year-weighted z-score percentile of {name}."
    return score


# -----------------------------------------------------------------------------
# Clutch
# -----------------------------------------------------------------------------

def _clutch_rate(profile, settings, attribute: str, elite_rate: float) -> Optional[float]:
    rates: Dict[int, Optional[float]] = {}
    for line in _window_lines(profile, settings):
        events = getattr(line, attribute)
        games = line.games_started
        playoff = _playoffs_for(profile, line.season, settings)
        if playoff is not None:
            events += getattr(playoff, attribute)
            games += playoff.games_started
        if games > 0:
            rates[line.season] = events / games
    rate = year_weighted(rates, settings.year_weights)
    if rate is None:
        return None
    return clip(rate / elite_rate)


def score_game_winning_drives(profile, settings, population) -> Optional[float]:
    """Game-winning drives per start against an elite rate of one per three games."""
    return _clutch_rate(profile, settings, "game_winning_drives", ELITE_GWD_PER_GAME)


def score_fourth_quarter_comebacks(profile, settings, population) -> Optional[float]:
    return _clutch_rate(profile, settings, "fourth_quarter_comebacks", ELITE_4QC_PER_GAME)


_ROUND_ORDER = [
    PlayoffRound.WILD_CARD,
    PlayoffRound.DIVISIONAL,
    PlayoffRound.CONFERENCE,
    PlayoffRound.SUPER_BOWL,
]


def playoff_clutch_multiplier(playoff: PlayoffTotals) -> float:
    """
    Mean round multiplier over the rounds a team played.

    The rounds are the last ``games`` rounds up to ``round_reached``, so a
    team with a bye skips the wild card round.
    """
    default = PLAYOFF_CLUTCH_MULTIPLIERS["wild_card"]
    if playoff.games == 0 or playoff.round_reached == PlayoffRound.NONE:
        return default
    last = _ROUND_ORDER.index(playoff.round_reached)
    first = max(0, last - playoff.games + 1)
    rounds = _ROUND_ORDER[first:last + 1]
    return float(np.mean([PLAYOFF_CLUTCH_MULTIPLIERS[r.value] for r in rounds]))


def score_playoff_bonus(profile, settings, population) -> Optional[float]:
    """Playoff win rate, volume and round-weighted clutch drives, capped at 1."""
    if not settings.include_playoffs:
        return None
    weights = settings.year_weights
    wins = games = starts = bonus = weight_sum = 0.0
    for season, playoff in profile.playoffs.items():
        weight = weights.get(season, 0.0)
        if weight <= 0 or playoff.games == 0:
            continue
        events = playoff.game_winning_drives + playoff.fourth_quarter_comebacks
        wins += playoff.wins * weight
        games += playoff.games * weight
        starts += playoff.games_started * weight
        bonus += events * (playoff_clutch_multiplier(playoff) - 1.0) * weight
        weight_sum += weight
    if weight_sum == 0:
        return None

    win_rate = safe_divide(wins, games)
    points = min(
        PLAYOFF_BONUS_MAX,
        win_rate * PLAYOFF_BONUS_WIN_RATE_POINTS
        + (starts / weight_sum) * PLAYOFF_BONUS_POINTS_PER_GAME,
    )
    points += bonus / weight_sum
    return clip(points / PLAYOFF_BONUS_MAX)


def _situational_scorer(category_key: str):
    def score(profile, settings, population) -> Optional[float]:
        performance = profile.clutch.get(category_key)
        if performance is None or not performance.has_data:
            return None
        summary = population.clutch.get(category_key)
        if summary is None:
            return None
        return summary.score_percentile(performance.normalized_score)

    score.__name__ = f"score_{category_key}"
    score.__doc__ = f"Population percentile of the {category_key} category score."
    return score


# -----------------------------------------------------------------------------
# Durability
# -----------------------------------------------------------------------------

def season_length(line: SeasonTotals, include_playoffs: bool = False) -> int:
    """Games a starter could have started in a season."""
    if line.team_games is not None:
        return line.team_games
    games = REGULAR_SEASON_GAMES if line.season >= SEVENTEEN_GAME_SEASON_START else LEGACY_REGULAR_SEASON_GAMES
    if include_playoffs:
        games += PLAYOFF_GAME_CREDIT
    return games


def score_availability(profile, settings, population) -> Optional[float]:
    """Year-weighted share of possible starts made, capped at 1."""
    shares: Dict[int, Optional[float]] = {}
    for line in _window_lines(profile, settings):
        starts = line.games_started
        playoff = _playoffs_for(profile, line.season, settings)
        if playoff is not None:
            starts += playoff.games_started
        length = season_length(line, settings.include_playoffs)
        shares[line.season] = clip(safe_divide(starts, length))
    return year_weighted(shares, settings.year_weights)


def score_consistency(profile, settings, population) -> Optional[float]:
    """Share of window seasons as a healthy starter. Absent in single-season mode."""
    if settings.mode == ScoringMode.SINGLE_SEASON:
        return None
    lines = _window_lines(profile, settings)
    if not lines:
        return None
    healthy = sum(1 for line in lines if line.games_started >= CONSISTENCY_MIN_GAMES_STARTED)
    return healthy / len(lines)


# -----------------------------------------------------------------------------
# Support
# -----------------------------------------------------------------------------

def _support_scorer(attribute: str):
    def score(profile, settings, population) -> Optional[float]:
        difficulty: Dict[int, Optional[float]] = {}
        for line in _window_lines(profile, settings):
            if line.support is None:
                continue
            quality = getattr(line.support, attribute)
            if quality is None:
                continue
            difficulty[line.season] = 1.0 - clip(quality / 100.0)
        return year_weighted(difficulty, settings.year_weights)

    score.__name__ = f"score_{attribute}"
    score.__doc__ = f"Year-weighted {attribute} difficulty (weaker unit, more credit)."
    return score


LEAF_SCORERS: Dict[LeafPath, Callable] = {
    ("team", "regular_season"): score_regular_season,
    ("team", "offensive_output"): score_offensive_output,
    ("team", "playoff"): score_playoff,
    ("stats", "efficiency", "any_a"): _stat_scorer("any_a"),
    ("stats", "efficiency", "td_pct"): _stat_scorer("td_pct"),
    ("stats", "efficiency", "completion_pct"): _stat_scorer("completion_pct"),
    ("stats", "protection", "sack_pct"): _stat_scorer("sack_pct"),
    ("stats", "protection", "turnover_rate"): _stat_scorer("turnover_rate"),
    ("stats", "volume", "pass_yards"): _stat_scorer("pass_yards"),
    ("stats", "volume", "pass_tds"): _stat_scorer("pass_tds"),
    ("stats", "volume", "rush_yards"): _stat_scorer("rush_yards"),
    ("stats", "volume", "rush_tds"): _stat_scorer("rush_tds"),
    ("stats", "volume", "total_attempts"): _stat_scorer("total_attempts"),
    ("clutch", "game_winning_drives"): score_game_winning_drives,
    ("clutch", "fourth_quarter_comebacks"): score_fourth_quarter_comebacks,
    ("clutch", "playoff_bonus"): score_playoff_bonus,
    ("durability", "availability"): score_availability,
    ("durability", "consistency"): score_consistency,
    ("support", "offensive_line"): _support_scorer("offensive_line"),
    ("support", "weapons"): _support_scorer("weapons"),
    ("support", "defense"): _support_scorer("defense"),
}
LEAF_SCORERS.update({
    ("clutch", "situational", key): _situational_scorer(key) for key in CLUTCH_CATEGORIES
})


def score_leaves(
    profile: PlayerSeasonProfile,
    settings: ScoringSettings,
    population: PopulationContext,
    paths=None,
) -> Dict[LeafPath, Optional[float]]:
    """Score every leaf (or the given leaf paths) for one player."""
    if paths is None:
        paths = LEAF_SCORERS.keys()
    scores = {
        path: LEAF_SCORERS[path](profile, settings, population)
        for path in paths
        if path in LEAF_SCORERS
    }
    logger.debug(
        "%s: %d of %d leaves scored",
        profile.player_id, sum(s is not None for s in scores.values()), len(scores),
    )
    return scores
