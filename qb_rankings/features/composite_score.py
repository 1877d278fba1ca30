"""
Composite QB score.

Combines the five top-level components (team, stats, clutch, durability,
support) through a user weight tree into one 0-100 score per quarterback,
with the full per-component breakdown kept for display.

Scoring a roster is two passes:
1. build_population_context: one read-only reduction over the eligible
   roster (per-season stat baselines, clutch category summaries).
2. compose_score per player: independent of every other player once the
   context exists.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from config.settings import SCORE_SCALE
from qb_rankings.data.profiles import PlayerSeasonProfile
from qb_rankings.features.clutch_categories import CLUTCH_CATEGORIES
from qb_rankings.features.components import (
    PopulationContext,
    ScoringSettings,
    score_leaves,
    stat_baselines,
    stat_leaf_frame,
)
from qb_rankings.features.eligibility import filter_eligible, is_eligible
from qb_rankings.features.population import summarize_performances
from qb_rankings.features.weights import (
    Branch,
    ComponentScore,
    compose_tree,
    parse_weight_tree,
    preset_weights,
)
from qb_rankings.utils.helpers import clip

logger = logging.getLogger(__name__)

TOP_LEVEL_COMPONENTS = ["team", "stats", "clutch", "durability", "support"]

# Display stats shown next to the scores in the rankings table.
STAT_COLUMNS = ["any_a", "career_any_a", "career_attempts"]

ROSTER_COLUMNS = [
    "player_id", "name", "season", "overall_score", *TOP_LEVEL_COMPONENTS, *STAT_COLUMNS,
]

Weights = Union[Branch, Mapping[str, Any], str, None]


@dataclass
class ScoreBreakdown:
    """Overall score plus the composed weight tree for one player."""
    player_id: str
    name: str
    season: int
    overall: float
    tree: ComponentScore

    def component(self, *path: str) -> Optional[ComponentScore]:
        return self.tree.child(*path)

    def component_points(self, name: str) -> Optional[float]:
        """Top-level component on the 0-100 scale, None when absent."""
        node = self.tree.children.get(name)
        if node is None or node.score is None:
            return None
        return node.points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "season": self.season,
            "overall": self.overall,
            "components": {
                name: node.to_dict() for name, node in self.tree.children.items()
            },
        }


def _as_tree(weights: Weights) -> Branch:
    if isinstance(weights, Branch):
        return weights
    if isinstance(weights, str):
        return preset_weights(weights)
    return parse_weight_tree(weights)


def build_population_context(
    all_players: Iterable[PlayerSeasonProfile],
    settings: ScoringSettings,
) -> PopulationContext:
    """
    Reduce the roster to the baselines every player is compared against.

    Ineligible players are dropped before any baseline is computed.
    """
    players = [
        p for p in all_players
        if is_eligible(p, settings.season, settings.season_status, settings.mode)
    ]
    baselines = stat_baselines(stat_leaf_frame(players, settings))
    clutch = {
        key: summarize_performances(
            {p.player_id: p.clutch.get(key) for p in players},
            category,
        )
        for key, category in CLUTCH_CATEGORIES.items()
    }
    logger.debug(
        "Population context: %d players, %d seasons of stat baselines",
        len(players), len(baselines),
    )
    return PopulationContext(player_count=len(players), stat_baselines=baselines, clutch=clutch)


def compose_score(
    profile: PlayerSeasonProfile,
    weights: Weights,
    all_players: Iterable[PlayerSeasonProfile],
    settings: Optional[ScoringSettings] = None,
    population: Optional[PopulationContext] = None,
) -> ScoreBreakdown:
    """
    Score one quarterback.

    Args:
        profile: Player to score
        weights: Weight tree, a nested weight mapping (parsed and
            validated here), a preset name from WEIGHT_PRESETS, or None for
            the default weights
        all_players: Roster the player is compared against
        settings: Scoring options; defaults to a completed single season
            for ``profile.season``
        population: Prebuilt context for the roster. Built from
            ``all_players`` when not given.

    Returns:
        ScoreBreakdown. The overall score is in [0, 100]; a player with no
        data anywhere in the tree (or an all-zero tree) scores 0.

    Raises:
        WeightConfigurationError: when ``weights`` does not fit the schema
            or names an unknown preset
    """
    tree = _as_tree(weights)
    if settings is None:
        settings = ScoringSettings(season=profile.season)
    if population is None:
        population = build_population_context(all_players, settings)

    leaf_scores = score_leaves(profile, settings, population, paths=tree.leaf_paths().keys())
    root = compose_tree(tree, leaf_scores)
    overall = 0.0 if root.score is None else clip(root.score * SCORE_SCALE, 0.0, SCORE_SCALE)

    return ScoreBreakdown(
        player_id=profile.player_id,
        name=profile.name,
        season=settings.season,
        overall=overall,
        tree=root,
    )


def score_roster(
    profiles: Iterable[PlayerSeasonProfile],
    weights: Weights = None,
    settings: Optional[ScoringSettings] = None,
) -> pd.DataFrame:
    """
    Score every eligible quarterback on a roster and rank them.

    Returns:
        DataFrame with one row per eligible player: rank, player_id, name,
        season, overall_score, one 0-100 column per top-level component
        (NaN when the component had no data) and the target-season and
        career ANY/A for display. Sorted by overall score, highest first.
    """
    profiles = list(profiles)
    tree = _as_tree(weights)
    if settings is None:
        if not profiles:
            return pd.DataFrame(columns=["rank", *ROSTER_COLUMNS])
        settings = ScoringSettings(season=max(p.season for p in profiles))

    eligible = filter_eligible(profiles, settings.season, settings.season_status, settings.mode)
    population = build_population_context(eligible, settings)

    rows: List[Dict[str, Any]] = []
    for profile in eligible:
        breakdown = compose_score(profile, tree, eligible, settings, population)
        row = {
            "player_id": breakdown.player_id,
            "name": breakdown.name,
            "season": breakdown.season,
            "overall_score": breakdown.overall,
        }
        for name in TOP_LEVEL_COMPONENTS:
            points = breakdown.component_points(name)
            row[name] = np.nan if points is None else points
        career = profile.career_totals
        row["any_a"] = profile.season_totals.any_per_attempt
        row["career_any_a"] = career.any_per_attempt
        row["career_attempts"] = career.total_attempts
        rows.append(row)

    df = pd.DataFrame(rows, columns=ROSTER_COLUMNS)
    df = df.sort_values(["overall_score", "name"], ascending=[False, True]).reset_index(drop=True)
    df.insert(0, "rank", np.arange(1, len(df) + 1))

    if not df.empty:
        logger.info(
            "Scored %d quarterbacks for %s: top %s (%.1f), median %.1f",
            len(df), settings.season, df.at[0, "name"], df.at[0, "overall_score"],
            df["overall_score"].median(),
        )
    return df
