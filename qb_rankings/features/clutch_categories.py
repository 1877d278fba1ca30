"""
Clutch categories.

A category names the situational splits it draws from and the metrics it
cares about. Normalizing a player's aggregated split totals against a
category gives one score per category; the category scores roll up into an
overall clutch score.

Inverted metrics (sack rate, turnover rate) are lower-is-better and are
transformed as 1 - min(value, 1) before weighting. Non-inverted metrics are
used raw, so a category that includes ANY/A can score above 1. Population
percentiles map the score back into [0, 1] before it enters the composite.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from config.settings import POPULATION_MIN_ATTEMPTS
from qb_rankings.data.splits import SituationalRecord, SplitSelector, select_records
from qb_rankings.features.aggregator import AggregatedStats, aggregate, aggregate_by_player
from qb_rankings.features.metrics import MetricKind
from qb_rankings.utils.helpers import clip, weighted_mean

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricSpec:
    """One metric a category scores, with its weight and polarity."""
    kind: MetricKind
    weight: float
    inverted: bool = False

    def transform(self, value: float) -> float:
        if self.inverted:
            return 1.0 - min(value, 1.0)
        return value


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    split_selectors: Tuple[SplitSelector, ...]
    metrics: Tuple[MetricSpec, ...]

    @property
    def metric_kinds(self) -> List[MetricKind]:
        return [m.kind for m in self.metrics]

    def select(self, records: Sequence[SituationalRecord], seasons=None) -> List[SituationalRecord]:
        """Records this category draws from."""
        return select_records(records, self.split_selectors, seasons=seasons)


@dataclass
class CategoryPerformance:
    """One player's result for one category."""
    category_key: str
    metrics: Dict[MetricKind, float] = field(default_factory=dict)
    normalized_score: float = 0.0
    total_attempts: float = 0.0

    @property
    def has_data(self) -> bool:
        return self.total_attempts > 0

    def to_dict(self) -> Dict:
        return {
            "category_key": self.category_key,
            "metrics": {kind.value: value for kind, value in self.metrics.items()},
            "normalized_score": self.normalized_score,
            "total_attempts": self.total_attempts,
            "has_data": self.has_data,
        }


_THIRD_DOWN_VALUES = ("3rd & 1-3", "3rd & 4-6", "3rd & 7-9", "3rd & 10+")
_FOURTH_DOWN_VALUES = ("4th & 1-3", "4th & 4-6", "4th & 7-9", "4th & 10+")
_LATE_SEASON_METRICS = (
    MetricSpec(MetricKind.ANY_PER_ATTEMPT, 0.40),
    MetricSpec(MetricKind.TOUCHDOWN_RATE, 0.30),
    MetricSpec(MetricKind.SACK_RATE, 0.15, inverted=True),
    MetricSpec(MetricKind.TURNOVER_RATE, 0.15, inverted=True),
)

CLUTCH_CATEGORIES: Dict[str, Category] = {
    # Critical situations
    "third_down": Category(
        key="third_down",
        name="Third Down Success",
        split_selectors=(SplitSelector("Down & Yards to Go", _THIRD_DOWN_VALUES),),
        metrics=(
            MetricSpec(MetricKind.CONVERSION_RATE, 0.40),
            MetricSpec(MetricKind.ANY_PER_ATTEMPT, 0.25),
            MetricSpec(MetricKind.SACK_RATE, 0.20, inverted=True),
            MetricSpec(MetricKind.TURNOVER_RATE, 0.15, inverted=True),
        ),
    ),
    "fourth_down": Category(
        key="fourth_down",
        name="Fourth Down Success",
        split_selectors=(SplitSelector("Down & Yards to Go", _FOURTH_DOWN_VALUES),),
        metrics=(
            MetricSpec(MetricKind.CONVERSION_RATE, 0.50),
            MetricSpec(MetricKind.ANY_PER_ATTEMPT, 0.30),
            MetricSpec(MetricKind.TURNOVER_RATE, 0.20, inverted=True),
        ),
    ),
    "red_zone": Category(
        key="red_zone",
        name="Red Zone Success",
        split_selectors=(SplitSelector("Field Position", ("Red Zone",)),),
        metrics=(
            MetricSpec(MetricKind.TOUCHDOWN_RATE, 0.40),
            MetricSpec(MetricKind.ANY_PER_ATTEMPT, 0.30),
            MetricSpec(MetricKind.TURNOVER_RATE, 0.20, inverted=True),
            MetricSpec(MetricKind.SACK_RATE, 0.10, inverted=True),
        ),
    ),
    # Late-game
    "ultra_high_pressure": Category(
        key="ultra_high_pressure",
        name="Ultra-High Pressure",
        split_selectors=(
            SplitSelector(
                "Game Situation",
                ("Trailing, < 2 min to go", "Tied, < 2 min to go", "Trailing, < 4 min to go"),
            ),
        ),
        metrics=(
            MetricSpec(MetricKind.ANY_PER_ATTEMPT, 0.35),
            MetricSpec(MetricKind.TOUCHDOWN_RATE, 0.25),
            MetricSpec(MetricKind.SACK_RATE, 0.20, inverted=True),
            MetricSpec(MetricKind.TURNOVER_RATE, 0.20, inverted=True),
        ),
    ),
    "score_differential": Category(
        key="score_differential",
        name="Score Differential",
        split_selectors=(SplitSelector("Score Differential", ("Trailing",)),),
        metrics=(
            MetricSpec(MetricKind.ANY_PER_ATTEMPT, 0.40),
            MetricSpec(MetricKind.TOUCHDOWN_RATE, 0.30),
            MetricSpec(MetricKind.TURNOVER_RATE, 0.30, inverted=True),
        ),
    ),
    # Late season
    "november": Category(
        key="november",
        name="November Performance",
        split_selectors=(SplitSelector("Month", ("November",)),),
        metrics=_LATE_SEASON_METRICS,
    ),
    "december_january": Category(
        key="december_january",
        name="December/January Performance",
        split_selectors=(SplitSelector("Month", ("December", "January")),),
        metrics=_LATE_SEASON_METRICS,
    ),
}

# Relative weight of each category in the overall clutch score.
CATEGORY_WEIGHTS: Dict[str, float] = {
    "third_down": 0.20,
    "fourth_down": 0.15,
    "red_zone": 0.15,
    "ultra_high_pressure": 0.20,
    "score_differential": 0.10,
    "november": 0.10,
    "december_january": 0.10,
}


def get_category(key: str) -> Optional[Category]:
    return CLUTCH_CATEGORIES.get(key)


def normalize(stats: AggregatedStats, category: Category) -> CategoryPerformance:
    """
    Score aggregated split totals against one category.

    Every metric the category names is computed. Metrics the source data
    could not support (a column never carried) are skipped and the weighted
    average is taken over the weights of the metrics actually present. With
    no applicable weight the score is 0; has_data still reflects attempts.
    """
    metrics: Dict[MetricKind, float] = {}
    transformed: Dict[MetricKind, float] = {}
    weights: Dict[MetricKind, float] = {}

    for spec in category.metrics:
        if not stats.has_metric(spec.kind):
            continue
        value = getattr(stats, spec.kind.value)
        metrics[spec.kind] = value
        transformed[spec.kind] = spec.transform(value)
        weights[spec.kind] = weights.get(spec.kind, 0.0) + spec.weight

    score = weighted_mean(transformed, weights)
    return CategoryPerformance(
        category_key=category.key,
        metrics=metrics,
        normalized_score=score if score is not None else 0.0,
        total_attempts=stats.total_attempts,
    )


def normalize_records(
    records: Sequence[SituationalRecord],
    category: Category,
    seasons=None,
) -> CategoryPerformance:
    """Select, aggregate and normalize one player's records for a category."""
    return normalize(aggregate(category.select(records, seasons=seasons)), category)


def overall_clutch_score(
    performances: Mapping[str, CategoryPerformance],
    category_weights: Optional[Mapping[str, float]] = None,
) -> float:
    """
    Weighted mean of the category scores that have data, on a 0-100 scale.

    Categories without attempts drop out of both numerator and denominator.
    """
    if category_weights is None:
        category_weights = CATEGORY_WEIGHTS
    scores = {
        key: perf.normalized_score
        for key, perf in performances.items()
        if perf.has_data
    }
    mean = weighted_mean(scores, category_weights)
    if mean is None:
        return 0.0
    return clip(mean * 100.0, 0.0, 100.0)


def calculate_category_performances(
    splits: Union[pd.DataFrame, Sequence[SituationalRecord]],
    categories: Optional[Mapping[str, Category]] = None,
    seasons=None,
) -> Dict[str, Dict[str, CategoryPerformance]]:
    """
    Normalize every category for every player in a roster of split rows.

    Returns:
        Dict of player_id -> {category_key -> CategoryPerformance}
    """
    if categories is None:
        categories = CLUTCH_CATEGORIES

    results: Dict[str, Dict[str, CategoryPerformance]] = {}
    for key, category in categories.items():
        per_player = aggregate_by_player(splits, category.split_selectors, seasons=seasons)
        for player_id, stats in per_player.items():
            results.setdefault(player_id, {})[key] = normalize(stats, category)

    # Players missing a category entirely get an empty performance.
    for player_id, perfs in results.items():
        for key, category in categories.items():
            if key not in perfs:
                perfs[key] = CategoryPerformance(category_key=category.key)

    with_data = sum(
        1 for perfs in results.values() if any(p.has_data for p in perfs.values())
    )
    logger.info(
        "Normalized %d clutch categories for %d players (%d with split data)",
        len(categories), len(results), with_data,
    )
    return results


def get_performance_tier(score: float) -> Dict[str, str]:
    """Descriptive tier for a normalized category score."""
    if score >= 0.8:
        return {"tier": "Elite", "description": "Elite clutch performance"}
    if score >= 0.6:
        return {"tier": "Very Good", "description": "Very good clutch performance"}
    if score >= 0.4:
        return {"tier": "Above Average", "description": "Above average clutch performance"}
    if score >= 0.2:
        return {"tier": "Average", "description": "Average clutch performance"}
    return {"tier": "Below Average", "description": "Below average clutch performance"}


def has_sufficient_data(performance: CategoryPerformance,
                        min_attempts: float = POPULATION_MIN_ATTEMPTS) -> bool:
    """True if the category sample is large enough to compare against peers."""
    return performance.total_attempts >= min_attempts
