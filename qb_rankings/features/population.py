"""Population-relative comparison of clutch categories and season metrics.

A player's category performance only means something next to the league.
This module reduces a roster's per-player split totals to a
``PopulationSummary`` (means and population standard deviations of every
tracked metric, over players with a real sample) and turns individual values
into capped z-scores and normal-CDF percentiles against it.

Players below the attempt threshold never enter the averages, so a roster of
backups with zero attempts cannot drag the league baseline toward 0.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
from scipy.stats import norm

from config.settings import POPULATION_MIN_ATTEMPTS, Z_SCORE_CAP
from qb_rankings.features.aggregator import AggregatedStats
from qb_rankings.features.clutch_categories import Category, CategoryPerformance, normalize
from qb_rankings.features.metrics import METRIC_LABELS, MetricKind

logger = logging.getLogger(__name__)


def calculate_z_score(
    value: float,
    mean: float,
    std_dev: float,
    inverted: bool = False,
    cap: float = Z_SCORE_CAP,
) -> float:
    """Deviation of ``value`` from ``mean`` in standard deviations.

    Clipped to +/- ``cap``. Inverted (lower-is-better) metrics flip the sign
    so a positive z-score is always good. Returns 0 when the population has
    no spread.
    """
    if std_dev is None or not np.isfinite(std_dev) or std_dev == 0:
        return 0.0
    z = (value - mean) / std_dev
    if inverted:
        z = -z
    return float(np.clip(z, -cap, cap))


def z_score_to_percentile(z: float) -> float:
    """Normal CDF of a z-score, in [0, 1]."""
    return float(norm.cdf(z))


def zscore_series(
    values: pd.Series,
    inverted: bool = False,
    cap: float = Z_SCORE_CAP,
) -> pd.Series:
    """Capped z-scores for every value in a Series against the Series itself.

    Uses the population standard deviation (ddof=0). NaN values are ignored
    when computing the mean and spread and stay NaN in the output.
    """
    values = pd.to_numeric(values, errors="coerce")
    mean = values.mean()
    std_dev = values.std(ddof=0)
    if pd.isna(std_dev) or std_dev == 0:
        return pd.Series(0.0, index=values.index).where(values.notna())
    z = (values - mean) / std_dev
    if inverted:
        z = -z
    return z.clip(-cap, cap)


@dataclass
class PopulationSummary:
    """League baseline for one category."""
    category_key: str
    player_count: int = 0
    means: Dict[MetricKind, float] = field(default_factory=dict)
    std_devs: Dict[MetricKind, float] = field(default_factory=dict)
    score_mean: float = 0.0
    score_std_dev: float = 0.0

    @property
    def has_population(self) -> bool:
        return self.player_count > 0

    def z_score(self, kind: MetricKind, value: float, inverted: bool = False) -> float:
        """Capped z-score of a metric value against this population."""
        if kind not in self.means:
            return 0.0
        return calculate_z_score(value, self.means[kind], self.std_devs.get(kind, 0.0), inverted)

    def score_percentile(self, normalized_score: float) -> float:
        """Percentile of a category normalized score within the population.

        With no population, or no spread in it, every player sits at the
        median (0.5).
        """
        if not self.has_population:
            return 0.5
        z = calculate_z_score(normalized_score, self.score_mean, self.score_std_dev)
        return z_score_to_percentile(z)

    def to_dict(self) -> Dict:
        return {
            "category_key": self.category_key,
            "player_count": self.player_count,
            "means": {k.value: v for k, v in self.means.items()},
            "std_devs": {k.value: v for k, v in self.std_devs.items()},
            "score_mean": self.score_mean,
            "score_std_dev": self.score_std_dev,
        }


def summarize_performances(
    performances: Mapping[str, CategoryPerformance],
    category: Category,
    min_attempts: float = POPULATION_MIN_ATTEMPTS,
) -> PopulationSummary:
    """Summarize already-normalized category results across a roster.

    Args:
        performances: player_id -> CategoryPerformance for ``category``
        category: Category whose metrics are tracked
        min_attempts: Players with fewer attempts are left out of every mean

    Returns:
        PopulationSummary with per-metric means/std devs and the mean and
        std dev of the category's normalized score.
    """
    qualified = [
        perf for perf in performances.values()
        if perf is not None and perf.has_data and perf.total_attempts >= min_attempts
    ]
    summary = PopulationSummary(category_key=category.key, player_count=len(qualified))
    if not qualified:
        logger.debug("No players with %s+ attempts for %s", min_attempts, category.key)
        return summary

    frame = pd.DataFrame([
        {kind: perf.metrics.get(kind, np.nan) for kind in category.metric_kinds}
        for perf in qualified
    ])
    for kind in category.metric_kinds:
        values = frame[kind].dropna()
        if values.empty:
            continue
        summary.means[kind] = float(values.mean())
        summary.std_devs[kind] = float(values.std(ddof=0))

    scores = np.asarray([perf.normalized_score for perf in qualified], dtype=float)
    summary.score_mean = float(scores.mean())
    summary.score_std_dev = float(scores.std(ddof=0))
    return summary


def compare_across_population(
    per_player_stats: Mapping[str, AggregatedStats],
    category: Category,
    min_attempts: float = POPULATION_MIN_ATTEMPTS,
) -> PopulationSummary:
    """Summarize a category across a roster of aggregated split totals.

    Each player's totals are normalized against ``category`` first; see
    ``summarize_performances`` for the reduction.
    """
    performances = {
        player_id: normalize(stats, category)
        for player_id, stats in per_player_stats.items()
    }
    return summarize_performances(performances, category, min_attempts)


def category_details(
    performance: CategoryPerformance,
    summary: PopulationSummary,
    category: Category,
) -> List[Dict]:
    """Detail rows for one category: raw values, league averages, z-scores."""
    rows = []
    for spec in category.metrics:
        value = performance.metrics.get(spec.kind)
        league_avg: Optional[float] = summary.means.get(spec.kind)
        rows.append({
            "metric": spec.kind.value,
            "label": METRIC_LABELS[spec.kind],
            "weight": spec.weight,
            "inverted": spec.inverted,
            "value": value,
            "league_average": league_avg,
            "z_score": (
                summary.z_score(spec.kind, value, inverted=spec.inverted)
                if value is not None and league_avg is not None
                else None
            ),
        })
    return rows
