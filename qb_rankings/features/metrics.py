"""
Rate and efficiency metrics derived from aggregated split totals.

Every metric is a pure function of the totals. A metric whose denominator is
0 is 0, never NaN; numerators are not clamped, so raw ratios can exceed 1.
"""
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet

from config.settings import ANY_A_INT_PENALTY, ANY_A_TD_BONUS
from qb_rankings.utils.helpers import safe_divide

if TYPE_CHECKING:
    from qb_rankings.features.aggregator import AggregatedStats


class MetricKind(str, Enum):
    """Derived metrics. Values match the AggregatedStats rate attribute names."""
    COMPLETION_RATE = "completion_rate"
    TOUCHDOWN_RATE = "touchdown_rate"
    INTERCEPTION_RATE = "interception_rate"
    SACK_RATE = "sack_rate"
    TURNOVER_RATE = "turnover_rate"
    CONVERSION_RATE = "conversion_rate"
    YARDS_PER_ATTEMPT = "yards_per_attempt"
    ANY_PER_ATTEMPT = "any_per_attempt"
    RUSH_YARDS_PER_ATTEMPT = "rush_yards_per_attempt"
    RUSH_TOUCHDOWN_RATE = "rush_touchdown_rate"


# Display labels for UI tables.
METRIC_LABELS: Dict[MetricKind, str] = {
    MetricKind.COMPLETION_RATE: "Cmp%",
    MetricKind.TOUCHDOWN_RATE: "TD Rate",
    MetricKind.INTERCEPTION_RATE: "Int Rate",
    MetricKind.SACK_RATE: "Sack Rate",
    MetricKind.TURNOVER_RATE: "Turnover Rate",
    MetricKind.CONVERSION_RATE: "Conversion Rate",
    MetricKind.YARDS_PER_ATTEMPT: "Y/A",
    MetricKind.ANY_PER_ATTEMPT: "ANY/A",
    MetricKind.RUSH_YARDS_PER_ATTEMPT: "Rush Y/A",
    MetricKind.RUSH_TOUCHDOWN_RATE: "Rush TD Rate",
}


def completion_rate(stats: "AggregatedStats") -> float:
    return safe_divide(stats.total_completions, stats.total_attempts)


def touchdown_rate(stats: "AggregatedStats") -> float:
    return safe_divide(stats.total_touchdowns, stats.total_attempts)


def interception_rate(stats: "AggregatedStats") -> float:
    return safe_divide(stats.total_interceptions, stats.total_attempts)


def sack_rate(stats: "AggregatedStats") -> float:
    """Sacks per dropback (attempts + sacks)."""
    return safe_divide(stats.total_sacks, stats.total_attempts + stats.total_sacks)


def turnover_rate(stats: "AggregatedStats") -> float:
    """(Interceptions + fumbles lost) per attempt."""
    return safe_divide(
        stats.total_interceptions + stats.total_fumbles_lost,
        stats.total_attempts,
    )


def conversion_rate(stats: "AggregatedStats") -> float:
    """First downs per attempt."""
    return safe_divide(stats.total_first_downs, stats.total_attempts)


def yards_per_attempt(stats: "AggregatedStats") -> float:
    return safe_divide(stats.total_yards, stats.total_attempts)


def any_per_attempt(stats: "AggregatedStats") -> float:
    """
    Adjusted Net Yards per Attempt.

    (yards + 20*TD - 45*INT - sack yards) / (attempts + sacks)
    """
    numerator = (
        stats.total_yards
        + ANY_A_TD_BONUS * stats.total_touchdowns
        - ANY_A_INT_PENALTY * stats.total_interceptions
        - stats.total_sack_yards
    )
    return safe_divide(numerator, stats.total_attempts + stats.total_sacks)


def rush_yards_per_attempt(stats: "AggregatedStats") -> float:
    return safe_divide(stats.total_rush_yards, stats.total_rush_attempts)


def rush_touchdown_rate(stats: "AggregatedStats") -> float:
    return safe_divide(stats.total_rush_touchdowns, stats.total_rush_attempts)


_METRIC_FUNCTIONS: Dict[MetricKind, Callable[["AggregatedStats"], float]] = {
    MetricKind.COMPLETION_RATE: completion_rate,
    MetricKind.TOUCHDOWN_RATE: touchdown_rate,
    MetricKind.INTERCEPTION_RATE: interception_rate,
    MetricKind.SACK_RATE: sack_rate,
    MetricKind.TURNOVER_RATE: turnover_rate,
    MetricKind.CONVERSION_RATE: conversion_rate,
    MetricKind.YARDS_PER_ATTEMPT: yards_per_attempt,
    MetricKind.ANY_PER_ATTEMPT: any_per_attempt,
    MetricKind.RUSH_YARDS_PER_ATTEMPT: rush_yards_per_attempt,
    MetricKind.RUSH_TOUCHDOWN_RATE: rush_touchdown_rate,
}

# Source stat fields each metric reads.
METRIC_INPUTS: Dict[MetricKind, FrozenSet[str]] = {
    MetricKind.COMPLETION_RATE: frozenset({"completions", "attempts"}),
    MetricKind.TOUCHDOWN_RATE: frozenset({"touchdowns", "attempts"}),
    MetricKind.INTERCEPTION_RATE: frozenset({"interceptions", "attempts"}),
    MetricKind.SACK_RATE: frozenset({"sacks", "attempts"}),
    MetricKind.TURNOVER_RATE: frozenset({"interceptions", "fumbles_lost", "attempts"}),
    MetricKind.CONVERSION_RATE: frozenset({"first_downs", "attempts"}),
    MetricKind.YARDS_PER_ATTEMPT: frozenset({"yards", "attempts"}),
    MetricKind.ANY_PER_ATTEMPT: frozenset(
        {"yards", "touchdowns", "interceptions", "sack_yards", "attempts", "sacks"}
    ),
    MetricKind.RUSH_YARDS_PER_ATTEMPT: frozenset({"rush_yards", "rush_attempts"}),
    MetricKind.RUSH_TOUCHDOWN_RATE: frozenset({"rush_touchdowns", "rush_attempts"}),
}

if set(_METRIC_FUNCTIONS) != set(MetricKind) or set(METRIC_INPUTS) != set(MetricKind):
    raise RuntimeError("Every MetricKind needs a metric function and an input list")


def compute_metric(kind: MetricKind, stats: "AggregatedStats") -> float:
    """Value of one metric for a set of aggregated totals."""
    return float(_METRIC_FUNCTIONS[MetricKind(kind)](stats))


def compute_all_metrics(stats: "AggregatedStats") -> Dict[MetricKind, float]:
    return {kind: compute_metric(kind, stats) for kind in MetricKind}
