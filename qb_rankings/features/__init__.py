"""Scoring modules."""
from .aggregator import AggregatedStats, aggregate
from .metrics import MetricKind, compute_metric
from .clutch_categories import CLUTCH_CATEGORIES, normalize
from .population import compare_across_population
from .eligibility import ScoringMode, SeasonStatus, is_eligible
from .weights import WeightConfigurationError, parse_weight_tree, preset_weights
from .composite_score import ScoringSettings, compose_score, score_roster

__all__ = [
    "AggregatedStats",
    "aggregate",
    "MetricKind",
    "compute_metric",
    "CLUTCH_CATEGORIES",
    "normalize",
    "compare_across_population",
    "ScoringMode",
    "SeasonStatus",
    "is_eligible",
    "WeightConfigurationError",
    "parse_weight_tree",
    "preset_weights",
    "ScoringSettings",
    "compose_score",
    "score_roster",
]
