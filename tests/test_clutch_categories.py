"""Tests for clutch category definitions and normalization."""
import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from qb_rankings.data.splits import SituationalRecord
from qb_rankings.features.aggregator import AggregatedStats, aggregate_frame
from qb_rankings.features.clutch_categories import (
    CATEGORY_WEIGHTS,
    CLUTCH_CATEGORIES,
    Category,
    CategoryPerformance,
    MetricSpec,
    calculate_category_performances,
    get_performance_tier,
    has_sufficient_data,
    normalize,
    normalize_records,
    overall_clutch_score,
)
from qb_rankings.features.metrics import MetricKind


def _single_metric_category(kind, inverted=False):
    return Category(
        key="probe",
        name="Probe",
        split_selectors=(),
        metrics=(MetricSpec(kind, 1.0, inverted=inverted),),
    )


class TestCategoryDefinitions:
    def test_seven_categories(self):
        assert list(CLUTCH_CATEGORIES) == [
            "third_down",
            "fourth_down",
            "red_zone",
            "ultra_high_pressure",
            "score_differential",
            "november",
            "december_january",
        ]

    def test_category_weights_cover_every_category(self):
        assert set(CATEGORY_WEIGHTS) == set(CLUTCH_CATEGORIES)
        assert sum(CATEGORY_WEIGHTS.values()) == pytest.approx(1.0)

    def test_third_down_metrics(self):
        category = CLUTCH_CATEGORIES["third_down"]
        weights = {m.kind: (m.weight, m.inverted) for m in category.metrics}
        assert weights == {
            MetricKind.CONVERSION_RATE: (0.40, False),
            MetricKind.ANY_PER_ATTEMPT: (0.25, False),
            MetricKind.SACK_RATE: (0.20, True),
            MetricKind.TURNOVER_RATE: (0.15, True),
        }

    def test_score_differential_draws_from_trailing(self):
        selector = CLUTCH_CATEGORIES["score_differential"].split_selectors[0]
        assert selector.matches("Score Differential", "Trailing")
        assert not selector.matches("Score Differential", "Leading")


class TestNormalize:
    def test_inverted_metric(self):
        stats = AggregatedStats(total_attempts=90, total_sacks=10)
        perf = normalize(stats, _single_metric_category(MetricKind.SACK_RATE, inverted=True))
        assert stats.sack_rate == pytest.approx(0.10)
        assert perf.normalized_score == pytest.approx(0.90)

    def test_inverted_metric_clamped_at_one(self):
        stats = AggregatedStats(total_attempts=2, total_interceptions=3)
        perf = normalize(stats, _single_metric_category(MetricKind.TURNOVER_RATE, inverted=True))
        assert perf.normalized_score == 0.0

    def test_non_inverted_metric_not_clamped(self):
        stats = AggregatedStats(total_attempts=10, total_yards=80)
        perf = normalize(stats, _single_metric_category(MetricKind.ANY_PER_ATTEMPT))
        assert perf.normalized_score == pytest.approx(8.0)

    def test_weighted_average_of_metrics(self):
        category = Category(
            key="probe",
            name="Probe",
            split_selectors=(),
            metrics=(
                MetricSpec(MetricKind.COMPLETION_RATE, 3.0),
                MetricSpec(MetricKind.SACK_RATE, 1.0, inverted=True),
            ),
        )
        stats = AggregatedStats(total_attempts=90, total_completions=60, total_sacks=10)
        perf = normalize(stats, category)
        expected = (3.0 * (60 / 90) + 1.0 * 0.9) / 4.0
        assert perf.normalized_score == pytest.approx(expected)

    def test_unavailable_metrics_are_skipped(self):
        stats = aggregate_frame(pd.DataFrame({"att": [10], "td": [2]}))
        perf = normalize(stats, CLUTCH_CATEGORIES["red_zone"])
        assert set(perf.metrics) == {MetricKind.TOUCHDOWN_RATE}
        assert perf.normalized_score == pytest.approx(0.2)

    def test_no_applicable_weight_scores_zero(self):
        stats = aggregate_frame(pd.DataFrame({"att": [10]}))
        perf = normalize(stats, CLUTCH_CATEGORIES["red_zone"])
        assert perf.normalized_score == 0.0
        assert perf.has_data

    def test_no_attempts_has_no_data(self):
        perf = normalize(AggregatedStats(), CLUTCH_CATEGORIES["november"])
        assert not perf.has_data
        assert perf.total_attempts == 0

    def test_normalize_records_selects_category_splits(self):
        records = [
            SituationalRecord(split_type="Month", split_value="November", attempts=10, touchdowns=1),
            SituationalRecord(split_type="Month", split_value="October", attempts=50, touchdowns=9),
        ]
        perf = normalize_records(records, CLUTCH_CATEGORIES["november"])
        assert perf.total_attempts == 10
        assert perf.metrics[MetricKind.TOUCHDOWN_RATE] == pytest.approx(0.1)


class TestOverallClutchScore:
    def test_categories_without_data_drop_out(self):
        performances = {
            "third_down": CategoryPerformance("third_down", normalized_score=0.5, total_attempts=10),
            "red_zone": CategoryPerformance("red_zone", normalized_score=1.0, total_attempts=0),
        }
        assert overall_clutch_score(performances) == pytest.approx(50.0)

    def test_clamped_to_100(self):
        performances = {
            "november": CategoryPerformance("november", normalized_score=2.5, total_attempts=40),
        }
        assert overall_clutch_score(performances) == 100.0

    def test_no_data_scores_zero(self):
        assert overall_clutch_score({}) == 0.0


class TestRosterPerformances:
    def test_every_player_gets_every_category(self):
        df = pd.DataFrame([
            {"player_id": "A", "split_type": "Month", "split_value": "November",
             "attempts": 40, "touchdowns": 3, "yards": 300},
            {"player_id": "B", "split_type": "Field Position", "split_value": "Red Zone",
             "attempts": 20, "touchdowns": 6, "yards": 90},
        ])
        results = calculate_category_performances(df)
        assert set(results) == {"A", "B"}
        for perfs in results.values():
            assert set(perfs) == set(CLUTCH_CATEGORIES)
        assert results["A"]["november"].has_data
        assert not results["A"]["red_zone"].has_data
        assert results["B"]["red_zone"].metrics[MetricKind.TOUCHDOWN_RATE] == pytest.approx(0.3)

    def test_sufficient_data_threshold(self):
        assert has_sufficient_data(CategoryPerformance("november", total_attempts=10))
        assert not has_sufficient_data(CategoryPerformance("november", total_attempts=9))


@pytest.mark.parametrize(
    "score,tier",
    [
        (0.95, "Elite"),
        (0.8, "Elite"),
        (0.7, "Very Good"),
        (0.45, "Above Average"),
        (0.2, "Average"),
        (0.1, "Below Average"),
    ],
)
def test_performance_tier(score, tier):
    assert get_performance_tier(score)["tier"] == tier
