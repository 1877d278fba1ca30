"""Tests for leaf scoring and the composite QB score."""
import sys
from dataclasses import replace
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from qb_rankings.data.profiles import (
    PlayerSeasonProfile,
    PlayoffRound,
    PlayoffTotals,
    SeasonTotals,
    SupportContext,
)
from qb_rankings.features.clutch_categories import CategoryPerformance, calculate_category_performances
from qb_rankings.features.components import (
    PopulationContext,
    ScoringSettings,
    playoff_achievement_points,
    playoff_clutch_multiplier,
    score_availability,
    score_consistency,
    score_game_winning_drives,
    score_playoff,
    score_playoff_bonus,
    score_regular_season,
    season_length,
    stat_leaf_frame,
    year_weighted,
    LEAF_SCORERS,
)
from qb_rankings.features.composite_score import (
    build_population_context,
    compose_score,
    score_roster,
)
from qb_rankings.features.eligibility import ScoringMode, SeasonStatus
from qb_rankings.features.weights import WEIGHT_SCHEMA, WeightConfigurationError, parse_weight_tree

AVERAGE_SUPPORT = SupportContext(offensive_line=50, weapons=50, defense=50)


def _line(season=2024, **overrides):
    values = dict(
        season=season, team="BUF", games_started=17, wins=9, losses=8,
        attempts=520, completions=340, yards=3900, touchdowns=26, interceptions=11,
        sacks=35, sack_yards=230, fumbles_lost=4,
        rush_attempts=40, rush_yards=150, rush_touchdowns=1,
        game_winning_drives=2, fourth_quarter_comebacks=1,
        offensive_output=55, support=AVERAGE_SUPPORT,
    )
    values.update(overrides)
    return SeasonTotals(**values)


def _profile(player_id, lines, playoffs=None, clutch=None, season=2024):
    return PlayerSeasonProfile(
        player_id=player_id,
        name=player_id.title(),
        season=season,
        seasons=list(lines),
        playoffs=playoffs or {},
        clutch=clutch or {},
    )


@pytest.fixture
def roster():
    elite = _profile("elite", [_line(
        wins=14, losses=3, attempts=550, completions=390, yards=4800, touchdowns=40,
        interceptions=6, sacks=20, sack_yards=120, fumbles_lost=2,
        rush_attempts=60, rush_yards=400, rush_touchdowns=4,
        game_winning_drives=5, fourth_quarter_comebacks=4, offensive_output=90,
    )], clutch={"third_down": CategoryPerformance("third_down", normalized_score=0.9, total_attempts=50)})
    average = _profile("average", [_line()], clutch={
        "third_down": CategoryPerformance("third_down", normalized_score=0.6, total_attempts=50),
    })
    poor = _profile("poor", [_line(
        wins=4, losses=13, attempts=480, completions=290, yards=3000, touchdowns=15,
        interceptions=16, sacks=50, sack_yards=350, fumbles_lost=7,
        rush_attempts=30, rush_yards=80, rush_touchdowns=0,
        game_winning_drives=0, fourth_quarter_comebacks=0, offensive_output=20,
    )], clutch={"third_down": CategoryPerformance("third_down", normalized_score=0.3, total_attempts=50)})
    backup = _profile("backup", [_line(games_started=3, wins=1, losses=2, attempts=90)])
    return [elite, average, poor, backup]


@pytest.fixture
def settings():
    return ScoringSettings(season=2024, include_playoffs=False)


class TestLeafScorers:
    def test_every_schema_leaf_has_a_scorer(self):
        tree = parse_weight_tree()
        assert set(tree.leaf_paths()) == set(LEAF_SCORERS)

    def test_year_weighted_renormalizes(self):
        weights = {2024: 0.75, 2023: 0.20, 2022: 0.05}
        assert year_weighted({2024: 1.0, 2023: 0.0}, weights) == pytest.approx(0.75 / 0.95)
        assert year_weighted({2021: 1.0}, weights) is None

    def test_single_season_year_weights(self):
        assert ScoringSettings(season=2024).year_weights == {2024: 1.0}
        multi = ScoringSettings(season=2024, mode=ScoringMode.MULTI_YEAR).year_weights
        assert multi == {2024: 0.75, 2023: 0.20, 2022: 0.05}

    def test_stat_attempt_thresholds(self):
        assert ScoringSettings(season=2024).min_stat_attempts(2024) == 150
        assert ScoringSettings(season=2024).min_stat_attempts(2023) == 200
        in_progress = ScoringSettings(season=2024, season_status=SeasonStatus.IN_PROGRESS)
        assert in_progress.min_stat_attempts(2024) == 15

    def test_regular_season_win_pct(self, settings):
        profile = _profile("qb", [_line(wins=12, losses=4, ties=1)])
        assert score_regular_season(profile, settings, PopulationContext()) == pytest.approx(12.5 / 17)

    @pytest.mark.parametrize(
        "season,include_playoffs,team_games,expected",
        [
            (2019, False, None, 16),
            (2021, False, None, 17),
            (2024, True, None, 18),
            (2025, True, 7, 7),
        ],
    )
    def test_season_length(self, season, include_playoffs, team_games, expected):
        line = _line(season=season, team_games=team_games)
        assert season_length(line, include_playoffs) == expected

    def test_availability(self, settings):
        full = _profile("qb", [_line(games_started=17)])
        half = _profile("qb", [_line(season=2019, games_started=8)], season=2019)
        assert score_availability(full, settings, PopulationContext()) == pytest.approx(1.0)
        legacy = ScoringSettings(season=2019, include_playoffs=False)
        assert score_availability(half, legacy, PopulationContext()) == pytest.approx(0.5)

    def test_consistency_absent_in_single_season_mode(self, settings):
        profile = _profile("qb", [_line()])
        assert score_consistency(profile, settings, PopulationContext()) is None

    def test_consistency_multi_year(self):
        profile = _profile("qb", [_line(2024), _line(2023, games_started=5), _line(2022)])
        multi = ScoringSettings(season=2024, mode=ScoringMode.MULTI_YEAR)
        assert score_consistency(profile, multi, PopulationContext()) == pytest.approx(2 / 3)

    def test_game_winning_drives_capped(self, settings):
        profile = _profile("qb", [_line(game_winning_drives=9, games_started=17)])
        assert score_game_winning_drives(profile, settings, PopulationContext()) == 1.0
        profile = _profile("qb", [_line(game_winning_drives=3, games_started=18)])
        assert score_game_winning_drives(profile, settings, PopulationContext()) == pytest.approx(0.5)

    def test_playoff_achievement_points(self):
        champion = PlayoffTotals(
            season=2024, games_started=3, wins=3, round_reached=PlayoffRound.SUPER_BOWL,
            won_super_bowl=True,
        )
        assert playoff_achievement_points(champion) == pytest.approx(5 + 2 + 1.5)
        one_and_done = PlayoffTotals(season=2024, games_started=1, losses=1,
                                     round_reached=PlayoffRound.WILD_CARD)
        assert playoff_achievement_points(one_and_done) == pytest.approx(0.5)

    def test_playoff_clutch_multiplier_skips_bye_round(self):
        playoff = PlayoffTotals(season=2024, wins=3, round_reached=PlayoffRound.SUPER_BOWL)
        assert playoff_clutch_multiplier(playoff) == pytest.approx((1.08 + 1.12 + 1.22) / 3)

    def test_playoff_leaves_gated(self):
        profile = _profile("qb", [_line()], playoffs={
            2024: PlayoffTotals(season=2024, games_started=2, wins=1, losses=1,
                                round_reached=PlayoffRound.DIVISIONAL),
        })
        off = ScoringSettings(season=2024, include_playoffs=False)
        on = ScoringSettings(season=2024, include_playoffs=True)
        assert score_playoff(profile, off, PopulationContext()) is None
        assert score_playoff_bonus(profile, off, PopulationContext()) is None
        assert score_playoff(profile, on, PopulationContext()) == pytest.approx(1.0 / 15)
        bonus = score_playoff_bonus(profile, on, PopulationContext())
        assert bonus == pytest.approx((0.5 * 12 + 2 * 2) / 20)

    def test_playoff_bonus_absent_without_playoffs(self):
        profile = _profile("qb", [_line()])
        on = ScoringSettings(season=2024, include_playoffs=True)
        assert score_playoff_bonus(profile, on, PopulationContext()) is None
        assert score_playoff(profile, on, PopulationContext()) == 0.0

    def test_support_difficulty(self, settings):
        profile = _profile("qb", [_line(support=SupportContext(offensive_line=80))])
        scorer = LEAF_SCORERS[("support", "offensive_line")]
        assert scorer(profile, settings, PopulationContext()) == pytest.approx(0.2)
        assert LEAF_SCORERS[("support", "weapons")](profile, settings, PopulationContext()) is None

    def test_stat_frame_applies_attempt_threshold(self, roster, settings):
        frame = stat_leaf_frame(roster, settings)
        assert "backup" not in set(frame["player_id"])
        assert len(frame) == 3


class TestPopulationContext:
    def test_ineligible_players_excluded(self, roster, settings):
        context = build_population_context(roster, settings)
        assert context.player_count == 3
        assert context.clutch["third_down"].player_count == 3
        assert context.clutch["third_down"].score_mean == pytest.approx(0.6)

    def test_stat_baselines_per_season(self, roster, settings):
        context = build_population_context(roster, settings)
        mean, std = context.stat_baselines[2024]["pass_yards"]
        assert mean == pytest.approx((4800 + 3900 + 3000) / 3)
        assert std > 0


class TestComposeScore:
    def test_overall_in_range(self, roster, settings):
        for profile in roster[:3]:
            breakdown = compose_score(profile, None, roster, settings)
            assert 0.0 <= breakdown.overall <= 100.0

    def test_better_player_scores_higher(self, roster, settings):
        scores = {
            p.player_id: compose_score(p, None, roster, settings).overall for p in roster[:3]
        }
        assert scores["elite"] > scores["average"] > scores["poor"]

    def test_deterministic(self, roster, settings):
        first = compose_score(roster[0], None, roster, settings)
        second = compose_score(roster[0], None, roster, settings)
        assert first.to_dict() == second.to_dict()
        assert first.overall == second.overall

    def test_all_zero_weights_score_zero(self, roster, settings):
        weights = {name: 0 for name in WEIGHT_SCHEMA}
        breakdown = compose_score(roster[0], weights, roster, settings)
        assert breakdown.overall == 0.0

    def test_unknown_component_raises(self, roster, settings):
        with pytest.raises(WeightConfigurationError):
            compose_score(roster[0], {"charisma": 10}, roster, settings)

    def test_gated_and_absent_components(self, roster, settings):
        breakdown = compose_score(roster[1], None, roster, settings)
        assert breakdown.component("team", "playoff").score is None
        assert breakdown.component("clutch", "playoff_bonus").score is None
        assert breakdown.component("durability", "consistency").score is None
        assert breakdown.component("clutch", "situational", "red_zone").score is None

    def test_situational_percentile(self, roster, settings):
        average = compose_score(roster[1], None, roster, settings)
        elite = compose_score(roster[0], None, roster, settings)
        assert average.component("clutch", "situational", "third_down").score == pytest.approx(0.5)
        assert elite.component("clutch", "situational", "third_down").score > 0.5

    def test_only_one_component_weighted(self, roster, settings):
        weights = {"team": {"weight": 100, "regular_season": 100}}
        breakdown = compose_score(roster[0], weights, roster, settings)
        assert breakdown.overall == pytest.approx(100 * 14 / 17)

    def test_to_dict(self, roster, settings):
        d = compose_score(roster[0], None, roster, settings).to_dict()
        assert d["player_id"] == "elite"
        assert set(d["components"]) == {"team", "stats", "clutch", "durability", "support"}

    def test_default_settings(self, roster):
        breakdown = compose_score(roster[0], None, roster)
        assert breakdown.season == 2024


class TestScoreRoster:
    def test_ranked_frame(self, roster, settings):
        df = score_roster(roster, None, settings)
        assert isinstance(df, pd.DataFrame)
        assert list(df["player_id"]) == ["elite", "average", "poor"]
        assert list(df["rank"]) == [1, 2, 3]
        assert df["overall_score"].is_monotonic_decreasing
        assert {"team", "stats", "clutch", "durability", "support"} <= set(df.columns)

    def test_empty_roster(self):
        df = score_roster([])
        assert df.empty
        assert "overall_score" in df.columns

    def test_weight_change_recomputes(self, roster, settings):
        default = score_roster(roster, None, settings)
        team_only = score_roster(roster, {"team": {"regular_season": 100}}, settings)
        elite_default = default.loc[default["player_id"] == "elite", "overall_score"].iloc[0]
        elite_team = team_only.loc[team_only["player_id"] == "elite", "overall_score"].iloc[0]
        assert elite_team == pytest.approx(100 * 14 / 17)
        assert elite_default != pytest.approx(elite_team)

    def test_roster_display_stats(self, roster, settings):
        df = score_roster(roster, None, settings).set_index("player_id")
        assert df.at["elite", "any_a"] == pytest.approx((4800 + 800 - 270 - 120) / 570)
        assert df.at["elite", "career_attempts"] == 550
        assert df.at["elite", "career_any_a"] == pytest.approx(df.at["elite", "any_a"])


class TestPresetWeights:
    def test_preset_name_accepted(self, roster, settings):
        breakdown = compose_score(roster[0], "efficiency_purist", roster, settings)
        assert breakdown.component("team").weight == 0
        assert breakdown.overall == pytest.approx(breakdown.component("stats").points)

    def test_unknown_preset_raises(self, roster, settings):
        with pytest.raises(WeightConfigurationError):
            score_roster(roster, "not_a_preset", settings)


class TestSplitsToScore:
    @pytest.fixture
    def third_down_splits(self):
        rows = []
        for player_id, first_downs, yds, td, ints, sk, sk_yds in [
            ("elite", 36, 500, 5, 0, 2, 10),
            ("average", 24, 380, 3, 2, 4, 25),
            ("poor", 12, 250, 1, 4, 7, 45),
        ]:
            rows.append({
                "pfr_id": player_id, "year": 2024, "split": "Down & Yards to Go",
                "value": "3rd & 4-6", "att": 60, "first_downs": first_downs,
                "yds": yds, "td": td, "int": ints, "sk": sk, "sk_yds": sk_yds,
            })
        return pd.DataFrame(rows)

    def test_split_rows_flow_into_situational_leaves(self, roster, settings, third_down_splits):
        performances = calculate_category_performances(third_down_splits, seasons=[2024])
        profiles = [replace(p, clutch=performances.get(p.player_id, {})) for p in roster]

        leaf = {
            p.player_id: compose_score(p, None, profiles, settings)
            .component("clutch", "situational", "third_down").score
            for p in profiles[:3]
        }
        assert leaf["elite"] > leaf["average"] > leaf["poor"]
        assert all(0.0 <= score <= 1.0 for score in leaf.values())

        red_zone = compose_score(profiles[0], None, profiles, settings)
        assert red_zone.component("clutch", "situational", "red_zone").score is None

    def test_split_rows_through_roster_ranking(self, roster, settings, third_down_splits):
        performances = calculate_category_performances(third_down_splits)
        profiles = [replace(p, clutch=performances.get(p.player_id, {})) for p in roster]
        weights = {"clutch": {"situational": {"third_down": 100}}}
        df = score_roster(profiles, weights, settings)
        assert list(df["player_id"]) == ["elite", "average", "poor"]
