"""
Per-player season data consumed by the scoring engine.

SeasonTotals and PlayoffTotals arrive already parsed from the ingestion
layer (one row per player per season). A PlayerSeasonProfile bundles every
season in the scoring window with the player's clutch category results.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from qb_rankings.utils.helpers import safe_divide, to_number

# Passing/rushing counting stats carried by both season and playoff lines.
COUNTING_FIELDS = (
    "attempts",
    "completions",
    "yards",
    "touchdowns",
    "interceptions",
    "sacks",
    "sack_yards",
    "first_downs",
    "fumbles",
    "fumbles_lost",
    "rush_attempts",
    "rush_yards",
    "rush_touchdowns",
)

# Source column names (season tables) -> field.
SEASON_ALIASES: Dict[str, str] = {
    "year": "season",
    "tm": "team",
    "gs": "games_started",
    "w": "wins",
    "l": "losses",
    "t": "ties",
    "att": "attempts",
    "cmp": "completions",
    "yds": "yards",
    "td": "touchdowns",
    "int": "interceptions",
    "sk": "sacks",
    "sk_yds": "sack_yards",
    "1d": "first_downs",
    "fmb": "fumbles",
    "fl": "fumbles_lost",
    "rush_att": "rush_attempts",
    "rush_yds": "rush_yards",
    "rush_td": "rush_touchdowns",
    "gwd": "game_winning_drives",
    "4qc": "fourth_quarter_comebacks",
}


@dataclass(frozen=True)
class SupportContext:
    """Supporting-cast quality ratings for one team season, each 0-100."""
    offensive_line: Optional[float] = None
    weapons: Optional[float] = None
    defense: Optional[float] = None


class PlayoffRound(str, Enum):
    """Furthest playoff round a team played in."""
    NONE = "none"
    WILD_CARD = "wild_card"
    DIVISIONAL = "divisional"
    CONFERENCE = "conference"
    SUPER_BOWL = "super_bowl"


@dataclass(frozen=True)
class SeasonTotals:
    """One regular season for one quarterback."""
    season: int
    team: Optional[str] = None
    age: Optional[int] = None
    games_started: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    attempts: float = 0.0
    completions: float = 0.0
    yards: float = 0.0
    touchdowns: float = 0.0
    interceptions: float = 0.0
    sacks: float = 0.0
    sack_yards: float = 0.0
    first_downs: float = 0.0
    fumbles: float = 0.0
    fumbles_lost: float = 0.0
    rush_attempts: float = 0.0
    rush_yards: float = 0.0
    rush_touchdowns: float = 0.0
    game_winning_drives: int = 0
    fourth_quarter_comebacks: int = 0
    # Team games played so far; set for an in-progress season.
    team_games: Optional[int] = None
    # Team offense rating, 0-100.
    offensive_output: Optional[float] = None
    support: Optional[SupportContext] = None

    @property
    def decisions(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def win_pct(self) -> float:
        """QB record win percentage, ties counted as half."""
        return safe_divide(self.wins + 0.5 * self.ties, self.decisions)

    def counting_totals(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in COUNTING_FIELDS}

    def to_stats(self):
        """This season's counting stats as AggregatedStats."""
        from qb_rankings.features.aggregator import stats_from_totals
        return stats_from_totals(self.counting_totals())

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "SeasonTotals":
        """Build from a raw season row. Missing or malformed numbers become 0."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, raw in row.items():
            column = str(key).strip().lower()
            name = SEASON_ALIASES.get(column, column)
            if name not in known or name == "support":
                continue
            if name == "team":
                values[name] = None if raw is None or pd.isna(raw) else str(raw)
            elif name in ("offensive_output", "team_games", "age"):
                number = to_number(raw)
                if number is not None:
                    values[name] = int(number) if name != "offensive_output" else number
            else:
                number = to_number(raw) or 0.0
                if name in COUNTING_FIELDS:
                    values[name] = number
                else:
                    values[name] = int(number)
        return cls(**values)


@dataclass(frozen=True)
class PlayoffTotals:
    """One postseason for one quarterback."""
    season: int
    games_started: int = 0
    wins: int = 0
    losses: int = 0
    attempts: float = 0.0
    completions: float = 0.0
    yards: float = 0.0
    touchdowns: float = 0.0
    interceptions: float = 0.0
    sacks: float = 0.0
    sack_yards: float = 0.0
    game_winning_drives: int = 0
    fourth_quarter_comebacks: int = 0
    round_reached: PlayoffRound = PlayoffRound.NONE
    won_super_bowl: bool = False

    @property
    def games(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> float:
        return safe_divide(self.wins, self.games)


@dataclass
class PlayerSeasonProfile:
    """
    Everything the engine needs to score one quarterback for one season.

    ``seasons`` holds every regular season in the scoring window (and may
    hold earlier ones for career totals). ``clutch`` maps category key to
    the player's CategoryPerformance.
    """
    player_id: str
    name: str
    season: int
    seasons: List[SeasonTotals] = field(default_factory=list)
    playoffs: Dict[int, PlayoffTotals] = field(default_factory=dict)
    clutch: Dict[str, Any] = field(default_factory=dict)

    def season_line(self, season: int) -> Optional[SeasonTotals]:
        for line in self.seasons:
            if line.season == season:
                return line
        return None

    def playoff_line(self, season: int) -> Optional[PlayoffTotals]:
        return self.playoffs.get(season)

    @property
    def target_line(self) -> Optional[SeasonTotals]:
        return self.season_line(self.season)

    @property
    def games_started(self) -> int:
        """Starts in the target season."""
        line = self.target_line
        return line.games_started if line is not None else 0

    @property
    def career_games_started(self) -> int:
        return sum(line.games_started for line in self.seasons)

    @property
    def season_totals(self):
        """Target-season counting stats as AggregatedStats."""
        from qb_rankings.features.aggregator import EMPTY_STATS
        line = self.target_line
        return line.to_stats() if line is not None else EMPTY_STATS

    @property
    def career_totals(self):
        """Counting stats summed over every season line, as AggregatedStats."""
        from qb_rankings.features.aggregator import EMPTY_STATS, stats_from_totals
        if not self.seasons:
            return EMPTY_STATS
        totals = {name: 0.0 for name in COUNTING_FIELDS}
        for line in self.seasons:
            for name, value in line.counting_totals().items():
                totals[name] += value
        return stats_from_totals(totals, record_count=len(self.seasons))
