"""
Eligibility filter.

Decides whether a player-season carries enough sample to be scored and to
count in population comparisons.
"""
import logging
from enum import Enum
from typing import Iterable, List

from config.settings import (
    MIN_CAREER_GAMES_STARTED,
    MIN_GAMES_STARTED_COMPLETED,
    MIN_GAMES_STARTED_IN_PROGRESS,
    RECENCY_WINDOW_YEARS,
)
from qb_rankings.data.profiles import PlayerSeasonProfile

logger = logging.getLogger(__name__)


class SeasonStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"


class ScoringMode(str, Enum):
    SINGLE_SEASON = "single_season"
    MULTI_YEAR = "multi_year"


def min_games_started(status: SeasonStatus) -> int:
    """Starts needed in the target season for single-season scoring."""
    if status == SeasonStatus.IN_PROGRESS:
        return MIN_GAMES_STARTED_IN_PROGRESS
    return MIN_GAMES_STARTED_COMPLETED


def is_eligible(
    profile: PlayerSeasonProfile,
    season: int,
    status: SeasonStatus = SeasonStatus.COMPLETED,
    mode: ScoringMode = ScoringMode.SINGLE_SEASON,
) -> bool:
    """
    True if the player qualifies for scoring in ``season``.

    Single-season: at least 9 starts in a completed season, or 1 in a season
    still in progress. Multi-year: at least 15 career starts and a season
    played within the recency window (``season`` or ``season - 1``).
    """
    if mode == ScoringMode.SINGLE_SEASON:
        line = profile.season_line(season)
        started = line.games_started if line is not None else 0
        return started >= min_games_started(status)

    career_starts = sum(
        line.games_started for line in profile.seasons if line.season <= season
    )
    if career_starts < MIN_CAREER_GAMES_STARTED:
        return False
    recent = range(season - RECENCY_WINDOW_YEARS + 1, season + 1)
    return any(
        line.season in recent and line.games_started > 0 for line in profile.seasons
    )


def filter_eligible(
    profiles: Iterable[PlayerSeasonProfile],
    season: int,
    status: SeasonStatus = SeasonStatus.COMPLETED,
    mode: ScoringMode = ScoringMode.SINGLE_SEASON,
) -> List[PlayerSeasonProfile]:
    """Eligible subset of a roster, in input order."""
    profiles = list(profiles)
    eligible = [p for p in profiles if is_eligible(p, season, status, mode)]
    logger.info(
        "%d of %d quarterbacks eligible for %s (%s, %s)",
        len(eligible), len(profiles), season, status.value, mode.value,
    )
    return eligible
