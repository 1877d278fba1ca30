"""
Single source of truth for the current NFL season and its status.

Computes season and status from today so callers can hand the scoring
engine an explicit SeasonStatus instead of comparing against a hardcoded
"current year".
"""
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from qb_rankings.features.eligibility import SeasonStatus


def get_current_nfl_season(today: Optional[datetime] = None) -> int:
    """
    Current NFL season year (year when Week 1 started).

    NFL season runs Sept-Feb:
    - Jan-Aug: previous calendar year (e.g. Jan 2026 = 2025 season)
    - Sept-Dec: current calendar year (e.g. Sept 2025 = 2025 season)
    """
    if today is None:
        today = datetime.now()
    if today.month <= 8:  # Jan-Aug
        return today.year - 1
    return today.year


def _season_start(season_year: int) -> datetime:
    """Approximate Week 1 Thursday (first Thursday of Sept)."""
    sept = datetime(season_year, 9, 1)
    days_until_thu = (3 - sept.weekday()) % 7  # 0=Mon, 3=Thu
    return sept + timedelta(days=days_until_thu)


def _super_bowl_date(season_year: int) -> datetime:
    """Approximate Super Bowl date (second Sunday of Feb after the season)."""
    feb = datetime(season_year + 1, 2, 1)
    days_until_sun = (6 - feb.weekday()) % 7
    return feb + timedelta(days=days_until_sun + 7)


def season_window(season_year: int) -> Tuple[datetime, datetime]:
    """(Week 1 kickoff, Super Bowl) for a season."""
    return _season_start(season_year), _super_bowl_date(season_year)


def season_status(season: int, today: Optional[datetime] = None) -> SeasonStatus:
    """
    COMPLETED once the season's Super Bowl has been played, else IN_PROGRESS.

    Seasons that have not kicked off yet are reported IN_PROGRESS as well;
    they carry no starts, so eligibility drops every player.
    """
    if today is None:
        today = datetime.now()
    _, super_bowl = season_window(season)
    if today > super_bowl + timedelta(days=1):
        return SeasonStatus.COMPLETED
    return SeasonStatus.IN_PROGRESS


def current_season_has_weeks_played(today: Optional[datetime] = None) -> bool:
    """True if the current NFL season has kicked off."""
    if today is None:
        today = datetime.now()
    start, _ = season_window(get_current_nfl_season(today))
    return today >= start


def default_scoring_season(today: Optional[datetime] = None) -> Dict:
    """
    Season the rankings should show by default, with its status.

    Before Week 1 the previous (completed) season is used so the table is
    never built from an empty season.
    """
    if today is None:
        today = datetime.now()
    season = get_current_nfl_season(today)
    if not current_season_has_weeks_played(today):
        season -= 1
    return {"season": season, "status": season_status(season, today)}
