"""Split records and per-player season data."""
from .splits import SituationalRecord, SplitSelector, records_from_frame
from .profiles import PlayerSeasonProfile, PlayoffRound, PlayoffTotals, SeasonTotals, SupportContext

__all__ = [
    "SituationalRecord",
    "SplitSelector",
    "records_from_frame",
    "PlayerSeasonProfile",
    "PlayoffRound",
    "PlayoffTotals",
    "SeasonTotals",
    "SupportContext",
]
