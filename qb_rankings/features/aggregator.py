"""
Split aggregation.

Folds any number of situational records into one set of totals and the rate
statistics derived from them. Used for a single situation, a clutch category
(several split values summed), a season or a career.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Union

import pandas as pd

from qb_rankings.data.splits import (
    STAT_FIELDS,
    SituationalRecord,
    SplitSelector,
    normalize_split_frame,
    records_to_frame,
    selector_mask,
)
from qb_rankings.features.metrics import METRIC_INPUTS, MetricKind, compute_metric
from qb_rankings.utils.helpers import is_malformed, to_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregatedStats:
    """Summed split totals plus derived rates. Rates are 0 on a 0 denominator."""
    total_attempts: float = 0.0
    total_completions: float = 0.0
    total_yards: float = 0.0
    total_touchdowns: float = 0.0
    total_interceptions: float = 0.0
    total_sacks: float = 0.0
    total_sack_yards: float = 0.0
    total_first_downs: float = 0.0
    total_fumbles: float = 0.0
    total_fumbles_lost: float = 0.0
    total_rush_attempts: float = 0.0
    total_rush_yards: float = 0.0
    total_rush_touchdowns: float = 0.0
    record_count: int = 0
    # Stat fields carried by at least one source record. None (totals given
    # directly) means every field is available.
    available_fields: Optional[FrozenSet[str]] = None

    # Derived rates are filled in by __post_init__.
    completion_rate: float = field(default=0.0, init=False)
    touchdown_rate: float = field(default=0.0, init=False)
    interception_rate: float = field(default=0.0, init=False)
    sack_rate: float = field(default=0.0, init=False)
    turnover_rate: float = field(default=0.0, init=False)
    conversion_rate: float = field(default=0.0, init=False)
    yards_per_attempt: float = field(default=0.0, init=False)
    any_per_attempt: float = field(default=0.0, init=False)
    rush_yards_per_attempt: float = field(default=0.0, init=False)
    rush_touchdown_rate: float = field(default=0.0, init=False)

    def __post_init__(self):
        if self.available_fields is None:
            object.__setattr__(self, "available_fields", frozenset(STAT_FIELDS))
        for kind in MetricKind:
            object.__setattr__(self, kind.value, compute_metric(kind, self))

    @property
    def total_dropbacks(self) -> float:
        return self.total_attempts + self.total_sacks

    @property
    def has_data(self) -> bool:
        return self.total_attempts > 0

    def has_metric(self, kind) -> bool:
        """True if every source field the metric reads was carried by a record."""
        return METRIC_INPUTS[kind] <= self.available_fields

    def totals(self) -> Dict[str, float]:
        return {name: getattr(self, f"total_{name}") for name in STAT_FIELDS}

    def to_dict(self) -> Dict:
        out: Dict = {f"total_{name}": value for name, value in self.totals().items()}
        out["record_count"] = self.record_count
        for kind in MetricKind:
            out[kind.value] = getattr(self, kind.value)
        return out


EMPTY_STATS = AggregatedStats(available_fields=frozenset())


def stats_from_totals(totals: Dict[str, float], record_count: int = 1) -> AggregatedStats:
    """AggregatedStats from already-summed counting stats keyed by field name."""
    return AggregatedStats(
        **{f"total_{name}": float(totals.get(name) or 0.0) for name in STAT_FIELDS},
        record_count=record_count,
    )


def _numeric_column(column: pd.Series) -> pd.Series:
    """Coerce a raw stat column cell by cell, the same way records are read."""
    return pd.to_numeric(column.map(to_number), errors="coerce")


def _from_frame(frame: pd.DataFrame) -> AggregatedStats:
    """Sum the stat columns of a frame already using record field names."""
    if frame is None or frame.empty:
        return EMPTY_STATS

    totals: Dict[str, float] = {}
    available = set()
    malformed = 0
    for name in STAT_FIELDS:
        if name not in frame.columns:
            totals[f"total_{name}"] = 0.0
            continue
        column = _numeric_column(frame[name])
        if column.notna().any():
            available.add(name)
        malformed += int(frame[name].map(is_malformed).sum())
        totals[f"total_{name}"] = float(column.fillna(0).sum())

    if malformed:
        logger.warning(
            "Coerced %d non-numeric stat value(s) to 0 across %d split rows",
            malformed, len(frame),
        )
    return AggregatedStats(
        **totals,
        record_count=int(len(frame)),
        available_fields=frozenset(available),
    )


def aggregate(records: Iterable[SituationalRecord]) -> AggregatedStats:
    """
    Sum a list of situational records into one AggregatedStats.

    An empty input gives all-zero stats. Absent or non-numeric values count
    as 0; this never raises on malformed input.
    """
    records = list(records)
    if not records:
        return EMPTY_STATS
    return _from_frame(records_to_frame(records))


def aggregate_frame(df: pd.DataFrame) -> AggregatedStats:
    """Aggregate a raw DataFrame of split rows (source or record column names)."""
    if df is None or df.empty:
        return EMPTY_STATS
    return _from_frame(normalize_split_frame(df))


def aggregate_by_player(
    df: Union[pd.DataFrame, Sequence[SituationalRecord]],
    selectors: Optional[Sequence[SplitSelector]] = None,
    seasons: Optional[Iterable[int]] = None,
) -> Dict[str, AggregatedStats]:
    """
    Aggregate split rows per player.

    Args:
        df: Split rows (DataFrame or records) for any number of players
        selectors: Only rows matching one of these splits are summed
        seasons: Only rows from these seasons are summed

    Returns:
        Dict of player_id -> AggregatedStats
    """
    if not isinstance(df, pd.DataFrame):
        df = records_to_frame(df)
    frame = normalize_split_frame(df)
    if frame.empty or "player_id" not in frame.columns:
        return {}

    if seasons is not None and "season" in frame.columns:
        season_values = pd.to_numeric(frame["season"], errors="coerce")
        frame = frame[season_values.isin(list(seasons))]
    if selectors is not None:
        frame = frame[selector_mask(frame, selectors)]

    return {
        str(player_id): _from_frame(group)
        for player_id, group in frame.groupby("player_id", sort=True)
    }
