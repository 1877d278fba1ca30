"""
Situational split records.

A split is one situational slice of a quarterback's season, keyed by a
(split_type, split_value) pair such as ("Down & Yards to Go", "3rd & 1-3")
or ("Month", "November"). Rows arrive already parsed from the ingestion
layer; this module turns them into immutable records and picks out the rows
a clutch category draws from.
"""
import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from qb_rankings.utils.helpers import is_malformed, to_number

logger = logging.getLogger(__name__)

# Counting stats carried by a split row, in record order.
STAT_FIELDS: Tuple[str, ...] = (
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

# Source column names (splits tables) -> record field.
COLUMN_ALIASES: Dict[str, str] = {
    "att": "attempts",
    "cmp": "completions",
    "yds": "yards",
    "td": "touchdowns",
    "int": "interceptions",
    "sk": "sacks",
    "sk_yds": "sack_yards",
    "first_downs": "first_downs",
    "fmb": "fumbles",
    "fl": "fumbles_lost",
    "rush_att": "rush_attempts",
    "rush_yds": "rush_yards",
    "rush_td": "rush_touchdowns",
    "split": "split_type",
    "value": "split_value",
    "pfr_id": "player_id",
    "year": "season",
}


@dataclass(frozen=True)
class SplitSelector:
    """One split type and the values of it a category draws from."""
    split_type: str
    values: Tuple[str, ...]

    def matches(self, split_type: Optional[str], split_value: Optional[str]) -> bool:
        return split_type == self.split_type and split_value in self.values


@dataclass(frozen=True)
class SituationalRecord:
    """
    Statistics for one player, one season, one (split_type, split_value).

    Stat fields are None when the source table did not carry the column.
    """
    player_id: Optional[str] = None
    season: Optional[int] = None
    split_type: Optional[str] = None
    split_value: Optional[str] = None
    attempts: Optional[float] = None
    completions: Optional[float] = None
    yards: Optional[float] = None
    touchdowns: Optional[float] = None
    interceptions: Optional[float] = None
    sacks: Optional[float] = None
    sack_yards: Optional[float] = None
    first_downs: Optional[float] = None
    fumbles: Optional[float] = None
    fumbles_lost: Optional[float] = None
    rush_attempts: Optional[float] = None
    rush_yards: Optional[float] = None
    rush_touchdowns: Optional[float] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "SituationalRecord":
        """Build a record from a raw row, accepting source column aliases."""
        values: Dict[str, Any] = {}
        for key, raw in row.items():
            name = COLUMN_ALIASES.get(str(key).strip().lower(), key)
            if name in STAT_FIELDS:
                values[name] = to_number(raw)
            elif name in ("player_id", "split_type", "split_value"):
                values[name] = None if raw is None or pd.isna(raw) else str(raw)
            elif name == "season":
                season = None if is_malformed(raw) else to_number(raw)
                values[name] = int(season) if season is not None else None
        return cls(**values)

    def stat(self, name: str) -> float:
        """Stat value with absent treated as 0."""
        value = getattr(self, name)
        return 0.0 if value is None else value


def count_malformed(row: Mapping[str, Any]) -> int:
    """Number of stat cells in a raw row that are present but not numeric."""
    count = 0
    for key, raw in row.items():
        name = COLUMN_ALIASES.get(str(key).strip().lower(), key)
        if name in STAT_FIELDS and is_malformed(raw):
            count += 1
    return count


def records_from_frame(df: pd.DataFrame) -> List[SituationalRecord]:
    """
    Convert a DataFrame of split rows into records.

    Non-numeric stat cells are coerced to 0; the number coerced is logged as
    a single warning so sparse or dirty source tables are visible upstream.
    """
    if df is None or df.empty:
        return []

    rows = df.to_dict(orient="records")
    malformed = sum(count_malformed(row) for row in rows)
    if malformed:
        logger.warning(
            "Coerced %d non-numeric stat value(s) to 0 across %d split rows",
            malformed, len(rows),
        )
    return [SituationalRecord.from_mapping(row) for row in rows]


def records_to_frame(records: Iterable[SituationalRecord]) -> pd.DataFrame:
    """Records as a DataFrame with one column per record field."""
    columns = [f.name for f in fields(SituationalRecord)]
    return pd.DataFrame(
        [{c: getattr(r, c) for c in columns} for r in records],
        columns=columns,
    )


def select_records(
    records: Iterable[SituationalRecord],
    selectors: Sequence[SplitSelector],
    seasons: Optional[Iterable[int]] = None,
) -> List[SituationalRecord]:
    """Records matching any selector (and, if given, one of the seasons)."""
    season_set = set(seasons) if seasons is not None else None
    selected = []
    for record in records:
        if season_set is not None and record.season not in season_set:
            continue
        if any(s.matches(record.split_type, record.split_value) for s in selectors):
            selected.append(record)
    return selected


def selector_mask(df: pd.DataFrame, selectors: Sequence[SplitSelector]) -> pd.Series:
    """Boolean mask of the rows in a split frame that match any selector."""
    mask = pd.Series(False, index=df.index)
    if df.empty or "split_type" not in df.columns or "split_value" not in df.columns:
        return mask
    for selector in selectors:
        mask |= (df["split_type"] == selector.split_type) & df["split_value"].isin(selector.values)
    return mask


def normalize_split_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Rename source columns to record field names."""
    if df is None:
        return pd.DataFrame()
    rename = {}
    for col in df.columns:
        alias = COLUMN_ALIASES.get(str(col).strip().lower())
        if alias is not None and alias not in df.columns:
            rename[col] = alias
    return df.rename(columns=rename)
