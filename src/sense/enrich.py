"""Attach wide usage aggregates and calendar fields back onto the beep table."""

from __future__ import annotations

import logging

import pandas as pd

from src.utils.config import parse_week_start
from src.utils.errors import BeepTableError
from src.utils.mappings import (
    AGGREGATE_KEY,
    DAY_OF_MONTH_COL,
    DERIVED_COLUMNS,
    HOUR_DECIMAL_COL,
    OPENS_PREFIX,
    PARTICIPANT_COL,
    SCHEDULED_COL,
    SEQUENCE_COL,
    USAGE_PREFIX,
    WEEKDAY_COL,
)

logger = logging.getLogger(__name__)


def hour_decimal(ts: pd.Series) -> pd.Series:
    """Time of day as fractional hours, e.g. 10:30:00 -> 10.5."""
    return ts.dt.hour + ts.dt.minute / 60.0 + ts.dt.second / 3600.0


def weekday_index(ts: pd.Series, week_start: int = 1) -> pd.Series:
    """1-based weekday counted from `week_start` (ISO number, Monday = 1).

    With week_start=1 this is the ISO weekday; with week_start=7 Sunday is 1.
    """
    iso = ts.dt.dayofweek + 1
    return ((iso - week_start) % 7 + 1).astype("Int64")


class Enricher:
    """Left-joins wide aggregates onto beeps and appends derived columns."""

    def __init__(self, week_start: int = 1) -> None:
        self.week_start = parse_week_start(week_start)

    def _usage_columns(self, wide: pd.DataFrame) -> list[str]:
        return [c for c in wide.columns if c.startswith((USAGE_PREFIX, OPENS_PREFIX))]

    def enrich(self, beeps: pd.DataFrame, wide: pd.DataFrame) -> pd.DataFrame:
        """Build the final beep-level table.

        Args:
            beeps: Combined beep table (original columns, incl. scheduled_time).
            wide: Output of Reshaper.reshape.

        Returns:
            One row per beep, sorted by (participant_id, scheduled_time):
            original columns with hour_decimal, weekday, day_of_month and
            beep_sequence inserted before scheduled_time, followed by the
            interleaved usage columns (0 where no session contributed).

        Raises:
            BeepTableError: the beep table lacks the join key columns.
        """
        missing = [c for c in AGGREGATE_KEY if c not in beeps.columns]
        if missing:
            raise BeepTableError(f"beep table missing join columns: {missing}")

        usage_cols = self._usage_columns(wide)
        base_cols = [c for c in beeps.columns if c not in DERIVED_COLUMNS and c not in usage_cols]

        right = wide[AGGREGATE_KEY + usage_cols].copy()
        for col in AGGREGATE_KEY:
            right[col] = right[col].astype(beeps[col].dtype)

        merged = beeps[base_cols].merge(right, on=AGGREGATE_KEY, how="left", validate="many_to_one")
        if len(merged) != len(beeps):
            raise BeepTableError(f"join changed the row count: {len(beeps)} beeps -> {len(merged)} rows")

        n_unmatched = int(merged[usage_cols[0]].isna().sum()) if usage_cols else len(merged)
        logger.info(f"{n_unmatched} of {len(merged)} beeps had no usage in their window")

        for col in usage_cols:
            dtype = "float64" if col.startswith(USAGE_PREFIX) else "int64"
            merged[col] = merged[col].fillna(0).astype(dtype)

        merged = merged.sort_values(
            [PARTICIPANT_COL, SCHEDULED_COL], kind="stable", na_position="last"
        ).reset_index(drop=True)

        ts = merged[SCHEDULED_COL]
        merged[HOUR_DECIMAL_COL] = hour_decimal(ts)
        merged[WEEKDAY_COL] = weekday_index(ts, self.week_start)
        merged[DAY_OF_MONTH_COL] = ts.dt.day.astype("Int64")
        merged[SEQUENCE_COL] = merged.groupby(PARTICIPANT_COL, dropna=False).cumcount() + 1

        pos = base_cols.index(SCHEDULED_COL)
        ordered = base_cols[:pos] + DERIVED_COLUMNS + base_cols[pos:] + usage_cols
        return merged[ordered]
