"""Align usage sessions with the lookback window before each beep.

For one participant, every beep is paired with every usage session of that
participant, and only pairs whose session lies entirely inside the window
[scheduled_time - window, scheduled_time] are kept. Sessions that straddle the
window start are dropped, not truncated.
"""

from __future__ import annotations

import logging

import pandas as pd

from src.sense.categories import CategoryMap
from src.utils.errors import PartitionFailure
from src.utils.mappings import (
    AGGREGATE_KEY,
    APP_COL,
    CATEGORY_COL,
    DURATION_COL,
    END_COL,
    LONG_COLUMNS,
    OPEN_COUNT_COL,
    PARTICIPANT_COL,
    SCHEDULED_COL,
    START_COL,
    TOTAL_USAGE_COL,
)

logger = logging.getLogger(__name__)

BEEP_REQUIRED = AGGREGATE_KEY
USAGE_REQUIRED = [PARTICIPANT_COL, APP_COL, START_COL, END_COL]
PAIR_COLUMNS = AGGREGATE_KEY + [APP_COL, START_COL, END_COL, DURATION_COL]


def empty_aggregates() -> pd.DataFrame:
    """A long aggregate table with no rows."""
    df = pd.DataFrame({c: pd.Series(dtype=object) for c in LONG_COLUMNS})
    df[SCHEDULED_COL] = pd.Series(dtype="datetime64[ns]")
    df[TOTAL_USAGE_COL] = pd.Series(dtype="float64")
    df[OPEN_COUNT_COL] = pd.Series(dtype="int64")
    return df


class WindowAggregator:
    """Per-beep, per-category usage totals for one participant."""

    def __init__(self, category_map: CategoryMap, window: pd.Timedelta) -> None:
        self.category_map = category_map
        self.window = pd.Timedelta(window)

    def _validate(self, participant_id, beeps: pd.DataFrame, usage: pd.DataFrame) -> None:
        missing = [c for c in BEEP_REQUIRED if c not in beeps.columns]
        missing += [c for c in USAGE_REQUIRED if c not in usage.columns]
        if missing:
            raise PartitionFailure(participant_id, f"missing columns {missing}")

        for name, col in ((SCHEDULED_COL, beeps[SCHEDULED_COL]),
                          (START_COL, usage[START_COL]),
                          (END_COL, usage[END_COL])):
            if not pd.api.types.is_datetime64_any_dtype(col):
                raise PartitionFailure(participant_id, f"column {name!r} is not datetime ({col.dtype})")

        backwards = usage[END_COL] < usage[START_COL]
        if backwards.any():
            raise PartitionFailure(
                participant_id,
                f"{int(backwards.sum())} usage sessions end before they start",
            )

    def select_pairs(self, beeps: pd.DataFrame, usage: pd.DataFrame) -> pd.DataFrame:
        """Join beeps with usage on participant, then keep in-window pairs.

        Returns one row per (beep, session) pair with the beep key columns,
        the app id, the session bounds and its duration. Inputs are not
        modified.
        """
        beeps = beeps.loc[beeps[SCHEDULED_COL].notna(), AGGREGATE_KEY]
        usage = usage.loc[usage[START_COL].notna() & usage[END_COL].notna(), USAGE_REQUIRED]
        if beeps.empty or usage.empty:
            return pd.DataFrame(columns=PAIR_COLUMNS)

        # Cross product within this participant only
        pairs = beeps.merge(usage, on=PARTICIPANT_COL, how="inner")
        window_start = pairs[SCHEDULED_COL] - self.window
        in_window = (pairs[START_COL] >= window_start) & (pairs[END_COL] <= pairs[SCHEDULED_COL])
        pairs = pairs.loc[in_window].copy()

        pairs[DURATION_COL] = (pairs[END_COL] - pairs[START_COL]).dt.total_seconds()
        return pairs[PAIR_COLUMNS]

    def aggregate(
        self,
        participant_id,
        beeps: pd.DataFrame,
        usage: pd.DataFrame,
    ) -> pd.DataFrame:
        """Compute the long aggregate table for one participant.

        Args:
            participant_id: The participant whose partition this is.
            beeps: That participant's beeps (needs the aggregate key columns).
            usage: That participant's usage sessions, duplicates already collapsed.

        Returns:
            DataFrame with columns participant_id, survey_number,
            scheduled_time, category, total_usage_seconds, open_count. Only
            (beep, category) pairs with at least one session appear.

        Raises:
            PartitionFailure: the partition is structurally invalid.
        """
        self._validate(participant_id, beeps, usage)

        n_no_time = int(beeps[SCHEDULED_COL].isna().sum())
        n_bad_usage = int((usage[START_COL].isna() | usage[END_COL].isna()).sum())
        if n_no_time or n_bad_usage:
            logger.debug(
                f"Participant {participant_id}: skipping {n_no_time} beeps without a "
                f"schedule and {n_bad_usage} sessions without valid times"
            )

        pairs = self.select_pairs(beeps, usage)
        if pairs.empty:
            return empty_aggregates()

        pairs = pairs.assign(**{CATEGORY_COL: self.category_map.categorize(pairs[APP_COL])})
        result = (
            pairs.groupby(AGGREGATE_KEY + [CATEGORY_COL], sort=True)[DURATION_COL]
            .agg(["sum", "size"])
            .reset_index()
            .rename(columns={"sum": TOTAL_USAGE_COL, "size": OPEN_COUNT_COL})
        )
        result[TOTAL_USAGE_COL] = result[TOTAL_USAGE_COL].astype("float64")
        result[OPEN_COUNT_COL] = result[OPEN_COUNT_COL].astype("int64")
        return result[LONG_COLUMNS]
