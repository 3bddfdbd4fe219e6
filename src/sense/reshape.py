"""Pivot the long (beep, category) aggregate table into one wide row per beep.

Column layout is positional and fixed: the beep key, then for each category
(in an explicit ordered list) its usage-seconds column immediately followed by
its open-count column.
"""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from src.utils.mappings import (
    AGGREGATE_KEY,
    CATEGORY_COL,
    OPEN_COUNT_COL,
    TOTAL_USAGE_COL,
    opens_column,
    usage_column,
)

logger = logging.getLogger(__name__)


def interleaved_columns(categories: Iterable[str]) -> list[str]:
    """[usage_A, opens_A, usage_B, opens_B, ...] for the given category order."""
    columns: list[str] = []
    for category in categories:
        columns.append(usage_column(category))
        columns.append(opens_column(category))
    return columns


class Reshaper:
    """Long -> wide reshape with zero fill and interleaved category columns."""

    def __init__(self, categories: Iterable[str] | None = None) -> None:
        self.categories = None if categories is None else list(dict.fromkeys(categories))

    def category_order(self, long_df: pd.DataFrame) -> list[str]:
        """Explicit category order for this run.

        Configured categories come first in their given order; any category in
        the table that was not configured is appended in sorted order.
        """
        observed = sorted(long_df[CATEGORY_COL].dropna().astype(str).unique().tolist())
        if self.categories is None:
            return observed
        extra = [c for c in observed if c not in self.categories]
        if extra:
            logger.warning(f"Categories not in the configured list, appended: {extra}")
        return self.categories + extra

    def reshape(self, long_df: pd.DataFrame) -> pd.DataFrame:
        """Pivot to one row per (participant_id, survey_number, scheduled_time).

        Every category column is present on every row; (beep, category)
        combinations absent from the long table are 0.
        """
        order = self.category_order(long_df)
        columns = interleaved_columns(order)

        if long_df.empty:
            wide = long_df[AGGREGATE_KEY].copy()
            for i, col in enumerate(columns):
                wide[col] = pd.Series(dtype="float64" if i % 2 == 0 else "int64")
            return wide

        pivot = long_df.pivot_table(
            index=AGGREGATE_KEY,
            columns=CATEGORY_COL,
            values=[TOTAL_USAGE_COL, OPEN_COUNT_COL],
            aggfunc="sum",
            fill_value=0,
        )

        wide = pd.DataFrame(index=pivot.index)
        for category in order:
            if (TOTAL_USAGE_COL, category) in pivot.columns:
                wide[usage_column(category)] = pivot[(TOTAL_USAGE_COL, category)].astype("float64")
                wide[opens_column(category)] = pivot[(OPEN_COUNT_COL, category)].astype("int64")
            else:
                wide[usage_column(category)] = 0.0
                wide[opens_column(category)] = 0

        wide = wide.reset_index()
        return wide[AGGREGATE_KEY + columns]
