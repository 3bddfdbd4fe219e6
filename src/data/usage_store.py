"""In-memory store of usage intervals for all participants, partitioned by person."""

from __future__ import annotations

import logging
from typing import Iterator

import pandas as pd

from src.data.preprocessing import prepare_usage_table
from src.utils.mappings import (
    APP_COL,
    PARTICIPANT_COL,
    START_COL,
    USAGE_IDENTITY,
)

logger = logging.getLogger(__name__)


class UsageStore:
    """Holds the merged usage table and hands out per-participant slices.

    Built once; exact duplicate sessions are collapsed on construction.
    Slices are copies, so callers can never mutate the store.
    """

    def __init__(self, usage_df: pd.DataFrame) -> None:
        df = prepare_usage_table(usage_df)
        n_raw = len(df)
        df = df.drop_duplicates(subset=USAGE_IDENTITY).reset_index(drop=True)
        self.n_duplicates = n_raw - len(df)
        if self.n_duplicates:
            logger.info(f"Collapsed {self.n_duplicates} duplicate usage sessions")

        self._df = df
        self._groups: dict = {
            pid: idx for pid, idx in df.groupby(PARTICIPANT_COL, sort=True).indices.items()
        }

    @classmethod
    def from_frames(cls, frames: list[pd.DataFrame]) -> UsageStore:
        """Merge per-participant usage frames into one store."""
        frames = [f for f in frames if not f.empty]
        if not frames:
            return cls(pd.DataFrame(columns=USAGE_IDENTITY))
        return cls(pd.concat(frames, ignore_index=True))

    def __len__(self) -> int:
        return len(self._df)

    @property
    def frame(self) -> pd.DataFrame:
        """Copy of the full usage table."""
        return self._df.copy()

    def participants(self) -> list:
        """Sorted participant ids with at least one usage row."""
        return list(self._groups)

    def for_participant(self, participant_id) -> pd.DataFrame:
        """One participant's usage rows (an empty frame if there are none)."""
        idx = self._groups.get(participant_id)
        if idx is None:
            return self._df.iloc[0:0].copy()
        return self._df.iloc[idx].sort_values(START_COL, kind="stable").reset_index(drop=True)

    def partitions(self) -> Iterator[tuple[object, pd.DataFrame]]:
        """Yield (participant_id, usage slice) pairs."""
        for pid in self._groups:
            yield pid, self.for_participant(pid)

    def categories(self, category_map) -> list[str]:
        """Sorted categories of every app observed anywhere in the store."""
        if self._df.empty:
            return []
        resolved = category_map.categorize(self._df[APP_COL])
        return sorted(resolved.unique().tolist())
