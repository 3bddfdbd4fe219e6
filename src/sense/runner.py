"""Run the window aggregation once per participant and combine the results.

Each participant is an independent partition: it reads only its own beeps,
its own usage slice and the shared (read-only) category map. Peak memory is
therefore bounded by the largest single participant's beep x session product.
"""

from __future__ import annotations

import logging

import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from src.data.usage_store import UsageStore
from src.sense.alignment import WindowAggregator, empty_aggregates
from src.utils.errors import PartitionFailure
from src.utils.mappings import (
    CATEGORY_COL,
    LONG_COLUMNS,
    PARTICIPANT_COL,
    SCHEDULED_COL,
    SURVEY_COL,
)

logger = logging.getLogger(__name__)

SORT_ORDER = [PARTICIPANT_COL, SCHEDULED_COL, SURVEY_COL, CATEGORY_COL]


def _run_partition(
    aggregator: WindowAggregator,
    participant_id,
    beeps: pd.DataFrame,
    usage: pd.DataFrame,
) -> pd.DataFrame:
    """Aggregate one partition, turning any failure into PartitionFailure.

    Module-level so joblib can pickle it for worker processes.
    """
    try:
        return aggregator.aggregate(participant_id, beeps, usage)
    except PartitionFailure:
        raise
    except (KeyError, ValueError, TypeError, AttributeError) as exc:
        raise PartitionFailure(participant_id, f"{type(exc).__name__}: {exc}") from exc


class PartitionedRunner:
    """Drives WindowAggregator over every participant in the beep table."""

    def __init__(
        self,
        aggregator: WindowAggregator,
        n_jobs: int = 1,
        progress: bool = False,
    ) -> None:
        self.aggregator = aggregator
        self.n_jobs = n_jobs
        self.progress = progress

    def _partitions(self, beeps: pd.DataFrame, store: UsageStore):
        for pid, beep_slice in beeps.groupby(PARTICIPANT_COL, sort=True):
            yield pid, beep_slice, store.for_participant(pid)

    def run(self, beeps: pd.DataFrame, store: UsageStore) -> pd.DataFrame:
        """Aggregate all participants into one long table.

        Participants with no usage contribute no rows. Any structural failure
        aborts the whole run.

        Returns:
            Long aggregate table sorted by (participant_id, scheduled_time).

        Raises:
            PartitionFailure: some participant's data could not be processed.
        """
        if PARTICIPANT_COL not in beeps.columns:
            raise PartitionFailure(None, f"beep table has no {PARTICIPANT_COL!r} column")

        n_participants = beeps[PARTICIPANT_COL].nunique()
        logger.info(
            f"Aggregating {len(beeps)} beeps and {len(store)} usage sessions "
            f"for {n_participants} participants (window={self.aggregator.window}, n_jobs={self.n_jobs})"
        )

        partitions = self._partitions(beeps, store)
        if self.n_jobs == 1:
            if self.progress:
                partitions = tqdm(partitions, total=n_participants, desc="Linking usage", unit="participant")
            results = [
                _run_partition(self.aggregator, pid, beep_slice, usage_slice)
                for pid, beep_slice, usage_slice in partitions
            ]
        else:
            results = Parallel(n_jobs=self.n_jobs)(
                delayed(_run_partition)(self.aggregator, pid, beep_slice, usage_slice)
                for pid, beep_slice, usage_slice in partitions
            )

        results = [r for r in results if not r.empty]
        if not results:
            logger.info("No usage sessions fell inside any beep window")
            return empty_aggregates()

        combined = pd.concat(results, ignore_index=True)
        combined = combined.sort_values(SORT_ORDER, kind="stable").reset_index(drop=True)
        logger.info(
            f"Produced {len(combined)} (beep, category) aggregates across "
            f"{combined[PARTICIPANT_COL].nunique()} participants"
        )
        return combined[LONG_COLUMNS]
