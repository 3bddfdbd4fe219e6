"""End-to-end linkage: beeps + usage + categories -> enriched beep table."""

from __future__ import annotations

import logging

import pandas as pd

from src.data.usage_store import UsageStore
from src.sense.alignment import WindowAggregator
from src.sense.categories import CategoryMap
from src.sense.enrich import Enricher
from src.sense.reshape import Reshaper
from src.sense.runner import PartitionedRunner
from src.utils.config import LinkageConfig

logger = logging.getLogger(__name__)


def link_usage_to_beeps(
    beeps: pd.DataFrame,
    usage: pd.DataFrame | UsageStore,
    category_map: CategoryMap,
    config: LinkageConfig | None = None,
    progress: bool = False,
) -> pd.DataFrame:
    """Attach per-category window usage to every beep.

    Args:
        beeps: Combined beep table (see combine_beep_tables).
        usage: Raw usage table or an already built UsageStore.
        category_map: App -> category lookup.
        config: Run settings; defaults to a one-hour window.
        progress: Show a progress bar over participants.

    Returns:
        The enriched beep table: one row per input beep.
    """
    config = config or LinkageConfig()
    store = usage if isinstance(usage, UsageStore) else UsageStore(usage)

    aggregator = WindowAggregator(category_map, config.window)
    runner = PartitionedRunner(aggregator, n_jobs=config.n_jobs, progress=progress)
    long_df = runner.run(beeps, store)

    # Every category seen in the usage data gets columns, even with no in-window use
    categories = store.categories(category_map)
    wide = Reshaper(categories).reshape(long_df)

    enriched = Enricher(week_start=config.week_start).enrich(beeps, wide)
    logger.info(
        f"Linked {len(enriched)} beeps with {len(categories)} usage categories "
        f"(window={config.window})"
    )
    return enriched
