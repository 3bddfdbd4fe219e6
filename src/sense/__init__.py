"""Usage-to-beep linkage: window alignment, partitioned aggregation, reshape and enrichment."""

from src.sense.alignment import WindowAggregator
from src.sense.categories import CategoryMap
from src.sense.enrich import Enricher
from src.sense.pipeline import link_usage_to_beeps
from src.sense.reshape import Reshaper
from src.sense.runner import PartitionedRunner

__all__ = [
    "CategoryMap",
    "Enricher",
    "PartitionedRunner",
    "Reshaper",
    "WindowAggregator",
    "link_usage_to_beeps",
]
