"""Data loader: reads beep surveys, per-participant usage logs and the app category table.

Expected layout under the data directory:

    data/
      beeps/daily_beeps.csv        daily beeps (survey_number >= 2)
      beeps/sleep_beeps.csv        sleep beep (survey_number == 1), optional
      usage/{pid}_usage*.csv       one or more usage logs per participant
      app_categories.csv           app_id, app_name, category
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path

import pandas as pd

from src.data.preprocessing import combine_beep_tables
from src.data.usage_store import UsageStore
from src.sense.categories import CategoryMap
from src.utils.errors import PartitionFailure
from src.utils.mappings import (
    APP_COL,
    END_COL,
    PARTICIPANT_COL,
    START_COL,
    UNKNOWN_CATEGORY,
    normalize_participant_id,
)

logger = logging.getLogger(__name__)

DAILY_BEEPS_FILE = "daily_beeps.csv"
SLEEP_BEEPS_FILE = "sleep_beeps.csv"
CATEGORIES_FILE = "app_categories.csv"
USAGE_GLOB = "*_usage*.csv"


def participant_from_filename(path: Path) -> str:
    """'012_usage_2023-05.csv' -> '012'."""
    return normalize_participant_id(path.name.split("_")[0])


class DataLoader:
    """Loads the three inputs of a linkage run from CSV files."""

    def __init__(
        self,
        data_dir: Path | None = None,
        beep_dir: Path | None = None,
        usage_dir: Path | None = None,
        categories_path: Path | None = None,
    ) -> None:
        self.data_dir = Path(data_dir) if data_dir else Path("data")
        self.beep_dir = Path(beep_dir) if beep_dir else self.data_dir / "beeps"
        self.usage_dir = Path(usage_dir) if usage_dir else self.data_dir / "usage"
        self.categories_path = (
            Path(categories_path) if categories_path else self.data_dir / CATEGORIES_FILE
        )

    def load_beeps(self) -> pd.DataFrame:
        """Load and combine the daily and sleep beep tables."""
        daily_path = self.beep_dir / DAILY_BEEPS_FILE
        if not daily_path.exists():
            raise FileNotFoundError(f"Daily beep file not found: {daily_path}")
        daily = pd.read_csv(daily_path)

        sleep_path = self.beep_dir / SLEEP_BEEPS_FILE
        sleep = pd.read_csv(sleep_path) if sleep_path.exists() else None
        if sleep is None:
            logger.info(f"No sleep beep file at {sleep_path}; using daily beeps only")

        for df in (daily, sleep):
            if df is not None and PARTICIPANT_COL in df.columns:
                df[PARTICIPANT_COL] = df[PARTICIPANT_COL].map(normalize_participant_id)

        beeps = combine_beep_tables(daily, sleep)
        logger.info(f"Loaded {len(beeps)} beeps for {beeps[PARTICIPANT_COL].nunique()} participants")
        return beeps

    def discover_usage_files(self) -> list[Path]:
        """All per-participant usage logs, sorted by name."""
        if not self.usage_dir.exists():
            raise FileNotFoundError(f"Usage directory not found: {self.usage_dir}")
        files = sorted(self.usage_dir.glob(USAGE_GLOB))
        logger.debug(f"Found {len(files)} usage files in {self.usage_dir}")
        return files

    def load_usage_file(self, path: Path) -> pd.DataFrame:
        """Read one usage log; the participant id falls back to the file name."""
        df = pd.read_csv(path, dtype={APP_COL: str})
        if df.empty:
            warnings.warn(f"[usage] {path.name}: no rows, skipping")
            return df

        pid = participant_from_filename(path)
        if PARTICIPANT_COL not in df.columns:
            df[PARTICIPANT_COL] = pid
        missing = [c for c in (APP_COL, START_COL, END_COL) if c not in df.columns]
        if missing:
            raise PartitionFailure(pid, f"{path.name} is missing columns {missing}")

        df[PARTICIPANT_COL] = df[PARTICIPANT_COL].map(normalize_participant_id)
        return df

    def load_usage(self) -> UsageStore:
        """Merge every participant's usage logs into one UsageStore."""
        frames = [self.load_usage_file(f) for f in self.discover_usage_files()]
        store = UsageStore.from_frames(frames)
        logger.info(
            f"Loaded {len(store)} usage sessions for {len(store.participants())} participants"
        )
        return store

    def load_category_map(self, unknown: str = UNKNOWN_CATEGORY) -> CategoryMap:
        """Load the app -> category table."""
        if not self.categories_path.exists():
            raise FileNotFoundError(f"Category file not found: {self.categories_path}")
        df = pd.read_csv(self.categories_path, dtype={APP_COL: str})
        return CategoryMap.from_frame(df, unknown=unknown)
