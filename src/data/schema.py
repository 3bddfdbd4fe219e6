"""Dataclass definitions for the records flowing through the linkage pipeline.

The pipeline itself works on pandas DataFrames; these dataclasses document the
row shapes and make it easy to build small tables by hand.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

import pandas as pd

from src.utils.mappings import APP_COL, APP_NAME_COL, CATEGORY_COL, UNKNOWN_CATEGORY


@dataclass
class Beep:
    """One scheduled self-report occasion."""

    participant_id: str
    date: date
    survey_number: int
    scheduled_time: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class UsageEvent:
    """One interval of active use of one application."""

    participant_id: str
    app_id: str
    start_time: datetime
    end_time: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def date(self) -> date:
        return self.start_time.date()

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["duration_seconds"] = self.duration_seconds
        d["date"] = self.date
        return d


@dataclass
class CategoryEntry:
    """Maps one application id to its category (None when unknown)."""

    app_id: str
    app_name: str | None = None
    category: str | None = None

    def resolved_category(self, unknown: str = UNKNOWN_CATEGORY) -> str:
        if self.category is None or pd.isna(self.category) or not str(self.category).strip():
            return unknown
        return str(self.category).strip()

    @classmethod
    def from_row(cls, row: pd.Series) -> CategoryEntry:
        category = row.get(CATEGORY_COL)
        name = row.get(APP_NAME_COL)
        return cls(
            app_id=str(row[APP_COL]),
            app_name=None if pd.isna(name) else str(name),
            category=None if pd.isna(category) else str(category),
        )


@dataclass
class CategoryAggregate:
    """Usage of one category in the window before one beep."""

    participant_id: str
    survey_number: int
    scheduled_time: datetime
    category: str
    total_usage_seconds: float
    open_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def records_to_frame(records: list, columns: list[str] | None = None) -> pd.DataFrame:
    """Build a DataFrame from a list of schema dataclasses."""
    if not records:
        return pd.DataFrame(columns=columns or [])
    df = pd.DataFrame([r.to_dict() for r in records])
    return df[columns] if columns else df
