"""Static application -> usage category lookup."""

from __future__ import annotations

import logging

import pandas as pd

from src.data.schema import CategoryEntry
from src.utils.errors import CategoryTableError
from src.utils.mappings import APP_COL, CATEGORY_COL, UNKNOWN_CATEGORY

logger = logging.getLogger(__name__)


class CategoryMap:
    """Maps an app id to one category label.

    Apps missing from the map, or mapped to an empty/null category, resolve to
    the explicit unknown category so their usage is still counted.
    """

    def __init__(
        self,
        entries: dict[str, str | None] | None = None,
        unknown: str = UNKNOWN_CATEGORY,
    ) -> None:
        self.unknown = unknown
        self._lookup: dict[str, str] = {}
        for app_id, category in (entries or {}).items():
            entry = CategoryEntry(app_id=str(app_id).strip(), category=category)
            self._lookup[entry.app_id] = entry.resolved_category(unknown)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, unknown: str = UNKNOWN_CATEGORY) -> CategoryMap:
        """Build from a table with app_id, app_name (unused) and category columns.

        Raises:
            CategoryTableError: a required column is missing, or an app id is
                listed with two different categories.
        """
        missing = [c for c in (APP_COL, CATEGORY_COL) if c not in df.columns]
        if missing:
            raise CategoryTableError(f"category table missing columns: {missing}")

        entries = [CategoryEntry.from_row(row) for _, row in df.iterrows()]
        resolved: dict[str, str] = {}
        for entry in entries:
            app_id = entry.app_id.strip()
            category = entry.resolved_category(unknown)
            if app_id in resolved and resolved[app_id] != category:
                raise CategoryTableError(
                    f"app {app_id!r} mapped to both {resolved[app_id]!r} and {category!r}"
                )
            resolved[app_id] = category

        n_null = sum(1 for c in resolved.values() if c == unknown)
        logger.debug(f"Loaded {len(resolved)} app categories ({n_null} without a category)")
        return cls(resolved, unknown=unknown)

    def __len__(self) -> int:
        return len(self._lookup)

    def __contains__(self, app_id) -> bool:
        return str(app_id).strip() in self._lookup

    def get(self, app_id) -> str:
        """Category for a single app id."""
        if app_id is None or pd.isna(app_id):
            return self.unknown
        return self._lookup.get(str(app_id).strip(), self.unknown)

    def categorize(self, app_ids: pd.Series) -> pd.Series:
        """Vectorised lookup; returns a string Series aligned with app_ids."""
        keys = app_ids.astype(str).str.strip()
        return keys.map(self._lookup).fillna(self.unknown).astype(object)

    def labels(self) -> list[str]:
        """Sorted distinct category labels, including the unknown label."""
        return sorted(set(self._lookup.values()) | {self.unknown})

