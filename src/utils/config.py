"""YAML configuration loading and validation for a linkage run."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from src.utils.errors import ConfigurationError
from src.utils.mappings import ISO_WEEKDAYS, UNKNOWN_CATEGORY

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "configs" / "linkage.yaml"


def load_config(config_path: Path) -> dict:
    """Load a YAML config file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Parsed config dict (empty if the file is empty).
    """
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def parse_window(value: Any) -> pd.Timedelta:
    """Parse the lookback window duration.

    Bare numbers are minutes; strings are anything ``pandas.to_timedelta``
    understands ("90min", "1h", "01:30:00"). Raises ConfigurationError for
    unparsable or non-positive values.
    """
    if value is None or isinstance(value, bool):
        raise ConfigurationError(f"window duration must be set, got {value!r}")
    try:
        if isinstance(value, timedelta):
            window = pd.Timedelta(value)
        elif isinstance(value, (int, float)):
            window = pd.to_timedelta(value, unit="m")
        else:
            text = str(value).strip()
            try:
                window = pd.to_timedelta(float(text), unit="m")
            except ValueError:
                window = pd.to_timedelta(text)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(f"cannot parse window duration {value!r}: {exc}") from exc

    if pd.isna(window) or window <= pd.Timedelta(0):
        raise ConfigurationError(f"window duration must be positive, got {value!r}")
    return window


def parse_week_start(value: Any) -> int:
    """Parse the week-start day as an ISO weekday number (1 = Monday)."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in ISO_WEEKDAYS:
            return ISO_WEEKDAYS[key]
        try:
            value = int(key)
        except ValueError:
            raise ConfigurationError(f"unknown week start day {value!r}") from None
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 7:
        raise ConfigurationError(f"week start must be an ISO weekday 1-7, got {value!r}")
    return value


@dataclass
class LinkageConfig:
    """Validated settings for one linkage run."""

    window: pd.Timedelta = field(default_factory=lambda: pd.Timedelta(hours=1))
    week_start: int = 1
    n_jobs: int = 1
    unknown_category: str = UNKNOWN_CATEGORY

    def __post_init__(self) -> None:
        self.window = parse_window(self.window)
        self.week_start = parse_week_start(self.week_start)
        if isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, int) or self.n_jobs == 0:
            raise ConfigurationError(f"n_jobs must be a non-zero integer, got {self.n_jobs!r}")
        if not str(self.unknown_category).strip():
            raise ConfigurationError("unknown_category must be a non-empty label")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LinkageConfig:
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"unknown config keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path, **overrides: Any) -> LinkageConfig:
        """Load a YAML config, with non-None keyword overrides applied on top."""
        data = load_config(path)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)
