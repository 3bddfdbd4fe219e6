"""Data preprocessing: beep table assembly and usage table normalization.

Combines the daily and sleep beep sources into one beep table with an absolute
scheduled time per beep, and normalizes raw usage rows into typed intervals.
"""

from __future__ import annotations

import logging

import pandas as pd

from src.utils.errors import BeepTableError, UsageTableError
from src.utils.mappings import (
    APP_COL,
    BEEP_KEY,
    DATE_COL,
    DURATION_COL,
    END_COL,
    PARTICIPANT_COL,
    SCHEDULED_COL,
    START_COL,
    SURVEY_COL,
    TIME_OF_DAY_COL,
    USAGE_DATE_COL,
)

logger = logging.getLogger(__name__)

USAGE_REQUIRED = [PARTICIPANT_COL, APP_COL, START_COL, END_COL]


# Trailing UTC offset ("Z", "+01:00", "-0500") after a clock time
_OFFSET_SUFFIX = r"(\d{2}:\d{2}(?::\d{2})?(?:\.\d+)?)\s*(?:Z|[+-]\d{2}:?\d{2})$"


def parse_timestamps(values: pd.Series) -> pd.Series:
    """Parse to naive datetimes; unparseable values become NaT.

    Timezone-aware inputs keep their wall-clock time and drop the offset,
    so all timestamps compare as local time. Each string's own offset is
    removed before parsing, so a log spanning a DST change (mixed offsets)
    parses row by row.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        parsed = values
    elif values.isna().all():
        return pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns]")
    else:
        if pd.api.types.is_object_dtype(values) or pd.api.types.is_string_dtype(values):
            values = values.astype("string").str.strip().str.replace(_OFFSET_SUFFIX, r"\1", regex=True)
        parsed = pd.to_datetime(values, errors="coerce", format="mixed")
    if getattr(parsed.dt, "tz", None) is not None:
        parsed = parsed.dt.tz_localize(None)
    return parsed


def _scheduled_time(df: pd.DataFrame) -> pd.Series:
    """Absolute scheduled timestamp per beep row.

    A full `scheduled_time` value is used where present; rows without one are
    built from `date` + `scheduled_time_of_day` (NaT if either is missing).
    """
    if SCHEDULED_COL in df.columns:
        scheduled = parse_timestamps(df[SCHEDULED_COL])
    else:
        scheduled = pd.Series(pd.NaT, index=df.index, dtype="datetime64[ns]")
    if TIME_OF_DAY_COL not in df.columns:
        return scheduled

    day = pd.to_datetime(df[DATE_COL], errors="coerce").dt.strftime("%Y-%m-%d")
    time_str = df[TIME_OF_DAY_COL].astype("string").str.strip()
    from_parts = parse_timestamps(day + " " + time_str)
    return scheduled.fillna(from_parts.astype(scheduled.dtype))


def combine_beep_tables(
    daily_beeps: pd.DataFrame,
    sleep_beeps: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Combine the daily and sleep beep sources into one beep table.

    Args:
        daily_beeps: Daily beeps (survey_number >= 2).
        sleep_beeps: Sleep beeps (survey_number == 1). Optional.

    Returns:
        Combined table with `date` as calendar days and an absolute
        `scheduled_time` column. Self-report columns pass through unchanged.

    Raises:
        BeepTableError: a required column is missing, or two different rows
            share the same (participant_id, date, survey_number).
    """
    frames = [daily_beeps] if sleep_beeps is None else [daily_beeps, sleep_beeps]
    for df in frames:
        missing = [c for c in BEEP_KEY if c not in df.columns]
        if SCHEDULED_COL not in df.columns and TIME_OF_DAY_COL not in df.columns:
            missing.append(TIME_OF_DAY_COL)
        if missing:
            raise BeepTableError(f"beep table missing columns: {missing}")

    combined = pd.concat(frames, ignore_index=True, sort=False)
    combined[DATE_COL] = pd.to_datetime(combined[DATE_COL], errors="coerce").dt.date
    combined[SCHEDULED_COL] = _scheduled_time(combined)

    n_before = len(combined)
    combined = combined.drop_duplicates().reset_index(drop=True)
    if len(combined) < n_before:
        logger.info(f"Dropped {n_before - len(combined)} exact duplicate beep rows")

    dup_keys = combined.duplicated(subset=BEEP_KEY, keep=False)
    if dup_keys.any():
        sample = combined.loc[dup_keys, BEEP_KEY].head(5).to_dict("records")
        raise BeepTableError(
            f"{int(dup_keys.sum())} beep rows share a (participant, date, survey) key, e.g. {sample}"
        )

    n_missing = int(combined[SCHEDULED_COL].isna().sum())
    if n_missing:
        logger.warning(f"{n_missing} beeps have no parseable scheduled time; they get zero usage")

    surveys = pd.to_numeric(combined[SURVEY_COL], errors="coerce")
    if surveys.isna().any():
        raise BeepTableError(f"{int(surveys.isna().sum())} beep rows have no survey number")
    combined[SURVEY_COL] = surveys.astype("int64")
    return combined


def prepare_usage_table(raw: pd.DataFrame) -> pd.DataFrame:
    """Normalize raw usage rows into typed intervals.

    Parses start/end times (unparseable -> NaT, kept for the aggregator to
    exclude) and derives `duration_seconds` and the calendar `date` of the
    session start.
    """
    missing = [c for c in USAGE_REQUIRED if c not in raw.columns]
    if missing:
        raise UsageTableError(f"usage table missing columns: {missing}")

    df = raw[USAGE_REQUIRED].copy()
    df[APP_COL] = df[APP_COL].astype(str).str.strip()
    df[START_COL] = parse_timestamps(df[START_COL])
    df[END_COL] = parse_timestamps(df[END_COL])
    df[DURATION_COL] = (df[END_COL] - df[START_COL]).dt.total_seconds()
    df[USAGE_DATE_COL] = df[START_COL].dt.date
    return df
