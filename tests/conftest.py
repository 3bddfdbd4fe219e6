"""Shared pytest fixtures for all test modules."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from src.data.preprocessing import combine_beep_tables
from src.data.usage_store import UsageStore
from src.sense.categories import CategoryMap

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def ts(value: str) -> pd.Timestamp:
    return pd.Timestamp(value)


def usage_rows(rows: list[tuple]) -> pd.DataFrame:
    """(participant_id, app_id, start, end) tuples -> raw usage DataFrame."""
    return pd.DataFrame(rows, columns=["participant_id", "app_id", "start_time", "end_time"])


def beep_rows(rows: list[tuple], **extra_cols) -> pd.DataFrame:
    """(participant_id, date, survey_number, time_of_day) tuples -> raw beep DataFrame."""
    df = pd.DataFrame(
        rows, columns=["participant_id", "date", "survey_number", "scheduled_time_of_day"]
    )
    for name, values in extra_cols.items():
        df[name] = values
    return df


# ---------------------------------------------------------------------------
# Category map: A, B -> Social; C -> Games; D listed without a category
# ---------------------------------------------------------------------------

@pytest.fixture
def category_map():
    return CategoryMap({"app.a": "Social", "app.b": "Social", "app.c": "Games", "app.d": None})


@pytest.fixture
def category_frame():
    return pd.DataFrame([
        {"app_id": "app.a", "app_name": "App A", "category": "Social"},
        {"app_id": "app.b", "app_name": "App B", "category": "Social"},
        {"app_id": "app.c", "app_name": "App C", "category": "Games"},
        {"app_id": "app.d", "app_name": "App D", "category": None},
    ])


# ---------------------------------------------------------------------------
# Reference scenario: participant 001, one-hour window, beep at 10:00
# ---------------------------------------------------------------------------

@pytest.fixture
def scenario_beeps():
    daily = beep_rows(
        [("001", "2024-03-04", 2, "10:00:00")],
        mood=[5],
    )
    return combine_beep_tables(daily)


@pytest.fixture
def scenario_usage():
    return usage_rows([
        ("001", "app.a", "2024-03-04 09:10:00", "2024-03-04 09:20:00"),
        ("001", "app.b", "2024-03-04 09:50:00", "2024-03-04 09:55:00"),
        ("001", "app.c", "2024-03-04 08:00:00", "2024-03-04 08:10:00"),
    ])


@pytest.fixture
def scenario_store(scenario_usage):
    return UsageStore(scenario_usage)


# ---------------------------------------------------------------------------
# Multi-participant study: two people, several beeps, one person without usage
# ---------------------------------------------------------------------------

@pytest.fixture
def study_beeps():
    daily = beep_rows(
        [
            ("002", "2024-03-04", 2, "12:00:00"),
            ("001", "2024-03-04", 3, "14:00:00"),
            ("001", "2024-03-04", 2, "10:00:00"),
            ("003", "2024-03-04", 2, "10:00:00"),
            ("002", "2024-03-05", 2, "12:00:00"),
        ],
        mood=[3, 4, 5, 6, 7],
    )
    sleep = beep_rows(
        [
            ("001", "2024-03-04", 1, "08:00:00"),
            ("002", "2024-03-05", 1, "07:30:00"),
        ],
        mood=[1, 2],
    )
    return combine_beep_tables(daily, sleep)


@pytest.fixture
def study_usage():
    return usage_rows([
        # 001: inside the 10:00 window
        ("001", "app.a", "2024-03-04 09:10:00", "2024-03-04 09:20:00"),
        ("001", "app.c", "2024-03-04 09:30:00", "2024-03-04 09:40:00"),
        # 001: inside the 14:00 window, unmapped app
        ("001", "app.zzz", "2024-03-04 13:00:00", "2024-03-04 13:01:00"),
        # 001: before the 08:00 sleep beep
        ("001", "app.b", "2024-03-04 07:30:00", "2024-03-04 07:45:00"),
        # 002: inside the first 12:00 window
        ("002", "app.b", "2024-03-04 11:30:00", "2024-03-04 11:40:00"),
        # 002: straddles the window start of the 03-05 12:00 beep
        ("002", "app.b", "2024-03-05 10:59:00", "2024-03-05 11:05:00"),
        # 004 has usage but no beeps
        ("004", "app.a", "2024-03-04 09:00:00", "2024-03-04 09:10:00"),
    ])


@pytest.fixture
def study_store(study_usage):
    return UsageStore(study_usage)
