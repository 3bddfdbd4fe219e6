"""Tests for src/data/preprocessing.py — beep table assembly and usage normalization."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from conftest import beep_rows, usage_rows
from src.data.preprocessing import combine_beep_tables, parse_timestamps, prepare_usage_table
from src.utils.errors import BeepTableError, UsageTableError


# ---------------------------------------------------------------------------
# parse_timestamps
# ---------------------------------------------------------------------------

class TestParseTimestamps:

    def test_strings_parsed(self):
        result = parse_timestamps(pd.Series(["2024-03-04 10:00:00", "2024-03-04T11:30:00"]))
        assert result.tolist() == [pd.Timestamp("2024-03-04 10:00"), pd.Timestamp("2024-03-04 11:30")]

    def test_unparseable_becomes_nat(self):
        result = parse_timestamps(pd.Series(["2024-03-04 10:00:00", "garbage", None]))
        assert result.isna().tolist() == [False, True, True]

    def test_timezone_dropped_keeping_wall_clock(self):
        aware = pd.Series(pd.to_datetime(["2024-03-04 10:00:00+02:00"]))
        result = parse_timestamps(aware)
        assert result.dt.tz is None
        assert result.iloc[0] == pd.Timestamp("2024-03-04 10:00")

    def test_mixed_offsets_keep_wall_clock(self):
        # Offsets change across the DST switch within one log
        result = parse_timestamps(pd.Series([
            "2024-03-30 09:10:00+01:00",
            "2024-03-31 09:10:00+02:00",
            "2024-04-01T07:00:00Z",
        ]))
        assert result.dt.tz is None
        assert result.tolist() == [
            pd.Timestamp("2024-03-30 09:10"),
            pd.Timestamp("2024-03-31 09:10"),
            pd.Timestamp("2024-04-01 07:00"),
        ]

    def test_all_missing(self):
        result = parse_timestamps(pd.Series([None, None]))
        assert result.isna().all()
        assert pd.api.types.is_datetime64_any_dtype(result)


# ---------------------------------------------------------------------------
# combine_beep_tables
# ---------------------------------------------------------------------------

class TestCombineBeepTables:

    def test_daily_and_sleep_combined(self):
        daily = beep_rows([("001", "2024-03-04", 2, "10:00")])
        sleep = beep_rows([("001", "2024-03-04", 1, "07:45")])
        result = combine_beep_tables(daily, sleep)
        assert len(result) == 2
        assert sorted(result["survey_number"].tolist()) == [1, 2]

    def test_scheduled_time_built(self):
        daily = beep_rows([("001", "2024-03-04", 2, "10:15")])
        result = combine_beep_tables(daily)
        assert result.loc[0, "scheduled_time"] == pd.Timestamp("2024-03-04 10:15")
        assert result.loc[0, "date"] == date(2024, 3, 4)

    def test_missing_time_gives_nat(self):
        daily = beep_rows([("001", "2024-03-04", 2, None), ("001", "2024-03-04", 3, "12:00")])
        result = combine_beep_tables(daily)
        assert result["scheduled_time"].isna().tolist() == [True, False]

    def test_pass_through_columns_kept(self):
        daily = beep_rows([("001", "2024-03-04", 2, "10:00")], stress=[4])
        result = combine_beep_tables(daily)
        assert result.loc[0, "stress"] == 4

    def test_exact_duplicates_dropped(self):
        daily = beep_rows([("001", "2024-03-04", 2, "10:00"), ("001", "2024-03-04", 2, "10:00")])
        assert len(combine_beep_tables(daily)) == 1

    def test_conflicting_key_rejected(self):
        daily = beep_rows([("001", "2024-03-04", 2, "10:00"), ("001", "2024-03-04", 2, "11:00")])
        with pytest.raises(BeepTableError):
            combine_beep_tables(daily)

    def test_missing_columns_rejected(self):
        df = pd.DataFrame({"participant_id": ["001"], "date": ["2024-03-04"]})
        with pytest.raises(BeepTableError):
            combine_beep_tables(df)

    def test_prebuilt_scheduled_time_accepted(self):
        df = pd.DataFrame({
            "participant_id": ["001"],
            "date": ["2024-03-04"],
            "survey_number": [2],
            "scheduled_time": ["2024-03-04 10:00:00"],
        })
        result = combine_beep_tables(df)
        assert result.loc[0, "scheduled_time"] == pd.Timestamp("2024-03-04 10:00")

    def test_mixed_source_shapes_keep_every_schedule(self):
        daily = pd.DataFrame({
            "participant_id": ["001"],
            "date": ["2024-03-04"],
            "survey_number": [2],
            "scheduled_time": ["2024-03-04 10:00:00"],
        })
        sleep = beep_rows([("001", "2024-03-04", 1, "08:00:00")])
        result = combine_beep_tables(daily, sleep).set_index("survey_number")
        assert result["scheduled_time"].notna().all()
        assert result.loc[2, "scheduled_time"] == pd.Timestamp("2024-03-04 10:00")
        assert result.loc[1, "scheduled_time"] == pd.Timestamp("2024-03-04 08:00")


# ---------------------------------------------------------------------------
# prepare_usage_table
# ---------------------------------------------------------------------------

class TestPrepareUsageTable:

    def test_duration_and_date(self):
        raw = usage_rows([("001", "app.a", "2024-03-04 23:50:00", "2024-03-05 00:10:00")])
        result = prepare_usage_table(raw)
        assert result.loc[0, "duration_seconds"] == 1200.0
        assert result.loc[0, "date"] == date(2024, 3, 4)

    def test_bad_times_kept_as_nat(self):
        raw = usage_rows([("001", "app.a", "??", "2024-03-05 00:10:00")])
        result = prepare_usage_table(raw)
        assert pd.isna(result.loc[0, "start_time"])
        assert pd.isna(result.loc[0, "duration_seconds"])

    def test_mixed_offsets_across_rows(self):
        raw = usage_rows([
            ("001", "app.a", "2024-03-30 09:10:00+01:00", "2024-03-30 09:20:00+01:00"),
            ("001", "app.a", "2024-03-31 09:10:00+02:00", "2024-03-31 09:15:00+02:00"),
        ])
        result = prepare_usage_table(raw)
        assert result["start_time"].tolist() == [
            pd.Timestamp("2024-03-30 09:10"), pd.Timestamp("2024-03-31 09:10"),
        ]
        assert result["duration_seconds"].tolist() == [600.0, 300.0]

    def test_extra_columns_dropped(self):
        raw = usage_rows([("001", "app.a", "2024-03-04 10:00", "2024-03-04 10:01")])
        raw["battery"] = [88]
        assert "battery" not in prepare_usage_table(raw).columns

    def test_missing_column_raises(self):
        with pytest.raises(UsageTableError):
            prepare_usage_table(pd.DataFrame({"participant_id": ["001"]}))

    def test_input_not_modified(self):
        raw = usage_rows([("001", "app.a", "2024-03-04 10:00", "2024-03-04 10:01")])
        before = raw.copy()
        prepare_usage_table(raw)
        pd.testing.assert_frame_equal(raw, before)
