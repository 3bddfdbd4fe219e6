"""Column names and domain constants shared across the linkage pipeline."""

# --- Beep table ---

PARTICIPANT_COL = "participant_id"
DATE_COL = "date"
SURVEY_COL = "survey_number"
TIME_OF_DAY_COL = "scheduled_time_of_day"
SCHEDULED_COL = "scheduled_time"

# (participant, day, survey) identifies one beep in the combined table
BEEP_KEY = [PARTICIPANT_COL, DATE_COL, SURVEY_COL]

# Key shared by the long/wide aggregate tables and the beep table
AGGREGATE_KEY = [PARTICIPANT_COL, SURVEY_COL, SCHEDULED_COL]

# --- Usage table ---

APP_COL = "app_id"
START_COL = "start_time"
END_COL = "end_time"
DURATION_COL = "duration_seconds"
USAGE_DATE_COL = "date"

# Fields that identify a usage session; rows equal on all of them are duplicates
USAGE_IDENTITY = [PARTICIPANT_COL, APP_COL, START_COL, END_COL]

# --- Category map ---

APP_NAME_COL = "app_name"
CATEGORY_COL = "category"
UNKNOWN_CATEGORY = "unknown"

# --- Aggregates ---

TOTAL_USAGE_COL = "total_usage_seconds"
OPEN_COUNT_COL = "open_count"
LONG_COLUMNS = AGGREGATE_KEY + [CATEGORY_COL, TOTAL_USAGE_COL, OPEN_COUNT_COL]

USAGE_PREFIX = "total_usage_sec_"
OPENS_PREFIX = "number_of_opens_"

# --- Derived calendar fields (placed before scheduled_time) ---

HOUR_DECIMAL_COL = "hour_decimal"
WEEKDAY_COL = "weekday"
DAY_OF_MONTH_COL = "day_of_month"
SEQUENCE_COL = "beep_sequence"
DERIVED_COLUMNS = [HOUR_DECIMAL_COL, WEEKDAY_COL, DAY_OF_MONTH_COL, SEQUENCE_COL]

# ISO weekday numbers (Monday = 1)
ISO_WEEKDAYS = {
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
    "sunday": 7,
}


def usage_column(category: str) -> str:
    """Wide-table column holding total usage seconds for a category."""
    return f"{USAGE_PREFIX}{category}"


def opens_column(category: str) -> str:
    """Wide-table column holding the open count for a category."""
    return f"{OPENS_PREFIX}{category}"


def normalize_participant_id(value) -> str:
    """Normalize a participant id to a zero-padded 3-char string.

    Numeric ids read from different files ("7", 7, 7.0) compare equal after
    normalization; non-numeric ids are only stripped.
    """
    s = str(value).strip().strip('"')
    try:
        return str(int(float(s))).zfill(3)
    except ValueError:
        return s
