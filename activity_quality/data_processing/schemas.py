from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Pattern, Tuple


# Bump when the declared layout below changes; recorded in every meta/summary file.
SCHEMA_VERSION = "wle-2013.1"

SENSORS: Tuple[str, ...] = ("belt", "arm", "dumbbell", "forearm")
AXES: Tuple[str, ...] = ("x", "y", "z")

LABEL_COLUMN = "classe"
CLASS_LABELS: Tuple[str, ...] = ("A", "B", "C", "D", "E")

WINDOW_MARKER_COLUMN = "new_window"
WINDOW_SUMMARY_VALUE = "yes"

# Column roles returned by classify_column()
ROLE_SENSOR = "sensor"
ROLE_LABEL = "label"
ROLE_IDENTIFIER = "identifier"
ROLE_TIMESTAMP = "timestamp"
ROLE_WINDOW = "window"
ROLE_WINDOW_STATISTIC = "window_statistic"
ROLE_UNKNOWN = "unknown"


def _sensor_columns() -> Tuple[str, ...]:
    cols = []
    for sensor in SENSORS:
        cols.extend([f"roll_{sensor}", f"pitch_{sensor}", f"yaw_{sensor}", f"total_accel_{sensor}"])
        for kind in ("gyros", "accel", "magnet"):
            cols.extend(f"{kind}_{sensor}_{axis}" for axis in AXES)
    return tuple(cols)


# The 52 raw measurements kept after cleaning, in canonical order.
SENSOR_COLUMNS: Tuple[str, ...] = _sensor_columns()


@dataclass(frozen=True)
class ExcludedField:
    """One semantic group of columns that never reaches a model."""

    role: str
    names: FrozenSet[str] = frozenset()
    pattern: Optional[Pattern[str]] = None
    description: str = ""

    def matches(self, column: str) -> bool:
        if column in self.names:
            return True
        return bool(self.pattern is not None and self.pattern.fullmatch(column))


# "Unnamed: 0" is how pandas names the blank row-number header R writes
IDENTIFIER_COLUMNS: FrozenSet[str] = frozenset({"X", "Unnamed: 0", "user_name", "problem_id"})
TIMESTAMP_COLUMNS: FrozenSet[str] = frozenset({"raw_timestamp_part_1", "raw_timestamp_part_2", "cvtd_timestamp"})
WINDOW_COLUMNS: FrozenSet[str] = frozenset({WINDOW_MARKER_COLUMN, "num_window"})

WINDOW_STATISTIC_PREFIXES: Tuple[str, ...] = (
    "kurtosis",
    "skewness",
    "max",
    "min",
    "amplitude",
    "avg",
    "var",
    "stddev",
)

EXCLUDED_FIELDS: Tuple[ExcludedField, ...] = (
    ExcludedField(
        role=ROLE_IDENTIFIER,
        names=IDENTIFIER_COLUMNS,
        description="row numbers, participant names and problem ids",
    ),
    ExcludedField(
        role=ROLE_TIMESTAMP,
        names=TIMESTAMP_COLUMNS,
        description="capture timestamps",
    ),
    ExcludedField(
        role=ROLE_WINDOW,
        names=WINDOW_COLUMNS,
        description="sliding-window bookkeeping",
    ),
    ExcludedField(
        role=ROLE_WINDOW_STATISTIC,
        # e.g. kurtosis_picth_belt, var_accel_arm, skewness_roll_belt.1
        pattern=re.compile(
            r"(?:%s)_[a-z_]+_(?:%s)(?:\.\d+)?" % ("|".join(WINDOW_STATISTIC_PREFIXES), "|".join(SENSORS))
        ),
        description="per-window summary statistics, only populated on window rows",
    ),
)

_SENSOR_SET = frozenset(SENSOR_COLUMNS)


def classify_column(column: str) -> str:
    if column in _SENSOR_SET:
        return ROLE_SENSOR
    if column == LABEL_COLUMN:
        return ROLE_LABEL
    for field in EXCLUDED_FIELDS:
        if field.matches(column):
            return field.role
    return ROLE_UNKNOWN


def describe_schema() -> Dict[str, object]:
    return {
        "schema_version": SCHEMA_VERSION,
        "n_sensor_columns": len(SENSOR_COLUMNS),
        "label_column": LABEL_COLUMN,
        "class_labels": list(CLASS_LABELS),
        "excluded": {f.role: f.description for f in EXCLUDED_FIELDS},
    }
