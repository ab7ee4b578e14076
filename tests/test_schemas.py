from __future__ import annotations

import pytest

from activity_quality.data_processing.schemas import (
    ROLE_IDENTIFIER,
    ROLE_LABEL,
    ROLE_SENSOR,
    ROLE_TIMESTAMP,
    ROLE_UNKNOWN,
    ROLE_WINDOW,
    ROLE_WINDOW_STATISTIC,
    SENSOR_COLUMNS,
    classify_column,
    describe_schema,
)


def test_sensor_columns_are_the_52_raw_measurements():
    assert len(SENSOR_COLUMNS) == 52
    assert len(set(SENSOR_COLUMNS)) == 52
    assert SENSOR_COLUMNS[:4] == ("roll_belt", "pitch_belt", "yaw_belt", "total_accel_belt")
    assert SENSOR_COLUMNS[-1] == "magnet_forearm_z"


@pytest.mark.parametrize(
    "column, role",
    [
        ("roll_belt", ROLE_SENSOR),
        ("gyros_dumbbell_y", ROLE_SENSOR),
        ("classe", ROLE_LABEL),
        ("X", ROLE_IDENTIFIER),
        ("Unnamed: 0", ROLE_IDENTIFIER),
        ("problem_id", ROLE_IDENTIFIER),
        ("cvtd_timestamp", ROLE_TIMESTAMP),
        ("new_window", ROLE_WINDOW),
        ("num_window", ROLE_WINDOW),
        ("kurtosis_picth_belt", ROLE_WINDOW_STATISTIC),
        ("skewness_roll_belt.1", ROLE_WINDOW_STATISTIC),
        ("var_total_accel_belt", ROLE_WINDOW_STATISTIC),
        ("amplitude_yaw_forearm", ROLE_WINDOW_STATISTIC),
        ("temperature_belt", ROLE_UNKNOWN),
        # substring matches on "max" would have dropped this one silently
        ("maximum_effort", ROLE_UNKNOWN),
    ],
)
def test_classify_column(column, role):
    assert classify_column(column) == role


def test_describe_schema_names_every_excluded_role():
    desc = describe_schema()
    assert desc["n_sensor_columns"] == 52
    assert set(desc["excluded"]) == {ROLE_IDENTIFIER, ROLE_TIMESTAMP, ROLE_WINDOW, ROLE_WINDOW_STATISTIC}
