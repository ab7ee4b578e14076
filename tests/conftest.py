from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
import pytest
import requests

from activity_quality.data_processing.schemas import CLASS_LABELS, SENSOR_COLUMNS

# A sample of the per-window statistic columns, spelled as in the source CSV
STAT_COLUMNS = [
    "kurtosis_roll_belt",
    "kurtosis_picth_belt",
    "skewness_roll_belt.1",
    "max_picth_belt",
    "min_yaw_arm",
    "amplitude_pitch_dumbbell",
    "avg_roll_forearm",
    "var_total_accel_belt",
    "var_accel_arm",
    "stddev_yaw_forearm",
]

LEADING_COLUMNS = [
    "X",
    "user_name",
    "raw_timestamp_part_1",
    "raw_timestamp_part_2",
    "cvtd_timestamp",
    "new_window",
    "num_window",
]


def make_raw_frame(
    n_per_class: int = 20,
    *,
    labeled: bool = True,
    window_rows: int = 0,
    seed: int = 0,
) -> pd.DataFrame:
    """Rows shaped like the source CSV: ids, timestamps, window bookkeeping, sensors, stats, label."""
    rng = np.random.default_rng(seed)
    n = n_per_class * len(CLASS_LABELS)

    labels = np.repeat(np.array(CLASS_LABELS), n_per_class)
    rng.shuffle(labels)
    codes = np.array([CLASS_LABELS.index(c) for c in labels], dtype=float)

    data: Dict[str, Any] = {
        "X": np.arange(1, n + 1),
        "user_name": rng.choice(["adelmo", "carlitos", "charles", "eurico", "jeremy", "pedro"], n),
        "raw_timestamp_part_1": rng.integers(1_322_489_000, 1_323_095_000, n),
        "raw_timestamp_part_2": rng.integers(0, 999_999, n),
        "cvtd_timestamp": "05/12/2011 11:23",
        "new_window": "no",
        "num_window": rng.integers(1, 864, n),
    }
    for j, col in enumerate(SENSOR_COLUMNS):
        # every 4th sensor column carries the class signal
        data[col] = rng.normal(0.0, 1.0, n) + (codes * 4.0 if j % 4 == 0 else 0.0)
    for col in STAT_COLUMNS:
        data[col] = np.nan

    df = pd.DataFrame(data)
    if labeled:
        df["classe"] = labels
    else:
        df["problem_id"] = np.arange(1, n + 1)

    if window_rows:
        win = df.iloc[:window_rows].copy()
        win["new_window"] = "yes"
        for k, col in enumerate(STAT_COLUMNS):
            win[col] = "#DIV/0!" if k % 3 == 0 else 1.5
        df = pd.concat([df, win], ignore_index=True)
        if not labeled:
            df["problem_id"] = np.arange(1, len(df) + 1)

    return df


@pytest.fixture
def raw_frame_factory() -> Callable[..., pd.DataFrame]:
    return make_raw_frame


@pytest.fixture
def raw_labeled() -> pd.DataFrame:
    return make_raw_frame(20, labeled=True, window_rows=6, seed=1)


@pytest.fixture
def raw_unlabeled() -> pd.DataFrame:
    df = make_raw_frame(4, labeled=False, window_rows=2, seed=2)
    # different column order than the labeled file
    return df[list(reversed(df.columns))]


@pytest.fixture
def no_network(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("network access attempted in a test")

    monkeypatch.setattr(requests, "get", _fail)


@pytest.fixture
def pipeline_cfg(tmp_path: Path, raw_labeled: pd.DataFrame, raw_unlabeled: pd.DataFrame) -> Dict[str, Any]:
    """Config whose cache files already exist, so no download happens."""
    raw_dir = tmp_path / "raw"
    raw_dir.mkdir()
    labeled_csv = raw_dir / "pml-training.csv"
    unlabeled_csv = raw_dir / "pml-testing.csv"
    raw_labeled.to_csv(labeled_csv, index=False)
    raw_unlabeled.to_csv(unlabeled_csv, index=False)

    return {
        "project": {"seed": 7},
        "logging": {"level": "INFO"},
        "download": {"timeout": 5},
        "datasets": {
            "labeled": {"url": "https://example.invalid/pml-training.csv", "cache_path": str(labeled_csv)},
            "unlabeled": {"url": "https://example.invalid/pml-testing.csv", "cache_path": str(unlabeled_csv)},
        },
        "cleaning": {"strict": False},
        "split": {"train_fraction": 0.33},
        "trainers": {
            "tree": {"max_depth": 5},
            "boosted": {"n_estimators": 10, "max_depth": 2},
            "forest": {"n_estimators": 10, "n_jobs": 1},
        },
        "output": {
            "processed_dir": str(tmp_path / "processed"),
            "run_dir": str(tmp_path / "runs"),
            "predictions_subdir": "predictions",
            "prediction_filename": "problem_id_{index}.txt",
            "save_model": True,
        },
    }
