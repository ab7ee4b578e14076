from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from activity_quality.data_processing.schemas import (
    LABEL_COLUMN,
    ROLE_LABEL,
    ROLE_SENSOR,
    ROLE_UNKNOWN,
    SCHEMA_VERSION,
    SENSOR_COLUMNS,
    WINDOW_MARKER_COLUMN,
    WINDOW_SUMMARY_VALUE,
    classify_column,
)

log = logging.getLogger(__name__)


class SchemaError(ValueError):
    """Raised when a dataset does not match the declared sensor schema."""


@dataclass
class CleaningReport:
    schema_version: str = SCHEMA_VERSION
    rows_in: int = 0
    rows_out: int = 0
    window_rows_dropped: int = 0
    columns_in: int = 0
    columns_out: int = 0
    dropped_by_role: Dict[str, List[str]] = field(default_factory=dict)
    unknown_columns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        out = asdict(self)
        # column lists get long; counts are enough for the run summary
        out["dropped_by_role"] = {k: len(v) for k, v in self.dropped_by_role.items()}
        return out


def _is_window_row(marker: pd.Series) -> pd.Series:
    return marker.astype(str).str.strip().str.lower() == WINDOW_SUMMARY_VALUE


def drop_window_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Remove aggregated window summary rows. Frames without the marker are returned as a copy."""
    if WINDOW_MARKER_COLUMN not in df.columns:
        return df.copy()
    keep = ~_is_window_row(df[WINDOW_MARKER_COLUMN])
    return df.loc[keep].reset_index(drop=True)


def feature_columns(df: pd.DataFrame) -> List[str]:
    return [c for c in df.columns if c != LABEL_COLUMN]


def clean_with_report(df: pd.DataFrame, *, strict: bool = False) -> Tuple[pd.DataFrame, CleaningReport]:
    """
    Project a raw dataset onto the declared schema.

    Window rows are dropped first, then every column except the 52 raw sensor
    readings (and the label, when present) is removed. The result has the
    sensor columns in canonical order, numeric dtype, and a fresh RangeIndex.
    """
    if df is None:
        raise ValueError("clean_with_report received None instead of a dataframe.")

    report = CleaningReport(rows_in=int(len(df)), columns_in=int(df.shape[1]))

    missing = [c for c in SENSOR_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(
            f"Dataset is missing {len(missing)} sensor columns (example: {missing[:5]}). "
            "The source layout changed; update schemas.py and bump SCHEMA_VERSION."
        )

    for col in df.columns:
        role = classify_column(str(col))
        if role in (ROLE_SENSOR, ROLE_LABEL):
            continue
        report.dropped_by_role.setdefault(role, []).append(str(col))

    unknown = report.dropped_by_role.pop(ROLE_UNKNOWN, [])
    if unknown:
        report.unknown_columns = unknown
        if strict:
            raise SchemaError(f"Columns outside the declared schema: {unknown}")
        log.warning("Dropping %d undeclared columns: %s", len(unknown), unknown[:10])

    rows = drop_window_rows(df)
    report.window_rows_dropped = int(len(df) - len(rows))

    keep = list(SENSOR_COLUMNS)
    if LABEL_COLUMN in rows.columns:
        keep.append(LABEL_COLUMN)
    out = rows.loc[:, keep].copy()

    sensors = list(SENSOR_COLUMNS)
    out[sensors] = out[sensors].apply(pd.to_numeric, errors="coerce")
    if LABEL_COLUMN in out.columns:
        label = out[LABEL_COLUMN].astype("string").str.strip()
        unlabeled = label.fillna("").eq("").to_numpy(dtype=bool)
        if len(out) and unlabeled.all():
            # an all-blank label column is an unlabeled dataset
            log.warning("Column '%s' holds no values; dropping it.", LABEL_COLUMN)
            out = out.drop(columns=[LABEL_COLUMN])
        elif unlabeled.any():
            raise SchemaError(
                f"{int(unlabeled.sum())} rows have no '{LABEL_COLUMN}' value "
                f"(first positions: {unlabeled.nonzero()[0][:5].tolist()})."
            )
        else:
            out[LABEL_COLUMN] = label.astype(object)

    n_missing = int(out[sensors].isna().sum().sum())
    if n_missing:
        log.warning("%d missing sensor values remain after cleaning.", n_missing)

    report.rows_out = int(len(out))
    report.columns_out = int(out.shape[1])
    log.info(
        "Cleaned dataset: rows %d -> %d (%d window rows), columns %d -> %d",
        report.rows_in,
        report.rows_out,
        report.window_rows_dropped,
        report.columns_in,
        report.columns_out,
    )
    return out.reset_index(drop=True), report


def clean_dataset(df: pd.DataFrame, *, strict: bool = False) -> pd.DataFrame:
    cleaned, _ = clean_with_report(df, strict=strict)
    return cleaned


def check_same_schema(labeled: pd.DataFrame, unlabeled: pd.DataFrame) -> List[str]:
    """Both cleaned frames must expose identical feature columns in identical order."""
    a = feature_columns(labeled)
    b = feature_columns(unlabeled)
    if a != b:
        only_a: Sequence[str] = [c for c in a if c not in b]
        only_b: Sequence[str] = [c for c in b if c not in a]
        raise SchemaError(
            "Labeled and unlabeled feature schemas differ "
            f"(only labeled: {list(only_a)[:5]}, only unlabeled: {list(only_b)[:5]})."
        )
    return a
