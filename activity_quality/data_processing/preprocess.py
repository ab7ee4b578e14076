from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import pandas as pd

from activity_quality.data_processing.acquire import load_configured_dataset
from activity_quality.data_processing.cleaning import CleaningReport, check_same_schema, clean_with_report
from activity_quality.data_processing.schemas import LABEL_COLUMN, describe_schema
from activity_quality.utils.timer import timed

log = logging.getLogger(__name__)


@dataclass
class PreparedData:
    labeled: pd.DataFrame
    unlabeled: pd.DataFrame
    reports: Dict[str, CleaningReport]
    timings: Dict[str, float] = field(default_factory=dict)

    def meta(self) -> Dict[str, Any]:
        return {
            "schema": describe_schema(),
            "labeled": self.reports["labeled"].to_dict(),
            "unlabeled": self.reports["unlabeled"].to_dict(),
            "class_counts": {str(k): int(v) for k, v in self.labeled[LABEL_COLUMN].value_counts().sort_index().items()},
            "timings_sec": self.timings,
        }


def prepare_datasets(cfg: Mapping[str, Any]) -> PreparedData:
    """Acquire both datasets and clean them with the same declared schema."""
    strict = bool((cfg.get("cleaning", {}) or {}).get("strict", False))
    timings: Dict[str, float] = {}

    with timed("acquire", timings):
        raw_labeled = load_configured_dataset(cfg, "labeled")
        raw_unlabeled = load_configured_dataset(cfg, "unlabeled")

    with timed("clean", timings):
        labeled, rep_l = clean_with_report(raw_labeled, strict=strict)
        unlabeled, rep_u = clean_with_report(raw_unlabeled, strict=strict)

    if LABEL_COLUMN not in labeled.columns:
        raise KeyError(f"Labeled dataset has no '{LABEL_COLUMN}' column after cleaning.")
    if LABEL_COLUMN in unlabeled.columns:
        log.warning("Unlabeled dataset carries a '%s' column; it is ignored for prediction.", LABEL_COLUMN)
        unlabeled = unlabeled.drop(columns=[LABEL_COLUMN])

    check_same_schema(labeled, unlabeled)

    return PreparedData(
        labeled=labeled,
        unlabeled=unlabeled,
        reports={"labeled": rep_l, "unlabeled": rep_u},
        timings=timings,
    )


def persist_prepared(data: PreparedData, processed_dir: Path) -> Dict[str, str]:
    processed_dir = Path(processed_dir)
    processed_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "labeled": processed_dir / "labeled_clean.parquet",
        "unlabeled": processed_dir / "unlabeled_clean.parquet",
        "meta": processed_dir / "preprocess_meta.json",
    }
    with timed("persist", data.timings):
        data.labeled.to_parquet(paths["labeled"], index=False)
        data.unlabeled.to_parquet(paths["unlabeled"], index=False)
        paths["meta"].write_text(json.dumps(data.meta(), indent=2), encoding="utf-8")

    log.info("Preprocessing complete: %s", processed_dir.as_posix())
    return {k: str(v) for k, v in paths.items()}
