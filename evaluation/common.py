from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from activity_quality.data_processing.preprocess import PreparedData, prepare_datasets
from activity_quality.data_processing.schemas import LABEL_COLUMN, SCHEMA_VERSION
from activity_quality.data_processing.splits import Partition, partition
from activity_quality.modeling.metrics import save_confusion_csv
from activity_quality.modeling.predict import predict_labels, save_model, write_predictions
from activity_quality.modeling.selection import ScoredTrainer, finalize, leaderboard, score_trainer, select_best
from activity_quality.modeling.trainers import Trainer, build_trainers
from activity_quality.utils.config import get_seed
from activity_quality.utils.timer import timed

log = logging.getLogger(__name__)


@dataclass
class RunArtifacts:
    out_dir: str
    summary_path: str
    predictions_dir: str
    prediction_files: List[str]
    selected: str
    model_path: Optional[str] = None


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def save_json(path: str | Path, obj: Any) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False, default=str), encoding="utf-8")


def load_parquet(path: str | Path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing parquet file: {path}")
    return pd.read_parquet(path)


def compare_trainers(trainers: Sequence[Trainer], part: Partition, out_dir: Path) -> List[ScoredTrainer]:
    """Score every trainer on the same partition; per-trainer metrics go under out_dir/<trainer>/."""
    y_true = part.evaluation[LABEL_COLUMN].astype(str).to_numpy()
    labels = sorted(set(y_true.tolist()) | set(part.train[LABEL_COLUMN].astype(str)))

    scored: List[ScoredTrainer] = []
    for trainer in trainers:
        s = score_trainer(trainer, part)
        scored.append(s)

        trainer_dir = out_dir / trainer.name
        save_json(trainer_dir / "metrics.json", {"trainer": trainer.name, "params": trainer.params, "evaluation": s.metrics})
        if s.predictions is not None:
            save_confusion_csv(y_true, s.predictions, labels=labels, out_csv=trainer_dir / "confusion_evaluation.csv")
    return scored


def run_pipeline(
    cfg: Mapping[str, Any],
    out_dir: str | Path,
    *,
    trainer_names: Optional[Sequence[str]] = None,
    data: Optional[PreparedData] = None,
) -> RunArtifacts:
    """
    Acquire, clean, partition, score the candidate trainers, refit the best
    one on all labeled rows and write one prediction file per unlabeled row.
    """
    out_dir = Path(out_dir)
    ensure_dir(out_dir)

    seed = get_seed(cfg)
    split_cfg = cfg.get("split", {}) or {}
    out_cfg = cfg.get("output", {}) or {}
    timings: Dict[str, float] = {}

    if data is None:
        data = prepare_datasets(cfg)
    timings.update(data.timings)

    with timed("partition", timings):
        part = partition(
            data.labeled,
            train_fraction=float(split_cfg.get("train_fraction", 0.33)),
            seed=seed,
            stratify_col=LABEL_COLUMN,
        )

    trainers = build_trainers(cfg, seed, names=trainer_names)
    with timed("train_and_score", timings):
        scored = compare_trainers(trainers, part, out_dir)

    best = select_best(scored)
    log.info("Selected trainer: %s (error rate %.4f)", best.name, best.error_rate)

    with timed("finalize", timings):
        final_model = finalize(best.trainer, part)

    with timed("predict", timings):
        labels = predict_labels(final_model, data.unlabeled)
        pred_dir = out_dir / str(out_cfg.get("predictions_subdir", "predictions"))
        files = write_predictions(
            labels,
            pred_dir,
            filename_template=str(out_cfg.get("prediction_filename", "problem_id_{index}.txt")),
        )

    model_path: Optional[Path] = None
    if bool(out_cfg.get("save_model", False)):
        model_path = save_model(final_model, out_dir / "final_model.joblib")

    summary = {
        "schema_version": SCHEMA_VERSION,
        "config": cfg.get("_meta", {}).get("config_path"),
        "config_sources": cfg.get("_meta", {}).get("sources", []),
        "seed": seed,
        "partition": {**part.sizes(), "train_fraction": part.train_fraction, "stratified": part.stratified},
        "cleaning": {k: v.to_dict() for k, v in data.reports.items()},
        "leaderboard": leaderboard(scored),
        "selected": {"trainer": best.name, "error_rate": best.error_rate, "n_train_final": final_model.n_train},
        "predictions": {"dir": str(pred_dir), "n": len(files), "labels": labels},
        "model_path": str(model_path) if model_path else None,
        "timings_sec": timings,
    }
    summary_path = out_dir / "run_summary.json"
    save_json(summary_path, summary)
    log.info("Saved run summary: %s", summary_path.as_posix())

    return RunArtifacts(
        out_dir=str(out_dir),
        summary_path=str(summary_path),
        predictions_dir=str(pred_dir),
        prediction_files=[str(p) for p in files],
        selected=best.name,
        model_path=str(model_path) if model_path else None,
    )
