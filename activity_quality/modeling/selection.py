from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from activity_quality.data_processing.schemas import LABEL_COLUMN
from activity_quality.data_processing.splits import Partition
from activity_quality.modeling.metrics import compute_metrics
from activity_quality.modeling.trainers import FittedModel, Trainer

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ScoredTrainer:
    trainer: Trainer
    error_rate: float
    metrics: Optional[Dict[str, float]] = None
    predictions: Optional[np.ndarray] = None

    @property
    def name(self) -> str:
        return self.trainer.name


def score_trainer(trainer: Trainer, part: Partition) -> ScoredTrainer:
    """Fit on the training subset, score on the evaluation subset."""
    model = trainer.fit(part.train)
    y_pred = trainer.predict(model, part.evaluation)
    if LABEL_COLUMN not in part.evaluation.columns:
        raise KeyError(f"Evaluation subset has no '{LABEL_COLUMN}' column.")
    y_true = part.evaluation[LABEL_COLUMN].astype(str).to_numpy()
    metrics = compute_metrics(y_true, y_pred)
    log.info("[%s] evaluation error rate = %.4f", trainer.name, metrics["error_rate"])
    return ScoredTrainer(trainer=trainer, error_rate=metrics["error_rate"], metrics=metrics, predictions=y_pred)


def select_best(scored: Sequence[ScoredTrainer]) -> ScoredTrainer:
    """
    Lowest error rate wins. Equal rates go to the simpler family
    (lower complexity rank), then to the alphabetically first name.
    """
    if not scored:
        raise ValueError("select_best needs at least one scored trainer.")
    for s in scored:
        if not np.isfinite(s.error_rate):
            raise ValueError(f"[{s.name}] error rate is not finite: {s.error_rate}")
    best = min(scored, key=lambda s: (s.error_rate, s.trainer.complexity, s.name))
    tied = [s.name for s in scored if s.error_rate == best.error_rate]
    if len(tied) > 1:
        log.info("Error-rate tie between %s; picked simplest: %s", tied, best.name)
    return best


def finalize(trainer: Trainer, part: Partition) -> FittedModel:
    """Refit the chosen family on every labeled row (training + evaluation)."""
    full = part.full()
    log.info("[%s] Refitting on full labeled dataset (%d rows)", trainer.name, len(full))
    return trainer.fit(full)


def leaderboard(scored: Sequence[ScoredTrainer]) -> List[Dict[str, Any]]:
    rows = sorted(scored, key=lambda s: (s.error_rate, s.trainer.complexity, s.name))
    return [
        {"trainer": s.name, "complexity": s.trainer.complexity, "error_rate": s.error_rate, "metrics": s.metrics or {}}
        for s in rows
    ]
