from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, confusion_matrix, f1_score


def _as_labels(values: Sequence) -> np.ndarray:
    return np.asarray(values, dtype=object).astype(str)


def misclassification_rate(y_true: Sequence, y_pred: Sequence) -> float:
    """Fraction of positions where the predicted label differs from the true one."""
    t = _as_labels(y_true)
    p = _as_labels(y_pred)
    if t.shape != p.shape:
        raise ValueError(f"Label sequences differ in length: {t.shape[0]} vs {p.shape[0]}")
    if t.size == 0:
        raise ValueError("misclassification_rate needs at least one label.")
    return int(np.count_nonzero(t != p)) / int(t.size)


def compute_metrics(y_true: Sequence, y_pred: Sequence) -> Dict[str, float]:
    t = _as_labels(y_true)
    p = _as_labels(y_pred)
    return {
        "error_rate": misclassification_rate(t, p),
        "accuracy": float(accuracy_score(t, p)),
        "f1_macro": float(f1_score(t, p, average="macro", zero_division=0)),
        "f1_weighted": float(f1_score(t, p, average="weighted", zero_division=0)),
    }


def save_confusion_csv(
    y_true: Sequence,
    y_pred: Sequence,
    *,
    labels: Sequence[str],
    out_csv: Union[str, Path],
) -> Path:
    cm = confusion_matrix(_as_labels(y_true), _as_labels(y_pred), labels=list(labels))
    df_cm = pd.DataFrame(cm, index=list(labels), columns=list(labels))
    out_csv = Path(out_csv)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_cm.to_csv(out_csv, index=True)
    return out_csv
