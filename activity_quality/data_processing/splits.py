from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from activity_quality.data_processing.schemas import LABEL_COLUMN

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Partition:
    train: pd.DataFrame
    evaluation: pd.DataFrame
    train_idx: np.ndarray
    evaluation_idx: np.ndarray
    seed: int
    train_fraction: float
    stratified: bool

    def full(self) -> pd.DataFrame:
        """Training and evaluation rows back together, in original row order."""
        both = pd.concat([self.train, self.evaluation], ignore_index=True)
        order = np.argsort(np.concatenate([self.train_idx, self.evaluation_idx]), kind="stable")
        return both.iloc[order].reset_index(drop=True)

    def sizes(self) -> Dict[str, int]:
        return {"train": int(len(self.train)), "evaluation": int(len(self.evaluation))}


def _safe_stratify(df: pd.DataFrame, stratify_col: Optional[str]) -> Optional[pd.Series]:
    if not stratify_col or stratify_col not in df.columns:
        return None
    vc = df[stratify_col].value_counts(dropna=False)
    # Need at least 2 classes and each class at least 2 samples for stratify to be valid.
    if vc.shape[0] < 2:
        return None
    if vc.min() < 2:
        return None
    return df[stratify_col]


def partition(
    df: pd.DataFrame,
    train_fraction: float = 0.33,
    seed: int = 42,
    stratify_col: Optional[str] = LABEL_COLUMN,
) -> Partition:
    """
    Split `df` into a training subset of ~`train_fraction` rows and an
    evaluation subset holding the rest. Same seed and same input give the
    same assignment.
    """
    if df is None or df.empty:
        raise ValueError("partition received an empty dataframe.")
    if not 0.0 < float(train_fraction) < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    n = len(df)
    if n < 2:
        raise ValueError(f"partition needs at least 2 rows, got {n}")

    stratify = _safe_stratify(df, stratify_col)
    if stratify_col and stratify is None:
        log.warning("Cannot stratify on '%s' (rare or single class). Using a plain random split.", stratify_col)

    n_train = int(np.floor(float(train_fraction) * n))
    n_train = min(max(n_train, 1), n - 1)  # keep both sides non-empty

    if stratify is not None:
        n_classes = int(stratify.nunique(dropna=False))
        if min(n_train, n - n_train) < n_classes:
            log.warning(
                "Subset too small to hold all %d classes (train=%d, evaluation=%d). Using a plain random split.",
                n_classes,
                n_train,
                n - n_train,
            )
            stratify = None

    positions = np.arange(n)
    train_idx, eval_idx = train_test_split(
        positions,
        train_size=n_train,
        random_state=int(seed),
        stratify=stratify.to_numpy() if stratify is not None else None,
    )
    train_idx = np.sort(train_idx)
    eval_idx = np.sort(eval_idx)

    result = Partition(
        train=df.iloc[train_idx].reset_index(drop=True),
        evaluation=df.iloc[eval_idx].reset_index(drop=True),
        train_idx=train_idx,
        evaluation_idx=eval_idx,
        seed=int(seed),
        train_fraction=float(train_fraction),
        stratified=stratify is not None,
    )
    log.info("Partition (seed=%d, p=%.2f): %s", result.seed, result.train_fraction, result.sizes())
    return result
