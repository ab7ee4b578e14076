from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.preprocessing import LabelEncoder
from sklearn.tree import DecisionTreeClassifier

from activity_quality.data_processing.cleaning import SchemaError
from activity_quality.data_processing.schemas import LABEL_COLUMN, SENSOR_COLUMNS

log = logging.getLogger(__name__)


@dataclass
class FittedModel:
    trainer: str
    estimator: BaseEstimator
    label_encoder: LabelEncoder
    feature_cols: List[str]
    n_train: int

    @property
    def classes(self) -> List[str]:
        return [str(c) for c in self.label_encoder.classes_]


def make_xy(
    df: pd.DataFrame,
    feature_cols: Sequence[str],
    *,
    label_col: Optional[str] = LABEL_COLUMN,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    missing = [c for c in feature_cols if c not in df.columns]
    if missing:
        raise SchemaError(
            f"Missing {len(missing)} feature columns (example: {missing[:10]}). "
            "Clean both datasets with clean_dataset() before training or predicting."
        )
    X = df.loc[:, list(feature_cols)].copy().fillna(0.0)
    y = None
    if label_col is not None:
        if label_col not in df.columns:
            raise SchemaError(f"Label column '{label_col}' not found in dataset.")
        if df[label_col].isna().any():
            raise SchemaError(f"{int(df[label_col].isna().sum())} rows have no '{label_col}' value.")
        y = df[label_col].astype(str).to_numpy()
    return X.to_numpy(dtype=float), y


@dataclass
class Trainer:
    """A named classifier family: builds a fresh estimator, fits it, predicts labels."""

    name: str
    complexity: int
    factory: Callable[[], BaseEstimator]
    params: Dict[str, Any] = field(default_factory=dict)
    feature_cols: Sequence[str] = SENSOR_COLUMNS

    def fit(self, df: pd.DataFrame, label_col: str = LABEL_COLUMN) -> FittedModel:
        X, y = make_xy(df, self.feature_cols, label_col=label_col)
        if len(X) == 0:
            raise ValueError(f"[{self.name}] cannot fit on an empty dataset.")

        le = LabelEncoder()
        y_enc = le.fit_transform(y)

        estimator = self.factory()
        log.info("[%s] Fitting %s on %d rows x %d features", self.name, estimator.__class__.__name__, *X.shape)
        estimator.fit(X, y_enc)

        return FittedModel(
            trainer=self.name,
            estimator=estimator,
            label_encoder=le,
            feature_cols=list(self.feature_cols),
            n_train=int(len(X)),
        )

    def predict(self, model: FittedModel, df: pd.DataFrame) -> np.ndarray:
        return predict_with(model, df)


def predict_with(model: FittedModel, df: pd.DataFrame) -> np.ndarray:
    X, _ = make_xy(df, model.feature_cols, label_col=None)
    if len(X) == 0:
        return np.array([], dtype=object)
    y_enc = model.estimator.predict(X)
    return np.asarray(model.label_encoder.inverse_transform(y_enc)).astype(str)


def _tree(seed: int, params: Mapping[str, Any]) -> Callable[[], BaseEstimator]:
    def make() -> BaseEstimator:
        return DecisionTreeClassifier(
            max_depth=params.get("max_depth"),
            min_samples_leaf=int(params.get("min_samples_leaf", 1)),
            random_state=seed,
        )

    return make


def _boosted(seed: int, params: Mapping[str, Any]) -> Callable[[], BaseEstimator]:
    def make() -> BaseEstimator:
        return GradientBoostingClassifier(
            n_estimators=int(params.get("n_estimators", 150)),
            learning_rate=float(params.get("learning_rate", 0.1)),
            max_depth=int(params.get("max_depth", 3)),
            subsample=float(params.get("subsample", 1.0)),
            random_state=seed,
        )

    return make


def _forest(seed: int, params: Mapping[str, Any]) -> Callable[[], BaseEstimator]:
    def make() -> BaseEstimator:
        return RandomForestClassifier(
            n_estimators=int(params.get("n_estimators", 300)),
            max_features=params.get("max_features", "sqrt"),
            bootstrap=True,
            n_jobs=params.get("n_jobs", -1),
            random_state=seed,
        )

    return make


# name -> (complexity rank, factory builder). Rank breaks ties in selection.
TRAINER_FAMILIES: Dict[str, Tuple[int, Callable[[int, Mapping[str, Any]], Callable[[], BaseEstimator]]]] = {
    "tree": (0, _tree),
    "forest": (1, _forest),
    "boosted": (2, _boosted),
}

DEFAULT_ORDER = ("tree", "boosted", "forest")


def build_trainer(name: str, seed: int, params: Optional[Mapping[str, Any]] = None) -> Trainer:
    key = (name or "").strip().lower()
    if key not in TRAINER_FAMILIES:
        raise ValueError(f"Unknown trainer '{name}'. Choose from: {sorted(TRAINER_FAMILIES)}")
    rank, builder = TRAINER_FAMILIES[key]
    params = dict(params or {})
    return Trainer(name=key, complexity=rank, factory=builder(int(seed), params), params=params)


def build_trainers(
    cfg: Mapping[str, Any],
    seed: int,
    names: Optional[Sequence[str]] = None,
) -> List[Trainer]:
    """Trainers for `names` (default: tree, boosted, forest) with params from cfg['trainers']."""
    section = cfg.get("trainers", {}) or {}
    wanted = list(names) if names else list(DEFAULT_ORDER)
    if not wanted:
        raise ValueError("No trainers requested.")
    return [build_trainer(n, seed, section.get(n.strip().lower())) for n in wanted]
