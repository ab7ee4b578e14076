from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Sequence, Union

import joblib
import pandas as pd

from activity_quality.modeling.trainers import FittedModel, predict_with

log = logging.getLogger(__name__)

DEFAULT_FILENAME = "problem_id_{index}.txt"


def predict_labels(model: FittedModel, df: pd.DataFrame) -> List[str]:
    """One label per row of `df`, in row order."""
    return [str(x) for x in predict_with(model, df)]


def _remove_stale(out_dir: Path, filename_template: str) -> None:
    """Delete prediction files from an earlier run that match the template."""
    head, _, tail = filename_template.partition("{index}")
    pattern = re.compile(re.escape(head) + r"\d+" + re.escape(tail))
    stale = [p for p in out_dir.iterdir() if p.is_file() and pattern.fullmatch(p.name)]
    for p in stale:
        p.unlink()
    if stale:
        log.info("Removed %d old prediction files from %s", len(stale), out_dir.as_posix())


def write_predictions(
    labels: Sequence[str],
    out_dir: Union[str, Path],
    filename_template: str = DEFAULT_FILENAME,
) -> List[Path]:
    """
    Write prediction i (1-based) to `out_dir / filename_template.format(index=i)`.
    Each file holds the bare label: no header, quoting or trailing newline.
    """
    if "{index}" not in filename_template:
        raise ValueError(f"filename_template must contain '{{index}}': {filename_template!r}")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    _remove_stale(out_dir, filename_template)

    paths: List[Path] = []
    for i, label in enumerate(labels, start=1):
        p = out_dir / filename_template.format(index=i)
        p.write_text(str(label), encoding="utf-8")
        paths.append(p)

    log.info("Wrote %d prediction files to %s", len(paths), out_dir.as_posix())
    return paths


def save_model(model: FittedModel, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(model, path)
    log.info("[%s] Saved final model to %s", model.trainer, path.as_posix())
    return path


def load_model(path: Union[str, Path]) -> FittedModel:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing model artifact: {path}")
    model = joblib.load(path)
    if not isinstance(model, FittedModel):
        raise TypeError(f"{path} does not contain a FittedModel (got {type(model).__name__}).")
    return model
