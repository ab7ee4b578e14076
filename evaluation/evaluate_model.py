from __future__ import annotations

import argparse
import logging
from pathlib import Path

from activity_quality.data_processing.acquire import read_dataset
from activity_quality.data_processing.cleaning import clean_dataset
from activity_quality.data_processing.schemas import LABEL_COLUMN
from activity_quality.modeling.metrics import compute_metrics, save_confusion_csv
from activity_quality.modeling.predict import load_model, predict_labels, write_predictions
from activity_quality.utils.config import load_config
from activity_quality.utils.logging import setup_logging

from evaluation.common import save_json

log = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Apply a saved final model to a raw CSV.")
    parser.add_argument("--config", required=True)
    parser.add_argument("--model", required=True, help="Path to final_model.joblib from a run.")
    parser.add_argument("--csv", required=True, help="Raw CSV in the source layout (labeled or not).")
    parser.add_argument("--out", required=True, help="Output directory for metrics or prediction files.")
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    setup_logging(cfg.get("logging", {}).get("level", "INFO"))
    strict = bool(cfg.get("cleaning", {}).get("strict", False))

    model = load_model(args.model)
    df = clean_dataset(read_dataset(args.csv), strict=strict)
    y_pred = predict_labels(model, df)

    out_dir = Path(args.out)
    if LABEL_COLUMN in df.columns:
        y_true = df[LABEL_COLUMN].astype(str).to_numpy()
        metrics = {"trainer": model.trainer, "n_rows": int(len(df)), "metrics": compute_metrics(y_true, y_pred)}
        save_json(out_dir / "eval.json", metrics)
        labels = sorted(set(model.classes) | set(y_true.tolist()))
        save_confusion_csv(y_true, y_pred, labels=labels, out_csv=out_dir / "confusion_eval.csv")
        log.info("[%s] error rate = %.4f", model.trainer, metrics["metrics"]["error_rate"])
    else:
        template = str(cfg.get("output", {}).get("prediction_filename", "problem_id_{index}.txt"))
        write_predictions(y_pred, out_dir, filename_template=template)

    log.info("Results written to: %s", out_dir.as_posix())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
