from __future__ import annotations

import argparse
import datetime as dt
import logging
from pathlib import Path

from activity_quality.utils.config import ensure_dirs, get_seed, load_config
from activity_quality.utils.logging import setup_logging
from activity_quality.utils.seed import set_global_seed

from evaluation.common import run_pipeline

log = logging.getLogger(__name__)


def _timestamp_tag() -> str:
    return dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d_%H%M%S")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Compare tree / boosted / forest classifiers and label the unlabeled set with the best one."
    )
    parser.add_argument("--config", required=True, help="Path to YAML config (supports extends).")
    parser.add_argument("--outdir", default=None, help="Run output root. Default = output.run_dir.")
    parser.add_argument("--tag", default=None, help="Optional tag. Default = UTC timestamp.")
    parser.add_argument(
        "--trainers",
        default="tree,boosted,forest",
        help="Comma-separated candidates: tree,boosted,forest",
    )
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    ensure_dirs(cfg)
    setup_logging(cfg.get("logging", {}).get("level", "INFO"))
    seed = set_global_seed(get_seed(cfg))

    tag = args.tag or _timestamp_tag()
    outdir = Path(args.outdir or cfg.get("output", {}).get("run_dir", "outputs/runs")) / tag

    names = [t.strip().lower() for t in args.trainers.split(",") if t.strip()]
    log.info("Run %s (seed=%d, trainers=%s)", tag, seed, names)

    art = run_pipeline(cfg, outdir, trainer_names=names)
    log.info("Best trainer: %s | %d predictions in %s", art.selected, len(art.prediction_files), art.predictions_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
