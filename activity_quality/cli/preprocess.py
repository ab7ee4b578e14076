from __future__ import annotations

import argparse
import logging
from pathlib import Path

from activity_quality.data_processing.preprocess import persist_prepared, prepare_datasets
from activity_quality.utils.config import ensure_dirs, get_seed, load_config
from activity_quality.utils.logging import setup_logging
from activity_quality.utils.seed import set_global_seed

log = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Download and clean the labeled and unlabeled sensor datasets.")
    p.add_argument("--config", required=True, help="Path to YAML config (supports extends).")
    p.add_argument("--outdir", default=None, help="Override output.processed_dir.")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)

    ensure_dirs(cfg)
    setup_logging(level=cfg.get("logging", {}).get("level", "INFO"))
    set_global_seed(get_seed(cfg))

    processed_dir = Path(args.outdir or cfg.get("output", {}).get("processed_dir", "data/processed"))

    data = prepare_datasets(cfg)
    paths = persist_prepared(data, processed_dir)
    log.info("Labeled rows: %d | unlabeled rows: %d", len(data.labeled), len(data.unlabeled))
    log.info("Meta written to: %s", paths["meta"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
