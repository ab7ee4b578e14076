from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import pandas as pd
import requests
from tqdm import tqdm

log = logging.getLogger(__name__)

# Spreadsheet artefacts found in the window-statistic columns of the source CSVs
NA_VALUES = ["NA", "", "#DIV/0!"]

CHUNK_SIZE = 1 << 16


def fetch_dataset(url: str, cache_path: Union[str, Path], *, timeout: float = 120.0) -> Path:
    """
    Download `url` to `cache_path` unless the file is already there.

    Network and HTTP errors propagate unchanged. The body is written to a
    temporary sibling first, so an interrupted download never leaves a
    partial cache file behind.
    """
    cache_path = Path(cache_path)
    if cache_path.exists():
        log.info("Using cached dataset: %s", cache_path.as_posix())
        return cache_path

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = cache_path.with_name(cache_path.name + ".part")

    log.info("Downloading %s -> %s", url, cache_path.as_posix())
    try:
        with requests.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            total = int(resp.headers.get("Content-Length", 0)) or None
            with tmp_path.open("wb") as f, tqdm(
                total=total, unit="B", unit_scale=True, desc=cache_path.name, disable=None
            ) as bar:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        bar.update(len(chunk))
        os.replace(tmp_path, cache_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    log.info("Saved %s (%d bytes)", cache_path.as_posix(), cache_path.stat().st_size)
    return cache_path


def read_dataset(path: Union[str, Path]) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing dataset file: {path}")
    df = pd.read_csv(path, na_values=NA_VALUES, low_memory=False)
    log.info("Read %s: %d rows x %d columns", path.name, len(df), df.shape[1])
    return df


def load_dataset(url: str, cache_path: Union[str, Path], *, timeout: float = 120.0) -> pd.DataFrame:
    return read_dataset(fetch_dataset(url, cache_path, timeout=timeout))


def load_configured_dataset(cfg: Mapping[str, Any], name: str) -> pd.DataFrame:
    """Load `datasets.<name>` from a config dict (url + cache_path)."""
    datasets: Dict[str, Any] = cfg.get("datasets", {}) or {}
    ds = datasets.get(name)
    if not ds:
        raise KeyError(
            f"Config is missing datasets.{name}. Use config/base.yaml or add:\n"
            "datasets:\n"
            f"  {name}:\n"
            "    url: https://...\n"
            "    cache_path: data/raw/...\n"
        )
    timeout = float((cfg.get("download", {}) or {}).get("timeout", 120))
    return load_dataset(str(ds["url"]), ds["cache_path"], timeout=timeout)
