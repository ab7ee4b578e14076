from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping/dict: {path}")
    return data


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges override into base (override wins).
    """
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, Mapping):
            out[k] = _deep_merge(out[k], v)  # type: ignore[arg-type]
        else:
            out[k] = v
    return out


def _parents(cfg: Mapping[str, Any], path: Path) -> List[Path]:
    extends = cfg.get("extends")
    if not extends:
        return []
    names = [extends] if isinstance(extends, (str, Path)) else extends
    if not isinstance(names, list) or not all(isinstance(n, (str, Path)) for n in names):
        raise ValueError(f"{path.name}: 'extends' must be a file name or a list of file names.")
    # relative to the file that names them
    return [p if p.is_absolute() else (path.parent / p).resolve() for p in map(Path, names)]


def _load_chain(path: Path, stack: Tuple[Path, ...], sources: List[str]) -> Dict[str, Any]:
    path = path.resolve()
    if path in stack:
        chain = " -> ".join(p.name for p in stack + (path,))
        raise ValueError(f"Config inheritance cycle: {chain}")
    own = load_yaml(path)

    merged: Dict[str, Any] = {}
    for parent in _parents(own, path):
        merged = _deep_merge(merged, _load_chain(parent, stack + (path,), sources))
    own.pop("extends", None)
    sources.append(str(path))
    return _deep_merge(merged, own)


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a run config. A file may name one or more parents under `extends:`;
    parents merge first (in listed order) and the file's own keys win.

    `_meta.config_path` records the file asked for and `_meta.sources` every
    file read, base first.
    """
    sources: List[str] = []
    cfg = _load_chain(Path(path), (), sources)
    meta = cfg.setdefault("_meta", {})
    meta["config_path"] = sources[-1]
    meta["sources"] = sources
    return cfg


def get_seed(cfg: Mapping[str, Any], default: int = 42) -> int:
    return int((cfg.get("project", {}) or {}).get("seed", default))


def ensure_dirs(cfg: Dict[str, Any]) -> None:
    """
    Creates directories the pipeline writes into. Safe to call multiple times.

    Expected config layout:
      datasets:
        labeled:   {url: ..., cache_path: data/raw/pml-training.csv}
        unlabeled: {url: ..., cache_path: data/raw/pml-testing.csv}
      output:
        processed_dir: data/processed
        run_dir: outputs/runs
    """
    datasets = cfg.get("datasets", {}) or {}
    if isinstance(datasets, dict):
        for ds in datasets.values():
            if isinstance(ds, dict) and ds.get("cache_path"):
                Path(ds["cache_path"]).parent.mkdir(parents=True, exist_ok=True)

    output = cfg.get("output", {}) or {}
    if isinstance(output, dict):
        for key, p in output.items():
            if not key.endswith("_dir"):
                continue
            if isinstance(p, (str, Path)) and str(p).strip():
                Path(p).mkdir(parents=True, exist_ok=True)
