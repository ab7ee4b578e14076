from __future__ import annotations

from pathlib import Path

import pytest

from activity_quality.utils.config import ensure_dirs, get_seed, load_config

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def test_extends_merges_parent_first(tmp_path):
    (tmp_path / "base.yaml").write_text(
        "project:\n  seed: 1\nsplit:\n  train_fraction: 0.33\ntrainers:\n  forest:\n    n_estimators: 300\n    n_jobs: -1\n",
        encoding="utf-8",
    )
    (tmp_path / "child.yaml").write_text(
        "extends: base.yaml\nproject:\n  seed: 2\ntrainers:\n  forest:\n    n_estimators: 5\n",
        encoding="utf-8",
    )

    cfg = load_config(tmp_path / "child.yaml")

    assert get_seed(cfg) == 2
    assert cfg["split"]["train_fraction"] == 0.33
    assert cfg["trainers"]["forest"] == {"n_estimators": 5, "n_jobs": -1}
    assert "extends" not in cfg
    assert cfg["_meta"]["config_path"].endswith("child.yaml")
    assert [Path(p).name for p in cfg["_meta"]["sources"]] == ["base.yaml", "child.yaml"]


def test_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_root_must_be_mapping(tmp_path):
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_bad_extends_type(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("extends: 3\n", encoding="utf-8")
    with pytest.raises(ValueError, match="extends"):
        load_config(p)


def test_extends_list_merges_in_order(tmp_path):
    (tmp_path / "a.yaml").write_text("split:\n  train_fraction: 0.2\noutput:\n  save_model: false\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("split:\n  train_fraction: 0.4\n", encoding="utf-8")
    (tmp_path / "run.yaml").write_text("extends: [a.yaml, b.yaml]\n", encoding="utf-8")

    cfg = load_config(tmp_path / "run.yaml")

    assert cfg["split"]["train_fraction"] == 0.4
    assert cfg["output"]["save_model"] is False


def test_inheritance_cycle_is_reported(tmp_path):
    (tmp_path / "a.yaml").write_text("extends: b.yaml\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("extends: a.yaml\n", encoding="utf-8")
    with pytest.raises(ValueError, match="cycle: a.yaml -> b.yaml -> a.yaml"):
        load_config(tmp_path / "a.yaml")


def test_shipped_configs_load():
    base = load_config(CONFIG_DIR / "base.yaml")
    fast = load_config(CONFIG_DIR / "fast.yaml")

    assert base["split"]["train_fraction"] == 0.33
    assert base["datasets"]["labeled"]["url"].startswith("https://")
    assert fast["trainers"]["boosted"]["n_estimators"] == 30
    assert fast["trainers"]["boosted"]["learning_rate"] == base["trainers"]["boosted"]["learning_rate"]


def test_ensure_dirs(tmp_path):
    cfg = {
        "datasets": {"labeled": {"cache_path": str(tmp_path / "raw" / "a.csv")}},
        "output": {"run_dir": str(tmp_path / "runs"), "prediction_filename": "problem_id_{index}.txt"},
    }
    ensure_dirs(cfg)
    ensure_dirs(cfg)

    assert (tmp_path / "raw").is_dir()
    assert (tmp_path / "runs").is_dir()
    assert not (tmp_path / "raw" / "a.csv").exists()
