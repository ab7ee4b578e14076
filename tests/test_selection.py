from __future__ import annotations

import pytest

from activity_quality.data_processing.cleaning import clean_dataset
from activity_quality.data_processing.splits import partition
from activity_quality.modeling.selection import ScoredTrainer, finalize, leaderboard, score_trainer, select_best
from activity_quality.modeling.trainers import build_trainer


def _scored(name, error_rate):
    return ScoredTrainer(trainer=build_trainer(name, seed=0), error_rate=error_rate)


@pytest.fixture
def part(raw_frame_factory):
    return partition(clean_dataset(raw_frame_factory(20, labeled=True, seed=8)), train_fraction=0.33, seed=4)


def test_lowest_error_wins():
    best = select_best([_scored("tree", 0.21), _scored("boosted", 0.04), _scored("forest", 0.02)])
    assert best.name == "forest"


@pytest.mark.parametrize(
    "order",
    [("tree", "boosted", "forest"), ("forest", "boosted", "tree"), ("boosted", "tree", "forest")],
)
def test_tie_prefers_simplest_family(order):
    best = select_best([_scored(n, 0.05) for n in order])
    assert best.name == "tree"


def test_tie_between_ensembles_prefers_forest():
    best = select_best([_scored("boosted", 0.01), _scored("forest", 0.01), _scored("tree", 0.3)])
    assert best.name == "forest"


def test_select_best_requires_candidates():
    with pytest.raises(ValueError):
        select_best([])


def test_select_best_rejects_nan():
    with pytest.raises(ValueError, match="not finite"):
        select_best([_scored("tree", float("nan"))])


def test_score_trainer_uses_evaluation_subset(part):
    s = score_trainer(build_trainer("tree", seed=0), part)
    assert 0.0 <= s.error_rate <= 1.0
    assert len(s.predictions) == len(part.evaluation)
    assert s.metrics["error_rate"] == s.error_rate


def test_finalize_refits_on_all_labeled_rows(part):
    model = finalize(build_trainer("tree", seed=0), part)
    assert model.n_train == len(part.train) + len(part.evaluation) == 100


def test_leaderboard_sorted_by_error():
    rows = leaderboard([_scored("tree", 0.3), _scored("forest", 0.1), _scored("boosted", 0.2)])
    assert [r["trainer"] for r in rows] == ["forest", "boosted", "tree"]
