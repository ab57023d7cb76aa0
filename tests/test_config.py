from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from algo_judge.config import Algorithm, ScoringRules, SizeBucket, default_scoring, load_config
from algo_judge.presets import get_preset


def test_algorithm_kinds() -> None:
    assert Algorithm.SRTF.is_preemptive
    assert not Algorithm.SJF.is_preemptive
    assert Algorithm.WORST_FIT.is_allocation
    assert not Algorithm.FCFS.is_allocation


def test_default_scoring() -> None:
    srtf = default_scoring(Algorithm.SRTF)
    assert (srtf.correct, srtf.completion_bonus, srtf.wrong) == (20, 50, -10)
    assert srtf.preemption_bonus == 20
    assert srtf.pending_penalty_per_unit == 2.0
    assert default_scoring(Algorithm.FCFS).completion_bonus == 100
    assert default_scoring(Algorithm.BEST_FIT).correct == 100
    assert default_scoring(Algorithm.BEST_FIT).wrong == -20


def test_explicit_scoring_wins() -> None:
    config = get_preset("worst-fit-toolbox")
    assert config.effective_scoring() == ScoringRules(correct=20, wrong=-20)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "both", "size": 3, "size_range": (1, 4)},
        {"name": "neither"},
        {"name": "backwards", "size_range": (5, 2)},
    ],
)
def test_bucket_needs_one_valid_size(kwargs) -> None:
    with pytest.raises(ValidationError):
        SizeBucket(**kwargs)


def test_load_config(tmp_path) -> None:
    path = tmp_path / "lesson.json"
    path.write_text(
        json.dumps({"algorithm": "srtf", "entities": [{"arrival_time": 0, "burst_time": 4, "label": "Patient"}]}),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.algorithm is Algorithm.SRTF
    assert config.entities[0].label == "Patient"
    assert config.scoring is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"wrong": 5},
        {"correct": -1},
        {"completion_bonus": -50},
        {"preemption_bonus": -20},
        {"pending_penalty_per_unit": -2.0},
    ],
)
def test_scoring_signs_are_enforced(kwargs) -> None:
    with pytest.raises(ValidationError):
        ScoringRules(**kwargs)
