from __future__ import annotations

import pytest

from algo_judge.config import Algorithm, EntitySpec, ResourceSpec, ScenarioConfig
from algo_judge.errors import ScenarioConfigError
from algo_judge.presets import get_preset
from algo_judge.simulator.entity import EntityStatus
from algo_judge.simulator.phases import Phase
from algo_judge.simulator.scenario import Scenario
from algo_judge.simulator.strategy_base import Action
from algo_judge.simulator.validator import VerdictReason


def _config(algorithm: Algorithm, pairs, capacities=()) -> ScenarioConfig:
    return ScenarioConfig(
        algorithm=algorithm,
        entities=[EntitySpec(arrival_time=a, burst_time=b) for a, b in pairs],
        resources=[ResourceSpec(capacity=c) for c in capacities],
    )


# ---------- initialize ----------

def test_initialize_accepts_a_mapping() -> None:
    scenario = Scenario.initialize(
        {
            "scenario_id": "mapping",
            "algorithm": "sjf",
            "entities": [{"burst_time": 3}, {"burst_time": 1}],
        }
    )
    assert scenario.phase is Phase.INTRO
    assert scenario.strategy.name == "sjf"
    assert [e.entity_id for e in scenario.generator.plan] == [1, 2]


@pytest.mark.parametrize(
    "payload",
    [
        {"algorithm": "fcfs", "entities": []},
        {"algorithm": "fcfs", "entities": [{"burst_time": 0}]},
        {"algorithm": "fcfs", "entities": [{"burst_time": 2, "arrival_time": -1}]},
        {"algorithm": "fcfs", "entities": [{"entity_id": 1, "burst_time": 2}, {"entity_id": 1, "burst_time": 3}]},
        {"algorithm": "first_fit", "entities": [{"burst_time": 2}]},
        {"algorithm": "sjf", "entities": [{"burst_time": 2}], "resources": [{"capacity": 1}, {"capacity": 1}]},
        {"algorithm": "lottery", "entities": [{"burst_time": 2}]},
        {"algorithm": "fcfs", "mode": "randomized"},
        {
            "algorithm": "first_fit",
            "mode": "randomized",
            "randomized": {
                "min_count": 5,
                "max_count": 6,
                "buckets": [{"name": "truck", "size": 100, "max_count": 4}],
            },
            "resources": [{"capacity": 100}],
        },
        {"algorithm": "fcfs", "entities": [{"burst_time": 2}], "scoring": {"wrong": 5}},
        {"algorithm": "sjf", "entities": [{"burst_time": 2}], "scoring": {"correct": -20}},
    ],
)
def test_invalid_configuration_is_fatal(payload) -> None:
    with pytest.raises(ScenarioConfigError):
        Scenario.initialize(payload)


# ---------- Reference scenarios ----------

def test_fcfs_serves_strictly_by_arrival(started, play_canonical) -> None:
    scenario = started("fcfs-basics")
    order = [a.entity_id for a in play_canonical(scenario)]
    assert order == [1, 2, 3]

    summary = scenario.finalize()
    completion = {s.entity_id: s.completion_time for s in summary.entities}
    assert completion == {1: 4, 2: 6, 3: 7}
    assert summary.accuracy == 100.0


def test_fcfs_wrong_order_is_scored(started) -> None:
    scenario = started("fcfs-basics")
    scenario.submit(Action(1, 1))
    scenario.advance(4)
    verdict = scenario.submit(Action(3, 1))
    assert verdict.reason is VerdictReason.WRONG_CHOICE
    assert verdict.canonical == Action(2, 1)


def test_sjf_serves_shortest_burst_first(started, play_canonical) -> None:
    scenario = started("sjf-basics")
    taken = play_canonical(scenario)
    bursts = [scenario.state.entities.get(a.entity_id).burst_time for a in taken]
    assert bursts == [2, 4, 6, 8]


def test_srtf_prefers_new_arrival_the_instant_it_arrives(started) -> None:
    scenario = started("srtf-basics")
    scenario.submit(Action(1, 1))
    result = scenario.advance(4)
    a = scenario.state.entities.get(1)
    assert scenario.now == 4
    assert a.remaining_time == 6
    assert result.preemption_due
    assert scenario.canonical_action() == Action(2, 1)


def test_srtf_full_run(started, play_canonical) -> None:
    scenario = started("srtf-basics")
    taken = play_canonical(scenario)
    assert [a.entity_id for a in taken] == [1, 2, 1]

    summary = scenario.finalize()
    stats = {s.label: s for s in summary.entities}
    assert stats["B"].completion_time == 7
    assert stats["A"].completion_time == 13
    assert stats["A"].waiting_time == 3
    # 3 starts + 1 preemption bonus + 2 completions
    assert summary.points == 3 * 20 + 20 + 2 * 50


def test_first_fit_parks_in_order(started) -> None:
    scenario = started("first-fit-basics")
    assert scenario.phase is Phase.ACTIVE
    assert scenario.canonical_action() == Action(1, 2)

    too_small = scenario.submit(Action(1, 1))
    assert too_small.reason is VerdictReason.RESOURCE_TOO_SMALL

    assert scenario.submit(Action(1, 2)).accepted
    assert scenario.canonical_action() == Action(2, 1)
    assert scenario.submit(Action(2, 1)).accepted

    resources = scenario.state.resources
    assert resources.get(1).remaining_capacity == 10
    assert resources.get(2).remaining_capacity == 40
    assert resources.get(3).remaining_capacity == 200
    assert scenario.phase is Phase.RESULTS


def test_best_fit_selects_smallest_container(started) -> None:
    scenario = started("best-fit-basics")
    assert scenario.canonical_action() == Action(1, 1)


def test_request_that_fits_nowhere_is_rejected() -> None:
    scenario = Scenario.initialize(_config(Algorithm.BEST_FIT, [(0, 30), (1, 80), (2, 20)], capacities=[50, 40]))
    scenario.acknowledge()
    assert scenario.submit(Action(1, 2)).accepted

    result = scenario.advance(1)
    assert [e.entity_id for e in result.rejected] == [2]
    assert scenario.state.entities.get(2).status is EntityStatus.REJECTED

    scenario.advance(1)
    # container 2 only has 10 left
    assert scenario.canonical_action() == Action(3, 1)
    assert scenario.submit(Action(3, 1)).accepted
    assert scenario.phase is Phase.RESULTS
    report = scenario.finalize().fragmentation
    assert report.placed == 2
    assert report.rejected == 1


# ---------- Time ----------

def test_one_large_step_equals_many_small_ones(started) -> None:
    big = started("srtf-basics")
    small = started("srtf-basics")
    for scenario in (big, small):
        scenario.submit(Action(1, 1))

    big.advance(10)
    for _ in range(40):
        small.advance(0.25)

    for scenario in (big, small):
        assert scenario.now == 10
        assert scenario.state.entities.get(1).completion_time == 10
        assert scenario.state.score.penalty_points == pytest.approx(6.0)
    assert big.state.score.points == pytest.approx(small.state.score.points)
    # 20 for the first choice, 50 for the completion, 3 pending units at 2 each
    assert big.state.score.points == pytest.approx(64.0)


def test_advance_rejects_negative_step(started) -> None:
    scenario = started("fcfs-basics")
    with pytest.raises(ValueError):
        scenario.advance(-1)


def test_idle_server_still_lets_time_pass(started) -> None:
    scenario = started("fcfs-basics")
    result = scenario.advance(3)
    assert scenario.now == 3
    assert [e.entity_id for e in result.arrivals] == [2, 3]
    assert result.completed == []


# ---------- Snapshot and restart ----------

def test_snapshot_is_detached(started) -> None:
    scenario = started("sjf-basics")
    snapshot = scenario.get_snapshot()
    snapshot.entities[0].status = EntityStatus.REJECTED
    snapshot.score.points = 999
    assert scenario.state.entities.get(1).status is EntityStatus.WAITING
    assert scenario.state.score.points == 0
    assert snapshot.phase is Phase.ACTIVE
    assert snapshot.fragmentation is None


def test_allocation_snapshot_has_fragmentation(started) -> None:
    scenario = started("first-fit-basics")
    snapshot = scenario.get_snapshot()
    assert snapshot.fragmentation is not None
    assert snapshot.fragmentation.total_capacity == 350


def test_restart_rebuilds_everything(started) -> None:
    scenario = started("best-fit-cupboard", seed=7)
    plan = [(e.entity_id, e.arrival_time, e.burst_time) for e in scenario.generator.plan]
    scenario.submit(scenario.canonical_action())
    scenario.restart()

    assert scenario.phase is Phase.INTRO
    assert scenario.now == 0
    assert len(scenario.state.entities) == 0
    assert scenario.state.score.points == 0
    assert all(r.remaining_capacity == r.capacity for r in scenario.state.resources)
    assert [(e.entity_id, e.arrival_time, e.burst_time) for e in scenario.generator.plan] == plan


# ---------- Presets ----------

@pytest.mark.parametrize(
    "name",
    [
        "fcfs-kitchen",
        "sjf-print-queue",
        "sjf-print-queue-hard",
        "srtf-emergency-room",
        "first-fit-parking",
        "best-fit-cupboard",
        "worst-fit-toolbox",
    ],
)
def test_lessons_run_to_results(name, started, play_canonical) -> None:
    scenario = started(name)
    play_canonical(scenario)
    summary = scenario.finalize()
    assert summary.wrong_attempts == 0
    assert summary.accuracy == 100.0
    assert all(s.status in ("completed", "rejected") for s in summary.entities)
    assert len(summary.entities) == len(scenario.generator.plan)


def test_unknown_preset() -> None:
    with pytest.raises(KeyError):
        get_preset("round-robin")
