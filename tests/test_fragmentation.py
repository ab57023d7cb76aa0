from __future__ import annotations

import pytest

from algo_judge.metrics.fragmentation import compute_fragmentation, smallest_outstanding_size
from algo_judge.simulator.entity import EntityStatus
from algo_judge.simulator.phases import Phase


def _place(entities, resources, entity_id: int, resource_id: int) -> None:
    entity = entities.get(entity_id)
    resources.get(resource_id).admit(entity)
    entity.place(resource_id, 0)


def test_empty_containers(make_entities, make_containers) -> None:
    report = compute_fragmentation(make_containers([50, 100]), make_entities([(0, 30)]))
    assert report.total_capacity == 150
    assert report.total_allocated == 0
    assert report.internal_fragmentation == 0
    assert report.efficiency == 100.0
    assert report.utilization == 0.0


def test_leftover_smaller_than_any_request_is_internal(make_entities, make_containers) -> None:
    entities = make_entities([(0, 60), (0, 40)])
    resources = make_containers([50, 100, 200])
    _place(entities, resources, 1, 2)
    _place(entities, resources, 2, 1)

    report = compute_fragmentation(resources, entities, catalog_sizes=[60, 40])
    assert report.total_allocated == 150
    assert report.used_space == 100
    # 10 left in container 1 is below the smallest size (40); 40 left in container 2 is not
    assert report.internal_fragmentation == 10
    assert report.internal_fragmentation_pct == pytest.approx(100 * 10 / 150)
    assert report.efficiency == pytest.approx(100 - 100 * 10 / 150)
    assert report.utilization == pytest.approx(100 * 150 / 350)
    assert report.placed == 2
    assert report.rejected == 0


def test_outstanding_requests_set_the_reference(make_entities, make_containers) -> None:
    entities = make_entities([(0, 60), (0, 45)])
    resources = make_containers([100])
    _place(entities, resources, 1, 1)
    # 40 left, the waiting request needs 45
    report = compute_fragmentation(resources, entities, catalog_sizes=[10])
    assert report.internal_fragmentation == 40


def test_smallest_outstanding_size(make_entities) -> None:
    entities = make_entities([(0, 60), (0, 45)])
    entities.get(2).reject(0)
    assert smallest_outstanding_size(entities) == 60
    assert smallest_outstanding_size(entities, upcoming_sizes=[25]) == 25
    entities.get(1).reject(0)
    assert smallest_outstanding_size(entities, catalog_sizes=[15, 35]) == 15
    assert smallest_outstanding_size(entities) is None


@pytest.mark.parametrize("name", ["first-fit-parking", "best-fit-cupboard", "worst-fit-toolbox"])
def test_invariants_hold_through_a_run(name, started) -> None:
    scenario = started(name, seed=11)
    while scenario.phase is not Phase.RESULTS:
        report = scenario.fragmentation()
        occupied = [r for r in scenario.state.resources if r.is_occupied]
        assert report.total_allocated == sum(r.capacity for r in occupied)
        assert 0 <= report.internal_fragmentation <= report.total_allocated
        assert report.used_space <= report.total_allocated

        action = scenario.canonical_action()
        entity = scenario.state.entities.get(action.entity_id) if action else None
        if entity is not None and entity.status is EntityStatus.WAITING:
            scenario.submit(action)
        else:
            scenario.advance(1)
