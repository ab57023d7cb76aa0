from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from algo_judge.presets import get_preset
from algo_judge.simulator.entity import Entity, EntityStatus
from algo_judge.simulator.phases import Phase
from algo_judge.simulator.registry import EntityRegistry, ResourceRegistry
from algo_judge.simulator.resource import Resource
from algo_judge.simulator.scenario import Scenario
from algo_judge.simulator.strategy_base import Action


@pytest.fixture
def make_entities() -> Callable[..., EntityRegistry]:
    """Registry of waiting entities from ``(arrival, burst)`` pairs, ids from 1."""

    def _make(pairs: Sequence[Tuple[float, int]]) -> EntityRegistry:
        registry = EntityRegistry()
        for i, (arrival, burst) in enumerate(pairs, start=1):
            registry.add(Entity(i, arrival, burst))
            registry.mark_arrived(i)
        return registry

    return _make


@pytest.fixture
def make_containers() -> Callable[..., ResourceRegistry]:
    def _make(capacities: Sequence[int]) -> ResourceRegistry:
        return ResourceRegistry([Resource(i, c) for i, c in enumerate(capacities, start=1)])

    return _make


@pytest.fixture
def server() -> ResourceRegistry:
    return ResourceRegistry([Resource(1, 1, "CPU", is_server=True)])


@pytest.fixture
def started() -> Callable[..., Scenario]:
    """Scenario built from a preset, with the briefing already acknowledged."""

    def _start(name: str, seed: int = 42) -> Scenario:
        scenario = Scenario.initialize(get_preset(name, seed=seed))
        scenario.acknowledge()
        return scenario

    return _start


@pytest.fixture
def play_canonical() -> Callable[[Scenario], List[Action]]:
    """Drive a scenario to the results phase with correct actions only.

    Returns the accepted actions in order.
    """

    def _play(scenario: Scenario, tick: float = 1.0, max_ticks: int = 10_000) -> List[Action]:
        taken: List[Action] = []
        ticks = 0
        while scenario.phase is not Phase.RESULTS:
            action: Optional[Action] = scenario.canonical_action()
            entity = scenario.state.entities.get(action.entity_id) if action else None
            if entity is not None and entity.status is EntityStatus.WAITING:
                verdict = scenario.submit(action)
                assert verdict.accepted, verdict.message
                taken.append(action)
                continue
            scenario.advance(tick)
            ticks += 1
            assert ticks < max_ticks, "scenario never reached results"
        return taken

    return _play
