from __future__ import annotations

import pytest

from algo_judge.simulator.fcfs import FCFSStrategy
from algo_judge.simulator.preemption import MonitorState, PreemptionMonitor
from algo_judge.simulator.srtf import SRTFStrategy
from algo_judge.simulator.strategy_base import Action
from algo_judge.simulator.validator import ScoreState


def _monitor(entities, server, penalty: float = 2.0) -> PreemptionMonitor:
    return PreemptionMonitor(SRTFStrategy(), entities, server, ScoreState(), penalty)


def test_requires_preemptive_strategy(make_entities, server) -> None:
    with pytest.raises(ValueError):
        PreemptionMonitor(FCFSStrategy(), make_entities([]), server, ScoreState(), 1.0)


def test_states_follow_the_server(make_entities, server) -> None:
    entities = make_entities([(0, 10), (4, 3)])
    monitor = _monitor(entities, server)
    assert monitor.sync(0) is MonitorState.IDLE

    first = entities.get(1)
    server.server.admit(first)
    first.begin_service(1, 0)
    # entity 2 has not arrived yet
    assert monitor.sync(0) is MonitorState.SERVING

    first.serve(4, 0)
    assert monitor.sync(4) is MonitorState.PREEMPTION_PENDING
    assert monitor.pending_to == 2
    assert monitor.preemption_due


def test_penalty_is_charged_only_while_pending(make_entities, server) -> None:
    entities = make_entities([(0, 10), (4, 3)])
    monitor = _monitor(entities, server, penalty=2.0)
    first = entities.get(1)
    server.server.admit(first)
    first.begin_service(1, 0)

    monitor.sync(0)
    assert monitor.charge(4) == 0.0
    monitor.sync(4)
    assert monitor.charge(1.5) == pytest.approx(3.0)
    assert monitor.score.points == pytest.approx(-3.0)
    assert monitor.score.penalty_points == pytest.approx(3.0)


def test_scenario_flags_preemption_within_one_tick(started) -> None:
    scenario = started("srtf-basics")
    scenario.submit(Action(1, 1))
    for _ in range(3):
        assert not scenario.advance(1).preemption_due
    result = scenario.advance(1)
    assert [e.label for e in result.arrivals] == ["B"]
    assert result.preemption_due
    assert scenario.canonical_action() == Action(2, 1)


def test_performing_the_switch_clears_the_flag(started) -> None:
    scenario = started("srtf-basics")
    scenario.submit(Action(1, 1))
    scenario.advance(4)
    verdict = scenario.submit(Action(2, 1))
    assert verdict.accepted
    # correct action plus preemption bonus
    assert verdict.score_delta == 40
    assert not scenario.preemption_due
    assert scenario.state.resources.server.current_occupant == 2
    assert scenario.state.entities.get(1).remaining_time == 6
    assert scenario.state.monitor.state is MonitorState.SERVING


def test_delay_costs_points_per_time_unit(started) -> None:
    scenario = started("srtf-basics")
    scenario.submit(Action(1, 1))
    scenario.advance(4)
    result = scenario.advance(1)
    assert result.penalty == pytest.approx(2.0)
    assert scenario.state.score.points == pytest.approx(18.0)


def test_tie_returns_the_monitor_to_serving(make_entities, server) -> None:
    entities = make_entities([(0, 10), (4, 3)])
    monitor = _monitor(entities, server, penalty=2.0)
    first = entities.get(1)
    server.server.admit(first)
    first.begin_service(1, 0)

    first.serve(4, 0)
    assert monitor.sync(4) is MonitorState.PREEMPTION_PENDING
    first.serve(3, 4)
    # 3 remaining on both sides; the running entity keeps the server
    assert monitor.sync(7) is MonitorState.SERVING
    assert monitor.pending_to is None
    assert monitor.charge(1) == 0.0


def test_scenario_stops_charging_at_the_tie(started) -> None:
    scenario = started("srtf-basics")
    scenario.submit(Action(1, 1))
    scenario.advance(4)
    assert scenario.preemption_due

    result = scenario.advance(3)
    assert result.penalty == pytest.approx(6.0)
    assert not scenario.preemption_due
    assert scenario.state.monitor.state is MonitorState.SERVING
    assert scenario.advance(1).penalty == 0.0


def test_single_step_over_the_tie_charges_only_the_pending_span(started) -> None:
    scenario = started("srtf-basics")
    scenario.submit(Action(1, 1))
    result = scenario.advance(10)
    assert result.penalty == pytest.approx(6.0)
    assert [e.label for e in result.completed] == ["A"]
    assert scenario.state.score.penalty_points == pytest.approx(6.0)
