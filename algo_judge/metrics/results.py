"""Results aggregation for finished scenarios."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from algo_judge.metrics.fragmentation import FragmentationReport
from algo_judge.simulator.entity import Entity, EntityStatus
from algo_judge.simulator.validator import ScoreState


class EntityStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_id: int
    label: str
    status: str
    arrival_time: float
    burst_time: int
    start_time: Optional[float] = None
    completion_time: Optional[float] = None
    turnaround_time: Optional[float] = None
    waiting_time: Optional[float] = None
    response_time: Optional[float] = None
    resource_id: Optional[int] = None


class ResultsSummary(BaseModel):
    """Read-only summary of one run; the only artifact handed to persistence."""

    model_config = ConfigDict(frozen=True)

    scenario_id: str
    algorithm: str
    points: float
    raw_points: float
    accuracy: float
    correct_attempts: int
    wrong_attempts: int
    penalty_points: float = 0.0
    time_spent: float
    entities: List[EntityStats] = Field(default_factory=list)
    avg_turnaround: float = 0.0
    avg_waiting_time: float = 0.0
    max_turnaround: float = 0.0
    throughput: float = 0.0
    fragmentation: Optional[FragmentationReport] = None

    def to_persistence_payload(self) -> Dict[str, Any]:
        """Shape expected by the external score service."""
        metadata: Dict[str, Any] = {
            "algorithm": self.algorithm,
            "correctAttempts": self.correct_attempts,
            "avgTurnaround": self.avg_turnaround,
            "avgWaitingTime": self.avg_waiting_time,
        }
        if self.fragmentation is not None:
            metadata.update(
                {
                    "efficiency": self.fragmentation.efficiency,
                    "utilization": self.fragmentation.utilization,
                    "internalFragmentation": self.fragmentation.internal_fragmentation,
                    "rejected": self.fragmentation.rejected,
                }
            )
        return {
            "scenarioId": self.scenario_id,
            "score": self.points,
            "timeSpent": self.time_spent,
            "accuracy": self.accuracy,
            "wrongAttempts": self.wrong_attempts,
            "metadata": metadata,
        }


def entity_stats(entity: Entity, allocation: bool) -> EntityStats:
    if allocation:
        # time the request waited before being placed
        timings: Dict[str, Optional[float]] = {"waiting_time": None}
        if entity.status is EntityStatus.COMPLETED:
            timings["waiting_time"] = entity.completion_time - entity.arrival_time
    else:
        timings = {
            "turnaround_time": entity.turnaround_time,
            "waiting_time": entity.waiting_time,
            "response_time": entity.response_time,
        }
    return EntityStats(
        entity_id=entity.entity_id,
        label=entity.label,
        status=entity.status.value,
        arrival_time=entity.arrival_time,
        burst_time=entity.burst_time,
        start_time=entity.start_time,
        completion_time=entity.completion_time,
        resource_id=entity.resource_id,
        **timings,
    )


def aggregate_results(
    scenario_id: str,
    algorithm: str,
    entities: List[Entity],
    score: ScoreState,
    time_spent: float,
    allocation: bool,
    fragmentation: Optional[FragmentationReport] = None,
) -> ResultsSummary:
    """Build the final summary from registries and score state."""
    stats = [entity_stats(e, allocation) for e in entities]

    turnarounds = [s.turnaround_time for s in stats if s.turnaround_time is not None]
    waits = [s.waiting_time for s in stats if s.waiting_time is not None]
    completions = [e.completion_time for e in entities if e.completion_time is not None]
    finished = sum(1 for e in entities if e.status is EntityStatus.COMPLETED)

    time_span = max(1.0, max(completions)) if completions else 1.0
    return ResultsSummary(
        scenario_id=scenario_id,
        algorithm=algorithm,
        points=score.display_points,
        raw_points=score.points,
        accuracy=score.accuracy(),
        correct_attempts=score.correct_attempts,
        wrong_attempts=score.wrong_attempts,
        penalty_points=score.penalty_points,
        time_spent=time_spent,
        entities=stats,
        avg_turnaround=float(np.mean(turnarounds)) if turnarounds else 0.0,
        avg_waiting_time=float(np.mean(waits)) if waits else 0.0,
        max_turnaround=float(np.max(turnarounds)) if turnarounds else 0.0,
        throughput=finished / time_span,
        fragmentation=fragmentation,
    )
