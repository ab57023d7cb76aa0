"""Fragmentation and utilization metrics for allocation scenarios.

Every value is derived from the current registries on each call; nothing
is patched incrementally.
"""

from __future__ import annotations

from typing import Iterable, Optional

from pydantic import BaseModel

from algo_judge.simulator.entity import Entity, EntityStatus
from algo_judge.simulator.resource import Resource


class FragmentationReport(BaseModel):
    total_capacity: int = 0
    total_allocated: int = 0
    used_space: int = 0
    internal_fragmentation: int = 0
    internal_fragmentation_pct: float = 0.0
    efficiency: float = 100.0
    utilization: float = 0.0
    placed: int = 0
    rejected: int = 0


def smallest_outstanding_size(
    entities: Iterable[Entity],
    upcoming_sizes: Iterable[int] = (),
    catalog_sizes: Iterable[int] = (),
) -> Optional[int]:
    """Smallest size still to be handled, falling back to the catalog of sizes."""
    outstanding = [e.size for e in entities if not e.status.is_terminal]
    outstanding.extend(upcoming_sizes)
    if outstanding:
        return min(outstanding)
    catalog = list(catalog_sizes)
    return min(catalog) if catalog else None


def compute_fragmentation(
    resources: Iterable[Resource],
    entities: Iterable[Entity],
    upcoming_sizes: Iterable[int] = (),
    catalog_sizes: Iterable[int] = (),
) -> FragmentationReport:
    """Derive allocation metrics from resource and entity state.

    Args:
        resources: Containers of the scenario.
        entities: Every entity introduced so far.
        upcoming_sizes: Sizes of entities that have not arrived yet.
        catalog_sizes: Every size the scenario can produce; used as the
            reference when no request is outstanding.

    Returns:
        A FragmentationReport.  Leftover space in an occupied container
        counts as internal fragmentation only when it is smaller than the
        smallest outstanding request.
    """
    entities = list(entities)
    containers = [r for r in resources if not r.is_server]
    smallest = smallest_outstanding_size(entities, upcoming_sizes, catalog_sizes)

    total_capacity = sum(r.capacity for r in containers)
    occupied = [r for r in containers if r.is_occupied]
    total_allocated = sum(r.capacity for r in occupied)
    used_space = sum(r.capacity - r.remaining_capacity for r in occupied)
    internal = sum(
        r.remaining_capacity
        for r in occupied
        if r.remaining_capacity > 0 and smallest is not None and r.remaining_capacity < smallest
    )

    internal_pct = 100.0 * internal / total_allocated if total_allocated else 0.0
    return FragmentationReport(
        total_capacity=total_capacity,
        total_allocated=total_allocated,
        used_space=used_space,
        internal_fragmentation=internal,
        internal_fragmentation_pct=internal_pct,
        efficiency=100.0 - internal_pct,
        utilization=100.0 * total_allocated / total_capacity if total_capacity else 0.0,
        placed=sum(1 for e in entities if e.status is EntityStatus.COMPLETED and e.resource_id is not None),
        rejected=sum(1 for e in entities if e.status is EntityStatus.REJECTED),
    )
