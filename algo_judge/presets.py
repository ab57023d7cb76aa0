"""Built-in lesson scenarios.

The first group reproduces the hand-authored lessons (kitchen, print
queue, emergency room, parking lot, cupboard, toolbox); the second group
holds the small reference scenarios used to check each algorithm.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from algo_judge.config import (
    Algorithm,
    EntitySpec,
    RandomizedArrivalsConfig,
    ResourceSpec,
    ScenarioConfig,
    ScoringRules,
    SizeBucket,
)


def _fixed(arrivals: Sequence[float], bursts: Sequence[int], labels: Sequence[str] = ()) -> List[EntitySpec]:
    labels = list(labels) or [None] * len(bursts)
    return [
        EntitySpec(entity_id=i + 1, arrival_time=a, burst_time=b, label=label)
        for i, (a, b, label) in enumerate(zip(arrivals, bursts, labels))
    ]


def _containers(capacities: Sequence[int], prefix: str) -> List[ResourceSpec]:
    return [
        ResourceSpec(resource_id=i + 1, capacity=c, label=f"{prefix}{i + 1}")
        for i, c in enumerate(capacities)
    ]


# ---------- Lessons ----------

def fcfs_kitchen(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="fcfs-kitchen",
        algorithm=Algorithm.FCFS,
        mode="randomized",
        randomized=RandomizedArrivalsConfig(
            min_count=3,
            max_count=5,
            buckets=[
                SizeBucket(name="burger", size=4),
                SizeBucket(name="pizza", size=6),
                SizeBucket(name="sandwich", size=3),
                SizeBucket(name="soup", size=5),
                SizeBucket(name="chicken", size=5),
            ],
            arrival_range=(0, 6),
            seed=seed,
        ),
        resources=[ResourceSpec(resource_id=1, capacity=1, label="Chef")],
    )


def sjf_print_queue(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="sjf-print-queue",
        algorithm=Algorithm.SJF,
        mode="randomized",
        randomized=RandomizedArrivalsConfig(
            min_count=3,
            max_count=5,
            buckets=[
                SizeBucket(name="small", size=3),
                SizeBucket(name="medium", size=5),
                SizeBucket(name="large", size=7),
            ],
            seed=seed,
        ),
        resources=[ResourceSpec(resource_id=1, capacity=1, label="Printer")],
    )


def sjf_print_queue_hard(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="sjf-print-queue-hard",
        algorithm=Algorithm.SJF,
        mode="randomized",
        randomized=RandomizedArrivalsConfig(
            min_count=5,
            max_count=8,
            buckets=[
                SizeBucket(name="small", size_range=(2, 5)),
                SizeBucket(name="medium", size_range=(3, 7)),
                SizeBucket(name="large", size_range=(5, 9)),
            ],
            arrival_range=(0, 6),
            seed=seed,
        ),
        resources=[ResourceSpec(resource_id=1, capacity=1, label="Printer")],
    )


def srtf_emergency_room(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="srtf-emergency-room",
        algorithm=Algorithm.SRTF,
        entities=_fixed(
            arrivals=[0, 4, 8, 12, 16, 20],
            bursts=[15, 6, 10, 3, 8, 5],
            labels=[f"Patient {i}" for i in range(1, 7)],
        ),
        resources=[ResourceSpec(resource_id=1, capacity=1, label="Doctor")],
    )


def first_fit_parking(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="first-fit-parking",
        algorithm=Algorithm.FIRST_FIT,
        mode="randomized",
        randomized=RandomizedArrivalsConfig(
            min_count=8,
            max_count=12,
            buckets=[
                SizeBucket(name="bike", size=25),
                SizeBucket(name="car", size=50, max_count=8),
                SizeBucket(name="truck", size=100, max_count=4),
            ],
            arrival_range=(0, 20),
            seed=seed,
        ),
        resources=_containers([100, 100, 100, 25, 25, 25, 50, 50, 50, 50, 50], "S"),
    )


def best_fit_cupboard(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="best-fit-cupboard",
        algorithm=Algorithm.BEST_FIT,
        mode="randomized",
        randomized=RandomizedArrivalsConfig(
            min_count=6,
            max_count=10,
            buckets=[
                SizeBucket(name="small", size=15),
                SizeBucket(name="medium", size=35),
                SizeBucket(name="large", size=55),
                SizeBucket(name="xl", size=75),
                SizeBucket(name="huge", size=95),
                SizeBucket(name="massive", size=120),
            ],
            seed=seed,
        ),
        resources=_containers([300, 150, 130, 50, 50, 100, 100, 200, 90], "C"),
    )


def worst_fit_toolbox(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="worst-fit-toolbox",
        algorithm=Algorithm.WORST_FIT,
        entities=_fixed(arrivals=[0] * 6, bursts=[20, 30, 15, 25, 35, 40]),
        resources=_containers([100, 80, 60, 40], "Box "),
        scoring=ScoringRules(correct=20, wrong=-20),
    )


# ---------- Reference scenarios ----------

def fcfs_basics(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="fcfs-basics",
        algorithm=Algorithm.FCFS,
        entities=_fixed(arrivals=[0, 1, 2], bursts=[4, 2, 1]),
    )


def sjf_basics(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="sjf-basics",
        algorithm=Algorithm.SJF,
        entities=_fixed(arrivals=[0, 0, 0, 0], bursts=[6, 2, 8, 4]),
    )


def srtf_basics(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="srtf-basics",
        algorithm=Algorithm.SRTF,
        entities=_fixed(arrivals=[0, 4], bursts=[10, 3], labels=["A", "B"]),
    )


def first_fit_basics(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="first-fit-basics",
        algorithm=Algorithm.FIRST_FIT,
        entities=_fixed(arrivals=[0, 0], bursts=[60, 40]),
        resources=_containers([50, 100, 200], "R"),
    )


def best_fit_basics(seed: int = 42) -> ScenarioConfig:
    return ScenarioConfig(
        scenario_id="best-fit-basics",
        algorithm=Algorithm.BEST_FIT,
        entities=_fixed(arrivals=[0], bursts=[40]),
        resources=_containers([50, 100, 200], "R"),
    )


PRESETS: Dict[str, Callable[..., ScenarioConfig]] = {
    "fcfs-kitchen": fcfs_kitchen,
    "sjf-print-queue": sjf_print_queue,
    "sjf-print-queue-hard": sjf_print_queue_hard,
    "srtf-emergency-room": srtf_emergency_room,
    "first-fit-parking": first_fit_parking,
    "best-fit-cupboard": best_fit_cupboard,
    "worst-fit-toolbox": worst_fit_toolbox,
    "fcfs-basics": fcfs_basics,
    "sjf-basics": sjf_basics,
    "srtf-basics": srtf_basics,
    "first-fit-basics": first_fit_basics,
    "best-fit-basics": best_fit_basics,
}


def get_preset(name: str, seed: int = 42) -> ScenarioConfig:
    """Return the named preset configuration."""
    try:
        factory = PRESETS[name]
    except KeyError:
        raise KeyError(f"unknown preset {name!r}; choose from {sorted(PRESETS)}") from None
    return factory(seed=seed)
