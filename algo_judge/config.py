"""Scenario configuration models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class Algorithm(str, Enum):
    FCFS = "fcfs"
    SJF = "sjf"
    SRTF = "srtf"
    FIRST_FIT = "first_fit"
    BEST_FIT = "best_fit"
    WORST_FIT = "worst_fit"

    @property
    def is_allocation(self) -> bool:
        return self in (Algorithm.FIRST_FIT, Algorithm.BEST_FIT, Algorithm.WORST_FIT)

    @property
    def is_preemptive(self) -> bool:
        return self is Algorithm.SRTF


# ---------- Entities and resources ----------

class EntitySpec(BaseModel):
    entity_id: Optional[int] = None
    arrival_time: float = Field(default=0, ge=0)
    burst_time: int = Field(gt=0)
    label: Optional[str] = None


class SizeBucket(BaseModel):
    """A family of entity sizes, e.g. ``truck`` = 100 units, at most 4 per run."""

    name: str
    size: Optional[int] = Field(default=None, gt=0)
    size_range: Optional[Tuple[int, int]] = None
    max_count: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_size(self) -> "SizeBucket":
        if (self.size is None) == (self.size_range is None):
            raise ValueError(f"bucket {self.name!r} needs exactly one of size or size_range")
        if self.size_range is not None:
            low, high = self.size_range
            if low <= 0 or high < low:
                raise ValueError(f"bucket {self.name!r} has an invalid size_range {self.size_range}")
        return self


class RandomizedArrivalsConfig(BaseModel):
    min_count: int = Field(ge=1)
    max_count: int = Field(ge=1)
    buckets: List[SizeBucket] = Field(min_length=1)
    arrival_range: Tuple[float, float] = (0, 0)
    seed: int = 42

    @model_validator(mode="after")
    def _check_bounds(self) -> "RandomizedArrivalsConfig":
        if self.max_count < self.min_count:
            raise ValueError(f"max_count ({self.max_count}) is below min_count ({self.min_count})")
        low, high = self.arrival_range
        if low < 0 or high < low:
            raise ValueError(f"invalid arrival_range {self.arrival_range}")
        if all(b.max_count is not None for b in self.buckets):
            allowed = sum(b.max_count for b in self.buckets)
            if allowed < self.min_count:
                raise ValueError(
                    f"bucket caps allow at most {allowed} entities but min_count is {self.min_count}"
                )
        return self


class ResourceSpec(BaseModel):
    resource_id: Optional[int] = None
    capacity: int = Field(gt=0)
    label: Optional[str] = None


# ---------- Scoring ----------

class ScoringRules(BaseModel):
    """Point values; rewards are never negative and penalties never positive."""

    correct: int = Field(default=20, ge=0)
    completion_bonus: int = Field(default=0, ge=0)
    wrong: int = Field(default=-10, le=0)
    preemption_bonus: int = Field(default=0, ge=0)
    pending_penalty_per_unit: float = Field(default=0.0, ge=0)


def default_scoring(algorithm: Algorithm) -> ScoringRules:
    """Point values of the built-in lessons for each algorithm."""
    if algorithm.is_allocation:
        return ScoringRules(correct=100, completion_bonus=0, wrong=-20)
    if algorithm is Algorithm.SRTF:
        return ScoringRules(
            correct=20,
            completion_bonus=50,
            wrong=-10,
            preemption_bonus=20,
            pending_penalty_per_unit=2.0,
        )
    return ScoringRules(correct=20, completion_bonus=100, wrong=-10)


# ---------- Canonical ScenarioConfig ----------

class ScenarioConfig(BaseModel):
    scenario_id: str = "scenario"
    algorithm: Algorithm
    mode: Literal["fixed", "randomized"] = "fixed"
    entities: List[EntitySpec] = Field(default_factory=list)
    randomized: Optional[RandomizedArrivalsConfig] = None
    resources: List[ResourceSpec] = Field(default_factory=list)
    scoring: Optional[ScoringRules] = None
    require_eligible_to_activate: bool = False

    @model_validator(mode="after")
    def _check_consistency(self) -> "ScenarioConfig":
        if self.mode == "fixed":
            if not self.entities:
                raise ValueError("fixed mode requires at least one entity")
            ids = [e.entity_id for e in self.entities if e.entity_id is not None]
            if len(ids) != len(set(ids)):
                raise ValueError("entity ids must be unique")
        elif self.randomized is None:
            raise ValueError("randomized mode requires randomized bounds")

        ids = [r.resource_id for r in self.resources if r.resource_id is not None]
        if len(ids) != len(set(ids)):
            raise ValueError("resource ids must be unique")

        if self.algorithm.is_allocation:
            if not self.resources:
                raise ValueError(f"{self.algorithm.value} needs at least one resource")
        elif len(self.resources) > 1:
            raise ValueError(f"{self.algorithm.value} runs on exactly one server")
        return self

    def effective_scoring(self) -> ScoringRules:
        return self.scoring or default_scoring(self.algorithm)


def load_config(path: str | Path) -> ScenarioConfig:
    """Read a ScenarioConfig from a JSON file."""
    return ScenarioConfig.model_validate_json(Path(path).read_text(encoding="utf-8"))
