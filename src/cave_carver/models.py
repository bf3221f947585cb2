from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path


@dataclass(slots=True, frozen=True)
class Voxel:
    x: int
    y: int
    z: int


@dataclass(slots=True, frozen=True)
class CaveSample:
    """One decoded cave layout.

    ``shape`` and the voxel counts are diagnostic metadata from the generator and
    are not checked against ``voxels``.
    """

    sample_id: int = 0
    shape: tuple[int, ...] | None = None
    num_voxels: int = 0
    num_cave_voxels: int = 0
    voxels: tuple[Voxel, ...] = ()


@dataclass(slots=True, frozen=True)
class BlockPosition:
    x: int
    y: int
    z: int

    def offset(self, dx: int, dy: int, dz: int) -> BlockPosition:
        return BlockPosition(self.x + dx, self.y + dy, self.z + dz)


@dataclass(slots=True, frozen=True)
class Anchor:
    """World position a placement is centred around."""

    x: float
    y: float
    z: float

    def block(self) -> BlockPosition:
        """Return the containing block cell."""
        return BlockPosition(math.floor(self.x), math.floor(self.y), math.floor(self.z))


@dataclass(slots=True)
class PlacementReport:
    base: BlockPosition
    cleared: int = 0
    clipped: int = 0
    failed: int = 0


class JobState(str, Enum):
    """Lifecycle states of a generation job."""

    STARTED = "started"
    PROCESS_LAUNCHED = "process_launched"
    PROCESS_COMPLETED = "process_completed"
    RESULT_DECODED = "result_decoded"
    PLACED = "placed"
    CLEANED_UP = "cleaned_up"
    FAILED = "failed"


_SUCCESS_PATH = [
    JobState.STARTED,
    JobState.PROCESS_LAUNCHED,
    JobState.PROCESS_COMPLETED,
    JobState.RESULT_DECODED,
    JobState.PLACED,
    JobState.CLEANED_UP,
]
TERMINAL_STATES = frozenset({JobState.CLEANED_UP, JobState.FAILED})


@dataclass(slots=True)
class GenerationJob:
    """State of one external generator invocation and its placement."""

    id: str
    output_path: Path
    state: JobState = JobState.STARTED
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    exit_code: int | None = None
    failure: str | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: JobState) -> None:
        if self.done:
            raise ValueError(f"Job {self.id} is already {self.state.value}")
        expected = _SUCCESS_PATH[_SUCCESS_PATH.index(self.state) + 1]
        if state is not expected:
            raise ValueError(f"Illegal transition {self.state.value} -> {state.value} for job {self.id}")
        self.state = state
        if self.done:
            self.finished_at = datetime.now(timezone.utc)

    def fail(self, failure: str, error: str) -> None:
        if self.done:
            raise ValueError(f"Job {self.id} is already {self.state.value}")
        self.state = JobState.FAILED
        self.failure = failure
        self.error = error
        self.finished_at = datetime.now(timezone.utc)
