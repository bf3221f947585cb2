"""Carve pregenerated or freshly generated voxel caves into a block world."""

from .errors import (
    CaveCarverError,
    DecodeError,
    EmptyLibraryError,
    MissingDependencyError,
    MissingOutputError,
    ProcessExitError,
    SourceDecodeError,
)
from .models import Anchor, BlockPosition, CaveSample, GenerationJob, JobState, PlacementReport, Voxel

__version__ = "0.1.0"

__all__ = [
    "Anchor",
    "BlockPosition",
    "CaveCarverError",
    "CaveSample",
    "DecodeError",
    "EmptyLibraryError",
    "GenerationJob",
    "JobState",
    "MissingDependencyError",
    "MissingOutputError",
    "PlacementReport",
    "ProcessExitError",
    "SourceDecodeError",
    "Voxel",
]
