"""Error taxonomy for sample loading, generation jobs and placement."""

from __future__ import annotations


class CaveCarverError(RuntimeError):
    """Base error. ``user_message`` is what the requesting actor is told."""

    user_message = "An error occurred while generating the cave. Check server console."

    def __init__(self, message: str, *, user_message: str | None = None) -> None:
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class SourceDecodeError(CaveCarverError):
    """A sample source could not be read or decoded."""


class EmptyLibraryError(CaveCarverError):
    user_message = "No pregenerated cave samples loaded. Use /cavegen reload or add JSON files."


class MissingDependencyError(CaveCarverError):
    """Generator executable or weights file is absent."""

    user_message = "Cave generator not found. Check plugin configuration/paths."


class ProcessExitError(CaveCarverError):
    """Generator exited non-zero, timed out or could not be launched."""

    user_message = "Failed to generate cave (generator error). Check server console."

    def __init__(self, message: str, *, exit_code: int | None = None, user_message: str | None = None) -> None:
        super().__init__(message, user_message=user_message)
        self.exit_code = exit_code


class MissingOutputError(CaveCarverError):
    user_message = "Failed to generate cave: the generator did not write its output file."


class DecodeError(CaveCarverError):
    user_message = "Failed to read generated cave JSON."


class UnloadedRegionError(CaveCarverError):
    """A single cell could not be mutated because its region is not loaded."""
