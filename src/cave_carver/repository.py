"""In-memory library of decoded cave samples."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from .errors import SourceDecodeError
from .models import CaveSample

_SAMPLES_ADAPTER = TypeAdapter(list[CaveSample] | None)


class SampleSource(Protocol):
    """Anything with a name and readable bytes; ``pathlib.Path`` qualifies."""

    @property
    def name(self) -> str:
        ...

    def read_bytes(self) -> bytes:
        ...


@dataclass(slots=True, frozen=True)
class BytesSource:
    """In-memory sample source."""

    name: str
    data: bytes

    def read_bytes(self) -> bytes:
        return self.data


def decode_samples(source: SampleSource) -> list[CaveSample]:
    """Decode a JSON array of cave samples, raising ``SourceDecodeError`` on any failure."""
    try:
        raw = source.read_bytes()
    except OSError as exc:
        raise SourceDecodeError(f"Error reading {source.name}: {exc}") from exc

    try:
        samples = _SAMPLES_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise SourceDecodeError(
            f"Error decoding {source.name}: {exc.error_count()} validation error(s), first: {exc.errors()[0]['msg']}"
        ) from exc
    return samples or []


class SampleRepository:
    """Holds pregenerated samples; replaced wholesale on each load."""

    def __init__(
        self,
        *,
        exclude_prefix: str = "realtime_cave",
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._exclude_prefix = exclude_prefix.lower()
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger("cave_carver.repository")
        self._samples: tuple[CaveSample, ...] = ()

    @property
    def samples(self) -> tuple[CaveSample, ...]:
        return self._samples

    def __len__(self) -> int:
        return len(self._samples)

    def load(self, sources: Iterable[SampleSource]) -> int:
        """Decode every source and publish the combined samples; return how many were loaded."""
        loaded: list[CaveSample] = []
        source_count = 0
        for source in sources:
            source_count += 1
            self._logger.info("Loading caves from %s", source.name)
            try:
                loaded.extend(decode_samples(source))
            except SourceDecodeError as exc:
                self._logger.error(
                    "%s", exc, extra={"source": source.name, "failure": type(exc).__name__}
                )

        # Single reference swap so readers never see a half-filled library.
        self._samples = tuple(loaded)
        self._logger.info(
            "Loaded %d pregenerated cave samples from %d file(s).",
            len(loaded),
            source_count,
            extra={"sample_count": len(loaded), "source_count": source_count},
        )
        return len(loaded)

    def discover_sources(self, folder: str | Path) -> list[Path]:
        folder = Path(folder)
        if not folder.is_dir():
            return []
        return sorted(
            path
            for path in folder.iterdir()
            if path.is_file()
            and path.suffix.lower() == ".json"
            and not path.name.lower().startswith(self._exclude_prefix)
        )

    def load_directory(self, folder: str | Path) -> int:
        """Load every ``*.json`` library file in ``folder``, skipping generator outputs."""
        sources = self.discover_sources(folder)
        if not sources:
            self._logger.warning("No pregenerated .json files found in %s", Path(folder).resolve())
        return self.load(sources)

    def decode_single(self, source: SampleSource) -> CaveSample | None:
        """Return the first sample of ``source``, or ``None`` if it is empty or unreadable."""
        try:
            samples = decode_samples(source)
        except SourceDecodeError as exc:
            self._logger.error("%s", exc, extra={"source": source.name})
            return None
        if not samples:
            self._logger.warning("No samples found in %s", source.name)
            return None
        return samples[0]

    def pick_random(self) -> CaveSample | None:
        samples = self._samples
        if not samples:
            return None
        return self._rng.choice(samples)
