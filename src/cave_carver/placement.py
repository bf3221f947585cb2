"""Maps a relative voxel set onto absolute world cells and clears them."""

from __future__ import annotations

import logging

from cave_carver.models import Anchor, CaveSample, PlacementReport
from cave_carver.world import World

# Roughly centres a 32x32x32 sample horizontally and sinks it below the anchor.
DEFAULT_CENTERING_OFFSET = (-16, -8, -16)


class PlacementEngine:
    """Clears one cell per voxel around an anchor.

    Not reentrant: callers must run it on the world-mutation owner only.
    """

    def __init__(
        self,
        world: World,
        *,
        centering_offset: tuple[int, int, int] = DEFAULT_CENTERING_OFFSET,
        logger: logging.Logger | None = None,
    ) -> None:
        self._world = world
        self._centering_offset = tuple(centering_offset)
        self._logger = logger or logging.getLogger("cave_carver.placement")

    @property
    def world(self) -> World:
        return self._world

    def place(self, anchor: Anchor, sample: CaveSample) -> PlacementReport:
        base = anchor.block().offset(*self._centering_offset)
        report = PlacementReport(base=base)
        min_height = self._world.min_height
        max_height = self._world.max_height

        for voxel in sample.voxels:
            target = base.offset(voxel.x, voxel.y, voxel.z)
            if target.y < min_height or target.y > max_height:
                report.clipped += 1
                continue
            try:
                self._world.clear_block(target)
            except Exception as exc:  # noqa: BLE001 - one bad cell must not abort the cave.
                report.failed += 1
                self._logger.debug("clear_block_failed", extra={"position": target, "error": str(exc)})
                continue
            report.cleared += 1

        self._logger.info(
            "Placed cave sample %d at %s: %d cleared, %d clipped, %d failed",
            sample.sample_id,
            base,
            report.cleared,
            report.clipped,
            report.failed,
            extra={"sample_id": sample.sample_id, "cleared": report.cleared, "failed": report.failed},
        )
        return report
