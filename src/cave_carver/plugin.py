"""Host integration: wires the components together from settings."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from pathlib import Path

from cave_carver.actors import Actor
from cave_carver.config import Settings
from cave_carver.dispatcher import CaveCommandDispatcher
from cave_carver.orchestrator import GenerationOrchestrator, GeneratorSpec
from cave_carver.placement import PlacementEngine
from cave_carver.repository import SampleRepository
from cave_carver.world import World
from cave_carver.world_queue import SerialWorldTaskQueue


class CavePlugin:
    def __init__(
        self,
        *,
        settings: Settings,
        world: World,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.library_dir = Path(settings.library_dir)
        self._logger = logger or logging.getLogger("cave_carver.plugin")

        self.world_queue = SerialWorldTaskQueue()
        self.repository = SampleRepository(exclude_prefix=settings.realtime_output_prefix, rng=rng)
        self.placement = PlacementEngine(world, centering_offset=settings.centering_offset)
        self.orchestrator = GenerationOrchestrator(
            GeneratorSpec.from_settings(settings),
            repository=self.repository,
            placement=self.placement,
            world_queue=self.world_queue,
        )
        self.dispatcher = CaveCommandDispatcher(
            repository=self.repository,
            orchestrator=self.orchestrator,
            placement=self.placement,
            library_dir=self.library_dir,
            reload_permission=settings.reload_permission,
        )

    def enable(self) -> int:
        """Create the library folder and load it, as on server start."""
        self.library_dir.mkdir(parents=True, exist_ok=True)
        count = self.repository.load_directory(self.library_dir)
        if count == 0:
            self._logger.warning("No cave samples loaded on startup.")
        else:
            self._logger.info("Loaded %d cave samples on startup.", count)
        return count

    async def start(self) -> None:
        await self.world_queue.start()

    async def stop(self) -> None:
        await self.orchestrator.join()
        await self.world_queue.join()
        await self.world_queue.stop()

    async def dispatch(self, actor: Actor, args: Sequence[str] = ()) -> bool:
        """Run a command on the world-mutation owner and wait for it to be handled."""
        return await self.world_queue.submit(lambda: self.dispatcher.dispatch(actor, args), name="dispatch")
