from __future__ import annotations

import asyncio
import json
import random
from pathlib import Path

from cave_carver.actors import PlayerActor
from cave_carver.config import Settings
from cave_carver.models import Anchor
from cave_carver.plugin import CavePlugin
from cave_carver.world import InMemoryWorld


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        library_dir=str(tmp_path / "plugins" / "CaveGen"),
        generator_root=str(tmp_path),
        centering_offset=(0, 0, 0),
    )


def test_enable_creates_library_folder_and_loads_samples(tmp_path: Path) -> None:
    plugin = CavePlugin(settings=_settings(tmp_path), world=InMemoryWorld())

    assert plugin.enable() == 0
    assert plugin.library_dir.is_dir()

    (plugin.library_dir / "caves.json").write_text(
        json.dumps([{"sample_id": 5, "voxels": [{"x": 0, "y": 0, "z": 0}]}]),
        encoding="utf-8",
    )
    assert plugin.enable() == 1


def test_dispatch_runs_on_world_queue(tmp_path: Path) -> None:
    world = InMemoryWorld(min_height=0, max_height=255)
    plugin = CavePlugin(settings=_settings(tmp_path), world=world, rng=random.Random(7))
    plugin.enable()
    (plugin.library_dir / "caves.json").write_text(
        json.dumps([{"sample_id": 5, "voxels": [{"x": 0, "y": 0, "z": 0}, {"x": 0, "y": -500, "z": 0}]}]),
        encoding="utf-8",
    )
    actor = PlayerActor("steve", lambda: Anchor(1.5, 64, 1.5), permissions={"caves.reload"})

    async def _run() -> None:
        await plugin.start()
        await plugin.dispatch(actor, ["reload"])
        await plugin.dispatch(actor, [])
        await plugin.dispatch(actor, ["new"])
        await plugin.stop()

    asyncio.run(_run())

    assert actor.messages[0] == "Reloaded 1 cave samples."
    assert actor.messages[1] == "Cave generated!"
    assert "not found" in actor.messages[2]
    assert len(world.cleared) == 1
