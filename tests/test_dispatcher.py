from __future__ import annotations

import json
from pathlib import Path

from cave_carver.actors import ConsoleActor, PlayerActor
from cave_carver.dispatcher import NO_RELOAD_PERMISSION_MESSAGE, PLAYERS_ONLY_MESSAGE, CaveCommandDispatcher
from cave_carver.errors import EmptyLibraryError, MissingDependencyError
from cave_carver.models import Anchor, BlockPosition
from cave_carver.orchestrator import GenerationOrchestrator, GeneratorSpec
from cave_carver.placement import PlacementEngine
from cave_carver.repository import SampleRepository
from cave_carver.world import InMemoryWorld
from cave_carver.world_queue import SerialWorldTaskQueue

SAMPLE = {
    "sample_id": 1,
    "shape": [2, 2, 2],
    "num_voxels": 2,
    "num_cave_voxels": 2,
    "voxels": [{"x": 0, "y": 0, "z": 0}, {"x": 1, "y": 0, "z": 0}],
}


def _build(tmp_path: Path) -> tuple[CaveCommandDispatcher, SampleRepository, InMemoryWorld, GenerationOrchestrator]:
    library = tmp_path / "caves"
    library.mkdir()
    world = InMemoryWorld()
    repository = SampleRepository()
    placement = PlacementEngine(world, centering_offset=(-16, -8, -16))
    orchestrator = GenerationOrchestrator(
        GeneratorSpec(
            executable=tmp_path / "AI" / "cavegen.exe",
            weights=tmp_path / "AI" / "model_1.0.pt",
            output_dir=library,
        ),
        repository=repository,
        placement=placement,
        world_queue=SerialWorldTaskQueue(),
    )
    dispatcher = CaveCommandDispatcher(
        repository=repository,
        orchestrator=orchestrator,
        placement=placement,
        library_dir=library,
    )
    return dispatcher, repository, world, orchestrator


def _player(*permissions: str) -> PlayerActor:
    return PlayerActor("alex", lambda: Anchor(10, 70, 10), permissions=set(permissions))


def test_reload_requires_capability(tmp_path: Path) -> None:
    dispatcher, repository, _, _ = _build(tmp_path)
    (tmp_path / "caves" / "lib.json").write_text(json.dumps([SAMPLE]), encoding="utf-8")
    actor = _player()

    assert dispatcher.dispatch(actor, ["reload"]) is True

    assert actor.messages == [NO_RELOAD_PERMISSION_MESSAGE]
    assert len(repository) == 0


def test_reload_reports_count(tmp_path: Path) -> None:
    dispatcher, repository, _, _ = _build(tmp_path)
    console = ConsoleActor()

    dispatcher.dispatch(console, ["RELOAD"])
    assert console.messages[-1] == "Reloaded caves, but no samples were found. Check your JSON files."

    (tmp_path / "caves" / "lib.json").write_text(json.dumps([SAMPLE, SAMPLE]), encoding="utf-8")
    dispatcher.dispatch(_player("caves.reload"), ["reload"])
    dispatcher.dispatch(console, ["reload"])

    assert console.messages[-1] == "Reloaded 2 cave samples."
    assert len(repository) == 2


def test_requests_without_position_are_rejected(tmp_path: Path) -> None:
    dispatcher, _, world, orchestrator = _build(tmp_path)
    console = ConsoleActor()

    dispatcher.dispatch(console, [])
    dispatcher.dispatch(console, ["new"])

    assert console.messages == [PLAYERS_ONLY_MESSAGE, PLAYERS_ONLY_MESSAGE]
    assert world.cleared == []
    assert orchestrator.list_recent_jobs() == []


def test_random_with_empty_library(tmp_path: Path) -> None:
    dispatcher, _, world, _ = _build(tmp_path)
    actor = _player()

    dispatcher.dispatch(actor)

    assert actor.messages == [EmptyLibraryError.user_message]
    assert world.cleared == []


def test_random_places_synchronously(tmp_path: Path) -> None:
    dispatcher, _, world, _ = _build(tmp_path)
    (tmp_path / "caves" / "lib.json").write_text(json.dumps([SAMPLE]), encoding="utf-8")
    dispatcher.dispatch(ConsoleActor(), ["reload"])
    actor = _player()

    dispatcher.dispatch(actor, ["whatever"])

    assert world.cleared == [BlockPosition(-6, 62, -6), BlockPosition(-5, 62, -6)]
    assert actor.messages == ["Cave generated!"]


def test_new_with_missing_generator_reports_and_returns(tmp_path: Path) -> None:
    dispatcher, _, world, orchestrator = _build(tmp_path)
    actor = _player()

    assert dispatcher.dispatch(actor, ["new"]) is True

    assert actor.messages == [MissingDependencyError.user_message]
    (job,) = orchestrator.list_recent_jobs()
    assert job.failure == "MissingDependencyError"
    assert world.cleared == []
