"""CLI entrypoint for the cave carver."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

import typer
from rich import print

from cave_carver.actors import Actor, ConsoleActor, PlayerActor
from cave_carver.adapters import (
    EchoGameCommandAdapter,
    GameCommandAdapter,
    MinescriptGameCommandAdapter,
    MinescriptUnavailableError,
)
from cave_carver.config import settings
from cave_carver.game_state import PlayerPositionResolver
from cave_carver.models import Anchor
from cave_carver.plugin import CavePlugin
from cave_carver.telemetry import configure_logging
from cave_carver.world import CommandWorld

app = typer.Typer(help="Carve generated or pregenerated caves into a Minecraft world")


def _build_game_adapter() -> GameCommandAdapter:
    if settings.minecraft_adapter.lower() == "minescript":
        try:
            return MinescriptGameCommandAdapter(command_prefix=settings.minescript_command_prefix)
        except MinescriptUnavailableError as exc:
            print({"warning": str(exc), "fallback": "echo"})
    return EchoGameCommandAdapter()


def _build_plugin(adapter: GameCommandAdapter) -> CavePlugin:
    world = CommandWorld(adapter, min_height=settings.world_min_height, max_height=settings.world_max_height)
    return CavePlugin(settings=settings, world=world)


def _position_source(
    adapter: GameCommandAdapter,
    player: str,
    x: float | None,
    y: float | None,
    z: float | None,
) -> Callable[[], Anchor | None]:
    if x is not None and y is not None and z is not None:
        anchor = Anchor(x, y, z)
        return lambda: anchor
    return PlayerPositionResolver(adapter, player).resolve


def _run_request(args: Sequence[str], actor_factory: Callable[[GameCommandAdapter], Actor]) -> None:
    configure_logging(settings.log_level)
    adapter = _build_game_adapter()
    plugin = _build_plugin(adapter)
    actor = actor_factory(adapter)

    async def _run() -> None:
        await plugin.start()
        try:
            plugin.enable()
            await plugin.dispatch(actor, args)
        finally:
            await plugin.stop()

    asyncio.run(_run())
    if isinstance(adapter, EchoGameCommandAdapter):
        print({"commands_sent": len(adapter.sent)})


def _player_factory(player: str, x: float | None, y: float | None, z: float | None):
    def _factory(adapter: GameCommandAdapter) -> Actor:
        return PlayerActor(
            player,
            _position_source(adapter, player, x, y, z),
            permissions={settings.reload_permission},
            sink=lambda text: print({"player": player, "message": text}),
        )

    return _factory


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "library_dir": settings.library_dir,
            "generator_executable": settings.generator_executable,
            "generator_weights": settings.generator_weights,
            "minecraft_adapter": settings.minecraft_adapter,
            "centering_offset": settings.centering_offset,
        }
    )


@app.command()
def samples() -> None:
    """Load the sample library and list what it holds."""
    configure_logging(settings.log_level)
    plugin = _build_plugin(EchoGameCommandAdapter())
    count = plugin.repository.load_directory(plugin.library_dir)
    print(
        {
            "sample_count": count,
            "samples": [
                {"sample_id": sample.sample_id, "shape": sample.shape, "voxels": len(sample.voxels)}
                for sample in plugin.repository.samples
            ],
        }
    )


@app.command()
def reload() -> None:
    """Reload the sample library from disk."""
    console = ConsoleActor()
    _run_request(["reload"], lambda _adapter: console)
    print({"messages": console.messages})


@app.command("random")
def random_cave(
    player: str = typer.Option("@p", help="Player the cave is carved around"),
    x: float = typer.Option(None, help="Anchor X; resolved from the game when omitted"),
    y: float = typer.Option(None, help="Anchor Y"),
    z: float = typer.Option(None, help="Anchor Z"),
) -> None:
    """Carve a random pregenerated cave around the player."""
    _run_request([], _player_factory(player, x, y, z))


@app.command("new")
def new_cave(
    player: str = typer.Option("@p", help="Player the cave is carved around"),
    x: float = typer.Option(None, help="Anchor X; resolved from the game when omitted"),
    y: float = typer.Option(None, help="Anchor Y"),
    z: float = typer.Option(None, help="Anchor Z"),
) -> None:
    """Run the external generator and carve its cave around the player."""
    _run_request(["new"], _player_factory(player, x, y, z))


if __name__ == "__main__":
    app()
