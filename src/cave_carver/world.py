"""World collaborators: the block grid a placement mutates."""

from __future__ import annotations

from typing import Protocol

from cave_carver.adapters.game_command import GameCommandAdapter, MinescriptCommand
from cave_carver.errors import UnloadedRegionError
from cave_carver.models import BlockPosition


class World(Protocol):
    """Vertical bounds plus a primitive to clear one cell."""

    @property
    def min_height(self) -> int:
        ...

    @property
    def max_height(self) -> int:
        ...

    def clear_block(self, position: BlockPosition) -> None:
        """Set the cell at ``position`` to air."""


class InMemoryWorld:
    """Records cleared cells; cells listed in ``unloaded`` refuse mutation."""

    def __init__(
        self,
        *,
        min_height: int = -64,
        max_height: int = 320,
        unloaded: set[BlockPosition] | None = None,
    ) -> None:
        self.min_height = min_height
        self.max_height = max_height
        self.unloaded = unloaded or set()
        self.cleared: list[BlockPosition] = []

    def clear_block(self, position: BlockPosition) -> None:
        if position in self.unloaded:
            raise UnloadedRegionError(f"Region containing {position} is not loaded")
        self.cleared.append(position)


class CommandWorld:
    """Clears cells in a running game with ``setblock`` commands."""

    def __init__(self, adapter: GameCommandAdapter, *, min_height: int = -64, max_height: int = 320) -> None:
        self._adapter = adapter
        self.min_height = min_height
        self.max_height = max_height

    def clear_block(self, position: BlockPosition) -> None:
        self._adapter.send(MinescriptCommand(command=f"setblock {position.x} {position.y} {position.z} minecraft:air"))
