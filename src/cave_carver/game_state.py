"""Resolve live player positions from a running Minecraft instance."""

from __future__ import annotations

import re

from cave_carver.adapters.game_command import GameCommandAdapter, MinescriptCommand
from cave_carver.models import Anchor

_POS_RE = re.compile(r"\[\s*(-?[\d.]+)d?\s*,\s*(-?[\d.]+)d?\s*,\s*(-?[\d.]+)d?\s*\]")


def parse_position(raw: str | None) -> Anchor | None:
    """Parse ``data get entity`` output such as ``Steve has the following entity data: [1.5d, 64.0d, -3.2d]``."""
    if not raw:
        return None
    match = _POS_RE.search(raw)
    if not match:
        return None
    try:
        x, y, z = (float(group) for group in match.groups())
    except ValueError:
        return None
    return Anchor(x, y, z)


class PlayerPositionResolver:
    """Looks up a player's position with the vanilla ``data get entity`` command."""

    def __init__(self, adapter: GameCommandAdapter, player: str = "@p") -> None:
        self._adapter = adapter
        self._player = player

    def _safe_command(self, command: str) -> str | None:
        try:
            return self._adapter.send(MinescriptCommand(command=command))
        except Exception:  # noqa: BLE001
            return None

    def resolve(self) -> Anchor | None:
        return parse_position(self._safe_command(f"data get entity {self._player} Pos"))
